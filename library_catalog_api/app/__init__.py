"""
Application package initializer.

The project is organised into logical pieces: ``core`` holds
configuration, logging and the book store, ``schemas`` the request and
response models, ``services`` the business logic and ``api`` the
FastAPI routers that expose it.
"""

from .main import app  # noqa: F401
