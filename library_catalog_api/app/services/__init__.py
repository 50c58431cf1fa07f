"""
Service layer abstraction.

Each service encapsulates business logic for a domain.  Services
receive their store explicitly, so API handlers and tests decide which
database they work against.
"""

from .book_service import BookService

__all__ = ["BookService"]
