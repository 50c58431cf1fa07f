"""
Pydantic schema definitions for API payloads.

Request and response models are separated from the database layer to
decouple the API representation from persistence.
"""

from .book import BookFields, BookInput, BookRead
from .envelope import Envelope, ErrorKind

__all__ = ["BookFields", "BookInput", "BookRead", "Envelope", "ErrorKind"]
