"""
Uniform response envelope and error taxonomy.

Every book service operation reports through an ``Envelope``: a
success flag, an optional ``data`` payload (one book or a list of
books), an optional ``count`` for listings and a human-readable
``message``, which is always set on failure.  The ``error`` kind is
kept for the HTTP layer to pick a status code and is never part of
the serialized body.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from .book import BookRead


class ErrorKind(str, Enum):
    """Classification of a failed service operation."""

    VALIDATION = "ValidationError"
    DUPLICATE_ISBN = "DuplicateIsbn"
    NOT_FOUND = "NotFound"
    STORE_UNAVAILABLE = "StoreUnavailable"


class Envelope(BaseModel):
    success: bool
    data: Optional[Union[BookRead, List[BookRead]]] = None
    count: Optional[int] = None
    message: Optional[str] = None
    error: Optional[ErrorKind] = Field(None, exclude=True)

    @classmethod
    def ok(
        cls,
        data: Union[BookRead, List[BookRead], None] = None,
        *,
        message: Optional[str] = None,
        count: Optional[int] = None,
    ) -> "Envelope":
        return cls(success=True, data=data, message=message, count=count)

    @classmethod
    def fail(cls, error: ErrorKind, message: str) -> "Envelope":
        return cls(success=False, error=error, message=message)

    def to_body(self) -> Dict[str, Any]:
        """Return the JSON body: aliased keys, unset fields omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
