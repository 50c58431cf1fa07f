"""
Pydantic models for book data.

``BookInput`` is the request body for creating and updating a book.
Its fields are all optional at the schema level so that the service
can report every missing field at once instead of failing on the
first one.  ``BookFields`` is the validated, trimmed version of that
input, and ``BookRead`` is the book as returned by the API.

JSON keys follow the wire format used by the front end: camelCase
field names and ``_id`` for the identifier.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


class BookInput(BaseModel):
    """Request body for ``POST /books`` and ``PUT /books/{id}``."""

    title: Optional[str] = Field(None, examples=["Dune"])
    author: Optional[str] = Field(None, examples=["Frank Herbert"])
    isbn: Optional[str] = Field(None, examples=["978-0-441-17271-9"])
    publication_date: Optional[str] = Field(
        None, alias="publicationDate", examples=["1965-08-01"]
    )

    model_config = {
        "populate_by_name": True,
        # ISBNs are often typed as bare numbers by clients.
        "coerce_numbers_to_str": True,
    }


class BookFields(BaseModel):
    """Validated book fields ready to be persisted."""

    title: str
    author: str
    isbn: str
    publication_date: date


class BookRead(BaseModel):
    """Schema for reading a book from the API."""

    id: str = Field(..., alias="_id")
    title: str
    author: str
    isbn: str
    publication_date: date = Field(..., alias="publicationDate")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }
