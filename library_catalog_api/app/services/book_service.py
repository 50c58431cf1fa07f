"""
Service layer for the book catalog.

``BookService`` validates requests, enforces the catalog invariants and
turns store results into :class:`Envelope` objects.  It never raises
for expected failures: missing fields, ISBN collisions, unknown ids and
store outages are all reported as failed envelopes carrying an
:class:`ErrorKind`, which the HTTP layer maps to a status code.

ISBN uniqueness is checked with a lookup before every write so that
the caller gets a friendly message.  The ``UNIQUE`` constraint in the
store remains the authoritative guard when two writers race between
the lookup and the write.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Any, Dict, Optional, Tuple

from library_catalog_api.app.core.db import (
    BookStore,
    ConstraintViolationError,
    DuplicateKeyError,
    StoreError,
)
from library_catalog_api.app.schemas.book import BookFields, BookInput, BookRead
from library_catalog_api.app.schemas.envelope import Envelope, ErrorKind


logger = logging.getLogger(__name__)

# Keyed by store column name.
FIELD_MESSAGES: Dict[str, str] = {
    "title": "Book title is required",
    "author": "Author name is required",
    "isbn": "ISBN number is required",
    "publication_date": "Publication date is required",
}
INVALID_DATE_MESSAGE = "Publication date must be a valid date"
NOT_FOUND_MESSAGE = "Book not found"
DUPLICATE_ISBN_MESSAGE = "A book with this ISBN already exists"

_BOOK_ID_RE = re.compile(r"^[0-9a-f]{32}$")


def is_well_formed_id(book_id: str) -> bool:
    """Return ``True`` if ``book_id`` looks like an id issued by the store."""
    return bool(_BOOK_ID_RE.match(book_id or ""))


def parse_publication_date(value: str) -> Optional[date]:
    """Parse ``YYYY-MM-DD`` or a full ISO-8601 datetime into a date.

    Returns ``None`` if the value is not a valid calendar date.
    """
    value = value.strip()
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def validate_book_input(data: BookInput) -> Tuple[Optional[BookFields], Optional[str]]:
    """Check required fields and trim them.

    Returns ``(fields, None)`` on success or ``(None, message)`` where
    ``message`` lists every missing field.
    """
    raw = {
        "title": data.title,
        "author": data.author,
        "isbn": data.isbn,
        "publication_date": data.publication_date,
    }
    missing = [name for name, value in raw.items() if value is None or not value.strip()]
    if missing:
        return None, ", ".join(FIELD_MESSAGES[name] for name in missing)

    publication_date = parse_publication_date(raw["publication_date"])
    if publication_date is None:
        return None, INVALID_DATE_MESSAGE

    fields = BookFields(
        title=raw["title"].strip(),
        author=raw["author"].strip(),
        isbn=raw["isbn"].strip(),
        publication_date=publication_date,
    )
    return fields, None


class BookService:
    """Service class for managing catalog books.

    The store is injected at construction; the service holds no other
    state, so one instance can serve concurrent requests.
    """

    def __init__(self, store: BookStore) -> None:
        self.store = store

    async def list_books(self) -> Envelope:
        """Return all books, most recently created first."""
        try:
            rows = self.store.list_books()
        except StoreError:
            logger.exception("Error fetching books")
            return Envelope.fail(
                ErrorKind.STORE_UNAVAILABLE,
                "Failed to retrieve books. Please try again later.",
            )
        books = [self._row_to_book_read(row) for row in rows]
        return Envelope.ok(books, count=len(books))

    async def get_book(self, book_id: str) -> Envelope:
        """Retrieve a single book by its id.

        Malformed ids are reported exactly like unknown ones.
        """
        if not is_well_formed_id(book_id):
            logger.debug("Rejected malformed book id %r", book_id)
            return Envelope.fail(ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE)
        try:
            row = self.store.get_book(book_id)
        except StoreError:
            logger.exception("Error fetching book %s", book_id)
            return Envelope.fail(
                ErrorKind.STORE_UNAVAILABLE,
                "Failed to retrieve book. Please try again later.",
            )
        if row is None:
            return Envelope.fail(ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE)
        return Envelope.ok(self._row_to_book_read(row))

    async def create_book(self, data: BookInput) -> Envelope:
        """Validate and insert a new book."""
        fields, error_message = validate_book_input(data)
        if fields is None:
            return Envelope.fail(ErrorKind.VALIDATION, error_message)

        failure_message = "Failed to add book. Please try again later."
        try:
            if self.store.find_by_isbn(fields.isbn) is not None:
                return Envelope.fail(ErrorKind.DUPLICATE_ISBN, DUPLICATE_ISBN_MESSAGE)
            row = self.store.insert_book(**self._store_values(fields))
        except StoreError as exc:
            return self._write_failure(exc, failure_message, "adding book")

        logger.info("Created book %s (ISBN %s)", row["id"], row["isbn"])
        return Envelope.ok(self._row_to_book_read(row), message="Book added successfully")

    async def update_book(self, book_id: str, data: BookInput) -> Envelope:
        """Replace the editable fields of an existing book.

        Existence is checked first, so an unknown id is reported as
        ``NotFound`` whatever the request body contains.
        """
        if not is_well_formed_id(book_id):
            return Envelope.fail(ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE)

        failure_message = "Failed to update book. Please try again later."
        try:
            existing = self.store.get_book(book_id)
        except StoreError as exc:
            return self._write_failure(exc, failure_message, "updating book")
        if existing is None:
            return Envelope.fail(ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE)

        fields, error_message = validate_book_input(data)
        if fields is None:
            return Envelope.fail(ErrorKind.VALIDATION, error_message)

        try:
            if fields.isbn != existing["isbn"]:
                holder = self.store.find_by_isbn(fields.isbn)
                if holder is not None and holder["id"] != book_id:
                    return Envelope.fail(ErrorKind.DUPLICATE_ISBN, DUPLICATE_ISBN_MESSAGE)
            row = self.store.update_book(book_id, **self._store_values(fields))
        except StoreError as exc:
            return self._write_failure(exc, failure_message, "updating book")

        # Deleted by another request between the lookup and the write.
        if row is None:
            return Envelope.fail(ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE)

        logger.info("Updated book %s", book_id)
        return Envelope.ok(self._row_to_book_read(row), message="Book updated successfully")

    async def delete_book(self, book_id: str) -> Envelope:
        """Permanently remove a book."""
        if not is_well_formed_id(book_id):
            return Envelope.fail(ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE)
        try:
            deleted = self.store.delete_book(book_id)
        except StoreError:
            logger.exception("Error deleting book %s", book_id)
            return Envelope.fail(
                ErrorKind.STORE_UNAVAILABLE,
                "Failed to delete book. Please try again later.",
            )
        if not deleted:
            return Envelope.fail(ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE)
        logger.info("Deleted book %s", book_id)
        return Envelope.ok(message="Book deleted successfully")

    @staticmethod
    def _write_failure(exc: StoreError, failure_message: str, action: str) -> Envelope:
        """Classify a store exception raised while writing."""
        if isinstance(exc, DuplicateKeyError) and exc.field == "isbn":
            return Envelope.fail(ErrorKind.DUPLICATE_ISBN, DUPLICATE_ISBN_MESSAGE)
        if isinstance(exc, ConstraintViolationError) and exc.field in FIELD_MESSAGES:
            return Envelope.fail(ErrorKind.VALIDATION, FIELD_MESSAGES[exc.field])
        logger.error("Error %s: %s", action, exc, exc_info=exc)
        return Envelope.fail(ErrorKind.STORE_UNAVAILABLE, failure_message)

    @staticmethod
    def _store_values(fields: BookFields) -> Dict[str, Any]:
        return {
            "title": fields.title,
            "author": fields.author,
            "isbn": fields.isbn,
            "publication_date": fields.publication_date.isoformat(),
        }

    @staticmethod
    def _row_to_book_read(row: Dict[str, Any]) -> BookRead:
        """Convert a store record to a BookRead schema instance."""
        return BookRead(
            id=row["id"],
            title=row["title"],
            author=row["author"],
            isbn=row["isbn"],
            publication_date=row["publication_date"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
