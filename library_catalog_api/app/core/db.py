"""
SQLite book record store and simple migration system.

``BookStore`` is the only component that talks to the database.  It
is constructed explicitly (usually through ``BookStore.from_settings``)
and handed to the service layer, so tests and alternative deployments
can point it at any database file.  A new connection is opened for
every operation and closed when the operation finishes.

The ``books`` table carries the authoritative data constraints: the
``isbn`` column is ``UNIQUE`` and every required column is both ``NOT
NULL`` and checked for blank values.  Low-level ``sqlite3`` errors are
translated into the exceptions defined below so that callers never
have to import ``sqlite3`` themselves.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import logging
import os
import re
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from .config import Settings


logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Base class for all errors raised by :class:`BookStore`."""


class StoreUnavailableError(StoreError):
    """The database could not be opened, was locked too long or failed."""


class DuplicateKeyError(StoreError):
    """A ``UNIQUE`` constraint rejected the write."""

    def __init__(self, field: str, message: str = "") -> None:
        super().__init__(message or f"duplicate value for {field}")
        self.field = field


class ConstraintViolationError(StoreError):
    """A ``NOT NULL`` or ``CHECK`` constraint rejected the write."""

    def __init__(self, field: str, message: str = "") -> None:
        super().__init__(message or f"constraint failed for {field}")
        self.field = field


MIGRATIONS: List[tuple[int, str]] = [
    # Migration 1: Initial schema
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS books (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            author TEXT NOT NULL,
            isbn TEXT NOT NULL UNIQUE,
            publication_date TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            CONSTRAINT title_required CHECK (length(trim(title)) > 0),
            CONSTRAINT author_required CHECK (length(trim(author)) > 0),
            CONSTRAINT isbn_required CHECK (length(trim(isbn)) > 0),
            CONSTRAINT publication_date_required CHECK (date(publication_date) IS NOT NULL)
        );
        """,
    ),
    # Migration 2: listing is always ordered by creation time
    (
        2,
        """
        CREATE INDEX IF NOT EXISTS idx_books_created_at ON books(created_at);
        """,
    ),
]

BOOK_COLUMNS = "id, title, author, isbn, publication_date, created_at, updated_at"

# "UNIQUE constraint failed: books.isbn", "NOT NULL constraint failed: books.title",
# "CHECK constraint failed: title_required"
_CONSTRAINT_RE = re.compile(r"^(UNIQUE|NOT NULL|CHECK) constraint failed: (.+)$")


def resolve_database_path(database_url: str) -> str:
    """Compute the path to the SQLite database file.

    If ``database_url`` is an absolute path, use it directly.
    Otherwise resolve it relative to the package root.
    """
    if os.path.isabs(database_url):
        return database_url
    base_dir = Path(__file__).resolve().parent.parent.parent  # library_catalog_api/
    return str((base_dir / database_url).resolve())


def utcnow_iso() -> str:
    """Current UTC time as an ISO-8601 string with microseconds."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _translate_integrity_error(exc: sqlite3.IntegrityError) -> StoreError:
    match = _CONSTRAINT_RE.match(str(exc))
    if not match:
        return ConstraintViolationError("unknown", str(exc))
    kind, target = match.groups()
    # "books.isbn" -> "isbn", "title_required" -> "title"
    field = target.split(",")[0].strip().split(".")[-1]
    if kind == "UNIQUE":
        return DuplicateKeyError(field, str(exc))
    if field.endswith("_required"):
        field = field[: -len("_required")]
    return ConstraintViolationError(field, str(exc))


class BookStore:
    """Persistent collection of book records backed by SQLite."""

    def __init__(self, database_path: str, timeout: float = 5.0) -> None:
        self.database_path = database_path
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "BookStore":
        return cls(resolve_database_path(settings.database_url), timeout=settings.store_timeout)

    def get_connection(self) -> sqlite3.Connection:
        """Create and return a new SQLite connection.

        Rows are returned as dict-like objects keyed by column name.
        ``timeout`` bounds how long a write waits for a lock held by
        another connection.
        """
        conn = sqlite3.connect(self.database_path, timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def get_cursor(self) -> Iterator[sqlite3.Cursor]:
        """Yield a cursor, commit on success and always close the connection.

        ``sqlite3`` errors are re-raised as :class:`StoreError`
        subclasses.
        """
        try:
            conn = self.get_connection()
        except sqlite3.Error as exc:
            raise StoreUnavailableError(str(exc)) from exc
        try:
            yield conn.cursor()
            conn.commit()
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            raise _translate_integrity_error(exc) from exc
        except sqlite3.Error as exc:
            raise StoreUnavailableError(str(exc)) from exc
        finally:
            conn.close()

    def init_db(self) -> None:
        """Initialise the database and apply pending migrations.

        Creates the ``migrations`` table if it does not exist, checks the
        current schema version, and applies any new migrations defined in
        ``MIGRATIONS``.  If you add a new migration, append it with an
        incremented version number.
        """
        with self.get_cursor() as cursor:
            cursor.execute(
                "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
            )
            cursor.execute("SELECT MAX(version) as version FROM migrations")
            row = cursor.fetchone()
            current_version = row["version"] if row and row["version"] is not None else 0

            for version, sql in MIGRATIONS:
                if version > current_version:
                    cursor.executescript(sql)
                    cursor.execute(
                        "INSERT INTO migrations (version) VALUES (?)", (version,)
                    )
                    logger.info("Applied migration %s to %s", version, self.database_path)
                    current_version = version

    def list_books(self) -> List[Dict[str, Any]]:
        """Return all books, most recently created first."""
        with self.get_cursor() as cursor:
            rows = cursor.execute(
                f"SELECT {BOOK_COLUMNS} FROM books ORDER BY created_at DESC, rowid DESC"
            ).fetchall()
            return [dict(row) for row in rows]

    def get_book(self, book_id: str) -> Optional[Dict[str, Any]]:
        with self.get_cursor() as cursor:
            row = cursor.execute(
                f"SELECT {BOOK_COLUMNS} FROM books WHERE id = ?", (book_id,)
            ).fetchone()
            return dict(row) if row else None

    def find_by_isbn(self, isbn: str) -> Optional[Dict[str, Any]]:
        with self.get_cursor() as cursor:
            row = cursor.execute(
                f"SELECT {BOOK_COLUMNS} FROM books WHERE isbn = ?", (isbn,)
            ).fetchone()
            return dict(row) if row else None

    def count_books(self) -> int:
        with self.get_cursor() as cursor:
            row = cursor.execute("SELECT COUNT(*) AS total FROM books").fetchone()
            return row["total"]

    def insert_book(
        self, *, title: str, author: str, isbn: str, publication_date: str
    ) -> Dict[str, Any]:
        """Insert a new book and return the stored record.

        The identifier and both timestamps are assigned here.  Raises
        :class:`DuplicateKeyError` when the ISBN is already taken.
        """
        now = utcnow_iso()
        record = {
            "id": uuid.uuid4().hex,
            "title": title,
            "author": author,
            "isbn": isbn,
            "publication_date": publication_date,
            "created_at": now,
            "updated_at": now,
        }
        with self.get_cursor() as cursor:
            cursor.execute(
                f"""
                INSERT INTO books ({BOOK_COLUMNS})
                VALUES (:id, :title, :author, :isbn, :publication_date, :created_at, :updated_at)
                """,
                record,
            )
        return record

    def update_book(
        self,
        book_id: str,
        *,
        title: str,
        author: str,
        isbn: str,
        publication_date: str,
    ) -> Optional[Dict[str, Any]]:
        """Replace the editable fields of a book and refresh ``updated_at``.

        Returns the stored record, or ``None`` if no book has this id.
        """
        with self.get_cursor() as cursor:
            cursor.execute(
                """
                UPDATE books
                SET title = ?, author = ?, isbn = ?, publication_date = ?, updated_at = ?
                WHERE id = ?
                """,
                (title, author, isbn, publication_date, utcnow_iso(), book_id),
            )
            if cursor.rowcount == 0:
                return None
            row = cursor.execute(
                f"SELECT {BOOK_COLUMNS} FROM books WHERE id = ?", (book_id,)
            ).fetchone()
            return dict(row)

    def delete_book(self, book_id: str) -> bool:
        """Delete a book by id.  Returns ``True`` if a record was removed."""
        with self.get_cursor() as cursor:
            cursor.execute("DELETE FROM books WHERE id = ?", (book_id,))
            return cursor.rowcount > 0
