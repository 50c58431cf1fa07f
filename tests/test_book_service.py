"""Unit tests for the book service: validation, ISBN uniqueness and error taxonomy."""

from datetime import date, datetime

import pytest

from library_catalog_api.app.core import db
from library_catalog_api.app.core.db import DuplicateKeyError, StoreUnavailableError
from library_catalog_api.app.schemas.book import BookInput
from library_catalog_api.app.schemas.envelope import ErrorKind
from library_catalog_api.app.services.book_service import (
    DUPLICATE_ISBN_MESSAGE,
    INVALID_DATE_MESSAGE,
    BookService,
    is_well_formed_id,
    parse_publication_date,
)


UNKNOWN_ID = "f" * 32
LATER = "2999-01-01T00:00:00.000000+00:00"


@pytest.mark.asyncio
class TestCreate:
    """Test creating books."""

    async def test_create_returns_persisted_fields(self, service, dune):
        """A valid book is stored and returned with the input fields."""
        result = await service.create_book(dune)

        assert result.success
        assert result.message == "Book added successfully"
        book = result.data
        assert book.title == "Dune"
        assert book.author == "Herbert"
        assert book.isbn == "978-0-441-17271-9"
        assert book.publication_date == date(1965, 8, 1)
        assert book.created_at == book.updated_at

        fetched = await service.get_book(book.id)
        assert fetched.success
        assert fetched.data == book

    async def test_create_duplicate_isbn(self, service, store, dune):
        """A second book with the same ISBN is rejected and nothing is written."""
        await service.create_book(dune)

        result = await service.create_book(
            BookInput(title="Other", author="Someone", isbn=dune.isbn, publicationDate="2001-01-01")
        )

        assert not result.success
        assert result.error is ErrorKind.DUPLICATE_ISBN
        assert "ISBN" in result.message
        assert store.count_books() == 1

    async def test_create_duplicate_isbn_ignores_surrounding_whitespace(self, service, dune):
        """ISBNs are trimmed before the uniqueness check."""
        await service.create_book(dune)
        padded = dune.model_copy(update={"isbn": f"  {dune.isbn}  "})

        result = await service.create_book(padded)

        assert result.error is ErrorKind.DUPLICATE_ISBN

    @pytest.mark.parametrize(
        "field, message",
        [
            ("title", "Book title is required"),
            ("author", "Author name is required"),
            ("isbn", "ISBN number is required"),
            ("publication_date", "Publication date is required"),
        ],
    )
    async def test_create_missing_field(self, service, store, dune, field, message):
        """Each missing field is named in the validation message."""
        result = await service.create_book(dune.model_copy(update={field: None}))

        assert result.error is ErrorKind.VALIDATION
        assert result.message == message
        assert store.count_books() == 0

    async def test_create_lists_every_missing_field(self, service):
        """All missing fields are reported at once."""
        result = await service.create_book(BookInput(title="Dune", author="  "))

        assert result.error is ErrorKind.VALIDATION
        assert result.message == (
            "Author name is required, ISBN number is required, Publication date is required"
        )

    async def test_create_invalid_date(self, service, store, dune):
        """An unparseable publication date is a validation error."""
        result = await service.create_book(dune.model_copy(update={"publication_date": "next spring"}))

        assert result.error is ErrorKind.VALIDATION
        assert result.message == INVALID_DATE_MESSAGE
        assert store.count_books() == 0

    async def test_create_trims_text_fields(self, service):
        """Surrounding whitespace is stripped before saving."""
        result = await service.create_book(
            BookInput(title="  Dune ", author=" Herbert", isbn=" 123 ", publicationDate=" 1965-08-01 ")
        )

        assert result.success
        assert (result.data.title, result.data.author, result.data.isbn) == ("Dune", "Herbert", "123")

    async def test_create_store_level_duplicate(self, service, store, dune, monkeypatch):
        """Losing the race between lookup and insert still yields DuplicateIsbn."""
        await service.create_book(dune)
        monkeypatch.setattr(store, "find_by_isbn", lambda isbn: None)

        result = await service.create_book(dune)

        assert result.error is ErrorKind.DUPLICATE_ISBN
        assert result.message == DUPLICATE_ISBN_MESSAGE
        assert store.count_books() == 1

    async def test_create_store_unavailable(self, unavailable_store, dune):
        """Connectivity failures are reported with a generic message."""
        result = await BookService(unavailable_store).create_book(dune)

        assert result.error is ErrorKind.STORE_UNAVAILABLE
        assert result.message == "Failed to add book. Please try again later."

    async def test_create_unexpected_unique_violation(self, service, store, dune, monkeypatch):
        """A unique violation on anything other than ISBN is an internal failure."""

        def collide(**values):
            raise DuplicateKeyError("id")

        monkeypatch.setattr(store, "insert_book", collide)

        result = await service.create_book(dune)

        assert result.error is ErrorKind.STORE_UNAVAILABLE


@pytest.mark.asyncio
class TestGet:
    """Test retrieving single books."""

    async def test_get_unknown_id(self, service):
        result = await service.get_book(UNKNOWN_ID)

        assert result.error is ErrorKind.NOT_FOUND
        assert result.message == "Book not found"

    @pytest.mark.parametrize("book_id", ["", "123", "not-an-id", "G" * 32, "' OR 1=1 --"])
    async def test_get_malformed_id_is_not_found(self, service, book_id):
        """Malformed ids are classified exactly like unknown ones."""
        result = await service.get_book(book_id)

        assert result.error is ErrorKind.NOT_FOUND

    async def test_get_store_unavailable(self, unavailable_store):
        result = await BookService(unavailable_store).get_book(UNKNOWN_ID)

        assert result.error is ErrorKind.STORE_UNAVAILABLE
        assert result.message == "Failed to retrieve book. Please try again later."


@pytest.mark.asyncio
class TestUpdate:
    """Test updating books."""

    async def test_update_replaces_fields(self, service, dune, monkeypatch):
        """Editable fields are replaced; id and creation time are kept."""
        created = (await service.create_book(dune)).data
        monkeypatch.setattr(db, "utcnow_iso", lambda: LATER)

        result = await service.update_book(
            created.id,
            BookInput(title="Dune Messiah", author="Frank Herbert", isbn="978-0-593-09823-5",
                      publicationDate="1969-10-15"),
        )

        assert result.success
        assert result.message == "Book updated successfully"
        updated = result.data
        assert updated.id == created.id
        assert updated.title == "Dune Messiah"
        assert updated.isbn == "978-0-593-09823-5"
        assert updated.publication_date == date(1969, 10, 15)
        assert updated.created_at == created.created_at
        assert updated.updated_at > created.updated_at
        assert updated.updated_at == datetime.fromisoformat(LATER)

    async def test_update_keeping_same_isbn(self, service, dune):
        """Re-saving a book with its own ISBN is not a duplicate."""
        created = (await service.create_book(dune)).data

        result = await service.update_book(created.id, dune.model_copy(update={"title": "Dune (1st ed.)"}))

        assert result.success
        assert result.data.title == "Dune (1st ed.)"

    @pytest.mark.parametrize(
        "payload",
        [
            BookInput(title="Dune", author="Herbert", isbn="1", publicationDate="1965-08-01"),
            BookInput(),
            BookInput(title="Dune", publicationDate="garbage"),
        ],
    )
    async def test_update_unknown_id_for_any_input(self, service, payload):
        """An unknown id is NotFound whatever the body contains."""
        result = await service.update_book(UNKNOWN_ID, payload)

        assert result.error is ErrorKind.NOT_FOUND

    async def test_update_malformed_id(self, service, dune):
        result = await service.update_book("not-an-id", dune)

        assert result.error is ErrorKind.NOT_FOUND

    async def test_update_to_isbn_of_another_book(self, service, dune, neuromancer):
        """Taking another book's ISBN fails and leaves the book untouched."""
        first = (await service.create_book(dune)).data
        second = (await service.create_book(neuromancer)).data

        result = await service.update_book(second.id, dune.model_copy(update={"title": "Copy"}))

        assert result.error is ErrorKind.DUPLICATE_ISBN
        assert (await service.get_book(second.id)).data == second
        assert (await service.get_book(first.id)).data == first

    async def test_update_validation_error(self, service, dune):
        """Existing books still require every field."""
        created = (await service.create_book(dune)).data

        result = await service.update_book(created.id, dune.model_copy(update={"author": ""}))

        assert result.error is ErrorKind.VALIDATION
        assert result.message == "Author name is required"
        assert (await service.get_book(created.id)).data == created

    async def test_update_book_deleted_concurrently(self, service, store, dune, monkeypatch):
        """A book removed between lookup and write is reported as NotFound."""
        created = (await service.create_book(dune)).data
        monkeypatch.setattr(store, "update_book", lambda book_id, **values: None)

        result = await service.update_book(created.id, dune)

        assert result.error is ErrorKind.NOT_FOUND

    async def test_update_store_unavailable(self, unavailable_store, dune):
        result = await BookService(unavailable_store).update_book(UNKNOWN_ID, dune)

        assert result.error is ErrorKind.STORE_UNAVAILABLE
        assert result.message == "Failed to update book. Please try again later."


@pytest.mark.asyncio
class TestDelete:
    """Test deleting books."""

    async def test_delete_then_get(self, service, dune):
        """Deleted books are gone and a second delete is NotFound."""
        created = (await service.create_book(dune)).data

        result = await service.delete_book(created.id)
        assert result.success
        assert result.message == "Book deleted successfully"
        assert result.data is None

        assert (await service.get_book(created.id)).error is ErrorKind.NOT_FOUND
        assert (await service.delete_book(created.id)).error is ErrorKind.NOT_FOUND

    async def test_delete_store_unavailable(self, unavailable_store):
        result = await BookService(unavailable_store).delete_book(UNKNOWN_ID)

        assert result.error is ErrorKind.STORE_UNAVAILABLE
        assert result.message == "Failed to delete book. Please try again later."


@pytest.mark.asyncio
class TestList:
    """Test listing books."""

    async def test_list_empty(self, service):
        result = await service.list_books()

        assert result.success
        assert result.data == []
        assert result.count == 0

    async def test_list_newest_first(self, service, dune, neuromancer):
        """Books created A then B are listed as [B, A]."""
        a = (await service.create_book(dune)).data
        b = (await service.create_book(neuromancer)).data

        result = await service.list_books()

        assert result.count == 2
        assert [book.id for book in result.data] == [b.id, a.id]

    async def test_list_store_unavailable(self, service, store, monkeypatch):
        def boom():
            raise StoreUnavailableError("database is locked")

        monkeypatch.setattr(store, "list_books", boom)

        result = await service.list_books()

        assert result.error is ErrorKind.STORE_UNAVAILABLE
        assert result.message == "Failed to retrieve books. Please try again later."


class TestHelpers:
    """Test id and date parsing helpers."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("1965-08-01", date(1965, 8, 1)),
            ("1965-08-01T00:00:00", date(1965, 8, 1)),
            ("1965-08-01T00:00:00.000Z", date(1965, 8, 1)),
            ("1965-02-30", None),
            ("yesterday", None),
        ],
    )
    def test_parse_publication_date(self, value, expected):
        assert parse_publication_date(value) == expected

    def test_is_well_formed_id(self):
        assert is_well_formed_id("0123456789abcdef0123456789abcdef")
        assert not is_well_formed_id("0123456789ABCDEF0123456789ABCDEF")
        assert not is_well_formed_id("abc")
