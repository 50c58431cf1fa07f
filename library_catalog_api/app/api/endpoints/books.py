"""
Book endpoints.

These routes expose the catalog CRUD API.  Handlers are thin: each
one calls the matching ``BookService`` operation and serializes the
returned envelope, using the envelope's error kind to choose the HTTP
status code.  The body is returned unchanged, so clients always
receive ``{success, data?, count?, message?}``.
"""

from typing import Dict

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse

from library_catalog_api.app.api.deps import get_book_service
from library_catalog_api.app.schemas.book import BookInput
from library_catalog_api.app.schemas.envelope import Envelope, ErrorKind
from library_catalog_api.app.services.book_service import BookService

router = APIRouter()

STATUS_BY_ERROR: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.DUPLICATE_ISBN: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.STORE_UNAVAILABLE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def envelope_response(envelope: Envelope, success_status: int = status.HTTP_200_OK) -> JSONResponse:
    """Serialize an envelope with the status code matching its outcome."""
    if envelope.success:
        status_code = success_status
    else:
        status_code = STATUS_BY_ERROR.get(envelope.error, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(status_code=status_code, content=envelope.to_body())


@router.get("", response_model=Envelope)
async def list_books(service: BookService = Depends(get_book_service)) -> JSONResponse:
    """Return every book, most recently added first, with a ``count``."""
    return envelope_response(await service.list_books())


@router.get("/{book_id}", response_model=Envelope)
async def get_book(book_id: str, service: BookService = Depends(get_book_service)) -> JSONResponse:
    """Retrieve a single book by its ID.  Returns 404 if absent."""
    return envelope_response(await service.get_book(book_id))


@router.post("", response_model=Envelope, status_code=status.HTTP_201_CREATED)
async def create_book(
    book_in: BookInput = Body(...),
    service: BookService = Depends(get_book_service),
) -> JSONResponse:
    """Add a new book.

    Required fields: ``title``, ``author``, ``isbn`` and
    ``publicationDate``.  Missing fields and duplicate ISBNs are
    reported with HTTP 400.
    """
    return envelope_response(await service.create_book(book_in), status.HTTP_201_CREATED)


@router.put("/{book_id}", response_model=Envelope)
async def update_book(
    book_id: str,
    book_in: BookInput = Body(...),
    service: BookService = Depends(get_book_service),
) -> JSONResponse:
    """Replace an existing book's fields."""
    return envelope_response(await service.update_book(book_id, book_in))


@router.delete("/{book_id}", response_model=Envelope)
async def delete_book(book_id: str, service: BookService = Depends(get_book_service)) -> JSONResponse:
    """Delete a book.  Returns 404 if it does not exist."""
    return envelope_response(await service.delete_book(book_id))
