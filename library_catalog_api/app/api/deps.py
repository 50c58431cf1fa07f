"""FastAPI dependencies shared by the endpoint modules."""

from fastapi import Request

from library_catalog_api.app.services.book_service import BookService


def get_book_service(request: Request) -> BookService:
    """Return the ``BookService`` created by ``create_app``.

    The service lives on ``app.state`` so each application instance
    owns its store.
    """
    return request.app.state.book_service
