"""
Information endpoint.

``GET /`` doubles as a health check: it answers without touching the
database and lists the book endpoints under the configured prefix.
"""

from typing import Any, Dict

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/", response_model=Dict[str, Any])
async def get_info(request: Request) -> Dict[str, Any]:
    """Return the welcome message, API version and endpoint list."""
    settings = request.app.state.settings
    books_path = f"{settings.api_prefix}/books"
    return {
        "success": True,
        "message": f"Welcome to {settings.project_name}",
        "version": settings.api_version,
        "endpoints": {
            "getAllBooks": f"GET {books_path}",
            "getBookById": f"GET {books_path}/:id",
            "addBook": f"POST {books_path}",
            "updateBook": f"PUT {books_path}/:id",
            "deleteBook": f"DELETE {books_path}/:id",
        },
    }
