"""Library catalog API client.

This module defines a small client wrapper around the catalog's REST
API.  It uses the ``requests`` library internally and exposes one
method per book operation:

* :meth:`LibraryCatalogClient.list_books` – return all books, newest first.
* :meth:`LibraryCatalogClient.get_book` – fetch a single book by its identifier.
* :meth:`LibraryCatalogClient.add_book` – create a book.
* :meth:`LibraryCatalogClient.update_book` – replace a book's fields.
* :meth:`LibraryCatalogClient.delete_book` – delete a book.

Every method returns a tuple ``(result, error)``.  On success ``error``
is ``None``; on failure ``result`` is empty and ``error`` is a
dictionary with keys ``status_code`` and ``message``.  The message is
taken from the server's response envelope when there is one, so the
caller can show it to the user as is.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import requests
from requests.utils import quote


logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000/api"

ApiError = Dict[str, Any]


@dataclass
class ApiEndpoint:
    """A REST endpoint of the catalog API.

    Attributes:
        path: The URI template relative to the base URL, e.g. ``/books/{id}``.
        method: The HTTP method in upper case (``GET``, ``POST``, etc.).
    """

    path: str
    method: str

    def url_path(self, book_id: Any = None) -> str:
        if book_id is None:
            return self.path
        return self.path.replace("{id}", quote(str(book_id), safe=""))


class LibraryCatalogClient:
    """Client for interacting with the library catalog API."""

    ENDPOINTS: Dict[str, ApiEndpoint] = {
        "list": ApiEndpoint(path="/books", method="GET"),
        "get": ApiEndpoint(path="/books/{id}", method="GET"),
        "create": ApiEndpoint(path="/books", method="POST"),
        "update": ApiEndpoint(path="/books/{id}", method="PUT"),
        "delete": ApiEndpoint(path="/books/{id}", method="DELETE"),
    }

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 15,
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Base URL for the API including its prefix, e.g.
                ``http://localhost:5000/api``.
            session: Optional requests session.  If not supplied a
                session will be created automatically.
            timeout: Seconds to wait for the server on every request.
        """
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Low level HTTP helpers
    # ------------------------------------------------------------------
    def _request(
        self, operation: str, *, book_id: Any = None, json_body: Any | None = None
    ) -> Tuple[Optional[Dict[str, Any]], Optional[ApiError]]:
        """Perform an HTTP request to the API.

        Args:
            operation: Key of :attr:`ENDPOINTS` to call.
            book_id: Identifier substituted into the endpoint path.
            json_body: JSON body to send with the request (for POST/PUT).
        Returns:
            A tuple ``(envelope, error)``. ``envelope`` is the parsed JSON
            response on success and ``error`` is ``None``. On failure,
            ``envelope`` is ``None`` and ``error`` describes the issue.
        """
        endpoint = self.ENDPOINTS[operation]
        url = f"{self.base_url}{endpoint.url_path(book_id)}"
        try:
            logger.debug("Sending %s request to %s", endpoint.method, url)
            response = self.session.request(
                method=endpoint.method,
                url=url,
                json=json_body,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "message": str(exc)}

        body = self._parse_body(response)
        if response.status_code >= 400:
            message = body.get("message") if isinstance(body, dict) else None
            if not message:
                message = response.text or f"HTTP {response.status_code}"
            logger.error("API request failed (%s): %s", response.status_code, message)
            return None, {"status_code": response.status_code, "message": message}
        if not isinstance(body, dict):
            return None, {
                "status_code": response.status_code,
                "message": "Unexpected response from server",
            }
        return body, None

    @staticmethod
    def _parse_body(response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    # ------------------------------------------------------------------
    # Book operations
    # ------------------------------------------------------------------
    def list_books(self) -> Tuple[List[Dict[str, Any]], Optional[ApiError]]:
        """Retrieve all books, most recently added first.

        Returns:
            A tuple ``(books, error)``. ``books`` is empty on failure.
        """
        envelope, error = self._request("list")
        if error:
            return [], error
        books = envelope.get("data")
        return books if isinstance(books, list) else [], None

    def get_book(self, book_id: Any) -> Tuple[Optional[Dict[str, Any]], Optional[ApiError]]:
        """Retrieve a single book by ID."""
        envelope, error = self._request("get", book_id=book_id)
        if error:
            return None, error
        return envelope.get("data"), None

    def add_book(self, payload: Dict[str, Any]) -> Tuple[Optional[Dict[str, Any]], Optional[ApiError]]:
        """Create a book.

        Args:
            payload: ``title``, ``author``, ``isbn`` and ``publicationDate``.
        Returns:
            A tuple ``(book, error)`` where ``book`` is the created record.
        """
        envelope, error = self._request("create", json_body=payload)
        if error:
            return None, error
        return envelope.get("data"), None

    def update_book(
        self, book_id: Any, payload: Dict[str, Any]
    ) -> Tuple[Optional[Dict[str, Any]], Optional[ApiError]]:
        """Replace the fields of an existing book."""
        envelope, error = self._request("update", book_id=book_id, json_body=payload)
        if error:
            return None, error
        return envelope.get("data"), None

    def delete_book(self, book_id: Any) -> Tuple[bool, Optional[ApiError]]:
        """Delete a book.

        Returns:
            A tuple ``(success, error)``.
        """
        envelope, error = self._request("delete", book_id=book_id)
        if error:
            return False, error
        return bool(envelope.get("success")), None
