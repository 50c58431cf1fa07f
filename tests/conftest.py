"""Shared fixtures: a fresh SQLite file per test, the service and an API client."""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from library_catalog_api.app.core.config import Settings
from library_catalog_api.app.core.db import BookStore
from library_catalog_api.app.main import create_app
from library_catalog_api.app.schemas.book import BookInput
from library_catalog_api.app.services.book_service import BookService


@pytest.fixture
def store(tmp_path) -> BookStore:
    book_store = BookStore(str(tmp_path / "catalog.db"), timeout=1)
    book_store.init_db()
    return book_store


@pytest.fixture
def unavailable_store(tmp_path) -> BookStore:
    # The parent directory does not exist, so every connection fails.
    return BookStore(str(tmp_path / "missing" / "catalog.db"), timeout=1)


@pytest.fixture
def service(store: BookStore) -> BookService:
    return BookService(store)


@pytest.fixture
def dune_payload() -> dict[str, Any]:
    return {
        "title": "Dune",
        "author": "Herbert",
        "isbn": "978-0-441-17271-9",
        "publicationDate": "1965-08-01",
    }


@pytest.fixture
def neuromancer_payload() -> dict[str, Any]:
    return {
        "title": "Neuromancer",
        "author": "William Gibson",
        "isbn": "978-0-441-56956-9",
        "publicationDate": "1984-07-01",
    }


@pytest.fixture
def dune(dune_payload: dict[str, Any]) -> BookInput:
    return BookInput(**dune_payload)


@pytest.fixture
def neuromancer(neuromancer_payload: dict[str, Any]) -> BookInput:
    return BookInput(**neuromancer_payload)


@pytest.fixture
def app_settings(tmp_path) -> Settings:
    return Settings(database_url=str(tmp_path / "api.db"), store_timeout=1)


@pytest.fixture
def api_client(app_settings: Settings) -> Generator[TestClient, None, None]:
    app = create_app(app_settings)
    with TestClient(app) as client:
        yield client
