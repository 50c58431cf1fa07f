"""
Main entrypoint for the Library Catalog API.

This module assembles the FastAPI application, sets up logging, builds
the book store and service, and includes the routers.  The
``create_app`` function builds and configures the app, which is then
instantiated at module import time as ``app``.  Importing the app here
makes it easy to run with uvicorn or another ASGI server, e.g.::

    uvicorn library_catalog_api.app.main:app --reload

Every error response, including those produced by FastAPI itself,
uses the ``{"success": false, "message": ...}`` body.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.endpoints import info
from .api.router import router as api_router
from .core.config import Settings, settings as default_settings
from .core.db import BookStore, StoreError
from .core.logging_config import setup_logging
from .services.book_service import BookService


logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Something went wrong on the server. Please try again later."


def describe_validation_errors(errors: List[Dict[str, Any]]) -> str:
    """Turn FastAPI validation errors into a single readable message."""
    parts = []
    for error in errors:
        loc = [str(item) for item in error.get("loc", ())]
        # Drop the "body"/"path"/"query" source unless it is all we have.
        field = ".".join(loc[1:]) or (loc[0] if loc else "request")
        parts.append(f"{field}: {error.get('msg', 'invalid value')}")
    return "Invalid request: " + "; ".join(parts)


def create_app(app_settings: Optional[Settings] = None, store: Optional[BookStore] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    app_settings : Optional[Settings]
        Settings to use.  Defaults to the module-level settings read
        from the environment.
    store : Optional[BookStore]
        Book store to inject into the service.  Defaults to a store
        built from ``app_settings``.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    app_settings = app_settings or default_settings
    # Initialise logging before anything else so that the startup
    # below can safely log messages.  ``debug`` is never handed to
    # FastAPI, which would send tracebacks to clients.
    setup_logging(app_settings.log_level, app_settings.log_file or None, debug=app_settings.debug)

    store = store or BookStore.from_settings(app_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Apply migrations at startup.  This creates the database file
        # if it does not exist and ensures the schema is up to date.
        try:
            store.init_db()
        except StoreError:
            logger.exception("Failed to initialise database at %s", store.database_path)
            raise
        logger.info("%s %s ready (database %s)", app_settings.project_name, app_settings.api_version, store.database_path)
        yield

    app = FastAPI(
        title=app_settings.project_name,
        version=app_settings.api_version,
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.book_service = BookService(store)

    # Registered before CORS so that CORS wraps it and the generic 500
    # carries the same headers as every other response.
    @app.middleware("http")
    async def catch_unhandled_errors(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error("Server error on %s %s", request.method, request.url.path, exc_info=exc)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"success": False, "message": SERVER_ERROR_MESSAGE},
            )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origin_list,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
        allow_credentials=True,
    )

    app.include_router(info.router, tags=["info"])
    app.include_router(api_router, prefix=app_settings.api_prefix)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Unknown paths and unsupported methods on known paths look the same to clients.
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content={"success": False, "message": "Route not found"},
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": str(exc.detail)},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": describe_validation_errors(exc.errors())},
        )

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
