"""Entry point for the library catalog API server.

Launches the FastAPI application with Uvicorn.  Host, port and the
rest of the configuration are read from environment variables (see
``library_catalog_api.app.core.config``).

Usage:
    python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from library_catalog_api.app.core.config import settings
from library_catalog_api.app.main import app


async def run_api() -> None:
    """Serve the API until interrupted.

    Host and port are read from the ``HOST`` and ``PORT`` environment
    variables.  Defaults are ``0.0.0.0`` and ``5000``.
    """
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)
    logging.getLogger(__name__).info("API available at http://%s:%s%s", settings.host, settings.port, settings.api_prefix)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(run_api())
    except (KeyboardInterrupt, SystemExit):
        pass
