"""Entry point for the subscription service.

Starts the FastAPI application under Uvicorn.  Host, port, log level
and the graceful shutdown period come from the same environment
variables as the rest of the configuration (``SERVER_HOST``,
``SERVER_PORT``, ``LOG_LEVEL``, ``SHUTDOWN_TIMEOUT``); a ``.env`` file
in the working directory is honoured.

On SIGINT or SIGTERM Uvicorn stops accepting connections, gives
in-flight requests up to ``SHUTDOWN_TIMEOUT`` seconds to finish and
then closes the remaining ones.  If the database cannot be reached at
startup the application lifespan fails and the process exits without
serving.

Usage:
    python run.py
"""
import logging
import sys

from uvicorn import Config, Server

from subscription_service.app.core.config import settings
from subscription_service.app.core.logging_config import resolve_level
from subscription_service.app.main import app


def main() -> int:
    """Serve until a shutdown signal arrives; return the exit status."""
    config = Config(
        app=app,
        host=settings.server_host,
        port=settings.server_port,
        reload=False,
        log_level=resolve_level(settings.log_level),
        timeout_graceful_shutdown=settings.shutdown_timeout,
        lifespan="on",
    )
    server = Server(config)
    logging.getLogger(__name__).info("subscription service starting on %s:%s", config.host, config.port)
    server.run()
    # Uvicorn leaves ``started`` unset when the lifespan startup failed.
    return 0 if server.started else 1


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        pass
