"""
Configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  A ``.env`` file in the working directory is
loaded first (if present) so local development does not need exported
variables.  Defaults are provided for all fields; no variable is
required to start the service, and a variable that is set but empty
counts as unset.
"""

import os
from dataclasses import dataclass
from urllib.parse import quote

from dotenv import load_dotenv

load_dotenv()


def _env(name: str, default: str) -> str:
    """Value of ``name``, or ``default`` when it is unset or empty."""
    return os.getenv(name) or default


def _env_bool(name: str, default: str) -> bool:
    return _env(name, default).lower() in {"1", "true", "yes"}


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = _env("PROJECT_NAME", "Subscription Service")
    api_version: str = _env("API_VERSION", "1.0.0")
    log_level: str = _env("LOG_LEVEL", "info")
    # Optional path of a log file in addition to the console.
    log_file: str = _env("LOG_FILE", "")

    server_host: str = _env("SERVER_HOST", "0.0.0.0")
    server_port: int = int(_env("SERVER_PORT", "8080"))

    db_host: str = _env("DB_HOST", "localhost")
    db_port: int = int(_env("DB_PORT", "5432"))
    db_user: str = _env("DB_USER", "postgres")
    db_password: str = _env("DB_PASSWORD", "postgres")
    db_name: str = _env("DB_NAME", "subscriptions")
    db_ssl_mode: str = _env("DB_SSL_MODE", "disable")
    db_pool_min_size: int = int(_env("DB_POOL_MIN_SIZE", "1"))
    db_pool_max_size: int = int(_env("DB_POOL_MAX_SIZE", "10"))

    # Upper bound, in seconds, for reaching the database at startup.  The
    # process refuses to serve if the probe does not succeed in time.
    db_connect_timeout: float = float(_env("DB_CONNECT_TIMEOUT", "5"))

    # Create the subscriptions table on startup when it is missing.
    db_init_schema: bool = _env_bool("DB_INIT_SCHEMA", "true")

    # Ceiling for processing a single request, in seconds.
    request_timeout: float = float(_env("REQUEST_TIMEOUT", "60"))

    # Grace period granted to in-flight requests on shutdown, in seconds.
    shutdown_timeout: int = int(_env("SHUTDOWN_TIMEOUT", "10"))

    # Directory with the static API description (swagger.yaml) and the
    # documentation pages.  Relative paths are resolved against the
    # project root.
    docs_dir: str = _env("DOCS_DIR", "docs")

    @property
    def dsn(self) -> str:
        """PostgreSQL connection URL assembled from the ``DB_*`` settings."""
        return "postgresql://{user}:{password}@{host}:{port}/{name}?sslmode={ssl}".format(
            user=quote(self.db_user, safe=""),
            password=quote(self.db_password, safe=""),
            host=self.db_host,
            port=self.db_port,
            name=quote(self.db_name, safe=""),
            ssl=self.db_ssl_mode,
        )


# Instantiate settings once so the launcher can import it without
# repeatedly reading environment variables.  Because the dataclass
# computes values at import time, environment variables should be set
# before importing this module.
settings = Settings()
