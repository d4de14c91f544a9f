"""matprice configuration management.

Loads configuration from environment variables with sensible defaults.
Defaults follow the Swiss price lists the importer was built for (CHF).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass
class DBConfig:
    """Database connection configuration."""

    url: str
    pool_size: int = 10
    pool_max_overflow: int = 20
    pool_timeout: int = 30
    echo: bool = False  # SQL logging


@dataclass
class ImportConfig:
    """Bulk price import defaults."""

    default_currency: str = "CHF"
    default_source_name: str = "Copacel"
    max_reported_errors: int = 10
    created_by: str = "system"


@dataclass
class AppConfig:
    """Root application configuration.

    Loads from environment variables with fail-fast on missing required values.
    """

    db: DBConfig
    log_level: str = "INFO"
    log_format: str = "text"  # json or text

    imports: ImportConfig = field(default_factory=ImportConfig)

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables.

        Required environment variables:
        - DATABASE_URL: SQLAlchemy async connection string

        Optional (with defaults):
        - LOG_LEVEL, LOG_FORMAT
        - DEFAULT_CURRENCY, DEFAULT_PRICE_SOURCE, MAX_REPORTED_ERRORS,
          IMPORT_CREATED_BY

        Raises:
            KeyError: If required environment variables are missing
        """
        database_url = os.environ.get("DATABASE_URL")
        if not database_url:
            raise KeyError(
                "DATABASE_URL environment variable is required. "
                "Example: sqlite+aiosqlite:///./matprice.db"
            )

        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
            db=DBConfig(
                url=database_url,
                pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
                pool_max_overflow=int(os.getenv("DB_POOL_MAX_OVERFLOW", "20")),
                pool_timeout=int(os.getenv("DB_POOL_TIMEOUT", "30")),
                echo=os.getenv("DB_ECHO", "false").lower() == "true",
            ),
            imports=ImportConfig(
                default_currency=os.getenv("DEFAULT_CURRENCY", "CHF").upper(),
                default_source_name=os.getenv("DEFAULT_PRICE_SOURCE", "Copacel"),
                max_reported_errors=int(os.getenv("MAX_REPORTED_ERRORS", "10")),
                created_by=os.getenv("IMPORT_CREATED_BY", "system"),
            ),
        )


# Singleton instance (lazy-loaded)
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create singleton AppConfig instance from environment.

    Returns:
        AppConfig: Application configuration

    Raises:
        KeyError: If required environment variables are missing
    """
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config
