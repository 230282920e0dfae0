"""
Configuration module for the sqlcloak application.

This module defines all configuration classes using Pydantic BaseModel and BaseSettings.
Configuration is loaded from environment variables with nested delimiter "__".

Example .env:
    MAPPING_STORE__CATALOG_SOURCE=https://config.example.com/encryption_tables.json
    SELECTION__STATE_FILE=/var/lib/sqlcloak/last_schema.json
    APP__LOG_LEVEL=DEBUG

Usage:
    from sqlcloak.config import get_settings
    settings = get_settings()
    print(settings.mapping_store.catalog_source)
"""

from functools import lru_cache

from sqlcloak.config_constants import (
    LogLevel,
    LogFormat,
    DEFAULT_CATALOG_SOURCE,
    DEFAULT_SELECTION_STATE_FILE,
)

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# MAPPING STORE CONFIGURATION
# =============================================================================

class MappingStoreConfig(BaseModel):
    """
    Location of the encryption schema catalog and fetch settings.

    The catalog is a JSON (or YAML) list of {name, url, default} entries.
    Each entry's url points at the mapping document for that schema.
    """

    # URL or local path of the schema catalog
    # Relative mapping locators inside the catalog are resolved against it
    catalog_source: str = DEFAULT_CATALOG_SOURCE

    # Maximum time (seconds) to establish an HTTP connection to the mapping source
    connect_timeout_seconds: int = 10

    # Maximum time (seconds) to read a catalog or mapping document
    # Mapping documents are small, but network latency varies
    read_timeout_seconds: int = 30

    # Maximum time (seconds) to wait for a connection from the pool
    pool_timeout_seconds: int = 5

    # Maximum total HTTP connections to the mapping source
    max_connections: int = 10

    # Maximum idle connections to keep alive
    max_keepalive_connections: int = 5


# =============================================================================
# SCHEMA SELECTION CONFIGURATION
# =============================================================================

class SelectionConfig(BaseModel):
    """
    Persistence of the last selected encryption schema.

    The stored entry is used as the default selection on the next start.
    """

    # JSON file holding the last selected catalog entry
    state_file: str = DEFAULT_SELECTION_STATE_FILE

    # If False, selections are kept in memory only
    persist: bool = True


# =============================================================================
# SERVER CONFIGURATION
# =============================================================================

class ServerConfig(BaseModel):
    """
    FastAPI/Uvicorn server configuration.

    Used by run_dev.py and run_prod.py scripts.
    """

    # Network interface to bind (0.0.0.0 = all interfaces)
    # Use 127.0.0.1 for local-only access
    host: str = "0.0.0.0"

    # Port number to listen on
    port: int = 8000

    # Python module path for FastAPI app
    # Format: "package.module:app_variable"
    app_module: str = "sqlcloak.main:app"

    # Enable hot reload on code changes (development only)
    reload: bool = True

    # Number of worker processes (production only, ignored with reload=True)
    # Each worker keeps its own mapping cache
    workers: int = 1


# =============================================================================
# APPLICATION CONFIGURATION
# =============================================================================

class AppConfig(BaseModel):
    """
    General application settings.

    Controls logging verbosity and other app-wide behavior.
    """

    # Logging level: DEBUG, INFO, WARNING, ERROR
    # DEBUG: includes per-column rewrite decisions
    # INFO: normal operation logging (production)
    log_level: LogLevel = LogLevel.INFO

    # Log output format
    # json: indented JSON documents (server default)
    # console: single colored line per event (CLI, local development)
    log_format: LogFormat = LogFormat.JSON


# =============================================================================
# ROOT SETTINGS (Environment Loading)
# =============================================================================

class Settings(BaseSettings):
    """
    Root settings class that loads all configuration from environment.

    Environment variables use "__" (double underscore) as nested delimiter.
    Example: MAPPING_STORE__CATALOG_SOURCE sets settings.mapping_store.catalog_source

    Every field has a default, so the application starts without a .env file
    and reads the catalog from ./encryption_tables.json.
    """

    # Catalog location and HTTP fetch settings
    mapping_store: MappingStoreConfig = MappingStoreConfig()

    # Last selected schema persistence
    selection: SelectionConfig = SelectionConfig()

    # FastAPI server settings
    server: ServerConfig = ServerConfig()

    # Application-wide settings
    app: AppConfig = AppConfig()

    model_config = SettingsConfigDict(
        env_file=".env",            # Load from .env file in project root
        env_file_encoding="utf-8",  # UTF-8 encoding for .env file
        case_sensitive=False,       # ENV_VAR and env_var are equivalent
        env_nested_delimiter="__",  # Use __ for nested config (APP__LOG_LEVEL)
        extra="ignore",
    )


# =============================================================================
# SINGLETON ACCESSOR
# =============================================================================

@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance (singleton pattern).

    Settings are loaded once and cached for the lifetime of the application.
    Use dependency injection in FastAPI routes:

        @app.get("/")
        def root(settings: Settings = Depends(get_settings)):
            return {"catalog": settings.mapping_store.catalog_source}

    Returns:
        Settings instance with all configuration loaded from environment
    """
    return Settings()
