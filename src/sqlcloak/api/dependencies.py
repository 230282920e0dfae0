"""
FastAPI dependencies for dependency injection.

Routes depend on the EncryptionService and Settings built during the
application lifespan; the mapping client is exposed only for health checks.
"""

from typing import Annotated

from fastapi import Depends, Request

from ..infrastructure.mapping_client import MappingClient
from ..services.encryption_service import EncryptionService
from ..config import Settings


def get_settings(request: Request) -> Settings:
    """
    Dependency to get the settings from app state.

    Usage in routes:
        @app.get("/config")
        async def get_config(settings: SettingsDep):
            return {"log_level": settings.app.log_level}

    Raises:
        RuntimeError: If settings are not initialized
    """
    if not hasattr(request.app.state, "settings"):
        raise RuntimeError("Settings not initialized")

    return request.app.state.settings


def get_mapping_client_optional(request: Request) -> MappingClient | None:
    """Get mapping client if available, None otherwise."""
    return getattr(request.app.state, "mapping_client", None)


def get_encryption_service(request: Request) -> EncryptionService:
    """
    Dependency to get the EncryptionService shared by all requests.

    The service holds the mapping cache and the selected schema, so it is
    created once in the lifespan rather than per request.

    Raises:
        RuntimeError: If the service is not initialized
    """
    if not hasattr(request.app.state, "encryption_service"):
        raise RuntimeError("Encryption service not initialized")

    return request.app.state.encryption_service


# Type aliases for cleaner route signatures
EncryptionServiceDep = Annotated[EncryptionService, Depends(get_encryption_service)]
SettingsDep = Annotated[Settings, Depends(get_settings)]

# Optional dependency for health checks (graceful degradation)
OptionalMappingClientDep = Annotated[MappingClient | None, Depends(get_mapping_client_optional)]
