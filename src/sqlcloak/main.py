"""
Main FastAPI application for sqlcloak.

This module sets up the FastAPI application with logging, tracing and
error handling middleware, and exposes the encrypt/decrypt/check
operations over HTTP.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Dict, Optional, Union

from fastapi import FastAPI

from .utils.logging import configure_logging, get_module_logger
from .utils.tracing import get_trace_id
from .domain.errors import SQLCloakException
from .domain.encryption_map import VerificationResult
from .domain.requests import CheckRequest, SelectSchemaRequest, TextRequest
from .domain.responses import (
    CheckResponse,
    HealthResponse,
    SchemaListResponse,
    SchemaSelectionResponse,
    TextResponse,
)
from .api.middleware import (
    trace_id_middleware,
    logging_middleware,
    register_exception_handlers,
    ERROR_RESPONSES,
)
from .api.dependencies import EncryptionServiceDep, OptionalMappingClientDep, SettingsDep
from .config import Settings, get_settings
from .infrastructure.mapping_client import MappingClient
from .infrastructure.selection_store import SelectionStore
from .services.encryption_service import EncryptionService


VERSION = "0.1.0"

# Configure logging on module import
configure_logging()
logger = get_module_logger()


def _responses(*status_codes: int) -> Dict:
    return {code: ERROR_RESPONSES[code] for code in status_codes}


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use instead of the environment (tests)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events."""
        logger.info("Starting sqlcloak API server", version=VERSION)

        app_settings = settings or get_settings()
        app.state.settings = app_settings
        logger.info("Settings loaded successfully")

        mapping_client = MappingClient(app_settings.mapping_store)
        await mapping_client.connect()

        encryption_service = EncryptionService(mapping_client, SelectionStore(app_settings.selection))
        try:
            schemas = await encryption_service.load_schemas()
            logger.info("Encryption catalog loaded", schema_count=len(schemas))
        except SQLCloakException as e:
            logger.error(
                f"Failed to load encryption catalog: {e.message}",
                error_code=e.error_code,
                catalog_source=app_settings.mapping_store.catalog_source,
            )
            # Continue without a catalog - requests fail until it loads

        app.state.mapping_client = mapping_client
        app.state.encryption_service = encryption_service

        yield

        logger.info("Shutting down sqlcloak API server")
        await mapping_client.close()

    app = FastAPI(
        title="sqlcloak API",
        description="Table and column name obfuscation for SQL-like text",
        version=VERSION,
        lifespan=lifespan,
    )

    # Last registered = first executed
    app.middleware("http")(logging_middleware)
    app.middleware("http")(trace_id_middleware)

    register_exception_handlers(app)

    @app.get("/", tags=["Root"])
    async def root(settings: SettingsDep) -> Dict[str, Union[str, None]]:
        """Basic API information."""
        trace_id = get_trace_id()
        logger.info("Root endpoint accessed", trace_id=trace_id)

        return {
            "message": "sqlcloak API",
            "version": VERSION,
            "trace_id": trace_id,
            "log_level": settings.app.log_level,
        }

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health(
        encryption_service: EncryptionServiceDep,
        mapping_client: OptionalMappingClientDep,
    ) -> HealthResponse:
        """
        Health check endpoint.

        **Response Model**: `HealthResponse`
        - status: healthy, or degraded when the catalog is not loaded or its source is unreachable
        """
        trace_id = get_trace_id()
        logger.info("Health check endpoint accessed", trace_id=trace_id)

        mapping_source_status = "not_configured"
        if mapping_client:
            source_health = await mapping_client.health_check()
            mapping_source_status = source_health.get("status", "unknown")

        catalog_status = "loaded" if encryption_service.is_catalog_loaded() else "unavailable"
        selected = encryption_service.selected_schema

        overall_status = (
            "healthy" if mapping_source_status == "healthy" and catalog_status == "loaded" else "degraded"
        )

        return HealthResponse(
            status=overall_status,
            timestamp=datetime.now(timezone.utc),
            version=VERSION,
            mapping_source_status=mapping_source_status,
            catalog_status=catalog_status,
            selected_schema=selected.name if selected else None,
        )

    @app.get("/schemas", response_model=SchemaListResponse, tags=["Schemas"], responses=_responses(422, 503))
    async def list_schemas(encryption_service: EncryptionServiceDep) -> SchemaListResponse:
        """
        List the encryption schemas of the catalog.

        Loads the catalog if startup could not.
        """
        trace_id = get_trace_id()
        schemas = await encryption_service.load_schemas()
        selected = encryption_service.selected_schema

        logger.info("Schemas listed", schema_count=len(schemas), trace_id=trace_id)

        return SchemaListResponse(
            trace_id=trace_id,
            schemas=schemas,
            selected_schema=selected.name if selected else None,
        )

    @app.post(
        "/schemas/select",
        response_model=SchemaSelectionResponse,
        tags=["Schemas"],
        responses=_responses(404, 422, 503),
    )
    async def select_schema(
        request: SelectSchemaRequest,
        encryption_service: EncryptionServiceDep,
    ) -> SchemaSelectionResponse:
        """
        Select the schema used when requests omit schema_name.

        The selection is persisted and restored on the next start.
        """
        trace_id = get_trace_id()
        encryption_map = await encryption_service.select_schema(request.schema_name)

        return SchemaSelectionResponse(
            trace_id=trace_id,
            schema_name=request.schema_name,
            table_count=encryption_map.table_count,
            column_count=encryption_map.column_count,
        )

    @app.post("/encrypt", response_model=TextResponse, tags=["Rewriting"], responses=_responses(404, 409, 422, 503))
    async def encrypt(request: TextRequest, encryption_service: EncryptionServiceDep) -> TextResponse:
        """
        Encrypt table and column names.

        Bare column names shared by several referenced tables are left as-is;
        qualify them (alias.column) to have them encrypted.
        """
        trace_id = get_trace_id()
        result = await encryption_service.encrypt(request.text, request.schema_name)
        return TextResponse(trace_id=trace_id, result=result, schema_name=_schema_name(request, encryption_service))

    @app.post("/decrypt", response_model=TextResponse, tags=["Rewriting"], responses=_responses(404, 409, 422, 503))
    async def decrypt(request: TextRequest, encryption_service: EncryptionServiceDep) -> TextResponse:
        """
        Annotate encrypted column names with their original names.

        Each encrypted column name becomes "<original>_<encrypted>"; table
        names stay encrypted.
        """
        trace_id = get_trace_id()
        result = await encryption_service.decrypt(request.text, request.schema_name)
        return TextResponse(trace_id=trace_id, result=result, schema_name=_schema_name(request, encryption_service))

    @app.post("/check", response_model=CheckResponse, tags=["Rewriting"], responses=_responses(404, 409, 422, 503))
    async def check(request: CheckRequest, encryption_service: EncryptionServiceDep) -> CheckResponse:
        """Report whether any original table or column name remains in the text."""
        trace_id = get_trace_id()
        outcome = await encryption_service.check(
            request.text,
            request.schema_name,
            include_unencrypted_words=request.include_unencrypted_words,
        )

        if isinstance(outcome, VerificationResult):
            return CheckResponse(trace_id=trace_id, ok=outcome.ok, unencrypted_words=outcome.offending_names)
        return CheckResponse(trace_id=trace_id, ok=outcome)

    return app


def _schema_name(request: TextRequest, encryption_service: EncryptionService) -> Optional[str]:
    if request.schema_name:
        return request.schema_name
    selected = encryption_service.selected_schema
    return selected.name if selected else None


app = create_app()
