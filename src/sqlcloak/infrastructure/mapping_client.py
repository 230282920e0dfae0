"""
Mapping source client for encryption catalogs and mapping documents.

This module provides a minimal async client that reads the schema catalog
and per-schema mapping documents, either over HTTP(S) or from local files.
"""

import asyncio
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin, urlparse

import httpx
import yaml
from pydantic import ValidationError as PydanticValidationError

from ..config import MappingStoreConfig
from ..config_constants import HTTP_SCHEMES, YAML_SUFFIXES
from ..domain.encryption_map import EncryptionMap, EncryptionSchema
from ..domain.errors import ConfigurationError, MappingFetchError, MappingValidationError
from ..utils.logging import get_module_logger
from ..utils.tracing import current_trace_id


logger = get_module_logger()


def is_http_source(source: str) -> bool:
    """Return True if source is an http:// or https:// URL."""
    return source.lower().startswith(HTTP_SCHEMES)


def is_yaml_document(source: str, content_type: str = "") -> bool:
    """Return True if source is served or named as YAML; JSON is the default."""
    if "yaml" in content_type.lower():
        return True
    path = urlparse(source).path if is_http_source(source) else source
    return path.lower().endswith(YAML_SUFFIXES)


def _validation_details(error: PydanticValidationError) -> Dict[str, Any]:
    return {
        "errors": [
            {
                "field": ".".join(str(loc) for loc in item["loc"]),
                "message": item["msg"],
                "type": item["type"],
            }
            for item in error.errors()
        ]
    }


class MappingClient:
    """
    Minimal async client for the encryption mapping source.

    Reads two kinds of documents, parsed as JSON unless the locator ends in
    .yaml/.yml or the server sends a YAML content type:
    - Catalog: list of {name, url, default} entries
    - Mapping: {tables: {...}, columns: {encrypted_table: {...}}}

    Relative mapping locators are resolved against the catalog source, so a
    catalog and its mappings can live side by side on a web server or disk.

    Caching and selection are not handled here; see EncryptionService.

    Usage:
        client = MappingClient(config)
        await client.connect()

        schemas = await client.fetch_catalog()
        encryption_map = await client.fetch_mapping(schemas[0])

        await client.close()
    """

    def __init__(self, config: MappingStoreConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize mapping client with configuration.

        Args:
            config: Mapping store configuration
            transport: Optional httpx transport (tests use httpx.MockTransport)

        Raises:
            ConfigurationError: If no catalog source is configured
        """
        if not config.catalog_source.strip():
            raise ConfigurationError(
                "Mapping catalog source is empty",
                details={"setting": "MAPPING_STORE__CATALOG_SOURCE"},
            )

        self.config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._is_connected = False

        logger.info(
            "MappingClient initialized",
            catalog_source=config.catalog_source,
            remote=is_http_source(config.catalog_source),
        )

    async def connect(self) -> None:
        """Create the HTTP client used for remote sources."""
        if self._is_connected:
            logger.warning("Mapping client already connected")
            return

        trace_id = current_trace_id()
        logger.info("Initializing mapping client", trace_id=trace_id)

        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=self.config.connect_timeout_seconds,
                read=self.config.read_timeout_seconds,
                write=self.config.read_timeout_seconds,
                pool=self.config.pool_timeout_seconds,
            ),
            limits=httpx.Limits(
                max_connections=self.config.max_connections,
                max_keepalive_connections=self.config.max_keepalive_connections,
            ),
            transport=self._transport,
            follow_redirects=True,
        )

        self._is_connected = True
        logger.info("Mapping client initialized successfully", trace_id=trace_id)

    async def close(self) -> None:
        """Close HTTP client and release resources."""
        trace_id = current_trace_id()
        logger.info("Closing mapping client", trace_id=trace_id)

        if self._client:
            await self._client.aclose()
            logger.info("Mapping client closed", trace_id=trace_id)

        self._is_connected = False
        self._client = None

    def is_connected(self) -> bool:
        """Check if mapping client is connected."""
        return self._is_connected and self._client is not None

    async def health_check(self) -> Dict[str, Any]:
        """
        Check that the catalog source is reachable.

        Returns:
            Dictionary with status and source details

        Example:
            {
                "status": "healthy",
                "connected": True,
                "catalog_source": "https://config.example.com/encryption_tables.json"
            }
        """
        trace_id = current_trace_id()
        source = self.config.catalog_source

        if not self.is_connected():
            return {
                "status": "unhealthy",
                "connected": False,
                "error": "Mapping client not connected",
            }

        try:
            if is_http_source(source):
                response = await self._client.head(source)  # type: ignore[union-attr]
                if response.status_code >= 400:
                    return {
                        "status": "unhealthy",
                        "connected": True,
                        "error": f"Unexpected status code: {response.status_code}",
                    }
            elif not Path(source).is_file():
                return {
                    "status": "unhealthy",
                    "connected": True,
                    "error": f"Catalog file not found: {source}",
                }

            return {
                "status": "healthy",
                "connected": True,
                "catalog_source": source,
            }

        except httpx.HTTPError as e:
            logger.error(
                "Mapping source health check failed",
                error=str(e),
                error_type=type(e).__name__,
                trace_id=trace_id,
            )
            return {
                "status": "unhealthy",
                "connected": True,
                "error": str(e),
            }

    def resolve_locator(self, locator: str) -> str:
        """
        Resolve a mapping locator against the catalog source.

        Absolute URLs and absolute paths are returned unchanged.
        """
        if is_http_source(locator):
            return locator

        catalog_source = self.config.catalog_source
        if is_http_source(catalog_source):
            return urljoin(catalog_source, locator)

        if os.path.isabs(locator):
            return locator
        return os.path.join(os.path.dirname(catalog_source), locator)

    async def fetch_catalog(self) -> List[EncryptionSchema]:
        """
        Fetch the list of available encryption schemas.

        Returns:
            Catalog entries in document order

        Raises:
            MappingFetchError: If the catalog can not be read or parsed
            MappingValidationError: If the catalog is not a list of valid entries
        """
        trace_id = current_trace_id()
        source = self.config.catalog_source
        document = await self._read_document(source)

        if not isinstance(document, list):
            raise MappingValidationError(
                "Encryption catalog must be a list of schema entries",
                details={"source": source, "document_type": type(document).__name__},
            )

        try:
            schemas = [EncryptionSchema.model_validate(entry) for entry in document]
        except PydanticValidationError as e:
            logger.error("Invalid encryption catalog", source=source, trace_id=trace_id)
            raise MappingValidationError(
                f"Invalid encryption catalog at {source}",
                details=_validation_details(e),
            ) from e

        logger.info(
            "Encryption catalog fetched",
            source=source,
            schema_count=len(schemas),
            trace_id=trace_id,
        )
        return schemas

    async def fetch_mapping(self, schema: EncryptionSchema) -> EncryptionMap:
        """
        Fetch and validate the mapping document of a schema.

        Args:
            schema: Catalog entry whose locator addresses the document

        Returns:
            Validated EncryptionMap

        Raises:
            MappingFetchError: If the document can not be read or parsed
            MappingValidationError: If the document shape or an identifier is invalid
        """
        trace_id = current_trace_id()
        source = self.resolve_locator(schema.locator)
        document = await self._read_document(source)

        if not isinstance(document, dict):
            raise MappingValidationError(
                f"Mapping document of schema {schema.name} must be an object",
                details={"source": source, "document_type": type(document).__name__},
            )

        try:
            encryption_map = EncryptionMap.model_validate(document)
        except PydanticValidationError as e:
            logger.error(
                "Invalid mapping document",
                schema_name=schema.name,
                source=source,
                trace_id=trace_id,
            )
            raise MappingValidationError(
                f"Invalid mapping document for schema {schema.name}",
                details=_validation_details(e),
            ) from e

        logger.info(
            "Mapping document fetched",
            schema_name=schema.name,
            table_count=encryption_map.table_count,
            column_count=encryption_map.column_count,
            trace_id=trace_id,
        )
        return encryption_map

    async def _read_document(self, source: str) -> Any:
        """Read and parse a document from a URL or a local path."""
        trace_id = current_trace_id()
        logger.debug("Reading mapping source", source=source, trace_id=trace_id)

        try:
            if is_http_source(source):
                response = await self._download(source)
                if is_yaml_document(source, response.headers.get("content-type", "")):
                    return yaml.safe_load(response.content)
                return response.json()

            content = await asyncio.to_thread(Path(source).read_bytes)
            if is_yaml_document(source):
                return yaml.safe_load(content)
            return json.loads(content)

        except httpx.HTTPStatusError as e:
            error_msg = f"Failed to fetch {source}: HTTP {e.response.status_code}"
            logger.error(error_msg, status_code=e.response.status_code, trace_id=trace_id)
            raise MappingFetchError(error_msg, details={"source": source}) from e

        except (httpx.HTTPError, OSError) as e:
            error_msg = f"Failed to fetch {source}: {e}"
            logger.error(error_msg, error_type=type(e).__name__, trace_id=trace_id)
            raise MappingFetchError(error_msg, details={"source": source}) from e

        # JSONDecodeError and UnicodeDecodeError are both ValueErrors
        except (ValueError, yaml.YAMLError) as e:
            error_msg = f"Failed to parse {source}: {e}"
            logger.error(error_msg, error_type=type(e).__name__, trace_id=trace_id)
            raise MappingFetchError(error_msg, details={"source": source}) from e

    async def _download(self, url: str) -> httpx.Response:
        if not self.is_connected() or not self._client:
            raise MappingFetchError("Mapping client is not connected", details={"source": url})

        response = await self._client.get(url)
        response.raise_for_status()
        return response
