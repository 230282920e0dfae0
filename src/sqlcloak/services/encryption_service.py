"""
Encryption Service for orchestrating schema selection and query rewriting.

This service owns the session state of the application: the schema catalog,
the per-schema mapping cache and the currently selected schema. It resolves
which mapping a call runs against, then delegates to the rewriting
repositories.
"""

import asyncio
from typing import Dict, List, Optional, Tuple, Union

from ..domain.encryption_map import EncryptionMap, EncryptionSchema, VerificationResult
from ..domain.errors import MappingFetchError, NoSchemaSelectedError, UnknownSchemaError
from ..infrastructure.mapping_client import MappingClient
from ..infrastructure.selection_store import SelectionStore
from ..repositories.decryption import decrypt_text
from ..repositories.encryption import QueryEncryptor
from ..repositories.verification import check_text
from ..utils.logging import get_module_logger
from ..utils.tracing import current_trace_id


logger = get_module_logger()


class EncryptionService:
    """
    Service for encryption-related business logic.

    Loading rules:
    - The catalog is fetched once; concurrent callers share one fetch.
    - Each mapping is fetched once per schema name and cached for the
      lifetime of the service; concurrent callers share one fetch.
    - A failed fetch is not cached, so the next call retries.

    Selection rule, applied when the catalog loads:
    persisted schema (if still in the catalog) -> schema flagged default
    -> first catalog entry -> nothing selected.

    Fetching a mapping selects its schema.

    Usage:
        service = EncryptionService(mapping_client, selection_store)
        await service.load_schemas()
        encrypted = await service.encrypt("SELECT Name FROM Customers")
    """

    def __init__(self, mapping_client: MappingClient, selection_store: SelectionStore):
        """
        Initialize encryption service.

        Args:
            mapping_client: Client reading the catalog and mapping documents
            selection_store: Store for the last selected schema
        """
        self.mapping_client = mapping_client
        self.selection_store = selection_store

        self._catalog: Optional[List[EncryptionSchema]] = None
        self._catalog_task: Optional[asyncio.Task] = None
        self._mapping_cache: Dict[str, EncryptionMap] = {}
        self._encryptors: Dict[str, QueryEncryptor] = {}
        self._inflight: Dict[str, asyncio.Task] = {}
        self._selected: Optional[EncryptionSchema] = None

        logger.info("EncryptionService initialized")

    # -------------------------
    # State accessors
    # -------------------------

    @property
    def selected_schema(self) -> Optional[EncryptionSchema]:
        """Currently selected catalog entry, if any."""
        return self._selected

    @property
    def schemas(self) -> List[EncryptionSchema]:
        """Loaded catalog entries; empty until load_schemas() succeeds."""
        return list(self._catalog or [])

    def is_catalog_loaded(self) -> bool:
        return self._catalog is not None

    def cached_schema_names(self) -> List[str]:
        return list(self._mapping_cache)

    # -------------------------
    # Catalog and mappings
    # -------------------------

    async def load_schemas(self) -> List[EncryptionSchema]:
        """
        Load the schema catalog and apply the selection rule.

        Returns:
            Catalog entries in document order

        Raises:
            MappingFetchError: If the catalog can not be fetched
            MappingValidationError: If the catalog is malformed
        """
        if self._catalog is not None:
            return list(self._catalog)

        if self._catalog_task is None:
            self._catalog_task = asyncio.ensure_future(self._fetch_catalog())

        return list(await asyncio.shield(self._catalog_task))

    async def _fetch_catalog(self) -> List[EncryptionSchema]:
        try:
            catalog = await self.mapping_client.fetch_catalog()
        finally:
            self._catalog_task = None

        self._catalog = catalog
        self._apply_selection_rule(catalog)
        return catalog

    def _apply_selection_rule(self, catalog: List[EncryptionSchema]) -> None:
        trace_id = current_trace_id()
        chosen: Optional[EncryptionSchema] = None
        reason = "none"

        persisted = self.selection_store.load()
        if persisted is not None:
            chosen = self._find_schema(persisted.name, catalog)
            if chosen is not None:
                reason = "persisted"
            else:
                logger.warning(
                    "Persisted schema no longer in catalog",
                    schema_name=persisted.name,
                    trace_id=trace_id,
                )

        if chosen is None:
            chosen = next((schema for schema in catalog if schema.is_default), None)
            if chosen is not None:
                reason = "default"

        if chosen is None and catalog:
            chosen = catalog[0]
            reason = "first"

        if chosen is not None:
            self._select(chosen)

        logger.info(
            "Initial schema selected",
            schema_name=chosen.name if chosen else None,
            reason=reason,
            trace_id=trace_id,
        )

    async def load_mapping(self, schema_name: Optional[str] = None) -> EncryptionMap:
        """
        Get the mapping of a schema, fetching it on first use.

        Args:
            schema_name: Schema to load (defaults to the selected schema)

        Returns:
            Cached or freshly fetched EncryptionMap

        Raises:
            NoSchemaSelectedError: If schema_name is omitted and nothing is selected
            UnknownSchemaError: If schema_name is not in the catalog
            MappingFetchError: If the mapping document can not be fetched
            MappingValidationError: If the mapping document is invalid
        """
        _, encryption_map = await self._mapping_for(schema_name)
        return encryption_map

    async def _mapping_for(self, schema_name: Optional[str]) -> Tuple[str, EncryptionMap]:
        name = await self._resolve_schema_name(schema_name)

        cached = self._mapping_cache.get(name)
        if cached is not None:
            return name, cached

        schema = await self._get_schema(name)

        task = self._inflight.get(name)
        if task is None:
            task = asyncio.ensure_future(self._fetch_mapping(schema))
            self._inflight[name] = task

        return name, await asyncio.shield(task)

    async def _fetch_mapping(self, schema: EncryptionSchema) -> EncryptionMap:
        try:
            encryption_map = await self.mapping_client.fetch_mapping(schema)
        finally:
            self._inflight.pop(schema.name, None)

        self._mapping_cache[schema.name] = encryption_map
        self._encryptors[schema.name] = QueryEncryptor(encryption_map)
        self._select(schema)

        logger.info(
            "Encryption mapping cached",
            schema_name=schema.name,
            table_count=encryption_map.table_count,
            column_count=encryption_map.column_count,
            trace_id=current_trace_id(),
        )
        return encryption_map

    async def select_schema(self, schema_name: str) -> EncryptionMap:
        """
        Select a schema and return its mapping.

        The selection is recorded before the mapping is fetched, so it
        survives a fetch failure.

        Raises:
            UnknownSchemaError: If schema_name is not in the catalog
            MappingFetchError: If the mapping document can not be fetched
        """
        schema = await self._get_schema(schema_name)
        self._select(schema)
        return await self.load_mapping(schema.name)

    # -------------------------
    # Rewriting operations
    # -------------------------

    async def encrypt(self, text: str, schema_name: Optional[str] = None) -> str:
        """Encrypt table and column names in text."""
        name, _ = await self._mapping_for(schema_name)
        return self._encryptors[name].encrypt(text)

    async def decrypt(self, text: str, schema_name: Optional[str] = None) -> str:
        """Annotate encrypted column names in text with their original names."""
        encryption_map = await self.load_mapping(schema_name)
        return decrypt_text(text, encryption_map)

    async def check(
        self,
        text: str,
        schema_name: Optional[str] = None,
        include_unencrypted_words: bool = False,
    ) -> Union[bool, VerificationResult]:
        """
        Check that text holds no original table or column name.

        Empty text is trivially encrypted and needs no schema.
        """
        if not text:
            return VerificationResult(ok=True, offending_names=[]) if include_unencrypted_words else True

        encryption_map = await self.load_mapping(schema_name)
        return check_text(text, encryption_map, include_unencrypted_words)

    # -------------------------
    # Helpers
    # -------------------------

    async def _resolve_schema_name(self, schema_name: Optional[str]) -> str:
        if schema_name:
            return schema_name

        if self._selected is None and self._catalog is None:
            try:
                await self.load_schemas()
            except MappingFetchError as e:
                raise NoSchemaSelectedError(
                    "No encryption schema selected: catalog unavailable",
                    details={"reason": e.message},
                ) from e

        if self._selected is None:
            raise NoSchemaSelectedError("No encryption schema selected")

        return self._selected.name

    async def _get_schema(self, schema_name: str) -> EncryptionSchema:
        catalog = await self.load_schemas()
        schema = self._find_schema(schema_name, catalog)
        if schema is None:
            raise UnknownSchemaError(
                f"Can not find encryption schema with name {schema_name}",
                details={"schema_name": schema_name},
            )
        return schema

    @staticmethod
    def _find_schema(schema_name: str, catalog: List[EncryptionSchema]) -> Optional[EncryptionSchema]:
        return next((schema for schema in catalog if schema.name == schema_name), None)

    def _select(self, schema: EncryptionSchema) -> None:
        if self._selected == schema:
            return
        self._selected = schema
        self.selection_store.save(schema)
        logger.info("Encryption schema selected", schema_name=schema.name, trace_id=current_trace_id())
