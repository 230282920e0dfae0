"""
Tests for EncryptionService with an in-memory mapping source.
"""

import asyncio
from collections import Counter

import pytest

from sqlcloak.config import SelectionConfig
from sqlcloak.domain.encryption_map import EncryptionMap, EncryptionSchema, VerificationResult
from sqlcloak.domain.errors import (
    MappingFetchError,
    NoSchemaSelectedError,
    UnknownSchemaError,
)
from sqlcloak.infrastructure.selection_store import SelectionStore
from sqlcloak.services.encryption_service import EncryptionService


class FakeMappingClient:
    """Stands in for MappingClient; counts fetches and can fail a number of times."""

    def __init__(self, catalog, mappings, delay=0.01, catalog_failures=0, mapping_failures=0):
        self.catalog = catalog
        self.mappings = mappings
        self.delay = delay
        self.catalog_failures = catalog_failures
        self.mapping_failures = mapping_failures
        self.catalog_calls = 0
        self.mapping_calls = Counter()

    async def fetch_catalog(self):
        self.catalog_calls += 1
        await asyncio.sleep(self.delay)
        if self.catalog_failures:
            self.catalog_failures -= 1
            raise MappingFetchError("catalog unavailable")
        return list(self.catalog)

    async def fetch_mapping(self, schema):
        self.mapping_calls[schema.name] += 1
        await asyncio.sleep(self.delay)
        if self.mapping_failures:
            self.mapping_failures -= 1
            raise MappingFetchError(f"mapping {schema.name} unavailable")
        return self.mappings[schema.name]


@pytest.fixture
def memory_store():
    return SelectionStore(SelectionConfig(persist=False))


@pytest.fixture
def fake_client(sales_schema, hr_schema, encryption_map, hr_map):
    return FakeMappingClient([sales_schema, hr_schema], {"sales": encryption_map, "hr": hr_map})


@pytest.fixture
def service(fake_client, memory_store):
    return EncryptionService(fake_client, memory_store)


class TestCatalogLoading:

    @pytest.mark.asyncio
    async def test_catalog_loaded_once(self, service, fake_client):
        results = await asyncio.gather(*(service.load_schemas() for _ in range(5)))
        assert fake_client.catalog_calls == 1
        assert all([schema.name for schema in result] == ["sales", "hr"] for result in results)

        await service.load_schemas()
        assert fake_client.catalog_calls == 1
        assert service.is_catalog_loaded()

    @pytest.mark.asyncio
    async def test_failed_catalog_load_is_retried(self, fake_client, memory_store):
        fake_client.catalog_failures = 1
        service = EncryptionService(fake_client, memory_store)

        with pytest.raises(MappingFetchError):
            await service.load_schemas()
        assert not service.is_catalog_loaded()
        assert service.schemas == []

        assert len(await service.load_schemas()) == 2
        assert fake_client.catalog_calls == 2


class TestSelectionRule:

    @pytest.mark.asyncio
    async def test_default_schema_selected(self, service):
        await service.load_schemas()
        assert service.selected_schema.name == "sales"

    @pytest.mark.asyncio
    async def test_persisted_schema_wins(self, fake_client, memory_store, hr_schema):
        memory_store.save(hr_schema)
        service = EncryptionService(fake_client, memory_store)
        await service.load_schemas()
        assert service.selected_schema.name == "hr"

    @pytest.mark.asyncio
    async def test_persisted_schema_missing_from_catalog(self, fake_client, memory_store):
        memory_store.save(EncryptionSchema(name="retired", url="retired.json"))
        service = EncryptionService(fake_client, memory_store)
        await service.load_schemas()
        assert service.selected_schema.name == "sales"

    @pytest.mark.asyncio
    async def test_first_schema_without_default(self, memory_store):
        catalog = [EncryptionSchema(name="hr", url="hr.json"), EncryptionSchema(name="sales", url="sales.json")]
        service = EncryptionService(FakeMappingClient(catalog, {}), memory_store)
        await service.load_schemas()
        assert service.selected_schema.name == "hr"

    @pytest.mark.asyncio
    async def test_empty_catalog_selects_nothing(self, memory_store):
        service = EncryptionService(FakeMappingClient([], {}), memory_store)
        await service.load_schemas()
        assert service.selected_schema is None
        with pytest.raises(NoSchemaSelectedError):
            await service.encrypt("SELECT Name FROM Customers")

    @pytest.mark.asyncio
    async def test_selection_is_persisted(self, service, memory_store):
        await service.load_schemas()
        await service.select_schema("hr")
        assert service.selected_schema.name == "hr"
        assert memory_store.load().name == "hr"


class TestMappingLoading:

    @pytest.mark.asyncio
    async def test_concurrent_loads_share_one_fetch(self, service, fake_client):
        results = await asyncio.gather(*(service.load_mapping("sales") for _ in range(5)))
        assert fake_client.mapping_calls["sales"] == 1
        assert all(result is results[0] for result in results)

    @pytest.mark.asyncio
    async def test_mapping_cached(self, service, fake_client):
        first = await service.load_mapping("sales")
        second = await service.load_mapping("sales")
        assert first is second
        assert fake_client.mapping_calls["sales"] == 1
        assert service.cached_schema_names() == ["sales"]

    @pytest.mark.asyncio
    async def test_failed_fetch_is_retried(self, service, fake_client):
        fake_client.mapping_failures = 1
        with pytest.raises(MappingFetchError):
            await service.load_mapping("sales")

        encryption_map = await service.load_mapping("sales")
        assert isinstance(encryption_map, EncryptionMap)
        assert fake_client.mapping_calls["sales"] == 2

    @pytest.mark.asyncio
    async def test_unknown_schema(self, service):
        with pytest.raises(UnknownSchemaError) as exc_info:
            await service.load_mapping("payroll")
        assert exc_info.value.details == {"schema_name": "payroll"}

    @pytest.mark.asyncio
    async def test_select_unknown_schema(self, service):
        with pytest.raises(UnknownSchemaError):
            await service.select_schema("payroll")

    @pytest.mark.asyncio
    async def test_loading_a_mapping_selects_its_schema(self, service):
        await service.load_schemas()
        await service.load_mapping("hr")
        assert service.selected_schema.name == "hr"

    @pytest.mark.asyncio
    async def test_select_returns_mapping(self, service, hr_map):
        assert await service.select_schema("hr") is hr_map


class TestOperations:

    @pytest.mark.asyncio
    async def test_encrypt_with_selected_schema(self, service):
        assert await service.encrypt("SELECT Name FROM Customers") == "SELECT Nm FROM Cst"

    @pytest.mark.asyncio
    async def test_encrypt_with_named_schema(self, service):
        assert await service.encrypt("SELECT Salary FROM Employees", "hr") == "SELECT Sal FROM Emp"

    @pytest.mark.asyncio
    async def test_decrypt(self, service):
        assert await service.decrypt("SELECT Nm FROM Cst") == "SELECT Name_Nm FROM Cst"

    @pytest.mark.asyncio
    async def test_check_fast_mode(self, service):
        assert await service.check("SELECT Nm FROM Cst") is True
        assert await service.check("SELECT Name FROM Cst") is False

    @pytest.mark.asyncio
    async def test_check_diagnostic_mode(self, service):
        result = await service.check("SELECT Name FROM Customers", include_unencrypted_words=True)
        assert result == VerificationResult(ok=False, offending_names=["Customers", "Name"])

    @pytest.mark.asyncio
    async def test_check_empty_text_needs_no_schema(self, memory_store):
        client = FakeMappingClient([], {}, catalog_failures=1)
        service = EncryptionService(client, memory_store)

        assert await service.check("") is True
        assert await service.check("", include_unencrypted_words=True) == VerificationResult(ok=True, offending_names=[])
        assert client.catalog_calls == 0

    @pytest.mark.asyncio
    async def test_unavailable_catalog_means_no_schema(self, memory_store):
        service = EncryptionService(FakeMappingClient([], {}, catalog_failures=1), memory_store)
        with pytest.raises(NoSchemaSelectedError) as exc_info:
            await service.encrypt("SELECT 1")
        assert isinstance(exc_info.value.__cause__, MappingFetchError)
