"""
Shared fixtures: a small three-table mapping and helpers writing it to disk.

Customers and Products both have a Name column; Customers and Orders both
have an Id column.
"""

import json
from pathlib import Path

import pytest

from sqlcloak.config import MappingStoreConfig, SelectionConfig, Settings
from sqlcloak.domain.encryption_map import EncryptionMap, EncryptionSchema


MAPPING_DOCUMENT = {
    "tables": {
        "Customers": "Cst",
        "Orders": "Ord",
        "Products": "Prd",
    },
    "columns": {
        "Cst": {"Id": "CstId", "Name": "Nm", "Email": "Eml"},
        "Ord": {"Id": "OrdId", "CustomerId": "CstRef", "Total": "Tot"},
        "Prd": {"Sku": "Sk", "Name": "PrdNm"},
    },
}

HR_DOCUMENT = {
    "tables": {"Employees": "Emp"},
    "columns": {"Emp": {"Salary": "Sal"}},
}


@pytest.fixture
def mapping_document():
    return json.loads(json.dumps(MAPPING_DOCUMENT))


@pytest.fixture
def encryption_map(mapping_document):
    return EncryptionMap.model_validate(mapping_document)


@pytest.fixture
def hr_map():
    return EncryptionMap.model_validate(HR_DOCUMENT)


@pytest.fixture
def catalog_dir(tmp_path: Path) -> Path:
    """Catalog with two schemas; sales is the default, mappings live in maps/."""
    maps = tmp_path / "maps"
    maps.mkdir()
    (maps / "sales.json").write_text(json.dumps(MAPPING_DOCUMENT), encoding="utf-8")
    (maps / "hr.yaml").write_text("tables:\n  Employees: Emp\ncolumns:\n  Emp:\n    Salary: Sal\n", encoding="utf-8")
    (tmp_path / "encryption_tables.json").write_text(
        json.dumps([
            {"name": "sales", "url": "maps/sales.json", "default": True},
            {"name": "hr", "url": "maps/hr.yaml"},
        ]),
        encoding="utf-8",
    )
    return tmp_path


@pytest.fixture
def settings(catalog_dir: Path) -> Settings:
    return Settings(
        mapping_store=MappingStoreConfig(catalog_source=str(catalog_dir / "encryption_tables.json")),
        selection=SelectionConfig(state_file=str(catalog_dir / "state" / "last_schema.json")),
    )


@pytest.fixture
def sales_schema():
    return EncryptionSchema(name="sales", url="maps/sales.json", default=True)


@pytest.fixture
def hr_schema():
    return EncryptionSchema(name="hr", url="maps/hr.yaml")
