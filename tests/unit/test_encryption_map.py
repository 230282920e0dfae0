import pytest
from pydantic import ValidationError

from sqlcloak.domain.encryption_map import EncryptionMap, EncryptionSchema
from sqlcloak.utils.identifiers import (
    column_word_pattern,
    is_valid_identifier,
    qualified_column_pattern,
    validate_identifier,
    word_pattern,
)


class TestIdentifiers:

    @pytest.mark.parametrize("name", ["Customers", "order_lines", "T_91c2", "_x", "123"])
    def test_valid_identifiers(self, name):
        assert is_valid_identifier(name)
        assert validate_identifier(name, "table") == name

    @pytest.mark.parametrize("name", ["", "first name", "a.b", "x(y)", "na*me", "naïve", None, 3])
    def test_invalid_identifiers(self, name):
        assert not is_valid_identifier(name)
        with pytest.raises(ValueError, match="Invalid column identifier"):
            validate_identifier(name, "column")

    def test_word_pattern(self):
        assert word_pattern("Id").search("SELECT Id FROM t")
        assert not word_pattern("Id").search("SELECT CstId FROM t")

    def test_column_word_pattern_skips_placeholders(self):
        assert not column_word_pattern("Id").search("WHERE x = @Id")
        assert column_word_pattern("Id").search("WHERE Id = @Id")

    def test_qualified_column_pattern(self):
        pattern = qualified_column_pattern("c", "Name")
        assert pattern.search("SELECT c.Name")
        assert not pattern.search("SELECT abc.Name")
        assert not pattern.search("SELECT c.NameX")
        assert qualified_column_pattern("#tmp", "Name").search("SELECT #tmp.Name")

    def test_patterns_are_memoised(self):
        assert word_pattern("Orders") is word_pattern("Orders")


class TestEncryptionMap:

    def test_counts(self, encryption_map):
        assert encryption_map.table_count == 3
        assert encryption_map.column_count == 8

    def test_key_order_preserved(self, encryption_map):
        assert list(encryption_map.tables) == ["Customers", "Orders", "Products"]
        assert list(encryption_map.columns["Cst"]) == ["Id", "Name", "Email"]

    def test_encrypted_column(self, encryption_map):
        assert encryption_map.encrypted_column("Cst", "Name") == "Nm"
        assert encryption_map.encrypted_column("Prd", "Name") == "PrdNm"
        assert encryption_map.encrypted_column("Cst", "Total") is None
        assert encryption_map.encrypted_column("Unknown", "Name") is None

    def test_frozen(self, encryption_map):
        with pytest.raises(ValidationError):
            encryption_map.tables = {}

    @pytest.mark.parametrize("document", [
        {"tables": {"first name": "T1"}, "columns": {}},
        {"tables": {"Customers": "C$1"}, "columns": {}},
        {"tables": {}, "columns": {"T1": {"Name": "N-1"}}},
        {"tables": {}, "columns": {"T 1": {}}},
        {"tables": {"Customers": "Cst"}},
        {"tables": ["Customers"], "columns": {}},
    ])
    def test_invalid_documents_rejected(self, document):
        with pytest.raises(ValidationError):
            EncryptionMap.model_validate(document)


class TestEncryptionSchema:

    def test_catalog_keys(self):
        schema = EncryptionSchema.model_validate({"name": "sales", "url": "maps/sales.json", "default": True})
        assert schema.locator == "maps/sales.json"
        assert schema.is_default is True

    def test_default_flag_optional(self):
        schema = EncryptionSchema.model_validate({"name": "hr", "url": "hr.json"})
        assert schema.is_default is False

    def test_dump_uses_catalog_keys(self, sales_schema):
        assert sales_schema.model_dump(by_alias=True) == {"name": "sales", "url": "maps/sales.json", "default": True}

    @pytest.mark.parametrize("entry", [{"name": "", "url": "x"}, {"name": "x"}, {"url": "x"}])
    def test_invalid_entries_rejected(self, entry):
        with pytest.raises(ValidationError):
            EncryptionSchema.model_validate(entry)
