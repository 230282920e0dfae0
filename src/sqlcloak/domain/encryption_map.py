"""
Encryption schema and mapping models.

An encryption schema is a named catalog entry pointing at a mapping
document. The mapping document pairs a table map (original -> encrypted
table name) with a column map keyed by *encrypted* table name.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.identifiers import validate_identifier
from .types import ColumnMap, TableMap


class EncryptionSchema(BaseModel):
    """
    Catalog entry for one encryption schema.

    The catalog document uses the keys "name", "url" and "default".
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=1, description="Schema name, unique within the catalog")
    locator: str = Field(..., alias="url", min_length=1, description="URL or path of the mapping document")
    is_default: bool = Field(default=False, alias="default", description="Selected when nothing was persisted")


class EncryptionMap(BaseModel):
    """
    Table and column name mapping for one schema.

    Read-only once loaded: rewriting repositories never mutate it, and the
    service caches one instance per schema name for the process lifetime.
    Dict fields keep the document's key order, which fixes the iteration
    order of every rewriting pass.
    """

    model_config = ConfigDict(frozen=True)

    tables: TableMap = Field(..., description="Original table name -> encrypted table name")
    columns: ColumnMap = Field(
        ..., description="Encrypted table name -> {original column name -> encrypted column name}"
    )

    @field_validator("tables")
    @classmethod
    def _validate_tables(cls, tables: TableMap) -> TableMap:
        for original, encrypted in tables.items():
            validate_identifier(original, "table")
            validate_identifier(encrypted, "encrypted table")
        return tables

    @field_validator("columns")
    @classmethod
    def _validate_columns(cls, columns: ColumnMap) -> ColumnMap:
        for encrypted_table, column_map in columns.items():
            validate_identifier(encrypted_table, "encrypted table")
            for original, encrypted in column_map.items():
                validate_identifier(original, "column")
                validate_identifier(encrypted, "encrypted column")
        return columns

    @property
    def table_count(self) -> int:
        return len(self.tables)

    @property
    def column_count(self) -> int:
        return sum(len(column_map) for column_map in self.columns.values())

    def encrypted_column(self, table_reference: str, column_name: str) -> Optional[str]:
        """Encrypted name of column_name under the given encrypted table, or None."""
        return self.columns.get(table_reference, {}).get(column_name)


class VerificationResult(BaseModel):
    """Outcome of a diagnostic encryption check."""

    ok: bool = Field(..., description="True if no original identifier was found")
    offending_names: List[str] = Field(
        default_factory=list,
        description="Original table/column names still present, each listed once, tables first",
    )
