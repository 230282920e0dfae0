"""
API request models for sqlcloak.

These models define the structure for all incoming API requests,
ensuring type safety and validation at API boundaries.

All fields include descriptions that appear in Swagger/OpenAPI documentation.
"""

from pydantic import BaseModel, Field
from typing import Optional


class TextRequest(BaseModel):
    """Request model for encrypting or decrypting a query."""

    text: str = Field(
        ...,
        description="SQL-like text to rewrite. "
                    "Example: 'SELECT c.Name FROM Customers AS c'"
    )
    schema_name: Optional[str] = Field(
        default=None,
        description="Encryption schema to use. "
                    "If not provided, the currently selected schema is used.",
        min_length=1,
    )


class CheckRequest(BaseModel):
    """Request model for verifying that a text is fully encrypted."""

    text: str = Field(
        ...,
        description="Text to inspect. Empty text is always reported as encrypted."
    )
    schema_name: Optional[str] = Field(
        default=None,
        description="Encryption schema holding the original names. "
                    "If not provided, the currently selected schema is used.",
        min_length=1,
    )
    include_unencrypted_words: bool = Field(
        default=False,
        description="If true, scans the whole text and lists every original name found. "
                    "If false, stops at the first one."
    )


class SelectSchemaRequest(BaseModel):
    """Request model for selecting the active encryption schema."""

    schema_name: str = Field(
        ...,
        description="Name of a schema from the catalog (see GET /schemas)",
        min_length=1,
    )
