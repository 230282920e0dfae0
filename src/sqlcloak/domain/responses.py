"""
API response models for sqlcloak.

These models define the structure for all outgoing API responses,
ensuring consistent response formats and type safety.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .encryption_map import EncryptionSchema


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str = Field(..., description="Health status", examples=["healthy", "degraded"])
    timestamp: datetime = Field(..., description="Health check timestamp")
    version: str = Field(..., description="Application version")
    mapping_source_status: str = Field(..., description="Catalog source reachability")
    catalog_status: str = Field(..., description="Whether the schema catalog is loaded")
    selected_schema: Optional[str] = Field(default=None, description="Currently selected schema")


class ErrorResponse(BaseModel):
    """Response model for error responses."""

    error: str = Field(..., description="Error type or category")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Additional error details"
    )
    trace_id: Optional[str] = Field(
        default=None,
        description="Trace ID for debugging"
    )
    timestamp: datetime = Field(..., description="Error timestamp")


class SchemaListResponse(BaseModel):
    """Response model for the schema catalog."""

    trace_id: Optional[str] = Field(default=None, description="Trace ID for debugging")
    schemas: List[EncryptionSchema] = Field(..., description="Catalog entries in document order")
    selected_schema: Optional[str] = Field(default=None, description="Currently selected schema")


class SchemaSelectionResponse(BaseModel):
    """Response model for schema selection."""

    trace_id: Optional[str] = Field(default=None, description="Trace ID for debugging")
    schema_name: str = Field(..., description="Selected schema")
    table_count: int = Field(..., description="Number of mapped tables")
    column_count: int = Field(..., description="Number of mapped columns across all tables")


class TextResponse(BaseModel):
    """Response model for encrypt and decrypt."""

    trace_id: Optional[str] = Field(default=None, description="Trace ID for debugging")
    result: str = Field(..., description="Rewritten text")
    schema_name: Optional[str] = Field(default=None, description="Schema the text was rewritten with")


class CheckResponse(BaseModel):
    """Response model for encryption verification."""

    trace_id: Optional[str] = Field(default=None, description="Trace ID for debugging")
    ok: bool = Field(..., description="True if no original table or column name was found")
    unencrypted_words: Optional[List[str]] = Field(
        default=None,
        description="Original names found, tables first (only with include_unencrypted_words)"
    )
