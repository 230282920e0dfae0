"""
Domain package for sqlcloak.

This package contains the mapping models, API request/response models and
the exception hierarchy used throughout the application.
"""

from .encryption_map import EncryptionMap, EncryptionSchema, VerificationResult
from .requests import TextRequest, CheckRequest, SelectSchemaRequest
from .responses import (
    HealthResponse,
    ErrorResponse,
    SchemaListResponse,
    SchemaSelectionResponse,
    TextResponse,
    CheckResponse,
)

__all__ = [
    # Mapping models
    "EncryptionMap",
    "EncryptionSchema",
    "VerificationResult",

    # Requests
    "TextRequest",
    "CheckRequest",
    "SelectSchemaRequest",

    # Responses
    "HealthResponse",
    "ErrorResponse",
    "SchemaListResponse",
    "SchemaSelectionResponse",
    "TextResponse",
    "CheckResponse",
]
