"""
Custom exception hierarchy for sqlcloak.

This module defines the exception hierarchy with:
- Consistent error codes for API responses
- HTTP status code mappings for FastAPI
- Detailed error messages for debugging

Exception Categories:
- 4xx Client Errors: UnknownSchemaError, NoSchemaSelectedError
- Mapping Errors: MappingValidationError (bad document), MappingFetchError (source unreachable)

Usage:
    raise UnknownSchemaError("Can not find encryption schema with name sales")
    raise MappingValidationError("Invalid identifier", details={"identifier": "first name"})
"""

from typing import Any, Dict, Optional


class SQLCloakException(Exception):
    """
    Base exception for all sqlcloak errors.

    All custom exceptions inherit from this class, providing:
    - error_code: Machine-readable error identifier
    - http_status: Suggested HTTP status code for API responses
    - details: Optional structured data for debugging

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error code (e.g., "UNKNOWN_SCHEMA")
        http_status: HTTP status code to return (default: 500)
        details: Optional dictionary with additional error context
    """

    error_code: str = "INTERNAL_ERROR"
    http_status: int = 500

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
        http_status: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code
        if http_status:
            self.http_status = http_status

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        result: Dict[str, Any] = {
            "error_code": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Client Errors (4xx)
# =============================================================================


class UnknownSchemaError(SQLCloakException):
    """
    Raised when a requested encryption schema is absent from the catalog.

    HTTP Status: 404 Not Found

    Surfaced to the caller as-is; there is no retry and no fallback
    to another schema.
    """

    error_code = "UNKNOWN_SCHEMA"
    http_status = 404


class NoSchemaSelectedError(SQLCloakException):
    """
    Raised when encrypt/decrypt/check runs before any schema is available.

    HTTP Status: 409 Conflict

    Examples:
        - Empty catalog
        - Catalog failed to load and no schema name was given
    """

    error_code = "NO_SCHEMA_SELECTED"
    http_status = 409


# =============================================================================
# Mapping Errors
# =============================================================================


class MappingValidationError(SQLCloakException):
    """
    Raised when a catalog or mapping document is malformed.

    HTTP Status: 422 Unprocessable Entity

    Examples:
        - Identifier containing characters other than letters, digits and "_"
        - "tables" or "columns" section missing or of the wrong type
        - Catalog entry without a name or url
    """

    error_code = "MAPPING_VALIDATION_ERROR"
    http_status = 422


class MappingFetchError(SQLCloakException):
    """
    Raised when the catalog or a schema mapping can not be fetched.

    HTTP Status: 503 Service Unavailable

    The application keeps running without encryption when this happens
    at startup; callers are expected to surface a persistent warning.
    """

    error_code = "MAPPING_FETCH_FAILED"
    http_status = 503


# =============================================================================
# Configuration Errors (5xx)
# =============================================================================


class ConfigurationError(SQLCloakException):
    """
    Raised when configuration is invalid or missing.

    HTTP Status: 500 Internal Server Error
    """

    error_code = "CONFIGURATION_ERROR"
    http_status = 500
