"""
Infrastructure layer for external integrations.

This module contains the client for the encryption mapping source and
the store persisting the last selected schema.
"""

from .mapping_client import MappingClient
from .selection_store import SelectionStore

__all__ = ["MappingClient", "SelectionStore"]
