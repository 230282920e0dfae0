"""
Encryption Repository.

Composes the rewriting passes: table substitution, then alias resolution
over the substituted text, then column disambiguation.
"""

from typing import Optional

from sqlcloak.domain.encryption_map import EncryptionMap
from sqlcloak.repositories.alias_resolution import AliasResolver
from sqlcloak.repositories.column_disambiguation import ColumnDisambiguator
from sqlcloak.repositories.table_substitution import substitute_tables
from sqlcloak.utils.logging import get_module_logger
from sqlcloak.utils.tracing import current_trace_id

logger = get_module_logger()


class QueryEncryptor:
    """
    Encrypts queries against one EncryptionMap.

    Holds the disambiguator so first-order candidate lookups are computed
    once per column name for the lifetime of the mapping.
    """

    def __init__(self, encryption_map: EncryptionMap, alias_resolver: Optional[AliasResolver] = None):
        self.encryption_map = encryption_map
        self.alias_resolver = alias_resolver or AliasResolver()
        self.disambiguator = ColumnDisambiguator(encryption_map)

    def encrypt(self, source: str) -> str:
        """
        Encrypt table and column names in source.

        Args:
            source: Raw query text

        Returns:
            Encrypted text; text without original names is returned unchanged
        """
        substituted = substitute_tables(source, self.encryption_map.tables)
        aliases = self.alias_resolver.resolve(substituted)
        outcome = self.disambiguator.disambiguate(source, substituted, aliases)

        logger.info(
            "Query encrypted",
            source_length=len(source),
            alias_count=len(aliases),
            columns_rewritten=len(outcome.rewritten),
            qualified_rewrites=outcome.qualified_rewrites,
            ambiguous_columns=len(outcome.ambiguous),
            unresolved_qualified=len(outcome.unresolved_qualified),
            trace_id=current_trace_id(),
        )

        return outcome.text


def encrypt_text(source: str, encryption_map: EncryptionMap) -> str:
    """Encrypt source with a one-off QueryEncryptor."""
    return QueryEncryptor(encryption_map).encrypt(source)
