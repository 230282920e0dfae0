"""
Column Disambiguation Repository.

Decides, for every original column name of a mapping, whether and how its
occurrences in a query are encrypted.

Two passes per column name:
    1. Qualified references ("alias.column", "table.column") are rewritten
       through the alias table, using the column map of the referenced table.
    2. Bare references are rewritten only when exactly one table that has
       the column is referenced in the original query.

Each distinct column name is handled once per call, by the first table of
the column map (in insertion order) that lists it. When two tables map the
same column name to different encrypted names, bare occurrences follow the
single referenced candidate table, but the decision to process the name at
all is taken by the first table only.

Parameter placeholders (@column) are never rewritten.
"""

from dataclasses import dataclass, field
from typing import Dict, List

from sqlcloak.domain.encryption_map import EncryptionMap
from sqlcloak.domain.types import AliasTable, ColumnCandidatesMap
from sqlcloak.utils.identifiers import column_word_pattern, qualified_column_pattern, word_pattern
from sqlcloak.utils.logging import get_module_logger
from sqlcloak.utils.tracing import current_trace_id

logger = get_module_logger()


@dataclass
class ColumnRewriteOutcome:
    """Result of a disambiguation pass."""

    text: str
    rewritten: List[str] = field(default_factory=list)
    ambiguous: List[str] = field(default_factory=list)
    unresolved_qualified: List[str] = field(default_factory=list)
    qualified_rewrites: int = 0


class ColumnDisambiguator:
    """
    Rewrites column names of a table-substituted query.

    First-order candidates (tables having a column name) depend only on the
    mapping, so they are cached on the instance and shared across calls.
    Create one disambiguator per EncryptionMap.
    """

    def __init__(self, encryption_map: EncryptionMap):
        self.encryption_map = encryption_map
        self._candidates_cache: ColumnCandidatesMap = {}

    def first_order_candidates(self, column_name: str) -> List[str]:
        """Original names of the tables whose column map contains column_name."""
        candidates = self._candidates_cache.get(column_name)
        if candidates is None:
            candidates = [
                table_name
                for table_name, encrypted_table_name in self.encryption_map.tables.items()
                if column_name in self.encryption_map.columns.get(encrypted_table_name, {})
            ]
            self._candidates_cache[column_name] = candidates
        return candidates

    def second_order_candidates(self, column_name: str, source: str) -> List[str]:
        """First-order candidates whose original or encrypted name appears in source."""
        tables = self.encryption_map.tables
        return [
            table_name
            for table_name in self.first_order_candidates(column_name)
            if word_pattern(table_name).search(source)
            or word_pattern(tables[table_name]).search(source)
        ]

    def disambiguate(self, source: str, text: str, aliases: AliasTable) -> ColumnRewriteOutcome:
        """
        Encrypt column names in text.

        Args:
            source: The original query, before any substitution
            text: The query with table names already encrypted
            aliases: Alias table built from text

        Returns:
            ColumnRewriteOutcome with the rewritten text and per-column details
        """
        outcome = ColumnRewriteOutcome(text=text)
        # Presence memo, keyed by column name only
        seen: Dict[str, bool] = {}

        for table_columns in self.encryption_map.columns.values():
            for column_name in table_columns:
                if column_name in seen:
                    continue

                present = column_word_pattern(column_name).search(outcome.text) is not None
                seen[column_name] = present
                if not present:
                    continue

                self._resolve_qualified(column_name, aliases, outcome)
                self._resolve_bare(column_name, source, outcome)

        logger.debug(
            "Column names disambiguated",
            rewritten=len(outcome.rewritten),
            ambiguous=len(outcome.ambiguous),
            qualified_rewrites=outcome.qualified_rewrites,
            trace_id=current_trace_id(),
        )

        return outcome

    def _resolve_qualified(self, column_name: str, aliases: AliasTable, outcome: ColumnRewriteOutcome) -> None:
        for qualifier, table_reference in aliases.items():
            pattern = qualified_column_pattern(qualifier, column_name)
            if not pattern.search(outcome.text):
                continue

            encrypted_column_name = self.encryption_map.encrypted_column(table_reference, column_name)
            if encrypted_column_name is None:
                outcome.unresolved_qualified.append(f"{qualifier}.{column_name}")
                continue

            replacement = f"{qualifier}.{encrypted_column_name}"
            outcome.text, count = pattern.subn(lambda _match: replacement, outcome.text)
            outcome.qualified_rewrites += count

    def _resolve_bare(self, column_name: str, source: str, outcome: ColumnRewriteOutcome) -> None:
        candidates = self.second_order_candidates(column_name, source)

        if len(candidates) != 1:
            if len(candidates) > 1:
                outcome.ambiguous.append(column_name)
            return

        encrypted_table_name = self.encryption_map.tables[candidates[0]]
        encrypted_column_name = self.encryption_map.columns[encrypted_table_name][column_name]
        outcome.text, count = column_word_pattern(column_name).subn(encrypted_column_name, outcome.text)
        if count:
            outcome.rewritten.append(column_name)
