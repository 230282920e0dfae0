"""
Alias Resolution Repository.

Builds the alias table of a query: which alias (or bare table reference)
denotes which encrypted table. Runs on text whose table names have already
been substituted, so every recorded table reference is an encrypted name.

Recognised clauses:
    FROM <table_ref> AS <alias>
    FROM <table_ref> <alias>
    JOIN <table_ref> AS <alias>
    JOIN <table_ref> <alias>
    FROM <table_ref> <alias>, <table_ref> <alias>, ...

<table_ref> is an identifier or a #-prefixed temp table. Each clause records
alias -> table_ref and table_ref -> table_ref, so "table.column" resolves
the same way as "alias.column". An alias bound twice keeps its last table
(no scoping: nested queries reusing an alias collide).

This is a tokenizer and a small state machine, not a parser. Comments,
string literals and quoted identifiers are not understood.
"""

import re
from enum import Enum
from typing import Iterator, NamedTuple, Optional

from sqlcloak.domain.types import AliasTable
from sqlcloak.utils.logging import get_module_logger
from sqlcloak.utils.tracing import current_trace_id

logger = get_module_logger()

# Identifiers (optionally #-prefixed) or any single non-space character
_TOKEN_PATTERN = re.compile(r"#?\w+|[^\w\s]", re.ASCII)

# Keywords opening a table reference
CLAUSE_KEYWORDS = {"FROM", "JOIN"}

# Words never taken as an implicit alias
RESERVED_WORDS = {
    "AND", "APPLY", "AS", "BY", "CROSS", "ELSE", "END", "EXCEPT", "FETCH",
    "FOR", "FROM", "FULL", "GROUP", "HAVING", "INNER", "INTERSECT", "INTO",
    "JOIN", "LATERAL", "LEFT", "LIMIT", "NATURAL", "NOT", "OFFSET", "ON",
    "OPTION", "OR", "ORDER", "OUTER", "PIVOT", "RETURNING", "RIGHT", "SELECT",
    "SET", "THEN", "UNION", "UNPIVOT", "USING", "VALUES", "WHEN", "WHERE",
    "WINDOW", "WITH",
}


class _State(Enum):
    SCAN = "scan"                # outside any FROM/JOIN clause
    TABLE = "table"              # after FROM/JOIN or ",", expecting a table reference
    AFTER_TABLE = "after_table"  # table reference read, expecting AS, an alias or anything else
    ALIAS = "alias"              # after AS, expecting the alias
    AFTER_ALIAS = "after_alias"  # binding recorded, "," continues the table list


class Token(NamedTuple):
    value: str
    start: int

    @property
    def is_identifier(self) -> bool:
        return self.value[0] == "#" or self.value[0].isalnum() or self.value[0] == "_"

    @property
    def keyword(self) -> str:
        return self.value.upper()


def tokenize(text: str) -> Iterator[Token]:
    """Split text into identifier and punctuation tokens, skipping whitespace."""
    for match in _TOKEN_PATTERN.finditer(text):
        yield Token(match.group(0), match.start())


class AliasResolver:
    """
    Collects alias bindings from FROM/JOIN clauses.

    Usage:
        aliases = AliasResolver().resolve("SELECT c.Nm FROM Cst AS c")
        # {"c": "Cst", "Cst": "Cst"}
    """

    def resolve(self, text: str) -> AliasTable:
        """
        Build the alias table for text.

        Args:
            text: Query text with table names already encrypted

        Returns:
            Ordered alias -> table reference mapping
        """
        aliases: AliasTable = {}
        state = _State.SCAN
        table_reference: Optional[str] = None

        for token in tokenize(text):
            # A token that ends a clause is scanned again from SCAN, since it
            # may itself open the next clause ("FROM a JOIN b").
            while True:
                state, table_reference, rescan = self._step(state, token, table_reference, aliases)
                if not rescan:
                    break

        if state in (_State.AFTER_TABLE, _State.ALIAS) and table_reference:
            self._bind(aliases, None, table_reference)

        logger.debug(
            "Table aliases resolved",
            alias_count=len(aliases),
            trace_id=current_trace_id(),
        )

        return aliases

    def _step(
        self,
        state: _State,
        token: Token,
        table_reference: Optional[str],
        aliases: AliasTable,
    ) -> tuple[_State, Optional[str], bool]:
        """Advance the state machine by one token; returns (state, table_reference, rescan)."""
        if state is _State.SCAN:
            if token.is_identifier and token.keyword in CLAUSE_KEYWORDS:
                return _State.TABLE, None, False
            return _State.SCAN, None, False

        if state is _State.TABLE:
            if token.is_identifier and token.keyword in CLAUSE_KEYWORDS:
                return _State.TABLE, None, False
            if token.is_identifier:
                return _State.AFTER_TABLE, token.value, False
            # "(" of a subquery, or anything else
            return _State.SCAN, None, True

        if state is _State.AFTER_TABLE:
            if token.value == ".":
                # schema-qualified reference, no binding
                return _State.SCAN, None, False
            if token.is_identifier and token.keyword == "AS":
                return _State.ALIAS, table_reference, False
            if token.is_identifier and token.keyword not in RESERVED_WORDS and token.value[0] != "#":
                self._bind(aliases, token.value, table_reference)
                return _State.AFTER_ALIAS, None, False
            self._bind(aliases, None, table_reference)
            if token.value == ",":
                return _State.TABLE, None, False
            return _State.SCAN, None, True

        if state is _State.ALIAS:
            if token.is_identifier and token.keyword not in RESERVED_WORDS and token.value[0] != "#":
                self._bind(aliases, token.value, table_reference)
                return _State.AFTER_ALIAS, None, False
            self._bind(aliases, None, table_reference)
            return _State.SCAN, None, True

        # AFTER_ALIAS
        if token.value == ",":
            return _State.TABLE, None, False
        return _State.SCAN, None, True

    @staticmethod
    def _bind(aliases: AliasTable, alias: Optional[str], table_reference: Optional[str]) -> None:
        if not table_reference:
            return
        if alias:
            aliases[alias] = table_reference
        aliases[table_reference] = table_reference
