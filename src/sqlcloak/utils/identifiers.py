"""
Identifier validation and word-boundary pattern builders.

Every regular expression used by the rewriting repositories is built here.
Identifiers are validated when a mapping is loaded, so the builders can
interpolate them directly; re.escape is still applied to alias tokens,
which come from the query text.

Patterns are compiled with re.ASCII: a "word" is [A-Za-z0-9_], matching
the identifier rule enforced at load time.
"""

import re
from functools import lru_cache
from typing import Pattern

# Valid mapping identifier: letters, digits and underscore only
IDENTIFIER_PATTERN = re.compile(r"[A-Za-z0-9_]+", re.ASCII)

# Upper bound on memoised patterns; mappings rarely exceed a few thousand names
_PATTERN_CACHE_SIZE = 8192


def is_valid_identifier(name: object) -> bool:
    """Return True if name is a non-empty string of letters, digits and underscores."""
    return isinstance(name, str) and IDENTIFIER_PATTERN.fullmatch(name) is not None


def validate_identifier(name: object, kind: str) -> str:
    """
    Validate a mapping identifier.

    Args:
        name: Identifier taken from a mapping document
        kind: What the identifier names ("table", "column", ...), used in the message

    Returns:
        The identifier, unchanged

    Raises:
        ValueError: If the identifier contains anything but [A-Za-z0-9_]
    """
    if not is_valid_identifier(name):
        raise ValueError(
            f"Invalid {kind} identifier {name!r}: only letters, digits and '_' are allowed"
        )
    return name  # type: ignore[return-value]


@lru_cache(maxsize=_PATTERN_CACHE_SIZE)
def word_pattern(name: str) -> Pattern[str]:
    """Whole-word, case-sensitive match of a table name."""
    return re.compile(rf"\b{name}\b", re.ASCII)


@lru_cache(maxsize=_PATTERN_CACHE_SIZE)
def column_word_pattern(name: str) -> Pattern[str]:
    """Whole-word match of a column name, skipping @-prefixed parameter placeholders."""
    return re.compile(rf"(?<!@)\b{name}\b", re.ASCII)


@lru_cache(maxsize=_PATTERN_CACHE_SIZE)
def qualified_column_pattern(qualifier: str, column: str) -> Pattern[str]:
    """
    Match "qualifier.column" where qualifier is an alias or a table reference.

    The qualifier may start with "#" (temp tables), so the left edge is a
    negative lookbehind instead of \\b.
    """
    return re.compile(rf"(?<![\w#]){re.escape(qualifier)}\.{column}\b", re.ASCII)
