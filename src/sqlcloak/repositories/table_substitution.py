"""
Table Substitution Repository.

Replaces every whole-word occurrence of an original table name with its
encrypted name. Matching is case-sensitive and global; tables are visited
in the table map's insertion order.

Already encrypted text is left as-is: encrypted names are not keys of the
table map, so a second pass finds nothing to replace.
"""

from sqlcloak.domain.types import TableMap
from sqlcloak.utils.identifiers import word_pattern
from sqlcloak.utils.logging import get_module_logger
from sqlcloak.utils.tracing import current_trace_id

logger = get_module_logger()


def substitute_tables(source: str, tables: TableMap) -> str:
    """
    Encrypt table names in source.

    Args:
        source: Raw SQL-like text
        tables: Original table name -> encrypted table name

    Returns:
        Text with every original table name replaced
    """
    result = source
    substitutions = 0

    for table_name, encrypted_table_name in tables.items():
        result, count = word_pattern(table_name).subn(encrypted_table_name, result)
        substitutions += count

    logger.debug(
        "Table names substituted",
        substitutions=substitutions,
        trace_id=current_trace_id(),
    )

    return result
