"""
Type aliases for sqlcloak.

Provides reusable, descriptive type aliases for the mapping structures
shared by the rewriting repositories. Plain dicts keep insertion order,
which the rewriting passes rely on.
"""

from typing import Dict, List


# Original table name -> encrypted table name
TableMap = Dict[str, str]

# Original column name -> encrypted column name (one table)
TableColumnMap = Dict[str, str]

# Encrypted table name -> {original column name -> encrypted column name}
ColumnMap = Dict[str, TableColumnMap]

# Alias (or table self-reference) -> encrypted table reference
AliasTable = Dict[str, str]

# Original column name -> original table names having that column
ColumnCandidatesMap = Dict[str, List[str]]
