"""
Decryption Repository.

Annotates encrypted column names with their original names. This is not an
inverse of encryption:

    - Every occurrence of an encrypted column name, as a plain substring, is
      replaced with "<original>_<encrypted>".
    - Table names are left encrypted.

Columns are visited in column map order (encrypted table, then column).
"""

from sqlcloak.domain.encryption_map import EncryptionMap
from sqlcloak.utils.logging import get_module_logger
from sqlcloak.utils.tracing import current_trace_id

logger = get_module_logger()


def decrypt_text(source: str, encryption_map: EncryptionMap) -> str:
    """
    Annotate encrypted column names in source.

    Args:
        source: Encrypted query text
        encryption_map: Mapping of the schema the text was encrypted with

    Returns:
        Text with each encrypted column name prefixed by its original name
    """
    result = source
    annotated = 0

    for table_columns in encryption_map.columns.values():
        for column_name, encrypted_column_name in table_columns.items():
            if encrypted_column_name not in result:
                continue
            annotated += result.count(encrypted_column_name)
            result = result.replace(encrypted_column_name, f"{column_name}_{encrypted_column_name}")

    logger.debug(
        "Column names annotated",
        annotations=annotated,
        trace_id=current_trace_id(),
    )

    return result
