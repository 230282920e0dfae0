"""
Verification Repository.

Checks that a text no longer contains any original table or column name.
Tables are matched as whole words; columns as whole words not preceded by
"@", so parameter placeholders never count as leaks.
"""

from typing import Iterator, List, Union

from sqlcloak.domain.encryption_map import EncryptionMap, VerificationResult
from sqlcloak.utils.identifiers import column_word_pattern, word_pattern
from sqlcloak.utils.logging import get_module_logger
from sqlcloak.utils.tracing import current_trace_id

logger = get_module_logger()


def _iter_unencrypted_names(text: str, encryption_map: EncryptionMap) -> Iterator[str]:
    """Yield original names found in text: tables first, then columns, in map order."""
    for table_name in encryption_map.tables:
        if word_pattern(table_name).search(text):
            yield table_name

    for table_columns in encryption_map.columns.values():
        for column_name in table_columns:
            if column_word_pattern(column_name).search(text):
                yield column_name


def find_unencrypted_names(text: str, encryption_map: EncryptionMap, stop_at_first: bool = False) -> List[str]:
    """
    List the original names still present in text, each once.

    Args:
        text: Text to inspect
        encryption_map: Mapping holding the original names
        stop_at_first: Return as soon as one name is found

    Returns:
        Offending names in discovery order
    """
    found: List[str] = []
    for name in _iter_unencrypted_names(text, encryption_map):
        if name in found:
            continue
        found.append(name)
        if stop_at_first:
            break
    return found


def check_text(
    text: str,
    encryption_map: EncryptionMap,
    include_unencrypted_words: bool = False,
) -> Union[bool, VerificationResult]:
    """
    Check whether text is fully encrypted.

    Args:
        text: Text to inspect
        encryption_map: Mapping holding the original names
        include_unencrypted_words: Scan to completion and report offending names

    Returns:
        bool in fast mode, VerificationResult in diagnostic mode
    """
    if not text:
        return VerificationResult(ok=True, offending_names=[]) if include_unencrypted_words else True

    offending_names = find_unencrypted_names(text, encryption_map, stop_at_first=not include_unencrypted_words)
    ok = not offending_names

    logger.debug(
        "Encryption checked",
        ok=ok,
        offending_count=len(offending_names),
        trace_id=current_trace_id(),
    )

    if include_unencrypted_words:
        return VerificationResult(ok=ok, offending_names=offending_names)
    return ok
