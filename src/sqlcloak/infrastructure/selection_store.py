"""
Persistence of the last selected encryption schema.

The selected catalog entry is written to a small JSON file and read back on
the next start, where it takes precedence over the catalog's default.
"""

import json
from pathlib import Path
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from ..config import SelectionConfig
from ..domain.encryption_map import EncryptionSchema
from ..utils.logging import get_module_logger
from ..utils.tracing import current_trace_id


logger = get_module_logger()


class SelectionStore:
    """
    Stores the last selected EncryptionSchema.

    A missing, unreadable or corrupt state file reads as "nothing selected";
    write failures are logged and otherwise ignored. With persist disabled
    the selection only lives in memory.

    Usage:
        store = SelectionStore(settings.selection)
        store.save(schema)
        last = store.load()
    """

    def __init__(self, config: SelectionConfig):
        self.config = config
        self.state_file = Path(config.state_file)
        self._last: Optional[EncryptionSchema] = None

    def load(self) -> Optional[EncryptionSchema]:
        """Return the last saved schema, or None."""
        if not self.config.persist:
            return self._last

        trace_id = current_trace_id()
        if not self.state_file.is_file():
            return None

        try:
            data = json.loads(self.state_file.read_text(encoding="utf-8"))
            schema = EncryptionSchema.model_validate(data)
        except (OSError, ValueError, PydanticValidationError) as e:
            logger.warning(
                "Ignoring unreadable schema selection state",
                state_file=str(self.state_file),
                error=str(e),
                error_type=type(e).__name__,
                trace_id=trace_id,
            )
            return None

        self._last = schema
        return schema

    def save(self, schema: EncryptionSchema) -> None:
        """Remember schema as the last selection."""
        self._last = schema
        if not self.config.persist:
            return

        trace_id = current_trace_id()
        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            self.state_file.write_text(
                json.dumps(schema.model_dump(by_alias=True), indent=2),
                encoding="utf-8",
            )
        except OSError as e:
            logger.warning(
                "Failed to persist schema selection",
                state_file=str(self.state_file),
                error=str(e),
                trace_id=trace_id,
            )
            return

        logger.debug(
            "Schema selection persisted",
            schema_name=schema.name,
            state_file=str(self.state_file),
            trace_id=trace_id,
        )
