from enum import Enum


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

class LogFormat(str, Enum):
    JSON = "json"
    CONSOLE = "console"

# -------------------------
# Mapping Store Constants
# -------------------------

# URL schemes fetched over HTTP; anything else is treated as a local path
HTTP_SCHEMES = ("http://", "https://")

# Documents with these suffixes (or a YAML content type) are parsed as YAML, everything else as JSON
YAML_SUFFIXES = (".yaml", ".yml")

DEFAULT_CATALOG_SOURCE = "encryption_tables.json"

DEFAULT_SELECTION_STATE_FILE = ".sqlcloak/last_schema.json"
