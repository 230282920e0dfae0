#!/usr/bin/env python3
"""
Command-line access to the encryption service.

Reads text from FILE (or stdin), writes the result to stdout. Logs go to
stderr in console format.

Usage:
    python scripts/sqlcloak_cli.py encrypt query.sql
    echo "SELECT Name FROM Customers" | python scripts/sqlcloak_cli.py encrypt --schema sales
    python scripts/sqlcloak_cli.py check encrypted.sql
    python scripts/sqlcloak_cli.py schemas --catalog https://config.example.com/encryption_tables.json

Exit codes:
    0  success (check: text fully encrypted)
    1  check: original names found
    2  schema, catalog or mapping error
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

# Add the src directory to the Python path
project_root = Path(__file__).parent.parent
src_path = project_root / "src"
sys.path.insert(0, str(src_path))

from dotenv import load_dotenv

env_file = project_root / ".env"
if env_file.exists():
    load_dotenv(env_file)

from sqlcloak.config import get_settings
from sqlcloak.config_constants import LogFormat
from sqlcloak.domain.errors import SQLCloakException
from sqlcloak.infrastructure.mapping_client import MappingClient
from sqlcloak.infrastructure.selection_store import SelectionStore
from sqlcloak.services.encryption_service import EncryptionService
from sqlcloak.utils.logging import configure_logging, get_module_logger
from sqlcloak.utils.tracing import new_trace

EXIT_OK = 0
EXIT_NOT_ENCRYPTED = 1
EXIT_ERROR = 2

logger = get_module_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sqlcloak",
        description="Encrypt, decrypt and check table/column names in SQL-like text.",
    )
    parser.add_argument(
        "command",
        choices=["encrypt", "decrypt", "check", "schemas"],
        help="Operation to run",
    )
    parser.add_argument(
        "file",
        nargs="?",
        help="Input file (default: stdin); ignored by 'schemas'",
    )
    parser.add_argument(
        "--schema",
        dest="schema_name",
        help="Encryption schema to use (default: last selected, then catalog default)",
    )
    parser.add_argument(
        "--catalog",
        help="Catalog URL or path (overrides MAPPING_STORE__CATALOG_SOURCE)",
    )
    return parser


def read_input(file: Optional[str]) -> str:
    if file is None or file == "-":
        return sys.stdin.read()
    return Path(file).read_text(encoding="utf-8")


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    mapping_config = settings.mapping_store
    if args.catalog:
        mapping_config = mapping_config.model_copy(update={"catalog_source": args.catalog})

    mapping_client = MappingClient(mapping_config)
    await mapping_client.connect()
    service = EncryptionService(mapping_client, SelectionStore(settings.selection))

    try:
        if args.command == "schemas":
            schemas = await service.load_schemas()
            selected = service.selected_schema
            for schema in schemas:
                marker = "*" if selected and schema.name == selected.name else " "
                suffix = " (default)" if schema.is_default else ""
                print(f"{marker} {schema.name}{suffix}\t{schema.locator}")
            return EXIT_OK

        text = read_input(args.file)

        if args.command == "encrypt":
            sys.stdout.write(await service.encrypt(text, args.schema_name))
            return EXIT_OK

        if args.command == "decrypt":
            sys.stdout.write(await service.decrypt(text, args.schema_name))
            return EXIT_OK

        outcome = await service.check(text, args.schema_name, include_unencrypted_words=True)
        if outcome.ok:
            print("ok: no original table or column names found")
            return EXIT_OK
        print("not encrypted: " + ", ".join(outcome.offending_names))
        return EXIT_NOT_ENCRYPTED

    finally:
        await mapping_client.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(LogFormat.CONSOLE)

    with new_trace():
        try:
            return asyncio.run(run(args))
        except SQLCloakException as e:
            print(f"error: {e.message}", file=sys.stderr)
            return EXIT_ERROR
        except OSError as e:
            logger.error("Failed to read input", error=str(e))
            print(f"error: {e}", file=sys.stderr)
            return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
