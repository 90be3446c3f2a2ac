# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import os
import socket
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any, NoReturn

from dotenv import load_dotenv

from hostdb import __version__
from hostdb.adapters.wire import (
    catalog_response,
    dump_record,
    error_response,
    parse_record,
    parse_record_set,
    reconcile_response,
    records_response,
    stats_response,
    write_response,
)
from hostdb.app import build_service
from hostdb.config import ConfigurationError, configure_logging, load_catalog_config
from hostdb.domain.errors import CatalogError, DeletionError, NotFoundError, ValidationError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from pydantic import BaseModel

    from hostdb.app import CatalogService

log = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_VALIDATION = 2
EXIT_NOT_FOUND = 4
WRITE_COMMANDS = frozenset({"reconcile", "put", "delete"})


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Query and maintain the hostdb record catalog")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--database-uri",
        type=str,
        help="SQLAlchemy database URI (defaults to DATABASE_URI or the local data dir)",
    )
    parser.add_argument(
        "--catalog-config",
        type=Path,
        help="TOML file with the field-location mapping (defaults to HOSTDB_CATALOG_CONFIG)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    query = subparsers.add_parser("query", help="Show full records matching query parameters")
    query.add_argument(
        "params",
        nargs="*",
        metavar="KEY=VALUE",
        help="Filter such as type=aws-vpc, !ip=10.0.0.1, _search=web, _limit=10",
    )

    listing = subparsers.add_parser("list", help="List selected fields of matching records")
    listing.add_argument(
        "params",
        nargs="*",
        metavar="KEY=VALUE",
        help="Same filters as 'query'; _fields=hostname,ip picks the columns",
    )

    get = subparsers.add_parser("get", help="Show one record by ID")
    get.add_argument("record_id", metavar="ID")

    catalog = subparsers.add_parser("catalog", help="List the distinct values of a field")
    catalog.add_argument("field", help="Mapped field name")
    catalog.add_argument(
        "--count",
        nargs="?",
        const="true",
        default=None,
        help="Include value frequencies (anything but 0/false enables it)",
    )
    catalog.add_argument(
        "--filter",
        dest="regex_filter",
        type=str,
        help="Regular expression wrapped in slashes, e.g. /^web/",
    )

    reconcile = subparsers.add_parser(
        "reconcile",
        help="Submit a record set; records of its scope missing from it are deleted",
    )
    reconcile.add_argument("path", help="JSON record set file, or - for stdin")

    put = subparsers.add_parser("put", help="Create or replace one record")
    put.add_argument("path", help="JSON record file, or - for stdin")
    put.add_argument("--id", dest="record_id", type=str, help="Record ID (overrides the file)")

    subparsers.add_parser("stats", help="Show record totals and when each committer last wrote")

    delete = subparsers.add_parser("delete", help="Delete one record by ID")
    delete.add_argument("record_id", metavar="ID")

    return parser.parse_args(list(argv))


def parse_params(tokens: Sequence[str]) -> dict[str, list[str]]:
    """Collect ``KEY=VALUE`` tokens into a multi-valued map; a bare ``KEY`` has one blank value."""

    params: dict[str, list[str]] = {}
    for token in tokens:
        key, _, value = token.partition("=")
        if not key:
            raise ValueError(f"Invalid query parameter: {token!r}")
        params.setdefault(key, []).append(value)
    return params


def _read_source(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _default_committer() -> str:
    user = os.getenv("USER") or os.getenv("USERNAME") or "unknown"
    return f"{user}@{socket.gethostname()}: hostdb-cli/{__version__}"


def _emit(payload: BaseModel | dict[str, Any]) -> None:
    if isinstance(payload, dict):
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        print(payload.model_dump_json(indent=2, exclude_none=True))


def _fail(command: str, error: Exception, code: int) -> NoReturn:
    if command in WRITE_COMMANDS and not isinstance(error, DeletionError):
        _emit(error_response(error))
    print(f"Error: {error}", file=sys.stderr)
    sys.exit(code)


def _run(args: argparse.Namespace, service: CatalogService) -> None:
    if args.command == "query":
        page = service.query(parse_params(args.params))
        _emit(records_response(page.records, page.total))
    elif args.command == "list":
        listing = service.list_records(parse_params(args.params))
        _emit(records_response(listing.records, listing.total, fields=listing.fields))
    elif args.command == "get":
        _emit(dump_record(service.get_record(args.record_id)))
    elif args.command == "catalog":
        catalog = service.catalog(args.field, count=args.count, regex_filter=args.regex_filter)
        _emit(catalog_response(catalog))
    elif args.command == "reconcile":
        result = service.reconcile(parse_record_set(_read_source(args.path)))
        _emit(reconcile_response(result))
    elif args.command == "put":
        record = service.save_record(parse_record(_read_source(args.path)), args.record_id)
        _emit(write_response(record.id))
    elif args.command == "stats":
        _emit(stats_response(service.stats(), socket.gethostname()))
    elif args.command == "delete":
        service.delete_record(args.record_id)
        _emit({"id": args.record_id, "deleted": True})
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""

    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    try:
        config = (
            load_catalog_config(parsed_args.catalog_config)
            if parsed_args.catalog_config is not None
            else None
        )
        service = build_service(
            database_uri=parsed_args.database_uri,
            config=config,
            committer=_default_committer(),
        )
        _run(parsed_args, service)
    except (ValidationError, ValueError) as exc:
        _fail(parsed_args.command, exc, EXIT_VALIDATION)
    except NotFoundError as exc:
        _fail(parsed_args.command, exc, EXIT_NOT_FOUND)
    except DeletionError as exc:
        _emit(reconcile_response(exc.result).model_copy(update={"ok": False, "error": str(exc)}))
        _fail(parsed_args.command, exc, EXIT_FAILURE)
    except (CatalogError, ConfigurationError, OSError) as exc:
        log.debug("Command %s failed", parsed_args.command, exc_info=True)
        _fail(parsed_args.command, exc, EXIT_FAILURE)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
