"""Command-line shell for the user manager.

Mounts a ``RecordManager``, runs one operation and renders the resulting
collection. ``serve`` starts the records service instead.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Iterable, Sequence, TextIO

from user_manager.manager import (
    ManagerConfig,
    NotFoundError,
    Operation,
    Record,
    RecordManager,
    RecordServiceClient,
    RequestError,
    ValidationError,
)

logger = logging.getLogger("user_manager.cli")

TITLE = "User Management System"
SUBTITLE = "User Operations"
COLUMNS = ("id", "name", "email", "status")

EXIT_OK = 0
EXIT_REQUEST_FAILED = 1
EXIT_INVALID = 2


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="user-manager", description="Manage user records")
    parser.add_argument("--api-url", help="Records service base URL (default: $USER_MANAGER_API_URL)")
    parser.add_argument("--timeout", type=float, help="Request timeout in seconds (default: $USER_MANAGER_TIMEOUT)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List all records")

    show = sub.add_parser("show", help="Show one record")
    show.add_argument("record_id")

    create = sub.add_parser("create", help="Create a record")
    create.add_argument("--name", required=True)
    create.add_argument("--email", required=True)
    create.add_argument("--status", choices=("active", "inactive"))

    update = sub.add_parser("update", help="Update fields of a record")
    update.add_argument("record_id")
    update.add_argument("--name")
    update.add_argument("--email")
    update.add_argument("--status", choices=("active", "inactive"))

    delete = sub.add_parser("delete", help="Delete a record")
    delete.add_argument("record_id")

    serve = sub.add_parser("serve", help="Run the records service")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser.parse_args(argv)


def _config_from_args(args: argparse.Namespace) -> ManagerConfig:
    config = ManagerConfig.from_env()
    if args.api_url:
        config.api_url = args.api_url.rstrip("/")
    if args.timeout is not None and args.timeout > 0:
        config.timeout = args.timeout
    return config


def _fields_from_args(args: argparse.Namespace) -> dict:
    return {key: getattr(args, key) for key in ("name", "email", "status") if getattr(args, key, None) is not None}


def render_records(records: Iterable[Record], out: TextIO) -> None:
    rows = [[str(getattr(r, c, "") or "") for c in COLUMNS] for r in records]
    widths = [max([len(c)] + [len(row[i]) for row in rows]) for i, c in enumerate(COLUMNS)]
    print(" | ".join(c.upper().ljust(w) for c, w in zip(COLUMNS, widths)), file=out)
    print("-+-".join("-" * w for w in widths), file=out)
    if not rows:
        print("(no records)", file=out)
    for row in rows:
        print(" | ".join(v.ljust(w) for v, w in zip(row, widths)), file=out)


def render(manager: RecordManager, out: TextIO) -> None:
    print(TITLE, file=out)
    print(SUBTITLE, file=out)
    print(file=out)
    render_records(manager.snapshot(), out)
    states = ", ".join(f"{op.value}={manager.state(op)}" for op in Operation)
    print(f"\n[{states}]", file=out)


async def run_command(
    args: argparse.Namespace,
    manager: RecordManager,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    out = out or sys.stdout
    err = err or sys.stderr
    logger.debug("cli_command command=%s", args.command)
    async with manager:
        load_state = manager.state(Operation.LOAD)
        if load_state.is_error:
            print(f"error: could not load records: {load_state.reason}", file=err)
            return EXIT_REQUEST_FAILED
        try:
            if args.command == "show":
                render_records([manager.get(args.record_id)], out)
                return EXIT_OK
            if args.command == "create":
                record = await manager.create(_fields_from_args(args))
                print(f"created {record.id}", file=out)
            elif args.command == "update":
                record = await manager.update(args.record_id, _fields_from_args(args))
                print(f"updated {record.id}", file=out)
            elif args.command == "delete":
                await manager.remove(args.record_id)
                print(f"deleted {args.record_id}", file=out)
        except ValidationError as exc:
            print(f"error: {exc}", file=err)
            for field, msg in sorted(exc.field_errors.items()):
                print(f"  {field}: {msg}", file=err)
            return EXIT_INVALID
        except NotFoundError as exc:
            print(f"error: {exc}", file=err)
            return EXIT_INVALID
        except RequestError as exc:
            print(f"error: {exc}", file=err)
            return EXIT_REQUEST_FAILED
        render(manager, out)
    return EXIT_OK


def serve(host: str, port: int) -> int:  # pragma: no cover - starts a server
    import uvicorn

    uvicorn.run("user_manager.api.main:app", host=host, port=port)
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(list(argv) if argv is not None else None)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.WARNING,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    if args.command == "serve":
        return serve(args.host, args.port)
    config = _config_from_args(args)
    manager = RecordManager(RecordServiceClient.from_config(config), config=config)
    return asyncio.run(run_command(args, manager))


if __name__ == "__main__":  # pragma: no cover - manual execution path
    sys.exit(main())
