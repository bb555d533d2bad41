"""DustDB one-shot CLI: create / read / update / delete against local piles.

Prints "OK,<value>" or "ERR,<message>" on stdout and exits 0 / 1.
Uses the same PileStorage and Settings as the network server.
"""

import argparse
from pathlib import Path
from typing import Sequence

from pydantic import ValidationError

from dustdb.config import Settings
from dustdb.core.errors import ConfigurationError, DustDBError
from dustdb.core.hex_codec import encode_utf8_to_hex
from dustdb.core.parse_request import normalize_pile_name
from dustdb.infrastructure.pile_storage import PileStorage

UNSUPPORTED_COMMANDS = ("update", "delete")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dustdb-cli", description="DustDB one-shot CLI")
    parser.add_argument(
        "--storage-root", help="Override DUST_DATA_STORAGE_PATH for this command",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create", help="Store a hex-encoded record")
    create.add_argument("pile")
    create.add_argument("data", help="Hex-encoded UTF-8 record body")

    read = subparsers.add_parser("read", help="Print a record as hex")
    read.add_argument("pile")
    read.add_argument("record_id")

    for name in UNSUPPORTED_COMMANDS:
        stub = subparsers.add_parser(name, help="Not supported")
        stub.add_argument("args", nargs="*")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command in UNSUPPORTED_COMMANDS:
        return _emit_error(f"{args.command} is not supported")

    try:
        storage = _build_storage(args.storage_root)
        pile = normalize_pile_name(args.pile)
        if args.command == "create":
            return _emit_ok(storage.create(pile, args.data))
        return _emit_ok(encode_utf8_to_hex(storage.read(pile, args.record_id)))
    except DustDBError as e:
        return _emit_error(e.to_wire_message())


def _build_storage(storage_root: str | None) -> PileStorage:
    try:
        settings = Settings()
    except ValidationError as e:
        raise ConfigurationError(
            f"invalid settings: {e.error_count()} error(s)"
        ) from e
    if storage_root:
        settings = settings.model_copy(update={"storage_root": Path(storage_root)})
    return PileStorage.from_settings(settings)


def _emit_ok(value: str) -> int:
    print(f"OK,{value}")
    return 0


def _emit_error(message: str) -> int:
    print(f"ERR,{message}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
