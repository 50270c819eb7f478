"""
Command line entry point for SealDrop.

Commands:
  serve                      -> run the HTTP API
  seal <path> [--media-type] -> encrypt a local file into the store, print its id
  open <id> [-o OUT] [--force] -> decrypt a stored blob to OUT (default: original name)

Usage:
  sealdrop serve --port 4000 --storage-dir ./storage
  sealdrop seal ./note.txt
  sealdrop open 1b4e28ba-2fa1-11d2-883f-0016d3cca427.bin -o ./note.txt

Passphrases are always read with getpass, never from the command line.
"""

from __future__ import annotations

import argparse
import getpass
import mimetypes
import sys
from pathlib import Path
from typing import Optional, Sequence

from .config import Settings
from .core.exceptions import (
    AuthenticationError,
    InvalidInputError,
    MalformedBlobError,
    StorageError,
)
from .core.service import SealService
from .core.storage import BlobStore
from .logging_config import configure_logging
from .security.kdf import SUPPORTED_KDFS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sealdrop", description="Passphrase-sealed file drop"
    )
    parser.add_argument("--storage-dir", help="blob directory (env SEALDROP_STORAGE_DIR)")
    parser.add_argument("--kdf", choices=SUPPORTED_KDFS, help="key derivation function")
    parser.add_argument("--log-level", help="logging level name")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="run the HTTP API")
    serve.add_argument("--host")
    serve.add_argument("--port", type=int)
    serve.add_argument("--cors-origin")

    seal = sub.add_parser("seal", help="encrypt a file into the store")
    seal.add_argument("path")
    seal.add_argument("--media-type", help="defaults to a guess from the file name")

    open_ = sub.add_parser("open", help="decrypt a stored blob")
    open_.add_argument("blob_id")
    open_.add_argument("-o", "--output", help="where to write the plaintext")
    open_.add_argument(
        "--force", action="store_true", help="overwrite an existing file at the destination"
    )

    return parser


def _read_passphrase(confirm: bool) -> str:
    passphrase = getpass.getpass("Passphrase: ")
    if confirm and getpass.getpass("Repeat passphrase: ") != passphrase:
        raise InvalidInputError("passphrases do not match")
    return passphrase


def cmd_seal(service: SealService, args) -> int:
    src = Path(args.path).expanduser()
    if not src.is_file():
        print(f"ERROR: no such file: {src}", file=sys.stderr)
        return 1
    media_type = args.media_type or mimetypes.guess_type(src.name)[0]
    passphrase = _read_passphrase(confirm=True)
    receipt = service.seal(src.read_bytes(), src.name, media_type, passphrase)
    print(receipt.blob_id)
    return 0


def cmd_open(service: SealService, args) -> int:
    passphrase = _read_passphrase(confirm=False)
    try:
        opened = service.open(args.blob_id, passphrase)
    except StorageError:
        print(f"ERROR: not found: {args.blob_id}", file=sys.stderr)
        return 1
    except (MalformedBlobError, AuthenticationError):
        print("ERROR: decryption failed (wrong secret or corrupt data)", file=sys.stderr)
        return 1

    if args.output:
        destination = Path(args.output)
    else:
        # the stored name is not authenticated; keep only a plain basename
        name = Path(opened.filename).name
        destination = Path(name if name not in ("", ".", "..") else "file")
        if destination.exists() and not args.force:
            print(
                f"ERROR: {destination} already exists; use -o or --force", file=sys.stderr
            )
            return 1

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(opened.data)
    except OSError as e:
        print(f"ERROR: could not write {destination}: {e.strerror or e}", file=sys.stderr)
        return 1
    print(f"{destination} ({opened.media_type}, {len(opened.data)} bytes)")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.from_env().override(
            storage_dir=Path(args.storage_dir).expanduser() if args.storage_dir else None,
            kdf=args.kdf,
            log_level=args.log_level.upper() if args.log_level else None,
        )
        if args.command == "serve":
            settings = settings.override(
                host=args.host, port=args.port, cors_origin=args.cors_origin
            )
        # stdout carries command output (ids, paths)
        configure_logging(settings.log_level, stream=sys.stderr)
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    if args.command == "serve":
        from .web.app import run_server

        run_server(settings)
        return 0

    service = SealService(BlobStore(settings.storage_dir), settings.kdf_params())
    try:
        if args.command == "seal":
            return cmd_seal(service, args)
        return cmd_open(service, args)
    except (InvalidInputError, StorageError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
