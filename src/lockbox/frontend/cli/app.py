"""Command-line front end for LockBox.

Start here with `python -m lockbox.frontend.cli.app --help`

    lockbox encrypt ./report.pdf          -> <data-dir>/report.pdf.enc
    lockbox decrypt report.pdf.enc        -> <data-dir>/report.pdf.dec
    lockbox decrypt --file ./x.pdf.enc    -> <data-dir>/x.pdf.dec
    lockbox list [--decrypted]
    lockbox info
    lockbox serve --port 3000
"""

from __future__ import annotations

import argparse
import getpass
import json
import sys
from pathlib import Path
from typing import Optional

from lockbox.config import Settings
from lockbox.core.exceptions import (
    ArtifactNotFoundError,
    AuthenticationError,
    InvalidInputError,
    LockBoxError,
)
from lockbox.core.file_manager import FileManager
from lockbox.core.storage import ArtifactStore
from lockbox.logging_config import configure_logging
from lockbox.network.server import add_server_arguments, serve
from lockbox.security.kdf import kdf_params_to_dict


def _read_password(args: argparse.Namespace, confirm: bool = False) -> str:
    if args.password:
        return args.password
    password = getpass.getpass("Password: ")
    if confirm and password != getpass.getpass("Confirm password: "):
        raise InvalidInputError("Passwords do not match")
    return password


def _read_source(path: str) -> bytes:
    src = Path(path).expanduser()
    if not src.is_file():
        raise ArtifactNotFoundError(f"{path} not found")
    return src.read_bytes()


def _file_manager(args: argparse.Namespace) -> FileManager:
    settings = Settings.from_env()
    data_dir = Path(args.data_dir) if args.data_dir else settings.data_dir
    return FileManager(ArtifactStore(data_dir))


def cmd_encrypt(args: argparse.Namespace) -> int:
    fm = _file_manager(args)
    data = _read_source(args.path)
    name = fm.encrypt_file(Path(args.path).name, data, _read_password(args, confirm=True))
    print(f"File encrypted! Saved as {name}")
    return 0


def cmd_decrypt(args: argparse.Namespace) -> int:
    fm = _file_manager(args)
    password = _read_password(args)
    if args.file:
        name = fm.decrypt_file(Path(args.file).name, _read_source(args.file), password)
    elif args.name:
        name = fm.decrypt_artifact(args.name, password)
    else:
        raise InvalidInputError("No filename provided")
    print(f"File decrypted! Saved as {name}")
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    fm = _file_manager(args)
    names = fm.list_decrypted() if args.decrypted else fm.list_encrypted()
    for name in names:
        print(name)
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    print(json.dumps(kdf_params_to_dict(), indent=2))
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    serve(args)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lockbox", description="Password-protect files")
    parser.add_argument("--log-level", default=None)
    sub = parser.add_subparsers(dest="command", required=True)

    def with_store(p: argparse.ArgumentParser) -> argparse.ArgumentParser:
        p.add_argument("--data-dir", default=None)
        p.add_argument("--password", default=None, help="prompted for when omitted")
        return p

    p = with_store(sub.add_parser("encrypt", help="encrypt a local file into the store"))
    p.add_argument("path")
    p.set_defaults(func=cmd_encrypt)

    p = with_store(sub.add_parser("decrypt", help="decrypt a stored or local .enc file"))
    p.add_argument("name", nargs="?", default=None)
    p.add_argument("--file", default=None, help="decrypt a local envelope instead")
    p.set_defaults(func=cmd_decrypt)

    p = sub.add_parser("list", help="list artifacts")
    p.add_argument("--data-dir", default=None)
    p.add_argument("--decrypted", action="store_true")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("info", help="show the key derivation parameters")
    p.set_defaults(func=cmd_info)

    p = sub.add_parser("serve", help="run the HTTP gateway")
    add_server_arguments(p)
    p.set_defaults(func=cmd_serve)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command != "serve":
        configure_logging(args.log_level or "WARNING")
    try:
        return args.func(args)
    except AuthenticationError:
        print("Decryption failed. Wrong password or corrupted file", file=sys.stderr)
    except LockBoxError as e:
        print(f"Error: {e}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
