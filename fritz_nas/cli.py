"""
Command-line interface for the FRITZ!Box NAS client.

One sub-command per NAS action; every sub-command logs in, runs the action
and logs out again, printing the result as JSON.
"""

import argparse
import getpass
import json
import logging
import sys
from pathlib import Path
from typing import Any

from tqdm import tqdm

from fritz_nas.auth.login import open_session
from fritz_nas.config import ENV_ADDRESS, ENV_PASSWORD, ENV_USER, READ_CHUNK_SIZE
from fritz_nas.errors import FritzNASError
from fritz_nas.logging_setup import log, setup_logging
from fritz_nas.nas.client import NASClient
from fritz_nas.nas.models import RenameInput
from fritz_nas.session import build_session


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="fritz-nas",
        description="Manage files on the NAS storage of a FRITZ!Box router.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Credentials can also be provided via the FRITZ_USER and "
            "FRITZ_PASSWORD env vars.\n"
            "If the password is not supplied and not in the environment, "
            "you will be prompted for it."
        ),
    )
    parser.add_argument(
        "--address", default=ENV_ADDRESS,
        help=f"Router address (default: {ENV_ADDRESS})",
    )
    parser.add_argument(
        "--username", default=ENV_USER,
        help="Username for authentication (default: $FRITZ_USER)",
    )
    parser.add_argument(
        "--password", default=ENV_PASSWORD,
        help="Password for authentication (overrides FRITZ_PASSWORD env var)",
    )
    parser.add_argument(
        "--debug", action="store_true",
        help="Enable verbose debug logging",
    )
    parser.add_argument(
        "--log-file",
        help="Write detailed logs to this file (always at DEBUG level)",
    )

    sub = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")

    p = sub.add_parser("list", help="List a directory")
    p.add_argument("--path", default="/", help="Remote directory (default: /)")
    p.add_argument("--limit", type=int, help="Maximum number of entries to return")

    p = sub.add_parser("get", help="Download a file")
    p.add_argument("--path", required=True, help="Remote path of the file to download")
    p.add_argument("--output", help="Local file to write (default: remote file name)")

    p = sub.add_parser("put", help="Upload a file")
    p.add_argument("--path", required=True, help="Local file to upload")
    p.add_argument("--remote-path", required=True,
                   help="Full remote path where the file will be placed")

    p = sub.add_parser("rename", help="Rename a file or directory")
    p.add_argument("--from", dest="source", required=True, help="Remote path of the object")
    p.add_argument("--to", dest="new_name", required=True, help="New name of the object")

    p = sub.add_parser("delete", help="Delete files or directories")
    p.add_argument("--path", dest="paths", action="append", required=True,
                   help="Remote path to delete (repeatable)")

    p = sub.add_parser("move", help="Move files or directories into another directory")
    p.add_argument("--from", dest="sources", action="append", required=True,
                   help="Remote path to move (repeatable)")
    p.add_argument("--to", dest="target", required=True, help="Destination directory")

    p = sub.add_parser("mkdir", help="Create a directory")
    p.add_argument("--name", required=True, help="Name of the new directory")
    p.add_argument("--path", default="/", help="Parent directory (default: /)")

    return parser.parse_args(argv)


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _download(nas: NASClient, remote: str, output: str | None) -> None:
    target = Path(output or remote.rsplit("/", 1)[-1] or "download")
    stream = nas.get_file(remote)
    total = stream.getbuffer().nbytes
    with open(target, "wb") as fh, tqdm(
        total=total, unit="B", unit_scale=True, desc=target.name, leave=False,
    ) as bar:
        for chunk in iter(lambda: stream.read(READ_CHUNK_SIZE), b""):
            fh.write(chunk)
            bar.update(len(chunk))
    log.info("Saved %s -> %s (%d bytes)", remote, target, total)


def _upload(nas: NASClient, local: str, remote: str) -> int:
    path = Path(local)
    with open(path, "rb") as fh, tqdm.wrapattr(
        fh, "read", total=path.stat().st_size, desc=path.name, leave=False,
    ) as wrapped:
        result = nas.put_file(remote, wrapped)
    _print_json(result.to_dict())
    if not result.ok:
        log.error(
            "Upload failed (ResultCode=%s, SuccessfulUploads=%s)",
            result.raw_result_code, result.raw_upload_result,
        )
        return 1
    log.info("Uploaded %s -> %s", local, remote)
    return 0


def run(args: argparse.Namespace) -> int:
    with build_session() as http, open_session(
        args.address, args.username, args.password, http=http,
    ) as session:
        log.debug("Session established")
        nas = NASClient(session, args.address, http=http)

        if args.command == "list":
            extra = {"limit": str(args.limit)} if args.limit is not None else {}
            _print_json(nas.list_directory(args.path, **extra).to_dict())
        elif args.command == "get":
            _download(nas, args.path, args.output)
        elif args.command == "put":
            return _upload(nas, args.path, args.remote_path)
        elif args.command == "rename":
            _print_json(nas.rename(RenameInput(args.source, args.new_name)).to_dict())
        elif args.command == "delete":
            _print_json(nas.delete(*args.paths).to_dict())
        elif args.command == "move":
            _print_json(nas.move(args.target, *args.sources).to_dict())
        elif args.command == "mkdir":
            _print_json(nas.create_dir(args.name, args.path).to_dict())
    return 0


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the fritz-nas CLI.  Returns the process exit code.
    """
    args = parse_args(argv)

    setup_logging(debug=args.debug, log_file=args.log_file)

    if args.debug:
        logging.getLogger("urllib3").setLevel(logging.DEBUG)

    if not args.password and sys.stdin.isatty():
        args.password = getpass.getpass("Router password: ")

    try:
        return run(args)
    except FritzNASError as exc:
        log.error("%s", exc)
        if exc.__cause__ is not None:
            log.debug("Caused by: %r", exc.__cause__)
        return 1
    except OSError as exc:
        log.error("%s: %s", getattr(exc, "filename", None) or "I/O error", exc.strerror or exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
