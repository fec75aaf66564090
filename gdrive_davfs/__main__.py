"""
gdrive-davfs - Command line entry point

Drives the DriveFileSystem facade against a live Google Drive account, one
operation per invocation. Useful for checking credentials and for seeing
how paths resolve before putting a protocol server in front of it.
"""

import argparse
import logging
import shutil
import sys

from .config import load_config
from .errors import DriveFSError
from .filesystem import DriveFileSystem
from .gdrive_store import build_drive_store
from .logger import setup_logging

logger = logging.getLogger(__name__)

COPY_CHUNK_SIZE = 1024 * 1024


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="gdrive-davfs - Google Drive as a path-addressed filesystem",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  gdrive-davfs ls /Documents
  gdrive-davfs stat /Documents/notes.txt
  gdrive-davfs get /Documents/notes.txt notes.txt
  gdrive-davfs put report.pdf /Documents/report.pdf
  gdrive-davfs mkdir /Documents/archive
  gdrive-davfs rm /Documents/archive
        """,
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", help="Path to configuration file")
    common.add_argument("--token-file", help="Path to saved Google OAuth token")
    common.add_argument("--root-folder", help="Drive folder ID to treat as / (default: root)")
    common.add_argument("--stall-timeout", type=float, help="Seconds a download may stall")
    common.add_argument("--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    ls_parser = subparsers.add_parser("ls", parents=[common], help="List a directory")
    ls_parser.add_argument("path", nargs="?", default="/")

    stat_parser = subparsers.add_parser("stat", parents=[common], help="Show metadata for a path")
    stat_parser.add_argument("path")

    get_parser = subparsers.add_parser("get", parents=[common], help="Download a file")
    get_parser.add_argument("path")
    get_parser.add_argument("local", nargs="?", help="Local destination (default: stdout)")

    put_parser = subparsers.add_parser("put", parents=[common], help="Upload a new file")
    put_parser.add_argument("local")
    put_parser.add_argument("path")

    mkdir_parser = subparsers.add_parser("mkdir", parents=[common], help="Create a directory")
    mkdir_parser.add_argument("path")

    rm_parser = subparsers.add_parser("rm", parents=[common], help="Remove a file or directory")
    rm_parser.add_argument("path")
    rm_parser.add_argument("--trash", action="store_true", help="Move to trash instead of deleting")

    return parser.parse_args(argv)


def open_filesystem(args) -> DriveFileSystem:
    """Load configuration, set up logging and connect to Google Drive."""
    config = load_config(
        config_path=args.config,
        token_file=args.token_file,
        root_folder=args.root_folder,
        stall_timeout=args.stall_timeout,
        trash=getattr(args, "trash", False),
        debug=args.verbose,
    )
    setup_logging(config.logging)
    from . import __version__

    logger.info("Starting gdrive-davfs v%s", __version__)
    store = build_drive_store(config.gdrive, config.connection, config.store)
    return DriveFileSystem.from_config(store, config)


def _format_entry(meta) -> str:
    kind = "d" if meta.is_container else "-"
    mtime = meta.modified_at.strftime("%Y-%m-%d %H:%M") if meta.modified_at else "-" * 16
    return f"{kind} {meta.size:>12} {mtime} {meta.name}"


def cmd_ls(fs: DriveFileSystem, args) -> int:
    entries = fs.list_children(args.path)
    for meta in entries:
        print(_format_entry(meta))
    return 0


def cmd_stat(fs: DriveFileSystem, args) -> int:
    meta = fs.stat(args.path)
    print(f"Name:     {meta.name or '/'}")
    print(f"Type:     {'directory' if meta.is_container else 'file'}")
    print(f"Size:     {meta.size}")
    print(f"Modified: {meta.modified_at.isoformat() if meta.modified_at else 'unknown'}")
    return 0


def cmd_get(fs: DriveFileSystem, args) -> int:
    with fs.open_for_read(args.path) as handle:
        if args.local:
            with open(args.local, "wb") as out:
                shutil.copyfileobj(handle, out, COPY_CHUNK_SIZE)
            print(f"[OK] Downloaded {args.path} to {args.local}")
        else:
            shutil.copyfileobj(handle, sys.stdout.buffer, COPY_CHUNK_SIZE)
    return 0


def cmd_put(fs: DriveFileSystem, args) -> int:
    with open(args.local, "rb") as src, fs.open_for_create(args.path) as handle:
        shutil.copyfileobj(src, handle, COPY_CHUNK_SIZE)
    print(f"[OK] Uploaded {args.local} to {args.path}")
    return 0


def cmd_mkdir(fs: DriveFileSystem, args) -> int:
    fs.make_container(args.path)
    print(f"[OK] Created directory {args.path}")
    return 0


def cmd_rm(fs: DriveFileSystem, args) -> int:
    fs.remove_recursive(args.path)
    print(f"[OK] Removed {args.path}")
    return 0


COMMANDS = {
    "ls": cmd_ls,
    "stat": cmd_stat,
    "get": cmd_get,
    "put": cmd_put,
    "mkdir": cmd_mkdir,
    "rm": cmd_rm,
}


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    handler = COMMANDS.get(args.command)
    if handler is None:
        print("Usage: gdrive-davfs <command> [options]")
        print()
        print("Commands:")
        print("  ls       List a directory")
        print("  stat     Show metadata for a path")
        print("  get      Download a file")
        print("  put      Upload a new file")
        print("  mkdir    Create a directory")
        print("  rm       Remove a file or directory")
        print()
        print("Run 'gdrive-davfs <command> --help' for more information.")
        return 1

    try:
        fs = open_filesystem(args)
    except ValueError as e:
        print(f"[ERROR] Configuration error: {e}")
        return 1
    except FileNotFoundError as e:
        print(f"[ERROR] {e}")
        return 1

    try:
        return handler(fs, args)
    except DriveFSError as e:
        logger.error("%s %s failed: %s", args.command, getattr(args, "path", ""), e)
        print(f"[ERROR] {e.kind.value}: {e}")
        return 1
    except OSError as e:
        print(f"[ERROR] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
