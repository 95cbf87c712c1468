#!/usr/bin/env python3
"""
CLI for watching a remote Dropbox folder.

Usage:
    python -m src.cli watch /Photos --recursive
    python -m src.cli watch "" --timeout 60 -v
"""

import argparse
import logging
import signal
import sys
from pathlib import Path

from dotenv import load_dotenv

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.folder_watcher import (
    DirMode,
    DropboxClient,
    DropboxConfig,
    FolderChanges,
    FolderWatcher,
    WatcherCancelledError,
    WatcherConfig,
    WatcherError,
)


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("cli")


class GracefulShutdown:
    """Handle graceful shutdown on SIGINT/SIGTERM."""

    def __init__(self):
        self.should_exit = False
        signal.signal(signal.SIGINT, self._handler)
        signal.signal(signal.SIGTERM, self._handler)

    def _handler(self, signum, frame):
        logger.info("Received shutdown signal, stopping...")
        self.should_exit = True


def _log_changes(watcher: FolderWatcher, changes: FolderChanges) -> None:
    logger.info(
        f"{len(changes.added)} added, {len(changes.updated)} updated, "
        f"{len(changes.removed)} removed"
    )
    for entry_id in changes.added + changes.updated:
        entry = watcher.entries.lookup_by_id(entry_id)
        if entry is None:
            continue
        image_type = entry.image_type(watcher.config.image_extensions)
        kind = "added" if entry_id in changes.added else "updated"
        suffix = f" [{image_type}]" if image_type else ""
        logger.info(f"  {kind}: {entry.path_display or entry.path_lower}{suffix}")
    for entry_id in changes.removed:
        logger.info(f"  removed: {entry_id}")


def cmd_watch(args) -> int:
    """Watch a remote folder and log every change."""
    dir_mode = DirMode.RECURSIVE if args.recursive else DirMode.SHALLOW
    config = WatcherConfig(longpoll_timeout_s=args.timeout)

    try:
        config.validate()
        client = DropboxClient(DropboxConfig(access_token=args.token))
    except WatcherError as e:
        logger.error(str(e))
        return 1
    watcher = FolderWatcher(client, args.path, dir_mode, config=config)

    shutdown = GracefulShutdown()

    with client:
        watcher.start(lambda changes: _log_changes(watcher, changes))
        logger.info("Press Ctrl+C to stop")

        outcome = None
        while outcome is None and not shutdown.should_exit:
            outcome = watcher.wait(timeout=0.5)

        if outcome is None:
            watcher.cancel()
            # An in-flight long-poll is not interrupted
            outcome = watcher.wait(timeout=5.0)

    if outcome is None or isinstance(outcome, WatcherCancelledError):
        logger.info("Watcher stopped")
        return 0
    logger.error(f"Watcher failed: {outcome}")
    return 1


def main():
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Watch a remote Dropbox folder for changes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Watch the top level of a folder
  python -m src.cli watch /Documents

  # Watch a whole subtree with a longer long-poll wait
  python -m src.cli watch /Photos --recursive --timeout 120
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    watch_parser = subparsers.add_parser("watch", help="Watch a remote folder")
    watch_parser.add_argument("path", help="Remote folder path (\"\" for the root)")
    watch_parser.add_argument("--recursive", action="store_true", help="Watch all descendants")
    watch_parser.add_argument("--timeout", type=int, default=30, help="Long-poll wait in seconds (30-480)")
    watch_parser.add_argument("--token", help="Access token (or set DROPBOX_ACCESS_TOKEN)")
    watch_parser.set_defaults(func=cmd_watch)

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    else:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
