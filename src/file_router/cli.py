"""
Command-line interface for the file router.

This module is responsible for:
- Parsing command-line arguments using argparse
- Reading source/destination folders from the settings file
- Configuring logging based on verbosity level
- Running the dispatch batch and reporting the summary
"""

import argparse
import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from . import PRODUCT_DESCRIPTION, PRODUCT_NAME, __version__
from .batch import dispatch_all
from .dispatcher import ConflictError, FileDispatcher, FileLockedError
from .report import ReportWriter
from .resolvers import (
    ConflictResolver,
    FixedConflictResolver,
    InteractiveConflictResolver,
)
from .scanner import scan_files
from .settings import SettingsStore, default_settings_path
from .types import ConflictResolution

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="file-router",
        description=f"""
{PRODUCT_NAME} - {PRODUCT_DESCRIPTION}

Moves every file in the source folder into DEST/<extension>/moved-<name>.
Files without an extension go to DEST/misc. Subfolders of the source
folder are left alone.
        """.strip(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Use folders from appsettings.json in the current directory
  %(prog)s

  # Preview with dry-run
  %(prog)s --dry-run

  # Override the configured folders
  %(prog)s --source C:\\Inbox --dest C:\\Sorted

  # Never prompt, keep existing destination files
  %(prog)s --on-conflict skip

  # Write a CSV report and a daily log file
  %(prog)s --report run.csv --log-file logs\\file-router.log
        """
    )

    parser.add_argument(
        "-n", "--dry-run",
        action="store_true",
        dest="dry_run",
        help="Preview operations without moving files"
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        metavar="JSON_FILE",
        help="Settings file with source/destination folders (default: ./appsettings.json)"
    )
    parser.add_argument(
        "--source",
        type=Path,
        default=None,
        metavar="DIR",
        help="Source folder (overrides the settings file)"
    )
    parser.add_argument(
        "--dest",
        type=Path,
        default=None,
        metavar="DIR",
        help="Destination root (overrides the settings file)"
    )
    parser.add_argument(
        "--on-conflict",
        type=str,
        choices=["prompt", "skip", "overwrite", "fail"],
        default="prompt",
        dest="on_conflict",
        metavar="ACTION",
        help="When the destination exists: 'prompt' (default), 'skip', 'overwrite' or 'fail'"
    )
    parser.add_argument(
        "-r", "--report",
        type=Path,
        default=None,
        metavar="CSV_FILE",
        help="Write a CSV report of every file processed"
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        metavar="PATH",
        help="Also log to PATH, rotated daily"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase output verbosity (-v for INFO, -vv for DEBUG)"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=__version__
    )

    return parser


def setup_logging(
    verbosity: int, log_file: Optional[Path] = None
) -> Optional[logging.Handler]:
    """
    Configure logging based on verbosity level.

    Returns:
        The file handler added for log_file, which the caller must remove
        with teardown_logging(), or None
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.TimedRotatingFileHandler(
            log_file, when="midnight", encoding="utf-8"
        )
        handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
        # File log always records the full run
        handler.setLevel(logging.INFO)
        root_logger = logging.getLogger()
        root_logger.addHandler(handler)
        root_logger.setLevel(min(level, logging.INFO))
        return handler

    return None


def teardown_logging(handler: Optional[logging.Handler]) -> None:
    """Detach and close a handler returned by setup_logging()."""
    if handler is not None:
        logging.getLogger().removeHandler(handler)
        handler.close()


def build_resolver(on_conflict: str) -> Optional[ConflictResolver]:
    """Create the conflict resolver for an --on-conflict choice."""
    if on_conflict == "prompt":
        return InteractiveConflictResolver()
    if on_conflict == "skip":
        return FixedConflictResolver(ConflictResolution.SKIP)
    if on_conflict == "overwrite":
        return FixedConflictResolver(ConflictResolution.OVERWRITE)
    return None


def resolve_folders(args: argparse.Namespace) -> Optional[Dict[str, Path]]:
    """
    Work out the source and destination folders.

    Command-line values win over the settings file.

    Returns:
        Dict with "source" and "dest" paths, or None if either is missing
    """
    settings = SettingsStore(args.config or default_settings_path()).load()

    source = args.source or (Path(settings.source_folder) if settings.source_folder else None)
    dest = args.dest or (Path(settings.destination_folder) if settings.destination_folder else None)

    missing = []
    if source is None:
        missing.append("FileRouter:SourceFolder is not configured (use --source)")
    if dest is None:
        missing.append("FileRouter:DestinationFolder is not configured (use --dest)")

    for error in missing:
        logger.error(error)
        print(f"Error: {error}", file=sys.stderr)

    if missing:
        return None
    return {"source": source, "dest": dest}


def validate_source(source: Path) -> bool:
    """Check that the source folder exists before any file is dispatched."""
    if source.is_dir():
        return True

    if source.exists():
        error = f"Source folder is not a directory: {source}"
    else:
        error = f"Source folder does not exist: {source}"
    logger.error(error)
    print(f"Error: {error}", file=sys.stderr)
    return False


def get_run_parameters(args: argparse.Namespace, source: Path, dest: Path) -> Dict[str, str]:
    """Run parameters recorded at the top of the report."""
    return {
        "version": __version__,
        "timestamp": datetime.now().isoformat(),
        "source": str(source),
        "dest": str(dest),
        "dry_run": str(args.dry_run),
        "on_conflict": args.on_conflict,
    }


def main(argv: list = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 on completion, 1 on a locked file, conflict or bad folders)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    file_handler = setup_logging(args.verbose, args.log_file)
    try:
        return run(args)
    finally:
        teardown_logging(file_handler)


def run(args: argparse.Namespace) -> int:
    """
    Run one dispatch batch for parsed arguments.

    Report rows are written as each file is dispatched, so a run halted by
    a locked file or a conflict still leaves a report of what was done,
    ending with an ERROR row for the file that stopped it.
    """
    logger.info(f"{PRODUCT_NAME} v{__version__}")
    logger.debug(f"Arguments: {args}")

    folders = resolve_folders(args)
    if folders is None:
        return 1
    source, dest = folders["source"], folders["dest"]

    if not validate_source(source):
        return 1

    if args.dry_run:
        print("Dry-run mode enabled - no files will be moved.")

    writer = ReportWriter(args.report) if args.report else None

    try:
        files = scan_files(source)

        if writer is not None:
            writer.open()
            writer.write_parameters(get_run_parameters(args, source, dest))

        dispatcher = FileDispatcher(dest)
        summary = dispatch_all(
            dispatcher,
            files,
            dry_run=args.dry_run,
            resolver=build_resolver(args.on_conflict),
            halt_on_error=True,
            result_callback=writer.write_result if writer is not None else None,
        )

        print(f"Done. {summary.format()}")
        return 0

    except FileLockedError as e:
        if writer is not None:
            writer.write_error(e.source_path, e)
        print(f"Error: {e}", file=sys.stderr)
        logger.error(f"File is locked and cannot be moved: {e.source_path}")
        return 1

    except ConflictError as e:
        if writer is not None:
            writer.write_error(e.source_path, e)
        print(f"Error: {e}", file=sys.stderr)
        logger.error(f"Destination already exists: {e.dest_path}")
        return 1

    except KeyboardInterrupt:
        print("\n\nOperation cancelled by user.", file=sys.stderr)
        return 130

    except Exception as e:
        print(f"\nUnexpected error: {e}", file=sys.stderr)
        logger.exception("Unexpected error")
        return 1

    finally:
        if writer is not None:
            writer.close()
            if writer.report_path.exists():
                print(f"Report saved to: {writer.report_path}")


if __name__ == "__main__":
    sys.exit(main())
