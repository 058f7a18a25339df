"""
File dispatcher for routing and moving individual files.

This module is responsible for:
- Asking a routing strategy where each file belongs
- Moving files into their destination, creating folders as needed
- Supporting dry-run mode (no filesystem I/O at all)
- Consulting a conflict resolver when the destination is occupied
- Reclassifying lock/sharing violations as FileLockedError
- Logging all operations
"""

import errno
import logging
import os
import shutil
from pathlib import Path
from typing import Optional, Union

from .resolvers import ConflictResolver
from .routing import RoutingStrategy, route
from .types import ConflictResolution, DispatchOutcome, DispatchResult

logger = logging.getLogger(__name__)

# Windows error codes for ERROR_SHARING_VIOLATION and ERROR_LOCK_VIOLATION
WINDOWS_LOCK_ERRORS = {32, 33}

# POSIX errno values raised when a file is busy
POSIX_LOCK_ERRNOS = {errno.EBUSY, errno.ETXTBSY}


class DispatchError(OSError):
    """Base class for failures reported by the dispatcher."""
    pass


class ConflictError(DispatchError):
    """
    Raised when the destination already exists and no resolver was given.

    Attributes:
        source_path: Full path of the file being dispatched
        dest_path: Full path of the existing destination file
    """

    def __init__(self, source_path: str, dest_path: str):
        super().__init__(
            f"Destination file already exists and no conflict resolver was "
            f"provided. Source: '{source_path}', Destination: '{dest_path}'"
        )
        self.source_path = source_path
        self.dest_path = dest_path


class FileLockedError(DispatchError):
    """
    Raised when the source file is held open by another process.

    The underlying OSError is chained as __cause__.
    """

    def __init__(self, source_path: str):
        super().__init__(f"File is locked or in use and cannot be moved: {source_path}")
        self.source_path = source_path


def is_lock_error(exc: OSError) -> bool:
    """Check whether an OSError is a lock or sharing violation."""
    if getattr(exc, "winerror", None) in WINDOWS_LOCK_ERRORS:
        return True
    return exc.errno in POSIX_LOCK_ERRNOS


def move_file(
    src_path: Union[str, Path],
    dest_path: Union[str, Path],
    overwrite: bool = False
) -> None:
    """
    Move a single file, creating the destination folder if missing.

    Args:
        src_path: Source file path
        dest_path: Destination file path
        overwrite: If True, replace an existing destination file

    Raises:
        FileLockedError: If the source is locked by another process
        OSError: For any other filesystem failure
    """
    src_str = str(src_path)
    dest_str = str(dest_path)

    os.makedirs(os.path.dirname(dest_str) or ".", exist_ok=True)

    try:
        if overwrite:
            try:
                os.replace(src_str, dest_str)
            except OSError as e:
                # Cross-volume: fall back to copy + delete
                if e.errno != errno.EXDEV:
                    raise
                shutil.move(src_str, dest_str)
        else:
            shutil.move(src_str, dest_str)
    except OSError as e:
        if is_lock_error(e):
            raise FileLockedError(src_str) from e
        raise


class FileDispatcher:
    """
    Routes and moves individual files under a destination root.

    The routing strategy is pluggable; any callable matching
    RoutingStrategy can replace the default extension-bucket rule.
    """

    def __init__(
        self,
        dest_root: Union[str, Path],
        strategy: RoutingStrategy = route,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the dispatcher.

        Args:
            dest_root: The destination root directory passed to the strategy
            strategy: Routing strategy (default: extension buckets)
            logger: Logger to report to (default: this module's logger)
        """
        self.dest_root = str(dest_root)
        self.strategy = strategy
        self.logger = logger or logging.getLogger(__name__)

    def dispatch(
        self,
        source_path: Union[str, Path],
        dry_run: bool = False,
        resolver: Optional[ConflictResolver] = None
    ) -> DispatchResult:
        """
        Route and move one file.

        No filesystem I/O happens when the file has no route or when
        dry_run is set.

        Args:
            source_path: Full path of the file to dispatch
            dry_run: If True, report the destination without moving
            resolver: Called when the destination exists. If None, a
                      conflict raises ConflictError instead.

        Returns:
            DispatchResult describing what happened

        Raises:
            ConflictError: Destination exists (a dangling symlink counts) and
                           no resolver was given
            FileLockedError: The source file is locked
        """
        source_str = str(source_path)
        filename = os.path.basename(source_str)
        routing = self.strategy(filename, self.dest_root)

        if not routing.is_match:
            self.logger.warning(f"No routing rule matched file '{filename}'. Leaving in place.")
            return DispatchResult(DispatchOutcome.SKIPPED, source_str)

        dest_str = os.path.join(routing.dest_dir, routing.dest_name or filename)

        if dry_run:
            self.logger.info(f"[DRY RUN] Would move '{source_str}' -> '{dest_str}'")
            return DispatchResult(DispatchOutcome.DRY_RUN, source_str, dest_str)

        if os.path.lexists(dest_str):
            if resolver is None:
                raise ConflictError(source_str, dest_str)

            resolution = resolver.resolve(source_str, dest_str)

            if resolution == ConflictResolution.SKIP:
                self.logger.warning(
                    f"Conflict: '{dest_str}' already exists. Skipping '{source_str}'."
                )
                return DispatchResult(DispatchOutcome.SKIPPED, source_str, dest_str)

            if resolution != ConflictResolution.OVERWRITE:
                raise ValueError(f"Unknown conflict resolution: {resolution!r}")

            self.logger.info(
                f"Conflict resolved as overwrite: replacing '{dest_str}' with '{source_str}'."
            )
            move_file(source_str, dest_str, overwrite=True)
            return DispatchResult(DispatchOutcome.OVERWRITTEN, source_str, dest_str)

        move_file(source_str, dest_str)
        self.logger.info(f"Moved '{source_str}' -> '{dest_str}'")
        return DispatchResult(DispatchOutcome.MOVED, source_str, dest_str)
