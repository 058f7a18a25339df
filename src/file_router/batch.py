"""
Batch loop shared by the CLI and the GUI.

Dispatches a list of files one at a time and aggregates the outcomes into
summary counts. How a DispatchError affects the rest of the batch is the
caller's choice:
- halt_on_error=True: the error propagates and the batch stops (CLI)
- halt_on_error=False: the error is counted and the batch continues (GUI)
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Tuple

from .dispatcher import DispatchError, FileDispatcher
from .resolvers import ConflictResolver
from .types import DispatchOutcome, DispatchResult

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]
ResultCallback = Callable[[DispatchResult], None]
ErrorCallback = Callable[[str, DispatchError], None]


@dataclass
class BatchSummary:
    """Aggregated outcome counts for a batch run."""
    moved: int = 0
    skipped: int = 0
    overwritten: int = 0
    dry_run: int = 0
    errors: int = 0
    stopped: bool = False
    results: List[DispatchResult] = field(default_factory=list)
    failures: List[Tuple[str, DispatchError]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.moved + self.skipped + self.overwritten + self.dry_run + self.errors

    def record(self, result: DispatchResult) -> None:
        """Count a dispatch result."""
        self.results.append(result)
        if result.outcome == DispatchOutcome.MOVED:
            self.moved += 1
        elif result.outcome == DispatchOutcome.SKIPPED:
            self.skipped += 1
        elif result.outcome == DispatchOutcome.OVERWRITTEN:
            self.overwritten += 1
        elif result.outcome == DispatchOutcome.DRY_RUN:
            self.dry_run += 1

    def record_failure(self, source_path: str, error: DispatchError) -> None:
        """Count a per-file failure."""
        self.failures.append((source_path, error))
        self.errors += 1

    def format(self) -> str:
        """One-line human-readable summary."""
        line = (
            f"Moved: {self.moved} | Skipped: {self.skipped} | "
            f"Overwritten: {self.overwritten} | Dry-run: {self.dry_run}"
        )
        if self.errors:
            line += f" | Errors: {self.errors}"
        return line


def dispatch_all(
    dispatcher: FileDispatcher,
    files: Iterable[str],
    dry_run: bool = False,
    resolver: Optional[ConflictResolver] = None,
    halt_on_error: bool = True,
    progress_callback: Optional[ProgressCallback] = None,
    should_stop: Optional[Callable[[], bool]] = None,
    result_callback: Optional[ResultCallback] = None,
    error_callback: Optional[ErrorCallback] = None
) -> BatchSummary:
    """
    Dispatch every file in order.

    Args:
        dispatcher: The dispatcher to use for each file
        files: Source file paths
        dry_run: If True, simulate every move
        resolver: Conflict resolver handed to each dispatch
        halt_on_error: Re-raise the first DispatchError instead of counting it
        progress_callback: Optional callable(current, total, path)
        should_stop: Optional callable checked before each file; returning
                     True ends the batch early
        result_callback: Optional callable(result) run as soon as each
                         file has been dispatched
        error_callback: Optional callable(path, error) run for each failure
                        counted when halt_on_error is False

    Returns:
        BatchSummary with counts and per-file results

    Raises:
        DispatchError: Only when halt_on_error is True
    """
    paths = list(files)
    total = len(paths)
    summary = BatchSummary()

    logger.info(f"Processing {total} files{' (dry run)' if dry_run else ''}...")

    for i, path in enumerate(paths):
        if should_stop is not None and should_stop():
            logger.info(f"Stop requested. {total - i} files left unprocessed.")
            summary.stopped = True
            break

        if progress_callback:
            progress_callback(i + 1, total, path)

        try:
            result = dispatcher.dispatch(path, dry_run=dry_run, resolver=resolver)
        except DispatchError as e:
            if halt_on_error:
                raise
            logger.error(f"Failed to dispatch {path}: {e}")
            summary.record_failure(path, e)
            if error_callback:
                error_callback(path, e)
            continue

        summary.record(result)
        if result_callback:
            result_callback(result)

    logger.info(f"Completed: {summary.format()}")
    return summary
