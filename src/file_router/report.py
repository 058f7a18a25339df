"""
CSV report writer for documenting dispatch runs.

This module is responsible for:
- Creating CSV reports with one row per dispatched file
- Writing each row as its file is dispatched, so a halted run still
  leaves a report of the files handled before the failure
- Recording run parameters at the top of the report
- Recording per-file failures (locked files, conflicts)
"""

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, TextIO, Union

from .types import DispatchOutcome, DispatchResult

logger = logging.getLogger(__name__)

# CSV column headers in order
REPORT_COLUMNS = [
    "timestamp",
    "status",
    "source_path",
    "dest_path",
    "message",
]

# Status written for failures and parameter rows
ERROR_STATUS = "ERROR"
PARAMETER_STATUS = "PARAMETER"

_OUTCOME_MESSAGES = {
    DispatchOutcome.MOVED: "Moved",
    DispatchOutcome.OVERWRITTEN: "Moved, replacing existing file",
    DispatchOutcome.DRY_RUN: "Would move (dry run)",
}


def describe_result(result: DispatchResult) -> str:
    """Human-readable message for a dispatch result."""
    if result.outcome == DispatchOutcome.SKIPPED:
        if result.dest_path is None:
            return "No routing rule matched"
        return "Destination exists, skipped"
    return _OUTCOME_MESSAGES[result.outcome]


class ReportWriter:
    """
    Streaming CSV report writer for dispatch runs.
    """

    def __init__(self, report_path: Union[str, Path]):
        """
        Initialize the report writer.

        Args:
            report_path: Path where the CSV report will be written
        """
        self.report_path = Path(report_path)

        self._file: Optional[TextIO] = None
        self._writer = None
        self._row_count = 0

    def __enter__(self):
        """Context manager entry - opens the file."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - closes the file."""
        self.close()
        return False

    def open(self) -> None:
        """Open the report file for writing."""
        if self._file is not None:
            return

        self.report_path.parent.mkdir(parents=True, exist_ok=True)

        logger.info(f"Opening report file: {self.report_path}")
        self._file = open(self.report_path, "w", newline="", encoding="utf-8")
        self._writer = csv.writer(self._file, quoting=csv.QUOTE_MINIMAL)
        self._writer.writerow(REPORT_COLUMNS)

    def close(self) -> None:
        """Close the report file."""
        if self._file is not None:
            self._file.close()
            self._file = None
            self._writer = None
            logger.info(
                f"Report closed: {self._row_count} rows written to {self.report_path}"
            )

    def _ensure_open(self) -> None:
        if self._file is None:
            self.open()

    def _write_row(self, status: str, source_path: str, dest_path: str, message: str) -> None:
        self._ensure_open()
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        self._writer.writerow([timestamp, status, source_path, dest_path, message])
        self._row_count += 1

        # Flush periodically for safety
        if self._row_count % 100 == 0:
            self._file.flush()

    def write_parameters(self, params: Dict[str, str]) -> None:
        """
        Write run parameters as PARAMETER rows.

        Empty values are left out.

        Args:
            params: Dictionary of parameter names to values
        """
        self._ensure_open()
        for key, value in params.items():
            if value:
                self._write_row(PARAMETER_STATUS, "", "", f"{key}={value}")
        self._file.flush()

    def write_result(self, result: DispatchResult) -> None:
        """Write a DispatchResult row."""
        self._write_row(
            result.outcome.name,
            result.source_path,
            result.dest_path or "",
            describe_result(result),
        )

    def write_error(self, source_path: str, error: Exception) -> None:
        """Write an ERROR row for a failed file."""
        self._write_row(
            ERROR_STATUS,
            source_path,
            getattr(error, "dest_path", "") or "",
            f"{type(error).__name__}: {error}",
        )

    def get_row_count(self) -> int:
        """Get total number of rows written."""
        return self._row_count
