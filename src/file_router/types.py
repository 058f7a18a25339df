"""
Type definitions and data classes for the file router.

This module defines:
- RoutingDecision: Where a file should go (or nowhere)
- NO_MATCH: The canonical "leave it in place" decision
- DispatchOutcome: Enum for dispatch outcomes
- DispatchResult: Data class describing a single dispatch
- ConflictResolution: Enum for answers to a destination conflict
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class RoutingDecision:
    """
    The output of a routing strategy for one filename.

    Attributes:
        dest_dir: Destination directory, or None when no rule matched
        dest_name: Destination filename, or None to keep the source name
    """
    dest_dir: Optional[str] = None
    dest_name: Optional[str] = None

    @property
    def is_match(self) -> bool:
        return self.dest_dir is not None


NO_MATCH = RoutingDecision()


class DispatchOutcome(Enum):
    """Outcome of a single dispatch call."""
    MOVED = "moved"              # Moved to a free destination
    SKIPPED = "skipped"          # No route, or conflict resolved as skip
    OVERWRITTEN = "overwritten"  # Replaced an existing destination file
    DRY_RUN = "dry_run"          # Would move (dry run mode)


@dataclass(frozen=True)
class DispatchResult:
    """Result of a dispatch call."""
    outcome: DispatchOutcome
    source_path: str
    dest_path: Optional[str] = None


class ConflictResolution(Enum):
    """Answer from a conflict resolver."""
    OVERWRITE = "overwrite"
    SKIP = "skip"
