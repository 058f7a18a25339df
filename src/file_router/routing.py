"""
Routing rules that decide where a file belongs.

A routing strategy is any callable taking a bare filename and the
destination root and returning a RoutingDecision. The default strategy,
route(), buckets files by lowercase extension and prefixes the name
with "moved-".
"""

import os
from typing import Callable

from .types import NO_MATCH, RoutingDecision

# Signature every routing strategy must follow
RoutingStrategy = Callable[[str, str], RoutingDecision]

# Bucket for files without an extension
MISC_BUCKET = "misc"

# Prefix added to every routed filename
MOVED_PREFIX = "moved-"


def extension_bucket(filename: str) -> str:
    """
    Get the bucket folder name for a filename.

    The bucket is the text after the final '.', lowercased. Names with no
    dot, or a trailing dot, go to the misc bucket.

    Args:
        filename: Bare filename (e.g., "video.MP4")

    Returns:
        Bucket name (e.g., "mp4")
    """
    _, dot, ext = filename.rpartition(".")
    if not dot or not ext:
        return MISC_BUCKET
    return ext.lower()


def route(filename: str, dest_root: str) -> RoutingDecision:
    """
    Route a filename into an extension bucket under dest_root.

    Examples:
        route("report.pdf", "/sorted")  -> /sorted/pdf, moved-report.pdf
        route("Makefile", "/sorted")    -> /sorted/misc, moved-Makefile
        route("video.MP4", "/sorted")   -> /sorted/mp4, moved-video.MP4

    Args:
        filename: Bare filename with no directory component
        dest_root: Root of the destination tree

    Returns:
        RoutingDecision, or NO_MATCH for an empty filename
    """
    if not filename:
        return NO_MATCH

    return RoutingDecision(
        dest_dir=os.path.join(str(dest_root), extension_bucket(filename)),
        dest_name=MOVED_PREFIX + filename,
    )
