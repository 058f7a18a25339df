"""
Conflict resolvers consulted when a destination file already exists.

A resolver answers one question: overwrite the existing destination or
skip the source file. This module provides:
- ConflictResolver: the protocol every resolver follows
- InteractiveConflictResolver: terminal prompt
- FixedConflictResolver: always gives the same answer (non-interactive runs)
- UIThreadConflictResolver: forwards to another resolver on the UI thread
"""

import logging
import sys
import threading
from typing import Callable, Optional, Protocol, TextIO

from .types import ConflictResolution

logger = logging.getLogger(__name__)


class ConflictResolver(Protocol):
    """Decides what to do when the destination path is occupied."""

    def resolve(self, source_path: str, dest_path: str) -> ConflictResolution:
        ...


class InteractiveConflictResolver:
    """Prompts at the terminal until the user answers O or S."""

    def __init__(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None):
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout

    def resolve(self, source_path: str, dest_path: str) -> ConflictResolution:
        self.stdout.write(f"File already exists at '{dest_path}'. [O]verwrite / [S]kip? ")
        self.stdout.flush()

        while True:
            line = self.stdin.readline()
            if not line:
                # EOF - non-interactive environment
                self.stdout.write("\n")
                logger.info(f"No answer for conflict on '{dest_path}', skipping")
                return ConflictResolution.SKIP

            answer = line.strip().lower()
            if answer == "o":
                return ConflictResolution.OVERWRITE
            if answer == "s":
                return ConflictResolution.SKIP

            self.stdout.write("  Please enter O to overwrite or S to skip: ")
            self.stdout.flush()


class FixedConflictResolver:
    """Resolves every conflict the same way."""

    def __init__(self, resolution: ConflictResolution):
        self.resolution = resolution

    def resolve(self, source_path: str, dest_path: str) -> ConflictResolution:
        return self.resolution


class UIThreadConflictResolver:
    """
    Runs another resolver on the thread that owns the UI.

    The worker thread calling resolve() blocks until the UI thread has
    answered. The post callable must schedule a zero-argument function on
    the UI thread; for tkinter this is ``lambda fn: root.after(0, fn)``.

    Must be constructed on the UI thread. Calls made from that thread go
    straight to the inner resolver.
    """

    def __init__(
        self,
        inner: ConflictResolver,
        post: Callable[[Callable[[], None]], object]
    ):
        self.inner = inner
        self.post = post
        self._owner = threading.get_ident()

    def resolve(self, source_path: str, dest_path: str) -> ConflictResolution:
        if threading.get_ident() == self._owner:
            return self.inner.resolve(source_path, dest_path)

        done = threading.Event()
        outcome = {}

        def run_on_ui_thread() -> None:
            try:
                outcome["value"] = self.inner.resolve(source_path, dest_path)
            except BaseException as e:
                outcome["error"] = e
            finally:
                done.set()

        self.post(run_on_ui_thread)
        done.wait()

        if "error" in outcome:
            raise outcome["error"]
        return outcome["value"]
