"""
Unit tests for the file dispatcher.
"""

import errno
import os
import shutil
import tempfile
from pathlib import Path

import pytest

from file_router.dispatcher import (
    ConflictError,
    DispatchError,
    FileDispatcher,
    FileLockedError,
    is_lock_error,
    move_file,
)
from file_router.resolvers import FixedConflictResolver
from file_router.types import (
    NO_MATCH,
    ConflictResolution,
    DispatchOutcome,
    RoutingDecision,
)


class RecordingResolver:
    """Resolver that records every call and returns a fixed answer."""

    def __init__(self, resolution: ConflictResolution):
        self.resolution = resolution
        self.calls = []

    def resolve(self, source_path, dest_path):
        self.calls.append((source_path, dest_path))
        return self.resolution


def fixed_strategy(dest_dir, dest_name=None):
    """Strategy that sends every file to the same place."""
    return lambda filename, dest_root: RoutingDecision(dest_dir=str(dest_dir), dest_name=dest_name)


def no_match_strategy(filename, dest_root):
    return NO_MATCH


def make_file(path: Path, content: str = "test") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def make_symlink(target: Path, link: Path) -> None:
    try:
        os.symlink(target, link)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not supported here")


class TestDryRun:
    """Tests for dry-run dispatch."""

    def test_dry_run_does_not_move(self):
        """Dry run reports the destination but leaves everything in place."""
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            src = make_file(base / "source" / "report.pdf")
            dest_root = base / "dest"

            result = FileDispatcher(dest_root).dispatch(src, dry_run=True)

            assert result.outcome == DispatchOutcome.DRY_RUN
            assert result.source_path == str(src)
            assert result.dest_path == os.path.join(str(dest_root), "pdf", "moved-report.pdf")
            assert src.exists()
            assert not dest_root.exists()  # No directory created

    def test_dry_run_with_missing_source(self):
        """Dry run never touches the filesystem, so the source need not exist."""
        dest_dir = os.path.join(os.sep, "sorted", "docs")
        dispatcher = FileDispatcher("unused", fixed_strategy(dest_dir, "renamed.txt"))

        result = dispatcher.dispatch(os.path.join(os.sep, "drop", "somefile.txt"), dry_run=True)

        assert result.outcome == DispatchOutcome.DRY_RUN
        assert result.dest_path == os.path.join(dest_dir, "renamed.txt")

    def test_dry_run_without_dest_name_keeps_filename(self):
        dest_dir = os.path.join(os.sep, "sorted", "docs")
        dispatcher = FileDispatcher("unused", fixed_strategy(dest_dir))

        result = dispatcher.dispatch(os.path.join(os.sep, "drop", "somefile.txt"), dry_run=True)

        assert result.dest_path == os.path.join(dest_dir, "somefile.txt")

    def test_dry_run_ignores_existing_destination(self):
        """Dry run does not consult the resolver even if the destination exists."""
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            src = make_file(base / "a.txt", "new")
            existing = make_file(base / "dest" / "a.txt", "old")
            resolver = RecordingResolver(ConflictResolution.OVERWRITE)

            dispatcher = FileDispatcher(base, fixed_strategy(base / "dest"))
            result = dispatcher.dispatch(src, dry_run=True, resolver=resolver)

            assert result.outcome == DispatchOutcome.DRY_RUN
            assert resolver.calls == []
            assert existing.read_text() == "old"
            assert src.exists()


class TestNoMatch:
    """Tests for files with no routing match."""

    def test_no_match_returns_skipped(self):
        source = os.path.join(os.sep, "drop", "somefile.txt")

        result = FileDispatcher("unused", no_match_strategy).dispatch(source)

        assert result.outcome == DispatchOutcome.SKIPPED
        assert result.source_path == source
        assert result.dest_path is None

    def test_no_match_leaves_file_in_place(self):
        with tempfile.TemporaryDirectory() as tmp:
            src = make_file(Path(tmp) / "unrecognized.xyz")

            result = FileDispatcher(Path(tmp) / "dest", no_match_strategy).dispatch(src)

            assert result.outcome == DispatchOutcome.SKIPPED
            assert src.exists()
            assert not (Path(tmp) / "dest").exists()

    def test_strategy_receives_bare_filename_and_root(self):
        seen = []

        def strategy(filename, dest_root):
            seen.append((filename, dest_root))
            return NO_MATCH

        FileDispatcher("/sorted", strategy).dispatch(os.path.join("drop", "x.txt"))

        assert seen == [("x.txt", "/sorted")]


class TestMove:
    """Tests for moves to a free destination."""

    def test_moves_file_to_bucket(self):
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            src = make_file(base / "source" / "report.pdf", "pdf-bytes")
            dest_root = base / "dest"

            result = FileDispatcher(dest_root).dispatch(src)

            expected = dest_root / "pdf" / "moved-report.pdf"
            assert result.outcome == DispatchOutcome.MOVED
            assert result.dest_path == str(expected)
            assert not src.exists()
            assert expected.read_text() == "pdf-bytes"

    def test_renames_file_at_destination(self):
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            src = make_file(base / "original.txt")

            result = FileDispatcher(base, fixed_strategy(base / "Dest", "renamed.txt")).dispatch(src)

            assert result.outcome == DispatchOutcome.MOVED
            assert not src.exists()
            assert (base / "Dest" / "renamed.txt").exists()

    def test_creates_missing_destination_tree(self):
        """All intermediate folders are created."""
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            src = make_file(base / "file.txt")
            dest_dir = base / "NonExistent" / "SubDir"

            FileDispatcher(base, fixed_strategy(dest_dir)).dispatch(src)

            assert dest_dir.is_dir()
            assert (dest_dir / "file.txt").exists()

    def test_resolver_not_called_without_conflict(self):
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            src = make_file(base / "file.txt")
            resolver = RecordingResolver(ConflictResolution.SKIP)

            result = FileDispatcher(base / "dest").dispatch(src, resolver=resolver)

            assert result.outcome == DispatchOutcome.MOVED
            assert resolver.calls == []


class TestConflicts:
    """Tests for destinations that already exist."""

    def test_skip_leaves_both_files_intact(self):
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            dest_file = make_file(base / "Dest" / "file.txt", "existing")
            src = make_file(base / "file.txt", "new")
            resolver = RecordingResolver(ConflictResolution.SKIP)

            dispatcher = FileDispatcher(base, fixed_strategy(base / "Dest"))
            result = dispatcher.dispatch(src, resolver=resolver)

            assert result.outcome == DispatchOutcome.SKIPPED
            assert result.dest_path == str(dest_file)
            assert src.read_text() == "new"
            assert dest_file.read_text() == "existing"

    def test_resolver_called_once_with_both_paths(self):
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            dest_file = make_file(base / "Dest" / "file.txt")
            src = make_file(base / "file.txt")
            resolver = RecordingResolver(ConflictResolution.SKIP)

            FileDispatcher(base, fixed_strategy(base / "Dest")).dispatch(src, resolver=resolver)

            assert resolver.calls == [(str(src), str(dest_file))]

    def test_overwrite_replaces_destination(self):
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            dest_file = make_file(base / "Dest" / "file.txt", "existing")
            src = make_file(base / "file.txt", "new-content")

            dispatcher = FileDispatcher(base, fixed_strategy(base / "Dest"))
            result = dispatcher.dispatch(
                src, resolver=FixedConflictResolver(ConflictResolution.OVERWRITE)
            )

            assert result.outcome == DispatchOutcome.OVERWRITTEN
            assert result.dest_path == str(dest_file)
            assert not src.exists()
            assert dest_file.read_text() == "new-content"

    def test_no_resolver_raises_conflict_error(self):
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            dest_file = make_file(base / "Dest" / "file.txt", "existing")
            src = make_file(base / "file.txt", "new")

            dispatcher = FileDispatcher(base, fixed_strategy(base / "Dest"))
            with pytest.raises(ConflictError) as exc_info:
                dispatcher.dispatch(src)

            assert exc_info.value.source_path == str(src)
            assert exc_info.value.dest_path == str(dest_file)
            # No mutation
            assert src.read_text() == "new"
            assert dest_file.read_text() == "existing"

    def test_dangling_symlink_at_destination_is_a_conflict(self):
        """A broken link still occupies the destination name."""
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            src = make_file(base / "f.txt", "new")
            link = base / "Dest" / "f.txt"
            link.parent.mkdir()
            make_symlink(base / "missing-target", link)

            dispatcher = FileDispatcher(base, fixed_strategy(base / "Dest"))
            with pytest.raises(ConflictError):
                dispatcher.dispatch(src)

            assert link.is_symlink()
            assert src.read_text() == "new"

    def test_dangling_symlink_goes_to_resolver(self):
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            src = make_file(base / "f.txt", "new")
            link = base / "Dest" / "f.txt"
            link.parent.mkdir()
            make_symlink(base / "missing-target", link)
            resolver = RecordingResolver(ConflictResolution.SKIP)

            dispatcher = FileDispatcher(base, fixed_strategy(base / "Dest"))
            result = dispatcher.dispatch(src, resolver=resolver)

            assert result.outcome == DispatchOutcome.SKIPPED
            assert resolver.calls == [(str(src), str(link))]
            assert link.is_symlink()

    def test_conflict_error_is_dispatch_error(self):
        err = ConflictError("/a", "/b")

        assert isinstance(err, DispatchError)
        assert isinstance(err, OSError)
        assert "/a" in str(err) and "/b" in str(err)

    def test_unknown_resolution_rejected(self):
        class BadResolver:
            def resolve(self, source_path, dest_path):
                return "maybe"

        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            make_file(base / "Dest" / "file.txt", "existing")
            src = make_file(base / "file.txt", "new")

            dispatcher = FileDispatcher(base, fixed_strategy(base / "Dest"))
            with pytest.raises(ValueError):
                dispatcher.dispatch(src, resolver=BadResolver())

            assert src.exists()


class TestLockClassification:
    """Tests for locked-file detection."""

    def test_posix_busy_is_lock(self):
        assert is_lock_error(OSError(errno.EBUSY, "Device or resource busy"))

    def test_windows_sharing_violation_is_lock(self):
        err = PermissionError(errno.EACCES, "The process cannot access the file")
        err.winerror = 32
        assert is_lock_error(err)

    def test_windows_lock_violation_is_lock(self):
        err = PermissionError(errno.EACCES, "Lock violation")
        err.winerror = 33
        assert is_lock_error(err)

    def test_access_denied_is_not_lock(self):
        err = PermissionError(errno.EACCES, "Access is denied")
        err.winerror = 5
        assert not is_lock_error(err)

    def test_not_found_is_not_lock(self):
        assert not is_lock_error(FileNotFoundError(errno.ENOENT, "No such file"))

    def test_locked_source_raises_file_locked_error(self, monkeypatch):
        busy = OSError(errno.EBUSY, "Device or resource busy")

        def fake_move(src, dest):
            raise busy

        monkeypatch.setattr(shutil, "move", fake_move)

        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            src = make_file(base / "locked.txt")

            with pytest.raises(FileLockedError) as exc_info:
                FileDispatcher(base / "dest").dispatch(src)

            assert exc_info.value.source_path == str(src)
            assert exc_info.value.__cause__ is busy
            assert src.exists()

    def test_locked_source_on_overwrite(self, monkeypatch):
        def fake_replace(src, dest):
            err = PermissionError(errno.EACCES, "in use")
            err.winerror = 32
            raise err

        monkeypatch.setattr(os, "replace", fake_replace)

        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            make_file(base / "Dest" / "file.txt", "existing")
            src = make_file(base / "file.txt", "new")

            dispatcher = FileDispatcher(base, fixed_strategy(base / "Dest"))
            with pytest.raises(FileLockedError):
                dispatcher.dispatch(
                    src, resolver=FixedConflictResolver(ConflictResolution.OVERWRITE)
                )

    def test_other_errors_propagate_unchanged(self, monkeypatch):
        denied = PermissionError(errno.EACCES, "Permission denied")

        def fake_move(src, dest):
            raise denied

        monkeypatch.setattr(shutil, "move", fake_move)

        with tempfile.TemporaryDirectory() as tmp:
            src = make_file(Path(tmp) / "file.txt")

            with pytest.raises(PermissionError) as exc_info:
                FileDispatcher(Path(tmp) / "dest").dispatch(src)

            assert exc_info.value is denied


class TestMoveFile:
    """Tests for the move_file helper."""

    def test_overwrite_across_devices_falls_back(self, monkeypatch):
        """EXDEV from os.replace falls back to shutil.move."""
        calls = []

        def fake_replace(src, dest):
            raise OSError(errno.EXDEV, "Invalid cross-device link")

        def fake_move(src, dest):
            calls.append((src, dest))

        monkeypatch.setattr(os, "replace", fake_replace)
        monkeypatch.setattr(shutil, "move", fake_move)

        with tempfile.TemporaryDirectory() as tmp:
            src = os.path.join(tmp, "a.txt")
            dest = os.path.join(tmp, "out", "a.txt")

            move_file(src, dest, overwrite=True)

            assert calls == [(src, dest)]
            assert os.path.isdir(os.path.join(tmp, "out"))

    def test_accepts_path_objects(self):
        with tempfile.TemporaryDirectory() as tmp:
            src = make_file(Path(tmp) / "a.txt", "x")
            dest = Path(tmp) / "deep" / "er" / "b.txt"

            move_file(src, dest)

            assert dest.read_text() == "x"
            assert not src.exists()


class TestLoggerHandle:
    """Tests for the injectable logger."""

    def test_uses_given_logger(self, caplog):
        import logging

        custom = logging.getLogger("tests.custom_dispatch_logger")
        dispatcher = FileDispatcher("unused", no_match_strategy, logger=custom)

        with caplog.at_level(logging.WARNING, logger="tests.custom_dispatch_logger"):
            dispatcher.dispatch("odd")

        assert any(r.name == "tests.custom_dispatch_logger" for r in caplog.records)
