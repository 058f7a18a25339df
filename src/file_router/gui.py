"""
File Router - Desktop GUI

A Tkinter-based GUI for the file router.
Runs the dispatch batch in a background thread to keep the UI responsive;
conflict prompts are shown on the UI thread.
"""

import logging
import queue
import threading
import tkinter as tk
from pathlib import Path
from tkinter import filedialog, messagebox, scrolledtext, ttk
from typing import Callable, Dict, Optional, Union

from . import PRODUCT_DESCRIPTION, PRODUCT_NAME, __version__
from .batch import BatchSummary, dispatch_all
from .dispatcher import FileDispatcher
from .resolvers import UIThreadConflictResolver
from .scanner import scan_files
from .settings import Settings, SettingsStore, default_settings_path
from .types import ConflictResolution

logger = logging.getLogger(__name__)

LOG_PANE_FORMAT = "%(asctime)s %(levelname)-7s %(message)s"


class QueueHandler(logging.Handler):
    """Hands formatted records to the UI thread through a queue."""

    def __init__(self, log_queue: queue.Queue):
        super().__init__()
        self.log_queue = log_queue

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            self.log_queue.put(msg)
        except Exception:
            self.handleError(record)


class MessageBoxConflictResolver:
    """Asks with a Yes/No dialog whether to overwrite the destination."""

    def __init__(self, parent: Optional[tk.Misc] = None):
        self.parent = parent

    def resolve(self, source_path: str, dest_path: str) -> ConflictResolution:
        overwrite = messagebox.askyesno(
            "File Conflict",
            f"A file already exists at:\n{dest_path}\n\nOverwrite it?",
            icon="warning",
            parent=self.parent,
        )
        return ConflictResolution.OVERWRITE if overwrite else ConflictResolution.SKIP


class FileRouterGUI:
    """Main GUI application for File Router."""

    def __init__(self, root: tk.Tk, settings_path: Union[str, Path, None] = None):
        self.root = root
        self.root.title(f"{PRODUCT_NAME} v{__version__}")
        self.root.geometry("720x560")
        self.root.minsize(600, 480)

        self.settings_store = SettingsStore(settings_path or default_settings_path())

        # Queue for log messages from worker thread
        self.log_queue: queue.Queue = queue.Queue()

        # Worker thread reference
        self.worker_thread: Optional[threading.Thread] = None
        self.stop_requested = False

        settings = self.settings_store.load()

        # Variables for form fields
        self.source_root = tk.StringVar(value=settings.source_folder)
        self.dest_root = tk.StringVar(value=settings.destination_folder)
        self.dry_run = tk.BooleanVar(value=False)
        self.status_var = tk.StringVar(value="Ready")
        self.count_vars: Dict[str, tk.StringVar] = {
            name: tk.StringVar(value="0")
            for name in ("moved", "skipped", "overwritten", "dry_run", "errors")
        }

        self._create_widgets()
        self._setup_logging()

        # Start polling for log messages
        self._poll_log_queue()

        # Remember folders as soon as they change
        self.source_root.trace_add("write", self._on_folders_changed)
        self.dest_root.trace_add("write", self._on_folders_changed)

    def _create_widgets(self) -> None:
        """Create all GUI widgets."""
        main_frame = ttk.Frame(self.root, padding="10")
        main_frame.grid(row=0, column=0, sticky="nsew")
        self.root.columnconfigure(0, weight=1)
        self.root.rowconfigure(0, weight=1)
        main_frame.columnconfigure(0, weight=1)

        ttk.Label(
            main_frame,
            text=PRODUCT_NAME,
            font=("Segoe UI", 16, "bold")
        ).grid(row=0, column=0, pady=(0, 5))
        ttk.Label(
            main_frame,
            text=PRODUCT_DESCRIPTION,
            font=("Segoe UI", 9)
        ).grid(row=1, column=0, pady=(0, 15))

        # === Folder Selection Section ===
        folder_frame = ttk.LabelFrame(main_frame, text="Folders", padding="10")
        folder_frame.grid(row=2, column=0, sticky="ew", pady=5)
        folder_frame.columnconfigure(1, weight=1)

        ttk.Label(folder_frame, text="Source:").grid(row=0, column=0, sticky="w", pady=2)
        ttk.Entry(folder_frame, textvariable=self.source_root, width=60).grid(row=0, column=1, sticky="ew", padx=5)
        ttk.Button(folder_frame, text="Browse...", command=self._browse_source).grid(row=0, column=2)

        ttk.Label(folder_frame, text="Destination:").grid(row=1, column=0, sticky="w", pady=2)
        ttk.Entry(folder_frame, textvariable=self.dest_root, width=60).grid(row=1, column=1, sticky="ew", padx=5)
        ttk.Button(folder_frame, text="Browse...", command=self._browse_dest).grid(row=1, column=2)

        ttk.Checkbutton(
            folder_frame,
            text="Dry Run (preview only, no files are moved)",
            variable=self.dry_run
        ).grid(row=2, column=0, columnspan=3, sticky="w", pady=(8, 0))

        # === Buttons Section ===
        button_frame = ttk.Frame(main_frame)
        button_frame.grid(row=3, column=0, pady=10)

        self.organize_btn = ttk.Button(button_frame, text="Organize", command=self._start_operation, width=20)
        self.organize_btn.grid(row=0, column=0, padx=5)

        self.stop_btn = ttk.Button(button_frame, text="Stop", command=self._request_stop, width=20, state="disabled")
        self.stop_btn.grid(row=0, column=1, padx=5)

        # === Results Section ===
        results_frame = ttk.LabelFrame(main_frame, text="Results", padding="10")
        results_frame.grid(row=4, column=0, sticky="ew", pady=5)

        labels = [
            ("Moved", "moved"),
            ("Skipped", "skipped"),
            ("Overwritten", "overwritten"),
            ("Dry run", "dry_run"),
            ("Errors", "errors"),
        ]
        for col, (text, key) in enumerate(labels):
            ttk.Label(results_frame, text=f"{text}:").grid(row=0, column=col * 2, sticky="e", padx=(10, 2))
            ttk.Label(results_frame, textvariable=self.count_vars[key], width=5).grid(row=0, column=col * 2 + 1, sticky="w")

        # === Log Section ===
        log_frame = ttk.LabelFrame(main_frame, text="Activity", padding="5")
        log_frame.grid(row=5, column=0, sticky="nsew", pady=5)
        log_frame.columnconfigure(0, weight=1)
        log_frame.rowconfigure(0, weight=1)
        main_frame.rowconfigure(5, weight=1)

        self.log_text = scrolledtext.ScrolledText(log_frame, height=12, wrap="word", state="disabled")
        self.log_text.grid(row=0, column=0, sticky="nsew")
        ttk.Button(log_frame, text="Clear", command=self._clear_log).grid(row=1, column=0, sticky="e", pady=(5, 0))

        # === Status bar ===
        ttk.Label(main_frame, textvariable=self.status_var, relief="sunken", anchor="w").grid(
            row=6, column=0, sticky="ew", pady=(5, 0)
        )

        self._update_buttons()

    def _setup_logging(self) -> None:
        """Send file_router log records to the log pane."""
        handler = QueueHandler(self.log_queue)
        handler.setFormatter(logging.Formatter(LOG_PANE_FORMAT, "%H:%M:%S"))

        package_logger = logging.getLogger(__package__)
        package_logger.addHandler(handler)
        package_logger.setLevel(logging.INFO)

    def _poll_log_queue(self) -> None:
        """Drain pending log lines into the log pane every 100 ms."""
        lines = []
        while True:
            try:
                lines.append(self.log_queue.get_nowait())
            except queue.Empty:
                break

        if lines:
            self._edit_log(lambda: self.log_text.insert("end", "\n".join(lines) + "\n"))
            self.log_text.see("end")

        self.root.after(100, self._poll_log_queue)

    def _edit_log(self, change: Callable[[], None]) -> None:
        # The pane stays read-only except while it is being written
        self.log_text.configure(state="normal")
        try:
            change()
        finally:
            self.log_text.configure(state="disabled")

    def _clear_log(self) -> None:
        self._edit_log(lambda: self.log_text.delete("1.0", "end"))

    def _browse_source(self) -> None:
        path = filedialog.askdirectory(title="Select Source Folder")
        if path:
            self.source_root.set(path)

    def _browse_dest(self) -> None:
        path = filedialog.askdirectory(title="Select Destination Folder")
        if path:
            self.dest_root.set(path)

    def _on_folders_changed(self, *args) -> None:
        """Persist the folder pair and refresh button state."""
        settings = Settings(
            source_folder=self.source_root.get(),
            destination_folder=self.dest_root.get(),
        )
        try:
            self.settings_store.save(settings)
        except OSError as e:
            logger.warning(f"Could not save settings: {e}")
        self._update_buttons()

    def _is_running(self) -> bool:
        return self.worker_thread is not None and self.worker_thread.is_alive()

    def _update_buttons(self) -> None:
        """Enable Organize only when both folders are filled in and nothing is running."""
        ready = bool(self.source_root.get().strip()) and bool(self.dest_root.get().strip())
        running = self._is_running()
        self.organize_btn.configure(state="normal" if ready and not running else "disabled")
        self.stop_btn.configure(state="normal" if running else "disabled")

    def _reset_counts(self) -> None:
        for var in self.count_vars.values():
            var.set("0")

    def _request_stop(self) -> None:
        """Ask the worker to stop before the next file."""
        self.stop_requested = True
        self.status_var.set("Stopping...")

    def _start_operation(self) -> None:
        """Start the batch in a background thread."""
        if self._is_running():
            messagebox.showwarning("Busy", "An operation is already running.")
            return

        params = {
            "source_root": Path(self.source_root.get()),
            "dest_root": Path(self.dest_root.get()),
            "dry_run": self.dry_run.get(),
        }

        # Created here so the resolver records the UI thread as its owner
        resolver = UIThreadConflictResolver(
            MessageBoxConflictResolver(self.root),
            lambda fn: self.root.after(0, fn),
        )

        self._reset_counts()
        self.stop_requested = False
        self.status_var.set("Running...")

        self.worker_thread = threading.Thread(
            target=self._worker_run,
            args=(params, resolver),
            daemon=True
        )
        self.worker_thread.start()
        self._update_buttons()

        self._monitor_worker()

    def _monitor_worker(self) -> None:
        """Monitor worker thread and update UI when complete."""
        if self._is_running():
            self.root.after(200, self._monitor_worker)
        else:
            self._update_buttons()

    def _worker_run(self, params: Dict, resolver: UIThreadConflictResolver) -> None:
        """Worker function that runs in background thread."""
        try:
            files = scan_files(params["source_root"])
        except (FileNotFoundError, NotADirectoryError) as e:
            message = f"Directory not found: {e}"
            logger.error(message)
            self.root.after(0, lambda: self.status_var.set(message))
            return

        try:
            summary = dispatch_all(
                FileDispatcher(params["dest_root"]),
                files,
                dry_run=params["dry_run"],
                resolver=resolver,
                halt_on_error=False,
                should_stop=lambda: self.stop_requested,
            )
        except Exception as e:
            message = f"Error: {e}"
            logger.exception("Operation failed")
            self.root.after(0, lambda: self.status_var.set(message))
            return

        self.root.after(0, lambda: self._show_summary(summary, params["dry_run"]))

    def _show_summary(self, summary: BatchSummary, dry_run: bool) -> None:
        """Update count labels and status line. Runs on the UI thread."""
        self.count_vars["moved"].set(str(summary.moved))
        self.count_vars["skipped"].set(str(summary.skipped))
        self.count_vars["overwritten"].set(str(summary.overwritten))
        self.count_vars["dry_run"].set(str(summary.dry_run))
        self.count_vars["errors"].set(str(summary.errors))

        if dry_run:
            message = f"Dry run complete - {summary.dry_run} file(s) would be moved."
        else:
            message = (
                f"Done. {summary.moved} moved, {summary.skipped} skipped, "
                f"{summary.overwritten} overwritten, {summary.errors} error(s)."
            )
        if summary.stopped:
            message = f"Stopped. {message}"
        self.status_var.set(message)


def main(settings_path: Union[str, Path, None] = None) -> None:
    """Open the main window and run the Tk event loop."""
    root = tk.Tk()

    # Optional azure.tcl theme next to the working directory
    try:
        root.tk.call("source", "azure.tcl")
        root.tk.call("set_theme", "light")
    except tk.TclError:
        pass

    FileRouterGUI(root, settings_path)
    root.mainloop()


if __name__ == "__main__":
    main()
