"""
Main Window - GUI für den BugGrabber Viewer
"""

import logging
import queue
import tkinter as tk
from tkinter import ttk, filedialog
from datetime import datetime
from typing import Dict, Optional

from core import BugGrabberPipeline, ChangeEvent, Notifier, ParsedRecord, ViewerSettings, save_settings
from core.error_view import NO_FILE_MESSAGE, error_lines, record_lines, stack_text, visible_errors

logger = logging.getLogger(__name__)


class TkLogHandler(logging.Handler):
    """Forwards log records to the log pane of the app"""

    def __init__(self, app: 'BugGrabberViewerApp'):
        super().__init__(level=logging.INFO)
        self.app = app
        self.setFormatter(logging.Formatter("%(levelname)s %(message)s"))

    def emit(self, record):
        # May be called from worker threads, so only enqueue
        self.app.post(lambda msg=self.format(record): self.app._log(msg))


class StackDisplay(ttk.Frame):
    """Read-only stack text that expands and selects all on focus"""

    COLLAPSED_HEIGHT = 3

    def __init__(self, parent, stack: str):
        super().__init__(parent)
        self.expanded_height = min(max(stack.count('\n') + 1, self.COLLAPSED_HEIGHT), 40)

        self.text = tk.Text(
            self,
            height=self.COLLAPSED_HEIGHT,
            wrap=tk.NONE,
            font=('Courier', 9),
            takefocus=True
        )
        self.text.insert('1.0', stack)
        self.text.config(state='disabled')
        self.text.pack(fill=tk.X, expand=True)

        self.text.bind('<FocusIn>', self._on_focus)
        self.text.bind('<FocusOut>', self._on_blur)
        # Disabled text widgets do not take focus on click by themselves
        self.text.bind('<Button-1>', lambda e: self.text.focus_set())

    def _on_focus(self, event=None):
        self.text.tag_add(tk.SEL, '1.0', tk.END)
        self.text.config(height=self.expanded_height)

    def _on_blur(self, event=None):
        self.text.tag_remove(tk.SEL, '1.0', tk.END)
        self.text.config(height=self.COLLAPSED_HEIGHT)


class BugGrabberViewerApp:
    """Main window for the BugGrabber Viewer application"""

    def __init__(self, settings: ViewerSettings, config_file=None):
        self.settings = settings
        self.config_file = config_file

        self.root = tk.Tk()
        self.root.title("!BugGrabber Viewer")
        self.root.geometry(self.settings.geometry)
        self.root.minsize(640, 480)

        # Callbacks from watcher/locator threads, processed in the Tk thread
        self.events = queue.Queue()

        # Latest record per path; the most recent event is shown
        self.records: Dict[str, Optional[ParsedRecord]] = {}
        self.current_path: Optional[str] = None

        self.notifier = Notifier()
        self.pipeline: Optional[BugGrabberPipeline] = None

        self._setup_ui()

        self.log_handler = TkLogHandler(self)
        logging.getLogger().addHandler(self.log_handler)

    def _setup_ui(self):
        """Creates the user interface"""

        # Header
        header_frame = ttk.Frame(self.root, padding="10")
        header_frame.pack(fill=tk.X)

        ttk.Label(
            header_frame,
            text="!BugGrabber Viewer",
            font=('Arial', 16, 'bold')
        ).pack(side=tk.LEFT)

        ttk.Button(
            header_frame,
            text="Rescan",
            command=self._restart_pipeline
        ).pack(side=tk.RIGHT, padx=2)

        ttk.Button(
            header_frame,
            text="Change Folder...",
            command=self._select_wow_root
        ).pack(side=tk.RIGHT, padx=2)

        # Scan root and current file
        path_frame = ttk.Frame(self.root, padding=(10, 0))
        path_frame.pack(fill=tk.X)

        self.root_var = tk.StringVar(value=f"Folder: {self.settings.wow_root}")
        ttk.Label(path_frame, textvariable=self.root_var, foreground='gray').pack(anchor=tk.W)

        self.status_var = tk.StringVar(value="Searching...")
        ttk.Label(path_frame, textvariable=self.status_var).pack(anchor=tk.W)

        # Record summary (Session / Last Sanitization)
        self.summary_frame = ttk.Frame(self.root, padding=(10, 5))
        self.summary_frame.pack(fill=tk.X)

        # Scrollable error list
        list_frame = ttk.LabelFrame(self.root, text="Errors", padding="5")
        list_frame.pack(fill=tk.BOTH, expand=True, padx=10, pady=5)

        self.canvas = tk.Canvas(list_frame, highlightthickness=0)
        list_scroll = ttk.Scrollbar(list_frame, orient=tk.VERTICAL, command=self.canvas.yview)
        self.canvas.configure(yscrollcommand=list_scroll.set)
        list_scroll.pack(side=tk.RIGHT, fill=tk.Y)
        self.canvas.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)

        self.errors_frame = ttk.Frame(self.canvas)
        self._errors_window = self.canvas.create_window((0, 0), window=self.errors_frame, anchor=tk.NW)
        self.errors_frame.bind(
            '<Configure>',
            lambda e: self.canvas.configure(scrollregion=self.canvas.bbox('all'))
        )
        self.canvas.bind(
            '<Configure>',
            lambda e: self.canvas.itemconfigure(self._errors_window, width=e.width)
        )

        # Log-Ausgabe
        log_frame = ttk.LabelFrame(self.root, text="Log", padding="5")
        log_frame.pack(fill=tk.X, padx=10, pady=(0, 10))

        log_scroll = ttk.Scrollbar(log_frame)
        log_scroll.pack(side=tk.RIGHT, fill=tk.Y)

        self.log_text = tk.Text(
            log_frame,
            height=6,
            yscrollcommand=log_scroll.set,
            state='disabled',
            wrap=tk.WORD
        )
        self.log_text.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)
        log_scroll.config(command=self.log_text.yview)

        self._render()

    # -- Event loop ------------------------------------------------------------

    def post(self, callback):
        """Queues a callback for the Tk thread (safe from any thread)"""
        self.events.put(callback)

    def _drain_events(self):
        """Runs all queued callbacks in arrival order, then reschedules itself"""
        try:
            while True:
                try:
                    callback = self.events.get_nowait()
                except queue.Empty:
                    break
                callback()
        finally:
            self.root.after(self.settings.poll_interval_ms, self._drain_events)

    # -- Pipeline --------------------------------------------------------------

    def _start_pipeline(self):
        self.notifier.attach(self)

        # Callbacks of a replaced pipeline (after Rescan) are ignored
        def dispatch(callback):
            self.post(lambda: callback() if self.pipeline is pipeline else None)

        pipeline = BugGrabberPipeline(self.settings, self.notifier, dispatch=dispatch)
        pipeline.on_scan_complete = self._scan_complete
        self.pipeline = pipeline
        self.status_var.set("Searching...")
        pipeline.start()

    def _restart_pipeline(self):
        if self.pipeline is not None:
            self.pipeline.stop()
        self.records.clear()
        self.current_path = None
        self._render()
        self._start_pipeline()

    def _scan_complete(self, paths):
        if not paths:
            self.status_var.set(NO_FILE_MESSAGE)
        elif self.current_path is None:
            self.status_var.set(f"Found {len(paths)} file(s)")

    def handle_change(self, event: ChangeEvent):
        """Receives BugGrabberDB_Change events from the notifier"""
        self.records[event.path] = event.db
        self.current_path = event.path
        self._render()

    # -- Rendering -------------------------------------------------------------

    def _render(self):
        for child in self.summary_frame.winfo_children():
            child.destroy()
        for child in self.errors_frame.winfo_children():
            child.destroy()

        record = self.records.get(self.current_path) if self.current_path else None

        if self.current_path:
            updated = datetime.now().strftime('%H:%M:%S')
            self.status_var.set(f"File: {self.current_path} (updated {updated})")

        if record is None:
            ttk.Label(self.errors_frame, text=NO_FILE_MESSAGE).pack(anchor=tk.W, pady=10)
            return

        for label, value in record_lines(record):
            self._line_item(self.summary_frame, label, value)

        errors = visible_errors(record)
        if not errors:
            ttk.Label(self.errors_frame, text="No errors recorded").pack(anchor=tk.W, pady=10)

        for entry in errors:
            frame = ttk.Frame(self.errors_frame, padding="5", relief=tk.GROOVE, borderwidth=1)
            frame.pack(fill=tk.X, expand=True, pady=3)

            for label, value in error_lines(entry):
                self._line_item(frame, label, value)

            if entry.stack:
                ttk.Label(frame, text="Stack", font=('Arial', 9, 'bold')).pack(anchor=tk.W)
                StackDisplay(frame, entry.stack).pack(fill=tk.X, expand=True)
            else:
                self._line_item(frame, "Stack", stack_text(entry))

    @staticmethod
    def _line_item(parent, label: str, value: str):
        row = ttk.Frame(parent)
        row.pack(fill=tk.X, anchor=tk.W)
        ttk.Label(row, text=label, width=18, font=('Arial', 9, 'bold')).pack(side=tk.LEFT, anchor=tk.N)
        ttk.Label(row, text=value, wraplength=800, justify=tk.LEFT).pack(side=tk.LEFT, fill=tk.X)

    # -- Actions ---------------------------------------------------------------

    def _select_wow_root(self):
        """Lets the user pick another WTF/Account folder and rescans"""
        directory = filedialog.askdirectory(
            title="Select World of Warcraft WTF/Account folder",
            initialdir=self.settings.wow_root
        )
        if not directory:
            return
        self.settings.wow_root = directory
        self.root_var.set(f"Folder: {directory}")
        self._log(f"Folder changed: {directory}")
        save_settings(self.settings, self.config_file)
        self._restart_pipeline()

    def _log(self, message: str):
        """Fügt eine Nachricht zum Log hinzu"""
        self.log_text.config(state='normal')
        timestamp = datetime.now().strftime('%H:%M:%S')
        self.log_text.insert(tk.END, f"[{timestamp}] {message}\n")
        self.log_text.see(tk.END)
        self.log_text.config(state='disabled')

    def run(self):
        """Startet die Anwendung"""
        self.root.protocol("WM_DELETE_WINDOW", self._on_closing)
        if self.settings.start_minimized:
            self.root.iconify()
        self._start_pipeline()
        self._drain_events()
        self.root.mainloop()

    def _on_closing(self):
        """Wird beim Schließen des Fensters aufgerufen"""
        self.notifier.detach(self)
        if self.pipeline is not None:
            self.pipeline.stop()
        logging.getLogger().removeHandler(self.log_handler)

        # Speichere Einstellungen vor dem Schließen
        self.settings.geometry = self.root.geometry()
        save_settings(self.settings, self.config_file)

        self.root.destroy()
