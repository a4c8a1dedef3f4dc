"""
Save File Watcher - Überwacht gefundene Speicherdateien mit watchdog
"""

import logging
import os
from typing import Callable, Dict, Iterable, List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

EVENT_ADD = 'add'
EVENT_CHANGE = 'change'


def normalize_path(path) -> str:
    """Vergleichbare Form eines Pfades (absolut, Groß-/Kleinschreibung je nach OS)"""
    return os.path.normcase(os.path.abspath(os.fsdecode(path)))


class SaveFileEventHandler(FileSystemEventHandler):
    """Leitet watchdog-Events für genau die überwachten Dateien weiter"""

    def __init__(self, paths: Iterable[str], on_event: Callable[[str, str], None]):
        super().__init__()
        self._watched: Dict[str, str] = {normalize_path(p): p for p in paths}
        self.on_event = on_event

    def on_created(self, event: FileSystemEvent) -> None:
        self._forward(EVENT_ADD, event.src_path, event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._forward(EVENT_CHANGE, event.src_path, event)

    def on_moved(self, event: FileSystemEvent) -> None:
        # WoW schreibt SavedVariables neu und benennt dabei Dateien um
        self._forward(EVENT_ADD, event.dest_path, event)

    def _forward(self, kind: str, src_path, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        path = self._watched.get(normalize_path(src_path))
        if path is None:
            return
        logger.info("watchdog !BugGrabber.lua %s %s", kind, path)
        self.on_event(kind, path)


class SaveFileWatcher:
    """
    Überwacht eine feste Menge von Dateipfaden auf Anlegen und Änderungen.

    watchdog beobachtet Verzeichnisse, daher wird jedes Elternverzeichnis
    einmal (nicht rekursiv) registriert und die Events auf die Pfade gefiltert.
    Jedes Event führt zu genau einem on_event-Aufruf, ohne Entprellung.
    """

    def __init__(self, paths: Iterable[str], on_event: Callable[[str, str], None],
                 observer_factory: Callable[[], Observer] = Observer):
        self.paths: List[str] = list(paths)
        self.handler = SaveFileEventHandler(self.paths, on_event)
        self._observer_factory = observer_factory
        self._observer: Optional[Observer] = None

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    def watched_directories(self) -> List[str]:
        directories = []
        for path in self.paths:
            directory = os.path.dirname(os.path.abspath(path))
            if directory not in directories:
                directories.append(directory)
        return directories

    def start(self) -> None:
        """Startet den Observer; nicht überwachbare Verzeichnisse werden übersprungen"""
        if self._observer is not None:
            logger.warning("Watcher is already running")
            return

        observer = self._observer_factory()
        observer.daemon = True
        scheduled = 0
        for directory in self.watched_directories():
            try:
                observer.schedule(self.handler, directory, recursive=False)
                scheduled += 1
            except OSError as e:
                logger.warning("Cannot watch %s: %s", directory, e)

        observer.start()
        self._observer = observer
        logger.info("Watching %d file(s) in %d directories", len(self.paths), scheduled)

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=2)
        self._observer = None
