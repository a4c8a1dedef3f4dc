"""
BugGrabber Pipeline - Suche -> Parsen -> Benachrichtigen -> Überwachen
"""

import logging
import threading
from typing import Callable, List, Optional

from .buggrabber_reader import BugGrabberReader
from .locator import SaveFileLocator
from .notifier import Notifier
from .settings import ViewerSettings
from .watcher import SaveFileWatcher

logger = logging.getLogger(__name__)

Dispatcher = Callable[[Callable[[], None]], None]


def call_immediately(callback: Callable[[], None]) -> None:
    callback()


class BugGrabberPipeline:
    """
    Verbindet Locator, Reader, Watcher und Notifier.

    Alle Parse- und Benachrichtigungsschritte laufen über dispatch, das den
    Callback in der Event-Schleife der Anwendung einreiht. Die GUI übergibt
    dafür eine Queue, die im Tk-Thread abgearbeitet wird; ohne dispatch wird
    direkt aufgerufen.
    """

    def __init__(self, settings: ViewerSettings, notifier: Notifier,
                 dispatch: Optional[Dispatcher] = None,
                 reader: Optional[BugGrabberReader] = None,
                 watcher_factory: Callable[..., SaveFileWatcher] = SaveFileWatcher):
        self.settings = settings
        self.notifier = notifier
        self.dispatch = dispatch or call_immediately
        self.reader = reader or BugGrabberReader(settings.variable_name)
        self.watcher_factory = watcher_factory
        self.paths: List[str] = []
        self.watcher: Optional[SaveFileWatcher] = None
        self.on_scan_complete: Optional[Callable[[List[str]], None]] = None

    def _create_locator(self) -> SaveFileLocator:
        return SaveFileLocator(self.settings.wow_root, self.settings.save_file_name)

    def start(self) -> threading.Thread:
        """Startet die Suche im Hintergrund; das Ergebnis wird per dispatch verarbeitet"""
        logger.info("Searching %s for %s", self.settings.wow_root, self.settings.save_file_name)
        locator = self._create_locator()
        return locator.start_search(
            lambda paths: self.dispatch(lambda: self.handle_scan_complete(paths))
        )

    def scan(self) -> List[str]:
        """Sucht synchron, parst alle Dateien einmal und startet den Watcher"""
        logger.info("Searching %s for %s", self.settings.wow_root, self.settings.save_file_name)
        paths = self._create_locator().search()
        self.handle_scan_complete(paths)
        return paths

    def handle_scan_complete(self, paths: List[str]) -> None:
        """
        Verarbeitet das Suchergebnis

        Jeder Pfad wird einmal in Suchreihenfolge geparst und gemeldet, danach
        werden alle Pfade überwacht.
        """
        self.paths = list(paths)
        if self.paths:
            logger.info("Found paths:\n%s", '\n'.join(self.paths))
        else:
            logger.info("No %s found below %s", self.settings.save_file_name, self.settings.wow_root)

        for path in self.paths:
            self.refresh(path)

        if self.on_scan_complete:
            self.on_scan_complete(list(self.paths))

        if self.paths:
            self.watcher = self.watcher_factory(self.paths, self.handle_file_event)
            self.watcher.start()

    def handle_file_event(self, kind: str, path: str) -> None:
        """Wird vom Watcher-Thread aufgerufen; jedes Event ergibt einen refresh"""
        self.dispatch(lambda: self.refresh(path))

    def refresh(self, path: str) -> bool:
        """
        Ein Zyklus aus Parsen und Benachrichtigen für einen Pfad

        Returns:
            True wenn die Anzeige das Event erhalten hat
        """
        record = self.reader.read(path)
        return self.notifier.notify(path, record)

    def refresh_all(self) -> None:
        for path in self.paths:
            self.refresh(path)

    def stop(self) -> None:
        if self.watcher is not None:
            self.watcher.stop()
            self.watcher = None
