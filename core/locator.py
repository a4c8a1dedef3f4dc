"""
Save File Locator - Sucht !BugGrabber.lua Dateien unterhalb des WoW-Verzeichnisses
"""

import logging
import os
import threading
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_FILE_NAME = '!BugGrabber.lua'


class SaveFileLocator:
    """Durchsucht einen Verzeichnisbaum nach Speicherdateien"""

    def __init__(self, root: str, file_name: str = DEFAULT_FILE_NAME,
                 on_match: Optional[Callable[[str], None]] = None,
                 on_path_error: Optional[Callable[[OSError, str], None]] = None):
        """
        Initialisiert den Locator

        Args:
            root: Wurzelverzeichnis (z.B. .../_retail_/WTF/Account)
            file_name: Dateinamen-Endung, nach der gesucht wird
            on_match: Callback für jeden gefundenen Pfad
            on_path_error: Callback für Pfade, die nicht gelesen werden konnten
        """
        self.root = root
        self.file_name = file_name
        self.on_match = on_match
        self.on_path_error = on_path_error

    def search(self) -> List[str]:
        """
        Durchsucht das Wurzelverzeichnis rekursiv

        Fehler einzelner Pfade werden geloggt und übersprungen, sie brechen
        die Suche nie ab.

        Returns:
            Absolute Pfade aller passenden Dateien (ggf. leer)
        """
        paths = []
        self._walk(paths)
        return paths

    def _walk(self, paths: List[str]):
        """Sammelt Treffer in paths, damit Teilergebnisse erhalten bleiben"""
        for dirpath, dirnames, filenames in os.walk(self.root, onerror=self._handle_error):
            # Sortiert für eine reproduzierbare Reihenfolge
            dirnames.sort()
            for name in sorted(filenames):
                if not name.endswith(self.file_name):
                    continue
                path = os.path.abspath(os.path.join(dirpath, name))
                paths.append(path)
                if self.on_match:
                    self.on_match(path)

    def start_search(self, on_complete: Callable[[List[str]], None]) -> threading.Thread:
        """
        Startet die Suche in einem Hintergrund-Thread

        Args:
            on_complete: Wird genau einmal mit allen gefundenen Pfaden aufgerufen

        Returns:
            Der gestartete Thread
        """
        def search_worker():
            paths = []
            try:
                self._walk(paths)
            except Exception:
                # Suche endet trotzdem mit den bisher gefundenen Pfaden
                logger.exception("Search aborted in %s", self.root)
            on_complete(paths)

        thread = threading.Thread(target=search_worker, name='SaveFileLocator', daemon=True)
        thread.start()
        return thread

    def _handle_error(self, error: OSError):
        path = error.filename or self.root
        # Fehler bei einem Pfad stoppen nicht die gesamte Suche
        logger.warning("Error for path %s: %s", path, error)
        if self.on_path_error:
            self.on_path_error(error, path)
