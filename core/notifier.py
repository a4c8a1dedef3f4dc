"""
Notifier - Übergibt neue Datensätze an die Anzeige
"""

import logging
from typing import Optional

from .models import ChangeEvent, ParsedRecord

logger = logging.getLogger(__name__)


class Notifier:
    """
    Hält die aktuelle Anzeige als expliziten Handle.

    Die Anzeige muss eine Methode handle_change(event: ChangeEvent) haben.
    Zustellung ist fire-and-forget: ohne angehängte Anzeige wird das Event
    verworfen.
    """

    def __init__(self, display=None):
        self._display = display

    @property
    def has_display(self) -> bool:
        return self._display is not None

    def attach(self, display) -> None:
        self._display = display

    def detach(self, display=None) -> None:
        """Entfernt die Anzeige (nur wenn es die angegebene ist, falls gesetzt)"""
        if display is None or display is self._display:
            self._display = None

    def notify(self, path: str, record: Optional[ParsedRecord]) -> bool:
        """
        Sendet einen ChangeEvent an die Anzeige

        Returns:
            True wenn zugestellt, False wenn keine Anzeige existiert
        """
        if self._display is None:
            logger.debug("No display attached, dropping change for %s", path)
            return False
        self._display.handle_change(ChangeEvent(path=path, db=record))
        return True
