"""
BugGrabber Reader - Liest !BugGrabber.lua Dateien in ParsedRecords
"""

import logging
from pathlib import Path
from typing import Optional

from .lua_table import LuaParseError, parse_assignment
from .models import ParsedRecord, RecordFormatError

logger = logging.getLogger(__name__)

DEFAULT_VARIABLE_NAME = 'BugGrabberDB'


class BugGrabberReader:
    """Liest eine Speicherdatei und wandelt die BugGrabberDB-Tabelle um"""

    def __init__(self, variable_name: str = DEFAULT_VARIABLE_NAME):
        self.variable_name = variable_name

    def read(self, path: str) -> Optional[ParsedRecord]:
        """
        Liest und parst eine Speicherdatei

        Fehler werden geloggt und führen zu None, es wird nie eine
        Exception weitergereicht.

        Args:
            path: Pfad zur !BugGrabber.lua

        Returns:
            ParsedRecord oder None bei Lese-/Parsefehlern
        """
        try:
            content = Path(path).read_text(encoding='utf-8', errors='replace')
        except OSError as e:
            logger.error("Error reading BugGrabber file: %s: %s", path, e)
            return None

        try:
            table = parse_assignment(content, self.variable_name)
            record = ParsedRecord.from_table(table)
        except (LuaParseError, RecordFormatError) as e:
            logger.error("Error reading BugGrabber file: %s: %s", path, e)
            return None

        logger.debug("Parsed %s: session=%s, %d error entries",
                     path, record.session, len(record.errors))
        return record


def read_buggrabber_db(path: str, variable_name: str = DEFAULT_VARIABLE_NAME) -> Optional[ParsedRecord]:
    """Kurzform für BugGrabberReader(variable_name).read(path)"""
    return BugGrabberReader(variable_name).read(path)
