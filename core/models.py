"""
Datenmodelle für BugGrabber-Speicherdateien
"""

import re
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Tuple


# Name des Events, mit dem neue Datensätze an die Anzeige gehen
CHANGE_EVENT = 'BugGrabberDB_Change'


class RecordFormatError(ValueError):
    """Die Tabelle hat nicht die erwartete BugGrabberDB-Struktur"""


def _optional_int(value: Any, field_name: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise RecordFormatError(f"'{field_name}' must be a number, got boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and re.fullmatch(r'\s*-?\d+\s*', value):
        return int(value)
    raise RecordFormatError(f"'{field_name}' must be a number, got {value!r}")


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        return None
    return str(value)


@dataclass(frozen=True)
class ErrorEntry:
    """Ein einzelner von BugGrabber erfasster Fehler"""
    message: Optional[str] = None
    time: Optional[str] = None
    session: Optional[int] = None
    counter: Optional[int] = None
    stack: Optional[str] = None

    @classmethod
    def from_table(cls, table: Dict[str, Any]) -> 'ErrorEntry':
        return cls(
            message=_optional_str(table.get('message')),
            time=_optional_str(table.get('time')),
            session=_optional_int(table.get('session'), 'session'),
            counter=_optional_int(table.get('counter'), 'counter'),
            stack=_optional_str(table.get('stack')),
        )


@dataclass(frozen=True)
class ParsedRecord:
    """
    Inhalt einer BugGrabberDB-Tabelle

    errors behält die Reihenfolge der Datei; None steht für Platzhalter
    (nil oder Einträge, die keine Tabelle sind).
    """
    session: Optional[int] = None
    last_sanitation: Optional[int] = None
    errors: Tuple[Optional[ErrorEntry], ...] = ()

    @classmethod
    def from_table(cls, table: Any) -> 'ParsedRecord':
        """
        Erstellt einen ParsedRecord aus der konvertierten Lua-Tabelle

        Args:
            table: Ergebnis von parse_assignment (dict, leere Tabelle ist {})

        Returns:
            Neuer ParsedRecord

        Raises:
            RecordFormatError: Wenn die Tabelle keine BugGrabberDB-Struktur hat
        """
        if isinstance(table, list) and not table:
            table = {}
        if not isinstance(table, dict):
            raise RecordFormatError(
                f"BugGrabberDB must be a table with named fields, got {type(table).__name__}"
            )

        raw_errors = table.get('errors')
        if raw_errors is None:
            raw_errors = []
        elif isinstance(raw_errors, dict):
            # Dünn besetzte Integer-Tabellen ({ [5] = {...} }) nach Schlüssel ordnen
            if not all(isinstance(k, int) and not isinstance(k, bool) and k > 0 for k in raw_errors):
                raise RecordFormatError("'errors' must be a sequence")
            raw_errors = [raw_errors[k] for k in sorted(raw_errors)]
        elif not isinstance(raw_errors, list):
            raise RecordFormatError(f"'errors' must be a sequence, got {raw_errors!r}")

        errors = tuple(
            ErrorEntry.from_table(item) if isinstance(item, dict) else None
            for item in raw_errors
        )

        return cls(
            session=_optional_int(table.get('session'), 'session'),
            last_sanitation=_optional_int(table.get('lastSanitation'), 'lastSanitation'),
            errors=errors,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialisierbare Form mit den Feldnamen der Speicherdatei"""
        return {
            'session': self.session,
            'lastSanitation': self.last_sanitation,
            'errors': [asdict(e) if e is not None else None for e in self.errors],
        }


@dataclass(frozen=True)
class ChangeEvent:
    """Benachrichtigung: neuer Datensatz (oder keiner) für einen Pfad"""
    path: str
    db: Optional[ParsedRecord]
    name: str = CHANGE_EVENT

    def to_payload(self) -> Dict[str, Any]:
        return {
            'path': self.path,
            'db': self.db.to_dict() if self.db is not None else None,
        }
