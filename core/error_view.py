"""
Error View - Aufbereitung eines ParsedRecords für die Anzeige
"""

from datetime import datetime
from typing import List, Optional, Tuple

from .models import ErrorEntry, ParsedRecord

NO_FILE_MESSAGE = "No !BugGrabber.lua file found"


def visible_errors(record: Optional[ParsedRecord]) -> List[ErrorEntry]:
    """
    Fehler ohne Platzhalter, absteigend nach counter sortiert

    Einträge ohne counter kommen ans Ende, gleiche Werte behalten die
    Reihenfolge der Datei.
    """
    if record is None:
        return []
    entries = [e for e in record.errors if e is not None]
    return sorted(
        entries,
        key=lambda e: (e.counter is not None, e.counter or 0),
        reverse=True,
    )


def format_timestamp(value: int) -> str:
    """Unix-Zeitstempel als lesbares Datum, mit Rohwert"""
    try:
        return f"{value} ({datetime.fromtimestamp(value):%Y/%m/%d %H:%M:%S})"
    except (OverflowError, OSError, ValueError):
        return str(value)


def record_lines(record: ParsedRecord) -> List[Tuple[str, str]]:
    lines = []
    if record.session is not None:
        lines.append(("Session", str(record.session)))
    if record.last_sanitation is not None:
        lines.append(("Last Sanitization", format_timestamp(record.last_sanitation)))
    return lines


def error_lines(entry: ErrorEntry) -> List[Tuple[str, str]]:
    """Beschriftete Felder eines Fehlers ohne Stack (leere Felder entfallen)"""
    lines = []
    if entry.message:
        lines.append(("Message", entry.message))
    if entry.time:
        lines.append(("Time", entry.time))
    if entry.session is not None:
        lines.append(("Session", str(entry.session)))
    if entry.counter is not None:
        lines.append(("Counter", str(entry.counter)))
    return lines


def stack_text(entry: ErrorEntry) -> str:
    return entry.stack if entry.stack else "None"


def format_record(path: str, record: Optional[ParsedRecord]) -> str:
    """Textdarstellung für die Konsolenausgabe"""
    out = [f"== {path}"]
    if record is None:
        out.append(NO_FILE_MESSAGE)
        return '\n'.join(out)

    for label, value in record_lines(record):
        out.append(f"{label}: {value}")

    errors = visible_errors(record)
    out.append(f"Errors: {len(errors)}")
    for entry in errors:
        out.append("-" * 60)
        for label, value in error_lines(entry):
            out.append(f"{label}: {value}")
        out.append("Stack:")
        out.extend(f"    {line}" for line in stack_text(entry).splitlines())
    return '\n'.join(out)
