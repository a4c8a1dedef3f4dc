"""
Logging-Konfiguration
"""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(log_level: str = "INFO") -> None:
    """Initialisiert das Root-Logging für CLI und GUI"""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    # watchdog loggt jedes Inotify-Event auf DEBUG
    logging.getLogger('watchdog').setLevel(logging.WARNING)
