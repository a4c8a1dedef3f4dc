"""
Einstellungen - Laden und Speichern der config.json
"""

import json
import logging
import os
import platform
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Optional

from .buggrabber_reader import DEFAULT_VARIABLE_NAME
from .locator import DEFAULT_FILE_NAME

logger = logging.getLogger(__name__)

CONFIG_FILE = Path(__file__).parent.parent / "config.json"

WINDOWS_WOW_ROOT = 'C:/Program Files (x86)/World of Warcraft/_retail_/WTF/Account'


def default_wow_root() -> str:
    """
    Standard-Installationspfad des WTF/Account Verzeichnisses je Plattform

    Returns:
        Pfad als String (muss nicht existieren)
    """
    system = platform.system()

    if system == 'Darwin':
        return '/Applications/World of Warcraft/_retail_/WTF/Account'

    if system == 'Linux':
        # Wine/Lutris-Prefix
        return str(
            Path.home()
            / 'Games'
            / 'world-of-warcraft'
            / 'drive_c'
            / 'Program Files (x86)'
            / 'World of Warcraft'
            / '_retail_'
            / 'WTF'
            / 'Account'
        )

    return WINDOWS_WOW_ROOT


def _env_flag(name: str) -> Optional[bool]:
    value = os.environ.get(name)
    if value is None:
        return None
    return value.strip().lower() not in ('', '0', 'false', 'no')


@dataclass
class ViewerSettings:
    """Persistente Einstellungen des Viewers"""
    wow_root: str = ''
    save_file_name: str = DEFAULT_FILE_NAME
    variable_name: str = DEFAULT_VARIABLE_NAME
    poll_interval_ms: int = 100
    geometry: str = '1024x728'
    start_minimized: bool = False
    log_level: str = 'INFO'

    def __post_init__(self):
        if not self.wow_root:
            self.wow_root = default_wow_root()


def load_settings(config_file: Optional[Path] = None) -> ViewerSettings:
    """
    Lädt gespeicherte Einstellungen aus config.json

    Fehlende oder fehlerhafte Dateien führen zu Defaults. Die Umgebungsvariable
    START_MINIMIZED überschreibt start_minimized.
    """
    config_file = Path(config_file) if config_file else CONFIG_FILE
    settings = ViewerSettings()

    try:
        if config_file.exists():
            with open(config_file, 'r', encoding='utf-8') as f:
                config = json.load(f)
            if not isinstance(config, dict):
                raise ValueError("config.json must contain a JSON object")

            known = {field.name for field in fields(ViewerSettings)}
            for key, value in config.items():
                if key not in known or value is None:
                    continue
                default = getattr(settings, key)
                if isinstance(default, bool):
                    value = bool(value)
                elif isinstance(default, int):
                    value = int(value)
                else:
                    value = str(value)
                setattr(settings, key, value)
            logger.info("Settings loaded from %s", config_file)

    except (OSError, ValueError, TypeError) as e:
        # Fehler beim Laden ignorieren - verwende Defaults
        logger.warning("Could not load settings from %s: %s", config_file, e)
        settings = ViewerSettings()

    minimized = _env_flag('START_MINIMIZED')
    if minimized is not None:
        settings.start_minimized = minimized

    return settings


def save_settings(settings: ViewerSettings, config_file: Optional[Path] = None) -> bool:
    """
    Speichert Einstellungen in config.json

    Returns:
        True bei Erfolg; Fehler werden nur geloggt
    """
    config_file = Path(config_file) if config_file else CONFIG_FILE
    try:
        with open(config_file, 'w', encoding='utf-8') as f:
            json.dump(asdict(settings), indent=2, fp=f)
        logger.info("Settings saved to %s", config_file)
        return True
    except OSError as e:
        # Fehler beim Speichern nicht kritisch
        logger.warning("Could not save settings to %s: %s", config_file, e)
        return False
