"""
Core-Module für den BugGrabber Viewer
"""

from .buggrabber_reader import BugGrabberReader, read_buggrabber_db
from .locator import SaveFileLocator
from .models import CHANGE_EVENT, ChangeEvent, ErrorEntry, ParsedRecord
from .notifier import Notifier
from .pipeline import BugGrabberPipeline
from .settings import ViewerSettings, load_settings, save_settings

__all__ = [
    'BugGrabberReader', 'read_buggrabber_db', 'SaveFileLocator',
    'CHANGE_EVENT', 'ChangeEvent', 'ErrorEntry', 'ParsedRecord',
    'Notifier', 'BugGrabberPipeline',
    'ViewerSettings', 'load_settings', 'save_settings',
]
