"""
BugGrabber Viewer - Main Entry Point
Zeigt die Fehler aus !BugGrabber.lua an und aktualisiert bei Änderungen
"""

import argparse
import json
import logging
import sys
import time

from core import BugGrabberPipeline, ChangeEvent, Notifier, load_settings
from core.error_view import format_record
from core.logging_config import configure_logging

logger = logging.getLogger(__name__)


class ConsoleDisplay:
    """Prints every change event to stdout (text or JSON lines)"""

    def __init__(self, as_json: bool = False, stream=None):
        self.as_json = as_json
        self.stream = stream or sys.stdout

    def handle_change(self, event: ChangeEvent):
        if self.as_json:
            line = json.dumps({'event': event.name, **event.to_payload()})
        else:
            line = format_record(event.path, event.db)
        print(line, file=self.stream, flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='buggrabber-viewer',
        description='View the !BugGrabber.lua error log of World of Warcraft',
    )
    parser.add_argument('--root', help='WTF/Account folder to search (overrides config.json)')
    parser.add_argument('--config', help='Path to config.json')
    parser.add_argument('--log-level', help='DEBUG, INFO, WARNING or ERROR')
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('--headless', action='store_true',
                      help='Print to the console and keep watching (Ctrl+C to stop)')
    mode.add_argument('--once', action='store_true',
                      help='Print the current files to the console and exit')
    parser.add_argument('--json', action='store_true',
                        help='Print change events as JSON lines (console modes)')
    return parser


def run_console(settings, once: bool, as_json: bool) -> int:
    notifier = Notifier(ConsoleDisplay(as_json=as_json))
    pipeline = BugGrabberPipeline(settings, notifier)
    paths = pipeline.scan()

    if once or not paths:
        pipeline.stop()
        return 0 if paths else 1

    logger.info("Watching for changes, press Ctrl+C to stop")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        pipeline.stop()
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    settings = load_settings(args.config)
    if args.root:
        settings.wow_root = args.root
    if args.log_level:
        settings.log_level = args.log_level

    configure_logging(settings.log_level)

    if args.headless or args.once:
        return run_console(settings, once=args.once, as_json=args.json)

    from gui.main_window import BugGrabberViewerApp
    app = BugGrabberViewerApp(settings, config_file=args.config)
    app.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
