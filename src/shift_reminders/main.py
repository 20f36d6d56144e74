"""
Main Entry Point for Shift Reminder Engine

Host application that loads shifts and preferences from a JSON data file,
runs the reminder scheduler and logs every dispatched notification.
"""

import sys
import json
import time
import logging
import argparse
import traceback
from pathlib import Path
from datetime import datetime
from typing import Dict, List, Optional

from shift_reminders.data_manager import (
    NotificationEvent, ReminderSettings, ShiftDataError, ShiftStore
)
from shift_reminders.notification_service import ShiftReminderScheduler
from shift_reminders.reporting import ExportManager
from shift_reminders.date_utils import Clock

DEFAULT_DATA_FILE = Path("data") / "reminder_data.json"


def setup_logging(settings: Optional[ReminderSettings] = None):
    """Setup application logging"""
    settings = settings or ReminderSettings()
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(exist_ok=True)

    log_file = log_dir / f"shift_reminders_{datetime.now().strftime('%Y%m%d')}.log"

    logging.basicConfig(
        level=settings.log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stdout)
        ],
        force=True
    )

    return logging.getLogger(__name__)


def handle_exception(exc_type, exc_value, exc_traceback):
    """Global exception handler"""
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return

    logging.getLogger(__name__).error(
        "Uncaught exception",
        exc_info=(exc_type, exc_value, exc_traceback)
    )


def load_data_file(data_file: Path) -> dict:
    """Read the host data file; a missing file means an empty schedule"""
    if not data_file.exists():
        return {}
    with open(data_file, 'r', encoding='utf-8') as f:
        return json.load(f)


class ShiftReminderApp:
    """Main application class"""

    def __init__(self, data_file: Path = DEFAULT_DATA_FILE, clock: Optional[Clock] = None):
        self.logger = logging.getLogger(__name__)
        self.data_file = Path(data_file)
        self.clock = clock
        self.store = ShiftStore()
        self.settings = ReminderSettings()
        self.scheduler: Optional[ShiftReminderScheduler] = None
        self.export_manager: Optional[ExportManager] = None

    def dispatch(self, event: NotificationEvent):
        """Deliver a notification: keep it in the inbox and log it"""
        entry = self.store.add_notification(event)
        if entry is not None:
            self.logger.info(f"[{event.category}/{event.severity.value}] {event.message}")

    def initialize(self) -> bool:
        """Initialize application components"""
        try:
            self.logger.info(f"Loading reminder data from {self.data_file}")
            self.store.load_data(load_data_file(self.data_file))
            self.settings = self.store.get_reminder_settings()

            self.scheduler = ShiftReminderScheduler(
                shift_source=self.store,
                preferences_provider=self.store.get_notification_preferences,
                dispatch=self.dispatch,
                clock=self.clock,
                poll_interval=self.settings.poll_interval_seconds
            )

            # Reports read the scheduler's tracker so sent reminders show up
            self.export_manager = ExportManager(self.store, self.scheduler.tracker, self.clock)
            self.logger.info("Reminder scheduler initialized")
            return True

        except (OSError, json.JSONDecodeError, ShiftDataError) as e:
            self.logger.error(f"Failed to initialize application: {e}")
            self.logger.error(traceback.format_exc())
            return False

    def run(self) -> bool:
        """Run until interrupted"""
        if not self.initialize():
            return False

        try:
            self.scheduler.start()
            self.logger.info("Watching shifts for reminders. Press Ctrl+C to stop.")
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.logger.info("Stopping on user request")
        finally:
            self.cleanup()
        return True

    def export_report(self, output_dir: Path, formats: Optional[List[str]] = None) -> Dict[str, bool]:
        """Run one reminder check, then export the reminder report"""
        if not self.initialize():
            return {}

        self.scheduler.evaluate_all()
        results = self.export_manager.batch_export(str(output_dir), formats)
        for format_type, ok in results.items():
            if ok:
                self.logger.info(f"Exported {format_type} reminder report to {output_dir}")
            else:
                self.logger.error(f"Failed to export {format_type} reminder report")
        return results

    def cleanup(self):
        if self.scheduler:
            self.scheduler.stop()
            self.logger.info("Reminder scheduler stopped")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Shift reminder service.")
    parser.add_argument("data_file", nargs="?", type=Path, default=DEFAULT_DATA_FILE)
    parser.add_argument("--export", type=Path, metavar="DIR",
                        help="run one reminder check, write the reminder report to DIR and exit")
    parser.add_argument("--formats", nargs="+", choices=["csv", "excel", "pdf"],
                        default=["pdf", "excel", "csv"])
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None):
    """Main entry point"""
    sys.excepthook = handle_exception

    args = parse_args(argv)
    data_file = args.data_file

    # A broken data file is reported by initialize() once logging is up
    try:
        settings = ReminderSettings.from_dict(load_data_file(data_file).get("settings", {}))
    except (OSError, json.JSONDecodeError, ShiftDataError):
        settings = ReminderSettings()

    logger = setup_logging(settings)
    logger.info("=" * 50)
    logger.info("Starting Shift Reminder Service")
    logger.info("=" * 50)

    app = ShiftReminderApp(data_file)
    if args.export:
        results = app.export_report(args.export, args.formats)
        success = bool(results) and all(results.values())
    else:
        success = app.run()

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
