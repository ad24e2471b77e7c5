"""
MH Grid Solver - Entry Point

Counts down, captures the screen, detects the 3x3 glyph grid and sends
the matching key presses on a background worker thread.

Example:
    python main.py
    python main.py --strategy template --templates ./assets/templates
    python main.py --resolution 2560x1440 --countdown 5 --debug
"""

import sys
import logging
import argparse
from typing import Optional

from PyQt5.QtCore import QCoreApplication, QTimer

from mhsolver.geometry import RESOLUTION_PROFILES
from mhsolver.keys import KeyboardInjector
from mhsolver.recognition import available_classifiers
from mhsolver.session import Solver, TIME_BUDGET_SECONDS
from mhsolver.settings import ConfigStore, config_from_settings, load_settings, save_settings
from mhsolver.solver_worker import SolverWorker


# Configure logging - output to both console and file
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
    handlers=[
        logging.StreamHandler(),  # Console output
        logging.FileHandler("solver.log", mode='w', encoding='utf-8')  # File output
    ]
)
logger = logging.getLogger(__name__)


class Application:
    """
    Main application controller.

    Builds the solver from saved settings and CLI overrides, then runs a
    single session on the worker thread after a countdown.
    """

    def __init__(self, args: argparse.Namespace):
        """
        Initialize the application.

        Args:
            args: Parsed command line arguments
        """
        self.args = args
        self.worker: Optional[SolverWorker] = None
        self.exit_code = 0

        # Load persistent settings, CLI flags override them
        self.settings = load_settings()
        if args.strategy:
            self.settings["classifier_strategy"] = args.strategy
        if args.resolution:
            self.settings["resolution_profile"] = args.resolution
        if args.templates:
            self.settings["template_dir"] = args.templates

        self.debug_mode = args.debug or self.settings.get("debug_enabled", False)
        if self.debug_mode:
            logging.getLogger().setLevel(logging.DEBUG)

        self.store = ConfigStore(config_from_settings(self.settings))
        self.solver = Solver(self.store, KeyboardInjector())

    def setup(self):
        """Create the worker and connect signals."""
        self.worker = SolverWorker(self.solver, debug_mode=self.debug_mode)
        self.worker.status_changed.connect(self._on_status)
        self.worker.grid_detected.connect(self._on_grid_detected)
        self.worker.key_pressed.connect(self._on_key_pressed)
        self.worker.error_occurred.connect(self._on_error)
        self.worker.finished.connect(self._on_finished)

        estimate = self.solver.estimate_execution_seconds()
        if not self.solver.within_budget():
            logger.warning(
                f"Estimated cycle {estimate:.2f}s exceeds the {TIME_BUDGET_SECONDS:.0f}s budget, "
                "lower base_delay_ms"
            )

        config = self.store.snapshot()
        logger.info(
            f"Application initialized: strategy={config.classifier_strategy}, "
            f"resolution={config.resolution_profile}, estimate={estimate:.2f}s"
        )

    def _on_status(self, status: str, message: str):
        logger.info(f"[{status}] {message}")

    def _on_grid_detected(self, letters: list):
        for row in range(3):
            logger.info("  " + " ".join(letters[row * 3:row * 3 + 3]))

    def _on_key_pressed(self, index: int, symbol: str):
        logger.debug(f"Key {index + 1}/9: {symbol}")

    def _on_error(self, error_msg: str):
        """Handle worker error."""
        logger.error(f"Worker error: {error_msg}")
        self.exit_code = 1

    def _on_finished(self):
        result = self.worker.last_result
        if result is None or result.error is not None:
            self.exit_code = self.exit_code or 1
        self.solver.shutdown()
        QCoreApplication.quit()

    def start(self, countdown: int):
        """
        Start the worker after a countdown.

        Args:
            countdown: Seconds to wait so the game window can be focused
        """
        if countdown <= 0:
            self.worker.start()
            return

        logger.info(f"Starting in {countdown}... switch to the game window")
        QTimer.singleShot(1000, lambda: self.start(countdown - 1))

    def shutdown(self):
        """Stop any active session and persist settings."""
        if self.worker and self.worker.isRunning():
            self.worker.request_stop()
            self.worker.wait(2000)
        self.solver.shutdown()

        if self.args.save:
            save_settings(self.settings)
            logger.info("Settings saved")


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="MH Grid Solver - reads the 3x3 glyph grid and types the answer"
    )
    parser.add_argument(
        "--strategy", "-s",
        choices=available_classifiers(),
        help="Classifier strategy (default: saved setting, heuristic)"
    )
    parser.add_argument(
        "--resolution", "-r",
        choices=["auto"] + sorted(RESOLUTION_PROFILES),
        help="Resolution profile (default: saved setting, auto)"
    )
    parser.add_argument(
        "--countdown", "-c",
        type=int,
        default=3,
        help="Seconds before capture (default: 3)"
    )
    parser.add_argument(
        "--templates", "-t",
        help="Directory with <SYMBOL>.png templates for the template strategy"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging and save detection images"
    )
    parser.add_argument(
        "--save",
        action="store_true",
        help="Store the given options in config.json as new defaults"
    )
    return parser.parse_args()


def main():
    """Initialize and run the MH Grid Solver."""
    args = parse_args()

    app = QCoreApplication(sys.argv)

    application = Application(args)
    application.setup()
    application.start(args.countdown)

    app.exec_()
    application.shutdown()
    sys.exit(application.exit_code)


if __name__ == "__main__":
    main()
