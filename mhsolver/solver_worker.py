"""
Solver Worker Module for MH Grid Solver

Provides a background QThread worker that runs one capture/detect/execute
session off the caller's thread. Solver events are re-emitted as Qt
signals for thread-safe status updates.
"""

import logging
from datetime import datetime
from typing import Optional

from PyQt5.QtCore import QThread, pyqtSignal

from .capture import ScreenCapture
from .events import EventKind, SolverEvent
from .recognition.debug import DEBUG_DIR, save_annotated_grid, save_detection_artifacts
from .session import SessionResult, Solver


# Configure module logger
logger = logging.getLogger(__name__)


class SolverWorker(QThread):
    """
    Background worker thread for one solver session.

    Runs:
    1. Captures the primary monitor
    2. Triggers a solver session on the frame
    3. Saves detection artifacts when debug mode is on

    Signals:
        status_changed(str, str): Session status and message
        grid_detected(list): 9 detected letters, '?' for unknown
        key_pressed(int, str): Grid position and symbol of a sent key
        grid_reset(): Display should return to its idle state
        error_occurred(str): Unexpected error text

    Example:
        worker = SolverWorker(solver)
        worker.status_changed.connect(ui.set_status)
        worker.start()
        # ...
        worker.request_stop()
        worker.wait()
    """

    status_changed = pyqtSignal(str, str)
    grid_detected = pyqtSignal(list)
    key_pressed = pyqtSignal(int, str)
    grid_reset = pyqtSignal()
    error_occurred = pyqtSignal(str)

    def __init__(self, solver: Solver, debug_mode: bool = False,
                 capture: Optional[ScreenCapture] = None):
        """
        Initialize the solver worker.

        Args:
            solver: Solver coordinator to trigger
            debug_mode: Save detection artifacts after each session
            capture: Screen capture (a new primary-monitor capture if None)
        """
        super().__init__()
        self.solver = solver
        self.debug_mode = debug_mode
        self._capture = capture
        self._unsubscribe = None
        self.last_result: Optional[SessionResult] = None

    def run(self):
        """Capture one frame and run a session. Called when thread starts."""
        capture = self._capture or ScreenCapture()
        self._unsubscribe = self.solver.channel.subscribe(self._forward_event)

        logger.info("Solver worker started")
        try:
            display = capture.display_geometry()
            frame = capture.grab_frame()
            self.last_result = self.solver.trigger(frame, display)

            if self.debug_mode and self.last_result and self.last_result.report:
                self.save_debug_artifacts()
        except Exception as e:
            logger.exception("Error in solver worker")
            self.error_occurred.emit(str(e))
        finally:
            self._unsubscribe()
            self._unsubscribe = None
            capture.release()
            logger.info("Solver worker stopped")

    def _forward_event(self, event: SolverEvent) -> None:
        payload = event.payload
        if event.kind is EventKind.STATUS:
            self.status_changed.emit(payload.get("status", ""), payload.get("message", ""))
        elif event.kind is EventKind.GRID_DETECTED:
            self.grid_detected.emit(list(payload.get("letters", [])))
        elif event.kind is EventKind.KEY_PRESSED:
            self.key_pressed.emit(payload["index"], payload["symbol"])
        elif event.kind is EventKind.GRID_RESET:
            self.grid_reset.emit()

    def save_debug_artifacts(self) -> list:
        """
        Save the last detection's crops to the debug directory.

        Returns:
            Paths of saved files (empty if no detection available)
        """
        if self.last_result is None or self.last_result.report is None:
            logger.warning("No detection available for debug images")
            return []

        report = self.last_result.report
        paths = save_detection_artifacts(report, DEBUG_DIR)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")[:-3]
        annotated = DEBUG_DIR / f"annotated_{timestamp}.png"
        save_annotated_grid(report, annotated)
        logger.info(f"Annotated grid saved: {annotated}")
        return paths + [annotated]

    def request_stop(self):
        """
        Request the running session to stop.

        Keys already sent are not undone. Use wait() after calling this
        to block until the thread finishes.
        """
        logger.info("Stop requested")
        self.solver.stop()

    def is_running(self) -> bool:
        """
        Check if a session is currently active.

        Returns:
            True if the solver has an active session
        """
        return self.solver.is_busy
