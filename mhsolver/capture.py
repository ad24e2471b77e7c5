"""
Screen Capture Module for MH Grid Solver

Grabs the primary monitor with mss and hands the pixels to the solver
as an immutable RGB Frame.
"""

import logging

import mss
import numpy as np

from .frame import DisplayGeometry, Frame

logger = logging.getLogger(__name__)


class ScreenCapture:
    """
    Primary monitor capture.

    Example:
        capture = ScreenCapture()
        display = capture.display_geometry()
        frame = capture.grab_frame()
        capture.release()
    """

    def __init__(self, monitor_index: int = 1):
        """
        Initialize the capture.

        Args:
            monitor_index: mss monitor index (0 is the virtual screen, 1 the primary monitor)
        """
        self.monitor_index = monitor_index
        self._sct = None

    def _session(self):
        if self._sct is None:
            self._sct = mss.mss()
        return self._sct

    def _monitor(self) -> dict:
        monitors = self._session().monitors
        if self.monitor_index >= len(monitors):
            logger.warning(f"Monitor {self.monitor_index} not found, using virtual screen")
            return monitors[0]
        return monitors[self.monitor_index]

    def display_geometry(self) -> DisplayGeometry:
        """Get the active display size."""
        monitor = self._monitor()
        return DisplayGeometry(width=monitor["width"], height=monitor["height"])

    def grab_frame(self) -> Frame:
        """
        Capture the monitor.

        Returns:
            Frame with RGB pixels

        Raises:
            mss.exception.ScreenShotError: If the capture backend fails
        """
        screenshot = self._session().grab(self._monitor())
        # mss returns BGRA rows
        bgra = np.asarray(screenshot, dtype=np.uint8)
        frame = Frame.from_array(bgra[:, :, 2::-1])
        logger.debug(f"Captured frame {frame.width}x{frame.height}")
        return frame

    def release(self) -> None:
        """Close the capture session."""
        if self._sct is not None:
            self._sct.close()
            self._sct = None

    def __enter__(self) -> 'ScreenCapture':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
