"""
MH Grid Solver

Reads the 3x3 glyph grid of the mini-game from a screen capture and
replays the detected symbols as key presses.

Usage:
    from mhsolver import ConfigStore, KeyboardInjector, ScreenCapture, Solver

    solver = Solver(ConfigStore(), KeyboardInjector())
    with ScreenCapture() as capture:
        result = solver.trigger(capture.grab_frame(), capture.display_geometry())
"""

from .errors import (
    DetectionFailure,
    InjectionFailure,
    NotPresent,
    OutOfBounds,
    SessionBusy,
    SolverError,
)
from .capture import ScreenCapture
from .events import EventChannel, EventKind, SolverEvent
from .executor import ExecutionResult, ExecutorState, SequenceExecutor, build_sequence
from .frame import Cell, DisplayGeometry, Frame
from .geometry import GridRect, check_bounds, extract_cells, locate_grid
from .keys import KeyboardInjector, KeyInjector
from .presence import PresenceResult, validate_presence
from .session import SessionResult, SessionState, Solver, SolverSession
from .settings import ConfigStore, GridConfig, config_from_settings, load_settings, save_settings


__version__ = "1.0.0"
