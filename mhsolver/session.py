"""
Solver Session Module - state machine for one trigger-to-completion cycle.

A session snapshots the configuration, checks that the puzzle is on
screen, detects the 9 glyphs and replays them as key presses. Progress
is published to an EventChannel.

State Flow:
    IDLE -> DETECTING -> EXECUTING -> COMPLETE
                |            |
                |            +------> STOPPED (stop request)
                |            +------> ERROR (key injection broke down)
                +------> ERROR (not present, bad geometry or too many unknown)
                +------> STOPPED (stop request)

    COMPLETE / ERROR / STOPPED -> IDLE after the display cooldown
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional

from .errors import DetectionFailure, NotPresent, OutOfBounds, SessionBusy, SolverError
from .events import EventChannel, EventKind
from .executor import ExecutionResult, ExecutorState, KeyPress, SequenceExecutor
from .frame import DisplayGeometry, Frame
from .geometry import check_bounds, locate_grid
from .keys import KeyInjector
from .presence import DEFAULT_THRESHOLDS, PresenceThresholds, validate_presence
from .recognition import (
    CorrectionMap,
    DetectionReport,
    Grid,
    LetterClassifier,
    correction_for,
    create_classifier,
    detect_grid,
)
from .recognition.template import TemplateClassifier
from .settings import ConfigStore, GridConfig

logger = logging.getLogger(__name__)


__all__ = [
    "SessionState",
    "SessionResult",
    "SolverSession",
    "Solver",
    "TIME_BUDGET_SECONDS",
]


# Whole cycle (detection + keys) must finish within this
TIME_BUDGET_SECONDS = 3.0

# Detection time assumed by the execution estimate
ESTIMATED_DETECTION_MS = 1000.0

READY_MESSAGE = "Ready - Press hotkey to start"


class SessionState(Enum):
    """
    Session lifecycle states.

    States:
        IDLE: Waiting for a trigger (also the state after cooldown)
        DETECTING: Presence check and glyph detection
        EXECUTING: Sending key presses
        COMPLETE: All keys sent
        ERROR: Detection aborted or key injection broke down
        STOPPED: Stop requested while detecting or executing
    """
    IDLE = auto()
    DETECTING = auto()
    EXECUTING = auto()
    COMPLETE = auto()
    ERROR = auto()
    STOPPED = auto()

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.COMPLETE, SessionState.ERROR, SessionState.STOPPED)

    @property
    def status_name(self) -> str:
        """Lowercase name used in status events."""
        return self.name.lower()


@dataclass
class SessionResult:
    """Outcome of one session."""
    state: SessionState
    message: str
    grid: Optional[Grid] = None
    report: Optional[DetectionReport] = None
    execution: Optional[ExecutionResult] = None
    error: Optional[Exception] = None
    elapsed_seconds: float = 0.0
    history: List[SessionState] = field(default_factory=list)

    @property
    def pressed(self) -> List[KeyPress]:
        return self.execution.pressed if self.execution else []


class SolverSession:
    """
    One trigger-to-completion cycle.

    The configuration is captured at construction; later config updates
    do not reach a running session.

    Example:
        session = SolverSession(store.snapshot(), classifier, injector, channel)
        result = session.run(frame, display)
    """

    def __init__(self, config: GridConfig, classifier: LetterClassifier,
                 injector: KeyInjector, channel: Optional[EventChannel] = None,
                 correction: Optional[CorrectionMap] = None,
                 presence_thresholds: PresenceThresholds = DEFAULT_THRESHOLDS,
                 executor_factory=SequenceExecutor):
        """
        Initialize a session.

        Args:
            config: Configuration snapshot for this session
            classifier: Glyph classifier
            injector: Key injection backend
            channel: Event channel for progress events
            correction: Post-classification relabeling (default: per classifier strategy)
            presence_thresholds: Presence gate limits
            executor_factory: SequenceExecutor class or compatible factory
        """
        self.config = config
        self._classifier = classifier
        self._injector = injector
        self._channel = channel or EventChannel()
        self._correction = correction if correction is not None else correction_for(classifier.name)
        self._presence_thresholds = presence_thresholds
        self._executor_factory = executor_factory

        self._state = SessionState.IDLE
        self._history: List[SessionState] = [SessionState.IDLE]
        self._cancel_flag = threading.Event()
        self._lock = threading.Lock()
        self._started = False

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def history(self) -> List[SessionState]:
        """States visited, in order."""
        return list(self._history)

    @property
    def cancel_flag(self) -> threading.Event:
        return self._cancel_flag

    @property
    def is_active(self) -> bool:
        return self._state in (SessionState.DETECTING, SessionState.EXECUTING)

    def request_stop(self) -> None:
        """Ask the session to stop at its next check."""
        logger.info("Stop requested")
        self._cancel_flag.set()

    def _transition(self, state: SessionState) -> None:
        logger.debug(f"Session {self._state.name} -> {state.name}")
        self._state = state
        self._history.append(state)

    def _status(self, message: str, **extra) -> None:
        self._channel.emit(EventKind.STATUS, status=self._state.status_name, message=message, **extra)

    def run(self, frame: Frame, display: DisplayGeometry) -> SessionResult:
        """
        Run detection and execution on a captured frame.

        Args:
            frame: Captured screen frame
            display: Active display geometry

        Returns:
            SessionResult in a terminal state

        Raises:
            SessionBusy: If this session was already run
        """
        with self._lock:
            if self._started:
                raise SessionBusy("Session already started")
            self._started = True

        start = time.perf_counter()
        result = self._run(frame, display, start)
        result.elapsed_seconds = time.perf_counter() - start
        result.history = self.history

        extra = {}
        if result.state is SessionState.COMPLETE:
            extra["execution_time"] = round(result.elapsed_seconds, 2)
            if result.elapsed_seconds > TIME_BUDGET_SECONDS:
                logger.warning(
                    f"Session took {result.elapsed_seconds:.2f}s, over the {TIME_BUDGET_SECONDS:.0f}s budget"
                )
        self._status(result.message, **extra)
        return result

    def _run(self, frame: Frame, display: DisplayGeometry, start: float) -> SessionResult:
        config = self.config

        self._transition(SessionState.DETECTING)
        self._status("Detecting grid...")

        try:
            rect = locate_grid(display, config)
            logger.info(
                f"Using resolution: {display.key}, cell_size={rect.cell_size}px, "
                f"cell_spacing={rect.cell_spacing}px, top-left=({rect.x}, {rect.y})"
            )
            check_bounds(frame, rect)

            if self._cancel_flag.is_set():
                return self._stopped()

            presence = validate_presence(frame, rect, self._presence_thresholds)
            if not presence.present:
                raise NotPresent(presence.reasons)

            if self._cancel_flag.is_set():
                return self._stopped()

            report = detect_grid(frame, rect, self._classifier, self._correction, config.edge_padding)
        except (NotPresent, OutOfBounds) as e:
            logger.warning(f"Detection aborted: {e}")
            return self._error(e)
        except ValueError as e:
            logger.error(f"Grid configuration rejected: {e}")
            return self._error(e, message=f"Invalid grid configuration: {e}")

        grid = report.grid
        self._channel.emit(EventKind.GRID_DETECTED, letters=grid.letters, confidence=grid.confidence)

        if grid.unknown_count > config.max_unknown:
            error = DetectionFailure(grid.unknown_count)
            logger.warning(str(error))
            return self._error(error, grid=grid, report=report)

        if self._cancel_flag.is_set():
            return self._stopped(grid=grid, report=report)

        self._transition(SessionState.EXECUTING)
        self._status(f"Executing: {grid}")

        executor = self._executor_factory(
            self._injector,
            self._cancel_flag,
            base_delay_ms=config.base_delay_ms,
            delay_variance_ms=config.delay_variance_ms,
            min_delay_ms=config.min_delay_ms,
            on_key_pressed=self._on_key_pressed,
        )
        try:
            execution = executor.run(grid)
        except Exception as e:
            # Executor has logged the traceback and moved to FAILED
            return self._error(e, grid=grid, report=report, message=f"Key injection failed: {e}")

        if execution.state is ExecutorState.CANCELLED:
            return self._stopped(grid=grid, report=report, execution=execution)

        self._transition(SessionState.COMPLETE)
        elapsed = time.perf_counter() - start
        message = f"Solved in {elapsed:.2f}s"
        if execution.failed:
            message += f" ({len(execution.failed)} key(s) failed)"
        return SessionResult(SessionState.COMPLETE, message, grid=grid, report=report, execution=execution)

    def _on_key_pressed(self, press: KeyPress) -> None:
        self._channel.emit(EventKind.KEY_PRESSED, index=press.position, symbol=press.symbol.value)

    def _stopped(self, grid=None, report=None, execution=None) -> SessionResult:
        self._transition(SessionState.STOPPED)
        return SessionResult(SessionState.STOPPED, "Stopped by user",
                             grid=grid, report=report, execution=execution)

    def _error(self, error: Exception, grid=None, report=None, message: Optional[str] = None) -> SessionResult:
        self._transition(SessionState.ERROR)
        message = message or str(error)
        return SessionResult(SessionState.ERROR, message, grid=grid, report=report, error=error)

    def return_to_idle(self) -> None:
        """Reset the display after a terminal state (cooldown elapsed)."""
        if not self._state.is_terminal:
            return
        self._transition(SessionState.IDLE)
        self._channel.emit(EventKind.GRID_RESET)
        self._status(READY_MESSAGE)


class Solver:
    """
    Process-level coordinator.

    Owns the configuration store, classifier and event channel, runs at
    most one session at a time and schedules the cooldown back to IDLE.

    Example:
        solver = Solver(ConfigStore(), KeyboardInjector())
        solver.channel.subscribe(print)
        result = solver.trigger(capture.grab_frame(), capture.display_geometry())
    """

    def __init__(self, store: ConfigStore, injector: KeyInjector,
                 channel: Optional[EventChannel] = None,
                 classifier: Optional[LetterClassifier] = None,
                 schedule_cooldown: bool = True):
        """
        Initialize the solver.

        Args:
            store: Configuration store
            injector: Key injection backend
            channel: Event channel (a new one if None)
            classifier: Glyph classifier (built from config if None)
            schedule_cooldown: Return sessions to IDLE after cooldown_seconds
        """
        self.store = store
        self.channel = channel or EventChannel()
        self._injector = injector
        self._schedule_cooldown = schedule_cooldown
        self._active: Optional[SolverSession] = None
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._cooling: Optional[SolverSession] = None

        config = store.snapshot()
        self._classifier = classifier or create_classifier(
            config.classifier_strategy, template_dir=config.template_dir
        )
        self._announce_templates()

    @property
    def classifier(self) -> LetterClassifier:
        return self._classifier

    @property
    def active_session(self) -> Optional[SolverSession]:
        return self._active

    @property
    def is_busy(self) -> bool:
        return self._active is not None

    def set_classifier(self, strategy: str) -> None:
        """Switch classifier strategy for future sessions."""
        config = self.store.update(classifier_strategy=strategy)
        self._classifier = create_classifier(strategy, template_dir=config.template_dir)
        self._announce_templates()
        logger.info(f"Classifier changed to: {strategy}")

    def update_config(self, **changes) -> GridConfig:
        """Change configuration for future sessions."""
        return self.store.update(**changes)

    def _announce_templates(self) -> None:
        if isinstance(self._classifier, TemplateClassifier):
            templates = self._classifier.templates
            self.channel.emit(EventKind.TEMPLATE_STATUS, loaded=templates.is_loaded(), count=templates.count)

    def trigger(self, frame: Frame, display: DisplayGeometry) -> Optional[SessionResult]:
        """
        Run one session unless one is already active.

        Args:
            frame: Captured screen frame
            display: Active display geometry

        Returns:
            SessionResult, or None if a session is already running
        """
        with self._lock:
            if self._active is not None:
                logger.warning("Solver already running")
                return None
            pending = self._cancel_cooldown()
            session = SolverSession(self.store.snapshot(), self._classifier, self._injector, self.channel)
            self._active = session

        # Finish the previous display cycle before the new one starts
        if pending is not None:
            pending.return_to_idle()

        try:
            result = session.run(frame, display)
        finally:
            with self._lock:
                self._active = None

        logger.info(f"Session finished: {result.state.name} - {result.message}")
        if self._schedule_cooldown:
            with self._lock:
                self._cooling = session
                self._timer = threading.Timer(session.config.cooldown_seconds, self._end_cooldown, args=(session,))
                self._timer.daemon = True
                self._timer.start()
        return result

    def _cancel_cooldown(self) -> Optional[SolverSession]:
        """Cancel the pending cooldown timer. Caller holds the lock."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        pending, self._cooling = self._cooling, None
        return pending

    def _end_cooldown(self, session: SolverSession) -> None:
        with self._lock:
            if self._cooling is not session:
                return
            self._cooling = None
            self._timer = None
        session.return_to_idle()

    def stop(self) -> None:
        """Stop the active session, if any."""
        session = self._active
        if session is None:
            logger.warning("Solver not running")
            return
        session.request_stop()

    def shutdown(self) -> None:
        """Stop any session and cancel a pending cooldown."""
        with self._lock:
            session = self._active
            self._cancel_cooldown()
        if session is not None:
            session.request_stop()

    def estimate_execution_seconds(self) -> float:
        """Expected cycle time: 9 key delays plus detection."""
        config = self.store.snapshot()
        return (config.base_delay_ms * 9 + ESTIMATED_DETECTION_MS) / 1000.0

    def within_budget(self) -> bool:
        """Whether the current delays fit the time budget."""
        return self.estimate_execution_seconds() <= TIME_BUDGET_SECONDS
