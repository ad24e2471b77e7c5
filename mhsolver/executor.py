"""
Sequence Executor

Replays a classified grid as key presses in row-major order with a
jittered delay between keys. Execution checks the cancel flag before
every key; presses already sent are not undone.
"""

import logging
import random
import threading
import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, List, Optional, Tuple

from .errors import InjectionFailure
from .keys import KeyInjector
from .recognition.result import Grid, Symbol

logger = logging.getLogger(__name__)


__all__ = [
    "ExecutorState",
    "KeyPress",
    "KeySequence",
    "ExecutionResult",
    "SequenceExecutor",
    "build_sequence",
]


class ExecutorState(Enum):
    """
    Executor lifecycle.

    States:
        IDLE: Created, nothing sent
        RUNNING: Sending keys
        COMPLETED: Every known cell was attempted
        CANCELLED: Stop observed before a key
        FAILED: Unexpected error while sending
    """
    IDLE = auto()
    RUNNING = auto()
    COMPLETED = auto()
    CANCELLED = auto()
    FAILED = auto()


@dataclass(frozen=True)
class KeyPress:
    """One key request: grid position (0-8, row-major) and symbol."""
    position: int
    symbol: Symbol


@dataclass(frozen=True)
class KeySequence:
    """Ordered key requests for a grid, UNKNOWN cells skipped."""
    presses: Tuple[KeyPress, ...]

    def __len__(self) -> int:
        return len(self.presses)

    def __iter__(self):
        return iter(self.presses)

    @property
    def keys(self) -> str:
        """Lowercase key string, e.g. 'qweasdrqw'."""
        return "".join(p.symbol.key for p in self.presses)


@dataclass
class ExecutionResult:
    """Outcome of one execution."""
    state: ExecutorState
    pressed: List[KeyPress] = field(default_factory=list)
    failed: List[KeyPress] = field(default_factory=list)
    elapsed_ms: float = 0.0


def build_sequence(grid: Grid) -> KeySequence:
    """
    Turn a grid into its key sequence.

    Args:
        grid: Classified grid

    Returns:
        KeySequence in row-major order without UNKNOWN cells
    """
    return KeySequence(tuple(
        KeyPress(position=index, symbol=cell.symbol)
        for index, cell in enumerate(grid)
        if not cell.is_unknown
    ))


class SequenceExecutor:
    """
    Sends a grid's keys one by one.

    Example:
        executor = SequenceExecutor(injector, cancel_flag, base_delay_ms=150, delay_variance_ms=50)
        result = executor.run(grid)
    """

    def __init__(self, injector: KeyInjector, cancel_flag: Optional[threading.Event] = None,
                 base_delay_ms: float = 150.0, delay_variance_ms: float = 50.0,
                 min_delay_ms: float = 50.0, rng: Optional[random.Random] = None,
                 on_key_pressed: Optional[Callable[[KeyPress], None]] = None):
        """
        Initialize the executor.

        Args:
            injector: Key injection backend
            cancel_flag: Event set by an external stop request
            base_delay_ms: Mean delay between keys
            delay_variance_ms: Half-width of the uniform jitter
            min_delay_ms: Floor for every delay
            rng: Random source for the jitter
            on_key_pressed: Called after each successful press
        """
        self._injector = injector
        self._cancel_flag = cancel_flag or threading.Event()
        self.base_delay_ms = base_delay_ms
        self.delay_variance_ms = delay_variance_ms
        self.min_delay_ms = min_delay_ms
        self._rng = rng or random.Random()
        self._on_key_pressed = on_key_pressed
        self._state = ExecutorState.IDLE

    @property
    def state(self) -> ExecutorState:
        return self._state

    @property
    def cancel_flag(self) -> threading.Event:
        return self._cancel_flag

    def cancel(self) -> None:
        """Request a stop before the next key."""
        self._cancel_flag.set()

    def next_delay_ms(self) -> float:
        """Draw one inter-key delay in milliseconds."""
        low = self.base_delay_ms - self.delay_variance_ms
        high = self.base_delay_ms + self.delay_variance_ms
        return max(self.min_delay_ms, self._rng.uniform(low, high))

    def run(self, grid: Grid) -> ExecutionResult:
        """
        Send the grid's key sequence.

        Args:
            grid: Classified grid

        Returns:
            ExecutionResult with the terminal state and the keys sent

        Raises:
            RuntimeError: If the executor was already run
            Exception: Anything other than InjectionFailure raised by the
                injector propagates after moving to FAILED
        """
        if self._state is not ExecutorState.IDLE:
            raise RuntimeError(f"Executor already used (state {self._state.name})")

        sequence = build_sequence(grid)
        result = ExecutionResult(state=ExecutorState.RUNNING)
        self._state = ExecutorState.RUNNING
        start = time.perf_counter()

        logger.info(f"Executing {len(sequence)} keys: {sequence.keys.upper()}")

        try:
            for i, press in enumerate(sequence):
                if self._cancel_flag.is_set():
                    logger.info(f"Sequence stopped before position {press.position + 1}")
                    self._state = ExecutorState.CANCELLED
                    break

                try:
                    self._injector.press(press.symbol)
                except InjectionFailure as e:
                    logger.error(f"Failed to press key {press.symbol}: {e}")
                    result.failed.append(press)
                else:
                    result.pressed.append(press)
                    logger.debug(f"Pressed: {press.symbol} (position {press.position + 1}/9)")
                    if self._on_key_pressed:
                        self._on_key_pressed(press)

                if i < len(sequence) - 1:
                    # Timed wait that a stop request cuts short
                    self._cancel_flag.wait(self.next_delay_ms() / 1000.0)
            else:
                self._state = ExecutorState.COMPLETED
        except Exception:
            self._state = ExecutorState.FAILED
            logger.exception("Key sequence failed")
            raise
        finally:
            result.state = self._state
            result.elapsed_ms = (time.perf_counter() - start) * 1000

        return result
