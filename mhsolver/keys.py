"""
Key Injection

Adapters that deliver synthetic key presses for glyph symbols.
"""

import logging
from abc import ABC, abstractmethod

from .errors import InjectionFailure
from .recognition.result import Symbol

logger = logging.getLogger(__name__)


class KeyInjector(ABC):
    """Sends one key press per call."""

    @abstractmethod
    def press(self, symbol: Symbol) -> None:
        """
        Press and release the key for a symbol.

        Raises:
            InjectionFailure: If the key could not be delivered
        """
        pass


class KeyboardInjector(KeyInjector):
    """
    Key injector backed by the `keyboard` package.

    The package is imported on first use; on Linux it needs root, on
    Windows it works for the focused window.
    """

    def __init__(self):
        self._keyboard = None

    def _backend(self):
        if self._keyboard is None:
            import keyboard
            self._keyboard = keyboard
        return self._keyboard

    def press(self, symbol: Symbol) -> None:
        key = symbol.key
        if key is None:
            raise InjectionFailure(symbol)
        try:
            self._backend().press_and_release(key)
        except (ImportError, OSError, ValueError) as e:
            raise InjectionFailure(symbol, cause=e) from e
        logger.debug(f"Pressed: {symbol}")
