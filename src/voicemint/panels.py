"""
Per-panel request state as a single tagged union.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from .errors import ValidationError, VoicemintError

logger = logging.getLogger("voicemint")

T = TypeVar("T")

UNKNOWN_ERROR = "An unknown error occurred."


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Loading:
    pass


@dataclass(frozen=True)
class Failed:
    message: str


@dataclass(frozen=True)
class Succeeded(Generic[T]):
    result: T


PanelState = Union[Idle, Loading, Failed, Succeeded]


class Panel:
    """Holds one feature's request state and runs operations against it."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._state: PanelState = Idle()
        self._listeners: list[Callable[[PanelState], None]] = []

    @property
    def state(self) -> PanelState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return isinstance(self._state, Loading)

    @property
    def result(self) -> Any:
        """Result of the last successful run, or None."""
        if isinstance(self._state, Succeeded):
            return self._state.result
        return None

    @property
    def error(self) -> str | None:
        if isinstance(self._state, Failed):
            return self._state.message
        return None

    def subscribe(self, callback: Callable[[PanelState], None]) -> None:
        self._listeners.append(callback)

    def set_state(self, state: PanelState) -> None:
        self._state = state
        logger.debug("[%s] -> %s", self.name, type(state).__name__)
        for cb in list(self._listeners):
            cb(state)

    def reset(self) -> None:
        self.set_state(Idle())

    def fail(self, message: str) -> None:
        self.set_state(Failed(message))

    async def run(
        self, operation: Callable[[], Awaitable[T]], *, error_prefix: str = "An error occurred"
    ) -> PanelState:
        """Run an async operation: Loading, then Succeeded(result) or Failed(message)."""
        self.set_state(Loading())
        try:
            result = await operation()
        except ValidationError as e:
            self.set_state(Failed(str(e)))
        except VoicemintError as e:
            logger.error("[%s] %s", self.name, e)
            self.set_state(Failed(f"{error_prefix}: {e}"))
        except Exception:
            logger.exception("[%s] unexpected failure", self.name)
            self.set_state(Failed(UNKNOWN_ERROR))
        else:
            self.set_state(Succeeded(result))
        return self._state
