# cmdlink/device/handlers.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Union


class ValueSink(Protocol):
    """Narrow actuator interface: something that accepts an integer output value."""
    def __call__(self, value: int) -> None: ...


@dataclass(frozen=True, slots=True)
class InitHandler:
    """
    Runs once at device startup. Puts the actuator into its safe state and
    returns the command's init value.
    """
    fn: Callable[[], int]

    def __post_init__(self) -> None:
        if not callable(self.fn):
            raise TypeError(f"InitHandler expects a callable, got {type(self.fn).__name__}")

    def __call__(self) -> int:
        value = self.fn()
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"init handler must return int, got {type(value).__name__}")
        return value


@dataclass(frozen=True, slots=True)
class UpdateHandler:
    """
    Consumes a new value for a command.

    The wrapped callable returns the value it actually applied (for example
    after clamping), or None when the value was applied as given.
    """
    fn: Callable[[int], Optional[int]]

    def __post_init__(self) -> None:
        if not callable(self.fn):
            raise TypeError(f"UpdateHandler expects a callable, got {type(self.fn).__name__}")

    def __call__(self, value: int) -> int:
        accepted = self.fn(value)
        if accepted is None:
            return value
        if isinstance(accepted, bool) or not isinstance(accepted, int):
            raise TypeError(f"update handler must return int or None, got {type(accepted).__name__}")
        return accepted


InitLike = Union[InitHandler, Callable[[], int]]
UpdateLike = Union[UpdateHandler, Callable[[int], Optional[int]]]


def as_init_handler(handler: InitLike) -> InitHandler:
    return handler if isinstance(handler, InitHandler) else InitHandler(handler)


def as_update_handler(handler: UpdateLike) -> UpdateHandler:
    return handler if isinstance(handler, UpdateHandler) else UpdateHandler(handler)
