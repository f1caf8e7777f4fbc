from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .defs import INIT_DELIMITER, UPDATE_DELIMITER


class FrameKind(Enum):
    UPDATE = "update"
    INIT = "init"

    @property
    def delimiter(self) -> bytes:
        return INIT_DELIMITER if self is FrameKind.INIT else UPDATE_DELIMITER


@dataclass(frozen=True, slots=True)
class Frame:
    """One decoded wire unit: a command name and its integer value."""
    name: str
    value: int
    kind: FrameKind = FrameKind.UPDATE

    @property
    def is_init(self) -> bool:
        return self.kind is FrameKind.INIT
