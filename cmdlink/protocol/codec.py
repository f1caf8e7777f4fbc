# cmdlink/protocol/codec.py
from __future__ import annotations

from typing import Iterable

from cmdlink.core.errors import FrameEncodeError

from .defs import NAME_MAX_LEN, TERMINATOR, VALUE_MAX, VALUE_MIN, is_valid_name, is_valid_value
from .frame import Frame, FrameKind


def encode(name: str, value: int, kind: FrameKind = FrameKind.UPDATE) -> bytes:
    """
    Encode one frame. Pure: the same (name, value, kind) always yields the same bytes.

    Raises FrameEncodeError if the name or value cannot be represented.
    """
    if not is_valid_name(name):
        raise FrameEncodeError(
            f"Invalid command name {name!r}.",
            hint=f"Use 1..{NAME_MAX_LEN} characters from [A-Za-z0-9_].",
            details={"name": name},
        )
    if not is_valid_value(value):
        raise FrameEncodeError(
            f"Value {value!r} for command '{name}' cannot be encoded.",
            hint=f"Values are integers in [{VALUE_MIN}, {VALUE_MAX}].",
            details={"name": name, "value": value},
        )
    return name.encode("ascii") + kind.delimiter + str(int(value)).encode("ascii") + TERMINATOR


def encode_frame(frame: Frame) -> bytes:
    return encode(frame.name, frame.value, frame.kind)


def encode_many(frames: Iterable[Frame]) -> bytes:
    """Concatenate several frames into one buffer for a single write."""
    return b"".join(encode_frame(f) for f in frames)
