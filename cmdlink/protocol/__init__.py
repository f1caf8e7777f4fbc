# protocol/__init__.py

from .codec import encode, encode_frame, encode_many
from .defs import MAX_FRAME_SIZE, NAME_MAX_LEN, VALUE_MAX, VALUE_MIN
from .frame import Frame, FrameKind
from .parser import FrameParser

__all__ = [
    "Frame", "FrameKind",
    "FrameParser",
    "encode", "encode_frame", "encode_many",
    "MAX_FRAME_SIZE", "NAME_MAX_LEN", "VALUE_MIN", "VALUE_MAX",
]
