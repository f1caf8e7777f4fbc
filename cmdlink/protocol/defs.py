# cmdlink/protocol/defs.py
"""
Wire constants and field validation.

Frame layout (ASCII):

    <name> <delimiter> <decimal value> <terminator>

    b"X1:50\\n"   UPDATE  host -> device command, device -> host acknowledgment
    b"X1=0\\n"    INIT    device -> host, once per command at startup

The device receive buffer is 64 bytes; MAX_FRAME_SIZE keeps any frame, even
an oversized one we still have to scan for a terminator, well under it.
"""

from __future__ import annotations

import re

UPDATE_DELIMITER = b":"
INIT_DELIMITER = b"="
TERMINATOR = b"\n"
CARRIAGE_RETURN = b"\r"

NAME_MAX_LEN = 8
VALUE_MIN = -32768
VALUE_MAX = 32767

# terminator included
MAX_FRAME_SIZE = 32

_NAME_RE = re.compile(r"[A-Za-z0-9_]{1,%d}\Z" % NAME_MAX_LEN)
_VALUE_RE = re.compile(rb"[+-]?[0-9]{1,6}\Z")


def is_valid_name(name: object) -> bool:
    return isinstance(name, str) and _NAME_RE.match(name) is not None


def is_valid_value(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return VALUE_MIN <= value <= VALUE_MAX


def parse_value(raw: bytes) -> int:
    """Parse a decimal value field. Raises ValueError on anything malformed or out of range."""
    if not _VALUE_RE.match(raw):
        raise ValueError(f"malformed value field {raw!r}")
    value = int(raw)
    if not (VALUE_MIN <= value <= VALUE_MAX):
        raise ValueError(f"value {value} outside [{VALUE_MIN}, {VALUE_MAX}]")
    return value
