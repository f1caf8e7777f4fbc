from __future__ import annotations

import logging
from typing import Iterator, Optional

from .defs import (
    CARRIAGE_RETURN,
    INIT_DELIMITER,
    MAX_FRAME_SIZE,
    TERMINATOR,
    UPDATE_DELIMITER,
    is_valid_name,
    parse_value,
)
from .frame import Frame, FrameKind


class FrameParser:
    """
    Incremental decoder for the line-oriented command protocol.

    Bytes may arrive in arbitrary chunks; a trailing partial frame is kept in
    the buffer until its terminator shows up. Malformed frames are dropped,
    oversized input is discarded up to the next terminator, and decoding
    carries on with whatever follows.
    """

    def __init__(self, max_frame_size: int = MAX_FRAME_SIZE, logger: Optional[logging.Logger] = None):
        if max_frame_size < 4:
            raise ValueError("max_frame_size must be >= 4")
        self.max_frame_size = int(max_frame_size)
        self.buffer = bytearray()
        self._discarding = False
        self._log = logger or logging.getLogger(__name__)

        self.frames_ok = 0
        self.frames_dropped = 0

    # ---------------- Public API ----------------
    def feed(self, data: bytes) -> Iterator[Frame]:
        """
        Append raw bytes and return an iterator over the complete frames now available.

        The bytes are buffered immediately; frames are decoded as the iterator is consumed.
        """
        if data:
            self.buffer.extend(data)
            self._log.debug("Parser fed %d bytes, buffer_len=%d", len(data), len(self.buffer))
        return self._drain()

    def get_frame(self) -> Optional[Frame]:
        """Parse and return the next complete frame, if available."""
        while True:
            if self._discarding:
                idx = self.buffer.find(TERMINATOR)
                if idx < 0:
                    self.buffer.clear()
                    return None
                del self.buffer[: idx + 1]
                self._discarding = False
                self._log.debug("Parser resynchronized on terminator")
                continue

            idx = self.buffer.find(TERMINATOR)
            if idx < 0:
                if len(self.buffer) >= self.max_frame_size:
                    self._drop("oversized", bytes(self.buffer[:16]))
                    self.buffer.clear()
                    self._discarding = True
                return None  # Wait for more bytes

            if idx + 1 > self.max_frame_size:
                self._drop("oversized", bytes(self.buffer[:16]))
                del self.buffer[: idx + 1]
                continue

            line = bytes(self.buffer[:idx])
            del self.buffer[: idx + 1]

            if line.endswith(CARRIAGE_RETURN):
                line = line[:-1]
            if not line:
                continue  # blank line between frames

            frame = self._parse_line(line)
            if frame is None:
                continue

            self.frames_ok += 1
            return frame

    def reset(self) -> None:
        """Forget any buffered partial frame."""
        self.buffer.clear()
        self._discarding = False

    # ---------------- Helpers ----------------
    def _drain(self) -> Iterator[Frame]:
        while True:
            frame = self.get_frame()
            if frame is None:
                return
            yield frame

    def _parse_line(self, line: bytes) -> Optional[Frame]:
        upd = line.find(UPDATE_DELIMITER)
        ini = line.find(INIT_DELIMITER)
        if upd < 0 and ini < 0:
            self._drop("no_delimiter", line)
            return None

        if ini < 0 or (0 <= upd < ini):
            pos, kind = upd, FrameKind.UPDATE
        else:
            pos, kind = ini, FrameKind.INIT

        try:
            name = line[:pos].decode("ascii")
        except UnicodeDecodeError:
            self._drop("bad_name", line)
            return None
        if not is_valid_name(name):
            self._drop("bad_name", line)
            return None

        try:
            value = parse_value(line[pos + 1:])
        except ValueError:
            self._drop("bad_value", line)
            return None

        return Frame(name=name, value=value, kind=kind)

    def _drop(self, reason: str, raw: bytes) -> None:
        self.frames_dropped += 1
        self._log.warning("FRAME_DROPPED reason=%s raw=%r", reason, raw)
