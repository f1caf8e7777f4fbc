# cmdlink/transport/errors.py
from __future__ import annotations


class TransportError(Exception):
    """Base class for byte-stream failures (serial port, loopback, ...)."""


class TransportOpenError(TransportError):
    """The endpoint could not be opened (missing port, busy, permissions)."""


class TransportIOError(TransportError):
    """A read, write or flush on an open endpoint failed."""


class TransportClosedError(TransportIOError):
    """I/O attempted on a transport that is not open."""
