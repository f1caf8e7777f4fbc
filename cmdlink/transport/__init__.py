# transport/__init__.py

from .base import Transport
from .errors import TransportClosedError, TransportError, TransportIOError, TransportOpenError
from .loopback import LoopbackTransport
from .uart import UARTTransport

__all__ = [
    "Transport",
    "UARTTransport",
    "LoopbackTransport",
    "TransportError", "TransportOpenError", "TransportIOError", "TransportClosedError",
]
