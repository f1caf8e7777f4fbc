# host/__init__.py

from .config import LinkConfig
from .connection import HostConnection
from .rx_worker import RxWorker
from .scheduler import TransmissionScheduler
from .table import CommandTable

__all__ = [
    "LinkConfig",
    "HostConnection",
    "CommandTable",
    "TransmissionScheduler",
    "RxWorker",
]
