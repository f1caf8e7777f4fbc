# device/__init__.py

from .actuators import BlinkCommand, ClampedCommand, MotorCommand, ServoCommand
from .handlers import InitHandler, UpdateHandler, ValueSink
from .loop import DeviceLoop
from .registry import CommandRegistry
from .tasks import DeviceTask, PeriodicTask
from .watchdog import Watchdog, WatchdogState

__all__ = [
    "CommandRegistry",
    "InitHandler", "UpdateHandler", "ValueSink",
    "Watchdog", "WatchdogState",
    "DeviceLoop", "DeviceTask", "PeriodicTask",
    "ClampedCommand", "MotorCommand", "ServoCommand", "BlinkCommand",
]
