# cmdlink/device/actuators.py
"""
Example actuator commands built on the value-sink interface.

The protocol core only ever calls init()/update(); what the sink does with
the number (pin write, PWM duty, H-bridge drive) is the board's business.
"""

from __future__ import annotations

from typing import Optional

from .handlers import ValueSink
from .registry import CommandRegistry

MOTOR_MAX = 255
SERVO_MIN = 0
SERVO_MAX = 180


def clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))


class ClampedCommand:
    """A command whose values are clamped into [minimum, maximum] before reaching the sink."""

    def __init__(self, name: str, sink: ValueSink, *, minimum: int, maximum: int, init_value: int = 0):
        if minimum > maximum:
            raise ValueError(f"minimum {minimum} > maximum {maximum}")
        self.name = name
        self.minimum = minimum
        self.maximum = maximum
        self.init_value = clamp(init_value, minimum, maximum)
        self._sink = sink
        self.value: Optional[int] = None

    def init(self) -> int:
        self._write(self.init_value)
        return self.init_value

    def update(self, value: int) -> int:
        applied = clamp(value, self.minimum, self.maximum)
        self._write(applied)
        return applied

    def register(self, registry: CommandRegistry) -> None:
        registry.register(self.name, self.init, self.update)

    def _write(self, value: int) -> None:
        self.value = value
        self._sink(value)


class MotorCommand(ClampedCommand):
    """Signed speed; the sign selects direction, the magnitude is capped at MOTOR_MAX."""

    def __init__(self, name: str, sink: ValueSink, *, max_magnitude: int = MOTOR_MAX, init_value: int = 0):
        super().__init__(name, sink, minimum=-max_magnitude, maximum=max_magnitude, init_value=init_value)


class ServoCommand(ClampedCommand):
    """Angle in degrees."""

    def __init__(self, name: str, sink: ValueSink, *, minimum: int = SERVO_MIN, maximum: int = SERVO_MAX,
                 init_value: int = 90):
        super().__init__(name, sink, minimum=minimum, maximum=maximum, init_value=init_value)


class BlinkCommand:
    """
    Toggle an output every `value` milliseconds.

    The value is a one-shot interval: a non-positive value is not clamped, it
    resets the command to its init value (init 0 = output off, not blinking).
    Also a device task: poll(now) does the toggling.
    """

    def __init__(self, name: str, sink: ValueSink, *, init_value: int = 0):
        self.name = name
        self.init_value = init_value
        self._sink = sink
        self.interval_ms = init_value
        self.output = 0
        self._last_toggle: Optional[float] = None

    def init(self) -> int:
        self._set_interval(self.init_value)
        return self.init_value

    def update(self, value: int) -> int:
        self._set_interval(value if value > 0 else self.init_value)
        return self.interval_ms

    def register(self, registry: CommandRegistry) -> None:
        registry.register(self.name, self.init, self.update)

    def poll(self, now: float) -> None:
        if self.interval_ms <= 0:
            return
        if self._last_toggle is None:
            self._last_toggle = now
            return
        if (now - self._last_toggle) * 1000.0 >= self.interval_ms:
            self._last_toggle = now
            self._write(0 if self.output else 1)

    def _set_interval(self, interval_ms: int) -> None:
        if interval_ms <= 0:
            self.interval_ms = interval_ms
            self._last_toggle = None
            self._write(0)
            return
        # the host repeats the same value every cycle; keep the phase
        if interval_ms != self.interval_ms:
            self.interval_ms = interval_ms
            self._last_toggle = None

    def _write(self, level: int) -> None:
        self.output = level
        self._sink(level)
