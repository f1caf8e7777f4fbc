from __future__ import annotations

import pytest

from cmdlink.device import BlinkCommand, CommandRegistry, MotorCommand, ServoCommand
from cmdlink.device.actuators import MOTOR_MAX, SERVO_MAX, SERVO_MIN, ClampedCommand


class Sink:
    def __init__(self):
        self.values: list[int] = []

    def __call__(self, value: int) -> None:
        self.values.append(value)


def _started(cmd) -> CommandRegistry:
    reg = CommandRegistry()
    cmd.register(reg)
    reg.start()
    return reg


def test_motor_clamps_to_max_magnitude():
    sink = Sink()
    motor = MotorCommand("M1", sink)
    reg = _started(motor)

    reg.dispatch("M1", 300)
    assert sink.values[-1] == MOTOR_MAX
    assert reg.current_value("M1") == MOTOR_MAX

    reg.dispatch("M1", -300)
    assert sink.values[-1] == -MOTOR_MAX

    reg.dispatch("M1", 120)
    assert sink.values[-1] == 120


def test_servo_clamps_to_range():
    sink = Sink()
    reg = _started(ServoCommand("S1", sink))

    reg.dispatch("S1", -10)
    assert sink.values[-1] == SERVO_MIN

    reg.dispatch("S1", 500)
    assert sink.values[-1] == SERVO_MAX


def test_servo_init_writes_safe_position():
    sink = Sink()
    reg = _started(ServoCommand("S1", sink, init_value=90))
    assert sink.values == [90]
    assert reg.init_value("S1") == 90


def test_clamped_command_rejects_inverted_range():
    with pytest.raises(ValueError):
        ClampedCommand("X", Sink(), minimum=10, maximum=0)


def test_blink_non_positive_interval_resets_to_init_value():
    blink = BlinkCommand("B1", Sink(), init_value=250)
    reg = _started(blink)

    reg.dispatch("B1", 100)
    assert blink.interval_ms == 100

    reg.dispatch("B1", -5)
    assert blink.interval_ms == 250
    assert reg.current_value("B1") == 250

    reg.dispatch("B1", 0)
    assert reg.current_value("B1") == 250


def test_blink_toggles_output_on_poll():
    sink = Sink()
    blink = BlinkCommand("B1", sink)
    reg = _started(blink)
    assert sink.values == [0]

    reg.dispatch("B1", 100)
    blink.poll(0.0)
    blink.poll(0.05)
    assert blink.output == 0

    blink.poll(0.1)
    assert blink.output == 1
    blink.poll(0.25)
    assert blink.output == 0
    assert sink.values == [0, 1, 0]


def test_blink_stops_and_turns_off_on_reinitialize():
    sink = Sink()
    blink = BlinkCommand("B1", sink)
    reg = _started(blink)

    reg.dispatch("B1", 100)
    blink.poll(0.0)
    blink.poll(0.1)
    assert blink.output == 1

    reg.reinitialize_all()
    assert blink.output == 0
    blink.poll(5.0)
    assert blink.output == 0
