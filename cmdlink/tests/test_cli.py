from __future__ import annotations

import argparse
import logging
from types import SimpleNamespace

import pytest

import cmdlink.cli.commands as commands_mod
import cmdlink.cli.main as main_mod
from cmdlink.cli.args import parse_args, parse_command_assignment
from cmdlink.cli.main import main


@pytest.fixture(autouse=True)
def _no_logging_setup(monkeypatch):
    # keep root-logger handlers out of the captured streams
    monkeypatch.setattr(main_mod, "configure_logging", lambda *a, **k: None)


def test_parse_command_assignment():
    assert parse_command_assignment("X1=50") == ("X1", 50)
    assert parse_command_assignment("M1=-255") == ("M1", -255)

    for bad in ("X1", "=5", "X1=abc"):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_command_assignment(bad)


def test_send_args_collect_repeated_cmds():
    args = parse_args(["send", "--port", "COM3", "--cmd", "X1=1", "--cmd", "S1=90", "--secs", "0"])
    assert args.cmd == "send"
    assert args.port == "COM3"
    assert args.assignments == [("X1", 1), ("S1", 90)]
    assert args.secs == 0


def test_ports_lists_candidates(monkeypatch, capsys):
    monkeypatch.setattr(
        commands_mod,
        "list_candidates",
        lambda: [SimpleNamespace(device="/dev/ttyACM0", vid=None, pid=None,
                                 manufacturer=None, product=None, description="Arduino Uno")],
    )
    assert main(["ports"]) == 0
    assert "/dev/ttyACM0 Arduino Uno" in capsys.readouterr().out


def test_send_without_detectable_port_reports_error(monkeypatch, capsys):
    monkeypatch.setattr(commands_mod, "autodetect_port", lambda: None)
    assert main(["send", "--cmd", "X1=1"]) == 1
    out = capsys.readouterr().out
    assert "ERROR: Could not auto-detect the device port." in out
    assert "Hint:" in out


def test_invalid_interval_reports_config_error(capsys):
    rc = main(["simulate", "--interval", "1.0", "--device-timeout", "0.5", "--secs", "0"])
    assert rc == 1
    assert "ERROR:" in capsys.readouterr().out


def test_simulate_shows_single_watchdog_reset(capsys):
    rc = main(["simulate", "--secs", "0.3", "--interval", "0.05", "--device-timeout", "0.2"])
    out = capsys.readouterr().out

    assert rc == 0
    assert "M1: sent=200 device=200" in out
    assert "watchdog expiries: 1" in out
    assert "M1: output=0" in out
    assert "S1: output=90" in out


def test_configure_logging_adds_file_handler_once(tmp_path):
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    log_file = tmp_path / "logs" / "cmdlink.log"
    try:
        commands_mod.configure_logging("INFO", log_file)
        commands_mod.configure_logging("INFO", log_file)

        file_handlers = [
            h for h in root.handlers
            if isinstance(h, logging.FileHandler) and h.baseFilename == str(log_file.resolve())
        ]
        assert len(file_handlers) == 1
        assert root.level == logging.INFO
        assert log_file.parent.is_dir()
    finally:
        for h in list(root.handlers):
            if h not in before:
                root.removeHandler(h)
                h.close()
        root.setLevel(level)
