from __future__ import annotations

import threading

import pytest

from cmdlink.core.errors import DuplicateCommandError, FrameEncodeError, UnknownCommandError
from cmdlink.host import CommandTable
from cmdlink.protocol import Frame, FrameKind


def test_register_seeds_current_value():
    t = CommandTable()
    t.register("X1", 0)
    t.register("S1", 90)

    assert t.snapshot() == [("X1", 0), ("S1", 90)]
    assert t.value("S1") == 90


def test_duplicate_register_is_rejected():
    t = CommandTable()
    t.register("X1", 0)
    with pytest.raises(DuplicateCommandError):
        t.register("X1", 5)


def test_update_unknown_command_fails_immediately():
    t = CommandTable()
    with pytest.raises(UnknownCommandError) as ei:
        t.update_command("X1", 5)
    assert ei.value.code == "unknown_command"

    t.register("X1", 0)
    # not a valid wire name either; still reported as unknown
    with pytest.raises(UnknownCommandError):
        t.update_command("NOTREGISTERED", 1)
    assert t.snapshot() == [("X1", 0)]


def test_update_overwrites_value_for_next_cycle():
    t = CommandTable()
    t.register("X1", 0)
    t.update_command("X1", 50)
    assert t.snapshot() == [("X1", 50)]


def test_update_rejects_unencodable_value():
    t = CommandTable()
    t.register("X1", 0)
    with pytest.raises(FrameEncodeError):
        t.update_command("X1", 100000)
    assert t.value("X1") == 0


def test_register_rejects_bad_name():
    with pytest.raises(FrameEncodeError):
        CommandTable().register("bad name", 0)


def test_mirror_tracks_device_reports():
    t = CommandTable()
    t.mirror(Frame("X1", 0, FrameKind.INIT))
    t.mirror(Frame("X1", 42))

    assert t.device_value("X1") == 42
    assert t.device_init_value("X1") == 0
    assert t.device_snapshot() == {"X1": 42}
    assert t.device_value("NOPE") is None


def test_snapshot_is_a_copy():
    t = CommandTable()
    t.register("X1", 0)
    snap = t.snapshot()
    t.update_command("X1", 9)
    assert snap == [("X1", 0)]


def test_concurrent_updates_and_snapshots():
    t = CommandTable()
    for i in range(4):
        t.register(f"C{i}", 0)

    stop = threading.Event()
    errors: list[Exception] = []

    def writer(name):
        v = 0
        while not stop.is_set():
            v = (v + 1) % 1000
            t.update_command(name, v)

    def reader():
        try:
            for _ in range(2000):
                assert len(t.snapshot()) == 4
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=writer, args=(f"C{i}",)) for i in range(4)]
    for th in threads:
        th.start()
    reader()
    stop.set()
    for th in threads:
        th.join()

    assert errors == []
