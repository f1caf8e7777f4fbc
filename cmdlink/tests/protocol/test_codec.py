from __future__ import annotations

import pytest

from cmdlink.core.errors import FrameEncodeError
from cmdlink.protocol import Frame, FrameKind, MAX_FRAME_SIZE, encode, encode_frame, encode_many


def test_encode_update_frame_layout():
    assert encode("X1", 50) == b"X1:50\n"
    assert encode("M1", -255) == b"M1:-255\n"


def test_encode_init_frame_uses_init_delimiter():
    assert encode("X1", 0, FrameKind.INIT) == b"X1=0\n"
    assert encode_frame(Frame("S1", 90, FrameKind.INIT)) == b"S1=90\n"


def test_encode_is_pure():
    assert encode("LED_13", 7) == encode("LED_13", 7)


def test_longest_frame_fits_budget():
    raw = encode("ABCDEFGH", -32768)
    assert len(raw) <= MAX_FRAME_SIZE
    assert raw.endswith(b"\n")


@pytest.mark.parametrize("name", ["", "TOOLONGNAME", "X 1", "X:1", "X=1", "é1", None, 12])
def test_encode_rejects_invalid_names(name):
    with pytest.raises(FrameEncodeError):
        encode(name, 1)


@pytest.mark.parametrize("value", [32768, -32769, 1.5, "5", True])
def test_encode_rejects_unrepresentable_values(value):
    with pytest.raises(FrameEncodeError) as ei:
        encode("X1", value)
    assert ei.value.code == "frame_encode_error"


def test_encode_many_concatenates_in_order():
    raw = encode_many([Frame("A", 1), Frame("B", 2)])
    assert raw == b"A:1\nB:2\n"
