# cmdlink/transport/ports.py
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from serial.tools import list_ports

# Common Arduino-class USB bridges: genuine Arduino, CH340, FTDI, CP210x.
ARDUINO_VID_PIDS: Tuple[Tuple[int, int], ...] = (
    (0x2341, 0x0043),
    (0x2341, 0x0001),
    (0x1A86, 0x7523),
    (0x0403, 0x6001),
    (0x10C4, 0xEA60),
)
ARDUINO_SUBSTRINGS: Tuple[str, ...] = ("Arduino", "CH340", "USB-SERIAL", "FT232", "CP210")


def list_candidates():
    """Return a list of pyserial port info objects (for error messages/UI)."""
    return list(list_ports.comports())


def list_port_names() -> List[str]:
    """Return available port names, e.g. "COM3", "/dev/ttyUSB0", "/dev/ttyACM0"."""
    return sorted(p.device for p in list_candidates())


def describe_port(p) -> str:
    if p.vid is not None and p.pid is not None:
        return (
            f"{p.device} [{p.vid:04X}:{p.pid:04X}] "
            f"{(p.manufacturer or '')} {(p.product or '')} {(p.description or '')}"
        ).strip()
    return f"{p.device} {(p.description or '')}".strip()


def autodetect_port(
    prefer_vid_pid: Sequence[Tuple[int, int]] = ARDUINO_VID_PIDS,
    prefer_substrings: Sequence[str] = ARDUINO_SUBSTRINGS,
) -> Optional[str]:
    """
    Return a likely device port, or None if not confidently found.
    Strategy: (1) VID:PID exact match, (2) descriptor substring match. No fallback.
    """
    ports = list_candidates()
    if not ports:
        return None

    for p in ports:
        if p.vid is not None and p.pid is not None:
            if (p.vid, p.pid) in prefer_vid_pid:
                return p.device

    for p in ports:
        desc = " ".join(filter(None, [p.manufacturer, p.product, p.description]))
        if any(s.lower() in desc.lower() for s in prefer_substrings):
            return p.device

    return None
