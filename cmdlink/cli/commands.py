# cmdlink/cli/commands.py
from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import Optional

from cmdlink.app.simulation import build_demo_device, loopback_link
from cmdlink.core.errors import DeviceConnectError
from cmdlink.host import HostConnection, LinkConfig
from cmdlink.transport.ports import autodetect_port, describe_port, list_candidates

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# ---------------- Logging ----------------

def configure_logging(level: str = "WARNING", log_file: Optional[Path] = None) -> None:
    """
    Console logging plus an optional file handler on the root logger (idempotent).
    Kept in CLI (presentation-layer concern).
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))

    if not any(type(h) is logging.StreamHandler for h in root.handlers):
        sh = logging.StreamHandler()
        sh.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(sh)

    if log_file is None:
        return

    log_file.parent.mkdir(parents=True, exist_ok=True)
    target = str(log_file.resolve())
    for h in root.handlers:
        if isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", None) == target:
            return

    fh = logging.FileHandler(log_file, encoding="utf-8", delay=True)
    fh.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(fh)


# ---------------- Commands ----------------

def cmd_ports() -> int:
    ports = list_candidates()
    if not ports:
        print("(no serial ports found)")
        return 0
    for p in sorted(ports, key=lambda p: p.device):
        print(describe_port(p))
    return 0


def cmd_send(args: argparse.Namespace) -> int:
    port = args.port or autodetect_port()
    if port is None:
        raise DeviceConnectError(
            "Could not auto-detect the device port.",
            hint="Specify it with --port (see: cmdlink ports).",
        )

    config = LinkConfig(
        port=port,
        baudrate=args.baud,
        settle_s=args.settle,
        transmit_interval_s=args.interval,
        device_timeout_s=args.device_timeout,
    )
    conn = HostConnection.for_port(config)
    for name, value in args.assignments:
        conn.register_command(name, 0)
        # staged now so the first cycle after the settle delay already carries it
        conn.update_command(name, value)

    with conn:
        time.sleep(args.secs)
        print_device_values(conn)
    return 0


def cmd_simulate(args: argparse.Namespace) -> int:
    config = LinkConfig(
        settle_s=0.0,
        transmit_interval_s=args.interval,
        device_timeout_s=args.device_timeout,
    ).validate()

    host_end, device_end = loopback_link()
    device, sinks = build_demo_device(device_end, timeout_s=config.device_timeout_s)

    conn = HostConnection(host_end, config)
    conn.register_command("M1", 0)
    conn.register_command("S1", 90)
    conn.register_command("B1", 0)

    with device:
        conn.open()
        try:
            conn.update_command("M1", args.motor)
            conn.update_command("S1", args.servo)
            conn.update_command("B1", args.blink_ms)
            time.sleep(args.secs)
            print("While transmitting:")
            print_device_values(conn)
        finally:
            conn.close()

        print(f"Host silent; waiting {config.device_timeout_s * 1.5:.2f}s for the device watchdog...")
        time.sleep(config.device_timeout_s * 1.5)

        print("After watchdog:")
        for name, sink in sinks.items():
            print(f"  {name}: output={sink.last}")
        print(f"  watchdog expiries: {device.loop.watchdog.expiry_count}")
    return 0


def print_device_values(conn: HostConnection) -> None:
    for name in conn.table.names():
        sent = conn.table.value(name)
        seen = conn.device_value(name)
        print(f"  {name}: sent={sent} device={'-' if seen is None else seen}")
