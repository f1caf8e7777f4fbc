# cmdlink/cli/args.py
from __future__ import annotations

import argparse
from typing import List, Optional, Tuple

from cmdlink.host.config import LinkConfig

_DEFAULTS = LinkConfig()


def parse_command_assignment(text: str) -> Tuple[str, int]:
    """Parse NAME=VALUE (as given to --cmd)."""
    name, sep, raw = text.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"Invalid command '{text}' (use NAME=VALUE)")
    try:
        return name, int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid value in '{text}' (must be an integer)") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cmdlink")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", default=None, help="Also write logs to this file.")
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("ports", help="List available serial ports.")

    link = argparse.ArgumentParser(add_help=False)
    link.add_argument("--interval", type=float, default=_DEFAULTS.transmit_interval_s,
                      help="Transmission interval in seconds.")
    link.add_argument("--device-timeout", type=float, default=_DEFAULTS.device_timeout_s,
                      help="Device watchdog timeout in seconds (interval must be shorter).")
    link.add_argument("--secs", type=float, default=3.0, help="How long to keep transmitting.")

    p_send = sub.add_parser("send", parents=[link], help="Drive commands on a real device.")
    p_send.add_argument("--port", default=None, help="Serial port (default: auto-detect).")
    p_send.add_argument("--baud", type=int, default=_DEFAULTS.baudrate)
    p_send.add_argument("--settle", type=float, default=_DEFAULTS.settle_s,
                        help="Seconds to wait after opening (device reset-on-connect).")
    p_send.add_argument(
        "--cmd",
        type=parse_command_assignment,
        action="append",
        dest="assignments",
        required=True,
        metavar="NAME=VALUE",
        help="Command to register (init 0) and set. Repeatable.",
    )

    p_sim = sub.add_parser("simulate", parents=[link], help="Run host + simulated device over a loopback.")
    p_sim.add_argument("--motor", type=int, default=200)
    p_sim.add_argument("--servo", type=int, default=45)
    p_sim.add_argument("--blink-ms", type=int, default=100)

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)
