# cmdlink/cli/main.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

from cmdlink.core.errors import CmdLinkError

from cmdlink.cli.args import parse_args
from cmdlink.cli.commands import (
    cmd_ports,
    cmd_send,
    cmd_simulate,
    configure_logging,
)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level, Path(args.log_file) if args.log_file else None)

    try:
        if args.cmd == "ports":
            return cmd_ports()
        if args.cmd == "send":
            return cmd_send(args)
        if args.cmd == "simulate":
            return cmd_simulate(args)

        return 2
    except CmdLinkError as e:
        print(f"ERROR: {e.message}")
        if e.hint:
            print(f"Hint: {e.hint}")
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
