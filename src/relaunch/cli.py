"""Command-line entry point: ``relaunch [--] COMMAND [ARGS...]``."""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional, Sequence

from . import __version__
from .config import ConfigurationError, load_settings
from .service_runner import run_supervisor


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="relaunch",
        description=(
            "Run COMMAND and restart it whenever a source file changes, "
            "or when F5, SPACE or Ctrl-R is pressed. Ctrl-C stops everything."
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("command", nargs=argparse.REMAINDER, help="command to run, with its arguments")
    return parser


def parse_command(argv: Optional[Sequence[str]] = None) -> List[str]:
    """Return the command to supervise; exits with status 2 when none is given."""
    parser = build_parser()
    args = parser.parse_args(argv)
    command = list(args.command)
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        parser.error("a command to run is required")
    return command


def main(argv: Optional[Sequence[str]] = None) -> int:
    command = parse_command(argv)
    try:
        settings = load_settings(command)
    except ConfigurationError as exc:
        sys.stderr.write(f"relaunch: {exc}\n")
        return 1
    return run_supervisor(settings)


if __name__ == "__main__":
    sys.exit(main())
