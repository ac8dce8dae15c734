from __future__ import annotations

import argparse
import sys
from collections.abc import Callable, Mapping

from docker_ci.common import CiToolError


Command = Callable[[list[str]], None]


def command_map() -> dict[str, Command]:
    """
    Map CLI command names to Python entry functions.

    Each value is a `main(argv)` function from one workflow helper module.
    """
    from docker_ci.compute_image_tags import main as compute_image_tags
    from docker_ci.determine_changed_directories import main as determine_changed_directories

    return {
        "determine-changed-directories": determine_changed_directories,
        "compute-image-tags": compute_image_tags,
    }


def build_parser(commands: Mapping[str, Command]) -> argparse.ArgumentParser:
    """Build argument parser with one positional command choice."""
    parser = argparse.ArgumentParser(
        prog="python3 -m docker_ci.cli",
        description="Run one workflow helper command.",
    )
    parser.add_argument("command", choices=sorted(commands.keys()))
    # Everything after the command name belongs to the command's own parser.
    parser.add_argument("args", nargs=argparse.REMAINDER)
    return parser


def run_command(command: str, commands: Mapping[str, Command], args: list[str] | None = None) -> None:
    """
    Run one registered command.

    `commands` is passed in to keep this function easy to test.
    """
    commands[command](list(args or []))


def main(argv: list[str] | None = None) -> None:
    # Build command registry once so parser and dispatcher use the same keys.
    commands = command_map()
    parser = build_parser(commands)
    args = parser.parse_args(argv)

    try:
        run_command(args.command, commands, args.args)
    except CiToolError as exc:
        # Keep failures short and readable in workflow logs.
        # Each error type has its own exit code so callers can tell them apart.
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        raise SystemExit(exc.exit_code) from exc


if __name__ == "__main__":
    main()
