"""CLI entry point for OpenCode Box.

Usage: opencodebox <mode> [options]

Flags are parsed by hand on top of click so that every unknown flag, and
every conflicting mode flag, is reported in one error. Help and version are
eager click options and short-circuit before any validation.
"""

import sys

import click
from rich.console import Console
from rich.markup import escape

from opencode_box import __version__
from opencode_box.config import load_config
from opencode_box.core.errors import (
    ConfigurationError,
    OpenCodeBoxError,
    RequirementError,
)
from opencode_box.core.modes import parse_arguments
from opencode_box.launcher import launch
from opencode_box.logging_setup import configure_logging

console = Console()

USAGE = """
OpenCode Box - A secure Docker environment for AI-assisted development with OpenCode

Usage: opencodebox <mode> [options]

Modes (exactly one required):
  --mount-ro      Mount current workspace as read-only
  --mount-rw      Mount current workspace as read-write
  --gitcheckout   Clone repository inside container

Other options:
  --rebuild       Force rebuild Docker image (removes existing image)
  --help, -h      Show this help message
  --version, -v   Show version information
"""

HELP_DETAILS = """
Requirements:
  - Docker installed and running
  - Git repository (run from inside a git project)
  - SSH agent with credentials loaded (only for --gitcheckout mode)

Examples:
  cd /path/to/your/git/project
  opencodebox --mount-ro              # Mount workspace read-only
  opencodebox --mount-rw              # Mount workspace read-write
  opencodebox --gitcheckout           # Clone repo inside container
  opencodebox --mount-ro --rebuild    # Force rebuild image and mount read-only

Mode Details:
  --mount-ro:    Mounts your current workspace into the container as read-only.
                 No SSH requirements - works with any git repository.

  --mount-rw:    Mounts your current workspace into the container as read-write.
                 Changes are written directly to your host files.

  --gitcheckout: Clones the repository inside the container using the current
                 branch, in a volume that never touches your host files.
                 Requires an SSH agent with access to the repository host.

Configuration:
  Optional YAML overrides are read from $OPENCODE_BOX_CONFIG or
  ~/.config/opencode-box/config.yaml. Set OPENCODE_BOX_DEBUG=1 for debug logs.
"""


def _show_help(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    click.echo(USAGE + HELP_DETAILS)
    ctx.exit(0)


def _show_version(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    click.echo(f"opencodebox version {__version__}")
    ctx.exit(0)


def _error(message: str) -> None:
    console.print(f"[red]Error:[/red] {escape(message)}")


@click.command(
    context_settings={"ignore_unknown_options": True, "allow_extra_args": True},
    add_help_option=False,
)
@click.option(
    "-h", "--help", is_flag=True, is_eager=True, expose_value=False, callback=_show_help,
    help="Show this help message",
)
@click.option(
    "-v", "--version", is_flag=True, is_eager=True, expose_value=False, callback=_show_version,
    help="Show version information",
)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def main(args: tuple[str, ...]) -> None:
    """OpenCode Box - a secure Docker environment for OpenCode."""
    configure_logging(console)

    try:
        options = parse_arguments(list(args))
    except ConfigurationError as e:
        _error(str(e))
        click.echo(USAGE)
        sys.exit(1)

    try:
        config = load_config()
        launch(options, config=config)
    except RequirementError as e:
        _error(str(e))
        for hint in e.hints:
            console.print(f"  {escape(hint)}")
        sys.exit(1)
    except OpenCodeBoxError as e:
        _error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
