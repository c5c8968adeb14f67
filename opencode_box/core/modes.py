"""Workspace mode resolution from command line flags.

Exactly one mode flag must be given. Problems are reported as a batch: all
unknown flags together, or all conflicting mode flags together.
"""

from collections.abc import Sequence

from opencode_box.core.errors import ConfigurationError
from opencode_box.core.models import LaunchOptions, Mode

MODE_FLAGS: tuple[str, ...] = tuple(mode.value for mode in Mode)
REBUILD_FLAG = "--rebuild"
HELP_FLAGS = ("--help", "-h")
VERSION_FLAGS = ("--version", "-v")
KNOWN_FLAGS: tuple[str, ...] = MODE_FLAGS + (REBUILD_FLAG,) + HELP_FLAGS + VERSION_FLAGS


def find_unknown_flags(args: Sequence[str]) -> list[str]:
    """Return every flag-looking argument that is not a known flag, in order."""
    return [arg for arg in args if arg.startswith("-") and arg not in KNOWN_FLAGS]


def resolve_mode(args: Sequence[str]) -> Mode:
    """Resolve the single active workspace mode.

    Raises:
        ConfigurationError: On unknown flags, no mode flag, or several mode flags.
    """
    unknown = find_unknown_flags(args)
    if unknown:
        raise ConfigurationError(f"Invalid flag(s): {', '.join(unknown)}")

    found = [arg for arg in args if arg in MODE_FLAGS]
    if not found:
        raise ConfigurationError(
            f"No mode flag specified. Please use one of: {', '.join(MODE_FLAGS)}"
        )
    if len(found) > 1:
        raise ConfigurationError(
            f"Multiple mode flags specified: {', '.join(found)}. "
            "Please use only one mode flag."
        )
    return Mode(found[0])


def parse_arguments(args: Sequence[str]) -> LaunchOptions:
    """Parse the launch flags (help and version are handled by the CLI)."""
    return LaunchOptions(mode=resolve_mode(args), rebuild=REBUILD_FLAG in args)
