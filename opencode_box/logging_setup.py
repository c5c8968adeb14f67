"""Logging for the launcher.

Modules log through `logging.getLogger(__name__)`; the CLI routes the
`opencode_box` logger to the shared rich console.
"""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

DEBUG_ENV_VAR = "OPENCODE_BOX_DEBUG"


def configure_logging(console: Console, verbose: bool | None = None) -> logging.Logger:
    """Attach a RichHandler to the package logger.

    Calling it again replaces the handler instead of stacking another one.
    """
    if verbose is None:
        verbose = os.environ.get(DEBUG_ENV_VAR) == "1"

    logger = logging.getLogger("opencode_box")
    for existing in list(logger.handlers):
        if isinstance(existing, RichHandler):
            logger.removeHandler(existing)

    handler = RichHandler(
        console=console,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=verbose,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return logger
