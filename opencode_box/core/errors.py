"""Error taxonomy for the launch pipeline.

Every failure that aborts a run before (or while) spawning the container is
an OpenCodeBoxError. The CLI reports it and exits 1. Cleanup problems after
the container exits are never raised; they are logged as warnings.
"""


class OpenCodeBoxError(Exception):
    """Base error for all fatal launch failures."""

    pass


class ConfigurationError(OpenCodeBoxError):
    """Bad or ambiguous command line flags, or an invalid config file."""

    pass


class InputValidationError(OpenCodeBoxError):
    """An untrusted repository string failed sanitization."""

    pass


class InvalidUrlError(InputValidationError):
    """Repository URL is malformed, unsafe, or on an untrusted host."""

    pass


class InvalidBranchError(InputValidationError):
    """Branch name is unsafe or not a valid git ref component."""

    pass


class InvalidNameError(InputValidationError):
    """Repository name is unsafe for use as a directory name."""

    pass


class RequirementError(OpenCodeBoxError):
    """A host prerequisite (Docker, git, SSH agent) is missing.

    Carries remediation hints that the CLI prints after the error line.
    """

    def __init__(self, message: str, hints: list[str] | None = None):
        self.hints = list(hints or [])
        super().__init__(message)


class BuildError(OpenCodeBoxError):
    """The container image could not be built."""

    pass


class LaunchError(OpenCodeBoxError):
    """The container process could not be spawned."""

    pass
