"""Host prerequisite checks.

Run before any image or container work. Each failure raises RequirementError
with remediation hints for the operator.
"""

import logging
import os
import subprocess
import sys

from opencode_box.config import BoxConfig
from opencode_box.core.errors import RequirementError
from opencode_box.core.models import Mode

logger = logging.getLogger(__name__)


def _probe(cmd: list[str], timeout: int) -> subprocess.CompletedProcess | None:
    """Run a probe command. Returns None if the binary cannot be started or hangs."""
    try:
        return subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except (OSError, subprocess.TimeoutExpired):
        return None


def _ssh_hints(*extra: str) -> list[str]:
    if sys.platform == "darwin":
        hints = ['On macOS, try: eval "$(ssh-agent -s)" && ssh-add --apple-use-keychain ~/.ssh/id_rsa']
    else:
        hints = ['Run: eval "$(ssh-agent -s)" && ssh-add ~/.ssh/id_rsa']
    hints.extend(extra)
    hints.append("Verify keys are loaded with: ssh-add -l")
    return hints


def check_docker(timeout: int = 5) -> str:
    """Verify the Docker CLI is installed and the daemon is reachable.

    Returns:
        The `docker --version` string.
    """
    result = _probe(["docker", "--version"], timeout)
    if result is None or result.returncode != 0:
        raise RequirementError(
            "Docker is not installed, not in PATH, or not accessible",
            hints=["Please install Docker and ensure it's running"],
        )
    version = result.stdout.strip()
    logger.info(f"Docker found: {version}")

    result = _probe(["docker", "info"], timeout)
    if result is None or result.returncode != 0:
        raise RequirementError("Docker daemon is not running. Please start Docker")
    logger.info("Docker daemon is running")
    return version


def check_git_repository(cwd: str | None = None, timeout: int = 5) -> None:
    """Verify the working directory is inside a git repository."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--git-dir"],
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=cwd,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        raise RequirementError(f"Cannot run git: {e}") from e
    if result.returncode != 0:
        raise RequirementError(
            "Not in a git repository. Please run opencodebox from inside a git project."
        )
    logger.info("Git repository detected")


def check_ssh_agent(timeout: int = 5) -> str:
    """Verify an SSH agent is reachable and has keys loaded.

    Returns:
        The host SSH_AUTH_SOCK path.
    """
    sock = os.environ.get("SSH_AUTH_SOCK")
    if not sock:
        raise RequirementError(
            "SSH agent not found. Please start ssh-agent and add your SSH keys.",
            hints=_ssh_hints(),
        )

    if not os.path.exists(sock):
        raise RequirementError(
            "SSH agent socket is not accessible: SSH socket does not exist",
            hints=_ssh_hints("Test GitHub access with: ssh -T git@github.com"),
        )
    logger.info("SSH agent is accessible")

    result = _probe(["ssh-add", "-l"], timeout)
    if (
        result is None
        or result.returncode != 0
        or "no identities" in result.stdout.lower()
        or not result.stdout.strip()
    ):
        raise RequirementError("SSH agent has no keys loaded", hints=_ssh_hints())
    logger.info("SSH keys are loaded in agent")
    return sock


def check_requirements(mode: Mode, config: BoxConfig | None = None, cwd: str | None = None) -> None:
    """Check every host prerequisite for the given mode.

    SSH agent checks only apply to git checkout mode.
    """
    config = config or BoxConfig()
    logger.info("Checking system requirements...")

    check_docker(config.command_timeout)
    check_git_repository(cwd, config.command_timeout)

    if mode is Mode.GIT_CHECKOUT:
        check_ssh_agent(config.command_timeout)
    else:
        logger.info("SSH requirements skipped for mount mode")

    logger.info("All requirements satisfied")
