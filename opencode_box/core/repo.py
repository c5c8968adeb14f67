"""Repository identity from the host git checkout."""

import logging
import subprocess
from pathlib import Path

from opencode_box.core.errors import InputValidationError
from opencode_box.core.models import RepoInfo
from opencode_box.core.sanitizer import (
    repo_name_from_url,
    validate_branch,
    validate_name,
    validate_url,
)

logger = logging.getLogger(__name__)


def _git(args: list[str], cwd: Path | str | None, timeout: int) -> str:
    try:
        result = subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=cwd,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        raise InputValidationError(f"Failed to get repository information: {e}") from e
    if result.returncode != 0:
        stderr = result.stderr.strip()
        raise InputValidationError(
            f"Failed to get repository information: git {' '.join(args)} failed"
            + (f": {stderr}" if stderr else "")
        )
    return result.stdout.strip()


def get_repo_info(cwd: Path | str | None = None, timeout: int = 5) -> RepoInfo:
    """Read and validate the origin URL, current branch and repository name.

    Raises:
        InputValidationError: If git fails or any value fails sanitization.
    """
    remote_url = _git(["config", "--get", "remote.origin.url"], cwd, timeout)
    branch = _git(["branch", "--show-current"], cwd, timeout)

    try:
        url = validate_url(remote_url)
        validated_branch = validate_branch(branch)
        name = validate_name(repo_name_from_url(remote_url))
    except InputValidationError as e:
        raise type(e)(f"Failed to get repository information: {e}") from e

    logger.debug(f"Repository info: url={url} name={name} branch={validated_branch}")
    return RepoInfo(url=url, name=name, branch=validated_branch)
