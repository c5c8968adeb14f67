"""Sanitization of untrusted repository strings.

The repository URL, branch and name come from the host's git config and are
later exported into the container environment, where the entry script uses
them in git commands and as a directory name. Every value is validated here
and the run fails closed on the first violation.

These checks are a first line of defense only. All external processes are
started with argument vectors, never through a shell.
"""

import posixpath
import re
from urllib.parse import urlsplit

from opencode_box.core.errors import InvalidBranchError, InvalidNameError, InvalidUrlError

# Characters that could be used for shell command injection
DANGEROUS_CHARS = re.compile(r"[;&|`$(){}\[\]<>]")

# Shell metacharacters plus characters git forbids in ref names, and whitespace
INVALID_BRANCH_CHARS = re.compile(r"[;&|`$(){}\[\]<>~^:?*\\\s]")

VALID_NAME = re.compile(r"^[a-zA-Z0-9._-]+$")

SSH_SHORTHAND = re.compile(r"^git@([a-zA-Z0-9.-]+):([a-zA-Z0-9._/-]+)\.git$")

ALLOWED_SCHEMES = ("https", "ssh", "git")

TRUSTED_HOSTS = (
    "github.com",
    "gitlab.com",
    "bitbucket.org",
    "dev.azure.com",
    "ssh.dev.azure.com",
)

# SSH shorthand is checked against its own list
TRUSTED_SSH_HOSTS = (
    "github.com",
    "gitlab.com",
    "bitbucket.org",
    "git-gogs.lan",
)

MAX_BRANCH_LENGTH = 250
MAX_NAME_LENGTH = 100


def _parse_uri(value: str):
    """Return the split URL, or None if the value is not a well-formed URI."""
    try:
        parts = urlsplit(value)
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None
    return parts


def validate_url(raw: str) -> str:
    """Validate a repository URL against the trusted-host allow-lists.

    Accepts `https://`, `ssh://` and `git://` URLs on TRUSTED_HOSTS, or the
    `git@host:org/repo.git` shorthand on TRUSTED_SSH_HOSTS.

    Returns:
        The stripped URL.

    Raises:
        InvalidUrlError: On any violation.
    """
    if not raw or not isinstance(raw, str):
        raise InvalidUrlError("Repository URL is required and must be a string")

    sanitized = raw.strip()
    if not sanitized:
        raise InvalidUrlError("Repository URL is required and must be a string")

    if DANGEROUS_CHARS.search(sanitized):
        raise InvalidUrlError("Repository URL contains invalid characters")

    parts = _parse_uri(sanitized)
    if parts is not None:
        if parts.scheme.lower() not in ALLOWED_SCHEMES:
            raise InvalidUrlError("Only HTTPS, SSH, and Git protocols are allowed")
        hostname = parts.hostname or ""
        if hostname not in TRUSTED_HOSTS:
            raise InvalidUrlError(
                f"Untrusted hostname: {hostname}. Only {', '.join(TRUSTED_HOSTS)} are allowed"
            )
        return sanitized

    # SSH shorthand (git@github.com:user/repo.git) is not a well-formed URI
    match = SSH_SHORTHAND.match(sanitized)
    if match:
        hostname = match.group(1)
        if hostname not in TRUSTED_SSH_HOSTS:
            raise InvalidUrlError(f"Untrusted SSH hostname: {hostname}")
        return sanitized

    raise InvalidUrlError("Invalid repository URL format")


def validate_branch(raw: str) -> str:
    """Validate a branch name for use in `git clone --branch`.

    Raises:
        InvalidBranchError: On any violation.
    """
    if not raw or not isinstance(raw, str):
        raise InvalidBranchError("Branch name is required and must be a string")

    sanitized = raw.strip()
    if not sanitized:
        raise InvalidBranchError("Branch name is required and must be a string")

    if INVALID_BRANCH_CHARS.search(sanitized):
        raise InvalidBranchError("Branch name contains invalid characters")

    if sanitized.startswith("-") or sanitized.endswith(".") or ".." in sanitized:
        raise InvalidBranchError("Invalid branch name format")

    if len(sanitized) > MAX_BRANCH_LENGTH:
        raise InvalidBranchError("Branch name too long")

    return sanitized


def validate_name(raw: str) -> str:
    """Validate a repository name for use as a directory name.

    Raises:
        InvalidNameError: On any violation.
    """
    if not raw or not isinstance(raw, str):
        raise InvalidNameError("Repository name is required and must be a string")

    sanitized = raw.strip()

    if not VALID_NAME.match(sanitized):
        raise InvalidNameError("Repository name contains invalid characters")

    # Prevent directory traversal
    if ".." in sanitized or sanitized.startswith("."):
        raise InvalidNameError("Invalid repository name format")

    if len(sanitized) > MAX_NAME_LENGTH:
        raise InvalidNameError("Repository name too long")

    return sanitized


def repo_name_from_url(url: str) -> str:
    """Derive the repository name from a remote URL.

    Works for both URLs and SSH shorthand: the last path component with a
    trailing `.git` removed. The result still has to pass validate_name().
    """
    path = url.strip().rstrip("/")
    if ":" in path and "://" not in path:
        path = path.split(":", 1)[1]
    name = posixpath.basename(path)
    if name.endswith(".git") and name != ".git":
        name = name[: -len(".git")]
    return name
