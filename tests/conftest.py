# conftest.py - Shared pytest fixtures for all tests
"""Shared pytest fixtures for the OpenCode Box test suite.

This module provides foundational fixtures used across all test modules:
- A fake host that answers docker/git/ssh-add probes in place of subprocess.run
- A fake Popen for the foreground container process
- Temporary home directories and git repositories
- Sample repository info and configuration

Usage:
    Import fixtures implicitly via pytest's fixture discovery.
    All fixtures in this file are automatically available in test modules.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Any
from unittest.mock import Mock

import pytest

from opencode_box.config import BoxConfig
from opencode_box.core.models import RepoInfo


# =============================================================================
# Fake Host Processes
# =============================================================================


class FakeHost:
    """Stand-in for subprocess.run answering the probes the launcher makes.

    Records every command. Local images are tracked by reference so that
    builds and removals are visible to later `docker image inspect` calls.

    Example:
        def test_something(fake_host):
            fake_host.fail("docker", "info", stderr="Cannot connect")
            ...
            assert fake_host.commands("docker", "build") == []
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.kwargs: list[dict[str, Any]] = []
        self.images: set[str] = set()
        self.remote_url = "https://github.com/acme/widgets.git"
        self.branch = "main"
        self.ssh_keys = "256 SHA256:abcdef test@example.com (ED25519)\n"
        self._failures: dict[tuple[str, ...], tuple[int, str]] = {}
        self._raises: dict[tuple[str, ...], BaseException] = {}

    @property
    def image_present(self) -> bool:
        """Whether the default `opencode-box` image exists."""
        return "opencode-box" in self.images

    @image_present.setter
    def image_present(self, present: bool) -> None:
        if present:
            self.images.add("opencode-box")
        else:
            self.images.discard("opencode-box")

    def fail(self, *prefix: str, returncode: int = 1, stderr: str = "") -> None:
        """Make commands starting with `prefix` exit non-zero."""
        self._failures[prefix] = (returncode, stderr)

    def raise_on(self, *prefix: str, exc: BaseException) -> None:
        """Make commands starting with `prefix` raise instead of running."""
        self._raises[prefix] = exc

    def commands(self, *prefix: str) -> list[list[str]]:
        return [cmd for cmd in self.calls if tuple(cmd[: len(prefix)]) == prefix]

    def __call__(self, cmd: list[str], *args: Any, **kwargs: Any) -> subprocess.CompletedProcess:
        cmd = list(cmd)
        self.calls.append(cmd)
        self.kwargs.append(kwargs)

        for prefix, exc in self._raises.items():
            if tuple(cmd[: len(prefix)]) == prefix:
                raise exc
        for prefix, (code, stderr) in self._failures.items():
            if tuple(cmd[: len(prefix)]) == prefix:
                return subprocess.CompletedProcess(cmd, code, "", stderr)

        stdout = ""
        head = tuple(cmd[:2])
        if head == ("docker", "--version"):
            stdout = "Docker version 24.0.0, build abc1234\n"
        elif cmd[:3] == ["docker", "image", "inspect"]:
            if cmd[3] not in self.images:
                return subprocess.CompletedProcess(cmd, 1, "", f"Error: No such image: {cmd[3]}")
            stdout = "[{}]\n"
        elif head == ("docker", "build"):
            self.images.add(cmd[3])
        elif head == ("docker", "rmi"):
            self.images.discard(cmd[2])
        elif cmd[:4] == ["git", "config", "--get", "remote.origin.url"]:
            stdout = f"{self.remote_url}\n"
        elif cmd[:3] == ["git", "branch", "--show-current"]:
            stdout = f"{self.branch}\n"
        elif cmd[:3] == ["git", "rev-parse", "--git-dir"]:
            stdout = ".git\n"
        elif head == ("ssh-add", "-l"):
            stdout = self.ssh_keys
        return subprocess.CompletedProcess(cmd, 0, stdout, "")


@pytest.fixture
def fake_host(mocker) -> FakeHost:
    """Patch subprocess.run with a FakeHost and return it."""
    host = FakeHost()
    mocker.patch("subprocess.run", side_effect=host)
    return host


@pytest.fixture
def fake_popen(mocker) -> Mock:
    """Patch subprocess.Popen; the container process exits 0 by default.

    Set `fake_popen.return_value.wait.return_value` to change the exit code.
    The spawned command is available as `fake_popen.call_args.args[0]`.
    """
    popen = mocker.patch("subprocess.Popen")
    popen.return_value.wait.return_value = 0
    return popen


# =============================================================================
# Repository and File System Fixtures
# =============================================================================


@pytest.fixture
def fake_home(tmp_path: Path) -> Path:
    """Create an empty home directory (no gitconfig, no OpenCode config)."""
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def populated_home(fake_home: Path) -> Path:
    """Home directory with a gitconfig and both canonical OpenCode configs."""
    (fake_home / ".gitconfig").write_text("[user]\n\tname = Test User\n")
    (fake_home / ".local" / "share" / "opencode").mkdir(parents=True)
    (fake_home / ".config" / "opencode").mkdir(parents=True)
    return fake_home


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    """Directory standing in for the host repository checkout."""
    path = tmp_path / "widgets"
    path.mkdir()
    return path


@pytest.fixture
def repo_with_git(tmp_path: Path) -> Path:
    """Create a real git repository with an origin remote on branch main.

    WARNING: Runs actual git commands. Skips if git is unavailable.

    Returns:
        Path to git-initialized repository.
    """
    repo = tmp_path / "widgets"
    repo.mkdir()
    (repo / "README.md").write_text("# Widgets\n")

    try:
        for cmd in (
            ["git", "init"],
            ["git", "checkout", "-b", "main"],
            ["git", "config", "user.email", "test@example.com"],
            ["git", "config", "user.name", "Test User"],
            ["git", "remote", "add", "origin", "https://github.com/acme/widgets.git"],
            ["git", "add", "."],
            ["git", "commit", "-m", "Initial commit"],
        ):
            subprocess.run(cmd, cwd=repo, check=True, capture_output=True)
    except (subprocess.CalledProcessError, FileNotFoundError):
        pytest.skip("Git not available")
    return repo


# =============================================================================
# Sample Values
# =============================================================================


@pytest.fixture
def repo_info() -> RepoInfo:
    """Validated repository info for acme/widgets on main."""
    return RepoInfo(url="https://github.com/acme/widgets.git", name="widgets", branch="main")


@pytest.fixture
def box_config(tmp_path: Path) -> BoxConfig:
    """Default config with a build context that contains a Dockerfile."""
    context = tmp_path / "docker"
    context.mkdir()
    (context / "Dockerfile").write_text("FROM scratch\n")
    return BoxConfig(build_context=context)


# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "docker: marks tests requiring Docker")
    config.addinivalue_line("markers", "git: marks tests requiring git")
