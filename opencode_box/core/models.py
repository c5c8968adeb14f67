"""Data models for the launch pipeline.

Uses Pydantic frozen models so that a value built by one stage cannot be
mutated by the next.
"""

from collections.abc import Iterator, Mapping
from enum import Enum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Mode(str, Enum):
    """Workspace access policy. The value is the CLI flag."""

    GIT_CHECKOUT = "--gitcheckout"
    MOUNT_READ_ONLY = "--mount-ro"
    MOUNT_READ_WRITE = "--mount-rw"


class MountAccess(str, Enum):
    """Access suffix on a `-v` argument."""

    DEFAULT = ""
    RO = "ro"
    RW = "rw"


class RepoInfo(BaseModel):
    """Validated identity of the host repository.

    Only built from strings that already passed the sanitizer.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    name: str
    branch: str


class Mount(BaseModel):
    """A bind mount or named volume mount."""

    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    access: MountAccess = MountAccess.DEFAULT
    is_volume: bool = False

    def to_arg(self) -> str:
        """Render the value of a `-v` argument."""
        arg = f"{self.source}:{self.target}"
        if self.access is not MountAccess.DEFAULT:
            arg += f":{self.access.value}"
        return arg


class VolumeSet(BaseModel):
    """Ephemeral named volumes owned by a single run."""

    model_config = ConfigDict(frozen=True)

    state: str
    workspace: str | None = None

    def names(self) -> Iterator[str]:
        yield self.state
        if self.workspace is not None:
            yield self.workspace


class DiscoveredConfigs(BaseModel):
    """Agent configuration directories found on the host."""

    model_config = ConfigDict(frozen=True)

    local_share: str | None = None
    config: str | None = None
    all: tuple[str, ...] = ()


class ContainerSpec(BaseModel):
    """Everything needed to start the sandbox container.

    Built once by ContainerSpecBuilder and consumed once by LifecycleManager.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    image: str
    command: tuple[str, ...] = ()
    capabilities_drop: frozenset[str] = frozenset({"ALL"})
    capabilities_add: frozenset[str] = frozenset()
    security_opts: tuple[str, ...] = ()
    network: str = "bridge"
    mounts: tuple[Mount, ...] = ()
    env: Mapping[str, str] = Field(default_factory=dict, validate_default=True)
    auto_remove: bool = False
    interactive: bool = True

    @field_validator("env", mode="after")
    @classmethod
    def _freeze_env(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(value))

    def workspace_mount(self, workspace_path: str = "/workspace") -> Mount | None:
        for mount in self.mounts:
            if mount.target == workspace_path:
                return mount
        return None

    def to_docker_args(self) -> list[str]:
        """Render the `docker run` argument vector (without the `docker` binary)."""
        args = ["run"]
        if self.interactive:
            args.append("-it")
        if self.auto_remove:
            args.append("--rm")
        args.extend(["--name", self.name])
        for opt in self.security_opts:
            args.extend(["--security-opt", opt])
        for cap in sorted(self.capabilities_drop):
            args.extend(["--cap-drop", cap])
        for cap in sorted(self.capabilities_add):
            args.extend(["--cap-add", cap])
        args.extend(["--network", self.network])
        for key, value in self.env.items():
            args.extend(["-e", f"{key}={value}"])
        for mount in self.mounts:
            args.extend(["-v", mount.to_arg()])
        args.append(self.image)
        args.extend(self.command)
        return args


class LaunchOptions(BaseModel):
    """Parsed command line."""

    model_config = ConfigDict(frozen=True)

    mode: Mode
    rebuild: bool = False


class RunResult(BaseModel):
    """Outcome of a container session."""

    exit_code: int
    stopped: bool = False
    cleaned_volumes: list[str] = Field(default_factory=list)
    failed_volumes: list[str] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0
