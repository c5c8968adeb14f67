"""Container specification for the sandbox session.

One ContainerSpec per run, derived from the resolved mode, the validated
repository info and the discovered host configuration:

- All modes drop every capability and add back only what the entry script
  needs to fix ownership of mounted credentials and copied config.
- Git checkout mode forwards the SSH agent socket and clones into a
  dedicated volume, so the container never touches host files.
- Mount modes bind the current directory at /workspace, read-only or
  read-write, and are not auto-removed.

Container and volume names carry a per-run timestamp so that concurrent
invocations never collide.
"""

import logging
import os
import time
from pathlib import Path

from opencode_box.config import BoxConfig
from opencode_box.core.errors import RequirementError
from opencode_box.core.models import (
    ContainerSpec,
    DiscoveredConfigs,
    Mode,
    Mount,
    MountAccess,
    RepoInfo,
    VolumeSet,
)

logger = logging.getLogger(__name__)

# Needed by the entry script to chown/chmod the agent socket and copied config
REQUIRED_CAPABILITIES = frozenset({"DAC_OVERRIDE", "SETGID", "SETUID", "CHOWN"})
SECURITY_OPTS = ("no-new-privileges:true",)
NETWORK = "bridge"

LOCAL_SHARE_STAGING = "/tmp/host-opencode-local-share"
CONFIG_STAGING = "/tmp/host-opencode-config"


def new_run_id() -> str:
    """Millisecond timestamp identifying one invocation."""
    return str(int(time.time() * 1000))


class ContainerSpecBuilder:
    """Build the ContainerSpec and VolumeSet for one run."""

    def __init__(
        self,
        config: BoxConfig | None = None,
        run_id: str | None = None,
        cwd: Path | str | None = None,
        home: Path | str | None = None,
        ssh_auth_sock: str | None = None,
    ):
        self.config = config or BoxConfig()
        self.run_id = run_id or new_run_id()
        self.cwd = Path(cwd) if cwd is not None else Path.cwd()
        self.home = Path(home) if home is not None else Path.home()
        self.ssh_auth_sock = ssh_auth_sock if ssh_auth_sock is not None else os.environ.get("SSH_AUTH_SOCK")

    @property
    def container_name(self) -> str:
        return f"{self.config.name_prefix}-container-{self.run_id}"

    def volume_set(self, mode: Mode) -> VolumeSet:
        prefix = self.config.name_prefix
        workspace = f"{prefix}-workspace-{self.run_id}" if mode is Mode.GIT_CHECKOUT else None
        return VolumeSet(state=f"{prefix}-state-{self.run_id}", workspace=workspace)

    def build(
        self,
        mode: Mode,
        repo_info: RepoInfo,
        configs: DiscoveredConfigs | None = None,
    ) -> tuple[ContainerSpec, VolumeSet]:
        """Produce the container specification and the volumes it owns.

        Raises:
            RequirementError: If git checkout mode has no SSH agent socket.
        """
        configs = configs or DiscoveredConfigs()
        volumes = self.volume_set(mode)
        home = self.config.container_home
        mounts: list[Mount] = []

        # Only validated values cross into the container
        env: dict[str, str] = {
            "REPO_URL": repo_info.url,
            "REPO_NAME": repo_info.name,
            "REPO_BRANCH": repo_info.branch,
            "WORKSPACE_MODE": mode.value,
        }

        if mode is Mode.GIT_CHECKOUT:
            if not self.ssh_auth_sock:
                raise RequirementError(
                    "SSH agent not found. Please start ssh-agent and add your SSH keys."
                )
            # Agent forwarding only; ~/.ssh is never mounted
            mounts.append(Mount(source=self.ssh_auth_sock, target=self.config.ssh_agent_path))
            env["SSH_AUTH_SOCK"] = self.config.ssh_agent_path

        gitconfig = self.home / ".gitconfig"
        if gitconfig.exists():
            mounts.append(
                Mount(source=str(gitconfig), target=f"{home}/.gitconfig", access=MountAccess.RO)
            )

        if configs.local_share:
            mounts.append(
                Mount(source=configs.local_share, target=LOCAL_SHARE_STAGING, access=MountAccess.RO)
            )
            env["HOST_OPENCODE_LOCAL_SHARE"] = LOCAL_SHARE_STAGING
            logger.info(f"Will copy OpenCode local/share config from: {configs.local_share}")

        if configs.config:
            mounts.append(Mount(source=configs.config, target=CONFIG_STAGING, access=MountAccess.RO))
            env["HOST_OPENCODE_CONFIG"] = CONFIG_STAGING
            logger.info(f"Will copy OpenCode config from: {configs.config}")

        if not configs.all:
            logger.warning(
                "No OpenCode configurations found on host - container will start with default settings"
            )

        mounts.append(Mount(source=volumes.state, target=f"{home}/.local/state", is_volume=True))

        workspace = self.config.container_workspace
        if mode is Mode.GIT_CHECKOUT:
            mounts.append(Mount(source=volumes.workspace, target=workspace, is_volume=True))
            logger.info("Using isolated workspace volume for git checkout")
        else:
            access = MountAccess.RO if mode is Mode.MOUNT_READ_ONLY else MountAccess.RW
            mounts.append(Mount(source=str(self.cwd), target=workspace, access=access))
            label = "read-only" if access is MountAccess.RO else "read-write"
            logger.info(f"Mounting workspace as {label}: {self.cwd}")

        spec = ContainerSpec(
            name=self.container_name,
            image=self.config.image_name,
            command=(self.config.entrypoint,),
            capabilities_drop=frozenset({"ALL"}),
            capabilities_add=REQUIRED_CAPABILITIES,
            security_opts=SECURITY_OPTS,
            network=NETWORK,
            mounts=tuple(mounts),
            env=env,
            # Mount-mode containers are left for the operator to remove
            auto_remove=mode is Mode.GIT_CHECKOUT,
        )
        return spec, volumes
