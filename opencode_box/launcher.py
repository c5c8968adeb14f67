"""Launch pipeline.

Stages run strictly in order and each must fully succeed before the next
starts: requirements, repository info, image, config discovery, container
spec, container run. Everything before the run is validation or idempotent
provisioning; nothing irreversible happens until the container spec is complete.
"""

import logging
import os
from pathlib import Path

from opencode_box.config import BoxConfig
from opencode_box.core.config_discovery import discover_configs
from opencode_box.core.models import LaunchOptions, RunResult
from opencode_box.core.repo import get_repo_info
from opencode_box.core.requirements import check_requirements
from opencode_box.sandbox.image import ImageProvisioner
from opencode_box.sandbox.lifecycle import CancellationToken, LifecycleManager, forward_signals
from opencode_box.sandbox.spec_builder import ContainerSpecBuilder

logger = logging.getLogger(__name__)


def launch(
    options: LaunchOptions,
    config: BoxConfig | None = None,
    cwd: Path | str | None = None,
    home: Path | str | None = None,
    token: CancellationToken | None = None,
) -> RunResult:
    """Run one sandbox session for the repository at `cwd`.

    Raises:
        OpenCodeBoxError: Any failure before or while spawning the container.
    """
    config = config or BoxConfig()
    cwd = Path(cwd) if cwd is not None else Path.cwd()

    logger.info(f"Starting OpenCode Box in {options.mode.value} mode...")

    check_requirements(options.mode, config, cwd=str(cwd))
    repo_info = get_repo_info(cwd, timeout=config.command_timeout)

    ImageProvisioner(config).ensure(force_rebuild=options.rebuild)

    configs = discover_configs(home)
    builder = ContainerSpecBuilder(
        config,
        cwd=cwd,
        home=home,
        ssh_auth_sock=os.environ.get("SSH_AUTH_SOCK"),
    )
    spec, volumes = builder.build(options.mode, repo_info, configs)

    logger.info(f"Starting container with secure credential forwarding in {options.mode.value} mode...")
    logger.info(f"Repository: {repo_info.name} ({repo_info.branch})")
    # Signals only map to a container stop while the container is running
    with forward_signals(token or CancellationToken()) as active:
        return LifecycleManager(config).run(spec, volumes, active)
