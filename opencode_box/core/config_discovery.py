"""Discovery of host OpenCode configuration directories.

Found directories are mounted read-only into the container, where the entry
script copies them into the agent's home. Missing configuration is fine; the
agent then starts with its defaults.
"""

import logging
from pathlib import Path

from opencode_box.core.models import DiscoveredConfigs

logger = logging.getLogger(__name__)

LOCAL_SHARE_CANDIDATE = Path(".local", "share", "opencode")
CONFIG_CANDIDATE = Path(".config", "opencode")

# Probed in this order; only the first two are mounted
CANDIDATE_PATHS: tuple[Path, ...] = (
    LOCAL_SHARE_CANDIDATE,
    CONFIG_CANDIDATE,
    Path(".shared", "opencode"),
    Path(".opencode"),
    Path(".local", "opencode"),
    Path(".config", "opencode-ai"),
)


def discover_configs(home: Path | str | None = None) -> DiscoveredConfigs:
    """Probe the candidate directories under `home`."""
    home = Path(home) if home is not None else Path.home()

    found: list[str] = []
    local_share = None
    config = None
    for candidate in CANDIDATE_PATHS:
        path = home / candidate
        if not path.exists():
            continue
        logger.info(f"Found OpenCode config at: {path}")
        found.append(str(path))
        if candidate == LOCAL_SHARE_CANDIDATE:
            local_share = str(path)
        elif candidate == CONFIG_CANDIDATE:
            config = str(path)

    if not found:
        logger.warning("No OpenCode configuration directories found")

    return DiscoveredConfigs(local_share=local_share, config=config, all=tuple(found))
