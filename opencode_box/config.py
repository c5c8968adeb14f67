"""Launcher configuration.

Defaults live in BoxConfig. An optional YAML file can override the
operational settings (image name, timeouts, container paths). The trusted
host allow-lists and the capability set are deliberately not configurable.
"""

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from opencode_box.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "OPENCODE_BOX_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "opencode-box" / "config.yaml"
DEFAULT_BUILD_CONTEXT = Path(__file__).resolve().parent / "docker"


@dataclass
class BoxConfig:
    """Configuration for the sandbox launcher."""

    # Docker image
    image_name: str = "opencode-box"
    build_context: Path = field(default_factory=lambda: DEFAULT_BUILD_CONTEXT)

    # Container and volume names are <prefix>-container-<ts>, <prefix>-state-<ts>, ...
    name_prefix: str = "opencode-box"

    # Paths inside the image
    entrypoint: str = "/app/entrypoint.sh"
    container_workspace: str = "/workspace"
    container_home: str = "/home/node"
    ssh_agent_path: str = "/ssh-agent"

    # Timeouts (seconds)
    stop_timeout: int = 10  # docker stop during signal handling
    command_timeout: int = 5  # requirement probes
    volume_rm_timeout: int = 10


def _coerce(name: str, value: Any, default: Any) -> Any:
    if isinstance(default, Path):
        if not isinstance(value, str):
            raise ConfigurationError(f"Config key '{name}' must be a path string")
        return Path(value).expanduser()
    # bool is an int subclass; reject it for numeric settings
    if isinstance(default, int) and (isinstance(value, bool) or not isinstance(value, int)):
        raise ConfigurationError(f"Config key '{name}' must be an integer")
    if isinstance(default, int) and value <= 0:
        raise ConfigurationError(f"Config key '{name}' must be positive")
    if isinstance(default, str) and (not isinstance(value, str) or not value):
        raise ConfigurationError(f"Config key '{name}' must be a non-empty string")
    return value


def load_config(path: Path | str | None = None) -> BoxConfig:
    """Load configuration overrides from YAML.

    Resolution order: explicit path, $OPENCODE_BOX_CONFIG, then
    ~/.config/opencode-box/config.yaml. A missing file yields defaults.

    Raises:
        ConfigurationError: If the file is unreadable, not a mapping, or has
            unknown keys or wrongly typed values.
    """
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        config_path = Path(env_path).expanduser() if env_path else DEFAULT_CONFIG_PATH
    else:
        config_path = Path(path).expanduser()

    config = BoxConfig()
    if not config_path.exists():
        return config

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read config file {config_path}: {e}") from e

    if data is None:
        return config
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config file {config_path} must contain a mapping, got {type(data).__name__}"
        )

    defaults = {f.name: getattr(config, f.name) for f in dataclasses.fields(BoxConfig)}
    unknown = sorted(str(key) for key in data if key not in defaults)
    if unknown:
        raise ConfigurationError(f"Unknown config key(s) in {config_path}: {', '.join(unknown)}")

    overrides = {key: _coerce(key, value, defaults[key]) for key, value in data.items()}
    logger.debug(f"Loaded config overrides from {config_path}: {sorted(overrides)}")
    return dataclasses.replace(config, **overrides)
