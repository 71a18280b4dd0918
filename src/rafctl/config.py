"""Configuration loading for rafctl."""
import tomllib
from copy import deepcopy
from pathlib import Path

from rafctl.context import HIGH_THRESHOLD, MEDIUM_THRESHOLD, RESERVED_BUFFER
from rafctl.costs import DEFAULT_PRICING
from rafctl.errors import ConfigError
from rafctl.monitor import DEFAULT_MAX_AGENTS, DEFAULT_MAX_TOOLS

DEFAULT_CONFIG = {
    "monitor": {
        "max_tools": DEFAULT_MAX_TOOLS,
        "max_agents": DEFAULT_MAX_AGENTS,
        "poll_interval": 0.3,
    },
    "context": {
        "reserved_buffer": RESERVED_BUFFER,
        "medium_threshold": MEDIUM_THRESHOLD,
        "high_threshold": HIGH_THRESHOLD,
    },
    "paths": {
        "transcripts_dir": str(Path.home() / ".claude" / "projects"),
        "profiles_dir": "",
    },
    "pricing": DEFAULT_PRICING,
}

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "rafctl" / "config.toml"


def load_config(config_path: Path = DEFAULT_CONFIG_PATH) -> dict:
    """Load config from TOML file, falling back to defaults.

    Raises ConfigError when the file exists but cannot be read or parsed.
    """
    config = deepcopy(DEFAULT_CONFIG)

    if config_path.exists():
        try:
            with open(config_path, "rb") as f:
                user_config = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigError(config_path, e) from e
        for section, values in config.items():
            if isinstance(user_config.get(section), dict):
                values.update(user_config[section])

    return config
