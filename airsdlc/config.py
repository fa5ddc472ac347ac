"""
AirSDLC workspace configuration.

Per-workspace settings stored in .airsdlc/config.json.

Settings:
- require_human_validation: approval transitions need a human approver
- strict_lineage: every non-PRD artifact must have a lineage parent
- history_limit: transition records kept per artifact
- default_author: author used when none is given
"""

import json
import logging
from dataclasses import dataclass, fields
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from airsdlc.exceptions import ConfigError

logger = logging.getLogger(__name__)

# Workspace directory name, relative to the root
WORKSPACE_DIR = ".airsdlc"

HISTORY_LIMIT_MIN = 1
HISTORY_LIMIT_MAX = 1000


@dataclass
class TrackerConfig:
    """Workspace-level configuration."""
    require_human_validation: bool = True
    strict_lineage: bool = True
    history_limit: int = 100
    default_author: str = ""
    created_at: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "require_human_validation": self.require_human_validation,
            "strict_lineage": self.strict_lineage,
            "history_limit": self.history_limit,
            "default_author": self.default_author,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TrackerConfig":
        return cls(
            require_human_validation=bool(data.get("require_human_validation", True)),
            strict_lineage=bool(data.get("strict_lineage", True)),
            history_limit=_clamp_history(data.get("history_limit", 100)),
            default_author=data.get("default_author", "") or "",
            created_at=data.get("created_at"),
        )


def _clamp_history(value: Any) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        return 100
    return max(HISTORY_LIMIT_MIN, min(HISTORY_LIMIT_MAX, n))


def get_config_path(root: str) -> Path:
    """Get the config file path for a workspace."""
    return Path(root) / WORKSPACE_DIR / "config.json"


def load_config(root: str) -> TrackerConfig:
    """Load workspace configuration. Returns defaults if not found."""
    config_file = get_config_path(root)

    if not config_file.exists():
        return TrackerConfig()

    try:
        with open(config_file) as f:
            data = json.load(f)
        return TrackerConfig.from_dict(data)
    except (json.JSONDecodeError, AttributeError) as e:
        logger.warning(f"Ignoring unreadable config {config_file}: {e}")
        return TrackerConfig()


def save_config(root: str, config: TrackerConfig) -> None:
    """Save workspace configuration."""
    config_file = get_config_path(root)
    config_file.parent.mkdir(parents=True, exist_ok=True)

    with open(config_file, "w") as f:
        json.dump(config.to_dict(), f, indent=2)


def init_config(root: str) -> TrackerConfig:
    """Write default config unless one already exists."""
    config_file = get_config_path(root)
    if config_file.exists():
        return load_config(root)

    config = TrackerConfig(created_at=datetime.now().isoformat())
    save_config(root, config)
    return config


def _coerce(key: str, raw: str, current: Any) -> Any:
    if isinstance(current, bool):
        lowered = raw.strip().lower()
        if lowered in ("true", "yes", "on", "1"):
            return True
        if lowered in ("false", "no", "off", "0"):
            return False
        raise ConfigError(f"{key} expects a boolean, got '{raw}'")
    if isinstance(current, int):
        try:
            value = int(raw)
        except ValueError:
            raise ConfigError(f"{key} expects an integer, got '{raw}'")
        if key == "history_limit" and not HISTORY_LIMIT_MIN <= value <= HISTORY_LIMIT_MAX:
            raise ConfigError(
                f"history_limit must be between {HISTORY_LIMIT_MIN} and {HISTORY_LIMIT_MAX}"
            )
        return value
    return raw


def settable_keys() -> Dict[str, Any]:
    """Map of user-settable keys to their defaults."""
    defaults = TrackerConfig()
    return {
        f.name: getattr(defaults, f.name)
        for f in fields(TrackerConfig)
        if f.name != "created_at"
    }


def set_config_value(root: str, key: str, raw: str) -> TrackerConfig:
    """Set a single config key from its string form.

    Raises:
        ConfigError: Unknown key or a value of the wrong type
    """
    keys = settable_keys()
    if key not in keys:
        raise ConfigError(f"Unknown config key: {key}", [f"valid keys: {', '.join(sorted(keys))}"])

    config = load_config(root)
    setattr(config, key, _coerce(key, raw, keys[key]))
    save_config(root, config)
    logger.info(f"Config {key} set to {getattr(config, key)!r}")
    return config
