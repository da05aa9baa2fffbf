"""
User configuration for the towerfall CLI.

Settings live in ``.towerfall_config.json`` in the config directory:

    {"data_dir": "content", "log_level": "INFO", "seed": 7}

Values are checked on load. A value towerfall cannot use is logged and
replaced by its default, so a hand-edited file never stops the CLI.
"""

import json
import logging
from pathlib import Path
from typing import Any, TypedDict

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".towerfall_config.json"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Config(TypedDict, total=False):
    """User configuration."""
    data_dir: str  # catalog directory (buffs, flags, items, variables, skills)
    log_level: str  # one of LOG_LEVELS
    seed: int | None  # fixed seed for probability rolls


DEFAULT_CONFIG: Config = {
    "data_dir": "data",
    "log_level": "WARNING",
    "seed": None,
}


# -----------------------------------------------------------------------------
# Validation
# -----------------------------------------------------------------------------

def _check_data_dir(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _check_log_level(value: Any) -> str | None:
    if isinstance(value, str) and value.upper() in LOG_LEVELS:
        return value.upper()
    return None


def _check_seed(value: Any) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


CHECKS = {
    "data_dir": _check_data_dir,
    "log_level": _check_log_level,
    "seed": _check_seed,
}


def validate_config(raw: dict) -> Config:
    """
    Merge raw settings over the defaults.

    Unknown keys are dropped. A null seed is kept (it means "unseeded");
    any other value that fails its check falls back to the default.
    """
    config: Config = DEFAULT_CONFIG.copy()
    for key, value in raw.items():
        check = CHECKS.get(key)
        if check is None:
            logger.warning(f"Unknown config key ignored: {key}")
            continue
        if key == "seed" and value is None:
            config["seed"] = None
            continue
        checked = check(value)
        if checked is None:
            logger.warning(f"Invalid config value for {key}: {value!r}; using {DEFAULT_CONFIG[key]!r}")
            continue
        config[key] = checked
    return config


# -----------------------------------------------------------------------------
# Persistence
# -----------------------------------------------------------------------------

def get_config_path(config_dir: Path | str = ".") -> Path:
    return Path(config_dir) / CONFIG_FILENAME


def load_config(config_dir: Path | str = ".") -> Config:
    """Load and validate the config file, or return defaults if there is none."""
    path = get_config_path(config_dir)
    if not path.exists():
        return DEFAULT_CONFIG.copy()

    try:
        saved = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Could not read {path}, using defaults: {e}")
        return DEFAULT_CONFIG.copy()

    if not isinstance(saved, dict):
        logger.warning(f"{path} does not hold a JSON object, using defaults")
        return DEFAULT_CONFIG.copy()
    return validate_config(saved)


def save_config(config: Config, config_dir: Path | str = ".") -> bool:
    """Validate and save the config. Returns True on success."""
    path = get_config_path(config_dir)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(validate_config(dict(config)), indent=2), encoding="utf-8")
    except OSError as e:
        logger.error(f"Could not save config to {path}: {e}")
        return False
    return True
