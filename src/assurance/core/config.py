"""Layered configuration.

Loads and merges configuration from:
1. Default settings (built-in)
2. Project config (.assurance/config.yaml)
3. Explicit overrides (CLI flags)
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_DIR = ".assurance"

DEFAULT_CONFIG: dict = {
    "review": {
        "upcoming_horizon_days": 30,
        "default_period_months": 12,
    },
    "catalogs": {
        "directory": "catalogs",
    },
    "output": {
        "format": "table",
    },
}


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts. Arrays are replaced, not merged."""
    result = {}
    for key in base:
        result[key] = base[key]
    for key, value in override.items():
        base_value = result.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            result[key] = deep_merge(base_value, value)
        else:
            result[key] = value
    return result


def load_project_config(project_path: Path) -> dict:
    """Load project configuration from .assurance/config.yaml."""
    config_path = project_path / CONFIG_DIR / "config.yaml"
    if not config_path.exists():
        return {}
    try:
        content = config_path.read_text(encoding="utf-8-sig")  # utf-8-sig strips BOM
        data = yaml.safe_load(content) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", config_path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top level is not a mapping", config_path)
        return {}
    return data


def get_effective_config(
    project_path: Optional[Path] = None,
    overrides: Optional[dict] = None,
) -> dict:
    """Get the fully resolved configuration."""
    config = copy.deepcopy(DEFAULT_CONFIG)

    if project_path is not None:
        project_config = load_project_config(project_path)
        if project_config:
            config = deep_merge(config, project_config)
        config["_project_path"] = str(project_path)

    if overrides:
        config = deep_merge(config, overrides)

    return config


def review_horizon_days(config: dict) -> int:
    return int(config.get("review", {}).get("upcoming_horizon_days", 30))


def default_review_period(config: dict) -> int:
    return int(config.get("review", {}).get("default_period_months", 12))
