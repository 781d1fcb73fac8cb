from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Dict

import yaml

from finance_tracker.core.categorizer import DEFAULT_CATEGORIES

DEFAULT_CONFIG: Dict[str, object] = {
    "database_url": "sqlite:///finance_tracker.db",
    "api_prefix": "/api",
    "cors_origins": ["http://localhost:3000"],
    "host": "127.0.0.1",
    "port": 3001,
    "log_level": "INFO",
    "settings_file": "settings.yaml",
    "categories": DEFAULT_CATEGORIES,
}

ENV_OVERRIDES = {
    "FINANCE_TRACKER_DATABASE_URL": "database_url",
    "FINANCE_TRACKER_LOG_LEVEL": "log_level",
}


def _merge_defaults(current: Dict[str, object], defaults: Dict[str, object]) -> Dict[str, object]:
    """Merge missing default keys into the current config recursively."""
    merged = dict(current)
    for key, value in defaults.items():
        if key not in merged:
            merged[key] = copy.deepcopy(value)
        elif key != "categories" and isinstance(value, dict) and isinstance(merged[key], dict):
            merged[key] = _merge_defaults(merged[key], value)
    return merged


def load_config(path: str | Path | None = None) -> Dict[str, object]:
    """Load the YAML config at *path* merged over defaults and environment."""
    data: Dict[str, object] = {}
    if path is not None:
        target = Path(path)
        if target.exists():
            with target.open("r", encoding="utf-8") as fp:
                data = yaml.safe_load(fp) or {}
    config = _merge_defaults(data, DEFAULT_CONFIG)
    for env_name, key in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            config[key] = value
    return config


def configure_logging(level: str | int = "INFO") -> None:
    """Configure root logging for command-line and server entry points."""
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def save_config(config: Dict[str, object], path: str | Path) -> None:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as fp:
        yaml.safe_dump(config, fp, sort_keys=False)
