"""User display preferences with pluggable persistence.

``SettingsStore`` owns the current :class:`UserSettings` and talks to a
storage object handed to it, so callers decide where preferences live (a
YAML file next to the config, memory in tests, ...).
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Dict, Optional, Protocol

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserSettings:
    currency: str = "EUR"
    dark_mode: bool = True
    date_format: str = "DD/MM/YYYY"
    language: str = "en"

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "UserSettings":
        if not isinstance(data, dict):
            raise ValueError(f"settings must be a mapping, got {type(data).__name__}")
        values = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            expected = bool if f.name == "dark_mode" else str
            if not isinstance(value, expected):
                raise ValueError(f"{f.name} must be {expected.__name__}, got {value!r}")
            values[f.name] = value
        return cls(**values)


class SettingsStorage(Protocol):
    def read(self) -> Optional[Dict[str, object]]:
        ...

    def write(self, data: Dict[str, object]) -> None:
        ...


class MemorySettingsStorage:
    def __init__(self, data: Optional[Dict[str, object]] = None) -> None:
        self.data = dict(data) if data is not None else None

    def read(self) -> Optional[Dict[str, object]]:
        return dict(self.data) if self.data is not None else None

    def write(self, data: Dict[str, object]) -> None:
        self.data = dict(data)


class YamlSettingsStorage:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def read(self) -> Optional[Dict[str, object]]:
        if not self.path.exists():
            return None
        with self.path.open("r", encoding="utf-8") as fp:
            return yaml.safe_load(fp)

    def write(self, data: Dict[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as fp:
            yaml.safe_dump(data, fp, sort_keys=False)


class SettingsStore:
    def __init__(self, storage: SettingsStorage) -> None:
        self.storage = storage
        self.settings = UserSettings()
        self.initialized = False
        self.error: Optional[str] = None

    def initialize(self) -> UserSettings:
        """Load saved settings once; unreadable data falls back to defaults."""
        if self.initialized:
            return self.settings
        try:
            data = self.storage.read()
            if data:
                self.settings = UserSettings.from_dict(data)
        except (OSError, yaml.YAMLError, ValueError) as exc:
            logger.warning("Failed to load saved settings, using defaults: %s", exc)
            self.error = str(exc)
            self.settings = UserSettings()
        self.initialized = True
        return self.settings

    def save(self, new_settings: UserSettings, **changes: object) -> UserSettings:
        self.settings = replace(new_settings, **changes)
        self.storage.write(asdict(self.settings))
        self.error = None
        return self.settings

    def update(self, **changes: object) -> UserSettings:
        return self.save(self.settings, **changes)

    def reset(self) -> UserSettings:
        return self.save(UserSettings())
