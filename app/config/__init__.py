"""Persisted key/value configuration stored in human-editable YAML files."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

_LOGGER = logging.getLogger(__name__)

MIGRATION_VERSION_KEY = "migration_version"
GLOBAL_CONFIG_DIRNAME = ".config/stud"
GLOBAL_CONFIG_FILENAME = "config.yml"
PROJECT_CONFIG_FILENAME = "stud.config"


@dataclass
class ConfigState:
    """Configuration values together with their migration watermark."""

    values: dict[str, Any] = field(default_factory=dict)

    @property
    def migration_version(self) -> int:
        return parse_migration_version(self.values.get(MIGRATION_VERSION_KEY))

    def advance_to(self, migration_id: int) -> None:
        """Record ``migration_id`` as the most recently applied migration."""

        self.values[MIGRATION_VERSION_KEY] = str(migration_id)

    def copy(self) -> "ConfigState":
        return ConfigState(values=dict(self.values))


class ConfigStore:
    """Read and write one YAML configuration file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def load(self) -> ConfigState:
        """Return the stored state, or an empty state when unreadable."""

        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            _LOGGER.debug("Config file %s does not exist yet", self._path)
            return ConfigState()
        except OSError as exc:
            _LOGGER.warning("Unable to read config file %s: %s", self._path, exc)
            return ConfigState()
        return ConfigState(values=_parse_yaml(raw, self._path))

    def save(self, state: ConfigState) -> None:
        """Write ``state`` to disk, creating parent directories as needed."""

        self._path.parent.mkdir(parents=True, exist_ok=True)
        text = yaml.safe_dump(state.values, default_flow_style=False, sort_keys=False, allow_unicode=True)
        self._path.write_text(text, encoding="utf-8")
        _LOGGER.debug(
            "Saved config %s (migration_version=%s)", self._path, state.migration_version
        )


def global_config_path(home: Path | None = None) -> Path:
    base = home if home is not None else Path.home()
    return base / GLOBAL_CONFIG_DIRNAME / GLOBAL_CONFIG_FILENAME


def project_config_path(git_dir: Path) -> Path:
    return git_dir / PROJECT_CONFIG_FILENAME


def parse_migration_version(value: Any) -> int:
    """Coerce a persisted watermark into an integer migration id.

    Missing, empty, ``"0"`` and malformed values all mean that no migration
    has been applied yet.
    """

    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        if text.isdigit():
            return int(text)
    _LOGGER.warning("Ignoring malformed migration_version value %r", value)
    return 0


def _parse_yaml(raw: str, path: Path) -> dict[str, Any]:
    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        _LOGGER.warning("Config file %s is not valid YAML: %s", path, exc)
        return {}
    if isinstance(parsed, Mapping):
        return dict(parsed)
    if parsed is not None:
        _LOGGER.warning("Config file %s does not contain a mapping", path)
    return {}


__all__ = [
    "ConfigState",
    "ConfigStore",
    "GLOBAL_CONFIG_DIRNAME",
    "GLOBAL_CONFIG_FILENAME",
    "MIGRATION_VERSION_KEY",
    "PROJECT_CONFIG_FILENAME",
    "global_config_path",
    "parse_migration_version",
    "project_config_path",
]
