"""Where complaint-monitor keeps its files, and how the global config is read."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from .models import GlobalConfig

HOME_ENV_VAR = "COMPLAINT_MONITOR_HOME"
GLOBAL_CONFIG_FILENAME = "global_config.yaml"


@dataclass(frozen=True)
class MonitorPaths:
    """Directory layout under the monitor home.

    ``data/`` holds the config file and the default database, ``logs/`` the
    global logs and ``logs/entities/`` one file per monitored company.
    """

    root: Path

    @classmethod
    def from_env(cls, default_root: Path | None = None) -> "MonitorPaths":
        env_root = os.environ.get(HOME_ENV_VAR)
        if env_root:
            return cls(Path(env_root).expanduser().resolve())
        return cls((default_root or Path(__file__).resolve().parents[2]).resolve())

    @property
    def data_dir(self) -> Path:
        return self.root / "data"

    @property
    def logs_dir(self) -> Path:
        return self.root / "logs"

    @property
    def entity_logs_dir(self) -> Path:
        return self.logs_dir / "entities"

    @property
    def config_file(self) -> Path:
        return self.data_dir / GLOBAL_CONFIG_FILENAME

    def ensure(self) -> "MonitorPaths":
        for directory in (self.data_dir, self.entity_logs_dir):
            directory.mkdir(parents=True, exist_ok=True)
        return self


class ConfigRepository:
    """Load ``global_config.yaml``, writing the defaults on first use."""

    def __init__(self, paths: MonitorPaths | None = None) -> None:
        self.paths = (paths or MonitorPaths.from_env()).ensure()
        self._global: GlobalConfig | None = None

    def load_global_config(self) -> GlobalConfig:
        if self._global is None:
            path = self.paths.config_file
            if path.exists():
                payload = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if not isinstance(payload, dict):
                    raise ValueError(f"Configuration file must contain a mapping: {path}")
                self._global = GlobalConfig.model_validate(payload)
            else:
                self.save_global_config(GlobalConfig())
        return self._global

    def save_global_config(self, config: GlobalConfig) -> None:
        with self.paths.config_file.open("w", encoding="utf-8") as stream:
            yaml.safe_dump(config.model_dump(mode="json"), stream, allow_unicode=True, sort_keys=False)
        self._global = config

    def database_path(self) -> Path:
        return self.load_global_config().resolved_database_path(self.paths.root)


__all__ = ["ConfigRepository", "GLOBAL_CONFIG_FILENAME", "HOME_ENV_VAR", "MonitorPaths"]
