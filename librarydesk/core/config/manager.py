from __future__ import annotations

import os
from typing import Any, Dict, Optional

from pydantic import BaseModel, ValidationError

from librarydesk.core.config.io import quarantine_and_restore, read_json_file, refresh_last_known_good, write_json_atomic
from librarydesk.core.config.models import AppConfig, AppFileConfig, SecurityConfig, SessionConfig, WebConfig
from librarydesk.core.config.paths import ConfigFsPaths
from librarydesk.core.errors import ConfigError

# file name -> model; the stem is the AppConfig field
CONFIG_FILES: Dict[str, type[BaseModel]] = {
    "app.json": AppFileConfig,
    "session.json": SessionConfig,
    "security.json": SecurityConfig,
    "web.json": WebConfig,
}


class ConfigManager:
    """
    Loads config/*.json into one validated AppConfig.

    Missing files get defaults written out, corrupt files are restored from
    backups/last_known_good, and values that fail validation raise ConfigError.
    A successful load refreshes the last-known-good copies.
    """

    def __init__(self, *, fs: Optional[ConfigFsPaths] = None, logger=None, read_only: bool = False):  # noqa: ANN001
        self.fs = fs or ConfigFsPaths(".")
        self.logger = logger
        self.read_only = read_only

    def load_all(self) -> AppConfig:
        raw = {name: self._load_file(name, model) for name, model in CONFIG_FILES.items()}
        try:
            cfg = AppConfig(
                app=raw["app.json"],
                session=raw["session.json"],
                security=raw["security.json"],
                web=raw["web.json"],
            )
        except ValidationError as e:
            raise ConfigError(f"Config invalid: {e}") from e

        if not self.read_only:
            refresh_last_known_good(list(CONFIG_FILES), self.fs.config_dir, self.fs.last_known_good_dir)
        return cfg

    def _load_file(self, name: str, model: type[BaseModel]) -> Dict[str, Any]:
        path = os.path.join(self.fs.config_dir, name)
        rr = read_json_file(path)
        if rr.ok:
            return rr.data

        if rr.error == "corrupt" and not self.read_only:
            restored = quarantine_and_restore(path, self.fs.backups_dir, self.fs.last_known_good_dir)
            self._warn(f"Corrupt config {name} -> recovered={restored is not None}")
            if restored is not None:
                return restored
        elif rr.error == "missing":
            self._warn(f"Missing config {name}; creating defaults.")

        defaults = model().model_dump()
        if not self.read_only:
            write_json_atomic(path, defaults, self.fs.backups_dir)
        return defaults

    def _warn(self, msg: str) -> None:
        if self.logger is not None:
            self.logger.warning(msg)
