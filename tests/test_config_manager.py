from __future__ import annotations

import json
import os

import pytest

from librarydesk.core.config.io import read_json_file, write_json_atomic
from librarydesk.core.config.manager import CONFIG_FILES, ConfigManager
from librarydesk.core.config.models import SecurityConfig, SessionConfig
from librarydesk.core.errors import ConfigError
from tests.helpers.fakes import DummyLogger


def _write(path: str, obj) -> None:  # noqa: ANN001
    with open(path, "w", encoding="utf-8") as f:
        if isinstance(obj, str):
            f.write(obj)
        else:
            json.dump(obj, f)


def _config_file(fs, name: str) -> str:  # noqa: ANN001
    return os.path.join(fs.config_dir, name)


def test_defaults_are_written(tmp_config_root):
    cfg = ConfigManager(fs=tmp_config_root).load_all()
    for name in CONFIG_FILES:
        assert os.path.isfile(_config_file(tmp_config_root, name))
        assert os.path.isfile(os.path.join(tmp_config_root.last_known_good_dir, name))
    assert cfg.session.short_ttl_seconds == 24 * 60 * 60
    assert cfg.session.long_ttl_seconds == 30 * 24 * 60 * 60
    assert cfg.session.warning_threshold_seconds == 5 * 60
    assert cfg.session.poll_interval_seconds == 60
    assert cfg.web.login_path == "/auth/login"
    assert cfg.web.denied_path == "/dashboard?error=access_denied"


def test_missing_files_are_logged(tmp_config_root):
    logger = DummyLogger()
    ConfigManager(fs=tmp_config_root, logger=logger).load_all()
    assert any("Missing config session.json" in w for w in logger.warnings)


def test_unknown_fields_rejected(tmp_config_root):
    _write(_config_file(tmp_config_root, "web.json"), {"port": 8000, "unknown_field": 1})
    with pytest.raises(ConfigError):
        ConfigManager(fs=tmp_config_root).load_all()


def test_edited_file_is_picked_up(config_manager):
    fs = config_manager.fs
    data = read_json_file(_config_file(fs, "session.json")).data
    data["short_ttl_seconds"] = 8 * 3600
    write_json_atomic(_config_file(fs, "session.json"), data, fs.backups_dir)

    cfg = config_manager.load_all()
    assert cfg.session.short_ttl_seconds == 8 * 3600
    assert any(n.startswith("session.json.") and "prewrite" in n for n in os.listdir(fs.backups_dir))


@pytest.mark.parametrize(
    "changes",
    [
        {"long_ttl_seconds": 24 * 60 * 60},
        {"warning_threshold_seconds": 24 * 60 * 60},
    ],
)
def test_invalid_session_durations(config_manager, changes):
    fs = config_manager.fs
    data = read_json_file(_config_file(fs, "session.json")).data
    data.update(changes)
    _write(_config_file(fs, "session.json"), data)
    with pytest.raises(ConfigError):
        config_manager.load_all()


def test_session_config_model_rules():
    with pytest.raises(ValueError):
        SessionConfig(poll_interval_seconds=0)
    with pytest.raises(ValueError):
        SecurityConfig(kdf_n=1000)
    assert SecurityConfig(kdf_n=2**10).kdf_n == 1024


def test_corrupt_json_recovers_from_last_known_good(config_manager):
    fs = config_manager.fs
    data = read_json_file(_config_file(fs, "web.json")).data
    data["port"] = 9123
    _write(_config_file(fs, "web.json"), data)
    config_manager.load_all()

    _write(_config_file(fs, "web.json"), "{not json")
    logger = DummyLogger()
    cfg = ConfigManager(fs=fs, logger=logger).load_all()
    assert cfg.web.port == 9123
    assert any("web.json" in b and "corrupt" in b for b in os.listdir(fs.backups_dir))
    assert any("Corrupt config web.json" in w for w in logger.warnings)


def test_invalid_values_raise_config_error(tmp_config_root):
    _write(_config_file(tmp_config_root, "web.json"), {"port": 0})
    with pytest.raises(ConfigError):
        ConfigManager(fs=tmp_config_root).load_all()


def test_read_only_does_not_write(tmp_config_root):
    cfg = ConfigManager(fs=tmp_config_root, read_only=True).load_all()
    assert cfg.app.config_version == 1
    assert not os.path.exists(tmp_config_root.session)
    assert not os.path.exists(tmp_config_root.last_known_good_dir)


def test_relative_paths_anchor_at_root(tmp_config_root):
    root = tmp_config_root.root
    assert tmp_config_root.resolve("runtime/session.json") == os.path.join(root, "runtime/session.json")
    assert tmp_config_root.resolve("/abs/x.json") == "/abs/x.json"
