from __future__ import annotations

import json
import os
import shutil
import tempfile
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from librarydesk.core.logger import get_logger

logger = get_logger("config.io")


@dataclass(frozen=True)
class ReadResult:
    """Outcome of reading one config file. `error` is missing, corrupt or unreadable."""

    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def read_json_file(path: str) -> ReadResult:
    try:
        with open(path, "r", encoding="utf-8") as f:
            obj = json.load(f)
    except FileNotFoundError:
        return ReadResult(error="missing")
    except (json.JSONDecodeError, UnicodeDecodeError):
        return ReadResult(error="corrupt")
    except OSError as e:
        logger.warning(f"Cannot read {path}: {e}")
        return ReadResult(error="unreadable")
    if not isinstance(obj, dict):
        return ReadResult(error="corrupt")
    return ReadResult(data=obj)


def _stamped(path: str, backups_dir: str, tag: str) -> str:
    stamp = time.strftime("%Y%m%d_%H%M%S", time.gmtime())
    return os.path.join(backups_dir, f"{os.path.basename(path)}.{stamp}.{tag}.json")


def _prune_backups(name: str, backups_dir: str, keep: int) -> None:
    ours: List[str] = [os.path.join(backups_dir, n) for n in os.listdir(backups_dir) if n.startswith(f"{name}.")]
    ours.sort(key=os.path.getmtime, reverse=True)
    for old in ours[keep:]:
        os.remove(old)


def write_json_atomic(path: str, data: Dict[str, Any], backups_dir: str, *, keep: int = 10) -> None:
    """
    Replace `path` with `data` via a temp file in the same directory.

    The previous content, if any, is copied to backups_dir first and only the
    newest `keep` copies per file are retained.
    """
    target_dir = os.path.dirname(path) or "."
    os.makedirs(target_dir, exist_ok=True)
    os.makedirs(backups_dir, exist_ok=True)
    if os.path.exists(path):
        shutil.copy2(path, _stamped(path, backups_dir, "prewrite"))
        _prune_backups(os.path.basename(path), backups_dir, keep)

    fd, tmp = tempfile.mkstemp(prefix=".tmp_", suffix=".json", dir=target_dir)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, sort_keys=True)
            f.write("\n")
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise


def quarantine_and_restore(path: str, backups_dir: str, lkg_dir: str) -> Optional[Dict[str, Any]]:
    """
    Move a corrupt file aside and put the last-known-good copy back.

    Returns the restored data, or None when no good copy exists.
    """
    os.makedirs(backups_dir, exist_ok=True)
    if os.path.exists(path):
        shutil.move(path, _stamped(path, backups_dir, "corrupt"))
    good = read_json_file(os.path.join(lkg_dir, os.path.basename(path)))
    if not good.ok:
        return None
    write_json_atomic(path, good.data, backups_dir)
    return good.data


def refresh_last_known_good(names: List[str], config_dir: str, lkg_dir: str) -> None:
    os.makedirs(lkg_dir, exist_ok=True)
    for name in names:
        src = os.path.join(config_dir, name)
        if os.path.isfile(src):
            shutil.copy2(src, os.path.join(lkg_dir, name))
