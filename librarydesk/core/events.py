from __future__ import annotations

import json
import os
import threading
import time
from typing import Any, Dict, Optional

REDACTED = "***REDACTED***"

# Matched case-insensitively against dict keys at any depth.
REDACT_KEYS = frozenset(
    {
        "password",
        "password_hash",
        "new_password",
        "secret",
        "token",
        "session_token",
        "authorization",
        "cookie",
    }
)


def redact(obj: Any) -> Any:
    """Copy of `obj` with the values of credential-like keys masked."""
    if isinstance(obj, dict):
        return {k: (REDACTED if str(k).lower() in REDACT_KEYS else redact(v)) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [redact(x) for x in obj]
    return obj


def utc_stamp() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


class JsonlFile:
    """Thread-safe append of one JSON object per line; parent dirs are created on write."""

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def append(self, payload: Dict[str, Any]) -> None:
        line = json.dumps(payload, ensure_ascii=False)
        with self._lock:
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")


class EventLogger(JsonlFile):
    """Auth and session lifecycle events (logs/events.jsonl)."""

    def __init__(self, path: str = os.path.join("logs", "events.jsonl")):
        super().__init__(path)

    def log(self, trace_id: str, event_type: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.append({"ts": utc_stamp(), "trace_id": trace_id, "event": event_type, "details": redact(details or {})})
