from __future__ import annotations

import os
from collections import deque
from typing import Any, Deque, Dict, List, Optional

from librarydesk.core.events import JsonlFile, redact, utc_stamp


class SecurityAuditLogger(JsonlFile):
    """
    Permission decisions and login outcomes, one line each in
    logs/security.jsonl. The newest entries are also kept in memory so the
    admin audit view does not re-read the file.
    """

    def __init__(self, path: str = os.path.join("logs", "security.jsonl"), *, keep_recent: int = 200):
        super().__init__(path)
        self._recent: Deque[Dict[str, Any]] = deque(maxlen=keep_recent)

    def log(
        self,
        *,
        trace_id: str,
        severity: str,
        event: str,
        actor: Optional[str],
        endpoint: str,
        outcome: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        entry = {
            "ts": utc_stamp(),
            "trace_id": trace_id,
            "severity": severity,
            "event": event,
            "actor": actor,
            "endpoint": endpoint,
            "outcome": outcome,
            "details": redact(details or {}),
        }
        self.append(entry)
        self._recent.appendleft(entry)

    def recent(self, n: int = 50) -> List[Dict[str, Any]]:
        """Newest first."""
        return list(self._recent)[: max(1, int(n))]
