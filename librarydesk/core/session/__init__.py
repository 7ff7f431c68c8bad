"""
Session issuing, persistence and lifecycle monitoring.
"""

from librarydesk.core.session.monitor import MonitorState, SessionMonitor
from librarydesk.core.session.slot import JsonFileSlot, MemorySlot, SessionSlot
from librarydesk.core.session.store import SessionStore, SlotRead, format_session_time

__all__ = [
    "JsonFileSlot",
    "MemorySlot",
    "MonitorState",
    "SessionMonitor",
    "SessionSlot",
    "SessionStore",
    "SlotRead",
    "format_session_time",
]
