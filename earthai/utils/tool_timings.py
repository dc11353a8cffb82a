"""In-process timing recorder for agent tools and geocoding lookups."""

import time
import threading
from collections import deque
from typing import Deque, Dict, Any, List, Optional

from earthai.config import settings

_lock = threading.Lock()
# bounded: reverse geocoding writes one record per viewport change
_records: Deque[Dict[str, Any]] = deque(maxlen=settings.TOOL_TIMING_MAX_RECORDS)
_enabled = True


def set_tool_timing_enabled(enabled: bool):
    global _enabled
    _enabled = enabled


def record_tool_timing(tool: str, duration: float, session_id: Optional[str] = None):
    """Store a single timing record, dropping the oldest once the buffer is full."""
    if not _enabled:
        return
    with _lock:
        _records.append({
            "tool": tool,
            "duration": duration,
            "session_id": session_id,
            "timestamp": time.time(),
        })


def get_and_reset() -> List[Dict[str, Any]]:
    """Return all timing records and clear the buffer."""
    with _lock:
        data = list(_records)
        _records.clear()
        return data
