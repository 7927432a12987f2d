"""
Activity State Tracker

Per-file memory of the last known structural complexity, used to turn a
save into a complexity delta. Entries older than the retention window are
evicted by a slow periodic sweep, never on the hot path.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from .complexity import calculate_complexity

DEFAULT_MAX_AGE = timedelta(hours=24)


@dataclass
class DocumentState:
    """Last analysis of one file"""
    structural_complexity: int
    line_count: int
    last_analyzed_at: datetime


class ActivityStateTracker:
    """Keeps DocumentState per file id and computes complexity deltas"""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._states: Dict[str, DocumentState] = {}
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, file_id: str) -> bool:
        return file_id in self._states

    def record_and_diff(self, file_id: str, current_text: str) -> int:
        """
        Store the complexity of current_text for file_id and return the
        change since the previous analysis. A file seen for the first time
        has delta 0.
        """
        complexity = calculate_complexity(current_text)
        previous = self._states.get(file_id)
        delta = complexity - previous.structural_complexity if previous else 0
        self._states[file_id] = DocumentState(
            structural_complexity=complexity,
            line_count=current_text.count("\n") + 1 if current_text else 0,
            last_analyzed_at=self._clock(),
        )
        return delta

    def evict_stale(self, now: Optional[datetime] = None, max_age: timedelta = DEFAULT_MAX_AGE) -> int:
        """Drop entries not analysed within max_age; returns how many were dropped"""
        now = now or self._clock()
        stale = [
            file_id for file_id, state in self._states.items()
            if now - state.last_analyzed_at > max_age
        ]
        for file_id in stale:
            del self._states[file_id]
        return len(stale)
