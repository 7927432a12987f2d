"""
Session State

Process-lifetime counters shared by the gate and the orchestrator.
Never persisted; reset only when the host signals a new session.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


@dataclass
class SessionState:
    """Counters for the current working session"""
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    suggestions_shown: int = 0
    captures: int = 0

    def reset(self, now: Optional[datetime] = None) -> None:
        self.started_at = now or datetime.now(timezone.utc)
        self.suggestions_shown = 0
        self.captures = 0

    def to_dict(self) -> dict:
        return {
            "started_at": self.started_at.isoformat(),
            "suggestions_shown": self.suggestions_shown,
            "captures": self.captures,
        }
