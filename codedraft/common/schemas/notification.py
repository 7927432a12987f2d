"""
Notification Schemas

NotificationStats is the persisted learning state of the notification gate.
SuggestionRequest is the message exchanged with the host when a suggestion
is shown; its id correlates the user's response back to the request.
"""

import secrets
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from .analysis import SuggestedRegion

DEFAULT_RATE = 0.5


class SuggestionKind(str, Enum):
    """Kinds of suggestions the engine can surface"""
    CAPTURE = "capture"
    DRAFT = "draft"
    TIP = "tip"
    WEEKLY_REVIEW = "weekly-review"
    MILESTONE = "milestone"


class SuggestionResponse(str, Enum):
    """Terminal user responses to a shown suggestion"""
    ACCEPT = "accept"
    DISMISS = "dismiss"
    SUPPRESS_MORE = "suppress_more"
    NONE = "none"


def _kind_key(kind: Union[SuggestionKind, str]) -> str:
    return kind.value if isinstance(kind, SuggestionKind) else str(kind)


class KindCounters(BaseModel):
    """Accept/dismiss history for one suggestion kind"""
    accepted: int = Field(default=0, ge=0)
    dismissed: int = Field(default=0, ge=0)
    suppressed: int = Field(default=0, ge=0)

    def acceptance_rate(self) -> float:
        total = self.accepted + self.dismissed
        if total == 0:
            return DEFAULT_RATE
        return self.accepted / total


class PatternCounters(BaseModel):
    """How often suggestions carrying a pattern tag were shown and accepted"""
    shown: int = Field(default=0, ge=0)
    accepted: int = Field(default=0, ge=0)

    def success_rate(self) -> float:
        if self.shown == 0:
            return DEFAULT_RATE
        return self.accepted / self.shown


class NotificationStats(BaseModel):
    """Cumulative notification history, persisted across sessions"""
    schema_version: int = 2
    kinds: Dict[str, KindCounters] = Field(default_factory=dict)
    patterns: Dict[str, PatternCounters] = Field(default_factory=dict)
    last_shown: Dict[str, datetime] = Field(default_factory=dict)
    base_cooldown_minutes: Optional[float] = Field(
        default=None, description="Override written by 'suppress more' responses"
    )

    def counters(self, kind: Union[SuggestionKind, str]) -> KindCounters:
        """Counters for a kind, created on first use"""
        key = _kind_key(kind)
        if key not in self.kinds:
            self.kinds[key] = KindCounters()
        return self.kinds[key]

    def acceptance_rate(self, kind: Union[SuggestionKind, str]) -> float:
        counters = self.kinds.get(_kind_key(kind))
        return counters.acceptance_rate() if counters else DEFAULT_RATE

    def pattern_success_rate(self, tag: str) -> float:
        counters = self.patterns.get(tag)
        return counters.success_rate() if counters else DEFAULT_RATE

    def last_shown_at(self, kind: Union[SuggestionKind, str]) -> Optional[datetime]:
        return self.last_shown.get(_kind_key(kind))

    def last_notification_at(self) -> Optional[datetime]:
        """Most recent time any suggestion was shown"""
        if not self.last_shown:
            return None
        return max(self.last_shown.values())


class SuggestionRequest(BaseModel):
    """A suggestion handed to the host for display"""
    id: str = Field(default_factory=lambda: generate_suggestion_id())
    kind: SuggestionKind
    message: str
    reason: str = ""
    priority: Optional[int] = None
    patterns: List[str] = Field(default_factory=list)
    trigger: Optional[str] = Field(default=None, description="Key of the event that produced this request")
    region: Optional[SuggestedRegion] = None
    actions: List[str] = Field(default_factory=list, description="Button labels, accept first")
    action: Optional[str] = Field(default=None, description="Follow-up performed on accept")
    action_args: Dict[str, Any] = Field(default_factory=dict)
    gated: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def generate_suggestion_id() -> str:
    """Generate a correlation id for a suggestion request"""
    return f"sgg_{secrets.token_hex(6)}"
