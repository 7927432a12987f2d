"""
CodeDraft Proactive Engine

Decides when developer activity is worth surfacing and when to stop
interrupting.

Components:
- ActivityStateTracker: per-file complexity memory
- ChangeSignificanceAnalyzer: pattern + complexity scoring of edits
- AdaptiveNotificationGate: cooldowns, session cap, deep-work suppression
- ProactiveOrchestrator: wires save/commit/tick signals to the above
"""

from .activity_tracker import ActivityStateTracker, DocumentState
from .analyzer import ChangeSignificanceAnalyzer
from .gate import AdaptiveNotificationGate, GateDecision
from .orchestrator import CommitSignal, ProactiveOrchestrator, SaveSignal, TickSignal
from .presenter import PendingSuggestions, SuggestionPresenter
from .session import SessionState
from .stats_store import NotificationStatsStore

__all__ = [
    "ActivityStateTracker",
    "DocumentState",
    "ChangeSignificanceAnalyzer",
    "AdaptiveNotificationGate",
    "GateDecision",
    "ProactiveOrchestrator",
    "SaveSignal",
    "CommitSignal",
    "TickSignal",
    "PendingSuggestions",
    "SuggestionPresenter",
    "SessionState",
    "NotificationStatsStore",
]
