"""
CodeDraft

Proactive capture engine for developer activity. Watches saves, commits and
the clock, decides when a change is worth surfacing, and backs off when the
user is ignoring or being overwhelmed by suggestions.

Philosophy:
- Cheap heuristics that can run on every save
- Learn from every accept and dismiss
- Never interrupt more than the user tolerates
- A failed collaborator skips a cycle, it never crashes the host

Usage:
    from codedraft.common import load_config, JsonStateStore, CaptureStore
    from codedraft.common.schemas import CaptureItem, ChangeAnalysis
    from codedraft.proactive import ChangeSignificanceAnalyzer, AdaptiveNotificationGate
    from codedraft.proactive import ProactiveOrchestrator
"""

__version__ = "0.1.0"
