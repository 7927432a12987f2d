"""
Notification Stats Store

Loads NotificationStats once at startup and flushes it after every user
response. Missing or unreadable data yields fresh defaults; a failed flush
is logged and the in-memory stats stay authoritative until the next flush.

Older installs stored a flat camelCase layout under "notificationStats";
it is migrated on load.
"""

import logging
from typing import Any, Optional, Protocol

from pydantic import ValidationError

from ..common.schemas import (
    KindCounters,
    NotificationStats,
    PatternCounters,
    SuggestionKind,
)

logger = logging.getLogger("codedraft.proactive.stats_store")

STATS_KEY = "notification_stats"
LEGACY_STATS_KEY = "notificationStats"


class StateBackend(Protocol):
    """Persisted key-value read/write pair"""

    def read(self, key: str) -> Optional[Any]:
        ...

    def write(self, key: str, value: Any) -> None:
        ...


def is_legacy_layout(data: Any) -> bool:
    return isinstance(data, dict) and "kinds" not in data and any(
        key in data for key in ("captureAccepted", "captureDismissed", "draftAccepted", "patternSuccess")
    )


def _count(value: Any) -> int:
    try:
        return max(int(value or 0), 0)
    except (TypeError, ValueError):
        return 0


def migrate_legacy_stats(data: dict) -> NotificationStats:
    """Convert the flat legacy layout into NotificationStats"""
    stats = NotificationStats()
    stats.kinds[SuggestionKind.CAPTURE.value] = KindCounters(
        accepted=_count(data.get("captureAccepted")),
        dismissed=_count(data.get("captureDismissed")),
        suppressed=_count(data.get("captureNeverAgain")),
    )
    stats.kinds[SuggestionKind.DRAFT.value] = KindCounters(
        accepted=_count(data.get("draftAccepted")),
        dismissed=_count(data.get("draftDismissed")),
    )

    pattern_success = data.get("patternSuccess") or {}
    if isinstance(pattern_success, dict):
        for tag, counters in pattern_success.items():
            if not isinstance(counters, dict):
                continue
            shown = _count(counters.get("shown"))
            # accepted can never exceed shown
            accepted = min(_count(counters.get("accepted")), shown)
            stats.patterns[str(tag)] = PatternCounters(shown=shown, accepted=accepted)

    return stats


class NotificationStatsStore:
    """Owns the persisted NotificationStats snapshot"""

    def __init__(self, backend: StateBackend, key: str = STATS_KEY):
        self._backend = backend
        self._key = key
        self._stats = NotificationStats()

    @property
    def stats(self) -> NotificationStats:
        return self._stats

    def load(self) -> NotificationStats:
        """Load stats from the backend, falling back to defaults"""
        try:
            data = self._backend.read(self._key)
            if data is None:
                legacy = self._backend.read(LEGACY_STATS_KEY)
                if is_legacy_layout(legacy):
                    logger.info("Migrating legacy notification stats")
                    self._stats = migrate_legacy_stats(legacy)
                    return self._stats
                self._stats = NotificationStats()
            elif is_legacy_layout(data):
                self._stats = migrate_legacy_stats(data)
            else:
                self._stats = NotificationStats.model_validate(data)
        except (OSError, ValueError, ValidationError) as e:
            logger.warning("Failed to load notification stats, starting fresh: %s", e)
            self._stats = NotificationStats()
        return self._stats

    def flush(self) -> bool:
        """Persist the current snapshot; returns False if the write failed"""
        try:
            self._backend.write(self._key, self._stats.model_dump(mode="json"))
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Failed to persist notification stats: %s", e)
            return False

    def reset(self) -> NotificationStats:
        """Explicit reset to zero; flushed immediately"""
        self._stats = NotificationStats()
        self.flush()
        return self._stats

    def acceptance_rate(self, kind: SuggestionKind) -> float:
        return self._stats.acceptance_rate(kind)

    def pattern_success_rate(self, tag: str) -> float:
        return self._stats.pattern_success_rate(tag)
