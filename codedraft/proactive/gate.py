"""
Adaptive Notification Gate

Decides whether a suggestion may interrupt the user right now, and learns
from how the user responds.

Checks (all must pass):
1. Session cap: fewer than max_per_session suggestions shown this session
2. Adaptive cooldown: base cooldown x2 when this kind is mostly dismissed
   (acceptance < 0.3), x0.5 when mostly accepted (acceptance > 0.7)
3. Global cooldown: time since any suggestion >= adaptive cooldown
4. Per-kind cooldown: time since this kind >= adaptive cooldown
5. Deep work: nothing shown in the last 2 minutes

Shown counters are updated before the response is awaited. Every terminal
response is flushed to the stats store immediately.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Dict, Optional

from ..common.config import DEFAULT_COOLDOWN_MINUTES, DEFAULT_MAX_NOTIFICATIONS, MAX_COOLDOWN_MINUTES
from ..common.schemas import (
    NotificationStats,
    PatternCounters,
    SuggestionKind,
    SuggestionRequest,
    SuggestionResponse,
)
from .presenter import SuggestionPresenter
from .session import SessionState
from .stats_store import NotificationStatsStore

logger = logging.getLogger("codedraft.proactive.gate")

LOW_ACCEPTANCE = 0.3
HIGH_ACCEPTANCE = 0.7
DEEP_WORK_WINDOW = timedelta(minutes=2)

FollowUp = Callable[[SuggestionRequest], Awaitable[None]]


@dataclass
class GateDecision:
    """Outcome of evaluating the gate for one kind"""
    allowed: bool
    reason: str
    cooldown_minutes: float


class AdaptiveNotificationGate:
    """Session cap, adaptive cooldowns and deep-work suppression"""

    def __init__(
        self,
        store: NotificationStatsStore,
        session: SessionState,
        base_cooldown_minutes: float = DEFAULT_COOLDOWN_MINUTES,
        max_per_session: int = DEFAULT_MAX_NOTIFICATIONS,
        deep_work_window: timedelta = DEEP_WORK_WINDOW,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._store = store
        self._session = session
        self._configured_cooldown = base_cooldown_minutes
        self._max_per_session = max_per_session
        self._deep_work_window = deep_work_window
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._in_flight: Dict[str, SuggestionRequest] = {}

    @property
    def stats(self) -> NotificationStats:
        return self._store.stats

    @property
    def session(self) -> SessionState:
        return self._session

    @property
    def base_cooldown_minutes(self) -> float:
        """Configured cooldown, or the persisted 'suppress more' override"""
        return self.stats.base_cooldown_minutes or self._configured_cooldown

    def acceptance_rate(self, kind: SuggestionKind) -> float:
        return self.stats.acceptance_rate(kind)

    def adaptive_cooldown(self, kind: SuggestionKind) -> float:
        """Cooldown in minutes for a kind, scaled by how the user responds to it"""
        base = self.base_cooldown_minutes
        rate = self.acceptance_rate(kind)
        if rate < LOW_ACCEPTANCE:
            return base * 2
        if rate > HIGH_ACCEPTANCE:
            return base * 0.5
        return base

    def evaluate(
        self,
        kind: SuggestionKind,
        trigger: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> GateDecision:
        """Run every check; the first failing one is reported"""
        now = now or self._clock()
        cooldown = self.adaptive_cooldown(kind)

        if self._session.suggestions_shown >= self._max_per_session:
            return GateDecision(False, "session cap reached", cooldown)

        if trigger and trigger in self._in_flight:
            return GateDecision(False, f"already showing a suggestion for {trigger}", cooldown)

        window = timedelta(minutes=cooldown)
        last_any = self.stats.last_notification_at()
        if last_any and now - last_any < window:
            return GateDecision(False, "global cooldown", cooldown)

        last_kind = self.stats.last_shown_at(kind)
        if last_kind and now - last_kind < window:
            return GateDecision(False, f"{kind.value} cooldown", cooldown)

        if last_any and now - last_any < self._deep_work_window:
            return GateDecision(False, "deep work", cooldown)

        return GateDecision(True, "ok", cooldown)

    def mark_shown(self, request: SuggestionRequest, now: Optional[datetime] = None) -> None:
        """Count a suggestion as shown. Runs before the response is awaited."""
        now = now or self._clock()
        for tag in request.patterns:
            counters = self.stats.patterns.setdefault(tag, PatternCounters())
            counters.shown += 1
        self.stats.last_shown[request.kind.value] = now
        if request.gated:
            self._session.suggestions_shown += 1
        if request.trigger:
            self._in_flight[request.trigger] = request

    def record_response(self, request: SuggestionRequest, response: SuggestionResponse) -> None:
        """Apply a terminal response to the counters and flush"""
        counters = self.stats.counters(request.kind)

        if response == SuggestionResponse.ACCEPT:
            counters.accepted += 1
            for tag in request.patterns:
                pattern = self.stats.patterns.get(tag)
                if pattern and pattern.accepted < pattern.shown:
                    pattern.accepted += 1
        elif response == SuggestionResponse.DISMISS:
            counters.dismissed += 1
        elif response == SuggestionResponse.SUPPRESS_MORE:
            counters.suppressed += 1
            doubled = min(self.base_cooldown_minutes * 2, MAX_COOLDOWN_MINUTES)
            self.stats.base_cooldown_minutes = doubled
            logger.info("Base cooldown raised to %.0f minutes", doubled)

        if request.trigger:
            self._in_flight.pop(request.trigger, None)

        self._store.flush()

    async def offer(
        self,
        request: SuggestionRequest,
        presenter: SuggestionPresenter,
        on_accept: Optional[FollowUp] = None,
    ) -> Optional[SuggestionResponse]:
        """
        Show a suggestion if every check passes.

        Returns:
            The user's response, or None if the gate suppressed it
        """
        decision = self.evaluate(request.kind, request.trigger)
        if not decision.allowed:
            logger.debug("Suppressed %s suggestion: %s", request.kind.value, decision.reason)
            return None

        self.mark_shown(request)
        logger.info(
            "Showing %s suggestion %s (cooldown %.0f min, session %d/%d)",
            request.kind.value, request.id, decision.cooldown_minutes,
            self._session.suggestions_shown, self._max_per_session,
        )
        return await self._await_response(request, presenter, on_accept)

    async def present_unconditionally(
        self,
        request: SuggestionRequest,
        presenter: SuggestionPresenter,
        on_accept: Optional[FollowUp] = None,
        track: bool = True,
    ) -> SuggestionResponse:
        """
        Bypass path for calendar-anchored and celebratory suggestions.

        With track=False nothing is counted (milestones); otherwise the
        response is learned from like any other.
        """
        request.gated = False
        if not track:
            try:
                return await presenter.present(request)
            except Exception as e:
                logger.warning("Presenter failed for %s: %s", request.id, e)
                return SuggestionResponse.NONE

        self.mark_shown(request)
        return await self._await_response(request, presenter, on_accept)

    async def _await_response(
        self,
        request: SuggestionRequest,
        presenter: SuggestionPresenter,
        on_accept: Optional[FollowUp],
    ) -> SuggestionResponse:
        try:
            response = await presenter.present(request)
        except asyncio.CancelledError:
            self.record_response(request, SuggestionResponse.NONE)
            raise
        except Exception as e:
            logger.warning("Presenter failed for %s: %s", request.id, e)
            response = SuggestionResponse.NONE

        self.record_response(request, response)

        if response == SuggestionResponse.ACCEPT and on_accept:
            try:
                await on_accept(request)
            except Exception as e:
                logger.warning("Follow-up for %s failed: %s", request.id, e)

        return response

    def reset_session(self, now: Optional[datetime] = None) -> None:
        self._session.reset(now or self._clock())

    def snapshot(self) -> dict:
        """Stats summary for dashboards"""
        return {
            "base_cooldown_minutes": self.base_cooldown_minutes,
            "acceptance_rates": {
                kind.value: self.acceptance_rate(kind)
                for kind in (SuggestionKind.CAPTURE, SuggestionKind.DRAFT, SuggestionKind.TIP)
            },
            "session": self._session.to_dict(),
            "stats": self.stats.model_dump(mode="json"),
        }
