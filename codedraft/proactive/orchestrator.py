"""
Proactive Orchestrator

Routes activity signals to the analyzer and the notification gate.

Signals:
- save: file identity + full text + edited ranges -> capture suggestion
- commit: hash + message -> capture suggestion for significant commits
- tick (hourly): weekly review, draft readiness, contextual tips

Weekly review and milestones bypass the gate. Everything else is offered
through AdaptiveNotificationGate.

Collaborator failures are logged and the affected check is skipped for
this cycle. Nothing here raises into the host.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Union

from ..common.config import (
    CodeDraftConfig,
    ProactiveConfig,
)
from ..common.schemas import (
    CaptureItem,
    ChangeAnalysis,
    EditRange,
    FileMeta,
    SuggestionKind,
    SuggestionRequest,
    SuggestionResponse,
)
from ..common.storage import CaptureStore
from . import templates
from .analyzer import ChangeSignificanceAnalyzer
from .commit_classifier import CommitClassification, classify_commit
from .gate import AdaptiveNotificationGate, FollowUp
from .insights import (
    assess_capture_quality,
    capture_highlights,
    count_low_context,
    detect_themes,
    milestone_for,
)
from .presenter import PendingSuggestions, SuggestionPresenter
from .session import SessionState
from .stats_store import NotificationStatsStore

logger = logging.getLogger("codedraft.proactive.orchestrator")

BURST_WINDOW = timedelta(seconds=5)
BURST_LIMIT = 2
TICK_INTERVAL = 60 * 60
EVICTION_INTERVAL = 24 * 60 * 60
STATE_MAX_AGE = timedelta(hours=24)

DRAFT_READY_COUNT = 5
DRAFT_LOW_QUALITY_COUNT = 8
WEEKLY_MIN_CAPTURES = 3
CONTEXT_TIP_MIN_LOW = 3
CONTEXT_TIP_MAX_TOTAL = 10
SESSION_TIP_EVERY = 5

IGNORED_SEGMENTS = frozenset({
    ".git", "node_modules", ".vscode", "dist", "build", "out", ".next", "coverage", "__pycache__",
})
IGNORED_SUFFIXES = (".min.js", ".map", ".lock")


@dataclass
class SaveSignal:
    """A document was saved"""
    file_id: str
    text: str
    edited_ranges: List[EditRange] = field(default_factory=list)
    language: Optional[str] = None


@dataclass
class CommitSignal:
    """A commit was created"""
    commit_hash: str
    message: str


@dataclass
class TickSignal:
    """Periodic clock tick"""
    at: Optional[datetime] = None


def is_ignored(file_path: str) -> bool:
    """Generated, vendored and VCS paths are never analysed"""
    normalized = file_path.replace("\\", "/")
    if normalized.endswith(IGNORED_SUFFIXES):
        return True
    return any(segment in IGNORED_SEGMENTS for segment in normalized.split("/"))


def _as_signal(signal_type, payload: Any):
    if payload is None or isinstance(payload, signal_type):
        return payload if payload is not None else signal_type()
    if isinstance(payload, dict):
        if signal_type is SaveSignal and "edited_ranges" in payload:
            payload = dict(payload)
            payload["edited_ranges"] = [
                r if isinstance(r, EditRange) else EditRange.model_validate(r)
                for r in payload["edited_ranges"]
            ]
        return signal_type(**payload)
    raise TypeError(f"Unsupported payload for {signal_type.__name__}: {type(payload).__name__}")


class ProactiveOrchestrator:
    """
    Root of the proactive engine.

    Owns burst suppression and the hourly/daily timers; the analyzer owns
    per-file state and the gate owns notification stats.
    """

    def __init__(
        self,
        config: ProactiveConfig,
        analyzer: ChangeSignificanceAnalyzer,
        gate: AdaptiveNotificationGate,
        presenter: SuggestionPresenter,
        captures: CaptureStore,
        follow_up: Optional[FollowUp] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._config = config
        self._analyzer = analyzer
        self._gate = gate
        self._presenter = presenter
        self._captures = captures
        self._follow_up = follow_up
        self._clock = clock or (lambda: datetime.now().astimezone())

        self._last_save: Dict[str, datetime] = {}
        self._burst_counts: Dict[str, int] = {}
        self._tasks: List[asyncio.Task] = []

    @classmethod
    def from_config(
        cls,
        config: CodeDraftConfig,
        store: NotificationStatsStore,
        presenter: SuggestionPresenter,
        captures: CaptureStore,
        follow_up: Optional[FollowUp] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "ProactiveOrchestrator":
        """Wire analyzer, gate and session from configuration"""
        proactive = config.proactive
        session = SessionState(started_at=clock()) if clock else SessionState()
        gate = AdaptiveNotificationGate(
            store,
            session,
            base_cooldown_minutes=proactive.notification_cooldown,
            max_per_session=proactive.max_notifications_per_session,
            clock=clock,
        )
        return cls(
            proactive,
            ChangeSignificanceAnalyzer(),
            gate,
            presenter,
            captures,
            follow_up=follow_up,
            clock=clock,
        )

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @property
    def gate(self) -> AdaptiveNotificationGate:
        return self._gate

    @property
    def analyzer(self) -> ChangeSignificanceAnalyzer:
        return self._analyzer

    @property
    def session(self) -> SessionState:
        return self._gate.session

    @property
    def presenter(self) -> SuggestionPresenter:
        return self._presenter

    # =========================================================================
    # Signal entry points
    # =========================================================================

    async def on_activity_signal(self, kind: str, payload: Any = None):
        """
        Single entry point for host activity.

        Args:
            kind: "save", "commit" or "tick"
            payload: SaveSignal / CommitSignal / TickSignal, or an equivalent dict

        Returns:
            Whatever the matching handler returns
        """
        if kind == "save":
            return await self.handle_save(_as_signal(SaveSignal, payload))
        if kind == "commit":
            return await self.handle_commit(_as_signal(CommitSignal, payload))
        if kind == "tick":
            tick = _as_signal(TickSignal, payload)
            return await self.handle_tick(tick.at)
        raise ValueError(f"Unknown activity signal: {kind}")

    async def handle_save(self, signal: SaveSignal, now: Optional[datetime] = None) -> Optional[ChangeAnalysis]:
        """
        Analyse a save and offer a capture suggestion if it is worth it.

        Returns:
            The analysis, or None when the save was skipped (disabled,
            ignored path, rapid iteration)
        """
        if not self.enabled:
            return None

        if is_ignored(signal.file_id):
            logger.debug("Ignoring save of %s", signal.file_id)
            return None

        now = now or self._clock()
        if self._is_burst(signal.file_id, now):
            logger.debug("Rapid iteration on %s, skipping analysis", signal.file_id)
            return None

        analysis = self._analyzer.analyze(
            FileMeta(path=signal.file_id, language=signal.language),
            signal.text,
            signal.edited_ranges,
        )

        if not analysis.is_interesting or analysis.score < self._config.capture_score_threshold:
            return analysis

        region = analysis.suggested_region
        capture_counters = self._gate.stats.kinds.get(SuggestionKind.CAPTURE.value)
        request = SuggestionRequest(
            kind=SuggestionKind.CAPTURE,
            message=templates.capture_message(analysis.reason or analysis.category.value, analysis.score),
            reason=analysis.reason or "",
            priority=analysis.score,
            patterns=analysis.pattern_names,
            trigger=f"save:{signal.file_id}",
            region=region,
            actions=templates.capture_actions(capture_counters.dismissed if capture_counters else 0),
            action="capture_snippet",
            action_args={
                "file_id": signal.file_id,
                "category": analysis.category.value,
                "region": region.model_dump() if region else None,
            },
        )
        await self._gate.offer(request, self._presenter, on_accept=self._follow_up)
        return analysis

    async def handle_commit(self, signal: CommitSignal) -> Optional[CommitClassification]:
        """Offer to capture a commit whose message looks significant"""
        if not self.enabled:
            return None

        classification = classify_commit(signal.message)
        if not classification:
            return None

        request = SuggestionRequest(
            kind=SuggestionKind.CAPTURE,
            message=templates.commit_message(classification.change_type, signal.message),
            reason=f"Commit looks like a {classification.change_type}",
            priority=classification.priority,
            patterns=[classification.change_type],
            trigger=f"commit:{signal.commit_hash}",
            actions=list(templates.CAPTURE_ACTIONS),
            action="capture_commit",
            action_args={
                "commit_hash": signal.commit_hash,
                "message": signal.message,
                "change_type": classification.change_type,
            },
        )
        await self._gate.offer(request, self._presenter, on_accept=self._follow_up)
        return classification

    async def handle_tick(self, now: Optional[datetime] = None) -> List[SuggestionKind]:
        """
        Hourly aggregate checks, in order: weekly review, draft readiness, tips.

        Returns:
            Kinds of the suggestions that were shown
        """
        if not self.enabled:
            return []

        now = now or self._clock()
        shown: List[SuggestionKind] = []

        for kind, check in (
            (SuggestionKind.WEEKLY_REVIEW, self.check_weekly_review),
            (SuggestionKind.DRAFT, self.check_draft_readiness),
            (SuggestionKind.TIP, self.check_tips),
        ):
            try:
                response = await check(now)
            except Exception as e:
                logger.warning("Skipping %s check this cycle: %s", kind.value, e)
                continue
            if response is not None:
                shown.append(kind)

        return shown

    # =========================================================================
    # Aggregate checks
    # =========================================================================

    def in_weekly_window(self, now: datetime) -> bool:
        return (
            now.weekday() == self._config.weekly_review_weekday
            and now.hour == self._config.weekly_review_hour
        )

    async def check_weekly_review(self, now: datetime) -> Optional[SuggestionResponse]:
        """Once a day inside the configured weekday/hour window, given enough captures"""
        if not self.in_weekly_window(now):
            return None

        last = self._gate.stats.last_shown_at(SuggestionKind.WEEKLY_REVIEW)
        if last and last.astimezone(now.tzinfo).date() == now.date():
            return None

        captures = self._captures.list_captures(days=7, now=now)
        if len(captures) < WEEKLY_MIN_CAPTURES:
            return None

        request = SuggestionRequest(
            kind=SuggestionKind.WEEKLY_REVIEW,
            message=templates.weekly_review_message(
                len(captures), capture_highlights(captures), detect_themes(captures)
            ),
            reason="Weekly review",
            actions=list(templates.WEEKLY_ACTIONS),
            action="open_weekly_review",
            action_args={"capture_ids": [c.id for c in captures]},
        )
        logger.info("Weekly review: %d captures this week", len(captures))
        return await self._gate.present_unconditionally(
            request, self._presenter, on_accept=self._follow_up
        )

    async def check_draft_readiness(self, now: datetime) -> Optional[SuggestionResponse]:
        """Suggest a draft once enough undrafted captures have piled up"""
        captures = self._captures.list_captures(undrafted_only=True, now=now)
        count = len(captures)
        if count < DRAFT_READY_COUNT:
            return None

        quality = assess_capture_quality(captures)
        if quality == "low" and count < DRAFT_LOW_QUALITY_COUNT:
            logger.debug("Draft not suggested: %d captures of low quality", count)
            return None

        themes = detect_themes(captures)
        request = SuggestionRequest(
            kind=SuggestionKind.DRAFT,
            message=templates.draft_message(count, quality, themes),
            reason=f"{count} captures ready ({quality} quality)",
            priority=count,
            trigger="draft-readiness",
            actions=list(templates.DRAFT_ACTIONS),
            action="generate_draft",
            action_args={
                "capture_ids": [c.id for c in captures],
                "quality": quality,
                "themes": themes,
            },
        )
        return await self._gate.offer(request, self._presenter, on_accept=self._follow_up)

    async def check_tips(self, now: datetime) -> Optional[SuggestionResponse]:
        captures = self._captures.list_captures(now=now)
        session_count = self.session.captures

        if count_low_context(captures) > CONTEXT_TIP_MIN_LOW and len(captures) < CONTEXT_TIP_MAX_TOTAL:
            tip, trigger = templates.CONTEXT_TIP, "tip:context"
        elif session_count >= SESSION_TIP_EVERY and session_count % SESSION_TIP_EVERY == 0:
            tip, trigger = templates.session_tip(session_count), "tip:session"
        else:
            return None

        request = SuggestionRequest(
            kind=SuggestionKind.TIP,
            message=templates.tip_message(tip),
            trigger=trigger,
            actions=list(templates.TIP_ACTIONS),
        )
        return await self._gate.offer(request, self._presenter)

    # =========================================================================
    # Captures and responses
    # =========================================================================

    async def on_capture(self, capture: Optional[CaptureItem] = None) -> Optional[str]:
        """
        Count a capture for this session and celebrate milestones.

        Returns:
            The milestone text when this capture hit one
        """
        self.session.captures += 1
        count = self.session.captures
        achievement = milestone_for(count)
        if not achievement or not self.enabled:
            return None

        request = SuggestionRequest(
            kind=SuggestionKind.MILESTONE,
            message=templates.milestone_message(f"{count} captures", achievement),
            reason=f"milestone:{count}",
            actions=list(templates.MILESTONE_ACTIONS),
            action_args={"capture_id": capture.id} if capture else {},
        )
        logger.info("Milestone reached: %d captures", count)
        await self._gate.present_unconditionally(request, self._presenter, track=False)
        return achievement

    def on_suggestion_response(
        self,
        kind: Union[SuggestionKind, str],
        response: Union[SuggestionResponse, str],
        request_id: Optional[str] = None,
    ) -> Optional[SuggestionRequest]:
        """
        Deliver the user's answer to a pending suggestion.

        The awaiting offer() records it in the gate once the presenter returns.

        Returns:
            The resolved request, or None if nothing matched
        """
        if not isinstance(self._presenter, PendingSuggestions):
            logger.debug("Presenter resolves responses itself; ignoring %s", response)
            return None

        kind = SuggestionKind(kind)
        response = SuggestionResponse(response)
        if request_id:
            request = self._presenter.get(request_id)
            if not request or request.kind != kind:
                return None
            return self._presenter.resolve(request_id, response)
        return self._presenter.resolve_kind(kind, response)

    def reset_session(self, now: Optional[datetime] = None) -> None:
        self._gate.reset_session(now or self._clock())
        logger.info("Session reset")

    # =========================================================================
    # Timers
    # =========================================================================

    def evict_stale(self, now: Optional[datetime] = None) -> int:
        """Drop per-file state untouched for a day"""
        now = now or self._clock()
        evicted = self._analyzer.tracker.evict_stale(now, STATE_MAX_AGE)
        for file_id, last in list(self._last_save.items()):
            if now - last > STATE_MAX_AGE:
                self._last_save.pop(file_id, None)
                self._burst_counts.pop(file_id, None)
        if evicted:
            logger.info("Evicted %d stale document states", evicted)
        return evicted

    def start(self) -> None:
        """Start the hourly tick and daily eviction loops"""
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(self._every(TICK_INTERVAL, self.handle_tick, "tick")),
            asyncio.create_task(self._every(EVICTION_INTERVAL, self._evict_async, "eviction")),
        ]
        logger.info("Proactive loops started (enabled: %s)", self.enabled)

    async def stop(self) -> None:
        """Cancel timers and resolve pending suggestions to none"""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        if isinstance(self._presenter, PendingSuggestions):
            self._presenter.cancel_all()
        logger.info("Proactive loops stopped")

    async def _evict_async(self) -> int:
        return self.evict_stale()

    async def _every(self, interval: float, job: Callable, name: str) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await job()
            except Exception as e:
                logger.warning("Periodic %s failed: %s", name, e)

    def _is_burst(self, file_id: str, now: datetime) -> bool:
        """Third and later saves within the burst window of each other are skipped"""
        last = self._last_save.get(file_id)
        self._last_save[file_id] = now
        if last is None or now - last > BURST_WINDOW:
            self._burst_counts[file_id] = 0
            return False
        count = self._burst_counts.get(file_id, 0) + 1
        self._burst_counts[file_id] = count
        return count >= BURST_LIMIT
