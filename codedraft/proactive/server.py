"""
Proactive Server

FastAPI host for the proactive engine. An editor extension posts activity
here, polls for pending suggestions and reports the user's answers.

Endpoints:
- GET /health: Health check
- POST /activity/save: Document saved
- POST /activity/commit: Commit created
- POST /activity/tick: Run the hourly checks now
- POST /captures: Record a capture
- GET /suggestions: Suggestions waiting for an answer
- POST /suggestions/{id}/response: Answer a suggestion
- POST /session/reset: Start a new session
- GET /stats: Notification stats and session counters

Activity is processed in background tasks so a suggestion can wait for its
answer without holding the request open.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional, Set

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from ..common.config import CodeDraftConfig, ensure_directories, load_config
from ..common.schemas import (
    CaptureContext,
    CaptureType,
    CodeSnippet,
    EditRange,
    SuggestionResponse,
    create_capture,
)
from ..common.storage import CaptureStore, JsonStateStore
from .orchestrator import CommitSignal, ProactiveOrchestrator, SaveSignal
from .presenter import PendingSuggestions
from .stats_store import NotificationStatsStore

logger = logging.getLogger("codedraft.proactive.server")


# Global state
config: Optional[CodeDraftConfig] = None
orchestrator: Optional[ProactiveOrchestrator] = None
pending: Optional[PendingSuggestions] = None
captures: Optional[CaptureStore] = None
_background: Set[asyncio.Task] = set()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize components on startup"""
    global config, orchestrator, pending, captures

    logger.info("Starting up...")

    config = load_config()
    ensure_directories(config)

    state = JsonStateStore(config.storage.state_path)
    store = NotificationStatsStore(state)
    store.load()

    captures = CaptureStore(config.storage.captures_path)
    pending = PendingSuggestions(timeout=config.server.suggestion_timeout)
    orchestrator = ProactiveOrchestrator.from_config(config, store, pending, captures)
    orchestrator.start()

    logger.info(
        "Ready (proactive: %s, cooldown: %.0f min, review: %s %02d:00)",
        config.proactive.enabled,
        orchestrator.gate.base_cooldown_minutes,
        config.proactive.weekly_review_day,
        config.proactive.weekly_review_hour,
    )

    yield

    logger.info("Shutting down...")
    await orchestrator.stop()
    for task in list(_background):
        task.cancel()
    if _background:
        await asyncio.gather(*_background, return_exceptions=True)


app = FastAPI(
    title="CodeDraft Proactive Engine",
    description="Significance scoring and adaptive suggestions for developer activity",
    version="0.1.0",
    lifespan=lifespan
)


# =============================================================================
# Request Models
# =============================================================================

class EditRangeBody(BaseModel):
    start_line: int = Field(ge=0)
    end_line: int = Field(ge=0)


class SaveEvent(BaseModel):
    """Document saved"""
    file_id: str
    text: str
    edited_ranges: List[EditRangeBody] = Field(default_factory=list)
    language: Optional[str] = None


class CommitEvent(BaseModel):
    """Commit created"""
    commit_hash: str
    message: str


class CaptureBody(BaseModel):
    """Capture recorded by the host"""
    type: CaptureType = CaptureType.SNIPPET
    content: str
    notes: str = ""
    project: str = "untitled"
    code: Optional[CodeSnippet] = None
    context: Optional[CaptureContext] = None
    tags: List[str] = Field(default_factory=list)
    commit_hash: Optional[str] = None


class ResponseBody(BaseModel):
    """User's answer to a suggestion"""
    response: SuggestionResponse


# =============================================================================
# Background Tasks
# =============================================================================

def _require_orchestrator() -> ProactiveOrchestrator:
    if not orchestrator:
        raise HTTPException(status_code=503, detail="Engine not initialized")
    return orchestrator


def _schedule(coro, label: str) -> None:
    """Run a handler without blocking the response; failures are logged"""
    task = asyncio.create_task(coro)
    _background.add(task)

    def _done(t: asyncio.Task):
        _background.discard(t)
        if not t.cancelled() and t.exception():
            logger.warning("%s failed: %s", label, t.exception())

    task.add_done_callback(_done)


# =============================================================================
# Endpoints
# =============================================================================

@app.get("/health")
async def health():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "codedraft-proactive",
        "initialized": orchestrator is not None,
        "enabled": orchestrator.enabled if orchestrator else False,
        "pending_suggestions": len(pending) if pending is not None else 0,
    }


@app.post("/activity/save")
async def activity_save(event: SaveEvent):
    """Analyse a saved document in the background"""
    engine = _require_orchestrator()
    signal = SaveSignal(
        file_id=event.file_id,
        text=event.text,
        edited_ranges=[EditRange(start_line=r.start_line, end_line=r.end_line) for r in event.edited_ranges],
        language=event.language,
    )
    _schedule(engine.handle_save(signal), f"save {event.file_id}")
    return {"ok": True}


@app.post("/activity/commit")
async def activity_commit(event: CommitEvent):
    """Classify a commit in the background"""
    engine = _require_orchestrator()
    _schedule(
        engine.handle_commit(CommitSignal(commit_hash=event.commit_hash, message=event.message)),
        f"commit {event.commit_hash[:8]}",
    )
    return {"ok": True}


@app.post("/activity/tick")
async def activity_tick():
    """Run the hourly aggregate checks now"""
    engine = _require_orchestrator()
    _schedule(engine.handle_tick(), "tick")
    return {"ok": True}


@app.post("/captures")
async def add_capture(body: CaptureBody):
    """Store a capture and count it for this session"""
    engine = _require_orchestrator()
    if captures is None:
        raise HTTPException(status_code=503, detail="Capture store not initialized")

    capture = create_capture(
        body.type,
        body.content,
        notes=body.notes,
        project=body.project,
        code=body.code,
        context=body.context,
        tags=body.tags,
        commit_hash=body.commit_hash,
    )
    try:
        captures.add(capture)
    except OSError as e:
        raise HTTPException(status_code=500, detail=f"Failed to store capture: {e}")

    _schedule(engine.on_capture(capture), f"capture {capture.id}")
    return {"status": "captured", "id": capture.id}


@app.get("/suggestions")
async def get_suggestions():
    """Suggestions waiting for an answer, oldest first"""
    if pending is None:
        raise HTTPException(status_code=503, detail="Presenter not initialized")

    items = pending.pending()
    return {
        "pending_count": len(items),
        "items": [item.model_dump(mode="json") for item in items],
    }


@app.post("/suggestions/{suggestion_id}/response")
async def respond(suggestion_id: str, body: ResponseBody):
    """Answer a pending suggestion"""
    engine = _require_orchestrator()
    if pending is None:
        raise HTTPException(status_code=503, detail="Presenter not initialized")

    request = pending.get(suggestion_id)
    if not request:
        raise HTTPException(status_code=404, detail="Suggestion not found")

    resolved = engine.on_suggestion_response(request.kind, body.response, request_id=suggestion_id)
    if not resolved:
        raise HTTPException(status_code=404, detail="Suggestion already answered")

    return {
        "status": "recorded",
        "id": suggestion_id,
        "kind": request.kind.value,
        "response": body.response.value,
        "action": request.action if body.response == SuggestionResponse.ACCEPT else None,
        "action_args": request.action_args if body.response == SuggestionResponse.ACCEPT else {},
    }


@app.post("/session/reset")
async def reset_session():
    """Start a new session"""
    engine = _require_orchestrator()
    engine.reset_session()
    return {"status": "reset", "session": engine.session.to_dict()}


@app.get("/stats")
async def get_stats():
    """Notification stats and session counters"""
    stats = {
        "service": "codedraft-proactive",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    if orchestrator:
        stats["gate"] = orchestrator.gate.snapshot()
        stats["tracked_documents"] = len(orchestrator.analyzer.tracker)

    if captures is not None:
        try:
            stats["captures"] = {
                "total": captures.count_captures(),
                "undrafted": captures.count_captures(undrafted_only=True),
                "this_week": captures.count_captures(days=7),
            }
        except OSError as e:
            logger.warning("Capture counts unavailable: %s", e)

    return stats


# =============================================================================
# CLI Entry Point
# =============================================================================

def run_server():
    """Run the proactive server"""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config()
    logger.info("Starting server on %s:%d", config.server.host, config.server.port)
    uvicorn.run(
        "codedraft.proactive.server:app",
        host=config.server.host,
        port=config.server.port,
        reload=False,
    )


if __name__ == "__main__":
    run_server()
