"""
Local Storage

File-backed collaborators used by the proactive engine:
- JsonStateStore: key-value state (notification stats, migration markers)
- CaptureStore: captured items, queried by type and time window

Both load lazily from JSON and tolerate missing or corrupt files.
Writes go through a temp file and os.replace so a crash mid-write leaves the
previous snapshot intact.
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from .schemas import CaptureItem, CaptureType

logger = logging.getLogger("codedraft.common.storage")


def _atomic_write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w") as f:
            json.dump(data, f, indent=2, default=str)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


class JsonStateStore:
    """
    Persisted key-value read/write pair.

    The whole mapping lives in one JSON object on disk.
    """

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            with open(self._path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Failed to load state file %s: %s", self._path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("State file %s is not a JSON object, ignoring", self._path)
            return {}
        return data

    def read(self, key: str) -> Optional[Any]:
        """Value stored under key, or None"""
        return self._load().get(key)

    def write(self, key: str, value: Any) -> None:
        """Store value under key. Raises OSError if the file cannot be written."""
        data = self._load()
        data[key] = value
        _atomic_write_json(self._path, data)

    def delete(self, key: str) -> bool:
        data = self._load()
        if key not in data:
            return False
        del data[key]
        _atomic_write_json(self._path, data)
        return True


class CaptureStore:
    """
    Captured items persisted to captures.json.

    Workflow:
    1. Host records a capture (manually or after accepting a suggestion)
    2. Proactive checks query counts by type and time window
    3. Draft generation marks the captures it consumed
    """

    def __init__(self, path: Path):
        self._path = Path(path)

    def _load(self) -> List[CaptureItem]:
        if not self._path.exists():
            return []
        try:
            with open(self._path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Failed to load captures: %s", e)
            return []

        captures: List[CaptureItem] = []
        for raw in data if isinstance(data, list) else []:
            try:
                captures.append(CaptureItem.model_validate(raw))
            except ValidationError as e:
                logger.warning("Skipping malformed capture: %s", e.errors()[0].get("msg", e))
        return captures

    def _save(self, captures: Iterable[CaptureItem]) -> None:
        _atomic_write_json(self._path, [c.model_dump(mode="json") for c in captures])

    def add(self, capture: CaptureItem) -> str:
        """Append a capture and return its id"""
        captures = self._load()
        captures.append(capture)
        self._save(captures)
        logger.info("Captured %s (%s)", capture.id, capture.type.value)
        return capture.id

    def get(self, capture_id: str) -> Optional[CaptureItem]:
        for capture in self._load():
            if capture.id == capture_id:
                return capture
        return None

    def delete(self, capture_id: str) -> bool:
        captures = self._load()
        remaining = [c for c in captures if c.id != capture_id]
        if len(remaining) == len(captures):
            return False
        self._save(remaining)
        return True

    def mark_drafted(self, capture_ids: Iterable[str], draft_id: str) -> int:
        """Attach captures to a draft; returns how many were updated"""
        wanted = set(capture_ids)
        captures = self._load()
        updated = 0
        for capture in captures:
            if capture.id in wanted:
                capture.draft_id = draft_id
                updated += 1
        if updated:
            self._save(captures)
        return updated

    def list_captures(
        self,
        capture_type: Optional[CaptureType] = None,
        days: Optional[int] = None,
        undrafted_only: bool = False,
        now: Optional[datetime] = None,
    ) -> List[CaptureItem]:
        """Captures matching the filters, newest first"""
        captures = self._load()

        if capture_type:
            captures = [c for c in captures if c.type == capture_type]

        if days:
            cutoff = _aware(now or datetime.now(timezone.utc)) - timedelta(days=days)
            captures = [c for c in captures if _aware(c.timestamp) >= cutoff]

        if undrafted_only:
            captures = [c for c in captures if not c.is_drafted]

        return sorted(captures, key=lambda c: _aware(c.timestamp), reverse=True)

    def count_captures(self, **filters) -> int:
        return len(self.list_captures(**filters))


def _aware(ts: datetime) -> datetime:
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)
