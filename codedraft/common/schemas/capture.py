"""
Capture Schema

A capture is a snippet, commit or note the developer chose to keep.
Captures feed the weekly digest, draft readiness, themes and quality checks.
"""

import secrets
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class CaptureType(str, Enum):
    """Kinds of captured items"""
    SNIPPET = "snippet"
    COMMIT = "commit"
    NOTE = "note"
    LEARNING = "learning"


class CodeSnippet(BaseModel):
    """Code attached to a capture"""
    snippet: str
    language: str = ""
    file_path: str = ""
    line_start: int = 0
    line_end: int = 0


class CaptureContext(BaseModel):
    """Structural context extracted around a capture"""
    # File context
    file_path: str = ""
    file_name: str = ""
    language: str = ""

    # Code context
    surrounding_code: Optional[str] = None
    function_name: Optional[str] = None
    class_name: Optional[str] = None

    # Git context
    commit_hash: Optional[str] = None
    commit_message: Optional[str] = None
    diff_summary: Optional[str] = None
    affected_files: List[str] = Field(default_factory=list)

    # Project context
    project_deps: List[str] = Field(default_factory=list)
    framework: Optional[str] = None
    project_description: Optional[str] = None

    related_captures: List[str] = Field(default_factory=list)


class CaptureMetadata(BaseModel):
    """Workspace metadata recorded with a capture"""
    project: str = "untitled"
    branch: Optional[str] = None
    captured_at: str = ""  # Human-readable date


class CaptureItem(BaseModel):
    """A captured item"""
    id: str = Field(..., description="Unique ID: cap-<epoch ms>-<random>")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    type: CaptureType = CaptureType.SNIPPET
    content: str = ""
    code: Optional[CodeSnippet] = None
    notes: str = ""
    tags: List[str] = Field(default_factory=list)
    commit_hash: Optional[str] = None
    metadata: CaptureMetadata = Field(default_factory=CaptureMetadata)
    context: Optional[CaptureContext] = None
    draft_id: Optional[str] = Field(default=None, description="Draft this capture was used in, if any")

    @property
    def is_drafted(self) -> bool:
        return self.draft_id is not None


def generate_capture_id(timestamp: Optional[datetime] = None) -> str:
    """Generate a unique ID for a capture"""
    ts = timestamp or datetime.now(timezone.utc)
    return f"cap-{int(ts.timestamp() * 1000)}-{secrets.token_hex(5)[:9]}"


def create_capture(
    capture_type: CaptureType,
    content: str,
    notes: str = "",
    project: str = "untitled",
    timestamp: Optional[datetime] = None,
    **options,
) -> CaptureItem:
    """Build a CaptureItem with generated id and metadata"""
    ts = timestamp or datetime.now(timezone.utc)
    metadata = options.pop("metadata", None) or CaptureMetadata(
        project=project,
        captured_at=ts.strftime("%Y-%m-%d %H:%M"),
    )
    return CaptureItem(
        id=generate_capture_id(ts),
        timestamp=ts,
        type=capture_type,
        content=content,
        notes=notes,
        metadata=metadata,
        **options,
    )
