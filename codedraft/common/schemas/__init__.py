"""
CodeDraft Schemas

Captures, change analyses and notification learning state.
"""

from .capture import (
    CaptureItem,
    CaptureType,
    CaptureContext,
    CaptureMetadata,
    CodeSnippet,
    create_capture,
    generate_capture_id,
)
from .analysis import (
    ChangeAnalysis,
    ChangeCategory,
    EditRange,
    FileMeta,
    PatternTag,
    SuggestedRegion,
)
from .notification import (
    KindCounters,
    NotificationStats,
    PatternCounters,
    SuggestionKind,
    SuggestionRequest,
    SuggestionResponse,
    generate_suggestion_id,
)

__all__ = [
    "CaptureItem",
    "CaptureType",
    "CaptureContext",
    "CaptureMetadata",
    "CodeSnippet",
    "create_capture",
    "generate_capture_id",
    "ChangeAnalysis",
    "ChangeCategory",
    "EditRange",
    "FileMeta",
    "PatternTag",
    "SuggestedRegion",
    "KindCounters",
    "NotificationStats",
    "PatternCounters",
    "SuggestionKind",
    "SuggestionRequest",
    "SuggestionResponse",
    "generate_suggestion_id",
]
