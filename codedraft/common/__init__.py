"""
CodeDraft Common Module

Shared infrastructure for the proactive engine and its host.
"""

from .config import CodeDraftConfig, load_config
from .storage import CaptureStore, JsonStateStore

__all__ = [
    "CodeDraftConfig",
    "load_config",
    "CaptureStore",
    "JsonStateStore",
]
