"""
Change Analysis Schema

Value types passed between the activity tracker, the significance analyzer
and the notification gate.
"""

from enum import Enum
from typing import FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChangeCategory(str, Enum):
    """Category of a change, resolved from its strongest pattern tag"""
    FEATURE = "feature"
    FIX = "fix"
    REFACTOR = "refactor"
    TEST = "test"
    DOCS = "docs"
    PERFORMANCE = "performance"
    SECURITY = "security"


class PatternTag(str, Enum):
    """Heuristic labels attached to edited text"""
    BUG_FIX = "bug-fix"
    PERFORMANCE = "performance"
    SECURITY = "security"
    ERROR_HANDLING = "error-handling"
    REFACTOR = "refactor"
    NEW_ALGORITHM = "new-algorithm"
    API_CHANGE = "api-change"
    TEST_ADDITION = "test-addition"
    CONFIG_FILE = "config-file"
    FRAMEWORK_PATTERN = "framework-pattern"
    DATA_ACCESS = "data-access"


class FileMeta(BaseModel):
    """Identity of the analysed file"""
    model_config = ConfigDict(frozen=True)

    path: str
    language: Optional[str] = None


class EditRange(BaseModel):
    """Inclusive 0-based line span of the post-edit text that was touched"""
    model_config = ConfigDict(frozen=True)

    start_line: int = Field(ge=0)
    end_line: int = Field(ge=0)

    @property
    def line_count(self) -> int:
        return max(self.end_line - self.start_line, 0) + 1


class SuggestedRegion(BaseModel):
    """Most interesting line span of a change, with the reason it was picked"""
    model_config = ConfigDict(frozen=True)

    start_line: int
    end_line: int
    reason: str


class ChangeAnalysis(BaseModel):
    """Significance verdict for one analysed change. Never mutated."""
    model_config = ConfigDict(frozen=True)

    is_interesting: bool = False
    score: int = Field(default=0, ge=0, le=100)
    category: ChangeCategory = ChangeCategory.FEATURE
    matched_patterns: FrozenSet[PatternTag] = Field(default_factory=frozenset)
    complexity_delta: int = 0
    suggested_region: Optional[SuggestedRegion] = None
    reason: Optional[str] = None
    lines_changed: int = 0

    @property
    def pattern_names(self) -> list:
        """Matched tags as sorted plain strings (stable for storage keys)"""
        return sorted(tag.value for tag in self.matched_patterns)
