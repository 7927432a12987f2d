"""
Commit Classifier

Ordered keyword table over commit messages. The first keyword found wins,
so "fix" outranks "add" in "fix: add missing null check".
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern


@dataclass(frozen=True)
class CommitKeyword:
    keyword: str
    change_type: str
    priority: int
    pattern: Pattern


def _keyword(keyword: str, change_type: str, priority: int, suffix: str = "") -> CommitKeyword:
    # Word start only: "fixes" matches, "prefix" does not
    return CommitKeyword(keyword, change_type, priority, re.compile(rf"\b{keyword}{suffix}", re.IGNORECASE))


SIGNIFICANT_KEYWORDS: List[CommitKeyword] = [
    _keyword("fix", "bug-fix", 85),
    _keyword("refactor", "refactor", 75),
    _keyword("feat", "feature", 80),
    _keyword("optimize", "performance", 85),
    _keyword("security", "security", 90),
    _keyword("breaking", "breaking-change", 95),
    _keyword("add", "feature", 70, suffix=r"(?:s|ed|ing)?\b"),  # not "address"
    _keyword("update", "update", 65),
]


@dataclass
class CommitClassification:
    """Result of classifying a commit message"""
    change_type: str
    priority: int
    keyword: str


def classify_commit(message: str) -> Optional[CommitClassification]:
    """Classify a commit message, or None if nothing significant matched"""
    if not message or not message.strip():
        return None
    for entry in SIGNIFICANT_KEYWORDS:
        if entry.pattern.search(message):
            return CommitClassification(
                change_type=entry.change_type,
                priority=entry.priority,
                keyword=entry.keyword,
            )
    return None
