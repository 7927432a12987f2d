"""
Capture Insights

Aggregate views over previously captured items: themes, draft quality,
weekly highlights and session milestones.
"""

from collections import Counter
from typing import Dict, List, Optional, Sequence

from ..common.schemas import CaptureItem

THEME_KEYWORDS = ["performance", "bug", "refactor", "api", "security", "test"]

MILESTONES: Dict[int, str] = {
    5: "Ready for your first draft!",
    10: "Building a great habit!",
    25: "Quarter century! Keep going!",
    50: "Half-century milestone!",
    100: "Century! You're a documentation master!",
}

HIGH_QUALITY = 5
MEDIUM_QUALITY = 3
DETAILED_NOTES_LENGTH = 50


def detect_themes(captures: Sequence[CaptureItem], limit: int = 3) -> List[str]:
    """Most frequent languages, frameworks and note keywords across captures"""
    themes: Counter = Counter()

    for capture in captures:
        if capture.code and capture.code.language:
            themes[capture.code.language] += 1

        if capture.context and capture.context.framework:
            themes[capture.context.framework] += 1

        notes = (capture.notes or "").lower()
        for keyword in THEME_KEYWORDS:
            if keyword in notes:
                themes[keyword] += 1

    # Ties keep first-seen order
    return [theme for theme, _ in themes.most_common(limit)]


def capture_quality_score(capture: CaptureItem) -> int:
    score = 0

    if capture.notes and len(capture.notes) > DETAILED_NOTES_LENGTH:
        score += 2
    elif capture.notes:
        score += 1

    context = capture.context
    if context:
        if context.function_name or context.class_name:
            score += 2
        if context.framework:
            score += 1
        if context.surrounding_code:
            score += 2

    if capture.code:
        score += 1

    return score


def assess_capture_quality(captures: Sequence[CaptureItem]) -> str:
    """'low', 'medium' or 'high' from the average per-capture score"""
    if not captures:
        return "low"
    average = sum(capture_quality_score(c) for c in captures) / len(captures)
    if average >= HIGH_QUALITY:
        return "high"
    if average >= MEDIUM_QUALITY:
        return "medium"
    return "low"


def capture_highlights(captures: Sequence[CaptureItem], limit: int = 3) -> List[str]:
    """Notes, or the start of the content, of the first few captures"""
    return [c.notes or c.content[:60] for c in list(captures)[:limit]]


def count_low_context(captures: Sequence[CaptureItem]) -> int:
    return sum(
        1 for c in captures
        if not c.context or not (c.context.function_name or c.context.surrounding_code)
    )


def milestone_for(count: int) -> Optional[str]:
    """Achievement text when count is exactly a milestone"""
    return MILESTONES.get(count)
