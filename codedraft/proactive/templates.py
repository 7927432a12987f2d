"""
Suggestion Templates

Text and button labels for every suggestion the engine can surface.
The first action label is always the "accept" choice.
"""

from typing import List, Optional, Sequence

CAPTURE_ACTIONS = ["Capture Now", "Not Now"]
REMIND_LESS_ACTION = "Remind Less Often"
DRAFT_ACTIONS = ["Generate Now", "Later", "View Captures"]
WEEKLY_ACTIONS = ["Review Now", "Generate Draft", "Remind Tomorrow"]
TIP_ACTIONS = ["Got it"]
MILESTONE_ACTIONS = ["Awesome!"]

HIGH_SCORE = 85

COMMIT_TEMPLATES = {
    "bug-fix": "Bug fix committed: \"{summary}\"",
    "refactor": "Refactor committed: \"{summary}\"",
    "feature": "New feature: \"{summary}\"",
    "performance": "Performance improvement: \"{summary}\"",
    "security": "Security update: \"{summary}\"",
    "breaking-change": "Breaking change: \"{summary}\"",
    "update": "Update committed: \"{summary}\"",
}


def _summary(message: str, limit: int = 50) -> str:
    message = message.strip()
    return f"{message[:limit]}..." if len(message) > limit else message


def capture_message(reason: str, score: Optional[int] = None) -> str:
    prefix = "Worth capturing" if score is not None and score >= HIGH_SCORE else "Capture idea"
    return f"{prefix}: {reason}"


def capture_actions(dismissed_count: int) -> List[str]:
    """'Remind Less Often' is offered once the user has dismissed a few times"""
    actions = list(CAPTURE_ACTIONS)
    if dismissed_count >= 3:
        actions.append(REMIND_LESS_ACTION)
    return actions


def commit_message(change_type: str, message: str) -> str:
    template = COMMIT_TEMPLATES.get(change_type, "Significant commit: \"{summary}\"")
    return template.format(summary=_summary(message))


def draft_message(count: int, quality: Optional[str] = None, themes: Sequence[str] = ()) -> str:
    message = f"You have {count} captures ready"
    if quality == "high":
        message += " with rich context"
    if themes:
        message += f". Detected themes: {', '.join(list(themes)[:2])}"
    return f"{message}. Generate a draft?"


def weekly_review_message(count: int, highlights: Sequence[str] = (), themes: Sequence[str] = ()) -> str:
    message = f"Weekly Review: You captured {count} learnings this week"
    if themes:
        message += f" (themes: {', '.join(themes)})"
    if highlights:
        message += "\n\nHighlights:\n" + "\n".join(f"- {h}" for h in highlights)
    return message


def milestone_message(milestone: str, achievement: str) -> str:
    return f"{milestone}! {achievement}"


def tip_message(tip: str) -> str:
    return f"Tip: {tip}"


CONTEXT_TIP = (
    "Select a whole function and add a short note when capturing. "
    "Drafts written from captures with context read much better."
)


def session_tip(count: int) -> str:
    return f"You've captured {count} items this session. Generate a draft while they're fresh?"
