"""
Change Significance Analyzer

Turns a saved document plus its edited line ranges into a ChangeAnalysis.

Algorithm:
1. Record the document's complexity and get the delta since last analysis
2. Tag the edited text with pattern rules
3. Sum rule bonuses, complexity-delta and size bonuses; clamp to [0, 100]
4. For interesting changes, pick the edited region (with context) that
   carries the most patterns and complexity

Pure computation over the given text. Never raises on empty input.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

from ..common.schemas import (
    ChangeAnalysis,
    EditRange,
    FileMeta,
    PatternTag,
    SuggestedRegion,
)
from .activity_tracker import ActivityStateTracker
from .complexity import calculate_complexity
from .patterns import DEFAULT_RULES, PatternRule, detect_patterns, resolve_category

INTERESTING_THRESHOLD = 60
SIGNIFICANT_CHANGE_LINES = 20
MAX_SIZE_BONUS = 50
SIMPLIFICATION_DELTA = -5
SIMPLIFICATION_BONUS = 30
GROWTH_DELTA = 10
GROWTH_BONUS = 20
REGION_CONTEXT_LINES = 3


def clamp_score(score: int) -> int:
    return max(0, min(100, score))


class ChangeSignificanceAnalyzer:
    """
    Scores edits for capture-worthiness.

    The tracker is the only place per-file complexity is remembered; the
    analyzer reads it exclusively through record_and_diff.
    """

    def __init__(
        self,
        tracker: Optional[ActivityStateTracker] = None,
        rules: Optional[Sequence[PatternRule]] = None,
        threshold: int = INTERESTING_THRESHOLD,
    ):
        self._tracker = tracker if tracker is not None else ActivityStateTracker()
        self._rules = list(rules) if rules is not None else list(DEFAULT_RULES)
        self._threshold = threshold

    @property
    def tracker(self) -> ActivityStateTracker:
        return self._tracker

    @property
    def threshold(self) -> int:
        return self._threshold

    def analyze(
        self,
        file_meta: FileMeta,
        full_text: str,
        edited_ranges: Iterable[EditRange],
    ) -> ChangeAnalysis:
        """
        Analyze one save of a document.

        Args:
            file_meta: Identity of the file (path is the tracker key)
            full_text: Complete post-edit text
            edited_ranges: Line spans of full_text touched by the edit

        Returns:
            ChangeAnalysis verdict
        """
        full_text = full_text or ""
        lines = full_text.splitlines()
        ranges = _clip_ranges(edited_ranges, len(lines))

        complexity_delta = self._tracker.record_and_diff(file_meta.path, full_text)

        edited_text = "\n".join(_slice(lines, r.start_line, r.end_line) for r in ranges)
        if not edited_text.strip():
            return ChangeAnalysis(complexity_delta=complexity_delta)

        lines_changed = sum(r.line_count for r in ranges)
        patterns = detect_patterns(edited_text, file_meta.path, self._rules)
        score, reasons = self._score(patterns, complexity_delta, lines_changed)

        is_interesting = score >= self._threshold
        region = self.find_most_interesting_region(file_meta, lines, ranges) if is_interesting else None

        return ChangeAnalysis(
            is_interesting=is_interesting,
            score=score,
            category=resolve_category(patterns, file_meta.path, self._rules),
            matched_patterns=patterns,
            complexity_delta=complexity_delta,
            suggested_region=region,
            reason="; ".join(reasons) or None,
            lines_changed=lines_changed,
        )

    def _score(
        self,
        patterns: Iterable[PatternTag],
        complexity_delta: int,
        lines_changed: int,
    ) -> Tuple[int, List[str]]:
        score = 0
        reasons: List[str] = []

        # Rule order keeps reasons stable across runs
        for rule in self._rules:
            if rule.tag in patterns and rule.bonus:
                score += rule.bonus
                reasons.append(rule.description)

        if complexity_delta < SIMPLIFICATION_DELTA:
            score += SIMPLIFICATION_BONUS
            reasons.append("Complexity reduced significantly")
        elif complexity_delta > GROWTH_DELTA:
            score += GROWTH_BONUS
            reasons.append("Complex logic added")

        if lines_changed > SIGNIFICANT_CHANGE_LINES:
            score += min(lines_changed * 2, MAX_SIZE_BONUS)
            reasons.append(f"Significant change ({lines_changed} lines)")

        return clamp_score(score), reasons

    def find_most_interesting_region(
        self,
        file_meta: FileMeta,
        lines: List[str],
        ranges: Sequence[EditRange],
    ) -> Optional[SuggestedRegion]:
        """
        Expand each edited range by a few lines of context and keep the one
        with the highest patterns x 20 + complexity x 2. Ties keep the first.
        """
        best_score = 0
        best: Optional[SuggestedRegion] = None

        for edit in ranges:
            start = max(0, edit.start_line - REGION_CONTEXT_LINES)
            end = min(len(lines) - 1, edit.end_line + REGION_CONTEXT_LINES)
            region_text = _slice(lines, start, end)
            patterns = detect_patterns(region_text, file_meta.path, self._rules)
            region_score = len(patterns) * 20 + calculate_complexity(region_text) * 2

            if region_score > best_score:
                best_score = region_score
                names = sorted(tag.value for tag in patterns)
                best = SuggestedRegion(
                    start_line=start,
                    end_line=end,
                    reason=f"Contains: {', '.join(names)}" if names else "Significant code change",
                )

        return best

    def explain(self, analysis: ChangeAnalysis) -> str:
        """Human-readable summary of a verdict"""
        if not analysis.is_interesting:
            return f"Not interesting (score: {analysis.score}, threshold: {self._threshold})"

        lines = [
            f"Interesting change detected (score: {analysis.score})",
            f"  Category: {analysis.category.value}",
            f"  Patterns: {', '.join(analysis.pattern_names) or 'none'}",
            f"  Complexity delta: {analysis.complexity_delta:+d}",
        ]
        if analysis.suggested_region:
            region = analysis.suggested_region
            lines.append(f"  Region: lines {region.start_line + 1}-{region.end_line + 1} ({region.reason})")
        return "\n".join(lines)


def _slice(lines: List[str], start: int, end: int) -> str:
    return "\n".join(lines[start:end + 1])


def _clip_ranges(ranges: Iterable[EditRange], line_count: int) -> List[EditRange]:
    """Drop ranges outside the text and clamp the rest to it"""
    clipped: List[EditRange] = []
    if line_count == 0:
        return clipped
    for r in ranges or []:
        start, end = min(r.start_line, r.end_line), max(r.start_line, r.end_line)
        if start >= line_count:
            continue
        clipped.append(EditRange(start_line=start, end_line=min(end, line_count - 1)))
    return clipped
