"""
Tests for capture insights: themes, quality, highlights and milestones.
"""

import pytest


def capture(notes="", language=None, framework=None, function_name=None, surrounding=None, content="code"):
    from codedraft.common.schemas import CaptureContext, CaptureType, CodeSnippet, create_capture
    context = None
    if framework or function_name or surrounding:
        context = CaptureContext(
            framework=framework,
            function_name=function_name,
            surrounding_code=surrounding,
        )
    return create_capture(
        CaptureType.SNIPPET,
        content,
        notes=notes,
        code=CodeSnippet(snippet=content, language=language) if language else None,
        context=context,
    )


class TestDetectThemes:
    def test_most_frequent_first(self):
        from codedraft.proactive.insights import detect_themes
        captures = [
            capture(language="typescript", framework="react"),
            capture(language="typescript", notes="performance tweak"),
            capture(language="typescript", notes="fixed a bug in performance path"),
            capture(language="python"),
        ]
        assert detect_themes(captures) == ["typescript", "performance", "react"]

    def test_limit(self):
        from codedraft.proactive.insights import detect_themes
        captures = [capture(language=lang) for lang in ("go", "rust", "python", "java")]
        assert len(detect_themes(captures, limit=2)) == 2

    def test_no_signals(self):
        from codedraft.proactive.insights import detect_themes
        assert detect_themes([capture()]) == []


class TestCaptureQuality:
    def test_empty_is_low(self):
        from codedraft.proactive.insights import assess_capture_quality
        assert assess_capture_quality([]) == "low"

    def test_rich_captures_are_high(self):
        from codedraft.proactive.insights import assess_capture_quality, capture_quality_score
        rich = capture(
            notes="Explains why the retry loop needs jitter to avoid a thundering herd",
            language="python",
            function_name="retry",
            surrounding="def retry(): ...",
        )
        # notes 2 + function 2 + surrounding 2 + code 1
        assert capture_quality_score(rich) == 7
        assert assess_capture_quality([rich, rich]) == "high"

    def test_medium(self):
        from codedraft.proactive.insights import assess_capture_quality
        medium = capture(notes="short note", language="python", framework="django")
        assert assess_capture_quality([medium]) == "medium"

    def test_bare_captures_are_low(self):
        from codedraft.proactive.insights import assess_capture_quality
        assert assess_capture_quality([capture(), capture(notes="hm")]) == "low"

    def test_low_context_count(self):
        from codedraft.proactive.insights import count_low_context
        captures = [capture(), capture(framework="react"), capture(function_name="main")]
        assert count_low_context(captures) == 2


class TestHighlightsAndMilestones:
    def test_highlights_prefer_notes(self):
        from codedraft.proactive.insights import capture_highlights
        captures = [capture(notes="a note"), capture(content="y" * 100), capture(), capture()]
        highlights = capture_highlights(captures)
        assert highlights[0] == "a note"
        assert highlights[1] == "y" * 60
        assert len(highlights) == 3

    @pytest.mark.parametrize("count,expected", [
        (4, None),
        (5, "Ready for your first draft!"),
        (9, None),
        (10, "Building a great habit!"),
        (11, None),
        (100, "Century! You're a documentation master!"),
    ])
    def test_milestones(self, count, expected):
        from codedraft.proactive.insights import milestone_for
        assert milestone_for(count) == expected
