"""Unit tests for fence scanning and citation handling."""

from chatsplit.pipeline.stages.fences import (
    FenceIndex,
    is_citation_only,
    iter_lines,
    scan_fences,
    strip_citations,
)


class TestIterLines:
    """Tests for offset-preserving line iteration."""

    def test_offsets_cover_text(self):
        text = "a\nbb\r\nccc"
        lines = list(iter_lines(text))

        assert [line for _, _, line in lines] == ["a\n", "bb\r\n", "ccc"]
        assert lines[-1][1] == len(text)

    def test_empty_text(self):
        assert list(iter_lines("")) == []


class TestScanFences:
    """Tests for fence detection."""

    def test_closed_fence(self):
        text = "Intro\n```python\nx = 1\n```\nOutro\n"
        spans = scan_fences(text)

        assert len(spans) == 1
        assert spans[0].start == text.index("```")
        assert spans[0].end == text.index("Outro")
        assert spans[0].closed

    def test_unclosed_fence_extends_to_end(self):
        text = "Look:\n```js\nconst a = 1;"
        spans = scan_fences(text)

        assert len(spans) == 1
        assert spans[0].end == len(text)
        assert not spans[0].closed

    def test_tilde_fence_not_closed_by_backticks(self):
        text = "~~~\n```\ncode\n~~~\n"
        spans = scan_fences(text)

        assert len(spans) == 1
        assert spans[0].end == len(text)

    def test_closing_line_with_trailing_text(self):
        text = "```\ncode\n```` trailing\nafter\n"
        spans = scan_fences(text)

        assert len(spans) == 1
        assert spans[0].end == text.index("after")

    def test_multiple_fences(self):
        text = "```\na\n```\ntext\n```\nb\n```\n"
        spans = scan_fences(text)

        assert len(spans) == 2
        assert spans[0].end <= spans[1].start


class TestFenceIndex:
    """Tests for fence containment lookup."""

    def test_strict_containment(self):
        text = "x\n```\ncode\n```\ny\n"
        spans = scan_fences(text)
        index = FenceIndex(spans)

        assert index.is_inside(text.index("code"))
        assert not index.is_inside(spans[0].start)
        assert not index.is_inside(spans[0].end)
        assert not index.is_inside(0)

    def test_no_fences(self):
        assert FenceIndex([]).containing(5) is None


class TestCitations:
    """Tests for citation token stripping."""

    def test_strip_forms(self):
        text = "Use a list [1] or a tuple [cite: 2, 3] here [cite:4]."
        assert strip_citations(text) == "Use a list  or a tuple  here ."

    def test_citation_only_line(self):
        assert is_citation_only("[1] [2]\n")
        assert not is_citation_only("See [1]\n")
        assert not is_citation_only("   \n")
