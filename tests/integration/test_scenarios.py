"""End-to-end scenarios for analyze()."""

import pytest

from chatsplit import AnalyzerConfig, analyze, analyze_with_trace
from chatsplit.config.markers import MarkerPair
from chatsplit.models import (
    ArtifactTag,
    BoundaryKind,
    DecisionBasis,
    IntentTag,
    Role,
    SegmentationMode,
    SeparatorKind,
)
from chatsplit.pipeline import AnalysisInvariantError, SegmentationResult, check_coverage
from chatsplit.pipeline.models import Block, Separator


class TestLiteralScenarios:
    """The reference transcripts every release must handle."""

    def test_gemini_japanese_markers(self, gemini_ja_text):
        result = analyze(gemini_ja_text)

        assert [t.role for t in result.turns] == [Role.USER, Role.ASSISTANT]
        assert [t.confidence for t in result.turns] == [1.0, 1.0]
        assert result.mode == SegmentationMode.MARKER
        assert result.turns[0].text == "Pythonでリストを逆順にする方法を教えて"

    def test_question_answer_pairs_without_markers(self, qa_pairs_text):
        result = analyze(qa_pairs_text)

        assert [t.role for t in result.turns] == [
            Role.USER,
            Role.ASSISTANT,
            Role.USER,
            Role.ASSISTANT,
        ]
        assert result.mode == SegmentationMode.HEURISTIC
        assert IntentTag.QUESTION in result.turns[0].intent
        assert ArtifactTag.CODE in result.turns[3].artifact

    def test_instruction_then_stack_trace(self, stack_trace_text):
        result = analyze(stack_trace_text)

        assert [t.role for t in result.turns] == [Role.USER, Role.USER, Role.ASSISTANT]
        assert result.turns[1].text.startswith("TypeError:")
        assert ArtifactTag.LOG in result.turns[1].artifact

    def test_chatgpt_markers_removed_from_text(self, chatgpt_text):
        result = analyze(chatgpt_text)

        assert len(result.turns) == 2
        assert all(t.confidence == 1.0 for t in result.turns)
        for turn in result.turns:
            assert "You said" not in turn.text
            assert "ChatGPT said" not in turn.text
        assert "Thought for" not in result.turns[1].text

    def test_unterminated_fence(self, unterminated_fence_text):
        result, trace = analyze_with_trace(unterminated_fence_text)

        assert trace.fences[-1].closed is False
        assert trace.blocks[-1].end == len(unterminated_fence_text)
        assert result.turns[-1].end == len(unterminated_fence_text)
        assert result.turns[-1].text.endswith("return x +")

    def test_empty_input(self):
        result = analyze("")

        assert result.turns == []
        assert result.groups == []
        assert result.mode == SegmentationMode.EMPTY


class TestShortAnswers:
    """Short replies right after a question or request belong to the assistant."""

    def test_one_line_answers(self):
        text = "What is a list?\n\nAn ordered collection.\n\nWhat is a tuple?\n\nAn immutable list."
        result = analyze(text)

        assert [t.role for t in result.turns] == [
            Role.USER,
            Role.ASSISTANT,
            Role.USER,
            Role.ASSISTANT,
        ]
        assert result.turns[1].text == "An ordered collection."

    def test_short_explanation_after_stack_trace(self):
        text = (
            "npm start crashes with this\n"
            "TypeError: Cannot read properties of undefined (reading 'map')\n"
            "    at UserList (src/components/UserList.jsx:12:23)\n"
            "    at renderWithHooks (node_modules/react-dom/cjs/react-dom.development.js:14985:18)\n"
            "\n"
            "This error means `users` is undefined on the first render."
        )
        result = analyze(text)

        assert [t.role for t in result.turns] == [Role.USER, Role.USER, Role.ASSISTANT]
        assert result.turns[2].text.startswith("This error means")

    def test_code_example_after_request(self):
        text = (
            "Show me a Zustand example\n"
            "\n"
            "Here is the basic usage:\n"
            "\n"
            "```js\n"
            "const useStore = create((set) => ({\n"
            "  count: 0,\n"
            "  inc: () => set((s) => ({ count: s.count + 1 })),\n"
            "}));\n"
            "```"
        )
        result = analyze(text)

        assert [t.role for t in result.turns] == [Role.USER, Role.ASSISTANT]
        assert result.turns[1].text.startswith("Here is the basic usage:")
        assert ArtifactTag.CODE in result.turns[1].artifact

    def test_lone_you_line_is_not_a_marker(self):
        result = analyze("Tell me about pronouns.\n\nYou\n\nare great")

        assert result.mode == SegmentationMode.HEURISTIC
        assert all(t.confidence < 1.0 for t in result.turns)


class TestProviderDetection:
    """Tests for the provider guess on the result."""

    def test_chatgpt_paste(self, chatgpt_text):
        result = analyze(chatgpt_text)

        assert result.provider == "chatgpt"
        assert result.provider_confidence == 1.0

    def test_gemini_japanese_paste(self, gemini_ja_text):
        assert analyze(gemini_ja_text).provider == "gemini"

    def test_unknown_source(self, qa_pairs_text):
        result = analyze(qa_pairs_text)

        assert result.provider is None
        assert result.provider_confidence == 0.0

    def test_turns_unchanged_by_detection(self, chatgpt_text):
        result, trace = analyze_with_trace(chatgpt_text)

        assert trace.provider.scores["chatgpt"] > 0
        assert [t.role for t in result.turns] == [Role.USER, Role.ASSISTANT]


class TestConfiguredAnalysis:
    """Tests for per-call configuration."""

    def test_extra_markers(self):
        config = AnalyzerConfig(
            extra_markers=[MarkerPair(provider="perplexity", user=["Question"], assistant=["Answer"])]
        )
        text = "Question\nWhat is Rust?\nAnswer\nRust is a systems programming language.\n"

        result = analyze(text, config)

        assert result.mode == SegmentationMode.MARKER
        assert [t.role for t in result.turns] == [Role.USER, Role.ASSISTANT]

    def test_builtin_table_unchanged_by_extras(self):
        text = "Question\nWhat is Rust?\nAnswer\nRust is a systems programming language.\n"
        assert analyze(text).mode == SegmentationMode.HEURISTIC

    def test_weight_override_changes_decision(self):
        text = "Sure, here you go"
        default = analyze(text)
        tuned = analyze(text, AnalyzerConfig(weight_overrides={"brevity": 0}))

        assert default.turns[0].role == Role.USER
        assert tuned.turns[0].role == Role.ASSISTANT


class TestTrace:
    """Tests for the inspectable trace."""

    def test_trace_exposes_decisions(self, qa_pairs_text):
        result, trace = analyze_with_trace(qa_pairs_text)

        assert len(trace.decisions) == len(result.turns)
        assert all(d.basis == DecisionBasis.HEURISTIC for d in trace.decisions)
        assert trace.decisions[0].signals

    def test_block_cleaned_to_nothing_is_dropped(self):
        text = "You said:\n\u200b\nChatGPT said:\nHello there\n"
        result, trace = analyze_with_trace(text)

        assert [t.text for t in result.turns] == ["Hello there"]
        assert trace.dropped_blocks == [0]

    def test_marker_separators_recorded(self, chatgpt_text):
        _, trace = analyze_with_trace(chatgpt_text)
        assert sum(1 for s in trace.separators if s.kind == SeparatorKind.MARKER) == 2


class TestCoverageCheck:
    """Tests for the coverage invariant check."""

    def test_gap_is_reported(self):
        text = "hello world"
        segmentation = SegmentationResult(
            mode=SegmentationMode.HEURISTIC,
            blocks=[Block(start=0, end=5, raw_text="hello", boundary=BoundaryKind.INITIAL)],
            separators=[Separator(start=6, end=11, kind=SeparatorKind.WHITESPACE)],
        )

        problems = check_coverage(text, segmentation)

        assert problems
        assert "expected 5" in problems[0]

    def test_mismatched_text_is_reported(self):
        segmentation = SegmentationResult(
            mode=SegmentationMode.HEURISTIC,
            blocks=[Block(start=0, end=5, raw_text="HELLO", boundary=BoundaryKind.INITIAL)],
        )
        assert check_coverage("hello", segmentation)

    @staticmethod
    def broken_segment(text, markers, fences, settings):
        return SegmentationResult(
            mode=SegmentationMode.HEURISTIC,
            blocks=[Block(start=0, end=5, raw_text=text[:5], boundary=BoundaryKind.INITIAL)],
        )

    def test_strict_mode_raises(self, monkeypatch):
        monkeypatch.setattr("chatsplit.pipeline.orchestrator.segment", self.broken_segment)

        with pytest.raises(AnalysisInvariantError):
            analyze("hello world")

    def test_lenient_mode_logs_and_continues(self, monkeypatch):
        monkeypatch.setattr("chatsplit.pipeline.orchestrator.segment", self.broken_segment)

        result = analyze("hello world", AnalyzerConfig(strict_invariants=False))

        assert [t.text for t in result.turns] == ["hello"]
