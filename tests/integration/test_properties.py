"""Invariants that must hold for any input, well-formed or not."""

import pytest

from chatsplit import analyze, analyze_with_trace
from chatsplit.fixtures import BUILTIN_CASES
from chatsplit.models import DecisionBasis, Role
from chatsplit.pipeline import check_coverage


ODD_INPUTS = [
    "",
    "\r\n\r\n",
    "```",
    "You said:",
    "Copy\n",
    "[1]",
    "a" * 5000,
    "Question?\n\n````markdown\n```python\nprint(1)\n```\n````\n\nDone.",
    "~~~\nYou said:\nnot a marker\n~~~\nok\n",
    "Why does it fail?\n\n" + "It fails because the import is wrong.\n\n" * 3,
    "How do I rename a branch?\n\nUse `git branch -m old new` and push it.\n\n" * 150,
]

TEXTS = [case.raw_text for case in BUILTIN_CASES] + ODD_INPUTS
IDS = [case.id for case in BUILTIN_CASES] + [f"odd-{i}" for i in range(len(ODD_INPUTS))]


@pytest.mark.parametrize("text", TEXTS, ids=IDS)
class TestProperties:
    """Checks run against every fixture and every odd input."""

    def test_coverage(self, text):
        _, trace = analyze_with_trace(text)
        assert check_coverage(text, trace.segmentation) == []

    def test_role_totality(self, text):
        result = analyze(text)
        assert all(turn.role in (Role.USER, Role.ASSISTANT) for turn in result.turns)

    def test_confidence_bounds(self, text):
        result, trace = analyze_with_trace(text)

        for turn in result.turns:
            assert 0.0 <= turn.confidence <= 1.0
        for turn, decision in zip(result.turns, trace.decisions):
            if decision.basis == DecisionBasis.MARKER:
                assert turn.confidence == 1.0

    def test_idempotence(self, text):
        first = analyze(text).model_dump_json()
        second = analyze(text).model_dump_json()
        assert first == second

    def test_fence_safety(self, text):
        _, trace = analyze_with_trace(text)

        for block in trace.blocks:
            for fence in trace.fences:
                assert not fence.start < block.start < fence.end
                assert not fence.start < block.end < fence.end

    def test_turns_in_text_order(self, text):
        result = analyze(text)
        starts = [turn.start for turn in result.turns]
        assert starts == sorted(starts)
