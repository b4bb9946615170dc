"""Unit tests for the evaluation harness."""

import json

import pytest

from chatsplit.evaluation import (
    EvaluationCase,
    LabeledTurn,
    boundary_score,
    evaluate,
    evaluate_case,
    load_cases,
    role_accuracy,
)
from chatsplit.fixtures import BUILTIN_CASES
from chatsplit.models import Role, Turn


def make_turn(role, text):
    return Turn(role=role, text=text, confidence=0.5, start=0, end=len(text))


class TestBoundaryScore:
    """Tests for the turn-count metric."""

    def test_exact(self):
        assert boundary_score(4, 4) == 1.0

    def test_off_by_one(self):
        assert boundary_score(3, 4) == pytest.approx(0.75)
        assert boundary_score(5, 4) == pytest.approx(0.8)

    def test_expected_zero(self):
        assert boundary_score(0, 0) == 1.0
        assert boundary_score(2, 0) == 0.0


class TestRoleAccuracy:
    """Tests for the attribution metric."""

    def test_all_correct(self):
        turns = [make_turn(Role.USER, "How do I sort a dict?"), make_turn(Role.ASSISTANT, "Use sorted().")]
        expected = [LabeledTurn(role=Role.USER, text="How do I sort"), LabeledTurn(role=Role.ASSISTANT, text="Use sorted")]

        accuracy, details = role_accuracy(turns, expected)

        assert accuracy == 1.0
        assert details == []

    def test_wrong_role_reported(self):
        turns = [make_turn(Role.ASSISTANT, "How do I sort a dict?")]
        expected = [LabeledTurn(role=Role.USER, text="How do I sort a dict?")]

        accuracy, details = role_accuracy(turns, expected)

        assert accuracy == 0.0
        assert "expected=user got=assistant" in details[0]

    def test_missing_text_reported(self):
        accuracy, details = role_accuracy(
            [make_turn(Role.USER, "Something else")],
            [LabeledTurn(role=Role.USER, text="Not present anywhere")],
        )

        assert accuracy == 0.0
        assert "not found" in details[0]

    def test_no_turns(self):
        accuracy, _ = role_accuracy([], [LabeledTurn(role=Role.USER, text="Hi")])
        assert accuracy == 0.0


class TestEvaluate:
    """Tests for running labelled cases."""

    def test_builtin_cases_pass(self):
        report = evaluate(BUILTIN_CASES)

        assert len(report.results) == len(BUILTIN_CASES)
        failed = [(r.id, r.details) for r in report.results if not r.passed]
        assert failed == []
        assert report.passed == len(BUILTIN_CASES)

    @pytest.mark.parametrize("case", BUILTIN_CASES, ids=lambda case: case.id)
    def test_builtin_case_is_exact(self, case):
        result = evaluate_case(case)

        assert result.detected_count == case.expected_turn_count, result.details
        assert result.role_accuracy == 1.0, result.details
        assert result.boundary_score == 1.0

    def test_suite_covers_unmarked_transcripts(self):
        unmarked = [case for case in BUILTIN_CASES if "marked" not in case.id]
        assert len(BUILTIN_CASES) == 15
        assert len(unmarked) >= 9

    def test_evaluate_case_scores(self):
        case = EvaluationCase(
            id="tiny",
            name="Tiny",
            raw_text="You said:\nHi\nChatGPT said:\nHello! How can I help?\n",
            expected_turns=[
                LabeledTurn(role=Role.USER, text="Hi"),
                LabeledTurn(role=Role.ASSISTANT, text="Hello!"),
            ],
            expected_turn_count=2,
        )

        result = evaluate_case(case)

        assert result.detected_count == 2
        assert result.overall_score == 1.0
        assert result.passed

    def test_empty_suite(self):
        report = evaluate([])

        assert report.results == []
        assert report.average_overall_score == 0.0

    def test_load_cases(self, tmp_path):
        path = tmp_path / "cases.json"
        path.write_text(
            json.dumps([
                {
                    "id": "one",
                    "name": "One",
                    "raw_text": "What is Rust?",
                    "expected_turns": [{"role": "user", "text": "What is Rust?"}],
                    "expected_turn_count": 1,
                }
            ]),
            encoding="utf-8",
        )

        cases = load_cases(path)

        assert cases[0].expected_turns[0].role == Role.USER
        assert evaluate(cases).passed == 1
