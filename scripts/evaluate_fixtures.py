#!/usr/bin/env python
"""Run the labelled fixture suite and write a JSON evaluation report."""

import argparse
import json
import sys
from pathlib import Path

from chatsplit.evaluation import evaluate, load_cases
from chatsplit.fixtures import BUILTIN_CASES


def main():
    parser = argparse.ArgumentParser(
        description="Score segmentation and role attribution on labelled transcripts"
    )
    parser.add_argument(
        "--cases",
        type=Path,
        default=None,
        help="JSON file of labelled cases (default: built-in fixtures)",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Write the JSON report here instead of stdout",
    )
    parser.add_argument(
        "--fail-under",
        type=float,
        default=0.0,
        help="Exit 1 if the average overall score is below this value",
    )

    args = parser.parse_args()

    if args.cases is not None and not args.cases.exists():
        print(f"Error: File not found: {args.cases}")
        sys.exit(1)

    cases = load_cases(args.cases) if args.cases else BUILTIN_CASES
    report = evaluate(cases)

    payload = json.dumps(report.model_dump(mode="json"), indent=2, ensure_ascii=False)
    if args.output:
        args.output.write_text(payload, encoding="utf-8")
        print(f"Report saved to: {args.output}")
    else:
        print(payload)

    print(
        f"Average overall: {report.average_overall_score:.2%} "
        f"({report.passed}/{len(report.results)} passed)",
        file=sys.stderr,
    )

    if report.average_overall_score < args.fail_under:
        sys.exit(1)


if __name__ == "__main__":
    main()
