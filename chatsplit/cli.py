"""Command-line interface for chatsplit."""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import structlog
import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from chatsplit.models import AnalysisResult
from chatsplit.pipeline import analyze as run_analysis

# Configure structlog for CLI
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

app = typer.Typer(
    name="chatsplit",
    help="chatsplit - Split copy-pasted AI chat transcripts into attributed turns",
    add_completion=False,
)
console = Console()

PREVIEW_CHARS = 60


def _configure_logging(verbose: bool) -> None:
    from chatsplit.config.settings import get_settings

    if verbose:
        level = logging.DEBUG
    else:
        level = getattr(logging, get_settings().log_level.upper(), logging.WARNING)
        level = max(level, logging.WARNING)
    logging.basicConfig(level=level)


def _read_input(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    path = Path(source)
    if not path.is_file():
        raise FileNotFoundError(f"Input file not found: {source}")
    return path.read_text(encoding="utf-8")


@app.command()
def analyze(
    source: str = typer.Argument(
        ...,
        help="Transcript text file, or '-' to read from stdin",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the JSON result here and show a turn table (default: JSON to stdout)",
    ),
    pretty: bool = typer.Option(
        True,
        "--pretty/--compact",
        help="Pretty-print JSON output",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """Split a transcript into turns and emit the JSON result."""
    _configure_logging(verbose)

    try:
        text = _read_input(source)
        result = run_analysis(text)
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        if verbose:
            console.print_exception()
        sys.exit(1)

    payload = result.model_dump(mode="json")
    indent = 2 if pretty else None

    if output is None:
        typer.echo(json.dumps(payload, indent=indent, ensure_ascii=False))
        return

    with open(output, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=indent, ensure_ascii=False)

    _display_summary(result)
    console.print(f"\n[green]Result saved to:[/green] {output}")


@app.command()
def validate(
    report_path: Path = typer.Argument(
        ...,
        help="Path to the JSON result to validate",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Validate a JSON result against the AnalysisResult schema."""
    import jsonschema

    try:
        with open(report_path, "r", encoding="utf-8") as f:
            report = json.load(f)

        jsonschema.validate(report, AnalysisResult.model_json_schema())

        console.print("[green]Validation successful![/green] Result conforms to schema.")

    except jsonschema.ValidationError as e:
        console.print(f"[red]Validation failed:[/red] {e.message}")
        console.print(f"[dim]Path:[/dim] {' -> '.join(str(p) for p in e.absolute_path)}")
        sys.exit(1)

    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


@app.command()
def markers() -> None:
    """List the role-marker phrases in effect."""
    from chatsplit.config.markers import BUILTIN_MARKERS, load_marker_pairs
    from chatsplit.config.settings import get_settings

    pairs = list(BUILTIN_MARKERS)
    settings = get_settings()
    if settings.extra_markers_path is not None:
        try:
            pairs.extend(load_marker_pairs(settings.extra_markers_path))
        except Exception as e:
            console.print(f"[red]Error:[/red] {e}")
            sys.exit(1)

    table = Table(title="Role Markers")
    table.add_column("Provider")
    table.add_column("Locale", style="dim")
    table.add_column("User")
    table.add_column("Assistant")

    for pair in pairs:
        table.add_row(pair.provider, pair.locale, ", ".join(pair.user), ", ".join(pair.assistant))

    console.print(table)


@app.command()
def evaluate(
    cases_path: Optional[Path] = typer.Option(
        None,
        "--cases",
        help="JSON file of labelled cases (default: built-in fixtures)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    fail_under: float = typer.Option(
        0.0,
        "--fail-under",
        help="Exit 1 if the average overall score is below this value",
    ),
) -> None:
    """Score segmentation and role attribution on labelled transcripts."""
    from chatsplit.evaluation import PASS_THRESHOLD, evaluate as run_evaluation, load_cases
    from chatsplit.fixtures import BUILTIN_CASES

    _configure_logging(verbose=False)

    try:
        cases = load_cases(cases_path) if cases_path else BUILTIN_CASES
        report = run_evaluation(cases)
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    table = Table(title="Evaluation")
    table.add_column("Case")
    table.add_column("Turns", justify="right")
    table.add_column("Roles", justify="right")
    table.add_column("Boundary", justify="right")
    table.add_column("Overall", justify="right")
    table.add_column("Status")

    for result in report.results:
        status = "[green]PASS[/green]" if result.passed else "[red]FAIL[/red]"
        table.add_row(
            result.name,
            f"{result.detected_count}/{result.expected_count}",
            f"{result.role_accuracy:.0%}",
            f"{result.boundary_score:.0%}",
            f"{result.overall_score:.0%}",
            status,
        )

    console.print(table)
    console.print(
        f"\n[bold]Average:[/bold] {report.average_overall_score:.0%} "
        f"({report.passed}/{len(report.results)} passed at {PASS_THRESHOLD:.0%})"
    )

    for result in report.results:
        for detail in result.details:
            console.print(f"[dim]{result.id}:[/dim] {escape(detail)}")

    if report.average_overall_score < fail_under:
        console.print(f"[red]Average score below {fail_under:.0%}[/red]")
        sys.exit(1)


@app.command()
def info() -> None:
    """Display version and configuration."""
    from chatsplit import __version__
    from chatsplit.config.settings import get_settings

    settings = get_settings()

    console.print(
        Panel.fit(
            "[bold blue]chatsplit[/bold blue]",
            border_style="blue",
        )
    )

    table = Table(show_header=False, box=None)
    table.add_column("Setting", style="dim")
    table.add_column("Value")

    table.add_row("Version", __version__)
    table.add_row("Short Block", f"{settings.short_block_chars} chars")
    table.add_row("Long Block", f"{settings.long_block_chars} chars")
    table.add_row("Very Long Block", f"{settings.very_long_block_chars} chars")
    table.add_row("Weak Margin", str(settings.weak_margin))
    table.add_row("Corroboration Margin", str(settings.corroboration_margin))
    table.add_row("Group Threshold", str(settings.group_similarity_threshold))
    table.add_row("Extra Markers", str(settings.extra_markers_path or "-"))
    table.add_row("Lexicon", str(settings.lexicon_path or "built-in"))
    table.add_row("Strict Invariants", str(settings.strict_invariants))

    console.print(table)


def _display_summary(result: AnalysisResult) -> None:
    """Display the turns of an analysis result.

    Args:
        result: The analysis result to summarize.
    """
    console.print("\n[bold]Analysis Summary[/bold]")
    console.print("-" * 40)
    console.print(f"[dim]Mode:[/dim] {result.mode.value}")
    console.print(f"[dim]Markers:[/dim] {result.marker_count}  [dim]Fences:[/dim] {result.fence_count}")
    if result.provider:
        console.print(
            f"[dim]Provider:[/dim] {result.provider} ({result.provider_confidence:.0%})"
        )

    table = Table()
    table.add_column("#", justify="right", style="dim")
    table.add_column("Role")
    table.add_column("Conf", justify="right")
    table.add_column("Group", justify="right")
    table.add_column("Intent")
    table.add_column("Topic")
    table.add_column("Text")

    for i, turn in enumerate(result.turns):
        role_style = "cyan" if turn.role.value == "user" else "magenta"
        preview = turn.text.replace("\n", " ")
        if len(preview) > PREVIEW_CHARS:
            preview = preview[:PREVIEW_CHARS - 3] + "..."
        table.add_row(
            str(i),
            f"[{role_style}]{turn.role.value}[/{role_style}]",
            f"{turn.confidence:.2f}",
            str(turn.group_id),
            ", ".join(tag.value for tag in turn.intent),
            ", ".join(turn.topic[:3]),
            escape(preview),
        )

    console.print(table)


if __name__ == "__main__":
    app()
