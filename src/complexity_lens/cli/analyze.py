"""Analyze and languages commands."""

import json
from pathlib import Path
from typing import Optional

import click
import typer
from rich.table import Table

from ..discovery import discover_files, load_sources
from ..engine import ComplexityEngine
from ..exceptions import ComplexityLensError, UnsupportedLanguageError
from ..logging_config import setup_logging
from ..math.statistics import ComplexitySummary, summarize
from ..scanning.languages import LANGUAGES, supported_languages
from ..scanning.models import ScanResult
from . import app
from ._common import console, resolve_config, score_style


@app.command()
def analyze(
    path: Path = typer.Argument(
        ...,
        help="File or directory to analyze",
        exists=True,
        readable=True,
    ),
    language: Optional[str] = typer.Option(
        None,
        "-l",
        "--language",
        help="Only analyze files of this language (default: detect by extension)",
    ),
    output_format: str = typer.Option(
        "rich",
        "-f",
        "--format",
        help="Output format: rich | json",
        click_type=click.Choice(["rich", "json"], case_sensitive=False),
    ),
    threshold: Optional[int] = typer.Option(
        None,
        "-t",
        "--threshold",
        help="Score at which a function is reported as a hotspot (default: 10)",
        min=1,
    ),
    workers: Optional[int] = typer.Option(
        None,
        "-w",
        "--workers",
        help="Parallel workers (default: auto-detect)",
        min=1,
        max=32,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    fail_over: Optional[int] = typer.Option(
        None,
        "--fail-over",
        help="Exit 1 if any function scores above N",
        min=0,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="List every function and its decision points",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only log errors",
    ),
):
    """
    Score every function under PATH by cyclomatic complexity.

    [bold cyan]Examples:[/bold cyan]

      complexity-lens analyze src/

      complexity-lens analyze Main.java --verbose

      complexity-lens analyze . --format json --fail-over 15
    """
    logger = setup_logging(verbose=verbose, quiet=quiet)

    try:
        if language is not None and language not in LANGUAGES:
            raise UnsupportedLanguageError(language, supported_languages())

        settings = resolve_config(config=config, threshold=threshold, workers=workers)
        files = discover_files(path, settings, language=language)
        if not files:
            console.print("[yellow]No source files found.[/yellow]")
            raise typer.Exit(0)

        sources, unreadable = load_sources(files)
        engine = ComplexityEngine(settings)
        results = sorted(engine.analyze_all(sources) + unreadable, key=lambda r: r.file_id)
        summary = summarize(results, settings.hotspot_threshold)

        if output_format == "json":
            _output_json(results, summary)
        else:
            _output_rich(results, summary, settings.hotspot_threshold, verbose=verbose)

        if fail_over is not None:
            offenders = [f for r in results for f in r.iter_functions() if f.score > fail_over]
            if offenders:
                if output_format != "json":
                    console.print(
                        f"[red]--fail-over {fail_over}:[/red] "
                        f"{len(offenders)} function(s) above the limit"
                    )
                raise typer.Exit(1)

    except typer.Exit:
        raise

    except ComplexityLensError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    except KeyboardInterrupt:
        logger.info("Analysis interrupted by user")
        console.print("\n[yellow]Analysis interrupted[/yellow]")
        raise typer.Exit(130)


@app.command()
def languages():
    """List supported languages and their file extensions."""
    table = Table(show_header=True, show_lines=False, pad_edge=True)
    table.add_column("Language", style="cyan")
    table.add_column("Extensions")
    table.add_column("Decision rules", justify="right")

    for name in supported_languages():
        rules = LANGUAGES[name]
        table.add_row(name, " ".join(rules.extensions), str(len(rules.decision_rules)))

    console.print(table)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def _output_json(results: list[ScanResult], summary: ComplexitySummary):
    """Machine-readable JSON output."""
    output = {
        "summary": {
            "files": len(results),
            "functions": summary.function_count,
            "total_complexity": summary.total,
            "mean": round(summary.mean, 2),
            "median": round(summary.median, 2),
            "p90": round(summary.p90, 2),
            "max": summary.max,
        },
        "hotspots": [
            {
                "file": h.file_id,
                "function": h.name,
                "line": h.start_line,
                "score": h.score,
            }
            for h in summary.hotspots
        ],
        "files": [r.to_dict() for r in results],
    }
    print(json.dumps(output, indent=2))


def _output_rich(
    results: list[ScanResult],
    summary: ComplexitySummary,
    threshold: int,
    verbose: bool = False,
):
    """Human-readable output: hotspot table (or every function) plus summary."""
    console.print()
    title = "FUNCTIONS" if verbose else f"HOTSPOTS (score >= {threshold})"
    console.print(f"[bold cyan]{title}[/bold cyan]")
    console.print()

    table = Table(show_header=True, show_lines=False, pad_edge=True)
    table.add_column("File", min_width=24)
    table.add_column("Function")
    table.add_column("Line", justify="right")
    table.add_column("Score", justify="right")
    if verbose:
        table.add_column("Decision points")

    rows = 0
    for result in results:
        for function in result.iter_functions():
            if not verbose and function.score < threshold:
                continue
            style = score_style(function.score, threshold)
            row = [
                result.file_id,
                function.name,
                str(function.start_line),
                f"[{style}]{function.score}[/{style}]",
            ]
            if verbose:
                row.append(", ".join(f"{p.rule}@{p.line}" for p in function.decision_points))
            table.add_row(*row)
            rows += 1

    if rows:
        console.print(table)
    else:
        console.print("[green]No functions at or above the threshold.[/green]")

    failed = [r for r in results if r.error is not None]
    for result in failed:
        console.print(f"[yellow]Skipped {result.file_id}:[/yellow] {result.error}")

    console.print()
    console.print(
        f"[bold]{len(results)}[/bold] files, [bold]{summary.function_count}[/bold] functions, "
        f"total complexity [bold]{summary.total}[/bold]"
    )
    if summary.function_count:
        console.print(
            f"mean {summary.mean:.2f}  median {summary.median:.1f}  "
            f"p90 {summary.p90:.1f}  max {summary.max}"
        )
