"""CLI entry point: registers all subcommands."""

import typer

from .. import __version__
from ._common import console

app = typer.Typer(
    name="complexity-lens",
    help="complexity-lens - Per-function cyclomatic complexity for C-family languages",
    add_completion=False,
    rich_markup_mode="rich",
)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
    ),
):
    """Lexical cyclomatic complexity analysis."""
    if version:
        console.print(
            f"[bold cyan]complexity-lens[/bold cyan] version [green]{__version__}[/green]"
        )
        raise typer.Exit(0)
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit(0)


# Import subcommands to register them
from .analyze import analyze as _analyze, languages as _languages  # noqa: F401, E402
