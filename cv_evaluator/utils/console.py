"""Rich console output for the command-line entry point."""

from __future__ import annotations

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from cv_evaluator.schemas.evaluation import EvaluationResult

console = Console()


def print_header(cv_path: str, report_path: str, model: str) -> None:
    """Print the startup banner."""
    console.print()
    console.print(
        Panel(
            f"[bold]CV & Project Report Evaluator[/bold]\n\n"
            f"  CV: [cyan]{cv_path}[/cyan]\n"
            f"  Project report: [cyan]{report_path}[/cyan]\n"
            f"  Model: [cyan]{model}[/cyan]",
            border_style="bright_blue",
            padding=(1, 2),
        )
    )
    console.print()


def _score_style(value: float, midpoint: float) -> str:
    return "green" if value >= midpoint else "yellow"


def print_evaluation_result(result: EvaluationResult) -> None:
    """Print scores as a table and feedback as markdown."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Metric")
    table.add_column("Score", justify="right")
    table.add_row(
        "CV match rate",
        f"[{_score_style(result.cv_match_rate, 0.5)}]{result.cv_match_rate:.2f}[/]",
    )
    table.add_row(
        "Project score",
        f"[{_score_style(result.project_score, 5.0)}]{result.project_score:.1f} / 10[/]",
    )

    feedback = (
        f"## CV Feedback\n\n{result.cv_feedback or '_none_'}\n\n"
        f"## Project Feedback\n\n{result.project_feedback or '_none_'}\n\n"
        f"## Overall Summary\n\n{result.overall_summary or '_none_'}"
    )

    console.print()
    console.print(table)
    console.print(
        Panel(
            Markdown(feedback),
            title="[bold green]Evaluation[/bold green]",
            border_style="green",
            padding=(1, 2),
        )
    )
    console.print()


def print_info(message: str) -> None:
    """Print an informational message."""
    console.print(f"  [dim]{message}[/dim]")


def print_error(message: str) -> None:
    console.print(f"[bold red]{message}[/bold red]")


def print_langsmith_status(enabled: bool) -> None:
    """Print LangSmith tracing status."""
    if enabled:
        console.print("  [green]LangSmith tracing: enabled[/green]")
    else:
        console.print("  [dim]LangSmith tracing: disabled[/dim]")
