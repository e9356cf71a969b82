"""
Curriculum CLI.

Commands that load a curriculum snapshot (and optionally a learner's
progress) from JSON and show what the resolver makes of them.
"""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from src.graph import (
    CurriculumSnapshot,
    LearnerSnapshot,
    LearningPathSegment,
    PrerequisiteResolver,
    build_content_graph,
)

curriculum_app = typer.Typer(
    help="Prerequisite gating, learning paths and progress",
    no_args_is_help=True,
)

console = Console()

STATUS_STYLES = {
    "not_started": "dim",
    "in_progress": "yellow",
    "completed": "cyan",
    "mastered": "green",
}


def _load_resolver(snapshot_file: Path, progress_file: Path | None) -> PrerequisiteResolver:
    """Build a resolver from JSON files, exiting with code 1 on bad input."""
    for path in (snapshot_file, progress_file):
        if path is not None and not path.is_file():
            console.print(f"[red]Error: File not found: {escape(str(path))}[/red]")
            raise typer.Exit(1)

    try:
        snapshot = CurriculumSnapshot.model_validate_json(snapshot_file.read_text(encoding="utf-8"))
        learner = (
            LearnerSnapshot.model_validate_json(progress_file.read_text(encoding="utf-8"))
            if progress_file
            else LearnerSnapshot()
        )
    except ValidationError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    graph = build_content_graph(snapshot)
    for dangling in graph.dangling:
        console.print(
            f"[yellow]Warning: '{escape(dangling.node_id)}' references unknown id "
            f"'{escape(dangling.missing_id)}'[/yellow]"
        )
    return PrerequisiteResolver(graph, learner)


def _segment_table(title: str, segments: list[LearningPathSegment]) -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Type", style="cyan")
    table.add_column("Title")
    table.add_column("Required", justify="center")
    table.add_column("Unlocked", justify="center")
    table.add_column("Progress")
    table.add_column("Minutes", justify="right")

    for number, segment in enumerate(segments, start=1):
        status = segment.progress.value
        table.add_row(
            str(number),
            segment.content_type.value,
            escape(segment.title),
            "yes" if segment.is_required else "no",
            "[green]yes[/green]" if segment.is_unlocked else "[red]no[/red]",
            f"[{STATUS_STYLES[status]}]{status}[/{STATUS_STYLES[status]}]",
            str(segment.estimated_minutes) if segment.estimated_minutes is not None else "-",
        )
    return table


@curriculum_app.command("path")
def path_command(
    snapshot_file: Path = typer.Argument(..., help="Curriculum snapshot JSON"),
    progress_file: Path = typer.Option(None, "--progress", help="Learner progress JSON"),
    unit_id: str = typer.Option(None, "--unit", "-u", help="Only this unit"),
):
    """Show the ordered learning path."""
    resolver = _load_resolver(snapshot_file, progress_file)
    path = resolver.generate_learning_path(unit_id)

    if not path:
        console.print("[yellow]Learning path is empty.[/yellow]")
        return

    console.print(_segment_table("Learning Path", path))


@curriculum_app.command("next")
def next_command(
    snapshot_file: Path = typer.Argument(..., help="Curriculum snapshot JSON"),
    progress_file: Path = typer.Option(None, "--progress", help="Learner progress JSON"),
):
    """Show content available now, and lessons still blocked."""
    resolver = _load_resolver(snapshot_file, progress_file)
    available = resolver.get_next_available_content()
    blocked = resolver.get_blocked_content()

    if available:
        console.print(_segment_table("Available Next", available))
    else:
        console.print("[yellow]Nothing is available right now.[/yellow]")

    if blocked:
        console.print(_segment_table("Blocked Lessons", blocked))


@curriculum_app.command("recommend")
def recommend_command(
    snapshot_file: Path = typer.Argument(..., help="Curriculum snapshot JSON"),
    progress_file: Path = typer.Option(None, "--progress", help="Learner progress JSON"),
):
    """Show remediation, enrichment and next-step recommendations."""
    resolver = _load_resolver(snapshot_file, progress_file)
    recommendations = resolver.get_recommended_content()

    for title, segments in (
        ("Remediation", recommendations.remediation),
        ("Enrichment", recommendations.enrichment),
        ("Next Steps", recommendations.next_steps),
    ):
        if segments:
            console.print(_segment_table(title, segments))
        else:
            console.print(f"[dim]{title}: none[/dim]")


@curriculum_app.command("summary")
def summary_command(
    snapshot_file: Path = typer.Argument(..., help="Curriculum snapshot JSON"),
    progress_file: Path = typer.Option(None, "--progress", help="Learner progress JSON"),
):
    """Show progress across the whole curriculum."""
    resolver = _load_resolver(snapshot_file, progress_file)
    progress = resolver.analyze_progress_across_curriculum()

    console.print("\n[bold cyan]Curriculum Progress[/bold cyan]")
    console.print(f"  Overall: {progress.overall_progress:.1f}%")
    console.print(f"  Lessons mastered: {progress.completed_lessons}/{progress.total_lessons}")
    console.print(f"  Objectives mastered: {progress.mastered_objectives}/{progress.total_objectives}")

    table = Table(title="Units")
    table.add_column("Unit", style="cyan")
    table.add_column("Title")
    table.add_column("Progress", justify="right")
    table.add_column("Status")

    for unit in progress.unit_progress:
        status = unit.status.value
        table.add_row(
            escape(unit.unit_id),
            escape(unit.title),
            f"{unit.progress:.1f}%",
            f"[{STATUS_STYLES[status]}]{status}[/{STATUS_STYLES[status]}]",
        )

    console.print(table)
