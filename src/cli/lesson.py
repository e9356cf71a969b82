"""
Lesson CLI.

Commands for compiling lesson markdown, validating it and exporting compiled
lessons back to markdown or JSON.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from config import get_settings
from src.content import (
    BulkImporter,
    ContentError,
    ExportOptions,
    ImportResult,
    LessonImporter,
    LessonLoader,
    ParsedLessonData,
    export_lesson,
)

lesson_app = typer.Typer(
    help="Lesson markdown import, validation and export",
    no_args_is_help=True,
)

console = Console()


def _print_issues(result: ImportResult, filename: str | None = None) -> None:
    prefix = f"{escape(filename)}: " if filename else ""
    for error in result.errors:
        code = f" [{error.code}]" if error.code else ""
        console.print(f"  [red]x[/red] {prefix}{error.type}{escape(code)}: {escape(error.message)}")
    for warning in result.warnings:
        console.print(f"  [yellow]![/yellow] {prefix}{warning.type}: {escape(warning.message)}")


@lesson_app.command("import")
def import_command(
    source: Path = typer.Argument(..., help="Lesson file or directory"),
    pattern: str = typer.Option(None, "--pattern", "-p", help="Glob for lesson files (default: CONTENT_FILE_PATTERN)"),
    validate: bool = typer.Option(False, "--validate", help="Run structural validation on each lesson"),
    output_json: Path = typer.Option(None, "--output-json", "-o", help="Save import results to JSON"),
):
    """
    Compile lesson markdown files into structured lessons.

    Examples:
        lessonpath lesson import content/lessons
        lessonpath lesson import content/lessons --validate -o lessons.json
    """
    settings = get_settings()
    loader = LessonLoader(pattern or settings.content_file_pattern)

    try:
        documents, read_errors = loader.load_all(source)
    except ContentError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    for error in read_errors:
        console.print(f"  [red]x[/red] {escape(str(error))}")

    if not documents:
        console.print("[yellow]No lesson files found.[/yellow]")
        raise typer.Exit(1 if read_errors else 0)

    results = BulkImporter(settings=settings, validate=validate).import_documents(documents)

    table = Table(title=f"Imported {results.successful}/{results.total_files} lessons")
    table.add_column("File", style="cyan")
    table.add_column("Status")
    table.add_column("Title")
    table.add_column("Exercises", justify="right")
    table.add_column("Assessments", justify="right")
    table.add_column("Warnings", justify="right", style="yellow")

    for filename, result in results.results:
        if result.data is not None:
            table.add_row(
                escape(Path(filename).name),
                "[green]ok[/green]",
                escape(result.data.metadata.title),
                str(len(result.data.exercises)),
                str(len(result.data.assessments)),
                str(len(result.warnings)),
            )
        else:
            table.add_row(escape(Path(filename).name), "[red]failed[/red]", "-", "-", "-", str(len(result.warnings)))

    console.print(table)

    for filename, result in results.results:
        if result.errors or result.warnings:
            _print_issues(result, Path(filename).name)

    if output_json:
        payload = results.model_dump(mode="json")
        payload["persistence_order"] = [
            {"unit_id": unit_id, "files": [filename for filename, _ in lessons]}
            for unit_id, lessons in results.persistence_order()
        ]
        output_json.parent.mkdir(parents=True, exist_ok=True)
        output_json.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        console.print(f"\n[green]Saved {results.total_files} results to {escape(str(output_json))}[/green]")

    if results.failed or read_errors:
        raise typer.Exit(1)


@lesson_app.command("validate")
def validate_command(
    lesson_file: Path = typer.Argument(..., help="Lesson markdown file"),
):
    """Compile one lesson and report validation errors and warnings."""
    try:
        markdown = LessonLoader().load_file(lesson_file)
    except ContentError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    result = LessonImporter(validate=True).import_markdown(markdown, str(lesson_file))
    _print_issues(result)

    if not result.success:
        console.print(f"[red]{escape(lesson_file.name)} is invalid ({len(result.errors)} errors)[/red]")
        raise typer.Exit(1)

    console.print(
        f"[green]{escape(lesson_file.name)} is valid[/green] ({len(result.warnings)} warnings)"
    )


@lesson_app.command("export")
def export_command(
    lesson_json: Path = typer.Argument(..., help="Compiled lesson JSON (ParsedLessonData)"),
    output_format: str = typer.Option("markdown", "--format", "-f", help="markdown or json"),
    no_metadata: bool = typer.Option(False, "--no-metadata", help="Omit frontmatter"),
    no_exercises: bool = typer.Option(False, "--no-exercises", help="Omit exercises"),
    no_assessments: bool = typer.Option(False, "--no-assessments", help="Omit assessments"),
    output: Path = typer.Option(None, "--output", "-o", help="Write to file instead of stdout"),
):
    """Render a compiled lesson as markdown or JSON."""
    if not lesson_json.is_file():
        console.print(f"[red]Error: Lesson file not found: {escape(str(lesson_json))}[/red]")
        raise typer.Exit(1)

    try:
        data = ParsedLessonData.model_validate_json(lesson_json.read_text(encoding="utf-8"))
        options = ExportOptions(
            include_metadata=not no_metadata,
            include_exercises=not no_exercises,
            include_assessments=not no_assessments,
            format=output_format,
        )
    except ValidationError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    rendered = export_lesson(data, options)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(rendered, encoding="utf-8")
        console.print(f"[green]Exported '{escape(data.metadata.title)}' to {escape(str(output))}[/green]")
    else:
        typer.echo(rendered)
