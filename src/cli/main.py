"""
Typer CLI for lessonpath.

Commands:
    lessonpath lesson import PATH        - Compile lesson markdown files
    lessonpath lesson validate FILE      - Compile and validate one lesson
    lessonpath lesson export LESSON_JSON - Render a compiled lesson
    lessonpath curriculum path SNAPSHOT  - Show the learning path
    lessonpath curriculum next SNAPSHOT  - Show what is available next
    lessonpath curriculum recommend SNAPSHOT - Remediation, enrichment, next steps
    lessonpath curriculum summary SNAPSHOT   - Progress across the curriculum

Usage:
    lessonpath --help
    lessonpath lesson import content/lessons --validate
    lessonpath curriculum path curriculum.json --progress learner.json
"""

from __future__ import annotations

import sys

import typer
from loguru import logger

from config import get_settings
from src.cli.curriculum import curriculum_app
from src.cli.lesson import lesson_app

app = typer.Typer(
    help="lessonpath CLI: lesson markdown compiler and mastery path resolver",
    no_args_is_help=True,
)

app.add_typer(lesson_app, name="lesson")
app.add_typer(curriculum_app, name="curriculum")


def configure_logging(level: str) -> None:
    """Send loguru output to stderr (and the configured log file, if any)."""
    settings = get_settings()
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format="<level>{message}</level>")
    if settings.log_file:
        logger.add(settings.log_file, level=level.upper(), rotation="10 MB")


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR). Defaults to LOG_LEVEL.",
    ),
):
    """
    lessonpath: compile lesson markdown and resolve mastery paths.
    """
    configure_logging(log_level or get_settings().log_level)


def run() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run()
