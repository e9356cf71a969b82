"""
Lesson export: ParsedLessonData -> markdown or JSON.

The markdown layout is the one the importer reads back:

    ---
    title: "..."
    ---

    # Title
    ## Lesson Overview
    ## Learning Content
    ## Interactive Exercises
    ### Exercise 1: ...
    ## Assessments
    ### ...
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from loguru import logger
from pydantic import ValidationError

from .exceptions import ContentExportError
from .models import (
    Assessment,
    DragAndDropData,
    EssayData,
    Exercise,
    ExerciseDifficulty,
    ExportOptions,
    FillInBlankData,
    MultipleChoiceData,
    ParsedLessonData,
    Question,
    SentenceBuilderData,
)
from .questions import ALTERNATIVE_SEPARATOR, ANSWER_SEPARATOR

INDENT = "   "
SEPARATOR = "---"


class ContentExporter:
    """Render compiled lessons."""

    def __init__(self, options: ExportOptions | None = None):
        self.options = options or ExportOptions()

    def export(self, data: ParsedLessonData) -> str:
        if self.options.format == "json":
            return data.model_dump_json(indent=2)

        parts: list[str] = []
        if self.options.include_metadata:
            parts.append(self._frontmatter(data))
        parts.append(f"# {data.metadata.title}")
        parts.append(self._overview(data))

        if data.content:
            parts.append(f"## Learning Content\n\n{data.content.strip()}")

        if self.options.include_exercises and data.exercises:
            parts.append(self._exercises(data.exercises))

        if self.options.include_assessments and data.assessments:
            parts.append(self._assessments(data.assessments))

        logger.debug(f"Exported '{data.metadata.title}' as markdown")
        return "\n\n".join(parts).rstrip() + "\n"

    # ------------------------------------------------------------------
    # Header
    # ------------------------------------------------------------------

    @staticmethod
    def _frontmatter(data: ParsedLessonData) -> str:
        metadata = data.metadata
        fields: list[tuple[str, Any]] = [
            ("title", metadata.title),
            ("description", metadata.description),
            ("difficulty", metadata.difficulty.value),
            ("estimatedMinutes", metadata.estimated_minutes),
            ("masteryThreshold", metadata.mastery_threshold),
            ("tags", metadata.tags),
            ("prerequisites", metadata.prerequisites),
        ]
        if metadata.unit_id is not None:
            fields.append(("unitId", metadata.unit_id))

        lines = [SEPARATOR]
        for key, value in fields:
            lines.append(f"{key}: {_frontmatter_value(value)}")
        lines.append(SEPARATOR)
        return "\n".join(lines)

    @staticmethod
    def _overview(data: ParsedLessonData) -> str:
        metadata = data.metadata
        lines = ["## Lesson Overview", ""]

        if data.objectives:
            lines.append("**Learning Objectives:**")
            lines.append("")
            lines.extend(f"- {objective.title}" for objective in data.objectives)
            lines.append("")

        lines.append(f"**Estimated Time:** {metadata.estimated_minutes} minutes")
        lines.append("")
        lines.append(f"**Difficulty:** {metadata.difficulty.value}")
        lines.append("")
        lines.append(f"**Mastery Threshold:** {_percent(metadata.mastery_threshold)}%")

        if metadata.description:
            lines.append("")
            lines.append(f"**Description:** {metadata.description}")

        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Exercises and assessments
    # ------------------------------------------------------------------

    def _exercises(self, exercises: list[Exercise]) -> str:
        blocks = ["## Interactive Exercises"]
        for number, exercise in enumerate(exercises, start=1):
            lines = [f"### Exercise {number}: {exercise.title}", ""]
            if exercise.description:
                lines.extend([f'**Instructions:** "{exercise.description}"', ""])
            lines.extend([f"**Type:** {exercise.type.value}", ""])
            if exercise.difficulty is not ExerciseDifficulty.MEDIUM:
                lines.extend([f"**Difficulty:** {exercise.difficulty.value}", ""])
            if exercise.max_attempts != 3:
                lines.extend([f"**Max Attempts:** {exercise.max_attempts}", ""])
            if exercise.time_limit is not None:
                lines.extend([f"**Time Limit:** {exercise.time_limit} minutes", ""])
            lines.extend(self._questions(exercise.questions))
            lines.append(SEPARATOR)
            blocks.append("\n".join(lines))
        return "\n\n".join(blocks)

    def _assessments(self, assessments: list[Assessment]) -> str:
        blocks = ["## Assessments"]
        for assessment in assessments:
            lines = [f"### {assessment.title}", ""]
            if assessment.description:
                lines.extend([f'**Instructions:** "{assessment.description}"', ""])
            lines.extend([f"**Type:** {assessment.type.value}", ""])
            lines.extend([f"**Mastery Threshold:** {_percent(assessment.mastery_threshold)}%", ""])
            if assessment.max_attempts != 2:
                lines.extend([f"**Max Attempts:** {assessment.max_attempts}", ""])
            if assessment.time_limit is not None:
                lines.extend([f"**Time Limit:** {assessment.time_limit} minutes", ""])
            lines.extend(self._questions(assessment.questions))
            lines.append(SEPARATOR)
            blocks.append("\n".join(lines))
        return "\n\n".join(blocks)

    def _questions(self, questions: list[Question]) -> list[str]:
        lines: list[str] = []
        for number, question in enumerate(questions, start=1):
            lines.append(f"{number}. **{question.question_text}**")
            lines.append("")
            lines.extend(f"{INDENT}{line}" for line in self._question_body(question))
            lines.append("")
        return lines

    @staticmethod
    def _question_body(question: Question) -> list[str]:
        payload = question.question_data
        lines: list[str] = []

        if isinstance(payload, MultipleChoiceData):
            for index, option in enumerate(payload.options):
                mark = " ✓" if index == payload.correct_index else ""
                lines.append(f"- {chr(ord('a') + index)}) {option}{mark}")
            if payload.correct_index is None and payload.correct_answer:
                lines.append(f"Answer: {payload.correct_answer}")
        else:
            lines.append(f"**Question Type:** {payload.type}")
            if isinstance(payload, FillInBlankData):
                if payload.template and payload.template != question.question_text:
                    lines.append(payload.template)
                answers = [
                    f" {ALTERNATIVE_SEPARATOR} ".join(blank.acceptable_answers)
                    for blank in payload.blanks
                    if blank.acceptable_answers
                ]
                if answers:
                    lines.append(f"Answer: {f'{ANSWER_SEPARATOR} '.join(answers)}")
            elif isinstance(payload, DragAndDropData):
                lines.extend(f"- {item} -> {target}" for item, target in payload.correct_answer.items())
                if payload.targets:
                    lines.append(f"Targets: {', '.join(payload.targets)}")
            elif isinstance(payload, SentenceBuilderData):
                if payload.words:
                    lines.append(f"Words: {', '.join(payload.words)}")
                if payload.correct_answer:
                    lines.append(f"Answer: {payload.correct_answer}")
            elif isinstance(payload, EssayData):
                if payload.min_words is not None:
                    lines.append(f"Min words: {payload.min_words}")
                if payload.max_words is not None:
                    lines.append(f"Max words: {payload.max_words}")
                if payload.correct_answer:
                    lines.append(f"Answer: {payload.correct_answer}")

        if question.points != 1:
            lines.append(f"**Points:** {question.points}")
        lines.extend(f'Hint: "{hint}"' for hint in question.hints)
        if question.correct_feedback:
            lines.append(f'**Feedback if correct:** "{question.correct_feedback}"')
        if question.incorrect_feedback:
            lines.append(f'**Feedback if incorrect:** "{question.incorrect_feedback}"')
        return lines


def export_lesson(
    data: ParsedLessonData,
    options: ExportOptions | Mapping[str, Any] | None = None,
) -> str:
    """
    Render a lesson as markdown or JSON.

    Raises:
        ContentExportError: If ``options`` is not a valid set of export options
    """
    if options is not None and not isinstance(options, ExportOptions):
        try:
            options = ExportOptions.model_validate(dict(options))
        except ValidationError as e:
            raise ContentExportError(f"Invalid export options: {e}") from e
    return ContentExporter(options).export(data)


def _frontmatter_value(value: Any) -> str:
    if isinstance(value, list):
        return "[" + ", ".join(f'"{item}"' for item in value) + "]"
    if isinstance(value, str):
        return f'"{value}"'
    return str(value)


def _percent(threshold: float) -> int:
    return int(round(threshold * 100))
