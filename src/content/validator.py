"""
Structural validation of compiled lessons.

Checks a ParsedLessonData without modifying it:
- MISSING_TITLE: blank title (error)
- INVALID_THRESHOLD: lesson mastery threshold outside [0, 1] (error)
- lessons without objectives, exercises/assessments without questions and
  multiple choice questions without a resolvable answer (warnings)
"""
from __future__ import annotations

from loguru import logger

from .models import (
    ImportErrorDetail,
    ImportResult,
    ImportWarningDetail,
    MultipleChoiceData,
    ParsedLessonData,
    Question,
)


class ContentValidator:
    """Validate compiled lesson data."""

    def validate(self, data: ParsedLessonData) -> ImportResult:
        errors: list[ImportErrorDetail] = []
        warnings: list[ImportWarningDetail] = []

        if not data.metadata.title.strip():
            errors.append(
                ImportErrorDetail(
                    type="validation",
                    message="Lesson title is required",
                    location="metadata.title",
                    code="MISSING_TITLE",
                )
            )

        threshold = data.metadata.mastery_threshold
        if not 0 <= threshold <= 1:
            errors.append(
                ImportErrorDetail(
                    type="validation",
                    message=f"Mastery threshold must be between 0 and 1, got {threshold}",
                    location="metadata.mastery_threshold",
                    code="INVALID_THRESHOLD",
                )
            )

        if not data.objectives:
            warnings.append(
                ImportWarningDetail(type="content", message="Lesson has no learning objectives")
            )

        for index, exercise in enumerate(data.exercises):
            location = f"exercises[{index}]"
            if not exercise.questions:
                warnings.append(
                    ImportWarningDetail(
                        type="structure",
                        message=f"Exercise '{exercise.title}' has no questions",
                        location=location,
                    )
                )
            warnings.extend(self._check_questions(exercise.questions, location))

        for index, assessment in enumerate(data.assessments):
            location = f"assessments[{index}]"
            if not assessment.questions:
                warnings.append(
                    ImportWarningDetail(
                        type="structure",
                        message=f"Assessment '{assessment.title}' has no questions",
                        location=location,
                    )
                )
            warnings.extend(self._check_questions(assessment.questions, location))

        if errors:
            logger.info(f"Validation of '{data.metadata.title}' failed with {len(errors)} errors")
        return ImportResult.build(data, errors, warnings)

    @staticmethod
    def _check_questions(questions: list[Question], location: str) -> list[ImportWarningDetail]:
        warnings = []
        for question in questions:
            payload = question.question_data
            if isinstance(payload, MultipleChoiceData) and payload.correct_index is None:
                warnings.append(
                    ImportWarningDetail(
                        type="content",
                        message=f"Question '{question.question_text}' has no correct option",
                        location=f"{location}.questions[{question.order_index}]",
                    )
                )
        return warnings


def validate_lesson_data(data: ParsedLessonData) -> ImportResult:
    """Validate a compiled lesson. The input is not modified."""
    return ContentValidator().validate(data)
