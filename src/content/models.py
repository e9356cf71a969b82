"""
Lesson content models.

Pydantic models for the structured side of the lesson compiler:
- LessonMetadata, LearningObjective: lesson header data
- Question + per-type question payloads (tagged by ``type``)
- Exercise, Assessment: question containers
- ParsedLessonData: the full structured lesson
- ImportResult / BulkImportResult: outcome of compiling markdown
- ExportOptions: renderer switches
"""
from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, model_validator


# =============================================================================
# ENUMS
# =============================================================================


class Difficulty(str, Enum):
    """Lesson difficulty."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class SectionType(str, Enum):
    """Semantic role of a markdown section."""

    OVERVIEW = "overview"
    ASSESSMENT = "assessment"
    CONTENT = "content"
    EXERCISE = "exercise"
    ENRICHMENT = "enrichment"
    NOTES = "notes"
    NONE = "none"


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    FILL_IN_BLANK = "fill_in_blank"
    DRAG_AND_DROP = "drag_and_drop"
    SENTENCE_BUILDER = "sentence_builder"
    ESSAY = "essay"


class ExerciseType(str, Enum):
    PRACTICE = "practice"
    REINFORCEMENT = "reinforcement"
    CHALLENGE = "challenge"
    ENRICHMENT = "enrichment"


class ExerciseDifficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class AssessmentType(str, Enum):
    DIAGNOSTIC = "diagnostic"
    FORMATIVE = "formative"
    SUMMATIVE = "summative"
    RETENTION_CHECK = "retention_check"


# =============================================================================
# LESSON HEADER
# =============================================================================


class LessonMetadata(BaseModel):
    """Lesson-level metadata (frontmatter or overview derived)."""

    title: str = "Untitled Lesson"
    description: str = ""
    difficulty: Difficulty = Difficulty.BEGINNER
    estimated_minutes: int = 30
    tags: list[str] = Field(default_factory=list)
    prerequisites: list[str] = Field(default_factory=list)
    # Range is checked by the importer and validator, not here
    mastery_threshold: float = 0.8
    unit_id: str | None = None


class LearningObjective(BaseModel):
    """A learning objective parsed from the overview."""

    title: str
    description: str = ""
    category: str = "application"
    mastery_threshold: float = Field(default=0.8, ge=0.0, le=1.0)


# =============================================================================
# QUESTIONS
# =============================================================================


class MultipleChoiceData(BaseModel):
    type: Literal["multiple_choice"] = "multiple_choice"
    options: list[str] = Field(default_factory=list)
    correct_index: int | None = None
    correct_answer: str = ""

    @model_validator(mode="after")
    def _check_index(self) -> "MultipleChoiceData":
        if self.correct_index is not None and not 0 <= self.correct_index < len(self.options):
            raise ValueError(
                f"correct_index {self.correct_index} out of range for {len(self.options)} options"
            )
        return self


class Blank(BaseModel):
    position: int
    acceptable_answers: list[str] = Field(default_factory=list)


class FillInBlankData(BaseModel):
    type: Literal["fill_in_blank"] = "fill_in_blank"
    template: str = ""
    blanks: list[Blank] = Field(default_factory=list)
    correct_answer: list[str] = Field(default_factory=list)


class DragAndDropData(BaseModel):
    type: Literal["drag_and_drop"] = "drag_and_drop"
    items: list[str] = Field(default_factory=list)
    targets: list[str] = Field(default_factory=list)
    correct_answer: dict[str, str] = Field(default_factory=dict)


class SentenceBuilderData(BaseModel):
    type: Literal["sentence_builder"] = "sentence_builder"
    words: list[str] = Field(default_factory=list)
    correct_answer: str = ""


class EssayData(BaseModel):
    type: Literal["essay"] = "essay"
    prompt: str = ""
    min_words: int | None = None
    max_words: int | None = None
    correct_answer: str = ""


QuestionData = Annotated[
    Union[
        MultipleChoiceData,
        FillInBlankData,
        DragAndDropData,
        SentenceBuilderData,
        EssayData,
    ],
    Field(discriminator="type"),
]


class Question(BaseModel):
    """A single question inside an exercise or assessment."""

    question_text: str
    question_data: QuestionData
    hints: list[str] = Field(default_factory=list)
    correct_feedback: str | None = None
    incorrect_feedback: str | None = None
    points: int = 1
    order_index: int = 0

    @property
    def type(self) -> QuestionType:
        return QuestionType(self.question_data.type)

    @property
    def correct_answer(self) -> str | list[str] | dict[str, str]:
        return self.question_data.correct_answer


class Exercise(BaseModel):
    title: str
    description: str | None = None
    type: ExerciseType = ExerciseType.PRACTICE
    difficulty: ExerciseDifficulty = ExerciseDifficulty.MEDIUM
    max_attempts: int = 3
    time_limit: int | None = None
    questions: list[Question] = Field(default_factory=list)


class Assessment(BaseModel):
    title: str
    description: str | None = None
    type: AssessmentType = AssessmentType.FORMATIVE
    max_attempts: int = 2
    mastery_threshold: float = 0.8
    time_limit: int | None = None
    questions: list[Question] = Field(default_factory=list)


class ParsedLessonData(BaseModel):
    """A lesson compiled from markdown."""

    metadata: LessonMetadata = Field(default_factory=LessonMetadata)
    objectives: list[LearningObjective] = Field(default_factory=list)
    content: str = ""
    exercises: list[Exercise] = Field(default_factory=list)
    assessments: list[Assessment] = Field(default_factory=list)


# =============================================================================
# IMPORT RESULTS
# =============================================================================


class ImportErrorDetail(BaseModel):
    type: Literal["parsing", "validation", "structure"]
    message: str
    location: str | None = None
    code: str | None = None


class ImportWarningDetail(BaseModel):
    type: Literal["format", "content", "structure"]
    message: str
    location: str | None = None


class ImportResult(BaseModel):
    """
    Outcome of compiling one lesson.

    ``success`` is True exactly when there are no errors, and ``data`` is set
    exactly when ``success`` is True.
    """

    success: bool
    data: ParsedLessonData | None = None
    errors: list[ImportErrorDetail] = Field(default_factory=list)
    warnings: list[ImportWarningDetail] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_consistency(self) -> "ImportResult":
        if self.success != (len(self.errors) == 0):
            raise ValueError("success must be True exactly when there are no errors")
        if self.success != (self.data is not None):
            raise ValueError("data must be present exactly when success is True")
        return self

    @classmethod
    def build(
        cls,
        data: ParsedLessonData | None,
        errors: list[ImportErrorDetail],
        warnings: list[ImportWarningDetail],
    ) -> "ImportResult":
        """Assemble a result, dropping ``data`` when any error was recorded."""
        success = not errors
        return cls(
            success=success,
            data=data if success else None,
            errors=list(errors),
            warnings=list(warnings),
        )


class BulkImportResult(BaseModel):
    """Outcome of compiling a batch of lesson documents."""

    total_files: int = 0
    successful: int = 0
    failed: int = 0
    results: list[tuple[str, ImportResult]] = Field(default_factory=list)

    def persistence_order(self) -> list[tuple[str | None, list[tuple[str, ParsedLessonData]]]]:
        """
        Group successful lessons by unit for a persistence sink.

        Units appear in first-seen order and lessons keep input order, so a sink
        can create each unit before the lessons that reference it. Lessons with
        no unit are grouped under ``None``.
        """
        groups: dict[str | None, list[tuple[str, ParsedLessonData]]] = {}
        for filename, result in self.results:
            if not result.success or result.data is None:
                continue
            unit_id = result.data.metadata.unit_id
            groups.setdefault(unit_id, []).append((filename, result.data))
        return list(groups.items())


class ExportOptions(BaseModel):
    include_metadata: bool = True
    include_exercises: bool = True
    include_assessments: bool = True
    format: Literal["markdown", "json"] = "markdown"
