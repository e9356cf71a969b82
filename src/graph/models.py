"""
Curriculum and learner models for the prerequisite resolver.

Records (pydantic) are the persisted snapshot the resolver reads:
- Unit, Lesson, ObjectiveRecord, ExerciseRecord, AssessmentRecord
- LearnerProgress, ObjectiveProgress, UnitProgress

Projections (frozen dataclasses) are rebuilt on every resolution:
- ContentNode, DanglingDependency
- LearningPathSegment, Recommendations, CurriculumProgress
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, Field

from src.content.models import AssessmentType, Difficulty, ExerciseType


class ContentType(str, Enum):
    """Kinds of node in the content graph."""

    UNIT = "unit"
    LESSON = "lesson"
    OBJECTIVE = "objective"
    EXERCISE = "exercise"
    ASSESSMENT = "assessment"


class ProgressStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    MASTERED = "mastered"


# Lower sorts first in next-step lists
TYPE_PRIORITY = {
    ContentType.LESSON: 1,
    ContentType.EXERCISE: 2,
    ContentType.ASSESSMENT: 3,
    ContentType.OBJECTIVE: 4,
    ContentType.UNIT: 5,
}


# =============================================================================
# CURRICULUM RECORDS
# =============================================================================


class Unit(BaseModel):
    id: str
    title: str
    description: str = ""
    order_index: int = 0
    # None means "use the configured unit threshold"
    mastery_threshold: float | None = Field(default=None, ge=0.0, le=1.0)
    prerequisite_units: list[str] = Field(default_factory=list)


class Lesson(BaseModel):
    id: str
    unit_id: str
    title: str
    description: str = ""
    order_index: int = 0
    mastery_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    estimated_minutes: int | None = None
    difficulty: Difficulty = Difficulty.BEGINNER
    prerequisite_lessons: list[str] = Field(default_factory=list)


class ObjectiveRecord(BaseModel):
    id: str
    title: str
    unit_id: str | None = None
    lesson_id: str | None = None
    category: str = "application"
    mastery_threshold: float = Field(default=0.8, ge=0.0, le=1.0)


class ExerciseRecord(BaseModel):
    id: str
    lesson_id: str
    title: str
    type: ExerciseType = ExerciseType.PRACTICE
    order_index: int = 0


class AssessmentRecord(BaseModel):
    id: str
    title: str
    lesson_id: str | None = None
    type: AssessmentType = AssessmentType.FORMATIVE


class CurriculumSnapshot(BaseModel):
    """Everything the content graph is built from."""

    units: list[Unit] = Field(default_factory=list)
    lessons: list[Lesson] = Field(default_factory=list)
    objectives: list[ObjectiveRecord] = Field(default_factory=list)
    exercises: list[ExerciseRecord] = Field(default_factory=list)
    assessments: list[AssessmentRecord] = Field(default_factory=list)


# =============================================================================
# LEARNER RECORDS
# =============================================================================


class LearnerProgress(BaseModel):
    """Progress of one learner on one lesson."""

    lesson_id: str
    status: ProgressStatus = ProgressStatus.NOT_STARTED
    current_score: float = 0.0
    best_score: float = 0.0
    mastery_achieved: bool = False
    completion_percentage: float = Field(default=0.0, ge=0.0, le=100.0)
    needs_remediation: bool = False
    eligible_for_enrichment: bool = False


class ObjectiveProgress(BaseModel):
    objective_id: str
    mastery_achieved: bool = False
    current_score: float = 0.0
    best_score: float = 0.0


class UnitProgress(BaseModel):
    unit_id: str
    mastery_achieved: bool = False


class LearnerSnapshot(BaseModel):
    lessons: list[LearnerProgress] = Field(default_factory=list)
    objectives: list[ObjectiveProgress] = Field(default_factory=list)
    units: list[UnitProgress] = Field(default_factory=list)


# =============================================================================
# GRAPH PROJECTIONS
# =============================================================================


@dataclass(frozen=True)
class ContentNode:
    """A curriculum entity and its edges."""

    id: str
    type: ContentType
    title: str
    dependencies: tuple[str, ...] = ()
    dependents: tuple[str, ...] = ()
    container_id: str | None = None


@dataclass(frozen=True)
class DanglingDependency:
    """A dependency on an id that is not in the snapshot."""

    node_id: str
    missing_id: str


@dataclass(frozen=True)
class LearningPathSegment:
    content_id: str
    content_type: ContentType
    title: str
    is_required: bool
    is_unlocked: bool
    progress: ProgressStatus = ProgressStatus.NOT_STARTED
    estimated_minutes: int | None = None


@dataclass(frozen=True)
class Recommendations:
    remediation: list[LearningPathSegment] = field(default_factory=list)
    enrichment: list[LearningPathSegment] = field(default_factory=list)
    next_steps: list[LearningPathSegment] = field(default_factory=list)


@dataclass(frozen=True)
class UnitProgressSummary:
    unit_id: str
    title: str
    progress: float
    status: ProgressStatus


@dataclass(frozen=True)
class CurriculumProgress:
    """Progress reduction over the whole curriculum. Percentages are 0-100."""

    overall_progress: float
    completed_lessons: int
    total_lessons: int
    mastered_objectives: int
    total_objectives: int
    unit_progress: list[UnitProgressSummary] = field(default_factory=list)
