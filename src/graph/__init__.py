"""
Graph: curriculum dependency graph and mastery path resolution.

Core modules:
- models: curriculum/learner records and graph projections
- content_graph: build_content_graph, ContentGraph
- resolver: PrerequisiteResolver
"""

from .content_graph import ContentGraph, UnknownContentError, build_content_graph
from .models import (
    AssessmentRecord,
    ContentNode,
    ContentType,
    CurriculumProgress,
    CurriculumSnapshot,
    DanglingDependency,
    ExerciseRecord,
    LearnerProgress,
    LearnerSnapshot,
    LearningPathSegment,
    Lesson,
    ObjectiveProgress,
    ObjectiveRecord,
    ProgressStatus,
    Recommendations,
    Unit,
    UnitProgress,
)
from .resolver import PrerequisiteResolver

__all__ = [
    "build_content_graph",
    "ContentGraph",
    "UnknownContentError",
    "PrerequisiteResolver",
    # Records
    "Unit",
    "Lesson",
    "ObjectiveRecord",
    "ExerciseRecord",
    "AssessmentRecord",
    "CurriculumSnapshot",
    "LearnerProgress",
    "ObjectiveProgress",
    "UnitProgress",
    "LearnerSnapshot",
    # Projections
    "ContentNode",
    "ContentType",
    "DanglingDependency",
    "LearningPathSegment",
    "ProgressStatus",
    "Recommendations",
    "CurriculumProgress",
]
