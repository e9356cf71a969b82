"""
Prerequisite and mastery path resolution.

Answers "what may this learner open next?" over a ContentGraph and one
learner's progress records:
- are_prerequisites_met / is_unit_complete / get_unit_status
- get_next_available_content / get_blocked_content
- generate_learning_path
- get_recommended_content
- analyze_progress_across_curriculum

Resolution is read-only. Unknown ids and dangling references resolve to
"locked" rather than raising.
"""
from __future__ import annotations

from loguru import logger

from config import Settings, get_settings

from src.content.models import AssessmentType, ExerciseType

from .content_graph import ContentGraph
from .models import (
    TYPE_PRIORITY,
    ContentNode,
    ContentType,
    CurriculumProgress,
    ExerciseRecord,
    LearnerProgress,
    LearnerSnapshot,
    LearningPathSegment,
    Lesson,
    ProgressStatus,
    Recommendations,
    UnitProgressSummary,
)

REQUIRED_EXERCISE_TYPES = (ExerciseType.PRACTICE, ExerciseType.REINFORCEMENT)


class PrerequisiteResolver:
    """
    Resolve access and progress for one learner.

    Args:
        graph: Content graph built from the curriculum snapshot
        learner: The learner's lesson, objective and unit progress
        settings: Unit threshold default and next-step limit
    """

    def __init__(
        self,
        graph: ContentGraph,
        learner: LearnerSnapshot | None = None,
        settings: Settings | None = None,
    ):
        self.graph = graph
        self.learner = learner or LearnerSnapshot()
        self.settings = settings or get_settings()

        self._lesson_progress = {p.lesson_id: p for p in self.learner.lessons}
        self._objective_progress = {p.objective_id: p for p in self.learner.objectives}
        self._unit_progress = {p.unit_id: p for p in self.learner.units}
        self._unlocked: dict[str, bool] = {}

    # ------------------------------------------------------------------
    # Access checks
    # ------------------------------------------------------------------

    def are_prerequisites_met(self, node_id: str) -> bool:
        """True when every dependency of ``node_id`` is satisfied."""
        if node_id not in self._unlocked:
            # A check that reaches itself again reads as locked
            self._unlocked[node_id] = False
            self._unlocked[node_id] = self._check(node_id)
        return self._unlocked[node_id]

    def _check(self, node_id: str) -> bool:
        node = self.graph.get(node_id)
        if node is None:
            logger.debug(f"Prerequisite check for unknown id '{node_id}'")
            return False
        if self.graph.has_dangling(node_id):
            return False

        for dependency in node.dependencies:
            if dependency == node.container_id:
                satisfied = self.are_prerequisites_met(dependency)
            else:
                satisfied = self._is_satisfied(self.graph.node(dependency))
            if not satisfied:
                return False
        return True

    def _is_satisfied(self, dependency: ContentNode) -> bool:
        if dependency.type is ContentType.UNIT:
            return self.is_unit_complete(dependency.id)
        if dependency.type is ContentType.LESSON:
            progress = self._lesson_progress.get(dependency.id)
            return bool(progress and progress.mastery_achieved)
        if dependency.type is ContentType.OBJECTIVE:
            progress = self._objective_progress.get(dependency.id)
            return bool(progress and progress.mastery_achieved)
        return False

    def unit_threshold(self, unit_id: str) -> float:
        unit = self.graph.units.get(unit_id)
        if unit is None or unit.mastery_threshold is None:
            return self.settings.default_unit_mastery_threshold
        return unit.mastery_threshold

    def is_unit_complete(self, unit_id: str) -> bool:
        """Fraction of mastered lessons reaches the unit threshold."""
        lessons = self.graph.lessons_in_unit(unit_id)
        if not lessons:
            return False
        mastered = sum(1 for lesson in lessons if self._mastered(lesson.id))
        return mastered / len(lessons) >= self.unit_threshold(unit_id)

    def get_unit_status(self, unit_id: str) -> ProgressStatus:
        """Summarize a unit's status from its lessons."""
        unit_progress = self._unit_progress.get(unit_id)
        if unit_progress and unit_progress.mastery_achieved:
            return ProgressStatus.MASTERED

        lessons = self.graph.lessons_in_unit(unit_id)
        mastered = sum(1 for lesson in lessons if self._mastered(lesson.id))
        if mastered == 0:
            return ProgressStatus.NOT_STARTED

        completion = sum(self._completion(lesson.id) for lesson in lessons) / len(lessons)
        if completion >= self.unit_threshold(unit_id):
            return ProgressStatus.MASTERED
        if mastered < len(lessons):
            return ProgressStatus.IN_PROGRESS
        return ProgressStatus.COMPLETED

    # ------------------------------------------------------------------
    # Next steps
    # ------------------------------------------------------------------

    def get_next_available_content(self) -> list[LearningPathSegment]:
        """Unlocked lessons whose status is not mastered, then exercises of lessons in progress."""
        available: list[LearningPathSegment] = []

        for lesson in self.graph.lessons.values():
            if not self.are_prerequisites_met(lesson.id):
                continue
            if self._status(lesson.id) is not ProgressStatus.MASTERED:
                available.append(self._lesson_segment(lesson, is_unlocked=True))

        for exercise in self.graph.exercises.values():
            if not self.are_prerequisites_met(exercise.id):
                continue
            if self._status(exercise.lesson_id) is ProgressStatus.IN_PROGRESS:
                available.append(self._exercise_segment(exercise, is_unlocked=True))

        available.sort(key=lambda s: (not s.is_required, TYPE_PRIORITY[s.content_type]))
        return available

    def get_blocked_content(self) -> list[LearningPathSegment]:
        return [
            self._lesson_segment(lesson, is_unlocked=False)
            for lesson in self.graph.lessons.values()
            if not self.are_prerequisites_met(lesson.id)
        ]

    # ------------------------------------------------------------------
    # Learning path
    # ------------------------------------------------------------------

    def generate_learning_path(self, target_unit_id: str | None = None) -> list[LearningPathSegment]:
        """
        Ordered path through units, their lessons, exercises and assessments.

        Args:
            target_unit_id: Restrict the path to one unit. Unknown ids give an
                empty path.
        """
        if target_unit_id is not None:
            unit = self.graph.units.get(target_unit_id)
            units = [unit] if unit else []
        else:
            units = sorted(self.graph.units.values(), key=lambda u: u.order_index)

        path: list[LearningPathSegment] = []
        for unit in units:
            for lesson in self.graph.lessons_in_unit(unit.id):
                is_unlocked = self.are_prerequisites_met(lesson.id)
                path.append(self._lesson_segment(lesson, is_unlocked=is_unlocked))

                status = self._status(lesson.id)
                mastered = self._mastered(lesson.id)
                exercises_open = is_unlocked and (status is ProgressStatus.IN_PROGRESS or mastered)
                for exercise in self.graph.exercises_for_lesson(lesson.id):
                    path.append(self._exercise_segment(exercise, is_unlocked=exercises_open))

                for assessment in self.graph.assessments_for_lesson(lesson.id):
                    path.append(
                        LearningPathSegment(
                            content_id=assessment.id,
                            content_type=ContentType.ASSESSMENT,
                            title=assessment.title,
                            is_required=assessment.type is AssessmentType.SUMMATIVE,
                            is_unlocked=is_unlocked and mastered,
                        )
                    )

        logger.debug(f"Learning path has {len(path)} segments")
        return path

    # ------------------------------------------------------------------
    # Recommendations and progress
    # ------------------------------------------------------------------

    def get_recommended_content(self) -> Recommendations:
        remediation = []
        enrichment = []

        for progress in self.learner.lessons:
            lesson = self.graph.lessons.get(progress.lesson_id)
            if lesson is None:
                continue
            if progress.needs_remediation:
                remediation.append(
                    LearningPathSegment(
                        content_id=lesson.id,
                        content_type=ContentType.LESSON,
                        title=f"Review: {lesson.title}",
                        is_required=True,
                        is_unlocked=True,
                        progress=progress.status,
                        estimated_minutes=lesson.estimated_minutes,
                    )
                )
            if progress.eligible_for_enrichment:
                for exercise in self.graph.exercises_for_lesson(lesson.id):
                    if exercise.type is ExerciseType.ENRICHMENT:
                        enrichment.append(
                            LearningPathSegment(
                                content_id=exercise.id,
                                content_type=ContentType.EXERCISE,
                                title=exercise.title,
                                is_required=False,
                                is_unlocked=True,
                            )
                        )

        next_steps = self.get_next_available_content()[: self.settings.next_steps_limit]
        return Recommendations(remediation=remediation, enrichment=enrichment, next_steps=next_steps)

    def analyze_progress_across_curriculum(self) -> CurriculumProgress:
        lessons = list(self.graph.lessons.values())
        completed = sum(1 for lesson in lessons if self._mastered(lesson.id))
        mastered_objectives = sum(
            1
            for objective_id in self.graph.objectives
            if (p := self._objective_progress.get(objective_id)) is not None and p.mastery_achieved
        )

        unit_progress = []
        for unit in sorted(self.graph.units.values(), key=lambda u: u.order_index):
            unit_lessons = self.graph.lessons_in_unit(unit.id)
            unit_mastered = sum(1 for lesson in unit_lessons if self._mastered(lesson.id))
            unit_progress.append(
                UnitProgressSummary(
                    unit_id=unit.id,
                    title=unit.title,
                    progress=unit_mastered / len(unit_lessons) * 100 if unit_lessons else 0.0,
                    status=self.get_unit_status(unit.id),
                )
            )

        return CurriculumProgress(
            overall_progress=completed / len(lessons) * 100 if lessons else 0.0,
            completed_lessons=completed,
            total_lessons=len(lessons),
            mastered_objectives=mastered_objectives,
            total_objectives=len(self.graph.objectives),
            unit_progress=unit_progress,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _progress(self, lesson_id: str) -> LearnerProgress | None:
        return self._lesson_progress.get(lesson_id)

    def _mastered(self, lesson_id: str) -> bool:
        progress = self._progress(lesson_id)
        return bool(progress and progress.mastery_achieved)

    def _status(self, lesson_id: str) -> ProgressStatus:
        progress = self._progress(lesson_id)
        return progress.status if progress else ProgressStatus.NOT_STARTED

    def _completion(self, lesson_id: str) -> float:
        progress = self._progress(lesson_id)
        return progress.completion_percentage / 100 if progress else 0.0

    def _lesson_segment(self, lesson: Lesson, is_unlocked: bool) -> LearningPathSegment:
        return LearningPathSegment(
            content_id=lesson.id,
            content_type=ContentType.LESSON,
            title=lesson.title,
            is_required=True,
            is_unlocked=is_unlocked,
            progress=self._status(lesson.id),
            estimated_minutes=lesson.estimated_minutes,
        )

    @staticmethod
    def _exercise_segment(exercise: ExerciseRecord, is_unlocked: bool) -> LearningPathSegment:
        return LearningPathSegment(
            content_id=exercise.id,
            content_type=ContentType.EXERCISE,
            title=exercise.title,
            is_required=exercise.type in REQUIRED_EXERCISE_TYPES,
            is_unlocked=is_unlocked,
        )
