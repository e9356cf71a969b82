"""
Content dependency graph.

One node per unit, lesson, objective, exercise and assessment. Edges point
from a node to what it depends on:
- unit       -> prerequisite units
- lesson     -> its unit (container) + prerequisite lessons
- objective  -> its unit and/or lesson (container: lesson, else unit)
- exercise   -> its lesson (container)
- assessment -> its lesson, if any (container)

``dependents`` is the exact reverse of ``dependencies``. References to ids
that are not in the snapshot are dropped from the node and reported in
``ContentGraph.dangling``. A container is recorded only when the parent
exists and has the expected type; otherwise the parent is a plain dependency.
"""
from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from loguru import logger

from config import Settings, get_settings

from .models import (
    AssessmentRecord,
    ContentNode,
    ContentType,
    CurriculumSnapshot,
    DanglingDependency,
    ExerciseRecord,
    Lesson,
    ObjectiveRecord,
    Unit,
)


class UnknownContentError(KeyError):
    """Lookup of an id that is not in the content graph."""


@dataclass
class _Draft:
    id: str
    type: ContentType
    title: str
    dependencies: list[str]
    # (parent id, required type) in preference order
    container_candidates: tuple[tuple[str | None, ContentType], ...] = ()
    container_id: str | None = None


@dataclass(frozen=True)
class ContentGraph:
    """Immutable dependency graph over one curriculum snapshot."""

    nodes: dict[str, ContentNode]
    snapshot: CurriculumSnapshot
    dangling: tuple[DanglingDependency, ...] = ()
    units: dict[str, Unit] = field(default_factory=dict)
    lessons: dict[str, Lesson] = field(default_factory=dict)
    objectives: dict[str, ObjectiveRecord] = field(default_factory=dict)
    exercises: dict[str, ExerciseRecord] = field(default_factory=dict)
    assessments: dict[str, AssessmentRecord] = field(default_factory=dict)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[ContentNode]:
        return iter(self.nodes.values())

    def get(self, node_id: str) -> ContentNode | None:
        return self.nodes.get(node_id)

    def node(self, node_id: str) -> ContentNode:
        """
        Look up a node.

        Raises:
            UnknownContentError: If ``node_id`` is not in the graph
        """
        try:
            return self.nodes[node_id]
        except KeyError:
            raise UnknownContentError(node_id) from None

    def has_dangling(self, node_id: str) -> bool:
        return any(d.node_id == node_id for d in self.dangling)

    def nodes_of_type(self, content_type: ContentType) -> list[ContentNode]:
        return [n for n in self.nodes.values() if n.type == content_type]

    def lessons_in_unit(self, unit_id: str) -> list[Lesson]:
        """Lessons of a unit ordered by ``order_index`` (stable)."""
        return sorted(
            (lesson for lesson in self.lessons.values() if lesson.unit_id == unit_id),
            key=lambda lesson: lesson.order_index,
        )

    def exercises_for_lesson(self, lesson_id: str) -> list[ExerciseRecord]:
        return sorted(
            (e for e in self.exercises.values() if e.lesson_id == lesson_id),
            key=lambda e: e.order_index,
        )

    def assessments_for_lesson(self, lesson_id: str) -> list[AssessmentRecord]:
        return [a for a in self.assessments.values() if a.lesson_id == lesson_id]


def build_content_graph(snapshot: CurriculumSnapshot, settings: Settings | None = None) -> ContentGraph:
    """
    Build the dependency graph for a curriculum snapshot.

    Args:
        snapshot: Units, lessons, objectives, exercises and assessments
        settings: Controls how loudly dangling references are logged

    Returns:
        ContentGraph with symmetric dependency/dependent edges
    """
    settings = settings or get_settings()
    drafts: dict[str, _Draft] = {}
    units: dict[str, Unit] = {}
    lessons: dict[str, Lesson] = {}
    objectives: dict[str, ObjectiveRecord] = {}
    exercises: dict[str, ExerciseRecord] = {}
    assessments: dict[str, AssessmentRecord] = {}

    def add(draft: _Draft) -> bool:
        if draft.id in drafts:
            logger.warning(
                f"Duplicate content id '{draft.id}' ({draft.type.value}); keeping the first "
                f"{drafts[draft.id].type.value}"
            )
            return False
        drafts[draft.id] = draft
        return True

    # Pass 1: nodes and declared dependencies
    for unit in snapshot.units:
        if add(_Draft(unit.id, ContentType.UNIT, unit.title, list(unit.prerequisite_units))):
            units[unit.id] = unit

    for lesson in snapshot.lessons:
        draft = _Draft(
            lesson.id,
            ContentType.LESSON,
            lesson.title,
            [lesson.unit_id, *lesson.prerequisite_lessons],
            container_candidates=((lesson.unit_id, ContentType.UNIT),),
        )
        if add(draft):
            lessons[lesson.id] = lesson

    for objective in snapshot.objectives:
        dependencies = [d for d in (objective.unit_id, objective.lesson_id) if d]
        draft = _Draft(
            objective.id,
            ContentType.OBJECTIVE,
            objective.title,
            dependencies,
            container_candidates=(
                (objective.lesson_id, ContentType.LESSON),
                (objective.unit_id, ContentType.UNIT),
            ),
        )
        if add(draft):
            objectives[objective.id] = objective

    for exercise in snapshot.exercises:
        draft = _Draft(
            exercise.id,
            ContentType.EXERCISE,
            exercise.title,
            [exercise.lesson_id],
            container_candidates=((exercise.lesson_id, ContentType.LESSON),),
        )
        if add(draft):
            exercises[exercise.id] = exercise

    for assessment in snapshot.assessments:
        draft = _Draft(
            assessment.id,
            ContentType.ASSESSMENT,
            assessment.title,
            [assessment.lesson_id] if assessment.lesson_id else [],
            container_candidates=((assessment.lesson_id, ContentType.LESSON),),
        )
        if add(draft):
            assessments[assessment.id] = assessment

    # Drop duplicate and unknown dependencies
    dangling: list[DanglingDependency] = []
    log = logger.warning if settings.strict_dependencies else logger.debug
    for draft in drafts.values():
        kept: list[str] = []
        for dependency in draft.dependencies:
            if dependency in kept:
                continue
            if dependency not in drafts:
                dangling.append(DanglingDependency(node_id=draft.id, missing_id=dependency))
                log(f"{draft.type.value} '{draft.id}' depends on unknown id '{dependency}'")
                continue
            kept.append(dependency)
        draft.dependencies = kept

        # A parent of the wrong type stays a plain dependency
        draft.container_id = next(
            (
                parent_id
                for parent_id, parent_type in draft.container_candidates
                if parent_id in drafts and parent_id != draft.id and drafts[parent_id].type is parent_type
            ),
            None,
        )
        if draft.container_candidates and draft.container_id is None:
            logger.debug(f"{draft.type.value} '{draft.id}' has no valid container")

    # Pass 2: dependents mirror dependencies
    dependents: dict[str, list[str]] = {node_id: [] for node_id in drafts}
    for draft in drafts.values():
        for dependency in draft.dependencies:
            dependents[dependency].append(draft.id)

    nodes = {
        draft.id: ContentNode(
            id=draft.id,
            type=draft.type,
            title=draft.title,
            dependencies=tuple(draft.dependencies),
            dependents=tuple(dependents[draft.id]),
            container_id=draft.container_id,
        )
        for draft in drafts.values()
    }

    logger.info(
        f"Built content graph: {len(units)} units, {len(lessons)} lessons, "
        f"{len(objectives)} objectives, {len(exercises)} exercises, "
        f"{len(assessments)} assessments ({len(dangling)} dangling references)"
    )
    return ContentGraph(
        nodes=nodes,
        snapshot=snapshot,
        dangling=tuple(dangling),
        units=units,
        lessons=lessons,
        objectives=objectives,
        exercises=exercises,
        assessments=assessments,
    )
