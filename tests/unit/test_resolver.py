"""
Unit tests for PrerequisiteResolver.

Run: pytest tests/unit/test_resolver.py -v
"""
import pytest

from config import Settings
from src.graph import (
    ContentType,
    CurriculumSnapshot,
    LearnerSnapshot,
    PrerequisiteResolver,
    ProgressStatus,
    build_content_graph,
)


def learner(*lessons, objectives=(), units=()) -> LearnerSnapshot:
    return LearnerSnapshot.model_validate(
        {"lessons": list(lessons), "objectives": list(objectives), "units": list(units)}
    )


def mastered(lesson_id: str, **extra) -> dict:
    return {
        "lesson_id": lesson_id,
        "status": "mastered",
        "mastery_achieved": True,
        "completion_percentage": 100,
        **extra,
    }


@pytest.fixture
def resolve(sample_curriculum, settings):
    graph = build_content_graph(sample_curriculum, settings)

    def _resolve(snapshot: LearnerSnapshot | None = None) -> PrerequisiteResolver:
        return PrerequisiteResolver(graph, snapshot, settings)

    return _resolve


class TestPrerequisites:
    def test_fresh_learner(self, resolve):
        resolver = resolve()
        assert resolver.are_prerequisites_met("lesson-1")
        assert resolver.are_prerequisites_met("lesson-2")
        assert not resolver.are_prerequisites_met("lesson-3")

    def test_unit_completion_unlocks_next_unit(self, resolve):
        resolver = resolve(learner(mastered("lesson-1"), mastered("lesson-2")))
        assert resolver.is_unit_complete("unit-1")
        assert resolver.are_prerequisites_met("lesson-3")

    def test_partial_unit_stays_locked(self, resolve):
        resolver = resolve(learner(mastered("lesson-1")))
        assert not resolver.is_unit_complete("unit-1")
        assert not resolver.are_prerequisites_met("lesson-3")

    def test_unknown_id_is_locked(self, resolve):
        assert resolve().are_prerequisites_met("nonexistent") is False

    def test_dangling_reference_is_locked(self, settings):
        snapshot = CurriculumSnapshot.model_validate(
            {"lessons": [{"id": "orphan", "unit_id": "nonexistent", "title": "Orphan"}]}
        )
        resolver = PrerequisiteResolver(build_content_graph(snapshot, settings), settings=settings)
        assert resolver.are_prerequisites_met("orphan") is False

    def test_circular_units_terminate_locked(self, settings):
        snapshot = CurriculumSnapshot.model_validate(
            {
                "units": [
                    {"id": "unit-a", "title": "A", "prerequisite_units": ["unit-b"]},
                    {"id": "unit-b", "title": "B", "prerequisite_units": ["unit-a"]},
                ],
                "lessons": [
                    {"id": "la", "unit_id": "unit-a", "title": "LA"},
                    {"id": "lb", "unit_id": "unit-b", "title": "LB"},
                ],
            }
        )
        resolver = PrerequisiteResolver(build_content_graph(snapshot, settings), settings=settings)
        assert resolver.are_prerequisites_met("la") is False
        assert resolver.are_prerequisites_met("lb") is False

    def test_self_referencing_exercise_is_locked(self, settings):
        snapshot = CurriculumSnapshot.model_validate(
            {"exercises": [{"id": "e1", "lesson_id": "e1", "title": "Loop"}]}
        )
        resolver = PrerequisiteResolver(build_content_graph(snapshot, settings), settings=settings)
        assert resolver.are_prerequisites_met("e1") is False
        assert resolver.get_next_available_content() == []
        assert resolver.generate_learning_path() == []

    def test_lessons_naming_each_other_as_unit(self, settings):
        snapshot = CurriculumSnapshot.model_validate(
            {
                "lessons": [
                    {"id": "la", "unit_id": "lb", "title": "A"},
                    {"id": "lb", "unit_id": "la", "title": "B"},
                ]
            }
        )
        resolver = PrerequisiteResolver(build_content_graph(snapshot, settings), settings=settings)
        assert resolver.are_prerequisites_met("la") is False
        assert resolver.get_next_available_content() == []
        assert [s.content_id for s in resolver.get_blocked_content()] == ["la", "lb"]
        assert resolver.get_recommended_content().next_steps == []

    def test_lessons_naming_each_other_unlock_on_mastery(self, settings):
        snapshot = CurriculumSnapshot.model_validate(
            {
                "lessons": [
                    {"id": "la", "unit_id": "lb", "title": "A"},
                    {"id": "lb", "unit_id": "la", "title": "B"},
                ]
            }
        )
        graph = build_content_graph(snapshot, settings)
        resolver = PrerequisiteResolver(graph, learner(mastered("lb")), settings=settings)
        assert resolver.are_prerequisites_met("la") is True

    def test_prerequisite_lesson(self, settings):
        snapshot = CurriculumSnapshot.model_validate(
            {
                "units": [{"id": "u", "title": "U"}],
                "lessons": [
                    {"id": "l1", "unit_id": "u", "title": "L1"},
                    {"id": "l2", "unit_id": "u", "title": "L2", "prerequisite_lessons": ["l1"]},
                ],
            }
        )
        graph = build_content_graph(snapshot, settings)
        assert not PrerequisiteResolver(graph, settings=settings).are_prerequisites_met("l2")
        unlocked = PrerequisiteResolver(graph, learner(mastered("l1")), settings=settings)
        assert unlocked.are_prerequisites_met("l2")

    def test_unit_threshold_default(self, settings):
        snapshot = CurriculumSnapshot.model_validate({"units": [{"id": "u", "title": "U"}]})
        resolver = PrerequisiteResolver(build_content_graph(snapshot, settings), settings=settings)
        assert resolver.unit_threshold("u") == settings.default_unit_mastery_threshold

    def test_empty_unit_is_not_complete(self, settings):
        snapshot = CurriculumSnapshot.model_validate({"units": [{"id": "u", "title": "U"}]})
        resolver = PrerequisiteResolver(build_content_graph(snapshot, settings), settings=settings)
        assert not resolver.is_unit_complete("u")


class TestNextAvailable:
    def test_ordering_with_lesson_in_progress(self, resolve):
        resolver = resolve(learner({"lesson_id": "lesson-1", "status": "in_progress"}))
        ids = [s.content_id for s in resolver.get_next_available_content()]
        assert ids == ["lesson-1", "lesson-2", "exercise-1", "exercise-2"]

    def test_exercises_hidden_until_lesson_started(self, resolve):
        ids = [s.content_id for s in resolve().get_next_available_content()]
        assert ids == ["lesson-1", "lesson-2"]

    def test_mastered_lessons_are_not_offered(self, resolve):
        ids = [s.content_id for s in resolve(learner(mastered("lesson-1"))).get_next_available_content()]
        assert ids == ["lesson-2"]

    def test_offered_until_status_is_mastered(self, resolve):
        progress = {"lesson_id": "lesson-1", "status": "completed", "mastery_achieved": True}
        ids = [s.content_id for s in resolve(learner(progress)).get_next_available_content()]
        assert ids == ["lesson-1", "lesson-2"]

    def test_blocked_content(self, resolve):
        blocked = resolve().get_blocked_content()
        assert [s.content_id for s in blocked] == ["lesson-3"]
        assert not blocked[0].is_unlocked


class TestLearningPath:
    def test_order_for_fresh_learner(self, resolve):
        path = resolve().generate_learning_path()
        assert [s.content_id for s in path] == [
            "lesson-1",
            "exercise-1",
            "exercise-2",
            "assessment-1",
            "lesson-2",
            "lesson-3",
        ]
        locks = {s.content_id: s.is_unlocked for s in path}
        assert locks["lesson-1"] and locks["lesson-2"]
        assert not locks["exercise-1"]
        assert not locks["assessment-1"]
        assert not locks["lesson-3"]

    def test_mastered_lesson_opens_exercises_and_assessment(self, resolve):
        path = resolve(learner(mastered("lesson-1"))).generate_learning_path()
        locks = {s.content_id: s.is_unlocked for s in path}
        assert locks["exercise-1"] and locks["exercise-2"] and locks["assessment-1"]

    def test_required_flags(self, resolve):
        path = {s.content_id: s for s in resolve().generate_learning_path()}
        assert path["exercise-1"].is_required
        assert not path["exercise-2"].is_required
        assert path["assessment-1"].is_required
        assert path["assessment-1"].content_type is ContentType.ASSESSMENT

    def test_target_unit(self, resolve):
        path = resolve().generate_learning_path("unit-2")
        assert [s.content_id for s in path] == ["lesson-3"]

    def test_unknown_target_unit(self, resolve):
        assert resolve().generate_learning_path("nonexistent") == []


class TestRecommendations:
    def test_remediation_and_enrichment(self, resolve):
        progress = {
            "lesson_id": "lesson-1",
            "status": "completed",
            "needs_remediation": True,
            "eligible_for_enrichment": True,
        }
        recommendations = resolve(learner(progress)).get_recommended_content()
        [review] = recommendations.remediation
        assert review.title == "Review: Nouns"
        assert review.progress is ProgressStatus.COMPLETED
        assert [s.content_id for s in recommendations.enrichment] == ["exercise-2"]

    def test_next_steps_are_limited(self, sample_curriculum):
        settings = Settings(_env_file=None, next_steps_limit=1)
        graph = build_content_graph(sample_curriculum, settings)
        recommendations = PrerequisiteResolver(graph, settings=settings).get_recommended_content()
        assert [s.content_id for s in recommendations.next_steps] == ["lesson-1"]

    def test_unknown_lessons_are_ignored(self, resolve):
        progress = {"lesson_id": "ghost", "needs_remediation": True}
        assert resolve(learner(progress)).get_recommended_content().remediation == []


class TestCurriculumProgress:
    def test_one_of_three_lessons(self, resolve):
        analysis = resolve(learner(mastered("lesson-1"))).analyze_progress_across_curriculum()
        assert analysis.overall_progress == pytest.approx(100 / 3)
        assert (analysis.completed_lessons, analysis.total_lessons) == (1, 3)
        assert [u.unit_id for u in analysis.unit_progress] == ["unit-1", "unit-2"]
        assert analysis.unit_progress[0].progress == pytest.approx(50.0)
        assert analysis.unit_progress[1].progress == 0.0

    def test_objectives(self, resolve):
        snapshot = learner(
            objectives=[
                {"objective_id": "obj-1", "mastery_achieved": True},
                {"objective_id": "ghost", "mastery_achieved": True},
            ]
        )
        analysis = resolve(snapshot).analyze_progress_across_curriculum()
        assert (analysis.mastered_objectives, analysis.total_objectives) == (1, 1)

    def test_empty_curriculum(self, settings):
        graph = build_content_graph(CurriculumSnapshot(), settings)
        analysis = PrerequisiteResolver(graph, settings=settings).analyze_progress_across_curriculum()
        assert analysis.overall_progress == 0.0
        assert analysis.unit_progress == []


class TestUnitStatus:
    """Two lessons, unit threshold 0.5."""

    @pytest.fixture
    def status(self):
        settings = Settings(_env_file=None, default_unit_mastery_threshold=0.5)
        snapshot = CurriculumSnapshot.model_validate(
            {
                "units": [{"id": "u", "title": "U"}],
                "lessons": [
                    {"id": "a", "unit_id": "u", "title": "A", "order_index": 0},
                    {"id": "b", "unit_id": "u", "title": "B", "order_index": 1},
                ],
            }
        )
        graph = build_content_graph(snapshot, settings)

        def _status(snapshot: LearnerSnapshot) -> ProgressStatus:
            return PrerequisiteResolver(graph, snapshot, settings).get_unit_status("u")

        return _status

    def test_not_started(self, status):
        assert status(learner()) is ProgressStatus.NOT_STARTED

    def test_mean_completion_reaches_threshold(self, status):
        assert status(learner(mastered("a"))) is ProgressStatus.MASTERED

    def test_below_threshold_in_progress(self, status):
        assert status(learner(mastered("a", completion_percentage=80))) is ProgressStatus.IN_PROGRESS

    def test_all_mastered_below_threshold_completed(self, status):
        snapshot = learner(
            mastered("a", completion_percentage=40),
            mastered("b", completion_percentage=40),
        )
        assert status(snapshot) is ProgressStatus.COMPLETED

    def test_unit_progress_record_wins(self, status):
        snapshot = learner(units=[{"unit_id": "u", "mastery_achieved": True}])
        assert status(snapshot) is ProgressStatus.MASTERED
