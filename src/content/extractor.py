"""
Lesson extraction: markdown -> ParsedLessonData.

Pipeline:
1. parse_frontmatter splits off the metadata block
2. tokenize_blocks + build_section_tree give a classified heading tree
3. metadata, objectives, main content, exercises and assessments are pulled
   from the tree into pydantic models

Problems with the source become ImportResult errors or warnings. Only a
blank document or an unusable mastery threshold stops the import.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field

from loguru import logger

from config import Settings, get_settings

from .frontmatter import Frontmatter, FrontmatterValue, parse_frontmatter, parse_value
from .models import (
    Assessment,
    AssessmentType,
    Difficulty,
    Exercise,
    ExerciseDifficulty,
    ExerciseType,
    ImportErrorDetail,
    ImportResult,
    ImportWarningDetail,
    LearningObjective,
    LessonMetadata,
    ParsedLessonData,
    SectionType,
)
from .questions import has_questions, label_pattern, parse_questions
from .sections import Section, SectionTree, build_section_tree
from .tokenizer import split_lines, tokenize_blocks
from .validator import validate_lesson_data

UNTITLED_LESSON = "Untitled Lesson"

TITLE_PREFIX = re.compile(r"^Unit\s+\d+,\s*Lesson\s+\d+:\s*", re.IGNORECASE)
EXERCISE_PREFIX = re.compile(r"^Exercises?\s+\d+:\s*", re.IGNORECASE)
OBJECTIVES_LABEL = re.compile(r"^\s*\*\*Learning Objectives[^:*]*:\*\*\s*$", re.IGNORECASE)
BOLD_LABEL = re.compile(r"^\s*\*\*[^*]+:\*\*")
BULLET = re.compile(r"^\s*[-*]\s+(.+?)\s*$")
PERCENT = re.compile(r"(\d+(?:\.\d+)?)\s*%")
LEADING_NUMBER = re.compile(r"(\d+)")
QUOTED = re.compile(r'^"([^"]*)"')

DESCRIPTION_LABEL = label_pattern("Description")
DIFFICULTY_LABEL = label_pattern("Difficulty")
ESTIMATED_TIME_LABEL = label_pattern("Estimated Time")
MASTERY_THRESHOLD_LABEL = label_pattern("Mastery Threshold")
INSTRUCTIONS_LABEL = label_pattern("Instructions")
TYPE_LABEL = label_pattern("Type")
MAX_ATTEMPTS_LABEL = label_pattern("Max Attempts")
TIME_LIMIT_LABEL = label_pattern("Time Limit")

ASSESSMENT_TITLE_KEYWORDS: list[tuple[tuple[str, ...], AssessmentType]] = [
    (("pre-assessment", "diagnostic"), AssessmentType.DIAGNOSTIC),
    (("mastery", "formative"), AssessmentType.FORMATIVE),
    (("summative",), AssessmentType.SUMMATIVE),
    (("retention",), AssessmentType.RETENTION_CHECK),
]

EXERCISE_KEYWORDS: list[tuple[str, ExerciseType]] = [
    ("challenge", ExerciseType.CHALLENGE),
    ("enrichment", ExerciseType.ENRICHMENT),
    ("reinforcement", ExerciseType.REINFORCEMENT),
]

_ITEM_TYPES = (SectionType.EXERCISE, SectionType.ASSESSMENT)


@dataclass
class _Issues:
    errors: list[ImportErrorDetail] = field(default_factory=list)
    warnings: list[ImportWarningDetail] = field(default_factory=list)

    def error(self, type_: str, message: str, location: str | None = None, code: str | None = None) -> None:
        self.errors.append(ImportErrorDetail(type=type_, message=message, location=location, code=code))

    def warn(self, type_: str, message: str, location: str | None = None) -> None:
        self.warnings.append(ImportWarningDetail(type=type_, message=message, location=location))


@dataclass
class _LessonTree:
    """Section tree plus the roles the extractor assigns to each section."""

    tree: SectionTree
    roles: list[SectionType]
    containers: set[int]
    title_index: int | None

    def sections_with_role(self, role: SectionType) -> list[Section]:
        return [s for s in self.tree.walk() if self.roles[s.index] == role]

    def items(self, role: SectionType) -> list[Section]:
        return [s for s in self.sections_with_role(role) if s.index not in self.containers]

    def outermost(self, role: SectionType) -> list[Section]:
        result = []
        for section in self.sections_with_role(role):
            parent = self.tree.parent(section.index)
            nested = False
            while parent is not None:
                if self.roles[parent.index] == role:
                    nested = True
                    break
                parent = self.tree.parent(parent.index)
            if not nested:
                result.append(section)
        return result


class LessonImporter:
    """
    Compile lesson markdown into ParsedLessonData.

    Defaults for missing metadata come from Settings. With ``validate=True``
    the ContentValidator runs on the compiled lesson and its issues are merged
    into the result.
    """

    def __init__(self, settings: Settings | None = None, validate: bool = False):
        self.settings = settings or get_settings()
        self.validate = validate

    def import_markdown(self, markdown: str, filename: str | None = None) -> ImportResult:
        """
        Compile one lesson document.

        Args:
            markdown: Raw lesson markdown (frontmatter optional)
            filename: Used as the location of document-level issues

        Returns:
            ImportResult; ``data`` is set only when no errors were recorded
        """
        issues = _Issues()

        if not markdown or not markdown.strip():
            issues.error("parsing", "Document is empty", location=filename)
            logger.warning(f"Skipping empty lesson document {filename or ''}".rstrip())
            return ImportResult.build(None, issues.errors, issues.warnings)

        frontmatter, body = parse_frontmatter(markdown)
        lines = split_lines(body)
        tree = build_section_tree(tokenize_blocks(body), lines)
        lesson_tree = self._assign_roles(tree)

        metadata = self._extract_metadata(frontmatter or {}, lesson_tree, issues, filename)
        data = ParsedLessonData(
            metadata=metadata,
            objectives=self._extract_objectives(lesson_tree, issues),
            content=self._extract_content(lesson_tree, issues),
            exercises=[self._build_exercise(s) for s in lesson_tree.items(SectionType.EXERCISE)],
            assessments=[self._build_assessment(s) for s in lesson_tree.items(SectionType.ASSESSMENT)],
        )

        if self.validate and not issues.errors:
            report = validate_lesson_data(data)
            issues.errors.extend(report.errors)
            issues.warnings.extend(report.warnings)

        result = ImportResult.build(data, issues.errors, issues.warnings)
        logger.info(
            f"Imported '{metadata.title}': {len(data.objectives)} objectives, "
            f"{len(data.exercises)} exercises, {len(data.assessments)} assessments "
            f"({len(result.errors)} errors, {len(result.warnings)} warnings)"
        )
        return result

    # ------------------------------------------------------------------
    # Tree roles
    # ------------------------------------------------------------------

    def _assign_roles(self, tree: SectionTree) -> _LessonTree:
        title_index = next((s.index for s in tree.walk() if s.level == 1), None)
        roles: list[SectionType] = []
        containers: set[int] = set()

        for section in tree.walk():
            role = SectionType.NONE if section.index == title_index else section.type
            parent = section.parent_index
            if parent is not None and parent in containers:
                container_role = roles[parent]
                adopts = (
                    role is SectionType.NONE
                    or role is container_role
                    or (container_role is SectionType.EXERCISE and role is SectionType.ENRICHMENT)
                    # "### Overview Quiz" under Assessments is still an assessment
                    or has_questions(section.raw_content)
                )
                if adopts:
                    role = container_role
            roles.append(role)
            if role in _ITEM_TYPES and section.children and not has_questions(section.raw_content):
                containers.add(section.index)

        return _LessonTree(tree=tree, roles=roles, containers=containers, title_index=title_index)

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def _extract_metadata(
        self,
        frontmatter: Frontmatter,
        lesson_tree: _LessonTree,
        issues: _Issues,
        filename: str | None,
    ) -> LessonMetadata:
        overview = lesson_tree.sections_with_role(SectionType.OVERVIEW)
        overview_text = lesson_tree.tree.subtree_markdown(overview[0].index) if overview else ""

        title = _as_text(frontmatter.get("title"))
        if not title and lesson_tree.title_index is not None:
            title = TITLE_PREFIX.sub("", lesson_tree.tree[lesson_tree.title_index].title).strip()
        if not title:
            title = UNTITLED_LESSON
            issues.warn("content", "No title found, using default title", location=filename)

        description = _as_text(frontmatter.get("description"))
        if not description and overview:
            label = DESCRIPTION_LABEL.search(overview_text)
            description = label.group(1).strip() if label else _first_prose_line(overview[0].raw_content)

        return LessonMetadata(
            title=title,
            description=description,
            difficulty=self._difficulty(frontmatter, overview_text, issues),
            estimated_minutes=self._estimated_minutes(frontmatter, overview_text, issues),
            tags=_as_list(frontmatter.get("tags")),
            prerequisites=_as_list(frontmatter.get("prerequisites")),
            mastery_threshold=self._mastery_threshold(frontmatter, overview_text, issues),
            unit_id=_as_text(_first_key(frontmatter, "unitId", "unit_id", "unit")) or None,
        )

    def _difficulty(self, frontmatter: Frontmatter, overview_text: str, issues: _Issues) -> Difficulty:
        raw = _first_key(frontmatter, "difficulty")
        if raw is None:
            label = DIFFICULTY_LABEL.search(overview_text)
            raw = label.group(1) if label else None
        if raw is None or raw == "":
            return Difficulty(self.settings.default_difficulty)
        try:
            return Difficulty(str(raw).strip().lower())
        except ValueError:
            issues.warn("format", f"Invalid difficulty '{raw}', using {self.settings.default_difficulty}")
            return Difficulty(self.settings.default_difficulty)

    def _estimated_minutes(self, frontmatter: Frontmatter, overview_text: str, issues: _Issues) -> int:
        raw = _first_key(frontmatter, "estimatedMinutes", "estimated_minutes")
        if raw is None:
            label = ESTIMATED_TIME_LABEL.search(overview_text)
            if label:
                number = LEADING_NUMBER.search(label.group(1))
                raw = int(number.group(1)) if number else label.group(1)
        if raw is None or raw == "":
            return self.settings.default_estimated_minutes
        if isinstance(raw, bool) or not isinstance(raw, (int, float)) or raw < 0:
            issues.warn(
                "format",
                f"Invalid estimated minutes '{raw}', using {self.settings.default_estimated_minutes}",
            )
            return self.settings.default_estimated_minutes
        return int(raw)

    def _mastery_threshold(self, frontmatter: Frontmatter, overview_text: str, issues: _Issues) -> float:
        raw = _first_key(frontmatter, "masteryThreshold", "mastery_threshold")
        if raw is None:
            label = MASTERY_THRESHOLD_LABEL.search(overview_text)
            if label:
                percent = PERCENT.search(label.group(1))
                raw = float(percent.group(1)) / 100 if percent else parse_value(label.group(1))
        if raw is None or raw == "":
            return self.settings.default_mastery_threshold
        if isinstance(raw, bool) or not isinstance(raw, (int, float)) or not 0 <= raw <= 1:
            issues.error(
                "validation",
                f"Mastery threshold must be a number between 0 and 1, got '{raw}'",
                code="INVALID_THRESHOLD",
            )
            return self.settings.default_mastery_threshold
        return float(raw)

    # ------------------------------------------------------------------
    # Objectives and content
    # ------------------------------------------------------------------

    def _extract_objectives(self, lesson_tree: _LessonTree, issues: _Issues) -> list[LearningObjective]:
        overview = lesson_tree.sections_with_role(SectionType.OVERVIEW)
        objectives: list[LearningObjective] = []

        if overview:
            collecting = False
            for line in lesson_tree.tree.subtree_markdown(overview[0].index).splitlines():
                if OBJECTIVES_LABEL.match(line):
                    collecting = True
                    continue
                if not collecting:
                    continue
                if BOLD_LABEL.match(line) or line.lstrip().startswith("#"):
                    break
                bullet = BULLET.match(line)
                if bullet:
                    objectives.append(
                        LearningObjective(
                            title=bullet.group(1),
                            category=self.settings.default_objective_category,
                            mastery_threshold=self.settings.default_mastery_threshold,
                        )
                    )

        if not objectives:
            issues.warn("content", "No learning objectives found in lesson")
        logger.debug(f"Found {len(objectives)} learning objectives")
        return objectives

    def _extract_content(self, lesson_tree: _LessonTree, issues: _Issues) -> str:
        tree = lesson_tree.tree
        parts = [
            tree.subtree_markdown(section.index)
            for section in lesson_tree.outermost(SectionType.CONTENT)
            if section.raw_content or section.children
        ]
        if not parts:
            issues.warn("content", "No learning content sections found")
        return "\n\n".join(parts)

    # ------------------------------------------------------------------
    # Exercises and assessments
    # ------------------------------------------------------------------

    def _build_exercise(self, section: Section) -> Exercise:
        body = section.raw_content
        type_label = TYPE_LABEL.search(body)
        keyword_source = (type_label.group(1) if type_label else section.title).lower()
        exercise_type = next(
            (kind for keyword, kind in EXERCISE_KEYWORDS if keyword in keyword_source),
            ExerciseType.PRACTICE,
        )

        difficulty = ExerciseDifficulty.MEDIUM
        difficulty_label = DIFFICULTY_LABEL.search(body)
        if difficulty_label:
            try:
                difficulty = ExerciseDifficulty(difficulty_label.group(1).strip().lower())
            except ValueError:
                logger.debug(f"Ignoring exercise difficulty '{difficulty_label.group(1)}'")

        exercise = Exercise(
            title=EXERCISE_PREFIX.sub("", section.title).strip() or section.title,
            description=_label_text(INSTRUCTIONS_LABEL, body),
            type=exercise_type,
            difficulty=difficulty,
            max_attempts=_label_int(MAX_ATTEMPTS_LABEL, body) or 3,
            time_limit=_label_int(TIME_LIMIT_LABEL, body),
            questions=parse_questions(body),
        )
        logger.debug(f"Exercise '{exercise.title}' ({exercise.type.value}): {len(exercise.questions)} questions")
        return exercise

    def _build_assessment(self, section: Section) -> Assessment:
        body = section.raw_content
        assessment_type = None
        type_label = TYPE_LABEL.search(body)
        if type_label:
            try:
                assessment_type = AssessmentType(re.sub(r"[\s-]+", "_", type_label.group(1).strip().lower()))
            except ValueError:
                assessment_type = None
        if assessment_type is None:
            lowered = section.title.lower()
            assessment_type = next(
                (kind for keywords, kind in ASSESSMENT_TITLE_KEYWORDS if any(k in lowered for k in keywords)),
                AssessmentType.FORMATIVE,
            )

        mastery_threshold = self.settings.default_mastery_threshold
        threshold_label = MASTERY_THRESHOLD_LABEL.search(body)
        if threshold_label:
            percent = PERCENT.search(threshold_label.group(1))
            if percent and 0 <= float(percent.group(1)) <= 100:
                mastery_threshold = float(percent.group(1)) / 100

        assessment = Assessment(
            title=section.title,
            description=_label_text(INSTRUCTIONS_LABEL, body),
            type=assessment_type,
            max_attempts=_label_int(MAX_ATTEMPTS_LABEL, body) or 2,
            mastery_threshold=mastery_threshold,
            time_limit=_label_int(TIME_LIMIT_LABEL, body),
            questions=parse_questions(body),
        )
        logger.debug(
            f"Assessment '{assessment.title}' ({assessment.type.value}): {len(assessment.questions)} questions"
        )
        return assessment


def import_lesson_from_markdown(markdown: str, filename: str | None = None) -> ImportResult:
    """Compile a lesson with default settings."""
    return LessonImporter().import_markdown(markdown, filename)


# =============================================================================
# Helpers
# =============================================================================


def _first_key(frontmatter: Frontmatter, *keys: str) -> FrontmatterValue | None:
    for key in keys:
        if key in frontmatter:
            return frontmatter[key]
    return None


def _as_text(value: FrontmatterValue | None) -> str:
    if value is None or isinstance(value, list):
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    return str(value).strip()


def _as_list(value: FrontmatterValue | None) -> list[str]:
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return [str(item) for item in value]
    return [_as_text(value)]


def _first_prose_line(text: str) -> str:
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith(("#", "**", "-", "*", ">", "|", "```")):
            continue
        if re.match(r"^\d+\.", stripped):
            continue
        return stripped
    return ""


def _label_text(pattern: re.Pattern[str], body: str) -> str | None:
    match = pattern.search(body)
    if not match:
        return None
    value = match.group(1).strip()
    quoted = QUOTED.match(value)
    return quoted.group(1) if quoted else value


def _label_int(pattern: re.Pattern[str], body: str) -> int | None:
    match = pattern.search(body)
    if not match:
        return None
    number = LEADING_NUMBER.search(match.group(1))
    return int(number.group(1)) if number else None
