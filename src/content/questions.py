"""
Question parsing.

Recognizes numbered questions of the form::

    1. **Which word is a noun?**
       - a) run
       - b) table ✓
       Hint: "A noun names a person, place or thing."
       **Feedback if correct:** "Nice work!"
       **Feedback if incorrect:** "Look for the thing."

Lettered options make a multiple choice question. Other question types are
picked from an explicit ``**Question Type:**`` label or from keywords in the
question, and carry their own answer payloads.
"""
from __future__ import annotations

import re

from loguru import logger

from .models import (
    Blank,
    DragAndDropData,
    EssayData,
    FillInBlankData,
    MultipleChoiceData,
    Question,
    QuestionType,
    SentenceBuilderData,
)

QUESTION_START = re.compile(r"^[ \t]*(\d+)\.[ \t]*\*\*(.+?)\*\*(.*)$", re.MULTILINE)
OPTION_PATTERN = re.compile(r"^[ \t]*[-*][ \t]*([a-z])\)[ \t]*(.+?)[ \t]*$", re.MULTILINE)
HINT_PATTERN = re.compile(r'Hint:\s*"([^"]+)"')
CORRECT_FEEDBACK_PATTERN = re.compile(r'\*\*Feedback if correct:\*\*\s*"([^"]+)"', re.IGNORECASE)
INCORRECT_FEEDBACK_PATTERN = re.compile(r'\*\*Feedback if incorrect:\*\*\s*"([^"]+)"', re.IGNORECASE)
MAPPING_PATTERN = re.compile(r"^[ \t]*[-*][ \t]*(.+?)[ \t]*->[ \t]*(.+?)[ \t]*$", re.MULTILINE)
BLANK_PATTERN = re.compile(r"_{3,}")

CHECK_MARKS = ("✓", "✔")
FEEDBACK_MARKER = "**Feedback"
ANSWER_SEPARATOR = ";"
ALTERNATIVE_SEPARATOR = "|"


def label_pattern(*names: str) -> re.Pattern[str]:
    """Line-anchored ``Name: value`` pattern, bold markers optional."""
    alternatives = "|".join(re.escape(name) for name in names)
    return re.compile(
        rf"^[ \t]*(?:\*\*)?(?:{alternatives}):(?:\*\*)?[ \t]*(.+?)[ \t]*$",
        re.MULTILINE | re.IGNORECASE,
    )


ANSWER_LABEL = label_pattern("Answer", "Correct Answer", "Correct")
TYPE_LABEL = label_pattern("Question Type")
POINTS_LABEL = label_pattern("Points")
TARGETS_LABEL = label_pattern("Targets")
WORDS_LABEL = label_pattern("Words")
MIN_WORDS_LABEL = label_pattern("Min words")
MAX_WORDS_LABEL = label_pattern("Max words")


def parse_questions(body: str) -> list[Question]:
    """
    Parse every numbered question in a section body.

    Unrecognized text is skipped; this never raises on unmatched patterns.
    """
    starts = list(QUESTION_START.finditer(body))
    questions = []

    for order_index, match in enumerate(starts):
        end = starts[order_index + 1].start() if order_index + 1 < len(starts) else len(body)
        stem = match.group(2).strip()
        block = body[match.end() : end]
        question = _parse_question(stem, block, order_index)
        logger.debug(f"Question {order_index + 1}: {question.type.value} '{stem[:40]}'")
        questions.append(question)

    return questions


def has_questions(body: str) -> bool:
    return QUESTION_START.search(body) is not None


def _parse_question(stem: str, block: str, order_index: int) -> Question:
    marker = block.find(FEEDBACK_MARKER)
    detection = block if marker == -1 else block[:marker]

    question_type = detect_question_type(stem, detection)
    if question_type is QuestionType.MULTIPLE_CHOICE:
        data = _multiple_choice(detection)
    elif question_type is QuestionType.FILL_IN_BLANK:
        data = _fill_in_blank(stem, detection)
    elif question_type is QuestionType.DRAG_AND_DROP:
        data = _drag_and_drop(detection)
    elif question_type is QuestionType.SENTENCE_BUILDER:
        data = _sentence_builder(detection)
    else:
        data = _essay(stem, detection)

    correct_feedback = CORRECT_FEEDBACK_PATTERN.search(block)
    incorrect_feedback = INCORRECT_FEEDBACK_PATTERN.search(block)
    points = POINTS_LABEL.search(detection)

    return Question(
        question_text=stem,
        question_data=data,
        hints=HINT_PATTERN.findall(block),
        correct_feedback=correct_feedback.group(1) if correct_feedback else None,
        incorrect_feedback=incorrect_feedback.group(1) if incorrect_feedback else None,
        points=_to_int(points.group(1), 1) if points else 1,
        order_index=order_index,
    )


def detect_question_type(stem: str, detection: str) -> QuestionType:
    """Pick the question type from an explicit label, options or keywords."""
    label = TYPE_LABEL.search(detection)
    if label:
        normalized = re.sub(r"[\s-]+", "_", label.group(1).strip().lower())
        try:
            return QuestionType(normalized)
        except ValueError:
            logger.debug(f"Ignoring unknown question type label '{label.group(1)}'")

    if OPTION_PATTERN.search(detection):
        return QuestionType.MULTIPLE_CHOICE

    text = f"{stem}\n{detection}".lower()
    if BLANK_PATTERN.search(text) or "blank" in text:
        return QuestionType.FILL_IN_BLANK
    if "drag" in text or "drop" in text:
        return QuestionType.DRAG_AND_DROP
    if "build" in text or "arrange" in text:
        return QuestionType.SENTENCE_BUILDER
    if "essay" in text:
        return QuestionType.ESSAY
    return QuestionType.MULTIPLE_CHOICE


def _answer(detection: str) -> str | None:
    match = ANSWER_LABEL.search(detection)
    return match.group(1).strip() if match else None


def _multiple_choice(detection: str) -> MultipleChoiceData:
    options: list[str] = []
    checked: int | None = None

    for match in OPTION_PATTERN.finditer(detection):
        text = match.group(2)
        if any(mark in text for mark in CHECK_MARKS):
            if checked is None:
                checked = len(options)
            for mark in CHECK_MARKS:
                text = text.replace(mark, "")
        options.append(text.strip())

    answer = _answer(detection)
    if answer is not None:
        index = _resolve_option(answer, options)
        if index is None:
            return MultipleChoiceData(options=options, correct_answer=answer)
        return MultipleChoiceData(options=options, correct_index=index, correct_answer=options[index])

    if checked is not None:
        return MultipleChoiceData(options=options, correct_index=checked, correct_answer=options[checked])

    return MultipleChoiceData(options=options)


def _resolve_option(answer: str, options: list[str]) -> int | None:
    """Resolve an answer given as a letter (``b`` / ``b)``) or as option text."""
    letter = re.fullmatch(r"([a-z])\)?", answer.strip().lower())
    if letter:
        index = ord(letter.group(1)) - ord("a")
        if index < len(options):
            return index
    for index, option in enumerate(options):
        if option.lower() == answer.lower():
            return index
    return None


def _fill_in_blank(stem: str, detection: str) -> FillInBlankData:
    template = stem
    if not BLANK_PATTERN.search(template):
        for line in detection.splitlines():
            if BLANK_PATTERN.search(line):
                template = line.strip()
                break

    answer = _answer(detection) or ""
    groups = [part.strip() for part in answer.split(ANSWER_SEPARATOR) if part.strip()]
    blank_count = max(len(BLANK_PATTERN.findall(template)), len(groups), 1)

    blanks = []
    correct: list[str] = []
    for position in range(blank_count):
        alternatives: list[str] = []
        if position < len(groups):
            alternatives = [
                alt.strip() for alt in groups[position].split(ALTERNATIVE_SEPARATOR) if alt.strip()
            ]
        blanks.append(Blank(position=position, acceptable_answers=alternatives))
        if alternatives:
            correct.append(alternatives[0])

    return FillInBlankData(template=template, blanks=blanks, correct_answer=correct)


def _drag_and_drop(detection: str) -> DragAndDropData:
    mapping: dict[str, str] = {}
    for match in MAPPING_PATTERN.finditer(detection):
        mapping[match.group(1)] = match.group(2)

    targets_label = TARGETS_LABEL.search(detection)
    if targets_label:
        targets = _split_list(targets_label.group(1))
    else:
        targets = list(dict.fromkeys(mapping.values()))

    return DragAndDropData(items=list(mapping), targets=targets, correct_answer=mapping)


def _sentence_builder(detection: str) -> SentenceBuilderData:
    words = WORDS_LABEL.search(detection)
    return SentenceBuilderData(
        words=_split_list(words.group(1)) if words else [],
        correct_answer=_answer(detection) or "",
    )


def _essay(stem: str, detection: str) -> EssayData:
    min_words = MIN_WORDS_LABEL.search(detection)
    max_words = MAX_WORDS_LABEL.search(detection)
    return EssayData(
        prompt=stem,
        min_words=_to_int(min_words.group(1), None) if min_words else None,
        max_words=_to_int(max_words.group(1), None) if max_words else None,
        correct_answer=_answer(detection) or "",
    )


def _split_list(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _to_int(value: str, default: int | None) -> int | None:
    match = re.match(r"\s*(\d+)", value)
    return int(match.group(1)) if match else default
