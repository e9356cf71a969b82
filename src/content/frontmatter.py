"""
Frontmatter parsing for lesson markdown.

A lesson may open with a ``---`` delimited block of ``key: value`` lines.
Values are inferred as bool, list, number or string. The parser never raises:
anything it cannot make sense of degrades to "no frontmatter".
"""
from __future__ import annotations

import json
import re
from typing import Union

from loguru import logger

from .tokenizer import split_lines

FrontmatterValue = Union[str, int, float, bool, list[str]]
Frontmatter = dict[str, FrontmatterValue]

DELIMITER = "---"

_NUMBER_PATTERN = re.compile(r"^-?\d+(?:\.\d+)?$")


def parse_frontmatter(document: str) -> tuple[Frontmatter | None, str]:
    """
    Split a lesson document into its frontmatter and body.

    Args:
        document: Raw markdown text

    Returns:
        Tuple of (frontmatter or None, body). When no closed frontmatter block
        opens the document, the body is the whole document.
    """
    lines = split_lines(document)
    if not lines or lines[0].strip() != DELIMITER:
        return None, document

    closing = None
    for index in range(1, len(lines)):
        if lines[index].strip() == DELIMITER:
            closing = index
            break

    if closing is None:
        return None, document

    body = "\n".join(lines[closing + 1 :])

    try:
        frontmatter = _parse_block(lines[1:closing])
    except Exception as e:
        logger.warning(f"Ignoring unreadable frontmatter block: {e}")
        return None, body

    logger.debug(f"Parsed frontmatter keys: {', '.join(frontmatter) or '(none)'}")
    return frontmatter, body


def _parse_block(lines: list[str]) -> Frontmatter:
    frontmatter: Frontmatter = {}
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if ":" not in stripped:
            continue
        key, _, raw_value = stripped.partition(":")
        key = key.strip()
        if not key:
            continue
        frontmatter[key] = parse_value(raw_value)
    return frontmatter


def parse_value(raw: str) -> FrontmatterValue:
    """Infer the type of a single frontmatter value."""
    value = raw.strip()
    if not value:
        return ""

    if value in ("true", "false"):
        return value == "true"

    if value.startswith("[") and value.endswith("]"):
        return _parse_list(value)

    if _NUMBER_PATTERN.match(value):
        return float(value) if "." in value else int(value)

    return _strip_quotes(value)


def _parse_list(value: str) -> list[str]:
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        parsed = None

    if isinstance(parsed, list):
        return [item if isinstance(item, str) else json.dumps(item) for item in parsed]

    inner = value[1:-1]
    return [_strip_quotes(part.strip()) for part in inner.split(",") if part.strip()]


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value
