"""
Section classification and hierarchy.

Headings are classified by title into lesson roles (overview, content,
exercise, ...) and arranged into a tree by heading level. The tree is an
arena: sections are addressed by index and point at their parent by index.
"""
from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

from loguru import logger

from .models import SectionType
from .tokenizer import Block

# First match wins. Patterns are anchored at the start of the title.
_PRIMARY_RULES: list[tuple[SectionType, re.Pattern[str]]] = [
    (SectionType.OVERVIEW, re.compile(r"^(?:lesson overview|overview)", re.IGNORECASE)),
    (
        SectionType.ASSESSMENT,
        re.compile(
            r"^(?:pre-assessment|formative assessment|summative assessment"
            r"|assessment|mastery check|retention check)",
            re.IGNORECASE,
        ),
    ),
    (SectionType.CONTENT, re.compile(r"^(?:learning content|concept \d+)", re.IGNORECASE)),
    (
        SectionType.EXERCISE,
        re.compile(r"^(?:interactive exercises?|exercises? \d+|practice exercises?)", re.IGNORECASE),
    ),
    (SectionType.ENRICHMENT, re.compile(r"^(?:enrichment|challenge)", re.IGNORECASE)),
    (SectionType.NOTES, re.compile(r"^(?:teacher|parent|implementation) notes", re.IGNORECASE)),
]

_FALLBACK_KEYWORDS: list[tuple[tuple[str, ...], SectionType]] = [
    (("overview",), SectionType.OVERVIEW),
    (("exercise",), SectionType.EXERCISE),
    (("assessment", "quiz"), SectionType.ASSESSMENT),
    (("concept",), SectionType.CONTENT),
    (("enrichment",), SectionType.ENRICHMENT),
    (("note",), SectionType.NOTES),
]


def classify_section(title: str) -> SectionType:
    """Map a heading title to its lesson role."""
    text = title.strip()
    for section_type, pattern in _PRIMARY_RULES:
        if pattern.match(text):
            return section_type

    lowered = text.lower()
    for keywords, section_type in _FALLBACK_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return section_type

    return SectionType.NONE


@dataclass(frozen=True)
class Section:
    """A heading and the body text up to the next heading."""

    index: int
    title: str
    level: int
    type: SectionType
    raw_content: str
    parent_index: int | None = None
    children: tuple[int, ...] = ()
    start_line: int = 0

    @property
    def heading(self) -> str:
        return f"{'#' * self.level} {self.title}"


@dataclass(frozen=True)
class SectionTree:
    """Immutable section hierarchy of one lesson body."""

    sections: tuple[Section, ...] = ()
    roots: tuple[int, ...] = ()
    preamble: str = ""

    def __len__(self) -> int:
        return len(self.sections)

    def __getitem__(self, index: int) -> Section:
        return self.sections[index]

    def root_sections(self) -> list[Section]:
        return [self.sections[i] for i in self.roots]

    def children(self, index: int) -> list[Section]:
        return [self.sections[i] for i in self.sections[index].children]

    def parent(self, index: int) -> Section | None:
        parent_index = self.sections[index].parent_index
        return None if parent_index is None else self.sections[parent_index]

    def walk(self) -> Iterator[Section]:
        """Depth-first traversal; for a heading tree this is document order."""
        return iter(self.sections)

    def descendants(self, index: int) -> Iterator[Section]:
        stack = list(reversed(self.sections[index].children))
        while stack:
            section = self.sections[stack.pop()]
            yield section
            stack.extend(reversed(section.children))

    def subtree_markdown(self, index: int) -> str:
        """Re-serialize a section with its heading and all descendants."""
        parts: list[str] = []
        for section in (self.sections[index], *self.descendants(index)):
            parts.append(section.heading)
            if section.raw_content:
                parts.append(section.raw_content)
        return "\n\n".join(parts)

    def has_ancestor_of_type(self, index: int, section_type: SectionType) -> bool:
        parent = self.parent(index)
        while parent is not None:
            if parent.type == section_type:
                return True
            parent = self.parent(parent.index)
        return False


def build_section_tree(blocks: list[Block], source_lines: list[str]) -> SectionTree:
    """
    Arrange heading blocks into a tree.

    Each heading owns the verbatim source lines between it and the next
    heading. Text before the first heading becomes the tree's preamble.

    Args:
        blocks: Tokenizer output for the body
        source_lines: The body split into lines (same numbering as blocks)

    Returns:
        SectionTree with sections in document order
    """
    headings = [block for block in blocks if block.type == "heading"]
    if not headings:
        return SectionTree(preamble="\n".join(source_lines).strip())

    preamble = "\n".join(source_lines[: headings[0].start_line]).strip()

    parents: list[int | None] = []
    children: list[list[int]] = [[] for _ in headings]
    roots: list[int] = []
    stack: list[int] = []

    for index, heading in enumerate(headings):
        while stack and headings[stack[-1]].level >= heading.level:
            stack.pop()
        if stack:
            parents.append(stack[-1])
            children[stack[-1]].append(index)
        else:
            parents.append(None)
            roots.append(index)
        stack.append(index)

    sections = []
    for index, heading in enumerate(headings):
        body_end = headings[index + 1].start_line if index + 1 < len(headings) else len(source_lines)
        raw_content = "\n".join(source_lines[heading.end_line : body_end]).strip()
        section_type = classify_section(heading.text)
        logger.debug(f"Section '{heading.text}' (h{heading.level}) -> {section_type.value}")
        sections.append(
            Section(
                index=index,
                title=heading.text,
                level=heading.level or 1,
                type=section_type,
                raw_content=raw_content,
                parent_index=parents[index],
                children=tuple(children[index]),
                start_line=heading.start_line,
            )
        )

    return SectionTree(sections=tuple(sections), roots=tuple(roots), preamble=preamble)
