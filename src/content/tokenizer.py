"""
Block tokenizer.

Thin layer over markdown-it-py that reports the top-level blocks of a markdown
body with their source line spans. Heading detection follows CommonMark, so
``#`` lines inside fenced code are not headings and setext headings are.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

from markdown_it import MarkdownIt

# Same line breaks markdown-it counts in token.map
_LINE_BREAK = re.compile(r"\r\n?|\n")

_BLOCK_TYPES = {
    "heading_open": "heading",
    "paragraph_open": "paragraph",
    "bullet_list_open": "list",
    "ordered_list_open": "list",
    "table_open": "table",
    "fence": "code",
    "code_block": "code",
    "blockquote_open": "quote",
    "hr": "rule",
    "html_block": "html",
}


@dataclass(frozen=True)
class Block:
    """A top-level markdown block. ``end_line`` is exclusive."""

    type: str
    start_line: int
    end_line: int
    text: str
    level: int | None = None


@lru_cache(maxsize=1)
def _markdown() -> MarkdownIt:
    return MarkdownIt("commonmark").enable("table")


def split_lines(text: str) -> list[str]:
    """
    Split ``text`` into source lines numbered the way block spans are.

    Only ``\\n``, ``\\r\\n`` and ``\\r`` end a line. ``str.splitlines`` also
    breaks on U+2028 and other separators, which shifts every later span.
    """
    lines = _LINE_BREAK.split(text)
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def tokenize_blocks(text: str) -> list[Block]:
    """Tokenize ``text`` into top-level blocks in document order."""
    lines = split_lines(text)
    tokens = _markdown().parse(text)
    blocks: list[Block] = []

    for index, token in enumerate(tokens):
        if token.level != 0 or token.map is None:
            continue
        block_type = _BLOCK_TYPES.get(token.type)
        if block_type is None:
            continue

        start, end = token.map
        if block_type == "heading":
            inline = tokens[index + 1]
            blocks.append(
                Block(
                    type=block_type,
                    start_line=start,
                    end_line=end,
                    text=inline.content.strip(),
                    level=int(token.tag[1]),
                )
            )
        else:
            blocks.append(
                Block(
                    type=block_type,
                    start_line=start,
                    end_line=end,
                    text="\n".join(lines[start:end]),
                )
            )

    return blocks
