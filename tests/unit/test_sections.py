"""
Unit tests for section classification and the section tree.

Run: pytest tests/unit/test_sections.py -v
"""
import pytest

from src.content.models import SectionType
from src.content.sections import build_section_tree, classify_section
from src.content.tokenizer import split_lines, tokenize_blocks


def tree_for(markdown: str):
    return build_section_tree(tokenize_blocks(markdown), split_lines(markdown))


class TestClassifySection:
    """Heading title -> section role."""

    @pytest.mark.parametrize(
        "title,expected",
        [
            ("Lesson Overview", SectionType.OVERVIEW),
            ("Overview", SectionType.OVERVIEW),
            ("Pre-Assessment", SectionType.ASSESSMENT),
            ("Formative Assessment", SectionType.ASSESSMENT),
            ("Mastery Check", SectionType.ASSESSMENT),
            ("Assessments", SectionType.ASSESSMENT),
            ("Learning Content", SectionType.CONTENT),
            ("Concept 2: Verbs", SectionType.CONTENT),
            ("Interactive Exercises", SectionType.EXERCISE),
            ("Exercise 3: Practice", SectionType.EXERCISE),
            ("Enrichment Activities", SectionType.ENRICHMENT),
            ("Challenge Problems", SectionType.ENRICHMENT),
            ("Teacher Notes", SectionType.NOTES),
            ("Parent Notes", SectionType.NOTES),
            ("Implementation Notes", SectionType.NOTES),
        ],
    )
    def test_primary_rules(self, title, expected):
        assert classify_section(title) == expected

    def test_case_insensitive(self):
        assert classify_section("LESSON OVERVIEW") == SectionType.OVERVIEW

    @pytest.mark.parametrize(
        "title,expected",
        [
            ("Unit Overview and Goals", SectionType.OVERVIEW),
            ("More exercises", SectionType.EXERCISE),
            ("Noun Quiz", SectionType.ASSESSMENT),
            ("Final assessment", SectionType.ASSESSMENT),
            ("Key concepts", SectionType.CONTENT),
            ("Optional enrichment", SectionType.ENRICHMENT),
            ("A note on spelling", SectionType.NOTES),
        ],
    )
    def test_fallback_keywords(self, title, expected):
        assert classify_section(title) == expected

    def test_unmatched_is_none(self):
        assert classify_section("What is a Noun?") == SectionType.NONE

    def test_first_rule_wins(self):
        """Overview rule is checked before the assessment keyword."""
        assert classify_section("Overview of the assessment") == SectionType.OVERVIEW


class TestSectionTree:
    """Hierarchy built from heading levels."""

    def test_levels_1_2_2_3_1(self):
        """Equal levels are siblings; deeper levels nest; level 1 starts a new root."""
        tree = tree_for("# A\n\n## B\n\n## C\n\n### D\n\n# E\n")
        assert [s.title for s in tree.root_sections()] == ["A", "E"]
        assert [s.title for s in tree.children(0)] == ["B", "C"]
        assert [s.title for s in tree.children(2)] == ["D"]
        assert tree.parent(3).title == "C"
        assert tree.parent(0) is None

    def test_child_level_exceeds_parent_level(self):
        tree = tree_for("# A\n\n### B\n\n## C\n\n#### D\n")
        for section in tree.walk():
            parent = tree.parent(section.index)
            if parent is not None:
                assert section.level > parent.level

    def test_skipped_level_nests_under_nearest(self):
        tree = tree_for("# A\n\n### B\n\n## C\n")
        assert [s.title for s in tree.children(0)] == ["B", "C"]

    def test_raw_content_is_body_until_next_heading(self):
        tree = tree_for("# A\n\nFirst paragraph.\n\n- item\n\n## B\n\nSecond.\n")
        assert tree[0].raw_content == "First paragraph.\n\n- item"
        assert tree[1].raw_content == "Second."

    def test_preamble_before_first_heading(self):
        tree = tree_for("Intro text.\n\n# A\n\nBody\n")
        assert tree.preamble == "Intro text."
        assert len(tree) == 1

    def test_no_headings(self):
        tree = tree_for("Just text.\n")
        assert len(tree) == 0
        assert tree.preamble == "Just text."

    def test_heading_inside_code_fence_is_ignored(self):
        tree = tree_for("# A\n\n```\n# not a heading\n```\n")
        assert len(tree) == 1
        assert "# not a heading" in tree[0].raw_content

    def test_setext_heading(self):
        tree = tree_for("Overview\n========\n\nBody\n")
        assert tree[0].title == "Overview"
        assert tree[0].level == 1
        assert tree[0].type == SectionType.OVERVIEW

    def test_walk_is_document_order(self):
        tree = tree_for("# A\n\n## B\n\n### C\n\n## D\n")
        assert [s.title for s in tree.walk()] == ["A", "B", "C", "D"]

    def test_subtree_markdown_includes_descendants(self):
        tree = tree_for("## Learning Content\n\n### Nouns\n\nA noun names a thing.\n\n## Exercises 1\n")
        assert tree.subtree_markdown(0) == "## Learning Content\n\n### Nouns\n\nA noun names a thing."

    def test_sections_are_classified(self):
        tree = tree_for("## Lesson Overview\n\n## Teacher Notes\n")
        assert [s.type for s in tree.walk()] == [SectionType.OVERVIEW, SectionType.NOTES]

    def test_unicode_line_separator_keeps_spans_aligned(self):
        tree = tree_for("# A\n\nIntro\u2028cont\n\n## B\n\nBody text\n")
        assert tree[1].title == "B"
        assert tree[1].raw_content == "Body text"
        assert "Intro\u2028cont" in tree[0].raw_content


class TestSplitLines:
    def test_only_newlines_break_lines(self):
        assert split_lines("a b\x0cc\r\nd\re\n") == ["a b\x0cc", "d", "e"]

    def test_blank_lines_kept(self):
        assert split_lines("a\n\nb") == ["a", "", "b"]
