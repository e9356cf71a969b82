"""
Content: lesson markdown compiler.

Core modules:
- frontmatter: ``---`` metadata block parsing
- tokenizer: markdown-it-py block spans
- sections: heading classification and section tree
- questions: numbered question parsing
- extractor: markdown -> ParsedLessonData
- validator: structural checks on compiled lessons
- exporter: ParsedLessonData -> markdown / JSON
- importer: bulk import
- loader: reading lesson files from disk
"""

from .exceptions import ContentError, ContentExportError, ContentParseError
from .exporter import ContentExporter, export_lesson
from .extractor import LessonImporter, import_lesson_from_markdown
from .frontmatter import parse_frontmatter
from .importer import BulkImporter, import_lessons
from .loader import LessonLoader
from .models import (
    Assessment,
    BulkImportResult,
    Exercise,
    ExportOptions,
    ImportErrorDetail,
    ImportResult,
    ImportWarningDetail,
    LearningObjective,
    LessonMetadata,
    ParsedLessonData,
    Question,
    SectionType,
)
from .sections import Section, SectionTree, build_section_tree, classify_section
from .tokenizer import Block, tokenize_blocks
from .validator import ContentValidator, validate_lesson_data

__all__ = [
    # Pipeline
    "parse_frontmatter",
    "tokenize_blocks",
    "Block",
    "classify_section",
    "build_section_tree",
    "Section",
    "SectionTree",
    "LessonImporter",
    "import_lesson_from_markdown",
    "ContentValidator",
    "validate_lesson_data",
    "ContentExporter",
    "export_lesson",
    "BulkImporter",
    "import_lessons",
    "LessonLoader",
    # Models
    "Assessment",
    "BulkImportResult",
    "Exercise",
    "ExportOptions",
    "ImportErrorDetail",
    "ImportResult",
    "ImportWarningDetail",
    "LearningObjective",
    "LessonMetadata",
    "ParsedLessonData",
    "Question",
    "SectionType",
    # Errors
    "ContentError",
    "ContentExportError",
    "ContentParseError",
]
