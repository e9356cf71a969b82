"""
Lesson file loading.

Reads lesson markdown from disk for the bulk importer. This is the only part
of the content package that touches the file system.
"""
from __future__ import annotations

from pathlib import Path

from loguru import logger

from .exceptions import ContentParseError


class LessonLoader:
    """Load lesson documents from a file or directory."""

    def __init__(self, pattern: str = "*.md"):
        self.pattern = pattern

    def load_file(self, path: Path | str) -> str:
        """
        Read a single lesson file.

        Raises:
            ContentParseError: If the file is missing or not valid UTF-8
        """
        path = Path(path)
        if not path.is_file():
            raise ContentParseError("Lesson file not found", filename=str(path))
        try:
            return path.read_text(encoding="utf-8-sig")
        except UnicodeDecodeError as e:
            raise ContentParseError(f"Not valid UTF-8 ({e.reason})", filename=str(path)) from e

    def load_all(self, path: Path | str) -> tuple[dict[str, str], list[ContentParseError]]:
        """
        Read every matching lesson under ``path`` (recursively, sorted).

        A single file may also be given. Unreadable files are returned as
        errors instead of stopping the load.

        Returns:
            Tuple of (filename -> markdown, read errors)
        """
        path = Path(path)
        if path.is_file():
            files = [path]
        elif path.is_dir():
            files = sorted(path.rglob(self.pattern))
        else:
            raise ContentParseError("Content path not found", filename=str(path))

        documents: dict[str, str] = {}
        errors: list[ContentParseError] = []
        for file_path in files:
            try:
                documents[str(file_path)] = self.load_file(file_path)
            except ContentParseError as e:
                logger.warning(str(e))
                errors.append(e)

        logger.debug(f"Loaded {len(documents)} lesson files from {path}")
        return documents, errors
