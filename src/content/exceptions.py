"""
Content exceptions.

Raised only at explicit API seams. Malformed lesson markdown is reported through
ImportResult issues, never through these.
"""
from __future__ import annotations


class ContentError(Exception):
    """Base class for lesson content errors."""


class ContentParseError(ContentError):
    """A lesson source could not be read or decoded."""

    def __init__(self, message: str, filename: str | None = None):
        self.filename = filename
        prefix = f"{filename}: " if filename else ""
        super().__init__(f"{prefix}{message}")


class ContentExportError(ContentError):
    """A lesson could not be rendered in the requested format."""
