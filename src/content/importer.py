"""
Bulk lesson import.

Compiles a batch of lesson documents independently. A failure in one document
is recorded against that document and the batch carries on.
"""
from __future__ import annotations

from collections.abc import Mapping

from loguru import logger

from config import Settings

from .extractor import LessonImporter
from .models import BulkImportResult, ImportErrorDetail, ImportResult


class BulkImporter:
    """Import many lesson documents with one LessonImporter."""

    def __init__(self, settings: Settings | None = None, validate: bool = False):
        self.importer = LessonImporter(settings=settings, validate=validate)

    def import_documents(self, documents: Mapping[str, str]) -> BulkImportResult:
        """
        Import every document in ``documents``.

        Args:
            documents: Mapping of filename -> markdown text, in import order

        Returns:
            BulkImportResult with one entry per document
        """
        results = BulkImportResult()

        for filename, markdown in documents.items():
            results.total_files += 1
            try:
                file_result = self.importer.import_markdown(markdown, filename)
            except Exception as e:
                logger.exception(f"Failed to import {filename}")
                file_result = ImportResult.build(
                    None,
                    [
                        ImportErrorDetail(
                            type="parsing",
                            message=f"Failed to parse markdown: {e}",
                            location=filename,
                        )
                    ],
                    [],
                )

            if file_result.success:
                results.successful += 1
            else:
                results.failed += 1
            results.results.append((filename, file_result))

        logger.info(
            f"Bulk import: {results.successful}/{results.total_files} succeeded, {results.failed} failed"
        )
        return results


def import_lessons(documents: Mapping[str, str], validate: bool = False) -> BulkImportResult:
    """Import a batch of lesson documents with default settings."""
    return BulkImporter(validate=validate).import_documents(documents)
