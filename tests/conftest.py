"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import pytest
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


SAMPLE_LESSON = """---
title: "Test Lesson: Parts of Speech"
description: "Learn about nouns and their usage"
difficulty: beginner
estimatedMinutes: 45
masteryThreshold: 0.85
tags: ["grammar", "parts-of-speech"]
prerequisites: []
unitId: unit-1
---

# Unit 1, Lesson 1: Parts of Speech - Nouns

## Lesson Overview

Nouns are the building blocks of sentences.

**Learning Objectives:**

- Identify common and proper nouns
- Use nouns correctly in sentences

**Estimated Time:** 45 minutes

## Learning Content

### What is a Noun?

A noun is a word that names a person, place, thing, or idea.

### Concept 1: Common vs Proper Nouns

Proper nouns name specific things and are capitalized.

## Interactive Exercises

### Exercise 1: Noun Identification

**Instructions:** "Choose the noun in each sentence."

**Type:** practice

1. **Which word is a noun?**
   - a) run
   - b) table ✓
   - c) quickly
   - d) blue
   Hint: "A noun names a thing."
   **Feedback if correct:** "Great job!"
   **Feedback if incorrect:** "Look for the thing."

2. **Fill in the blank: The ___ barked loudly.**
   Answer: dog

### Exercise 2: Noun Challenge

**Type:** challenge

1. **Which is a proper noun?**
   - a) city
   - b) Paris ✓

## Assessments

### Mastery Check: Nouns

1. **Which word is a noun?**
   - a) happy
   - b) teacher ✓

## Teacher Notes

Encourage students to find nouns around the classroom.
"""


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def settings():
    """Settings with library defaults (no .env lookup)."""
    from config import Settings

    return Settings(_env_file=None)


@pytest.fixture
def sample_lesson_markdown():
    """Provide a complete lesson document."""
    return SAMPLE_LESSON


@pytest.fixture
def sample_curriculum():
    """Two units; unit-2 requires unit-1. Three lessons, one objective."""
    from src.graph import CurriculumSnapshot

    return CurriculumSnapshot.model_validate(
        {
            "units": [
                {"id": "unit-1", "title": "Parts of Speech", "order_index": 0, "mastery_threshold": 0.9},
                {
                    "id": "unit-2",
                    "title": "Sentence Structure",
                    "order_index": 1,
                    "mastery_threshold": 0.9,
                    "prerequisite_units": ["unit-1"],
                },
            ],
            "lessons": [
                {"id": "lesson-1", "unit_id": "unit-1", "title": "Nouns", "order_index": 0, "estimated_minutes": 30},
                {"id": "lesson-2", "unit_id": "unit-1", "title": "Verbs", "order_index": 1, "estimated_minutes": 30},
                {
                    "id": "lesson-3",
                    "unit_id": "unit-2",
                    "title": "Complex Sentences",
                    "order_index": 0,
                    "estimated_minutes": 40,
                },
            ],
            "objectives": [
                {"id": "obj-1", "title": "Identify nouns", "unit_id": "unit-1", "lesson_id": "lesson-1"},
            ],
            "exercises": [
                {"id": "exercise-1", "lesson_id": "lesson-1", "title": "Noun Practice", "type": "practice", "order_index": 0},
                {
                    "id": "exercise-2",
                    "lesson_id": "lesson-1",
                    "title": "Noun Enrichment",
                    "type": "enrichment",
                    "order_index": 1,
                },
            ],
            "assessments": [
                {"id": "assessment-1", "lesson_id": "lesson-1", "title": "Noun Quiz", "type": "summative"},
            ],
        }
    )
