"""Shared test fixtures for Kiroku tests."""

from __future__ import annotations

from typing import Any

import pytest


@pytest.fixture
def book_data() -> dict[str, Any]:
    """An export data tree with two chapters of annotations."""
    return {
        "title": "The Great Gatsby",
        "author": "F. Scott Fitzgerald",
        "exportDate": "2024-01-15",
        "chapters": [
            {
                "title": "Chapter 1",
                "annotations": [
                    {
                        "text": "In my younger and more vulnerable years",
                        "note": "Opening line",
                        "style": "highlight",
                        "color": "yellow",
                        "timestamp": 1705312800000,
                    },
                    {
                        "text": "So we beat on, boats against the current",
                        "note": "",
                        "style": "underline",
                        "color": "blue",
                        "timestamp": 1705316400000,
                    },
                ],
            },
            {
                "title": "Chapter 2",
                "annotations": [
                    {
                        "text": "The eyes of Doctor T. J. Eckleburg",
                        "note": "Symbolism",
                        "style": "highlight",
                        "color": "green",
                        "timestamp": 1705320000000,
                    },
                ],
            },
        ],
    }
