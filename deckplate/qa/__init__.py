"""QA validation package.

Reads exported decks back and checks slide count, canvas size, titles,
table grids and leftover placeholders.
"""

from .validator import (
    DeckValidator,
    Issue,
    QAResult,
    validate_presentation,
)

__all__ = [
    "DeckValidator",
    "Issue",
    "QAResult",
    "validate_presentation",
]
