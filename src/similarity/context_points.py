"""Extraction of fine-grained context points from a context document.

Context points are short statements (bullets, questions, a headline)
embedded independently so a match can be explained by the specific
interest it hit rather than the document as a whole.
"""

import re
from dataclasses import dataclass
from enum import Enum

from src.similarity.constants import (
    MAX_BULLET_LENGTH,
    MAX_CONTEXT_POINTS,
    MIN_BULLET_LENGTH,
    MIN_QUESTION_LENGTH,
)


_BULLET_PATTERN = re.compile(r"^[-*]\s+(.+)$", re.MULTILINE)
_QUESTION_PATTERN = re.compile(r"^[-*]?\s*(.+\?)$", re.MULTILINE)
_BUILDING_PATTERN = re.compile(r"\*\*([^*]+)\*\*\s*[—–-]\s*([^.\n]+)")


class ContextPointKind(str, Enum):
    """Kind of context point, which drives the explanation wording."""

    BULLET = "bullet"
    QUESTION = "question"
    BUILDING = "building"


@dataclass(frozen=True)
class ContextPoint:
    """A single statement taken from the context document.

    Attributes:
        text: Statement text.
        kind: Where the statement came from.
    """

    text: str
    kind: ContextPointKind

    def explain(self) -> str:
        """Render a one-line explanation for an item matching this point."""
        if self.kind == ContextPointKind.QUESTION:
            return f'May help answer: "{self.text}"'
        if self.kind == ContextPointKind.BUILDING:
            return f"Relevant to {self.text}"
        return f'Matches your interest: "{self.text}"'


def extract_context_points(context: str) -> list[ContextPoint]:
    """Extract bullets, questions and the headline from a context document.

    Args:
        context: Context document text (markdown).

    Returns:
        Up to MAX_CONTEXT_POINTS points in document order, bullets first.
    """
    points: list[ContextPoint] = []

    for match in _BULLET_PATTERN.finditer(context):
        point = match.group(1).strip()
        if MIN_BULLET_LENGTH < len(point) < MAX_BULLET_LENGTH:
            points.append(ContextPoint(text=point, kind=ContextPointKind.BULLET))

    seen = {p.text for p in points}
    for match in _QUESTION_PATTERN.finditer(context):
        question = match.group(1).strip()
        if len(question) > MIN_QUESTION_LENGTH and question not in seen:
            points.append(ContextPoint(text=question, kind=ContextPointKind.QUESTION))
            seen.add(question)

    building = _BUILDING_PATTERN.search(context)
    if building:
        points.append(
            ContextPoint(
                text=f"{building.group(1).strip()}: {building.group(2).strip()}",
                kind=ContextPointKind.BUILDING,
            )
        )

    return points[:MAX_CONTEXT_POINTS]
