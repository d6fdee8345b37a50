"""
Question types shared by the engine and question generation backends.

The engine never writes question content itself: it hands a tier label and a
count to a QuestionGenerator and receives the questions back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from src.adaptive.models import DifficultyTier


@dataclass
class Question:
    """A generated practice question."""

    id: str
    question: str
    answer: str
    difficulty: DifficultyTier
    options: list[str] = field(default_factory=list)
    explanation: str = ""
    domain: str = ""
    tags: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any], default_difficulty: DifficultyTier) -> Question:
        """Parse a question from a service payload."""
        return cls(
            id=str(data.get("id", "")),
            question=data.get("question", ""),
            answer=data.get("answer", ""),
            difficulty=DifficultyTier.parse(data.get("difficulty")) or default_difficulty,
            options=list(data.get("options", [])),
            explanation=data.get("explanation", ""),
            domain=data.get("domain", ""),
            tags=list(data.get("tags", [])),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "question": self.question,
            "answer": self.answer,
            "difficulty": self.difficulty.value,
            "options": list(self.options),
            "explanation": self.explanation,
            "domain": self.domain,
            "tags": list(self.tags),
        }


class QuestionGenerator(Protocol):
    """Anything that can turn a tier label and count into questions."""

    async def generate(
        self,
        domain: str,
        company: str,
        role: str,
        difficulty: DifficultyTier,
        count: int,
    ) -> list[Question]: ...
