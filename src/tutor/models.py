"""
Tutoring session models.

A ConversationSession is the whole state of one Socratic tutoring session:
the problem, the message history, the current learning step and the learner's
progress. to_dict()/from_dict() round-trip every field.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class StepType(str, Enum):
    """Phases of working through a problem, in order."""

    UNDERSTANDING = "understanding"
    APPROACH = "approach"
    IMPLEMENTATION = "implementation"
    OPTIMIZATION = "optimization"

    @property
    def next(self) -> StepType:
        """Following step, clamped at optimization."""
        steps = list(StepType)
        return steps[min(steps.index(self) + 1, len(steps) - 1)]

    @property
    def is_terminal(self) -> bool:
        return self is StepType.OPTIMIZATION

    @property
    def description(self) -> str:
        return {
            StepType.UNDERSTANDING: "Understanding the problem requirements and constraints",
            StepType.APPROACH: "Developing the algorithmic approach and strategy",
            StepType.IMPLEMENTATION: "Implementing the solution with proper code structure",
            StepType.OPTIMIZATION: "Optimizing for time and space complexity",
        }[self]


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class MessageType(str, Enum):
    QUESTION = "question"
    HINT = "hint"
    ENCOURAGEMENT = "encouragement"
    CORRECTION = "correction"
    RESPONSE = "response"


@dataclass
class TutorMessage:
    id: str
    role: MessageRole
    content: str
    type: MessageType
    timestamp: datetime
    step_number: int
    concepts_introduced: list[str] = field(default_factory=list)
    code_review: dict[str, Any] | None = None

    @property
    def is_user(self) -> bool:
        return self.role is MessageRole.USER

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role.value,
            "content": self.content,
            "type": self.type.value,
            "timestamp": self.timestamp.isoformat(),
            "step_number": self.step_number,
            "concepts_introduced": list(self.concepts_introduced),
            "code_review": self.code_review,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TutorMessage:
        return cls(
            id=data["id"],
            role=MessageRole(data["role"]),
            content=data["content"],
            type=MessageType(data.get("type", MessageType.RESPONSE.value)),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            step_number=data.get("step_number", 1),
            concepts_introduced=list(data.get("concepts_introduced", [])),
            code_review=data.get("code_review"),
        )


@dataclass
class Problem:
    """A practice problem under discussion."""

    id: str
    title: str
    description: str
    difficulty: str  # 'easy', 'medium', 'hard'
    tags: list[str] = field(default_factory=list)
    constraints: list[str] = field(default_factory=list)
    examples: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "difficulty": self.difficulty,
            "tags": list(self.tags),
            "constraints": list(self.constraints),
            "examples": [dict(e) for e in self.examples],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Problem:
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description", ""),
            difficulty=data.get("difficulty", "medium"),
            tags=list(data.get("tags", [])),
            constraints=list(data.get("constraints", [])),
            examples=[dict(e) for e in data.get("examples", [])],
        )


@dataclass
class LearningStep:
    step_number: int
    step_type: StepType
    description: str
    completed: bool = False

    @classmethod
    def first(cls) -> LearningStep:
        return cls(step_number=1, step_type=StepType.UNDERSTANDING, description=StepType.UNDERSTANDING.description)

    def to_dict(self) -> dict[str, Any]:
        return {
            "step_number": self.step_number,
            "step_type": self.step_type.value,
            "description": self.description,
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LearningStep:
        return cls(
            step_number=data["step_number"],
            step_type=StepType(data["step_type"]),
            description=data.get("description", ""),
            completed=data.get("completed", False),
        )


@dataclass
class ProgressMetrics:
    understanding: float = 0.0  # 0-100
    implementation: float = 0.0  # 0-100
    optimization: float = 0.0  # 0-100
    hints_used: int = 0
    concepts_learned: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "understanding": self.understanding,
            "implementation": self.implementation,
            "optimization": self.optimization,
            "hints_used": self.hints_used,
            "concepts_learned": list(self.concepts_learned),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProgressMetrics:
        return cls(
            understanding=data.get("understanding", 0.0),
            implementation=data.get("implementation", 0.0),
            optimization=data.get("optimization", 0.0),
            hints_used=data.get("hints_used", 0),
            concepts_learned=list(data.get("concepts_learned", [])),
        )


@dataclass
class ConversationSession:
    id: str
    user_id: str
    problem: Problem
    conversation_history: list[TutorMessage] = field(default_factory=list)
    current_step: LearningStep = field(default_factory=LearningStep.first)
    user_progress: ProgressMetrics = field(default_factory=ProgressMetrics)
    created_at: datetime = field(default_factory=datetime.now)
    last_activity: datetime = field(default_factory=datetime.now)

    @property
    def user_messages(self) -> list[TutorMessage]:
        return [m for m in self.conversation_history if m.is_user]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "problem": self.problem.to_dict(),
            "conversation_history": [m.to_dict() for m in self.conversation_history],
            "current_step": self.current_step.to_dict(),
            "user_progress": self.user_progress.to_dict(),
            "created_at": self.created_at.isoformat(),
            "last_activity": self.last_activity.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConversationSession:
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            problem=Problem.from_dict(data["problem"]),
            conversation_history=[TutorMessage.from_dict(m) for m in data.get("conversation_history", [])],
            current_step=(
                LearningStep.from_dict(data["current_step"])
                if data.get("current_step")
                else LearningStep.first()
            ),
            user_progress=ProgressMetrics.from_dict(data.get("user_progress", {})),
            created_at=datetime.fromisoformat(data["created_at"]),
            last_activity=datetime.fromisoformat(data["last_activity"]),
        )
