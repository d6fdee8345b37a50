"""
Adaptive Engine Data Models.

The PerformanceModel aggregate and the closed enums every engine component
reads. Records keep raw counts only; accuracy, severity and mastery are derived
properties so they can never drift from their numerator/denominator.

Design:
- DifficultyTier: ordinal Easy < Medium < Hard < Expert with clamped steps
- Severity / MasteryLevel / MasteryStatus: pure classifications
- SkillLevel: learner level used by path and study planning
- PerformanceModel: per-user aggregate with JSON-ready to_dict/from_dict
- QuizResult: one completed quiz, input to apply_quiz_result
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


def _percent(correct: int, total: int) -> float:
    """Accuracy in percent, 0 when nothing was answered."""
    if total <= 0:
        return 0.0
    return correct / total * 100


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_datetime(value: str | datetime | None) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


# =============================================================================
# Enums
# =============================================================================


class DifficultyTier(str, Enum):
    """
    Question difficulty tier.

    Ordered Easy < Medium < Hard < Expert. Comparisons use the ordinal rank,
    not the label text.
    """

    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"
    EXPERT = "Expert"

    @classmethod
    def parse(cls, label: str | DifficultyTier | None) -> DifficultyTier | None:
        """
        Normalize a tier label.

        Matching is case-insensitive and ignores surrounding whitespace.
        Returns None for labels that cannot be placed on the scale.
        """
        if isinstance(label, DifficultyTier):
            return label
        if not isinstance(label, str):
            return None
        normalized = label.strip().lower()
        for tier in cls:
            if tier.value.lower() == normalized:
                return tier
        return None

    @property
    def rank(self) -> int:
        """Zero-based position on the difficulty scale."""
        return list(DifficultyTier).index(self)

    def shift(self, steps: int) -> DifficultyTier:
        """Move along the scale, clamping at Easy and Expert."""
        tiers = list(DifficultyTier)
        index = max(0, min(len(tiers) - 1, self.rank + steps))
        return tiers[index]

    def next_tier(self) -> DifficultyTier:
        return self.shift(1)

    def previous_tier(self) -> DifficultyTier:
        return self.shift(-1)

    def neighbours(self) -> list[DifficultyTier]:
        """Immediate neighbours on the scale, easier first."""
        result = []
        if self.previous_tier() is not self:
            result.append(self.previous_tier())
        if self.next_tier() is not self:
            result.append(self.next_tier())
        return result

    @property
    def color(self) -> str:
        """Rich color for CLI display."""
        return {
            DifficultyTier.EASY: "green",
            DifficultyTier.MEDIUM: "cyan",
            DifficultyTier.HARD: "yellow",
            DifficultyTier.EXPERT: "red",
        }[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, DifficultyTier):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, DifficultyTier):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, DifficultyTier):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, DifficultyTier):
            return NotImplemented
        return self.rank >= other.rank

    def __str__(self) -> str:
        return self.value


class Severity(str, Enum):
    """Weakness severity, derived solely from accuracy."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @classmethod
    def from_accuracy(cls, accuracy: float) -> Severity:
        if accuracy < 30:
            return cls.CRITICAL
        elif accuracy < 45:
            return cls.HIGH
        elif accuracy < 60:
            return cls.MEDIUM
        else:
            return cls.LOW

    @property
    def is_critical(self) -> bool:
        """Critical and high weaknesses are treated as critical-priority."""
        return self in (Severity.CRITICAL, Severity.HIGH)

    @property
    def impact_weight(self) -> int:
        return {
            Severity.CRITICAL: 40,
            Severity.HIGH: 30,
            Severity.MEDIUM: 20,
            Severity.LOW: 10,
        }[self]

    @property
    def urgency_weight(self) -> int:
        return {
            Severity.CRITICAL: 50,
            Severity.HIGH: 35,
            Severity.MEDIUM: 20,
            Severity.LOW: 10,
        }[self]

    @property
    def color(self) -> str:
        """Rich color for CLI display."""
        return {
            Severity.CRITICAL: "bold red",
            Severity.HIGH: "red",
            Severity.MEDIUM: "yellow",
            Severity.LOW: "green",
        }[self]


class MasteryLevel(str, Enum):
    """Mastery of a tier, from accuracy and sample size together."""

    NOVICE = "novice"
    DEVELOPING = "developing"
    PROFICIENT = "proficient"
    ADVANCED = "advanced"
    EXPERT = "expert"

    @classmethod
    def from_results(cls, questions_answered: int, accuracy: float) -> MasteryLevel:
        if questions_answered >= 50 and accuracy >= 85:
            return cls.EXPERT
        if questions_answered >= 30 and accuracy >= 75:
            return cls.ADVANCED
        if questions_answered >= 20 and accuracy >= 65:
            return cls.PROFICIENT
        if questions_answered >= 10 and accuracy >= 50:
            return cls.DEVELOPING
        return cls.NOVICE

    @property
    def display_name(self) -> str:
        return self.value.title()


class MasteryStatus(str, Enum):
    """Coarse practice status of a tier."""

    NOT_STARTED = "not_started"
    LEARNING = "learning"
    PRACTICING = "practicing"
    MASTERED = "mastered"

    @classmethod
    def from_results(cls, questions_answered: int, accuracy: float) -> MasteryStatus:
        if questions_answered == 0:
            return cls.NOT_STARTED
        if questions_answered < 10:
            return cls.LEARNING
        if accuracy < 70:
            return cls.PRACTICING
        return cls.MASTERED

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


class SkillLevel(str, Enum):
    """Learner skill level used by learning paths and study plans."""

    NOVICE = "Novice"
    BEGINNER = "Beginner"
    DEVELOPING = "Developing"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    EXPERT = "Expert"

    @classmethod
    def parse(cls, label: str | SkillLevel) -> SkillLevel:
        if isinstance(label, SkillLevel):
            return label
        normalized = label.strip().lower()
        for level in cls:
            if level.value.lower() == normalized:
                return level
        raise ValueError(f"Unknown skill level: {label!r}")

    @property
    def rank(self) -> int:
        return list(SkillLevel).index(self)

    @property
    def difficulty(self) -> DifficultyTier:
        """Tier a learner at this level should practice on."""
        return _LEVEL_DIFFICULTY[self]

    @property
    def target_accuracy(self) -> float:
        """Accuracy expected from a learner working at this level."""
        return _LEVEL_TARGET_ACCURACY[self]

    def __str__(self) -> str:
        return self.value


_LEVEL_DIFFICULTY: dict[SkillLevel, DifficultyTier] = {
    SkillLevel.NOVICE: DifficultyTier.EASY,
    SkillLevel.BEGINNER: DifficultyTier.EASY,
    SkillLevel.DEVELOPING: DifficultyTier.MEDIUM,
    SkillLevel.INTERMEDIATE: DifficultyTier.MEDIUM,
    SkillLevel.ADVANCED: DifficultyTier.HARD,
    SkillLevel.EXPERT: DifficultyTier.EXPERT,
}

_LEVEL_TARGET_ACCURACY: dict[SkillLevel, float] = {
    SkillLevel.NOVICE: 60.0,
    SkillLevel.BEGINNER: 60.0,
    SkillLevel.DEVELOPING: 70.0,
    SkillLevel.INTERMEDIATE: 75.0,
    SkillLevel.ADVANCED: 80.0,
    SkillLevel.EXPERT: 85.0,
}


def _tier_distribution_to_dict(distribution: dict[DifficultyTier, int]) -> dict[str, int]:
    return {tier.value: count for tier, count in distribution.items()}


def _tier_distribution_from_dict(data: dict[str, int] | None) -> dict[DifficultyTier, int]:
    result: dict[DifficultyTier, int] = {}
    for label, count in (data or {}).items():
        tier = DifficultyTier.parse(label)
        if tier is not None:
            result[tier] = int(count)
    return result


# =============================================================================
# Performance records
# =============================================================================


@dataclass
class DomainPerformance:
    """Performance within one topic domain."""

    domain: str
    questions_answered: int = 0
    correct_answers: int = 0
    average_time_spent: float = 0.0  # seconds per question
    last_attempted: datetime | None = None
    difficulty_distribution: dict[DifficultyTier, int] = field(default_factory=dict)

    @property
    def accuracy(self) -> float:
        return _percent(self.correct_answers, self.questions_answered)

    def to_dict(self) -> dict[str, Any]:
        return {
            "domain": self.domain,
            "questions_answered": self.questions_answered,
            "correct_answers": self.correct_answers,
            "accuracy": self.accuracy,
            "average_time_spent": self.average_time_spent,
            "last_attempted": _iso(self.last_attempted),
            "difficulty_distribution": _tier_distribution_to_dict(self.difficulty_distribution),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DomainPerformance:
        return cls(
            domain=data["domain"],
            questions_answered=data.get("questions_answered", 0),
            correct_answers=data.get("correct_answers", 0),
            average_time_spent=data.get("average_time_spent", 0.0),
            last_attempted=_parse_datetime(data.get("last_attempted")),
            difficulty_distribution=_tier_distribution_from_dict(data.get("difficulty_distribution")),
        )


@dataclass
class CompanyPerformance:
    """Performance on questions targeted at one company."""

    company: str
    questions_answered: int = 0
    correct_answers: int = 0
    average_time_spent: float = 0.0
    last_attempted: datetime | None = None
    preferred_topics: list[str] = field(default_factory=list)

    @property
    def accuracy(self) -> float:
        return _percent(self.correct_answers, self.questions_answered)

    def to_dict(self) -> dict[str, Any]:
        return {
            "company": self.company,
            "questions_answered": self.questions_answered,
            "correct_answers": self.correct_answers,
            "accuracy": self.accuracy,
            "average_time_spent": self.average_time_spent,
            "last_attempted": _iso(self.last_attempted),
            "preferred_topics": list(self.preferred_topics),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CompanyPerformance:
        return cls(
            company=data["company"],
            questions_answered=data.get("questions_answered", 0),
            correct_answers=data.get("correct_answers", 0),
            average_time_spent=data.get("average_time_spent", 0.0),
            last_attempted=_parse_datetime(data.get("last_attempted")),
            preferred_topics=list(data.get("preferred_topics", [])),
        )


@dataclass
class DifficultyPerformance:
    """Performance at one difficulty tier."""

    difficulty: DifficultyTier
    questions_answered: int = 0
    correct_answers: int = 0
    average_time_spent: float = 0.0
    confidence_level: float = 0.0  # 0-100

    @property
    def accuracy(self) -> float:
        return _percent(self.correct_answers, self.questions_answered)

    @property
    def mastery_level(self) -> MasteryLevel:
        return MasteryLevel.from_results(self.questions_answered, self.accuracy)

    @property
    def mastery_status(self) -> MasteryStatus:
        return MasteryStatus.from_results(self.questions_answered, self.accuracy)

    def to_dict(self) -> dict[str, Any]:
        return {
            "difficulty": self.difficulty.value,
            "questions_answered": self.questions_answered,
            "correct_answers": self.correct_answers,
            "accuracy": self.accuracy,
            "average_time_spent": self.average_time_spent,
            "confidence_level": self.confidence_level,
            "mastery_level": self.mastery_level.value,
            "mastery_status": self.mastery_status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DifficultyPerformance:
        tier = DifficultyTier.parse(data["difficulty"])
        if tier is None:
            raise ValueError(f"Unknown difficulty tier: {data['difficulty']!r}")
        return cls(
            difficulty=tier,
            questions_answered=data.get("questions_answered", 0),
            correct_answers=data.get("correct_answers", 0),
            average_time_spent=data.get("average_time_spent", 0.0),
            confidence_level=data.get("confidence_level", 0.0),
        )


@dataclass
class WeaknessArea:
    """
    A domain the learner scored below the weakness threshold in.

    Severity, recommended actions and target difficulty are derived from
    accuracy, which is itself derived from the accumulated counts.
    """

    area: str
    questions_attempted: int = 0
    correct_answers: int = 0
    improvement_trend: float = 0.0

    @property
    def accuracy(self) -> float:
        return _percent(self.correct_answers, self.questions_attempted)

    @property
    def severity(self) -> Severity:
        return Severity.from_accuracy(self.accuracy)

    @property
    def target_difficulty(self) -> DifficultyTier:
        return DifficultyTier.EASY if self.accuracy < 40 else DifficultyTier.MEDIUM

    @property
    def recommended_actions(self) -> list[str]:
        if self.accuracy < 40:
            return [
                f"Review fundamental concepts in {self.area}",
                "Start with easier questions to build confidence",
                "Take more time to understand each question",
            ]
        if self.accuracy < 60:
            return [
                f"Practice more questions in {self.area}",
                "Focus on understanding explanations",
                "Review incorrect answers carefully",
            ]
        return []

    def to_dict(self) -> dict[str, Any]:
        return {
            "area": self.area,
            "questions_attempted": self.questions_attempted,
            "correct_answers": self.correct_answers,
            "accuracy": self.accuracy,
            "severity": self.severity.value,
            "improvement_trend": self.improvement_trend,
            "recommended_actions": self.recommended_actions,
            "target_difficulty": self.target_difficulty.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WeaknessArea:
        return cls(
            area=data["area"],
            questions_attempted=data.get("questions_attempted", 0),
            correct_answers=data.get("correct_answers", 0),
            improvement_trend=data.get("improvement_trend", 0.0),
        )


@dataclass
class RecentPerformance:
    """One completed quiz in the recent-performance window."""

    quiz_id: str
    date: datetime
    difficulty: DifficultyTier
    domain: str
    company: str
    time_spent: float  # total seconds
    questions_correct: int
    total_questions: int

    @property
    def score(self) -> float:
        return _percent(self.questions_correct, self.total_questions)

    def to_dict(self) -> dict[str, Any]:
        return {
            "quiz_id": self.quiz_id,
            "date": _iso(self.date),
            "score": self.score,
            "difficulty": self.difficulty.value,
            "domain": self.domain,
            "company": self.company,
            "time_spent": self.time_spent,
            "questions_correct": self.questions_correct,
            "total_questions": self.total_questions,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RecentPerformance:
        tier = DifficultyTier.parse(data["difficulty"])
        if tier is None:
            raise ValueError(f"Unknown difficulty tier: {data['difficulty']!r}")
        return cls(
            quiz_id=data["quiz_id"],
            date=_parse_datetime(data["date"]),
            difficulty=tier,
            domain=data.get("domain", ""),
            company=data.get("company", ""),
            time_spent=data.get("time_spent", 0.0),
            questions_correct=data.get("questions_correct", 0),
            total_questions=data.get("total_questions", 0),
        )


@dataclass
class PerformanceModel:
    """
    Per-user performance aggregate.

    Consumed by every engine component. Replaced wholesale after each quiz by
    apply_quiz_result; never mutated in place by the engine.
    """

    user_id: str
    total_quizzes: int = 0
    total_questions: int = 0
    correct_answers: int = 0
    domain_performance: list[DomainPerformance] = field(default_factory=list)
    company_performance: list[CompanyPerformance] = field(default_factory=list)
    difficulty_performance: list[DifficultyPerformance] = field(default_factory=list)
    weakness_areas: list[WeaknessArea] = field(default_factory=list)
    recent_performance: list[RecentPerformance] = field(default_factory=list)
    learning_velocity: float = 50.0
    consistency_score: float = 50.0
    last_updated: datetime | None = None

    @property
    def accuracy(self) -> float:
        return _percent(self.correct_answers, self.total_questions)

    @property
    def is_new(self) -> bool:
        return self.total_quizzes == 0

    def find_domain(self, domain: str) -> DomainPerformance | None:
        return next((d for d in self.domain_performance if d.domain == domain), None)

    def find_domain_containing(self, area: str) -> DomainPerformance | None:
        """First domain whose name contains the area, case-insensitive."""
        needle = area.lower()
        return next(
            (d for d in self.domain_performance if needle in d.domain.lower()),
            None,
        )

    def find_company(self, company: str) -> CompanyPerformance | None:
        return next((c for c in self.company_performance if c.company == company), None)

    def find_difficulty(self, tier: DifficultyTier) -> DifficultyPerformance | None:
        return next((d for d in self.difficulty_performance if d.difficulty == tier), None)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "user_id": self.user_id,
            "total_quizzes": self.total_quizzes,
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
            "accuracy": self.accuracy,
            "domain_performance": [d.to_dict() for d in self.domain_performance],
            "company_performance": [c.to_dict() for c in self.company_performance],
            "difficulty_performance": [d.to_dict() for d in self.difficulty_performance],
            "weakness_areas": [w.to_dict() for w in self.weakness_areas],
            "recent_performance": [r.to_dict() for r in self.recent_performance],
            "learning_velocity": self.learning_velocity,
            "consistency_score": self.consistency_score,
            "last_updated": _iso(self.last_updated),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PerformanceModel:
        """Create from dictionary. Derived fields in the payload are ignored."""
        return cls(
            user_id=data["user_id"],
            total_quizzes=data.get("total_quizzes", 0),
            total_questions=data.get("total_questions", 0),
            correct_answers=data.get("correct_answers", 0),
            domain_performance=[DomainPerformance.from_dict(d) for d in data.get("domain_performance", [])],
            company_performance=[CompanyPerformance.from_dict(c) for c in data.get("company_performance", [])],
            difficulty_performance=[
                DifficultyPerformance.from_dict(d) for d in data.get("difficulty_performance", [])
            ],
            weakness_areas=[WeaknessArea.from_dict(w) for w in data.get("weakness_areas", [])],
            recent_performance=[RecentPerformance.from_dict(r) for r in data.get("recent_performance", [])],
            learning_velocity=data.get("learning_velocity", 50.0),
            consistency_score=data.get("consistency_score", 50.0),
            last_updated=_parse_datetime(data.get("last_updated")),
        )


# =============================================================================
# Quiz results
# =============================================================================


@dataclass
class QuizResult:
    """A completed quiz, ready to be folded into a PerformanceModel."""

    domain: str
    company: str
    difficulty: DifficultyTier
    correct_answers: int
    total_questions: int
    time_spent: list[float] = field(default_factory=list)  # seconds per question
    quiz_id: str | None = None
    completed_at: datetime | None = None

    @property
    def accuracy(self) -> float:
        return _percent(self.correct_answers, self.total_questions)

    @property
    def total_time(self) -> float:
        return float(sum(self.time_spent))

    @property
    def average_time(self) -> float:
        """Mean seconds per question, 0 when no timings were captured."""
        if not self.time_spent:
            return 0.0
        return self.total_time / len(self.time_spent)

    def validate(self) -> None:
        """Raise ValueError when the counts cannot describe a real quiz."""
        if self.total_questions <= 0:
            raise ValueError("Quiz must contain at least one question")
        if self.correct_answers < 0:
            raise ValueError("Correct answers cannot be negative")
        if self.correct_answers > self.total_questions:
            raise ValueError(
                f"Correct answers ({self.correct_answers}) exceed total questions ({self.total_questions})"
            )
        if any(t < 0 or math.isnan(t) for t in self.time_spent):
            raise ValueError("Time spent per question must be non-negative")

    @classmethod
    def from_answers(
        cls,
        domain: str,
        company: str,
        difficulty: DifficultyTier,
        answers: list[str],
        expected: list[str],
        time_spent: list[float] | None = None,
    ) -> QuizResult:
        """Score submitted answers against the expected ones, position by position."""
        correct = sum(
            1 for index, answer in enumerate(answers)
            if index < len(expected) and answer == expected[index]
        )
        return cls(
            domain=domain,
            company=company,
            difficulty=difficulty,
            correct_answers=correct,
            total_questions=len(expected),
            time_spent=list(time_spent or []),
        )
