"""
Weakness Analyzer.

Classifies a learner's weakness areas by severity, trend, root cause, impact
and urgency, and picks the areas a study session should focus on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from loguru import logger

from src.adaptive.errors import AnalysisError
from src.adaptive.models import DifficultyTier, PerformanceModel, Severity, WeaknessArea

TREND_WINDOW = 10
TREND_MIN_POINTS = 3
RECENT_QUIZ_DAYS = 30
MAX_FOCUS_AREAS = 3
MAX_CRITICAL_FOCUS = 2


class TrendDirection(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


@dataclass
class TrendAnalysis:
    """Score trend of one area over its most recent quizzes."""

    direction: TrendDirection
    rate: float
    confidence: float
    recent_scores: list[float] = field(default_factory=list)  # oldest first
    projected_improvement: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "direction": self.direction.value,
            "rate": self.rate,
            "confidence": self.confidence,
            "recent_scores": list(self.recent_scores),
            "projected_improvement": self.projected_improvement,
        }


@dataclass
class IdentifiedWeakness:
    """A weakness area enriched with trend, causes and priority scores."""

    area: str
    severity: Severity
    accuracy: float
    questions_attempted: int
    average_time_spent: float
    difficulty_distribution: dict[DifficultyTier, int]
    trend: TrendAnalysis
    root_causes: list[str]
    impact_score: float
    urgency_score: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "area": self.area,
            "severity": self.severity.value,
            "accuracy": self.accuracy,
            "questions_attempted": self.questions_attempted,
            "average_time_spent": self.average_time_spent,
            "difficulty_distribution": {t.value: c for t, c in self.difficulty_distribution.items()},
            "trend": self.trend.to_dict(),
            "root_causes": list(self.root_causes),
            "impact_score": self.impact_score,
            "urgency_score": self.urgency_score,
        }


@dataclass
class WeaknessAnalysis:
    """Ranked weakness groups plus the recommended focus areas."""

    critical_weaknesses: list[IdentifiedWeakness]
    moderate_weaknesses: list[IdentifiedWeakness]
    improving_areas: list[IdentifiedWeakness]
    analysis_confidence: float
    recommended_focus_areas: list[str]

    @property
    def critical_count(self) -> int:
        return len(self.critical_weaknesses)

    @property
    def total_weaknesses(self) -> int:
        return len(self.critical_weaknesses) + len(self.moderate_weaknesses)

    def to_dict(self) -> dict[str, Any]:
        return {
            "critical_weaknesses": [w.to_dict() for w in self.critical_weaknesses],
            "moderate_weaknesses": [w.to_dict() for w in self.moderate_weaknesses],
            "improving_areas": [w.to_dict() for w in self.improving_areas],
            "analysis_confidence": self.analysis_confidence,
            "recommended_focus_areas": list(self.recommended_focus_areas),
        }


class WeaknessAnalyzer:
    """
    Analyze weakness areas of a PerformanceModel.

    Severity is always recomputed from accuracy. Time-dependent scores use the
    `now` passed to analyze() so results are reproducible.
    """

    def analyze(self, model: PerformanceModel, now: datetime | None = None) -> WeaknessAnalysis:
        """
        Classify and rank the learner's weaknesses.

        Raises:
            AnalysisError: If the analysis cannot be completed
        """
        now = now or datetime.now()
        try:
            enriched = [self.enrich(w, model, now) for w in model.weakness_areas]

            critical = sorted(
                (w for w in enriched if w.severity.is_critical),
                key=lambda w: w.impact_score,
                reverse=True,
            )
            moderate = sorted(
                (w for w in enriched if w.severity == Severity.MEDIUM),
                key=lambda w: w.urgency_score,
                reverse=True,
            )
            improving_names = {w.area for w in model.weakness_areas if w.improvement_trend > 0}
            improving = sorted(
                (w for w in enriched if w.area in improving_names),
                key=lambda w: w.trend.rate,
                reverse=True,
            )

            analysis = WeaknessAnalysis(
                critical_weaknesses=critical,
                moderate_weaknesses=moderate,
                improving_areas=improving,
                analysis_confidence=self.analysis_confidence(model, now),
                recommended_focus_areas=self.recommended_focus_areas(critical, moderate),
            )
        except Exception as e:  # Intentionally broad - classify any fault for the caller
            logger.error(f"Weakness analysis failed for {model.user_id}: {e}")
            raise AnalysisError(f"Failed to identify weaknesses: {e}") from e

        logger.info(
            f"Weakness analysis for {model.user_id}: {len(critical)} critical, "
            f"{len(moderate)} moderate, {len(improving)} improving"
        )
        return analysis

    def enrich(self, weakness: WeaknessArea, model: PerformanceModel, now: datetime) -> IdentifiedWeakness:
        domain = model.find_domain_containing(weakness.area)
        distribution = (
            dict(domain.difficulty_distribution)
            if domain is not None
            else {tier: 0 for tier in DifficultyTier}
        )
        return IdentifiedWeakness(
            area=weakness.area,
            severity=weakness.severity,
            accuracy=weakness.accuracy,
            questions_attempted=weakness.questions_attempted,
            average_time_spent=domain.average_time_spent if domain is not None else 0.0,
            difficulty_distribution=distribution,
            trend=self.trend(weakness, model),
            root_causes=self.root_causes(weakness, model),
            impact_score=self.impact_score(weakness),
            urgency_score=self.urgency_score(weakness, model, now),
        )

    @staticmethod
    def trend(weakness: WeaknessArea, model: PerformanceModel) -> TrendAnalysis:
        """
        Compare the older and newer halves of the area's last ten quizzes.

        recent_performance is most-recent-first; scores are reordered oldest
        first so a positive rate means the learner is improving.
        """
        needle = weakness.area.lower()
        matching = [p for p in model.recent_performance if needle in p.domain.lower()]
        scores = [p.score for p in reversed(matching[:TREND_WINDOW])]

        if len(scores) < TREND_MIN_POINTS:
            return TrendAnalysis(
                direction=TrendDirection.STABLE,
                rate=0.0,
                confidence=0.3,
                recent_scores=scores,
                projected_improvement=0.0,
            )

        middle = len(scores) // 2
        first_half, second_half = scores[:middle], scores[middle:]
        rate = sum(second_half) / len(second_half) - sum(first_half) / len(first_half)

        if rate > 2:
            direction = TrendDirection.IMPROVING
        elif rate < -2:
            direction = TrendDirection.DECLINING
        else:
            direction = TrendDirection.STABLE

        mean = sum(scores) / len(scores)
        variance = sum((s - mean) ** 2 for s in scores) / len(scores)
        confidence = max(0.3, min(0.95, 1 - variance / 1000))

        return TrendAnalysis(
            direction=direction,
            rate=rate,
            confidence=confidence,
            recent_scores=scores,
            projected_improvement=rate * 4,
        )

    @staticmethod
    def root_causes(weakness: WeaknessArea, model: PerformanceModel) -> list[str]:
        causes = []
        if weakness.accuracy < 40:
            causes.append("Fundamental knowledge gaps in core concepts")
        elif weakness.accuracy < 60:
            causes.append("Inconsistent application of learned concepts")

        if weakness.questions_attempted < 10:
            causes.append("Insufficient practice volume")

        domain = model.find_domain_containing(weakness.area)
        if domain is not None:
            easy = domain.difficulty_distribution.get(DifficultyTier.EASY, 0)
            hard = domain.difficulty_distribution.get(DifficultyTier.HARD, 0)
            if easy > hard * 3:
                causes.append("Over-reliance on easy difficulty questions")
            if domain.average_time_spent > 180:
                causes.append("Time management issues affecting performance")

        if weakness.improvement_trend < -0.1:
            causes.append("Declining performance indicates need for strategy change")

        return causes or ["Requires focused practice and review"]

    @staticmethod
    def impact_score(weakness: WeaknessArea) -> float:
        score = (
            weakness.severity.impact_weight
            + min(30, weakness.questions_attempted * 2)
            + max(0.0, 30 - weakness.accuracy * 0.3)
        )
        return min(100.0, score)

    @staticmethod
    def urgency_score(weakness: WeaknessArea, model: PerformanceModel, now: datetime) -> float:
        score = weakness.severity.urgency_weight

        if weakness.improvement_trend < -0.1:
            score += 30
        elif weakness.improvement_trend < 0:
            score += 15

        domain = model.find_domain_containing(weakness.area)
        if domain is not None and domain.last_attempted is not None:
            days_since = (now - domain.last_attempted).days
            if days_since < 7:
                score += 20
            elif days_since < 30:
                score += 10

        return float(min(100, score))

    @staticmethod
    def analysis_confidence(model: PerformanceModel, now: datetime) -> float:
        confidence = 0.5
        if model.total_quizzes > 20:
            confidence += 0.2
        if model.total_questions > 200:
            confidence += 0.1

        recent = [
            p for p in model.recent_performance
            if (now - p.date).total_seconds() < RECENT_QUIZ_DAYS * 86400
        ]
        if len(recent) >= 5:
            confidence += 0.1
        if model.consistency_score > 70:
            confidence += 0.1

        return min(0.95, round(confidence, 2))

    @staticmethod
    def recommended_focus_areas(
        critical: list[IdentifiedWeakness],
        moderate: list[IdentifiedWeakness],
    ) -> list[str]:
        focus = [w.area for w in critical[:MAX_CRITICAL_FOCUS]]
        remaining = MAX_FOCUS_AREAS - len(focus)
        focus.extend(w.area for w in moderate[:remaining])
        return focus
