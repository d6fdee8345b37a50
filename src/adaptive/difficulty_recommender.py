"""
Difficulty Recommender.

Turns a PerformanceModel snapshot plus a target domain/company into a
recommended difficulty tier with reasoning and confidence, and plans adaptive
quizzes around that recommendation.

Scoring:
- Base tier from a weighted score of accuracy, consistency and velocity
- One-tier nudges from domain, company and learning-pattern signals
- Confidence grows with sample size and consistency, capped at 0.95
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from src.adaptive.errors import RecommendationError
from src.adaptive.models import DifficultyTier, PerformanceModel, Severity
from src.adaptive.performance import new_performance_model
from src.adaptive.questions import Question, QuestionGenerator

# Weighted score thresholds, highest first
BASE_TIER_THRESHOLDS: tuple[tuple[float, DifficultyTier], ...] = (
    (85, DifficultyTier.EXPERT),
    (70, DifficultyTier.HARD),
    (55, DifficultyTier.MEDIUM),
)

ACCURACY_MULTIPLIERS: dict[DifficultyTier, float] = {
    DifficultyTier.EASY: 1.2,
    DifficultyTier.MEDIUM: 1.0,
    DifficultyTier.HARD: 0.8,
    DifficultyTier.EXPERT: 0.6,
}

MASTERY_BASE_WEEKS: dict[DifficultyTier, int] = {
    DifficultyTier.EASY: 2,
    DifficultyTier.MEDIUM: 4,
    DifficultyTier.HARD: 8,
    DifficultyTier.EXPERT: 16,
}

TIER_OBJECTIVES: dict[DifficultyTier, list[str]] = {
    DifficultyTier.EASY: [
        "Build foundational knowledge and confidence",
        "Establish consistent study habits",
        "Achieve 80%+ accuracy before advancing",
    ],
    DifficultyTier.MEDIUM: [
        "Strengthen core concepts and problem-solving skills",
        "Improve response time and efficiency",
        "Maintain 70%+ accuracy consistently",
    ],
    DifficultyTier.HARD: [
        "Master advanced concepts and complex scenarios",
        "Develop strategic thinking and optimization skills",
        "Achieve 60%+ accuracy on challenging problems",
    ],
    DifficultyTier.EXPERT: [
        "Excel in cutting-edge and specialized topics",
        "Demonstrate thought leadership and innovation",
        "Maintain 50%+ accuracy on expert-level challenges",
    ],
}

MAX_CONFIDENCE = 0.95


@dataclass
class DifficultyRecommendation:
    """Recommended tier for the next practice session."""

    recommended_difficulty: DifficultyTier
    confidence: float
    reasoning: list[str]
    alternative_difficulties: list[DifficultyTier]
    expected_accuracy: float
    learning_objectives: list[str]
    estimated_time_to_mastery: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "recommended_difficulty": self.recommended_difficulty.value,
            "confidence": self.confidence,
            "reasoning": list(self.reasoning),
            "alternative_difficulties": [t.value for t in self.alternative_difficulties],
            "expected_accuracy": self.expected_accuracy,
            "learning_objectives": list(self.learning_objectives),
            "estimated_time_to_mastery": self.estimated_time_to_mastery,
        }


@dataclass
class AdaptiveQuizPlan:
    """Per-question difficulty plan for an adaptive quiz."""

    recommendation: DifficultyRecommendation
    difficulty_progression: list[DifficultyTier]
    focus_areas: list[str]
    adaptation_reasoning: str
    expected_outcomes: list[str]
    next_recommendations: list[str]
    questions: list[Question] = field(default_factory=list)

    @property
    def request_difficulty(self) -> DifficultyTier:
        """
        Most common tier in the progression.

        Ties go to the tier that appears later, which is the harder one since
        the progression never steps down.
        """
        counts: dict[DifficultyTier, int] = {}
        for tier in self.difficulty_progression:
            counts[tier] = counts.get(tier, 0) + 1
        best = self.recommendation.recommended_difficulty
        best_count = 0
        for tier, count in counts.items():
            if count >= best_count:
                best, best_count = tier, count
        return best


class DifficultyRecommender:
    """
    Recommend a difficulty tier from a learner's performance history.

    Stateless; a single instance can be shared.
    """

    def recommend(
        self,
        model: PerformanceModel | None,
        domain: str,
        company: str,
    ) -> DifficultyRecommendation:
        """
        Recommend a tier for practice in a domain/company.

        Args:
            model: Performance snapshot (None is treated as a brand-new learner)
            domain: Target domain
            company: Target company

        Returns:
            DifficultyRecommendation

        Raises:
            RecommendationError: If the snapshot is malformed or scoring fails
        """
        model = model or new_performance_model("anonymous")
        try:
            self._validate(model)
            return self._recommend(model, domain, company)
        except RecommendationError:
            raise
        except Exception as e:  # Intentionally broad - classify any fault for the caller
            logger.error(f"Difficulty recommendation failed for {model.user_id}: {e}")
            raise RecommendationError(f"Failed to recommend difficulty: {e}") from e

    def _recommend(self, model: PerformanceModel, domain: str, company: str) -> DifficultyRecommendation:
        accuracy = model.accuracy
        tier = self.base_tier(accuracy, model.consistency_score, model.learning_velocity)
        reasoning: list[str] = []

        domain_record = model.find_domain(domain)
        if domain_record is not None:
            if domain_record.accuracy > 80:
                tier = tier.next_tier()
            elif domain_record.accuracy < 50:
                tier = tier.previous_tier()
            reasoning.append(f"Domain performance: {domain_record.accuracy:.1f}% accuracy in {domain}")

        company_record = model.find_company(company)
        if company_record is not None:
            if company_record.accuracy > 85:
                tier = tier.next_tier()
            elif company_record.accuracy < 40:
                tier = tier.previous_tier()
            reasoning.append(
                f"Company-specific performance: {company_record.accuracy:.1f}% accuracy for {company}"
            )

        velocity = model.learning_velocity
        consistency = model.consistency_score
        if velocity > 80 and consistency > 75:
            tier = tier.next_tier()
        elif consistency < 50:
            tier = tier.previous_tier()
        pace = "fast" if velocity > 70 else "steady"
        reasoning.append(f"Learning velocity: {velocity:.1f}% indicates {pace} progress")
        # Names the final tier, after every adjustment
        reasoning.insert(0, f"Overall accuracy of {accuracy:.1f}% suggests {tier.value} level")

        recommendation = DifficultyRecommendation(
            recommended_difficulty=tier,
            confidence=self.confidence(model, domain, company),
            reasoning=reasoning,
            alternative_difficulties=tier.neighbours(),
            expected_accuracy=self.expected_accuracy(accuracy, tier),
            learning_objectives=self.learning_objectives(model, tier),
            estimated_time_to_mastery=self.estimate_time_to_mastery(tier, velocity),
        )
        logger.info(
            f"Recommended {tier.value} for {model.user_id} in {domain}/{company} "
            f"(confidence={recommendation.confidence:.2f})"
        )
        return recommendation

    @staticmethod
    def _validate(model: PerformanceModel) -> None:
        if model.total_questions < 0 or model.correct_answers < 0 or model.total_quizzes < 0:
            raise RecommendationError("Performance counts cannot be negative")
        if model.correct_answers > model.total_questions:
            raise RecommendationError(
                f"Correct answers ({model.correct_answers}) exceed total questions ({model.total_questions})"
            )
        for name, value in (
            ("learning velocity", model.learning_velocity),
            ("consistency score", model.consistency_score),
        ):
            if not 0 <= value <= 100:
                raise RecommendationError(f"{name.capitalize()} must be within 0-100, got {value}")

    # ------------------------------------------------------------------
    # Scoring helpers
    # ------------------------------------------------------------------

    @staticmethod
    def weighted_score(accuracy: float, consistency: float, velocity: float) -> float:
        return accuracy * 0.5 + consistency * 0.3 + velocity * 0.2

    @classmethod
    def base_tier(cls, accuracy: float, consistency: float, velocity: float) -> DifficultyTier:
        score = cls.weighted_score(accuracy, consistency, velocity)
        for threshold, tier in BASE_TIER_THRESHOLDS:
            if score >= threshold:
                return tier
        return DifficultyTier.EASY

    @staticmethod
    def confidence(model: PerformanceModel, domain: str, company: str) -> float:
        confidence = 0.6
        if model.total_quizzes > 10:
            confidence += 0.1
        if model.total_quizzes > 25:
            confidence += 0.1

        domain_record = model.find_domain(domain)
        if domain_record is not None and domain_record.questions_answered > 20:
            confidence += 0.1

        company_record = model.find_company(company)
        if company_record is not None and company_record.questions_answered > 15:
            confidence += 0.1

        if model.consistency_score > 70:
            confidence += 0.1

        return min(MAX_CONFIDENCE, round(confidence, 2))

    @staticmethod
    def expected_accuracy(accuracy: float, tier: DifficultyTier) -> float:
        return min(95.0, accuracy * ACCURACY_MULTIPLIERS[tier])

    @staticmethod
    def learning_objectives(model: PerformanceModel, tier: DifficultyTier) -> list[str]:
        objectives = list(TIER_OBJECTIVES[tier])
        for weakness in model.weakness_areas:
            if weakness.severity in (Severity.HIGH, Severity.CRITICAL):
                objectives.append(f"Address weakness in {weakness.area}")
        return objectives

    @staticmethod
    def estimate_time_to_mastery(tier: DifficultyTier, velocity: float) -> str:
        """Rough time to master a tier, shorter for fast learners."""
        weeks = max(1, round(MASTERY_BASE_WEEKS[tier] * 100 / max(20.0, velocity)))
        if weeks == 1:
            return "1 week"
        if weeks < 4:
            return f"{weeks} weeks"
        return f"{round(weeks / 4)} months"

    # ------------------------------------------------------------------
    # Adaptive quizzes
    # ------------------------------------------------------------------

    def plan_adaptive_quiz(
        self,
        model: PerformanceModel | None,
        domain: str,
        company: str,
        question_count: int = 10,
    ) -> AdaptiveQuizPlan:
        """
        Plan the per-question difficulty of an adaptive quiz.

        Raises:
            RecommendationError: If the count is invalid or the recommendation fails
        """
        if question_count < 1:
            raise RecommendationError("An adaptive quiz needs at least one question")

        model = model or new_performance_model("anonymous")
        recommendation = self.recommend(model, domain, company)
        try:
            progression = self.difficulty_progression(
                recommendation.recommended_difficulty,
                question_count,
                model.learning_velocity,
            )
            focus_areas = [
                w.area for w in model.weakness_areas if w.severity.is_critical
            ][:3]
            return AdaptiveQuizPlan(
                recommendation=recommendation,
                difficulty_progression=progression,
                focus_areas=focus_areas,
                adaptation_reasoning=self._adaptation_reasoning(recommendation, focus_areas, progression),
                expected_outcomes=self._expected_outcomes(progression, focus_areas),
                next_recommendations=self._next_recommendations(model, recommendation),
            )
        except Exception as e:  # Intentionally broad - classify any fault for the caller
            logger.error(f"Adaptive quiz planning failed for {model.user_id}: {e}")
            raise RecommendationError(f"Failed to plan adaptive quiz: {e}") from e

    async def generate_adaptive_quiz(
        self,
        model: PerformanceModel | None,
        generator: QuestionGenerator,
        domain: str,
        company: str,
        role: str,
        question_count: int = 10,
    ) -> AdaptiveQuizPlan:
        """Plan an adaptive quiz and fetch its questions from the generator."""
        plan = self.plan_adaptive_quiz(model, domain, company, question_count)
        plan.questions = await generator.generate(
            domain=domain,
            company=company,
            role=role,
            difficulty=plan.request_difficulty,
            count=question_count,
        )
        return plan

    @staticmethod
    def difficulty_progression(
        base: DifficultyTier,
        question_count: int,
        velocity: float,
    ) -> list[DifficultyTier]:
        """Fast learners step up one tier after 30% of the quiz and two after 70%."""
        progression = []
        for index in range(question_count):
            ratio = index / (question_count - 1) if question_count > 1 else 0.0
            steps = 0
            if velocity > 70 and ratio > 0.3:
                steps = 1
            if velocity > 85 and ratio > 0.7:
                steps = 2
            progression.append(base.shift(steps))
        return progression

    @staticmethod
    def _adaptation_reasoning(
        recommendation: DifficultyRecommendation,
        focus_areas: list[str],
        progression: list[DifficultyTier],
    ) -> str:
        reasoning = (
            f"Selected {recommendation.recommended_difficulty.value} difficulty "
            f"based on your performance profile. "
        )
        if focus_areas:
            reasoning += f"Focusing on improvement areas: {', '.join(focus_areas)}. "

        distinct = list(dict.fromkeys(progression))
        if len(distinct) > 1:
            path = " → ".join(t.value for t in distinct)
            reasoning += f"Questions will progress through {path} to challenge your growth."
        return reasoning.strip()

    @staticmethod
    def _expected_outcomes(progression: list[DifficultyTier], focus_areas: list[str]) -> list[str]:
        target = " and ".join(focus_areas) if focus_areas else "target areas"
        outcomes = [
            f"Improved performance in {target}",
            "Better understanding of your current skill level",
            "Personalized recommendations for continued learning",
        ]
        if len(set(progression)) > 1:
            outcomes.append("Experience with progressive difficulty challenges")
        return outcomes

    @staticmethod
    def _next_recommendations(
        model: PerformanceModel,
        recommendation: DifficultyRecommendation,
    ) -> list[str]:
        recommendations = [
            f"Continue practicing at {recommendation.recommended_difficulty.value} level"
        ]
        if model.consistency_score < 70:
            recommendations.append("Focus on consistency by taking regular quizzes")
        if model.weakness_areas:
            areas = ", ".join(w.area for w in model.weakness_areas[:2])
            recommendations.append(f"Address weakness areas: {areas}")
        return recommendations
