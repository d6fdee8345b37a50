"""
Real-time difficulty calibration.

Runs mid-quiz, so it must never interrupt the learner: any fault results in
"keep the current difficulty" rather than an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from loguru import logger

from src.adaptive.models import DifficultyTier, PerformanceModel

DEFAULT_EXPECTED_ACCURACY: dict[DifficultyTier, float] = {
    DifficultyTier.EASY: 0.8,
    DifficultyTier.MEDIUM: 0.65,
    DifficultyTier.HARD: 0.5,
    DifficultyTier.EXPERT: 0.35,
}

# Seconds per question considered efficient, inclusive
TIME_WINDOWS: dict[DifficultyTier, tuple[float, float]] = {
    DifficultyTier.EASY: (15, 45),
    DifficultyTier.MEDIUM: (30, 90),
    DifficultyTier.HARD: (60, 180),
    DifficultyTier.EXPERT: (120, 300),
}

INCREASE_MARGIN = 0.3
DECREASE_MARGIN = -0.4

REASON_INCREASE = "User is performing significantly above expectations with efficient timing"
REASON_DECREASE = "User is struggling with current difficulty level"
REASON_MAINTAIN = "Current difficulty level is appropriate for user performance"
REASON_ERROR = "Error in calibration - maintaining current difficulty"


@dataclass
class QuizProgress:
    """Counters of a quiz in progress."""

    questions_answered: int
    correct_answers: int
    average_time_per_question: float  # seconds
    current_difficulty: str | DifficultyTier


@dataclass
class CalibrationResult:
    should_adjust: bool
    reasoning: str
    confidence: float
    new_difficulty: DifficultyTier | None = None
    time_analysis: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "should_adjust": self.should_adjust,
            "new_difficulty": self.new_difficulty.value if self.new_difficulty else None,
            "reasoning": self.reasoning,
            "confidence": self.confidence,
            "time_analysis": self.time_analysis,
        }


def _maintain(time_analysis: str = "") -> CalibrationResult:
    return CalibrationResult(
        should_adjust=False,
        reasoning=REASON_MAINTAIN,
        confidence=0.75,
        time_analysis=time_analysis,
    )


class RealTimeCalibrator:
    """Decide whether to move the difficulty of an in-progress quiz."""

    def calibrate(self, model: PerformanceModel | None, progress: QuizProgress) -> CalibrationResult:
        """
        Compare live accuracy and pace with what the tier expects.

        Unknown tier labels and quizzes with no answers yet keep the current
        difficulty. Never raises.
        """
        try:
            tier = DifficultyTier.parse(progress.current_difficulty)
            if tier is None:
                logger.warning(f"Unrecognized difficulty {progress.current_difficulty!r}; skipping calibration")
                return _maintain()
            if progress.questions_answered <= 0:
                return _maintain()

            current_accuracy = progress.correct_answers / progress.questions_answered
            expected = self.expected_accuracy(model, tier)
            difference = current_accuracy - expected
            efficient, time_analysis = self.analyze_time(progress.average_time_per_question, tier)

            if difference > INCREASE_MARGIN and efficient:
                target = tier.next_tier()
                if target is not tier:
                    logger.info(f"Calibration: raising {tier.value} -> {target.value} (diff={difference:+.2f})")
                    return CalibrationResult(
                        should_adjust=True,
                        new_difficulty=target,
                        reasoning=REASON_INCREASE,
                        confidence=0.85,
                        time_analysis=time_analysis,
                    )
            elif difference < DECREASE_MARGIN and not efficient:
                target = tier.previous_tier()
                if target is not tier:
                    logger.info(f"Calibration: lowering {tier.value} -> {target.value} (diff={difference:+.2f})")
                    return CalibrationResult(
                        should_adjust=True,
                        new_difficulty=target,
                        reasoning=REASON_DECREASE,
                        confidence=0.9,
                        time_analysis=time_analysis,
                    )

            return _maintain(time_analysis)

        except Exception as e:  # Intentionally broad - calibration must not interrupt a quiz
            logger.error(f"Calibration failed: {e}")
            return CalibrationResult(should_adjust=False, reasoning=REASON_ERROR, confidence=0.5)

    @staticmethod
    def expected_accuracy(model: PerformanceModel | None, tier: DifficultyTier) -> float:
        """Learner's own accuracy at the tier (0-1), falling back to tier defaults."""
        if model is not None:
            record = model.find_difficulty(tier)
            if record is not None:
                return record.accuracy / 100
        return DEFAULT_EXPECTED_ACCURACY[tier]

    @staticmethod
    def analyze_time(average_time: float, tier: DifficultyTier) -> tuple[bool, str]:
        low, high = TIME_WINDOWS[tier]
        if average_time < low:
            return False, "Answering too quickly - may indicate guessing"
        if average_time > high:
            return False, "Taking longer than expected - may indicate difficulty"
        return True, "Time usage is appropriate for difficulty level"
