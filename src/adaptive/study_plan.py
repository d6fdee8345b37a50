"""
Study Plan Generator.

Turns a weakness analysis and a target goal into a week-by-week schedule,
checkpoints, a difficulty progression and a focus-time distribution.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from loguru import logger

from src.adaptive.errors import PlanningError
from src.adaptive.models import DifficultyTier, PerformanceModel, Severity, SkillLevel
from src.adaptive.weakness_analyzer import IdentifiedWeakness, WeaknessAnalysis, WeaknessAnalyzer

BASE_WEEKLY_QUIZZES = 8
MINUTES_PER_QUIZ = 45
REVIEW_RATIO = 0.3
FOCUS_WINDOW = 3
GENERAL_FOCUS = "General practice"

ADAPTIVE_THRESHOLDS: dict[DifficultyTier, float] = {
    DifficultyTier.EASY: 75,
    DifficultyTier.MEDIUM: 70,
    DifficultyTier.HARD: 65,
    DifficultyTier.EXPERT: 60,
}

CHECKPOINT_REWARDS = ["Progress badge", "Personalized feedback report", "Next phase recommendations"]


@dataclass
class TargetGoals:
    target_role: str
    target_company: str
    timeframe_weeks: int
    current_level: SkillLevel
    target_level: SkillLevel


@dataclass
class StudyGoal:
    id: str
    title: str
    description: str
    target_accuracy: float
    target_difficulty: DifficultyTier
    estimated_quizzes: int
    priority: str  # 'high', 'medium', 'low'
    deadline_week: int
    prerequisites: list[str] = field(default_factory=list)
    success_criteria: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "target_accuracy": self.target_accuracy,
            "target_difficulty": self.target_difficulty.value,
            "estimated_quizzes": self.estimated_quizzes,
            "priority": self.priority,
            "deadline_week": self.deadline_week,
            "prerequisites": list(self.prerequisites),
            "success_criteria": list(self.success_criteria),
        }


@dataclass
class WeeklySchedule:
    week: int
    focus_areas: list[str]
    recommended_quizzes: int
    difficulty_mix: dict[DifficultyTier, float]
    practice_time: int  # minutes
    review_time: int  # minutes
    goals: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "week": self.week,
            "focus_areas": list(self.focus_areas),
            "recommended_quizzes": self.recommended_quizzes,
            "difficulty_mix": {t.value: pct for t, pct in self.difficulty_mix.items()},
            "practice_time": self.practice_time,
            "review_time": self.review_time,
            "goals": list(self.goals),
        }


@dataclass
class StudyMilestone:
    id: str
    title: str
    description: str
    target_week: int
    required_accuracy: float
    assessment_criteria: list[str] = field(default_factory=list)
    rewards: list[str] = field(default_factory=list)
    is_completed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "target_week": self.target_week,
            "required_accuracy": self.required_accuracy,
            "assessment_criteria": list(self.assessment_criteria),
            "rewards": list(self.rewards),
            "is_completed": self.is_completed,
        }


@dataclass
class ProgressionStep:
    week: int
    difficulty: DifficultyTier
    required_accuracy: float
    minimum_quizzes: int
    advancement_criteria: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "week": self.week,
            "difficulty": self.difficulty.value,
            "required_accuracy": self.required_accuracy,
            "minimum_quizzes": self.minimum_quizzes,
            "advancement_criteria": list(self.advancement_criteria),
        }


@dataclass
class DifficultyProgression:
    starting_difficulty: DifficultyTier
    target_difficulty: DifficultyTier
    progression_steps: list[ProgressionStep]
    adaptive_thresholds: dict[DifficultyTier, float] = field(
        default_factory=lambda: dict(ADAPTIVE_THRESHOLDS)
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "starting_difficulty": self.starting_difficulty.value,
            "target_difficulty": self.target_difficulty.value,
            "progression_steps": [s.to_dict() for s in self.progression_steps],
            "adaptive_thresholds": {t.value: v for t, v in self.adaptive_thresholds.items()},
        }


@dataclass
class FocusDistribution:
    """Percentages of study time; always sums to 100."""

    weakness_areas: int
    strength_reinforcement: int
    new_topics: int
    review: int

    def to_dict(self) -> dict[str, int]:
        return {
            "weakness_areas": self.weakness_areas,
            "strength_reinforcement": self.strength_reinforcement,
            "new_topics": self.new_topics,
            "review": self.review,
        }


@dataclass
class StudyPlan:
    plan_id: str
    user_id: str
    generated_at: datetime
    goals: list[StudyGoal]
    weekly_schedule: list[WeeklySchedule]
    milestones: list[StudyMilestone]
    difficulty_progression: DifficultyProgression
    focus_distribution: FocusDistribution
    estimated_duration: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "plan_id": self.plan_id,
            "user_id": self.user_id,
            "generated_at": self.generated_at.isoformat(),
            "goals": [g.to_dict() for g in self.goals],
            "weekly_schedule": [w.to_dict() for w in self.weekly_schedule],
            "milestones": [m.to_dict() for m in self.milestones],
            "difficulty_progression": self.difficulty_progression.to_dict(),
            "focus_distribution": self.focus_distribution.to_dict(),
            "estimated_duration": self.estimated_duration,
        }


class StudyPlanGenerator:
    """Compose weakness analysis and target goals into a weekly study plan."""

    def __init__(self, analyzer: WeaknessAnalyzer | None = None):
        self.analyzer = analyzer or WeaknessAnalyzer()

    def generate(
        self,
        model: PerformanceModel,
        goals: TargetGoals,
        analysis: WeaknessAnalysis | None = None,
        now: datetime | None = None,
    ) -> StudyPlan:
        """
        Build a plan covering goals.timeframe_weeks weeks.

        The weakness analysis is computed from the model when not supplied.

        Raises:
            PlanningError: If the timeframe is invalid or generation fails
        """
        if goals.timeframe_weeks < 1:
            raise PlanningError(f"Timeframe must be at least one week, got {goals.timeframe_weeks}")

        now = now or datetime.now()
        try:
            if analysis is None:
                analysis = self.analyzer.analyze(model, now)

            study_goals = self.study_goals(goals, analysis)
            plan = StudyPlan(
                plan_id=f"plan_{model.user_id}_{int(now.timestamp() * 1000)}",
                user_id=model.user_id,
                generated_at=now,
                goals=study_goals,
                weekly_schedule=self.weekly_schedule(
                    study_goals, analysis, goals.timeframe_weeks, model.learning_velocity
                ),
                milestones=self.checkpoints(goals.timeframe_weeks),
                difficulty_progression=self.difficulty_progression(
                    goals.current_level, goals.target_level, goals.timeframe_weeks
                ),
                focus_distribution=self.focus_distribution(analysis),
                estimated_duration=f"{goals.timeframe_weeks} weeks",
            )
        except Exception as e:  # Intentionally broad - classify any fault for the caller
            logger.error(f"Study plan generation failed for {model.user_id}: {e}")
            raise PlanningError(f"Failed to generate study plan: {e}") from e

        logger.info(
            f"Generated {goals.timeframe_weeks}-week study plan for {model.user_id} "
            f"with {len(study_goals)} goals"
        )
        return plan

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------

    @staticmethod
    def study_goals(goals: TargetGoals, analysis: WeaknessAnalysis) -> list[StudyGoal]:
        study_goals: list[StudyGoal] = []
        weakness_deadline = math.ceil(goals.timeframe_weeks * 0.6)

        for index, weakness in enumerate(analysis.critical_weaknesses):
            study_goals.append(
                StudyGoal(
                    id=f"goal_critical_{index}",
                    title=f"Master {weakness.area}",
                    description=f"Improve accuracy in {weakness.area} from {weakness.accuracy:.1f}% to 75%+",
                    target_accuracy=75,
                    target_difficulty=(
                        DifficultyTier.EASY if weakness.severity == Severity.CRITICAL else DifficultyTier.MEDIUM
                    ),
                    estimated_quizzes=max(15, math.ceil(weakness.questions_attempted * 1.5)),
                    priority="high",
                    deadline_week=weakness_deadline,
                    success_criteria=[
                        f"Achieve 75%+ accuracy in {weakness.area}",
                        "Complete at least 15 practice questions",
                        "Demonstrate consistent improvement over 2 weeks",
                    ],
                )
            )

        if goals.current_level != goals.target_level:
            level_gap = max(1, goals.target_level.rank - goals.current_level.rank)
            study_goals.append(
                StudyGoal(
                    id="goal_advancement",
                    title=f"Advance from {goals.current_level.value} to {goals.target_level.value}",
                    description=f"Progress through difficulty levels to reach {goals.target_level.value} proficiency",
                    target_accuracy=goals.target_level.target_accuracy,
                    target_difficulty=goals.target_level.difficulty,
                    estimated_quizzes=20 * level_gap,
                    priority="medium",
                    deadline_week=goals.timeframe_weeks,
                    prerequisites=[g.id for g in study_goals if g.priority == "high"],
                    success_criteria=[
                        f"Consistently perform at {goals.target_level.value} level",
                        "Master prerequisite skills",
                        f"Demonstrate readiness for {goals.target_company} interviews",
                    ],
                )
            )

        return study_goals

    # ------------------------------------------------------------------
    # Weekly schedule
    # ------------------------------------------------------------------

    def weekly_schedule(
        self,
        study_goals: list[StudyGoal],
        analysis: WeaknessAnalysis,
        total_weeks: int,
        velocity: float,
    ) -> list[WeeklySchedule]:
        focus_pool = self.prioritised_areas(analysis.critical_weaknesses, analysis.moderate_weaknesses)
        quizzes = self.recommended_quizzes(velocity)
        practice_time = quizzes * MINUTES_PER_QUIZ

        schedule = []
        for week in range(1, total_weeks + 1):
            progress = week / total_weeks
            schedule.append(
                WeeklySchedule(
                    week=week,
                    focus_areas=self.focus_areas_for_week(focus_pool, week, total_weeks),
                    recommended_quizzes=quizzes,
                    difficulty_mix=self.difficulty_mix(progress),
                    practice_time=practice_time,
                    review_time=round(practice_time * REVIEW_RATIO),
                    goals=[g.title for g in study_goals if g.deadline_week >= total_weeks - week],
                )
            )
        return schedule

    @staticmethod
    def prioritised_areas(
        critical: list[IdentifiedWeakness],
        moderate: list[IdentifiedWeakness],
    ) -> list[str]:
        return [w.area for w in [*critical, *moderate]]

    @staticmethod
    def focus_areas_for_week(pool: list[str], week: int, total_weeks: int) -> list[str]:
        """Three-area window that slides through the pool as the weeks pass."""
        if not pool:
            return [GENERAL_FOCUS]
        start = min(int((week - 1) / total_weeks * len(pool)), max(0, len(pool) - FOCUS_WINDOW))
        return pool[start:start + FOCUS_WINDOW]

    @staticmethod
    def recommended_quizzes(velocity: float) -> int:
        multiplier = max(0.5, min(1.5, velocity / 70))
        return round(BASE_WEEKLY_QUIZZES * multiplier)

    @staticmethod
    def difficulty_mix(progress: float) -> dict[DifficultyTier, float]:
        return {
            DifficultyTier.EASY: max(20.0, 40 - progress * 20),
            DifficultyTier.MEDIUM: 40.0,
            DifficultyTier.HARD: min(40.0, 20 + progress * 20),
        }

    # ------------------------------------------------------------------
    # Checkpoints and progression
    # ------------------------------------------------------------------

    @staticmethod
    def checkpoints(total_weeks: int) -> list[StudyMilestone]:
        weeks = [
            math.ceil(total_weeks * 0.25),
            math.ceil(total_weeks * 0.5),
            math.ceil(total_weeks * 0.75),
            total_weeks,
        ]
        milestones = []
        for index, week in enumerate(weeks):
            progress = (index + 1) / 4
            milestones.append(
                StudyMilestone(
                    id=f"milestone_{index + 1}_week_{week}",
                    title=f"Week {week} Checkpoint",
                    description="Assess progress and adjust study plan as needed",
                    target_week=week,
                    required_accuracy=60 + progress * 20,
                    assessment_criteria=[
                        f"Complete {math.ceil(progress * 100)}% of planned quizzes",
                        "Achieve target accuracy in focus areas",
                        "Demonstrate improvement in identified weaknesses",
                    ],
                    rewards=list(CHECKPOINT_REWARDS),
                )
            )
        return milestones

    @staticmethod
    def difficulty_progression(
        current_level: SkillLevel,
        target_level: SkillLevel,
        total_weeks: int,
    ) -> DifficultyProgression:
        start = current_level.difficulty
        target = target_level.difficulty
        tiers = list(DifficultyTier)

        steps = []
        for week in range(1, total_weeks + 1):
            progress = week / total_weeks
            index = math.floor(start.rank + progress * (target.rank - start.rank))
            required = 60 + progress * 20
            steps.append(
                ProgressionStep(
                    week=week,
                    difficulty=tiers[max(0, min(len(tiers) - 1, index))],
                    required_accuracy=required,
                    minimum_quizzes=math.ceil(BASE_WEEKLY_QUIZZES * (1 + progress * 0.5)),
                    advancement_criteria=[
                        f"Maintain {required:.0f}% accuracy",
                        "Complete minimum quiz requirements",
                        "Show consistent improvement trend",
                    ],
                )
            )

        return DifficultyProgression(
            starting_difficulty=start,
            target_difficulty=target,
            progression_steps=steps,
        )

    @staticmethod
    def focus_distribution(analysis: WeaknessAnalysis) -> FocusDistribution:
        if analysis.total_weaknesses == 0:
            return FocusDistribution(weakness_areas=30, strength_reinforcement=40, new_topics=20, review=10)

        if analysis.critical_count >= 2:
            weakness = 60
        elif analysis.critical_count >= 1:
            weakness = 50
        else:
            weakness = 40

        review = 10
        remaining = 100 - weakness - review
        strength = round(remaining * 2 / 3)
        return FocusDistribution(
            weakness_areas=weakness,
            strength_reinforcement=strength,
            new_topics=remaining - strength,
            review=review,
        )
