"""
Learning Path Planner.

Builds an ordered milestone chain from the learner's current level to the
level a target role/company calls for, with a duration estimate scaled by
learning velocity.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from loguru import logger

from src.adaptive.calibrator import CalibrationResult
from src.adaptive.errors import PlanningError
from src.adaptive.models import DifficultyTier, PerformanceModel, SkillLevel, _iso, _parse_datetime

SENIOR_ROLE_KEYWORDS = ("Senior", "Lead", "Principal", "Staff")
TOP_TIER_COMPANIES = frozenset({"Google", "Apple", "Microsoft", "Amazon", "Meta"})

LEVEL_SKILLS: dict[SkillLevel, list[str]] = {
    SkillLevel.NOVICE: ["Basic syntax", "Simple algorithms", "Data types"],
    SkillLevel.BEGINNER: ["Basic syntax", "Simple algorithms", "Data types"],
    SkillLevel.DEVELOPING: ["Control structures", "Functions", "Basic data structures"],
    SkillLevel.INTERMEDIATE: ["Object-oriented programming", "Algorithms", "Problem solving"],
    SkillLevel.ADVANCED: ["System design", "Optimization", "Complex algorithms"],
    SkillLevel.EXPERT: ["Architecture patterns", "Performance tuning", "Leadership"],
}

ROLE_SKILLS: dict[str, list[str]] = {
    "Frontend Developer": ["React", "JavaScript", "CSS", "HTML", "TypeScript"],
    "Backend Developer": ["APIs", "Databases", "Server architecture", "Security"],
    "Full Stack Developer": ["Frontend frameworks", "Backend systems", "Databases", "DevOps"],
    "Data Scientist": ["Statistics", "Machine learning", "Python", "Data analysis"],
    "DevOps Engineer": ["CI/CD", "Infrastructure", "Monitoring", "Automation"],
}

COMPANY_SKILLS: dict[str, list[str]] = {
    "Google": ["System design", "Scalability", "Googleyness", "Leadership"],
    "Amazon": ["Leadership principles", "Customer obsession", "Ownership", "Bias for action"],
    "Microsoft": ["Collaboration", "Growth mindset", "Customer focus", "Diversity"],
    "Meta": ["Move fast", "Be bold", "Focus on impact", "Be open"],
    "Apple": ["Innovation", "Attention to detail", "User experience", "Quality"],
}
DEFAULT_COMPANY_SKILLS = ["Communication", "Problem solving", "Teamwork"]


@dataclass(frozen=True)
class _MilestoneTemplate:
    id: str
    title: str
    description: str
    difficulty: DifficultyTier
    required_accuracy: float
    base_quizzes: int
    skills: tuple[str, ...]
    minimum_target: SkillLevel


MILESTONE_TEMPLATES: tuple[_MilestoneTemplate, ...] = (
    _MilestoneTemplate(
        "milestone_1", "Foundation Building", "Master fundamental concepts",
        DifficultyTier.EASY, 80, 10, ("Basic Problem Solving", "Core Concepts"), SkillLevel.NOVICE,
    ),
    _MilestoneTemplate(
        "milestone_2", "Intermediate Mastery", "Handle moderate complexity problems",
        DifficultyTier.MEDIUM, 70, 15, ("Advanced Problem Solving", "System Thinking"), SkillLevel.NOVICE,
    ),
    _MilestoneTemplate(
        "milestone_3", "Advanced Proficiency", "Excel at complex scenarios",
        DifficultyTier.HARD, 60, 20, ("Complex Problem Solving", "Optimization"), SkillLevel.ADVANCED,
    ),
    _MilestoneTemplate(
        "milestone_4", "Expert Level", "Master expert-level challenges",
        DifficultyTier.EXPERT, 50, 25, ("Expert Problem Solving", "Innovation"), SkillLevel.EXPERT,
    ),
)


@dataclass
class LearningMilestone:
    id: str
    title: str
    description: str
    target_difficulty: DifficultyTier
    required_accuracy: float
    estimated_quizzes: int
    skills: list[str] = field(default_factory=list)
    prerequisites: list[str] = field(default_factory=list)
    is_completed: bool = False
    completed_date: datetime | None = None
    actual_quizzes_taken: int | None = None
    actual_accuracy: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "target_difficulty": self.target_difficulty.value,
            "required_accuracy": self.required_accuracy,
            "estimated_quizzes": self.estimated_quizzes,
            "skills": list(self.skills),
            "prerequisites": list(self.prerequisites),
            "is_completed": self.is_completed,
            "completed_date": _iso(self.completed_date),
            "actual_quizzes_taken": self.actual_quizzes_taken,
            "actual_accuracy": self.actual_accuracy,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LearningMilestone:
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description", ""),
            target_difficulty=DifficultyTier.parse(data["target_difficulty"]) or DifficultyTier.MEDIUM,
            required_accuracy=data.get("required_accuracy", 0.0),
            estimated_quizzes=data.get("estimated_quizzes", 0),
            skills=list(data.get("skills", [])),
            prerequisites=list(data.get("prerequisites", [])),
            is_completed=data.get("is_completed", False),
            completed_date=_parse_datetime(data.get("completed_date")),
            actual_quizzes_taken=data.get("actual_quizzes_taken"),
            actual_accuracy=data.get("actual_accuracy"),
        )


@dataclass
class AdaptiveAdjustment:
    """A difficulty change applied while following a path."""

    date: datetime
    reason: str
    previous_difficulty: DifficultyTier
    new_difficulty: DifficultyTier
    adjustment_type: str  # 'increase', 'decrease', 'maintain'
    confidence: float
    expected_impact: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": _iso(self.date),
            "reason": self.reason,
            "previous_difficulty": self.previous_difficulty.value,
            "new_difficulty": self.new_difficulty.value,
            "adjustment_type": self.adjustment_type,
            "confidence": self.confidence,
            "expected_impact": self.expected_impact,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AdaptiveAdjustment:
        return cls(
            date=_parse_datetime(data["date"]),
            reason=data.get("reason", ""),
            previous_difficulty=DifficultyTier.parse(data["previous_difficulty"]) or DifficultyTier.MEDIUM,
            new_difficulty=DifficultyTier.parse(data["new_difficulty"]) or DifficultyTier.MEDIUM,
            adjustment_type=data.get("adjustment_type", "maintain"),
            confidence=data.get("confidence", 0.0),
            expected_impact=data.get("expected_impact", ""),
        )


@dataclass
class LearningPath:
    path_id: str
    user_id: str
    target_role: str
    target_company: str
    current_level: SkillLevel
    target_level: SkillLevel
    milestones: list[LearningMilestone]
    estimated_weeks: int
    estimated_duration: str
    progress_percentage: float = 0.0
    role_skills: list[str] = field(default_factory=list)
    company_skills: list[str] = field(default_factory=list)
    adaptive_adjustments: list[AdaptiveAdjustment] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)

    def get_milestone(self, milestone_id: str) -> LearningMilestone | None:
        return next((m for m in self.milestones if m.id == milestone_id), None)

    @property
    def next_milestone(self) -> LearningMilestone | None:
        return next((m for m in self.milestones if not m.is_completed), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path_id": self.path_id,
            "user_id": self.user_id,
            "target_role": self.target_role,
            "target_company": self.target_company,
            "current_level": self.current_level.value,
            "target_level": self.target_level.value,
            "milestones": [m.to_dict() for m in self.milestones],
            "estimated_weeks": self.estimated_weeks,
            "estimated_duration": self.estimated_duration,
            "progress_percentage": self.progress_percentage,
            "role_skills": list(self.role_skills),
            "company_skills": list(self.company_skills),
            "adaptive_adjustments": [a.to_dict() for a in self.adaptive_adjustments],
            "created_at": _iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LearningPath:
        return cls(
            path_id=data["path_id"],
            user_id=data["user_id"],
            target_role=data.get("target_role", ""),
            target_company=data.get("target_company", ""),
            current_level=SkillLevel.parse(data["current_level"]),
            target_level=SkillLevel.parse(data["target_level"]),
            milestones=[LearningMilestone.from_dict(m) for m in data.get("milestones", [])],
            estimated_weeks=data.get("estimated_weeks", 0),
            estimated_duration=data.get("estimated_duration", ""),
            progress_percentage=data.get("progress_percentage", 0.0),
            role_skills=list(data.get("role_skills", [])),
            company_skills=list(data.get("company_skills", [])),
            adaptive_adjustments=[AdaptiveAdjustment.from_dict(a) for a in data.get("adaptive_adjustments", [])],
            created_at=_parse_datetime(data.get("created_at")) or datetime.now(),
        )


class LearningPathPlanner:
    """Plan and track multi-milestone learning paths."""

    def plan(
        self,
        model: PerformanceModel,
        target_role: str,
        target_company: str,
        now: datetime | None = None,
    ) -> LearningPath:
        """
        Generate a learning path toward a role at a company.

        Raises:
            PlanningError: If the path cannot be generated
        """
        now = now or datetime.now()
        try:
            current_level = self.assess_current_level(model.accuracy)
            target_level = self.determine_target_level(target_role, target_company)
            milestones = self.build_milestones(target_level, model.learning_velocity)
            weeks = self.estimate_weeks(milestones, model.learning_velocity)

            path = LearningPath(
                path_id=f"path_{model.user_id}_{int(now.timestamp() * 1000)}",
                user_id=model.user_id,
                target_role=target_role,
                target_company=target_company,
                current_level=current_level,
                target_level=target_level,
                milestones=milestones,
                estimated_weeks=weeks,
                estimated_duration=self.format_duration(weeks),
                progress_percentage=self.calculate_progress(milestones),
                role_skills=self.skills_for_level(target_level, target_role),
                company_skills=self.company_skills(target_company),
                created_at=now,
            )
        except Exception as e:  # Intentionally broad - classify any fault for the caller
            logger.error(f"Learning path generation failed for {model.user_id}: {e}")
            raise PlanningError(f"Failed to generate learning path: {e}") from e

        logger.info(
            f"Planned {len(milestones)} milestones for {model.user_id}: "
            f"{current_level.value} -> {target_level.value} in {path.estimated_duration}"
        )
        return path

    @staticmethod
    def assess_current_level(accuracy: float) -> SkillLevel:
        if accuracy >= 85:
            return SkillLevel.ADVANCED
        if accuracy >= 70:
            return SkillLevel.INTERMEDIATE
        if accuracy >= 50:
            return SkillLevel.BEGINNER
        return SkillLevel.NOVICE

    @staticmethod
    def determine_target_level(target_role: str, target_company: str) -> SkillLevel:
        if any(keyword in target_role for keyword in SENIOR_ROLE_KEYWORDS):
            return SkillLevel.EXPERT
        if target_company in TOP_TIER_COMPANIES:
            return SkillLevel.EXPERT
        return SkillLevel.ADVANCED

    @staticmethod
    def quiz_multiplier(velocity: float) -> float:
        """Slow learners need up to twice as many quizzes, fast ones half."""
        return max(0.5, min(2.0, 100 / max(20.0, velocity)))

    def build_milestones(self, target_level: SkillLevel, velocity: float) -> list[LearningMilestone]:
        multiplier = self.quiz_multiplier(velocity)
        milestones: list[LearningMilestone] = []
        for template in MILESTONE_TEMPLATES:
            if target_level.rank < template.minimum_target.rank:
                continue
            milestones.append(
                LearningMilestone(
                    id=template.id,
                    title=template.title,
                    description=template.description,
                    target_difficulty=template.difficulty,
                    required_accuracy=template.required_accuracy,
                    estimated_quizzes=math.ceil(template.base_quizzes * multiplier),
                    skills=list(template.skills),
                    prerequisites=[milestones[-1].id] if milestones else [],
                )
            )
        return milestones

    @staticmethod
    def estimate_weeks(milestones: list[LearningMilestone], velocity: float) -> int:
        total_quizzes = sum(m.estimated_quizzes for m in milestones)
        quizzes_per_week = 3 if velocity > 70 else 2
        return math.ceil(total_quizzes / quizzes_per_week)

    @staticmethod
    def format_duration(weeks: int) -> str:
        if weeks < 4:
            return "1 week" if weeks == 1 else f"{weeks} weeks"
        if weeks < 12:
            return f"{round(weeks / 4)} months"
        return f"{round(weeks / 12)} months"

    @staticmethod
    def calculate_progress(milestones: list[LearningMilestone]) -> float:
        if not milestones:
            return 0.0
        completed = sum(1 for m in milestones if m.is_completed)
        return completed / len(milestones) * 100

    @staticmethod
    def skills_for_level(level: SkillLevel, target_role: str) -> list[str]:
        return [*LEVEL_SKILLS[level], *ROLE_SKILLS.get(target_role, [])[:3]]

    @staticmethod
    def company_skills(company: str) -> list[str]:
        return list(COMPANY_SKILLS.get(company, DEFAULT_COMPANY_SKILLS))

    # ------------------------------------------------------------------
    # Tracking
    # ------------------------------------------------------------------

    def complete_milestone(
        self,
        path: LearningPath,
        milestone_id: str,
        quizzes_taken: int,
        accuracy: float,
        now: datetime | None = None,
    ) -> LearningPath:
        """
        Mark a milestone complete and refresh path progress.

        Raises:
            PlanningError: If the milestone is unknown or its prerequisites are open
        """
        milestone = path.get_milestone(milestone_id)
        if milestone is None:
            raise PlanningError(f"Unknown milestone: {milestone_id}")

        open_prerequisites = [
            p for p in milestone.prerequisites
            if not (path.get_milestone(p) and path.get_milestone(p).is_completed)
        ]
        if open_prerequisites:
            raise PlanningError(
                f"Milestone {milestone_id} requires {', '.join(open_prerequisites)} first"
            )

        milestone.is_completed = True
        milestone.completed_date = now or datetime.now()
        milestone.actual_quizzes_taken = quizzes_taken
        milestone.actual_accuracy = accuracy
        path.progress_percentage = self.calculate_progress(path.milestones)
        logger.info(f"Milestone {milestone_id} completed on {path.path_id} ({path.progress_percentage:.0f}%)")
        return path

    @staticmethod
    def record_adjustment(
        path: LearningPath,
        calibration: CalibrationResult,
        previous: DifficultyTier,
        now: datetime | None = None,
    ) -> AdaptiveAdjustment:
        """Append a calibration outcome to the path's adjustment log."""
        new = calibration.new_difficulty or previous
        if new > previous:
            kind, impact = "increase", "Faster progression toward the target level"
        elif new < previous:
            kind, impact = "decrease", "Rebuild confidence before advancing"
        else:
            kind, impact = "maintain", "Consolidate the current level"

        adjustment = AdaptiveAdjustment(
            date=now or datetime.now(),
            reason=calibration.reasoning,
            previous_difficulty=previous,
            new_difficulty=new,
            adjustment_type=kind,
            confidence=calibration.confidence,
            expected_impact=impact,
        )
        path.adaptive_adjustments.append(adjustment)
        return adjustment
