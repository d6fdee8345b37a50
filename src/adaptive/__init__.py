"""
Adaptive Difficulty Engine.

Decides how hard the next quiz should be and what a learner should study.

Components:
- apply_quiz_result: Folds a finished quiz into the PerformanceModel
- DifficultyRecommender: Picks a difficulty tier and plans adaptive quizzes
- WeaknessAnalyzer: Ranks weakness areas by severity, impact and urgency
- RealTimeCalibrator: Adjusts difficulty mid-quiz
- LearningPathPlanner: Builds milestone paths toward a role/company
- StudyPlanGenerator: Builds week-by-week study plans
"""
from src.adaptive.calibrator import CalibrationResult, QuizProgress, RealTimeCalibrator
from src.adaptive.difficulty_recommender import (
    AdaptiveQuizPlan,
    DifficultyRecommendation,
    DifficultyRecommender,
)
from src.adaptive.errors import (
    AdaptiveEngineError,
    AnalysisError,
    PlanningError,
    RecommendationError,
)
from src.adaptive.models import (
    CompanyPerformance,
    DifficultyPerformance,
    DifficultyTier,
    DomainPerformance,
    MasteryLevel,
    MasteryStatus,
    PerformanceModel,
    QuizResult,
    RecentPerformance,
    Severity,
    SkillLevel,
    WeaknessArea,
)
from src.adaptive.path_planner import (
    AdaptiveAdjustment,
    LearningMilestone,
    LearningPath,
    LearningPathPlanner,
)
from src.adaptive.performance import apply_quiz_result, new_performance_model
from src.adaptive.questions import Question, QuestionGenerator
from src.adaptive.study_plan import StudyPlan, StudyPlanGenerator, TargetGoals
from src.adaptive.weakness_analyzer import (
    IdentifiedWeakness,
    TrendAnalysis,
    TrendDirection,
    WeaknessAnalysis,
    WeaknessAnalyzer,
)

__all__ = [
    # Engine components
    "DifficultyRecommender",
    "WeaknessAnalyzer",
    "RealTimeCalibrator",
    "LearningPathPlanner",
    "StudyPlanGenerator",
    "apply_quiz_result",
    "new_performance_model",
    # Results
    "AdaptiveQuizPlan",
    "DifficultyRecommendation",
    "CalibrationResult",
    "QuizProgress",
    "IdentifiedWeakness",
    "TrendAnalysis",
    "WeaknessAnalysis",
    "LearningPath",
    "LearningMilestone",
    "AdaptiveAdjustment",
    "StudyPlan",
    "TargetGoals",
    "Question",
    "QuestionGenerator",
    # Data models
    "PerformanceModel",
    "DomainPerformance",
    "CompanyPerformance",
    "DifficultyPerformance",
    "WeaknessArea",
    "RecentPerformance",
    "QuizResult",
    # Enums
    "DifficultyTier",
    "Severity",
    "MasteryLevel",
    "MasteryStatus",
    "SkillLevel",
    "TrendDirection",
    # Errors
    "AdaptiveEngineError",
    "RecommendationError",
    "AnalysisError",
    "PlanningError",
]
