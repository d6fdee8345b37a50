"""
Error kinds raised by the adaptive engine.

Recommendation, analysis and planning run before a session starts, so their
failures are surfaced to the caller. Real-time calibration never raises.
"""

from __future__ import annotations


class AdaptiveEngineError(Exception):
    """Base class for classified engine failures."""
    pass


class RecommendationError(AdaptiveEngineError):
    """Raised when a difficulty recommendation cannot be computed."""
    pass


class AnalysisError(AdaptiveEngineError):
    """Raised when weakness analysis fails."""
    pass


class PlanningError(AdaptiveEngineError):
    """Raised when a learning path or study plan cannot be generated."""
    pass
