# SQLAlchemy models
from .base import Base
from .performance import LearningPathRecord, UserPerformanceRecord

__all__ = [
    "Base",
    "LearningPathRecord",
    "UserPerformanceRecord",
]
