"""
External integrations for the adaptive tutor.

Modules:
- question_client: HTTP client for the question generation service
"""
from .question_client import QuestionGenerationClient, QuestionGenerationError

__all__ = ["QuestionGenerationClient", "QuestionGenerationError"]
