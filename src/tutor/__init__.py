"""
Socratic tutoring sessions.

Components:
- ConversationFlowController: Per-message step, hint and clarification decisions
- SessionStore: Save, export and import tutoring sessions
"""
from src.tutor.flow_controller import (
    AdaptedDifficulty,
    ConversationFlowController,
    FlowControlConfig,
    FlowDecision,
)
from src.tutor.models import (
    ConversationSession,
    LearningStep,
    MessageRole,
    MessageType,
    Problem,
    ProgressMetrics,
    StepType,
    TutorMessage,
)
from src.tutor.session_store import SessionImportError, SessionStore, StoredSession

__all__ = [
    "ConversationFlowController",
    "FlowControlConfig",
    "FlowDecision",
    "AdaptedDifficulty",
    "SessionStore",
    "StoredSession",
    "SessionImportError",
    "ConversationSession",
    "LearningStep",
    "MessageRole",
    "MessageType",
    "Problem",
    "ProgressMetrics",
    "StepType",
    "TutorMessage",
]
