"""
Conversation Flow Controller.

Decides, after each learner message, whether a Socratic tutoring session
should advance to the next step, give a hint, ask for clarification, offer an
alternative approach, or shift explanation difficulty.

Signals are read from the last six messages and the latest learner message:
- Engagement: message length, questions asked, code attempts, confusion
- Understanding: keyword matches in the latest message (0-1)
- Struggling: struggle keywords in the last three learner messages, hint use

Steps run understanding -> approach -> implementation -> optimization, and
never move backwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any

from loguru import logger

from config import get_settings
from src.tutor.models import (
    ConversationSession,
    LearningStep,
    ProgressMetrics,
    StepType,
    TutorMessage,
)

RECENT_MESSAGE_WINDOW = 6
STRUGGLE_MESSAGE_WINDOW = 3

CODE_MARKERS = ("```", "function")

ENGAGEMENT_CONFUSION_KEYWORDS = ("confused", "don't understand", "unclear", "what do you mean", "help")
UNDERSTANDING_KEYWORDS = (
    "algorithm", "complexity", "time", "space", "approach", "strategy",
    "data structure", "array", "tree", "graph", "hash", "sort", "search",
)
UNDERSTANDING_CONFUSION_KEYWORDS = ("confused", "unclear", "don't get", "what", "how", "why")
STRUGGLE_KEYWORDS = (
    "stuck", "confused", "don't know", "help", "difficult", "hard",
    "can't figure", "not sure", "lost",
)

BASE_SYSTEM_PROMPT = "You are Neuron, an AI tutor using the Socratic method. "


def _has_code(text: str) -> bool:
    return any(marker in text for marker in CODE_MARKERS)


class AdaptedDifficulty(str, Enum):
    EASIER = "easier"
    HARDER = "harder"
    SAME = "same"


@dataclass
class ProgressThresholds:
    understanding: float = 70.0
    implementation: float = 60.0
    optimization: float = 50.0


@dataclass
class StepTransitionRules:
    requires_understanding: bool = True
    allow_skip_steps: bool = False  # carried for clients; steps always advance one at a time
    auto_advance_on_success: bool = True


@dataclass
class FlowControlConfig:
    enable_adaptive_difficulty: bool = True
    max_hints_per_step: int = 3
    progress_thresholds: ProgressThresholds = field(default_factory=ProgressThresholds)
    step_transition_rules: StepTransitionRules = field(default_factory=StepTransitionRules)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FlowControlConfig:
        return cls(
            enable_adaptive_difficulty=data.get("enable_adaptive_difficulty", True),
            max_hints_per_step=data.get("max_hints_per_step", 3),
            progress_thresholds=ProgressThresholds(**data.get("progress_thresholds", {})),
            step_transition_rules=StepTransitionRules(**data.get("step_transition_rules", {})),
        )

    @classmethod
    def from_settings(cls) -> FlowControlConfig:
        return cls.from_dict(get_settings().get_flow_config())


@dataclass
class EngagementSignal:
    is_engaged: bool
    is_confused: bool
    response_quality: float  # 0-1


@dataclass
class StrugglingSignal:
    is_struggling: bool
    needs_alternative_approach: bool
    struggling_areas: list[str] = field(default_factory=list)


@dataclass
class FlowDecision:
    should_advance_step: bool = False
    should_provide_hint: bool = False
    should_request_clarification: bool = False
    should_offer_alternative_approach: bool = False
    next_step_suggestion: LearningStep | None = None
    adapted_difficulty: AdaptedDifficulty | None = None
    understanding_score: float = 0.0
    struggling_areas: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "should_advance_step": self.should_advance_step,
            "should_provide_hint": self.should_provide_hint,
            "should_request_clarification": self.should_request_clarification,
            "should_offer_alternative_approach": self.should_offer_alternative_approach,
            "next_step_suggestion": self.next_step_suggestion.to_dict() if self.next_step_suggestion else None,
            "adapted_difficulty": self.adapted_difficulty.value if self.adapted_difficulty else None,
            "understanding_score": self.understanding_score,
            "struggling_areas": list(self.struggling_areas),
        }


@dataclass
class ContextualPrompts:
    system_prompt: str
    user_guidance: str


class ConversationFlowController:
    """Per-message flow decisions for a tutoring session."""

    def __init__(self, config: FlowControlConfig | None = None):
        self.config = config or FlowControlConfig()

    def analyze_flow(self, session: ConversationSession, last_user_message: str) -> FlowDecision:
        """Compute the decision bundle for the latest learner message."""
        progress = session.user_progress
        recent = session.conversation_history[-RECENT_MESSAGE_WINDOW:]

        engagement = self.assess_engagement(recent)
        understanding = self.assess_understanding(last_user_message)
        struggling = self.detect_struggling(recent, progress, len(session.conversation_history))

        decision = FlowDecision(
            understanding_score=understanding,
            struggling_areas=struggling.struggling_areas,
        )

        if self.should_advance(session.current_step, progress, understanding):
            decision.should_advance_step = True
            decision.next_step_suggestion = self.generate_next_step(session.current_step)

        if struggling.is_struggling and progress.hints_used < self.config.max_hints_per_step:
            decision.should_provide_hint = True

        if engagement.is_confused or understanding < 0.3:
            decision.should_request_clarification = True

        if struggling.needs_alternative_approach:
            decision.should_offer_alternative_approach = True

        if self.config.enable_adaptive_difficulty:
            decision.adapted_difficulty = self.adaptive_difficulty(progress, struggling, engagement)

        logger.debug(
            f"Flow decision for session {session.id}: step={session.current_step.step_type.value} "
            f"understanding={understanding:.2f} advance={decision.should_advance_step} "
            f"hint={decision.should_provide_hint}"
        )
        return decision

    @staticmethod
    def generate_next_step(current_step: LearningStep) -> LearningStep:
        """The step after current_step; optimization is followed by itself."""
        next_type = current_step.step_type.next
        return LearningStep(
            step_number=current_step.step_number + 1,
            step_type=next_type,
            description=next_type.description,
            completed=False,
        )

    # ------------------------------------------------------------------
    # Signals
    # ------------------------------------------------------------------

    @staticmethod
    def assess_engagement(messages: list[TutorMessage]) -> EngagementSignal:
        user_messages = [m for m in messages if m.is_user]
        if not user_messages:
            return EngagementSignal(is_engaged=False, is_confused=False, response_quality=0.0)

        average_length = sum(len(m.content) for m in user_messages) / len(user_messages)
        has_questions = any("?" in m.content for m in user_messages)
        has_code = any(_has_code(m.content) for m in user_messages)
        is_confused = any(
            keyword in m.content.lower()
            for m in user_messages
            for keyword in ENGAGEMENT_CONFUSION_KEYWORDS
        )

        quality = 0.5
        if average_length > 50:
            quality += 0.2
        if has_questions:
            quality += 0.2
        if has_code:
            quality += 0.3

        return EngagementSignal(
            is_engaged=average_length > 20 or has_questions or has_code,
            is_confused=is_confused,
            response_quality=min(quality, 1.0),
        )

    @staticmethod
    def assess_understanding(last_message: str) -> float:
        lowered = last_message.lower()
        score = 0.5
        score += 0.1 * sum(1 for keyword in UNDERSTANDING_KEYWORDS if keyword in lowered)
        score -= 0.15 * sum(1 for keyword in UNDERSTANDING_CONFUSION_KEYWORDS if keyword in lowered)
        if _has_code(last_message):
            score += 0.2
        if "?" in last_message:
            score += 0.05
        return max(0.0, min(1.0, score))

    def detect_struggling(
        self,
        messages: list[TutorMessage],
        progress: ProgressMetrics,
        conversation_length: int | None = None,
    ) -> StrugglingSignal:
        """Struggle signal from recent messages; ``conversation_length`` defaults to ``len(messages)``."""
        if conversation_length is None:
            conversation_length = len(messages)
        recent_user = [m for m in messages if m.is_user][-STRUGGLE_MESSAGE_WINDOW:]
        is_struggling = progress.hints_used > 2 or any(
            keyword in m.content.lower()
            for m in recent_user
            for keyword in STRUGGLE_KEYWORDS
        )
        needs_alternative = progress.hints_used >= self.config.max_hints_per_step or (
            progress.understanding < 30 and conversation_length > 8
        )

        thresholds = self.config.progress_thresholds
        areas = []
        if progress.understanding < thresholds.understanding:
            areas.append("problem understanding")
        if progress.implementation < thresholds.implementation:
            areas.append("implementation")
        if progress.optimization < thresholds.optimization:
            areas.append("optimization")

        return StrugglingSignal(
            is_struggling=is_struggling,
            needs_alternative_approach=needs_alternative,
            struggling_areas=areas,
        )

    def should_advance(self, step: LearningStep, progress: ProgressMetrics, understanding: float) -> bool:
        rules = self.config.step_transition_rules
        if not rules.auto_advance_on_success:
            return False
        if rules.requires_understanding and not understanding > 0.6:
            return False

        thresholds = self.config.progress_thresholds
        if step.step_type is StepType.UNDERSTANDING:
            return progress.understanding >= thresholds.understanding
        if step.step_type is StepType.APPROACH:
            return progress.understanding >= 70 and understanding > 0.7
        if step.step_type is StepType.IMPLEMENTATION:
            return progress.implementation >= thresholds.implementation
        return False

    @staticmethod
    def adaptive_difficulty(
        progress: ProgressMetrics,
        struggling: StrugglingSignal,
        engagement: EngagementSignal,
    ) -> AdaptedDifficulty:
        if struggling.is_struggling and progress.understanding < 40:
            return AdaptedDifficulty.EASIER
        if progress.understanding > 80 and progress.implementation > 70 and engagement.response_quality > 0.8:
            return AdaptedDifficulty.HARDER
        return AdaptedDifficulty.SAME

    # ------------------------------------------------------------------
    # Applying decisions
    # ------------------------------------------------------------------

    @staticmethod
    def generate_contextual_prompts(decision: FlowDecision) -> ContextualPrompts:
        """System prompt additions and learner-facing guidance for a decision."""
        system_prompt = BASE_SYSTEM_PROMPT
        guidance = ""

        if decision.should_provide_hint:
            system_prompt += "The user seems to be struggling. Provide a gentle hint without giving away the solution. "
            guidance = "I notice you might need some guidance. Let me provide a hint to help you move forward."
        if decision.should_request_clarification:
            system_prompt += "The user seems confused. Ask clarifying questions to understand their confusion. "
            guidance = "I want to make sure I understand where you're at. Could you clarify your current thinking?"
        if decision.should_offer_alternative_approach:
            system_prompt += "The current approach isn't working. Suggest an alternative way to think about the problem. "
            guidance = "Let's try a different approach to this problem. Sometimes a fresh perspective helps!"
        if decision.should_advance_step:
            system_prompt += "The user is ready to advance to the next step. Guide them smoothly to the next phase. "
            guidance = "Great progress! You're ready to move to the next step in solving this problem."

        if decision.adapted_difficulty is AdaptedDifficulty.EASIER:
            system_prompt += "Simplify your explanations and break down concepts into smaller steps. "
        elif decision.adapted_difficulty is AdaptedDifficulty.HARDER:
            system_prompt += "You can challenge the user with more advanced concepts and edge cases. "

        return ContextualPrompts(system_prompt=system_prompt.strip(), user_guidance=guidance)

    @staticmethod
    def apply_decision(
        session: ConversationSession,
        decision: FlowDecision,
        now: datetime | None = None,
    ) -> ConversationSession:
        """Record a hint and step change on the session, in place."""
        if decision.should_provide_hint:
            session.user_progress.hints_used += 1

        if decision.should_advance_step and decision.next_step_suggestion is not None:
            if not session.current_step.step_type.is_terminal:
                session.current_step.completed = True
                session.current_step = decision.next_step_suggestion
                logger.info(f"Session {session.id} advanced to {session.current_step.step_type.value}")

        session.last_activity = now or datetime.now()
        return session

    def update_config(self, **changes: Any) -> FlowControlConfig:
        self.config = replace(self.config, **changes)
        return self.config

    def get_config(self) -> FlowControlConfig:
        return replace(self.config)
