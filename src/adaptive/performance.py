"""
Performance aggregate updates.

apply_quiz_result folds one completed quiz into a PerformanceModel and returns
a new aggregate. Each concern lives in its own pure sub-updater so callers can
compute the next snapshot and hand the whole of it to the store in one write.
"""

from __future__ import annotations

import copy
import math
import uuid
from dataclasses import replace
from datetime import datetime

from loguru import logger

from src.adaptive.models import (
    CompanyPerformance,
    DifficultyPerformance,
    DomainPerformance,
    PerformanceModel,
    QuizResult,
    RecentPerformance,
    WeaknessArea,
)

RECENT_PERFORMANCE_LIMIT = 20
WEAKNESS_ACCURACY_THRESHOLD = 60.0
DEFAULT_VELOCITY = 50.0
DEFAULT_CONSISTENCY = 50.0

# Velocity compares the newest window with the one before it
VELOCITY_WINDOW = 5
CONSISTENCY_MIN_ENTRIES = 3
CONSISTENCY_WINDOW = 10


def new_performance_model(user_id: str) -> PerformanceModel:
    """Empty aggregate for a learner with no history."""
    return PerformanceModel(
        user_id=user_id,
        learning_velocity=DEFAULT_VELOCITY,
        consistency_score=DEFAULT_CONSISTENCY,
    )


def _weighted_average_time(
    previous_average: float,
    previous_count: int,
    quiz_average: float,
    quiz_count: int,
) -> float:
    total = previous_count + quiz_count
    if total == 0:
        return 0.0
    return (previous_average * previous_count + quiz_average * quiz_count) / total


def update_domain_performance(
    records: list[DomainPerformance],
    result: QuizResult,
    now: datetime,
) -> list[DomainPerformance]:
    updated: list[DomainPerformance] = []
    found = False
    for record in records:
        if record.domain != result.domain:
            updated.append(record)
            continue
        found = True
        distribution = dict(record.difficulty_distribution)
        distribution[result.difficulty] = distribution.get(result.difficulty, 0) + 1
        updated.append(
            replace(
                record,
                questions_answered=record.questions_answered + result.total_questions,
                correct_answers=record.correct_answers + result.correct_answers,
                average_time_spent=_weighted_average_time(
                    record.average_time_spent,
                    record.questions_answered,
                    result.average_time,
                    result.total_questions,
                ),
                last_attempted=now,
                difficulty_distribution=distribution,
            )
        )

    if not found:
        updated.append(
            DomainPerformance(
                domain=result.domain,
                questions_answered=result.total_questions,
                correct_answers=result.correct_answers,
                average_time_spent=result.average_time,
                last_attempted=now,
                difficulty_distribution={result.difficulty: 1},
            )
        )
    return updated


def update_company_performance(
    records: list[CompanyPerformance],
    result: QuizResult,
    now: datetime,
) -> list[CompanyPerformance]:
    updated: list[CompanyPerformance] = []
    found = False
    for record in records:
        if record.company != result.company:
            updated.append(record)
            continue
        found = True
        updated.append(
            replace(
                record,
                questions_answered=record.questions_answered + result.total_questions,
                correct_answers=record.correct_answers + result.correct_answers,
                average_time_spent=_weighted_average_time(
                    record.average_time_spent,
                    record.questions_answered,
                    result.average_time,
                    result.total_questions,
                ),
                last_attempted=now,
                preferred_topics=list(record.preferred_topics),
            )
        )

    if not found:
        updated.append(
            CompanyPerformance(
                company=result.company,
                questions_answered=result.total_questions,
                correct_answers=result.correct_answers,
                average_time_spent=result.average_time,
                last_attempted=now,
            )
        )
    return updated


def update_difficulty_performance(
    records: list[DifficultyPerformance],
    result: QuizResult,
) -> list[DifficultyPerformance]:
    """
    Accumulate per-tier counts.

    Confidence starts in the 25-75 band on the first quiz at a tier and then
    grows by up to 10 points per quiz, capped at 100.
    """
    ratio = result.correct_answers / result.total_questions
    updated: list[DifficultyPerformance] = []
    found = False
    for record in records:
        if record.difficulty != result.difficulty:
            updated.append(record)
            continue
        found = True
        updated.append(
            replace(
                record,
                questions_answered=record.questions_answered + result.total_questions,
                correct_answers=record.correct_answers + result.correct_answers,
                average_time_spent=_weighted_average_time(
                    record.average_time_spent,
                    record.questions_answered,
                    result.average_time,
                    result.total_questions,
                ),
                confidence_level=min(100.0, record.confidence_level + ratio * 10),
            )
        )

    if not found:
        updated.append(
            DifficultyPerformance(
                difficulty=result.difficulty,
                questions_answered=result.total_questions,
                correct_answers=result.correct_answers,
                average_time_spent=result.average_time,
                confidence_level=ratio * 50 + 25,
            )
        )
    return updated


def update_weakness_areas(
    areas: list[WeaknessArea],
    result: QuizResult,
) -> list[WeaknessArea]:
    """Record the quiz domain as a weakness when the quiz scored below threshold."""
    quiz_accuracy = result.accuracy
    if quiz_accuracy >= WEAKNESS_ACCURACY_THRESHOLD:
        return list(areas)

    updated: list[WeaknessArea] = []
    found = False
    for area in areas:
        if area.area != result.domain:
            updated.append(area)
            continue
        found = True
        updated.append(
            replace(
                area,
                questions_attempted=area.questions_attempted + result.total_questions,
                correct_answers=area.correct_answers + result.correct_answers,
                improvement_trend=quiz_accuracy - area.accuracy,
            )
        )

    if not found:
        updated.append(
            WeaknessArea(
                area=result.domain,
                questions_attempted=result.total_questions,
                correct_answers=result.correct_answers,
                improvement_trend=0.0,
            )
        )
    return updated


def update_recent_performance(
    entries: list[RecentPerformance],
    result: QuizResult,
    now: datetime,
) -> list[RecentPerformance]:
    """Prepend the quiz and evict the oldest entries beyond the window."""
    entry = RecentPerformance(
        quiz_id=result.quiz_id or f"quiz_{uuid.uuid4().hex[:12]}",
        date=result.completed_at or now,
        difficulty=result.difficulty,
        domain=result.domain,
        company=result.company,
        time_spent=result.total_time,
        questions_correct=result.correct_answers,
        total_questions=result.total_questions,
    )
    return [entry, *entries][:RECENT_PERFORMANCE_LIMIT]


def calculate_learning_velocity(entries: list[RecentPerformance]) -> float:
    """
    Recent-vs-older average score delta, centred on 50.

    Entries are most-recent-first. The newest five are compared with the five
    before them; with fewer than five entries, or nothing older, the learner
    keeps the default.
    """
    if len(entries) < VELOCITY_WINDOW:
        return DEFAULT_VELOCITY

    recent = entries[:VELOCITY_WINDOW]
    older = entries[VELOCITY_WINDOW:VELOCITY_WINDOW * 2]
    if not older:
        return DEFAULT_VELOCITY

    recent_avg = sum(e.score for e in recent) / len(recent)
    older_avg = sum(e.score for e in older) / len(older)
    return max(0.0, min(100.0, 50 + recent_avg - older_avg))


def calculate_consistency_score(entries: list[RecentPerformance]) -> float:
    """Inverse spread of the ten most recent scores, scaled to 0-100."""
    if len(entries) < CONSISTENCY_MIN_ENTRIES:
        return DEFAULT_CONSISTENCY

    scores = [e.score for e in entries[:CONSISTENCY_WINDOW]]
    mean = sum(scores) / len(scores)
    variance = sum((s - mean) ** 2 for s in scores) / len(scores)
    return max(0.0, 100 - math.sqrt(variance) * 2)


def apply_quiz_result(
    model: PerformanceModel,
    result: QuizResult,
    now: datetime | None = None,
) -> PerformanceModel:
    """
    Fold a completed quiz into the aggregate.

    Args:
        model: Current snapshot (left untouched)
        result: The completed quiz
        now: Timestamp for last-attempted fields (defaults to completed_at or now)

    Returns:
        A new PerformanceModel

    Raises:
        ValueError: If the quiz result counts are malformed
    """
    result.validate()
    now = now or result.completed_at or datetime.now()
    snapshot = copy.deepcopy(model)

    recent = update_recent_performance(snapshot.recent_performance, result, now)
    updated = replace(
        snapshot,
        total_quizzes=snapshot.total_quizzes + 1,
        total_questions=snapshot.total_questions + result.total_questions,
        correct_answers=snapshot.correct_answers + result.correct_answers,
        domain_performance=update_domain_performance(snapshot.domain_performance, result, now),
        company_performance=update_company_performance(snapshot.company_performance, result, now),
        difficulty_performance=update_difficulty_performance(snapshot.difficulty_performance, result),
        weakness_areas=update_weakness_areas(snapshot.weakness_areas, result),
        recent_performance=recent,
        learning_velocity=calculate_learning_velocity(recent),
        consistency_score=calculate_consistency_score(recent),
        last_updated=now,
    )

    logger.debug(
        f"Applied quiz for {model.user_id}: {result.correct_answers}/{result.total_questions} "
        f"on {result.difficulty.value} in {result.domain} "
        f"(velocity={updated.learning_velocity:.1f}, consistency={updated.consistency_score:.1f})"
    )
    return updated
