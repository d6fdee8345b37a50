"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.adaptive.models import (  # noqa: E402
    CompanyPerformance,
    DifficultyPerformance,
    DifficultyTier,
    DomainPerformance,
    PerformanceModel,
    RecentPerformance,
    WeaknessArea,
)

NOW = datetime(2026, 1, 15, 12, 0, 0)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (require database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


def make_recent(
    scores: list[int],
    domain: str = "JavaScript",
    company: str = "Google",
    difficulty: DifficultyTier = DifficultyTier.MEDIUM,
    start: datetime = NOW,
) -> list[RecentPerformance]:
    """Recent-performance entries, most recent first, one day apart, 10 questions each."""
    return [
        RecentPerformance(
            quiz_id=f"quiz_{domain}_{index}",
            date=start - timedelta(days=index),
            difficulty=difficulty,
            domain=domain,
            company=company,
            time_spent=600.0,
            questions_correct=score // 10,
            total_questions=10,
        )
        for index, score in enumerate(scores)
    ]


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def now():
    """Fixed clock for time-dependent scores."""
    return NOW


@pytest.fixture
def sample_performance():
    """A steady learner: 75% overall, consistent, moderately fast."""
    return PerformanceModel(
        user_id="user-1",
        total_quizzes=10,
        total_questions=100,
        correct_answers=75,
        domain_performance=[
            DomainPerformance(
                domain="JavaScript",
                questions_answered=50,
                correct_answers=40,
                average_time_spent=75.0,
                last_attempted=NOW - timedelta(days=2),
                difficulty_distribution={
                    DifficultyTier.EASY: 2,
                    DifficultyTier.MEDIUM: 5,
                    DifficultyTier.HARD: 3,
                },
            ),
        ],
        company_performance=[
            CompanyPerformance(
                company="Google",
                questions_answered=30,
                correct_answers=24,
                average_time_spent=80.0,
                last_attempted=NOW - timedelta(days=2),
            ),
        ],
        difficulty_performance=[
            DifficultyPerformance(
                difficulty=DifficultyTier.MEDIUM,
                questions_answered=40,
                correct_answers=30,
                average_time_spent=70.0,
                confidence_level=80.0,
            ),
        ],
        weakness_areas=[
            WeaknessArea(area="Data Structures", questions_attempted=20, correct_answers=11, improvement_trend=5.0),
        ],
        recent_performance=make_recent([80, 70, 80, 70, 80]),
        learning_velocity=75.0,
        consistency_score=80.0,
        last_updated=NOW,
    )


@pytest.fixture
def struggling_performance():
    """A learner well below target with several weak areas."""
    return PerformanceModel(
        user_id="user-2",
        total_quizzes=8,
        total_questions=80,
        correct_answers=28,
        domain_performance=[
            DomainPerformance(
                domain="Algorithms",
                questions_answered=20,
                correct_answers=5,
                average_time_spent=200.0,
                last_attempted=NOW - timedelta(days=3),
                difficulty_distribution={DifficultyTier.EASY: 6, DifficultyTier.HARD: 1},
            ),
        ],
        weakness_areas=[
            WeaknessArea(area="Algorithms", questions_attempted=20, correct_answers=5, improvement_trend=-3.0),
            WeaknessArea(area="Dynamic Programming", questions_attempted=20, correct_answers=7, improvement_trend=0.0),
            WeaknessArea(area="System Design", questions_attempted=20, correct_answers=11, improvement_trend=4.0),
        ],
        recent_performance=make_recent([60, 50, 40, 30], domain="Algorithms", company="Amazon"),
        learning_velocity=40.0,
        consistency_score=45.0,
        last_updated=NOW,
    )


@pytest.fixture
def new_user():
    """A learner with no history."""
    return PerformanceModel(user_id="user-new")


@pytest.fixture
def recent_factory():
    """Build recent-performance entries from scores (most recent first)."""
    return make_recent
