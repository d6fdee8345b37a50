"""
Unit tests for the difficulty recommender and adaptive quiz planning.
"""

import pytest

from src.adaptive.difficulty_recommender import DifficultyRecommender
from src.adaptive.errors import RecommendationError
from src.adaptive.models import DifficultyTier
from src.adaptive.questions import Question


class FakeGenerator:
    """Records the request and returns canned questions."""

    def __init__(self):
        self.calls = []

    async def generate(self, domain, company, role, difficulty, count):
        self.calls.append(
            {"domain": domain, "company": company, "role": role, "difficulty": difficulty, "count": count}
        )
        return [
            Question(id=f"q{i}", question=f"Question {i}", answer="A", difficulty=difficulty)
            for i in range(count)
        ]


@pytest.fixture
def recommender():
    return DifficultyRecommender()


class TestRecommend:
    """Tests for DifficultyRecommender.recommend."""

    def test_steady_learner_gets_hard(self, recommender, sample_performance):
        rec = recommender.recommend(sample_performance, "JavaScript", "Google")

        assert rec.recommended_difficulty is DifficultyTier.HARD
        assert rec.alternative_difficulties == [DifficultyTier.MEDIUM, DifficultyTier.EXPERT]
        assert rec.confidence == pytest.approx(0.9)
        assert rec.expected_accuracy == pytest.approx(60.0)
        assert rec.estimated_time_to_mastery == "3 months"
        assert len(rec.learning_objectives) == 3

    def test_reasoning_mentions_each_signal(self, recommender, sample_performance):
        rec = recommender.recommend(sample_performance, "JavaScript", "Google")

        assert len(rec.reasoning) == 4
        assert rec.reasoning[0].startswith("Overall accuracy of 75.0%")
        assert "JavaScript" in rec.reasoning[1]
        assert "Google" in rec.reasoning[2]
        assert "fast progress" in rec.reasoning[3]

    def test_reasoning_skips_unknown_domain_and_company(self, recommender, sample_performance):
        rec = recommender.recommend(sample_performance, "Rust", "Nobody")
        assert len(rec.reasoning) == 2

    def test_struggling_learner_gets_easy(self, recommender, struggling_performance):
        rec = recommender.recommend(struggling_performance, "Algorithms", "Amazon")

        assert rec.recommended_difficulty is DifficultyTier.EASY
        assert rec.alternative_difficulties == [DifficultyTier.MEDIUM]
        assert "Address weakness in Algorithms" in rec.learning_objectives
        assert "Address weakness in Dynamic Programming" in rec.learning_objectives
        assert "Address weakness in System Design" not in rec.learning_objectives

    def test_strong_domain_nudges_up(self, recommender, sample_performance):
        sample_performance.domain_performance[0].correct_answers = 45  # 90%
        rec = recommender.recommend(sample_performance, "JavaScript", "Google")
        assert rec.recommended_difficulty is DifficultyTier.EXPERT

    def test_inconsistent_learner_nudges_down(self, recommender, sample_performance):
        sample_performance.consistency_score = 40.0
        rec = recommender.recommend(sample_performance, "JavaScript", "Google")
        # Weighted score 64.5 -> Medium, then one step down
        assert rec.recommended_difficulty is DifficultyTier.EASY
        assert rec.reasoning[0] == "Overall accuracy of 75.0% suggests Easy level"

    def test_missing_model_is_treated_as_new_learner(self, recommender):
        rec = recommender.recommend(None, "Python", "Meta")

        assert rec.recommended_difficulty is DifficultyTier.EASY
        assert rec.confidence == pytest.approx(0.6)
        assert rec.expected_accuracy == 0.0

    def test_confidence_never_exceeds_cap(self, recommender, sample_performance):
        sample_performance.total_quizzes = 40
        rec = recommender.recommend(sample_performance, "JavaScript", "Google")
        assert rec.confidence == pytest.approx(0.95)

    def test_impossible_counts_raise(self, recommender, sample_performance):
        sample_performance.correct_answers = 500
        with pytest.raises(RecommendationError):
            recommender.recommend(sample_performance, "JavaScript", "Google")

    def test_out_of_range_velocity_raises(self, recommender, sample_performance):
        sample_performance.learning_velocity = 140.0
        with pytest.raises(RecommendationError):
            recommender.recommend(sample_performance, "JavaScript", "Google")


class TestScoringHelpers:
    @pytest.mark.parametrize(
        "accuracy, consistency, velocity, expected",
        [
            (100, 100, 100, DifficultyTier.EXPERT),
            (80, 70, 50, DifficultyTier.HARD),
            (60, 60, 40, DifficultyTier.MEDIUM),
            (40, 40, 40, DifficultyTier.EASY),
        ],
    )
    def test_base_tier(self, accuracy, consistency, velocity, expected):
        assert DifficultyRecommender.base_tier(accuracy, consistency, velocity) is expected

    @pytest.mark.parametrize("swept", ["accuracy", "consistency", "velocity"])
    @pytest.mark.parametrize("background", [0.0, 35.0, 50.0, 80.0, 100.0])
    def test_base_tier_never_drops_as_an_input_rises(self, swept, background):
        """Raising any single input never lowers the base tier."""
        previous_rank = -1
        for value in range(0, 101, 5):
            inputs = {"accuracy": background, "consistency": background, "velocity": background}
            inputs[swept] = float(value)
            rank = DifficultyRecommender.base_tier(**inputs).rank

            assert rank >= previous_rank, f"{swept}={value} lowered the tier"
            previous_rank = rank

    @pytest.mark.parametrize(
        "tier, velocity, expected",
        [
            (DifficultyTier.EASY, 100, "2 weeks"),
            (DifficultyTier.EASY, 200, "1 week"),
            (DifficultyTier.MEDIUM, 50, "2 months"),
            (DifficultyTier.EXPERT, 10, "20 months"),
        ],
    )
    def test_time_to_mastery(self, tier, velocity, expected):
        assert DifficultyRecommender.estimate_time_to_mastery(tier, velocity) == expected

    def test_expected_accuracy_is_capped(self):
        assert DifficultyRecommender.expected_accuracy(90, DifficultyTier.EASY) == 95.0


class TestAdaptiveQuiz:
    """Tests for adaptive quiz planning and generation."""

    def test_fast_learner_steps_up_after_first_third(self, recommender, sample_performance):
        plan = recommender.plan_adaptive_quiz(sample_performance, "JavaScript", "Google", question_count=10)

        assert plan.difficulty_progression[:3] == [DifficultyTier.HARD] * 3
        assert plan.difficulty_progression[3:] == [DifficultyTier.EXPERT] * 7
        assert plan.request_difficulty is DifficultyTier.EXPERT
        assert "Hard → Expert" in plan.adaptation_reasoning
        assert "Experience with progressive difficulty challenges" in plan.expected_outcomes

    def test_very_fast_learner_steps_up_twice(self):
        progression = DifficultyRecommender.difficulty_progression(DifficultyTier.EASY, 11, 90)
        assert progression[0] is DifficultyTier.EASY
        assert progression[4] is DifficultyTier.MEDIUM
        assert progression[-1] is DifficultyTier.HARD

    def test_slow_learner_stays_flat(self, recommender, struggling_performance):
        plan = recommender.plan_adaptive_quiz(struggling_performance, "Algorithms", "Amazon", 5)

        assert plan.difficulty_progression == [DifficultyTier.EASY] * 5
        assert plan.focus_areas == ["Algorithms", "Dynamic Programming"]
        assert "Focus on consistency by taking regular quizzes" in plan.next_recommendations

    def test_single_question_quiz(self, recommender, sample_performance):
        plan = recommender.plan_adaptive_quiz(sample_performance, "JavaScript", "Google", 1)
        assert plan.difficulty_progression == [DifficultyTier.HARD]

    @pytest.mark.parametrize("count", [0, -3])
    def test_invalid_count_raises(self, recommender, sample_performance, count):
        with pytest.raises(RecommendationError):
            recommender.plan_adaptive_quiz(sample_performance, "JavaScript", "Google", count)

    @pytest.mark.asyncio
    async def test_generate_requests_dominant_tier(self, recommender, sample_performance):
        generator = FakeGenerator()
        plan = await recommender.generate_adaptive_quiz(
            sample_performance, generator, "JavaScript", "Google", "Frontend Engineer", question_count=10
        )

        assert len(plan.questions) == 10
        assert generator.calls == [
            {
                "domain": "JavaScript",
                "company": "Google",
                "role": "Frontend Engineer",
                "difficulty": DifficultyTier.EXPERT,
                "count": 10,
            }
        ]
