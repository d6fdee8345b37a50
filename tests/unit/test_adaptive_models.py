"""
Unit tests for adaptive engine enums and performance records.
"""

import pytest

from src.adaptive.models import (
    DifficultyPerformance,
    DifficultyTier,
    MasteryLevel,
    MasteryStatus,
    PerformanceModel,
    QuizResult,
    Severity,
    SkillLevel,
    WeaknessArea,
)


class TestDifficultyTier:
    @pytest.mark.parametrize("label", ["Hard", "hard", "  HARD  "])
    def test_parse_is_case_insensitive(self, label):
        assert DifficultyTier.parse(label) is DifficultyTier.HARD

    @pytest.mark.parametrize("label", ["Impossible", "", None, 3])
    def test_parse_unknown_returns_none(self, label):
        assert DifficultyTier.parse(label) is None

    def test_next_and_previous_clamp_at_ends(self):
        assert DifficultyTier.EASY.next_tier() is DifficultyTier.MEDIUM
        assert DifficultyTier.EXPERT.next_tier() is DifficultyTier.EXPERT
        assert DifficultyTier.HARD.previous_tier() is DifficultyTier.MEDIUM
        assert DifficultyTier.EASY.previous_tier() is DifficultyTier.EASY

    def test_shift_clamps(self):
        assert DifficultyTier.MEDIUM.shift(5) is DifficultyTier.EXPERT
        assert DifficultyTier.MEDIUM.shift(-5) is DifficultyTier.EASY

    def test_ordering_uses_rank_not_label(self):
        # Alphabetically "Expert" < "Hard"; by rank it is the hardest
        assert DifficultyTier.HARD < DifficultyTier.EXPERT
        assert DifficultyTier.EASY < DifficultyTier.MEDIUM
        assert max(DifficultyTier) is DifficultyTier.EXPERT

    def test_neighbours(self):
        assert DifficultyTier.EASY.neighbours() == [DifficultyTier.MEDIUM]
        assert DifficultyTier.MEDIUM.neighbours() == [DifficultyTier.EASY, DifficultyTier.HARD]
        assert DifficultyTier.EXPERT.neighbours() == [DifficultyTier.HARD]


class TestSeverity:
    @pytest.mark.parametrize(
        "accuracy, expected",
        [
            (25, Severity.CRITICAL),
            (40, Severity.HIGH),
            (55, Severity.MEDIUM),
            (75, Severity.LOW),
            (29.9, Severity.CRITICAL),
            (30, Severity.HIGH),
            (60, Severity.LOW),
        ],
    )
    def test_from_accuracy(self, accuracy, expected):
        assert Severity.from_accuracy(accuracy) is expected

    def test_severity_is_monotonic_in_accuracy(self):
        order = [Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW]
        ranks = [order.index(Severity.from_accuracy(a)) for a in range(0, 101)]
        assert ranks == sorted(ranks)

    def test_weakness_severity_follows_counts(self):
        weakness = WeaknessArea(area="Graphs", questions_attempted=20, correct_answers=5)
        assert weakness.accuracy == 25
        assert weakness.severity is Severity.CRITICAL
        assert weakness.target_difficulty is DifficultyTier.EASY
        assert weakness.recommended_actions[0] == "Review fundamental concepts in Graphs"


class TestMastery:
    @pytest.mark.parametrize(
        "questions, accuracy, expected",
        [
            (60, 90, MasteryLevel.EXPERT),
            (40, 90, MasteryLevel.ADVANCED),
            (25, 70, MasteryLevel.PROFICIENT),
            (12, 55, MasteryLevel.DEVELOPING),
            (5, 100, MasteryLevel.NOVICE),
        ],
    )
    def test_mastery_level_needs_volume_and_accuracy(self, questions, accuracy, expected):
        assert MasteryLevel.from_results(questions, accuracy) is expected

    def test_mastery_status(self):
        assert MasteryStatus.from_results(0, 0) is MasteryStatus.NOT_STARTED
        assert MasteryStatus.from_results(5, 100) is MasteryStatus.LEARNING
        assert MasteryStatus.from_results(20, 60) is MasteryStatus.PRACTICING
        assert MasteryStatus.from_results(20, 80) is MasteryStatus.MASTERED

    def test_difficulty_record_derives_mastery(self):
        record = DifficultyPerformance(DifficultyTier.HARD, questions_answered=40, correct_answers=32)
        assert record.accuracy == 80
        assert record.mastery_level is MasteryLevel.ADVANCED
        assert record.mastery_status is MasteryStatus.MASTERED


class TestSkillLevel:
    def test_parse(self):
        assert SkillLevel.parse("intermediate") is SkillLevel.INTERMEDIATE

    def test_parse_unknown_raises(self):
        with pytest.raises(ValueError):
            SkillLevel.parse("Wizard")

    def test_difficulty_and_target_accuracy(self):
        assert SkillLevel.BEGINNER.difficulty is DifficultyTier.EASY
        assert SkillLevel.ADVANCED.difficulty is DifficultyTier.HARD
        assert SkillLevel.EXPERT.target_accuracy == 85


class TestPerformanceModel:
    def test_accuracy_of_empty_model_is_zero(self, new_user):
        assert new_user.accuracy == 0
        assert new_user.is_new

    def test_dict_round_trip(self, sample_performance):
        restored = PerformanceModel.from_dict(sample_performance.to_dict())
        assert restored == sample_performance

    def test_find_domain_containing_is_case_insensitive(self, sample_performance):
        assert sample_performance.find_domain_containing("script").domain == "JavaScript"
        assert sample_performance.find_domain_containing("Rust") is None


class TestQuizResult:
    def test_from_answers_scores_by_position(self):
        result = QuizResult.from_answers(
            domain="Python",
            company="Meta",
            difficulty=DifficultyTier.EASY,
            answers=["a", "b", "x"],
            expected=["a", "b", "c", "d"],
            time_spent=[10, 20, 30],
        )
        assert result.correct_answers == 2
        assert result.total_questions == 4
        assert result.average_time == 20

    @pytest.mark.parametrize(
        "correct, total",
        [(5, 0), (-1, 5), (6, 5)],
    )
    def test_validate_rejects_impossible_counts(self, correct, total):
        result = QuizResult("Python", "Meta", DifficultyTier.EASY, correct, total)
        with pytest.raises(ValueError):
            result.validate()
