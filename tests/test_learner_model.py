"""Unit tests for learner_model.py: difficulty ladder and profile deltas."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from learner_model import (
    AdaptiveState,
    AttemptRecord,
    Difficulty,
    DifficultyDecision,
    LearnerProfile,
    TopicAggregate,
    apply_decision,
    mastery_label,
    points_for_attempt,
    profile_summary,
    record_outcome,
    update_aggregate,
)


class TestDifficulty:
    def test_ladder_ranks(self):
        assert Difficulty.BEGINNER.rank == 0
        assert Difficulty.INTERMEDIATE.rank == 1
        assert Difficulty.ADVANCED.rank == 2

    def test_shift_up_and_down(self):
        assert Difficulty.BEGINNER.shifted(1) == Difficulty.INTERMEDIATE
        assert Difficulty.ADVANCED.shifted(-1) == Difficulty.INTERMEDIATE

    def test_shift_clamps_at_ends(self):
        assert Difficulty.BEGINNER.shifted(-1) == Difficulty.BEGINNER
        assert Difficulty.ADVANCED.shifted(1) == Difficulty.ADVANCED
        assert Difficulty.BEGINNER.shifted(5) == Difficulty.ADVANCED

    def test_parses_from_string(self):
        state = AdaptiveState.model_validate({"current_difficulty": "intermediate"})
        assert state.current_difficulty is Difficulty.INTERMEDIATE


class TestAttemptRecord:
    def test_is_immutable(self):
        record = AttemptRecord(is_correct=True, time_spent_seconds=5)
        with pytest.raises(ValidationError):
            record.is_correct = False

    def test_rejects_negative_time(self):
        with pytest.raises(ValidationError):
            AttemptRecord(is_correct=True, time_spent_seconds=-1)


class TestPointsForAttempt:
    def test_incorrect_earns_nothing(self):
        assert points_for_attempt(20, False) == 0.0

    def test_hint_penalty(self):
        assert points_for_attempt(20, True, hints_used=2) == 10.0

    def test_floor_for_correct(self):
        assert points_for_attempt(10, True, hints_used=3) == 5.0


AT = datetime(2024, 3, 1, 9, 30)


class TestUpdateAggregate:
    def test_first_attempt(self):
        agg = update_aggregate(TopicAggregate(), AttemptRecord(is_correct=True, time_spent_seconds=12), at=AT)
        assert agg.total_attempts == 1
        assert agg.correct_attempts == 1
        assert agg.average_time_seconds == pytest.approx(12.0)
        assert agg.last_practiced_at == AT

    def test_running_mean(self):
        agg = TopicAggregate(total_attempts=3, correct_attempts=2, average_time_seconds=10)
        updated = update_aggregate(agg, AttemptRecord(is_correct=False, time_spent_seconds=30), at=AT)
        assert updated.total_attempts == 4
        assert updated.correct_attempts == 2
        assert updated.average_time_seconds == pytest.approx(15.0)
        assert updated.last_practiced_at == AT

    def test_input_is_unchanged(self):
        agg = TopicAggregate(total_attempts=1, correct_attempts=1, average_time_seconds=10)
        update_aggregate(agg, AttemptRecord(is_correct=False, time_spent_seconds=30), at=AT)
        assert agg.total_attempts == 1

    def test_total_never_decreases(self):
        agg = TopicAggregate()
        for correct in (True, False, False, True):
            previous = agg.total_attempts
            agg = update_aggregate(agg, AttemptRecord(is_correct=correct), at=AT)
            assert agg.total_attempts == previous + 1

    def test_timestamp_is_required(self):
        with pytest.raises(TypeError):
            update_aggregate(TopicAggregate(), AttemptRecord(is_correct=True))


class TestRecordOutcome:
    def test_correct_resets_incorrect(self):
        state = record_outcome(AdaptiveState(consecutive_incorrect=2), True)
        assert state.consecutive_correct == 1
        assert state.consecutive_incorrect == 0

    def test_incorrect_resets_correct(self):
        state = record_outcome(AdaptiveState(consecutive_correct=4), False)
        assert state.consecutive_correct == 0
        assert state.consecutive_incorrect == 1

    def test_counters_never_both_nonzero(self):
        state = AdaptiveState()
        for correct in (True, True, False, True, False, False):
            state = record_outcome(state, correct)
            assert state.consecutive_correct == 0 or state.consecutive_incorrect == 0


class TestApplyDecision:
    def test_applies_tier_and_support(self):
        decision = DifficultyDecision(
            suggested_difficulty=Difficulty.BEGINNER, reasoning="r", needs_support=True
        )
        state = AdaptiveState(current_difficulty=Difficulty.INTERMEDIATE, consecutive_incorrect=3)
        updated = apply_decision(state, decision)
        assert updated.current_difficulty == Difficulty.BEGINNER
        assert updated.needs_support is True
        assert updated.consecutive_incorrect == 3
        assert state.current_difficulty == Difficulty.INTERMEDIATE


class TestProfileSummary:
    def test_empty_profile(self):
        summary = profile_summary(LearnerProfile(learner_id="x"))
        assert summary.total_topics == 0
        assert summary.mastered_topics == []
        assert summary.average_accuracy == 0.0
        assert summary.total_attempts == 0

    def test_totals(self):
        profile = LearnerProfile(
            learner_id="x",
            topics={
                "addition": TopicAggregate(total_attempts=10, correct_attempts=9),
                "geometry": TopicAggregate(),
                "division": TopicAggregate(total_attempts=4, correct_attempts=2),
            },
        )
        summary = profile_summary(profile)
        assert summary.total_topics == 3
        assert summary.mastered_topics == ["addition"]
        assert summary.average_accuracy == pytest.approx((0.9 + 0.5) / 3)
        assert summary.total_attempts == 14
        assert summary.topic_labels == {
            "addition": "Expert",
            "geometry": "Beginner",
            "division": "Learning",
        }


class TestMasteryLabel:
    @pytest.mark.parametrize(
        "correct, total, label",
        [
            (9, 10, "Expert"),
            (10, 10, "Expert"),
            (7, 10, "Proficient"),
            (89, 100, "Proficient"),
            (5, 10, "Learning"),
            (49, 100, "Beginner"),
            (0, 0, "Beginner"),
        ],
    )
    def test_accuracy_bands(self, correct, total, label):
        agg = TopicAggregate(total_attempts=total, correct_attempts=correct)
        assert mastery_label(agg) == label
