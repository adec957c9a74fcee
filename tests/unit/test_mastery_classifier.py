# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for topic mastery classification."""

import pytest

from src.domains.progress.classifier import (
    MASTERY_RULES,
    MasteryCounters,
    apply_interaction,
    classify_mastery,
)
from src.models.progress import InteractionType, MasteryLevel


def fold(outcomes: list[bool | None], interaction_type=InteractionType.QUESTION):
    """Fold a sequence of outcomes into fresh counters."""
    counters = MasteryCounters()
    level = MasteryLevel.NOT_STARTED
    for is_correct in outcomes:
        counters, level = apply_interaction(counters, is_correct, interaction_type)
    return counters, level


@pytest.mark.unit
class TestClassifyMastery:
    """Tests for classify_mastery."""

    @pytest.mark.parametrize(
        "accuracy,total,expected",
        [
            (0.90, 10, MasteryLevel.MASTERED),
            (1.0, 50, MasteryLevel.MASTERED),
            (0.899999, 10, MasteryLevel.ADVANCED),
            (0.95, 9, MasteryLevel.ADVANCED),
            (0.75, 7, MasteryLevel.ADVANCED),
            (0.75, 6, MasteryLevel.INTERMEDIATE),
            (0.50, 4, MasteryLevel.INTERMEDIATE),
            (0.49, 4, MasteryLevel.BEGINNER),
            (1.0, 3, MasteryLevel.BEGINNER),
            (0.0, 1, MasteryLevel.BEGINNER),
            (0.0, 0, MasteryLevel.NOT_STARTED),
        ],
    )
    def test_rule_table(self, accuracy: float, total: int, expected: MasteryLevel) -> None:
        """Test each tier boundary on both gates."""
        assert classify_mastery(accuracy, total) == expected

    def test_volume_gate_separates_tiers(self) -> None:
        """Test that perfect accuracy below the volume gate is not mastered."""
        assert classify_mastery(1.0, 9) == MasteryLevel.ADVANCED
        assert classify_mastery(1.0, 6) == MasteryLevel.INTERMEDIATE

    def test_rules_are_ordered_strictest_first(self) -> None:
        """Test that the table is evaluated from the strictest tier down."""
        levels = [rule.level for rule in MASTERY_RULES]

        assert levels == [
            MasteryLevel.MASTERED,
            MasteryLevel.ADVANCED,
            MasteryLevel.INTERMEDIATE,
            MasteryLevel.BEGINNER,
        ]


@pytest.mark.unit
class TestApplyInteraction:
    """Tests for apply_interaction."""

    def test_first_interaction_is_beginner(self) -> None:
        """Test that one interaction moves a topic out of not_started."""
        counters, level = apply_interaction(MasteryCounters(), True, InteractionType.QUESTION)

        assert counters == MasteryCounters(total_interactions=1, correct_answers=1)
        assert level == MasteryLevel.BEGINNER

    def test_missing_outcome_counts_as_not_correct(self) -> None:
        """Test that is_correct=None increments only the total."""
        counters, _ = fold([None, False, True])

        assert counters.total_interactions == 3
        assert counters.correct_answers == 1

    def test_quiz_attempts_counted_by_type(self) -> None:
        """Test that only quiz_attempt interactions count as quiz attempts."""
        counters, _ = apply_interaction(MasteryCounters(), True, InteractionType.QUIZ_ATTEMPT)
        counters, _ = apply_interaction(counters, True, InteractionType.EXPLANATION_REQUEST)

        assert counters.total_quiz_attempts == 1
        assert counters.total_interactions == 2

    def test_counters_independent_of_order(self) -> None:
        """Test that N interactions with K correct give the same counters in any order."""
        forward, _ = fold([True, True, False, True, False])
        backward, _ = fold([False, True, False, True, True])

        assert forward == backward == MasteryCounters(total_interactions=5, correct_answers=3)

    def test_ten_correct_is_mastered(self) -> None:
        """Test that ten correct answers reach mastered."""
        counters, level = fold([True] * 10)

        assert counters.accuracy == 1.0
        assert level == MasteryLevel.MASTERED

    def test_mastery_regresses_after_wrong_answers(self) -> None:
        """Test that 10 correct then 3 wrong falls back to advanced."""
        counters, level = fold([True] * 10 + [False] * 3)

        assert counters.total_interactions == 13
        assert counters.correct_answers == 10
        assert level == MasteryLevel.ADVANCED

    def test_accuracy_of_empty_counters(self) -> None:
        """Test that accuracy is zero before any interaction."""
        assert MasteryCounters().accuracy == 0.0
