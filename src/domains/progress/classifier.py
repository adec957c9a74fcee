# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Topic mastery classification.

Mastery of a topic is a pure function of trailing accuracy and
interaction volume. Levels are described by an ordered rule table that
is evaluated top to bottom; the first rule whose accuracy and volume
gates both pass decides the level. Accuracy alone does not separate the
tiers, the volume gate does, so the order of MASTERY_RULES matters.

Levels move in both directions: a run of wrong answers after reaching
``mastered`` moves the topic back down.

Example:
    >>> counters, level = apply_interaction(
    ...     MasteryCounters(), is_correct=True, interaction_type=InteractionType.QUIZ_ATTEMPT
    ... )
    >>> counters.total_quiz_attempts, level
    (1, <MasteryLevel.BEGINNER: 'beginner'>)
"""

from dataclasses import dataclass

from src.models.progress import InteractionType, MasteryLevel


@dataclass(frozen=True)
class MasteryCounters:
    """Interaction counters of one topic for one student.

    Attributes:
        total_interactions: All interactions on the topic.
        correct_answers: Interactions marked correct.
        total_quiz_attempts: Interactions of type quiz_attempt.
    """

    total_interactions: int = 0
    correct_answers: int = 0
    total_quiz_attempts: int = 0

    @property
    def accuracy(self) -> float:
        """Correct answers over total interactions, 0.0 when empty."""
        if self.total_interactions == 0:
            return 0.0
        return self.correct_answers / self.total_interactions


@dataclass(frozen=True)
class MasteryRule:
    """One row of the mastery rule table.

    Attributes:
        level: Level assigned when the rule matches.
        min_accuracy: Inclusive lower bound on accuracy.
        min_interactions: Inclusive lower bound on interaction volume.
    """

    level: MasteryLevel
    min_accuracy: float
    min_interactions: int

    def matches(self, accuracy: float, total_interactions: int) -> bool:
        """Check whether both gates of the rule pass."""
        return accuracy >= self.min_accuracy and total_interactions >= self.min_interactions


# Evaluated in order, first match wins.
MASTERY_RULES: tuple[MasteryRule, ...] = (
    MasteryRule(MasteryLevel.MASTERED, min_accuracy=0.90, min_interactions=10),
    MasteryRule(MasteryLevel.ADVANCED, min_accuracy=0.75, min_interactions=7),
    MasteryRule(MasteryLevel.INTERMEDIATE, min_accuracy=0.50, min_interactions=4),
    MasteryRule(MasteryLevel.BEGINNER, min_accuracy=0.0, min_interactions=1),
)


def classify_mastery(accuracy: float, total_interactions: int) -> MasteryLevel:
    """Classify a topic from its accuracy and interaction volume.

    Args:
        accuracy: Correct answers over total interactions.
        total_interactions: Number of interactions on the topic.

    Returns:
        Level of the first matching rule, or NOT_STARTED if none match.
    """
    for rule in MASTERY_RULES:
        if rule.matches(accuracy, total_interactions):
            return rule.level
    return MasteryLevel.NOT_STARTED


def apply_interaction(
    counters: MasteryCounters,
    is_correct: bool | None,
    interaction_type: InteractionType,
) -> tuple[MasteryCounters, MasteryLevel]:
    """Fold one interaction into a topic's counters and reclassify it.

    Args:
        counters: Counters before the interaction.
        is_correct: Outcome; None and False both count as not correct.
        interaction_type: Kind of interaction.

    Returns:
        Tuple of (updated counters, new mastery level).
    """
    updated = MasteryCounters(
        total_interactions=counters.total_interactions + 1,
        correct_answers=counters.correct_answers + (1 if is_correct else 0),
        total_quiz_attempts=counters.total_quiz_attempts
        + (1 if interaction_type == InteractionType.QUIZ_ATTEMPT else 0),
    )
    return updated, classify_mastery(updated.accuracy, updated.total_interactions)
