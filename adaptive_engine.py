"""
Adaptive engine: pure logic, no I/O.
Accuracy/streak analysis, difficulty adjustment, topic mastery scoring,
recommendations and encouragement.
"""

import logging
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict

from learner_model import (
    AdaptiveState,
    AnalysisResult,
    AttemptRecord,
    Difficulty,
    DifficultyDecision,
    LearnerProfile,
    PerformanceMetrics,
    Recommendations,
    TopicAggregate,
    TopicMastery,
)

logger = logging.getLogger(__name__)


class AdaptiveConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Difficulty adjustment
    consecutive_correct_threshold: int = 3
    consecutive_incorrect_threshold: int = 3
    min_accuracy_for_advancement: float = 0.8
    support_trigger_accuracy: float = 0.5

    # Mastery scoring
    accuracy_weight: float = 0.5
    consistency_weight: float = 0.3
    speed_weight: float = 0.2
    consistency_window: int = 5
    min_attempts_for_consistency: int = 3
    fast_time_ratio: float = 0.8
    high_mastery: float = 0.8
    medium_mastery: float = 0.6

    # Recommendations
    weak_topic_accuracy: float = 0.7
    strong_topic_accuracy: float = 0.85
    core_concepts_accuracy: float = 0.5
    max_weak_topics: int = 3
    max_strong_topics: int = 2
    default_topic_count: int = 3
    slow_topic_seconds: float = 60.0

    # Encouragement
    mastery_praise_accuracy: float = 0.8
    progress_praise_accuracy: float = 0.6
    streak_praise_days: int = 3
    points_praise_total: float = 1000.0


DEFAULT_CONFIG = AdaptiveConfig()

ENCOURAGEMENT_MESSAGES = {
    "mastery": "Amazing work! You're mastering these concepts beautifully!",
    "progress": "Good progress! Keep practicing and you'll see improvement!",
    "streak": "Great consistency! Your daily practice is paying off!",
    "points": "Look how many points you've earned! You're becoming a champion!",
    "growth": "Every expert was once a beginner. Keep going - you've got this!",
}


# ---------------------------------------------------------------------------
# Accuracy/streak analyzer
# ---------------------------------------------------------------------------

def _trailing_run(records: Sequence[AttemptRecord], is_correct: bool) -> int:
    run = 0
    for record in reversed(records):
        if record.is_correct != is_correct:
            break
        run += 1
    return run


def analyze(records: Sequence[AttemptRecord]) -> PerformanceMetrics:
    """
    Summarise a chronological (oldest first) window of attempts.
    An empty window yields all-zero metrics.
    """
    if not records:
        return PerformanceMetrics()

    correct = sum(1 for r in records if r.is_correct)
    total_time = sum(r.time_spent_seconds for r in records)

    return PerformanceMetrics(
        accuracy=correct / len(records),
        consecutive_correct=_trailing_run(records, True),
        consecutive_incorrect=_trailing_run(records, False),
        average_time_seconds=total_time / len(records),
    )


# ---------------------------------------------------------------------------
# Difficulty adjuster
# ---------------------------------------------------------------------------

def adjust_difficulty(
    state: AdaptiveState,
    metrics: PerformanceMetrics,
    *,
    config: AdaptiveConfig = DEFAULT_CONFIG,
) -> DifficultyDecision:
    """
    Decide the next difficulty tier from the recent-window metrics.

    Rules, first match wins:
    1. needs_support = accuracy below the support trigger (always reported)
    2. Regression: too many consecutive errors, or support needed -> one tier down
    3. Advancement: long correct streak with high accuracy -> one tier up
    4. Hold
    """
    current = state.current_difficulty
    needs_support = metrics.accuracy < config.support_trigger_accuracy

    struggling = metrics.consecutive_incorrect >= config.consecutive_incorrect_threshold
    excelling = (
        metrics.consecutive_correct >= config.consecutive_correct_threshold
        and metrics.accuracy >= config.min_accuracy_for_advancement
        and not needs_support
    )

    if struggling or needs_support:
        if needs_support:
            signal = f"recent accuracy {metrics.accuracy:.0%} is below the support threshold"
        else:
            signal = f"{metrics.consecutive_incorrect} incorrect answers in a row"

        suggested = current.shifted(-1)
        if suggested == current:
            reasoning = f"Already at beginner - holding with extra support ({signal})"
        elif suggested == Difficulty.BEGINNER:
            reasoning = f"Need additional practice - returning to beginner ({signal})"
        else:
            reasoning = f"Providing more support - moving to {suggested.value} ({signal})"

    elif excelling:
        suggested = current.shifted(1)
        if suggested == current:
            reasoning = "Top tier reached - strong performance, staying at advanced"
        elif suggested == Difficulty.ADVANCED:
            reasoning = "Excellent mastery - advancing to advanced"
        else:
            reasoning = f"Strong performance - advancing to {suggested.value}"

    else:
        suggested = current
        reasoning = "Maintaining current difficulty"

    if suggested != current:
        logger.debug(f"Difficulty {current.value} -> {suggested.value}: {reasoning}")
    if needs_support:
        logger.debug(f"Support flagged at accuracy {metrics.accuracy:.2f}")

    return DifficultyDecision(
        suggested_difficulty=suggested,
        reasoning=reasoning,
        needs_support=needs_support,
    )


# ---------------------------------------------------------------------------
# Mastery & recommendation engine
# ---------------------------------------------------------------------------

def _consistency(outcomes: list[int], config: AdaptiveConfig) -> float:
    """Mean fraction-correct over every sliding window across the outcomes."""
    if len(outcomes) < config.min_attempts_for_consistency:
        return 0.0

    window = min(config.consistency_window, len(outcomes))
    window_count = len(outcomes) - window + 1
    total = sum(sum(outcomes[i:i + window]) / window for i in range(window_count))
    return total / window_count


def _speed_score(records: Sequence[AttemptRecord], config: AdaptiveConfig) -> float:
    if not records:
        return 0.0
    average = sum(r.time_spent_seconds for r in records) / len(records)
    fast = [r for r in records if r.time_spent_seconds < average * config.fast_time_ratio]
    return len(fast) / len(records)


def _mastery_recommendation(topic: str, mastery_level: float, config: AdaptiveConfig) -> str:
    if mastery_level > config.high_mastery:
        return f"Excellent mastery of {topic}! Ready for advanced challenges."
    if mastery_level > config.medium_mastery:
        return f"Good understanding of {topic}. Practice more to build confidence."
    return f"{topic} needs more attention. Focus on fundamentals first."


def topic_mastery(
    topic: str,
    attempts: Sequence[AttemptRecord],
    *,
    config: AdaptiveConfig = DEFAULT_CONFIG,
) -> TopicMastery:
    """
    Score mastery of one topic from its chronological attempts:
    0.5 * accuracy + 0.3 * consistency + 0.2 * speed.

    Records tagged with a different topic are ignored; untagged records are
    taken as belonging to `topic`.
    """
    topic_attempts = [a for a in attempts if a.topic_id in (None, topic)]

    if not topic_attempts:
        return TopicMastery(
            topic_id=topic,
            mastery_level=0.0,
            confidence="low",
            recommendation=f"Start practicing {topic} to build foundational skills",
        )

    outcomes = [1 if a.is_correct else 0 for a in topic_attempts]
    accuracy = sum(outcomes) / len(outcomes)
    consistency = _consistency(outcomes, config)
    speed = _speed_score(topic_attempts, config)

    mastery_level = (
        accuracy * config.accuracy_weight
        + consistency * config.consistency_weight
        + speed * config.speed_weight
    )

    if mastery_level > config.high_mastery:
        confidence = "high"
    elif mastery_level > config.medium_mastery:
        confidence = "medium"
    else:
        confidence = "low"

    return TopicMastery(
        topic_id=topic,
        mastery_level=mastery_level,
        confidence=confidence,
        recommendation=_mastery_recommendation(topic, mastery_level, config),
    )


def mastery_report(
    profile: LearnerProfile,
    records: Sequence[AttemptRecord],
    *,
    config: AdaptiveConfig = DEFAULT_CONFIG,
) -> list[TopicMastery]:
    """Mastery for every topic in the profile, from the records tagged with it."""
    return [
        topic_mastery(topic, [r for r in records if r.topic_id == topic], config=config)
        for topic in profile.topics
    ]


def _focus_message(topic: str, aggregate: TopicAggregate, config: AdaptiveConfig) -> str:
    accuracy = aggregate.accuracy
    if accuracy < config.core_concepts_accuracy:
        return f"{topic}: Focus on understanding core concepts with step-by-step practice"
    if accuracy < config.weak_topic_accuracy:
        return f"{topic}: Practice more problems to build confidence and accuracy"
    if aggregate.average_time_seconds > config.slow_topic_seconds:
        return f"{topic}: Work on solving problems more quickly while maintaining accuracy"
    return f"{topic}: Continue regular practice to maintain strong performance"


def _encouragement_message(
    profile: LearnerProfile, recent_accuracy: float, config: AdaptiveConfig
) -> str:
    if recent_accuracy > config.mastery_praise_accuracy:
        return ENCOURAGEMENT_MESSAGES["mastery"]
    if recent_accuracy > config.progress_praise_accuracy:
        return ENCOURAGEMENT_MESSAGES["progress"]
    if profile.streak_days > config.streak_praise_days:
        return ENCOURAGEMENT_MESSAGES["streak"]
    if profile.total_points_earned > config.points_praise_total:
        return ENCOURAGEMENT_MESSAGES["points"]
    return ENCOURAGEMENT_MESSAGES["growth"]


def recommend(
    profile: LearnerProfile,
    recent_records: Sequence[AttemptRecord],
    *,
    metrics: Optional[PerformanceMetrics] = None,
    config: AdaptiveConfig = DEFAULT_CONFIG,
) -> Recommendations:
    """
    Pick topics to practise next from the profile's per-topic aggregates.

    Weak topics (lowest accuracy first) lead, followed by a couple of strong
    topics for confidence. With no weak topics, the first few topics in the
    profile are suggested. `metrics` may be passed to reuse an earlier
    analysis of `recent_records`.
    """
    topics = profile.topics

    weak = sorted(
        (t for t, agg in topics.items() if agg.accuracy < config.weak_topic_accuracy),
        key=lambda t: topics[t].accuracy,
    )[: config.max_weak_topics]
    strong = [
        t for t, agg in topics.items()
        if agg.accuracy > config.strong_topic_accuracy and t not in weak
    ]

    if weak:
        recommended = list(dict.fromkeys(weak + strong[: config.max_strong_topics]))
    else:
        recommended = list(topics)[: config.default_topic_count]

    if metrics is None:
        metrics = analyze(recent_records)

    return Recommendations(
        recommended_topics=recommended,
        focus_areas=[_focus_message(t, topics[t], config) for t in weak],
        encouragement_message=_encouragement_message(profile, metrics.accuracy, config),
    )


def analyze_session(
    profile: LearnerProfile,
    recent_records: Sequence[AttemptRecord],
    *,
    config: AdaptiveConfig = DEFAULT_CONFIG,
) -> AnalysisResult:
    """Run the analyzer once and combine the difficulty decision with recommendations."""
    metrics = analyze(recent_records)
    decision = adjust_difficulty(profile.adaptive_state, metrics, config=config)
    recommendations = recommend(profile, recent_records, metrics=metrics, config=config)

    return AnalysisResult(
        suggested_difficulty=decision.suggested_difficulty,
        reasoning=decision.reasoning,
        needs_support=decision.needs_support,
        recommended_topics=recommendations.recommended_topics,
        focus_areas=recommendations.focus_areas,
        encouragement_message=recommendations.encouragement_message,
        metrics=metrics,
    )
