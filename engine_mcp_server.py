"""
Adaptive Practice MCP Server.
Exposes the adaptive engine as stateless tools: the caller passes the learner
profile and attempt records with every call and persists whatever comes back.
"""

import logging
import os
import sys

# Ensure sibling modules are importable
sys.path.insert(0, os.path.dirname(__file__))

from datetime import datetime
from typing import Optional

from fastmcp import FastMCP

from adaptive_engine import (
    adjust_difficulty,
    analyze,
    analyze_session,
    mastery_report,
    recommend,
    topic_mastery,
)
from learner_model import (
    AdaptiveState,
    AttemptRecord,
    LearnerProfile,
    TopicAggregate,
    points_for_attempt,
    profile_summary,
    record_outcome,
    update_aggregate,
)

logger = logging.getLogger("engine_mcp_server")

mcp = FastMCP("AdaptivePractice")


def _normalize_topic(topic: str) -> str:
    """Normalize topic names so 'Word Problems', 'word problems', and
    'word-problems' all resolve to the same key."""
    return topic.strip().lower().replace(" ", "_").replace("-", "_")


def _normalize_records(records: list[AttemptRecord]) -> list[AttemptRecord]:
    """Normalize every record's topic tag so it matches normalized topic keys."""
    return [
        r.model_copy(update={"topic_id": _normalize_topic(r.topic_id)}) if r.topic_id else r
        for r in records
    ]


def _normalize_profile(profile: LearnerProfile) -> LearnerProfile:
    """Normalize the profile's topic keys, keeping their order. On a key
    collision the later topic wins."""
    topics = {_normalize_topic(name): agg for name, agg in profile.topics.items()}
    return profile.model_copy(update={"topics": topics})


def analyze_records(records: list[AttemptRecord]) -> dict:
    """
    Summarise a chronological window of attempts: accuracy, trailing
    correct/incorrect streaks and average time per attempt.
    """
    return analyze(records).model_dump()


def adjust_learner_difficulty(state: AdaptiveState, records: list[AttemptRecord]) -> dict:
    """
    Decide whether to raise, lower or hold the learner's difficulty tier
    based on their recent attempts. Also reports whether they need support.
    """
    metrics = analyze(records)
    decision = adjust_difficulty(state, metrics)
    return {**decision.model_dump(mode="json"), "metrics": metrics.model_dump()}


def recommend_topics(profile: LearnerProfile, recent_records: list[AttemptRecord]) -> dict:
    """Suggest topics to practise next, focus areas and an encouragement message."""
    return recommend(_normalize_profile(profile), recent_records).model_dump()


def get_topic_mastery(topic: str, attempts: list[AttemptRecord]) -> dict:
    """Mastery level (0-1), confidence and recommendation for one topic."""
    return topic_mastery(_normalize_topic(topic), _normalize_records(attempts)).model_dump()


def get_mastery_report(profile: LearnerProfile, records: list[AttemptRecord]) -> dict:
    """Mastery for every topic in the profile, using records tagged with each topic."""
    report = mastery_report(_normalize_profile(profile), _normalize_records(records))
    return {"topics": [m.model_dump() for m in report]}


def analyze_learner_session(profile: LearnerProfile, recent_records: list[AttemptRecord]) -> dict:
    """
    Full analysis for one interaction: suggested difficulty, reasoning,
    support flag, recommended topics, focus areas and encouragement.
    """
    result = analyze_session(_normalize_profile(profile), recent_records)
    logger.info(
        f"Analyzed {profile.learner_id}: {profile.adaptive_state.current_difficulty.value} "
        f"-> {result.suggested_difficulty.value}"
    )
    return result.model_dump(mode="json")


def get_profile_summary(profile: LearnerProfile) -> dict:
    """Topic count, mastered topics, average accuracy and total attempts."""
    return profile_summary(_normalize_profile(profile)).model_dump()


def record_attempt(
    profile: LearnerProfile,
    topic: str,
    is_correct: bool,
    time_spent_seconds: float,
    hints_used: int = 0,
    base_points: float = 0,
    completed_at: Optional[str] = None,
) -> dict:
    """
    Build an attempt record and return the profile with it applied:
    points awarded, topic aggregate updated and streak counters advanced.
    The input profile is not modified; the caller persists the result.
    """
    topic = _normalize_topic(topic)
    if not topic:
        return {"recorded": False, "error": "Topic is required."}

    try:
        at = datetime.fromisoformat(completed_at) if completed_at else datetime.now()
    except ValueError:
        return {"recorded": False, "error": f"Invalid completed_at timestamp: '{completed_at}'"}

    record = AttemptRecord(
        topic_id=topic,
        is_correct=is_correct,
        time_spent_seconds=time_spent_seconds,
        hints_used=hints_used,
        points_earned=points_for_attempt(base_points, is_correct, hints_used),
    )

    profile = _normalize_profile(profile)
    topics = dict(profile.topics)
    topics[topic] = update_aggregate(topics.get(topic, TopicAggregate()), record, at=at)

    updated = profile.model_copy(
        update={
            "topics": topics,
            "adaptive_state": record_outcome(profile.adaptive_state, is_correct),
            "total_points_earned": profile.total_points_earned + record.points_earned,
        }
    )

    return {
        "recorded": True,
        "record": record.model_dump(),
        "profile": updated.model_dump(mode="json"),
    }


# Registered here rather than with @mcp.tool() so the module-level names stay
# plain functions.
for _tool in (
    analyze_records,
    adjust_learner_difficulty,
    recommend_topics,
    get_topic_mastery,
    get_mastery_report,
    analyze_learner_session,
    get_profile_summary,
    record_attempt,
):
    mcp.tool(_tool)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    mcp.run()
