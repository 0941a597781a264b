"""
Learner data models and profile-delta helpers.
Pydantic v2 models for the adaptive practice engine.

The engine never mutates these objects; the helpers at the bottom return
updated copies for the caller to persist.
"""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

MIN_POINTS_FOR_CORRECT = 5
HINT_PENALTY_POINTS = 5


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

    @property
    def rank(self) -> int:
        return DIFFICULTY_LADDER.index(self)

    def shifted(self, step: int) -> "Difficulty":
        """Move `step` tiers along the ladder, clamped to its ends."""
        index = max(0, min(len(DIFFICULTY_LADDER) - 1, self.rank + step))
        return DIFFICULTY_LADDER[index]


# Lowest tier first
DIFFICULTY_LADDER = [Difficulty.BEGINNER, Difficulty.INTERMEDIATE, Difficulty.ADVANCED]

Confidence = Literal["low", "medium", "high"]
MasteryLabel = Literal["Expert", "Proficient", "Learning", "Beginner"]

# (minimum accuracy, label), highest first
MASTERY_LABELS = [(0.9, "Expert"), (0.7, "Proficient"), (0.5, "Learning")]


class AttemptRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    topic_id: Optional[str] = None  # tagged by the caller from the challenge catalog
    is_correct: bool
    time_spent_seconds: float = Field(default=0.0, ge=0)
    hints_used: int = Field(default=0, ge=0)
    points_earned: float = Field(default=0.0, ge=0)


class TopicAggregate(BaseModel):
    total_attempts: int = Field(default=0, ge=0)
    correct_attempts: int = Field(default=0, ge=0)
    average_time_seconds: float = Field(default=0.0, ge=0)
    last_practiced_at: Optional[datetime] = None

    @property
    def accuracy(self) -> float:
        if self.total_attempts == 0:
            return 0.0
        return self.correct_attempts / self.total_attempts


class AdaptiveState(BaseModel):
    current_difficulty: Difficulty = Difficulty.BEGINNER
    consecutive_correct: int = Field(default=0, ge=0)
    consecutive_incorrect: int = Field(default=0, ge=0)
    needs_support: bool = False


class LearnerProfile(BaseModel):
    learner_id: str
    adaptive_state: AdaptiveState = Field(default_factory=AdaptiveState)
    topics: dict[str, TopicAggregate] = Field(default_factory=dict)  # order matters
    total_points_earned: float = Field(default=0.0, ge=0)
    streak_days: int = Field(default=0, ge=0)


class PerformanceMetrics(BaseModel):
    accuracy: float = 0.0
    consecutive_correct: int = 0
    consecutive_incorrect: int = 0
    average_time_seconds: float = 0.0


class DifficultyDecision(BaseModel):
    suggested_difficulty: Difficulty
    reasoning: str
    needs_support: bool


class TopicMastery(BaseModel):
    topic_id: str
    mastery_level: float = 0.0  # 0-1
    confidence: Confidence = "low"
    recommendation: str


class Recommendations(BaseModel):
    recommended_topics: list[str] = Field(default_factory=list)
    focus_areas: list[str] = Field(default_factory=list)
    encouragement_message: str


class AnalysisResult(BaseModel):
    suggested_difficulty: Difficulty
    reasoning: str
    needs_support: bool
    recommended_topics: list[str] = Field(default_factory=list)
    focus_areas: list[str] = Field(default_factory=list)
    encouragement_message: str
    metrics: PerformanceMetrics = Field(default_factory=PerformanceMetrics)


class ProfileSummary(BaseModel):
    total_topics: int = 0
    mastered_topics: list[str] = Field(default_factory=list)
    average_accuracy: float = 0.0
    total_attempts: int = 0
    topic_labels: dict[str, MasteryLabel] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Profile deltas
# ---------------------------------------------------------------------------

def points_for_attempt(base_points: float, is_correct: bool, hints_used: int = 0) -> float:
    """Each hint costs 5 points, but a correct answer always earns at least 5."""
    if not is_correct:
        return 0.0
    return float(max(base_points - hints_used * HINT_PENALTY_POINTS, MIN_POINTS_FOR_CORRECT))


def update_aggregate(
    aggregate: TopicAggregate,
    record: AttemptRecord,
    at: datetime,
) -> TopicAggregate:
    """Fold one attempt into a topic aggregate, keeping a running mean of time."""
    total = aggregate.total_attempts + 1
    average = (
        aggregate.average_time_seconds * aggregate.total_attempts + record.time_spent_seconds
    ) / total
    return aggregate.model_copy(
        update={
            "total_attempts": total,
            "correct_attempts": aggregate.correct_attempts + (1 if record.is_correct else 0),
            "average_time_seconds": average,
            "last_practiced_at": at,
        }
    )


def record_outcome(state: AdaptiveState, is_correct: bool) -> AdaptiveState:
    """Advance the streak counters. One resets whenever the other grows."""
    if is_correct:
        update = {"consecutive_correct": state.consecutive_correct + 1, "consecutive_incorrect": 0}
    else:
        update = {"consecutive_correct": 0, "consecutive_incorrect": state.consecutive_incorrect + 1}
    return state.model_copy(update=update)


def apply_decision(state: AdaptiveState, decision: DifficultyDecision) -> AdaptiveState:
    return state.model_copy(
        update={
            "current_difficulty": decision.suggested_difficulty,
            "needs_support": decision.needs_support,
        }
    )


def mastery_label(aggregate: TopicAggregate) -> MasteryLabel:
    """Accuracy band shown on a topic card; unpracticed topics are Beginner."""
    for minimum, label in MASTERY_LABELS:
        if aggregate.accuracy >= minimum:
            return label
    return "Beginner"


def profile_summary(profile: LearnerProfile, mastered_accuracy: float = 0.9) -> ProfileSummary:
    """Dashboard-level totals across every topic in the profile."""
    topics = profile.topics
    practiced = [t for t in topics.values() if t.total_attempts > 0]
    accuracy_sum = sum(t.accuracy for t in practiced)

    return ProfileSummary(
        total_topics=len(topics),
        mastered_topics=[
            name for name, t in topics.items()
            if t.total_attempts > 0 and t.accuracy >= mastered_accuracy
        ],
        average_accuracy=accuracy_sum / max(len(topics), 1),
        total_attempts=sum(t.total_attempts for t in topics.values()),
        topic_labels={name: mastery_label(t) for name, t in topics.items()},
    )
