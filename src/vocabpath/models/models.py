"""Database models for the vocabulary engine."""
from enum import Enum
from typing import Any

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SAEnum,
    Float,
    Integer,
    JSON,
    String,
)

from vocabpath.config import settings
from vocabpath.models.base import Base, TimestampMixin


class LearningStage(Enum):
    """Where a word is in the learning path: preview, quiz, deep learn."""
    UNSEEN = "unseen"  # Never encountered
    PREVIEWED = "previewed"  # Seen in preview mode
    QUIZ_PASSED = "quizPassed"  # Passed a quiz at least once
    DEEP_LEARNED = "deepLearned"  # Completed a Feynman explanation

    @property
    def rank(self) -> int:
        return _STAGE_ORDER.index(self)

    @property
    def next_stage(self) -> "LearningStage | None":
        """The stage that follows this one, or None at the end of the path."""
        if self is LearningStage.DEEP_LEARNED:
            return None
        return _STAGE_ORDER[self.rank + 1]


_STAGE_ORDER = [
    LearningStage.UNSEEN,
    LearningStage.PREVIEWED,
    LearningStage.QUIZ_PASSED,
    LearningStage.DEEP_LEARNED,
]


class MasteryStatus(Enum):
    """Mastery classification derived from spaced repetition progress."""
    NEW = "new"
    LEARNING = "learning"
    MASTERED = "mastered"


class Difficulty(Enum):
    """Word difficulty tier."""
    COMMON = "common"
    ADVANCED = "advanced"
    EXPERT = "expert"


class FrequencyTier(Enum):
    """How often a word shows up on the exam."""
    ESSENTIAL = "essential"  # appears on 70%+ of tests
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"

    @property
    def priority(self) -> int:
        return {
            FrequencyTier.ESSENTIAL: 4,
            FrequencyTier.COMMON: 3,
            FrequencyTier.UNCOMMON: 2,
            FrequencyTier.RARE: 1,
        }[self]


def _enum_column(enum_cls: type[Enum], default: Enum) -> Column:
    return Column(
        SAEnum(enum_cls, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=default,
    )


class Word(Base, TimestampMixin):
    """Word record with learning path and spaced repetition state."""

    __tablename__ = "words"

    # Mastery is reached at this many consecutive correct recalls
    MASTERY_REPETITIONS = settings.scheduler.mastery_repetitions

    id = Column(Integer, primary_key=True)
    term = Column(String, nullable=False, unique=True, index=True)
    definition = Column(String, nullable=False)
    part_of_speech = Column(String, nullable=False, default="")
    example_sentence = Column(String, nullable=False, default="")
    synonyms = Column(JSON, nullable=False, default=list)
    antonyms = Column(JSON, nullable=False, default=list)
    mnemonic = Column(String)
    root_word = Column(String)
    root_meaning = Column(String)
    usage_notes = Column(String)
    difficulty = _enum_column(Difficulty, Difficulty.COMMON)
    frequency = _enum_column(FrequencyTier, FrequencyTier.COMMON)

    # Learning path
    stage = _enum_column(LearningStage, LearningStage.UNSEEN)
    feynman_confidence = Column(Integer, nullable=False, default=0)  # 0-5
    user_explanation = Column(String)
    user_example = Column(String)
    previewed_at = Column(DateTime(timezone=True))
    deep_learned_at = Column(DateTime(timezone=True))
    times_quiz_failed = Column(Integer, nullable=False, default=0)
    is_struggling = Column(Boolean, nullable=False, default=False)

    # Spaced repetition
    repetitions = Column(Integer, nullable=False, default=0)
    ease_factor = Column(Float, nullable=False, default=settings.scheduler.default_ease_factor)
    interval_days = Column(Integer, nullable=False, default=1)
    last_reviewed_at = Column(DateTime(timezone=True))
    next_review_at = Column(DateTime(timezone=True))
    times_reviewed = Column(Integer, nullable=False, default=0)
    times_correct = Column(Integer, nullable=False, default=0)
    average_response_time = Column(Float, nullable=False, default=0.0)  # seconds
    timed_reviews = Column(Integer, nullable=False, default=0)

    def __init__(self, **kwargs: Any):
        # Column defaults only fire on flush; transient records need them too.
        for column in self.__table__.columns:
            if column.key in kwargs or column.default is None or column.primary_key:
                continue
            if column.key in ("created_at", "updated_at"):
                continue
            default = column.default.arg
            kwargs[column.key] = default(None) if callable(default) else default
        kwargs["synonyms"] = list(dict.fromkeys(kwargs["synonyms"]))
        kwargs["antonyms"] = list(dict.fromkeys(kwargs["antonyms"]))
        super().__init__(**kwargs)

    @property
    def mastery_status(self) -> MasteryStatus:
        """Derived mastery classification."""
        if self.repetitions >= self.MASTERY_REPETITIONS:
            return MasteryStatus.MASTERED
        if self.repetitions > 0 or self.times_reviewed > 0:
            return MasteryStatus.LEARNING
        return MasteryStatus.NEW

    @property
    def accuracy(self) -> float:
        """Share of reviews answered correctly, 0 when never reviewed."""
        if not self.times_reviewed:
            return 0.0
        return self.times_correct / self.times_reviewed

    @property
    def mastery_score(self) -> float:
        """0-100 blend of accuracy, repetition progress and Feynman confidence."""
        if not self.times_reviewed:
            return 0.0
        repetition_score = min(1.0, self.repetitions / self.MASTERY_REPETITIONS)
        feynman_score = self.feynman_confidence / 5
        return (self.accuracy * 0.4 + repetition_score * 0.4 + feynman_score * 0.2) * 100

    def record_response_time(self, response_time: float) -> None:
        """Fold one answer time into the running average."""
        if response_time < 0:
            raise ValueError("Response time cannot be negative")
        self.timed_reviews = (self.timed_reviews or 0) + 1
        previous = self.average_response_time or 0.0
        self.average_response_time = previous + (response_time - previous) / self.timed_reviews

    @property
    def has_feynman_data(self) -> bool:
        return self.user_explanation is not None or self.user_example is not None

    def __repr__(self) -> str:
        return f"<Word {self.id} {self.term!r} stage={self.stage.value} reps={self.repetitions}>"
