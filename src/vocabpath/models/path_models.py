"""Models for learning path query results."""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from vocabpath.models.models import Word


@dataclass
class LearningPathStats:
    """Counts of words per learning stage for a word pool."""
    total: int = 0
    unseen: int = 0
    previewed: int = 0
    quiz_passed: int = 0
    deep_learned: int = 0
    mastered: int = 0
    ready_for_quiz: int = 0
    needs_deep_learn: int = 0
    struggling: int = 0
    learning_percentage: float = 0.0

    @property
    def in_progress(self) -> int:
        return self.previewed + self.quiz_passed

    @property
    def completion_percentage(self) -> float:
        if not self.total:
            return 0.0
        return self.mastered / self.total * 100


class RecommendationKind(Enum):
    """Kinds of next-step recommendations, in priority order."""
    PREVIEW = "preview"
    QUIZ = "quiz"
    DEEP_LEARN = "deepLearn"
    ALL_CAUGHT_UP = "allCaughtUp"

    @property
    def title(self) -> str:
        return {
            RecommendationKind.PREVIEW: "Preview New Words",
            RecommendationKind.QUIZ: "Quiz Yourself",
            RecommendationKind.DEEP_LEARN: "Deep Practice",
            RecommendationKind.ALL_CAUGHT_UP: "All Caught Up!",
        }[self]


@dataclass(frozen=True)
class LearningRecommendation:
    """The single next action suggested to the learner."""
    kind: RecommendationKind
    count: int = 0
    reason: str = ""

    @classmethod
    def preview(cls, count: int, reason: str) -> "LearningRecommendation":
        return cls(RecommendationKind.PREVIEW, count, reason)

    @classmethod
    def quiz(cls, count: int, reason: str) -> "LearningRecommendation":
        return cls(RecommendationKind.QUIZ, count, reason)

    @classmethod
    def deep_learn(cls, count: int, reason: str) -> "LearningRecommendation":
        return cls(RecommendationKind.DEEP_LEARN, count, reason)

    @classmethod
    def all_caught_up(cls) -> "LearningRecommendation":
        return cls(RecommendationKind.ALL_CAUGHT_UP, 0, "Great work! Come back tomorrow.")

    @property
    def title(self) -> str:
        return self.kind.title


@dataclass
class DailySessionConfig:
    """Words chosen for each phase of a daily session."""
    preview_words: List[Word] = field(default_factory=list)
    quiz_words: List[Word] = field(default_factory=list)
    deep_learn_word: Optional[Word] = None

    @property
    def total_items(self) -> int:
        return len(self.preview_words) + len(self.quiz_words) + (1 if self.deep_learn_word is not None else 0)

    @property
    def is_empty(self) -> bool:
        return self.total_items == 0


@dataclass(frozen=True)
class DailySessionSummary:
    """Counts-only view of a daily session."""
    preview: int = 0
    quiz: int = 0
    deep_learn: bool = False

    @property
    def total_items(self) -> int:
        return self.preview + self.quiz + (1 if self.deep_learn else 0)
