"""Learning path service: preview, quiz and deep learn stages plus daily sessions."""
import logging
import math
from datetime import UTC, datetime
from typing import Iterable, List, Optional, Tuple

from vocabpath import monitoring
from vocabpath.config import LearningPathSettings, settings
from vocabpath.models.base import as_utc
from vocabpath.models.models import LearningStage, MasteryStatus, Word
from vocabpath.models.path_models import (
    DailySessionConfig,
    DailySessionSummary,
    LearningPathStats,
    LearningRecommendation,
)
from vocabpath.services.spaced_repetition import (
    SpacedRepetitionService,
    check_pool,
    overdue_sort_key,
)

logger = logging.getLogger(__name__)


def sanitize_text(text: Optional[str], max_length: int) -> Optional[str]:
    """Trim whitespace and cut free text to `max_length` characters."""
    if text is None:
        return None
    return text.strip()[:max_length]


class LearningPathService:
    """Tracks word stages and builds queues, recommendations and daily sessions."""

    REVIEW_STAGES = (LearningStage.QUIZ_PASSED, LearningStage.DEEP_LEARNED)

    def __init__(
        self,
        scheduler: Optional[SpacedRepetitionService] = None,
        config: Optional[LearningPathSettings] = None,
    ):
        """Initialize the service with a scheduler and learning path settings."""
        self.scheduler = scheduler or SpacedRepetitionService()
        self.config = config or settings.learning_path

    # Stage transitions

    def _advance(self, word: Word, stage: LearningStage) -> bool:
        """Move the word forward to `stage`; never moves it back."""
        if word.stage.rank >= stage.rank:
            return False
        logger.debug(f"Advancing {word.term!r} from {word.stage.value} to {stage.value}")
        word.stage = stage
        monitoring.stage_transitions.labels(stage=stage.value).inc()
        return True

    def mark_previewed(self, word: Word, now: Optional[datetime] = None) -> Word:
        """Record that the learner has previewed the word."""
        if word.stage is LearningStage.UNSEEN:
            self._advance(word, LearningStage.PREVIEWED)
            word.previewed_at = as_utc(now) or datetime.now(UTC)
        return word

    def _is_struggling(self, word: Word) -> bool:
        return (
            word.times_reviewed >= self.config.struggling_min_reviews
            and word.accuracy < self.config.struggling_accuracy
        )

    def record_quiz_attempt(
        self,
        word: Word,
        passed: bool,
        now: Optional[datetime] = None,
        response_time: Optional[float] = None,
    ) -> Word:
        """Record a quiz result, rescheduling the word and advancing its stage on a pass."""
        self.scheduler.process_response(word, passed, now, response_time)
        if passed:
            if word.stage is LearningStage.PREVIEWED:
                self._advance(word, LearningStage.QUIZ_PASSED)
        else:
            word.times_quiz_failed = (word.times_quiz_failed or 0) + 1

        was_struggling = word.is_struggling
        word.is_struggling = self._is_struggling(word)
        if word.is_struggling and not was_struggling:
            logger.info(f"Word {word.term!r} flagged as struggling (accuracy {word.accuracy:.2f})")
        return word

    def mark_deep_learned(
        self,
        word: Word,
        confidence: int,
        now: Optional[datetime] = None,
        explanation: Optional[str] = None,
        example: Optional[str] = None,
    ) -> Word:
        """Record a completed Feynman explanation for the word."""
        self._advance(word, LearningStage.DEEP_LEARNED)
        word.feynman_confidence = min(self.config.max_confidence, max(0, confidence))
        word.deep_learned_at = as_utc(now) or datetime.now(UTC)
        if explanation is not None:
            word.user_explanation = sanitize_text(explanation, self.config.max_explanation_length)
        if example is not None:
            word.user_example = sanitize_text(example, self.config.max_example_length)
        return word

    def record_preview(self, words: Iterable[Word], now: Optional[datetime] = None) -> List[Word]:
        """Mark a batch of words as previewed."""
        return [self.mark_previewed(word, now) for word in check_pool(words)]

    def record_quiz_results(
        self, results: Iterable[Tuple[Word, bool]], now: Optional[datetime] = None
    ) -> List[Word]:
        """Record a batch of (word, passed) quiz results."""
        return [self.record_quiz_attempt(word, passed, now) for word, passed in results]

    # Word classification

    def is_due_for_quiz(self, word: Word, now: Optional[datetime] = None) -> bool:
        """Whether the word belongs in the quiz queue."""
        if word.stage is LearningStage.PREVIEWED:
            return True
        return word.stage in self.REVIEW_STAGES and self.scheduler.is_due(word, now)

    def needs_deep_learning(self, word: Word) -> bool:
        """Whether the word should get a Feynman pass."""
        if word.is_struggling:
            return True
        return (
            word.stage is LearningStage.QUIZ_PASSED
            and word.feynman_confidence < self.config.deep_learn_confidence
        )

    # Queues

    def preview_queue(self, pool: Iterable[Word], limit: Optional[int] = None) -> List[Word]:
        """Get unseen words, most exam-relevant first."""
        limit = self.config.queue_limit if limit is None else max(0, limit)
        unseen = [word for word in check_pool(pool) if word.stage is LearningStage.UNSEEN]
        return sorted(unseen, key=lambda word: -word.frequency.priority)[:limit]

    def quiz_queue(self, pool: Iterable[Word], limit: Optional[int] = None, now: Optional[datetime] = None) -> List[Word]:
        """Get previewed words and due reviews, struggling words first."""
        limit = self.config.queue_limit if limit is None else max(0, limit)
        candidates = [word for word in check_pool(pool) if self.is_due_for_quiz(word, now)]
        queue = sorted(candidates, key=lambda word: (not word.is_struggling, overdue_sort_key(word)))
        logger.debug(f"Quiz queue: {len(candidates)} candidates, limit {limit}")
        return queue[:limit]

    def deep_learn_queue(self, pool: Iterable[Word], limit: Optional[int] = None) -> List[Word]:
        """Get words needing deep learning, least confident first."""
        limit = self.config.deep_learn_queue_limit if limit is None else max(0, limit)
        candidates = [word for word in check_pool(pool) if self.needs_deep_learning(word)]
        queue = sorted(candidates, key=lambda word: (word.feynman_confidence, -(word.times_quiz_failed or 0)))
        return queue[:limit]

    def struggling_words(self, pool: Iterable[Word]) -> List[Word]:
        """Get words flagged as struggling."""
        return [word for word in check_pool(pool) if word.is_struggling]

    # Statistics

    def stats(self, pool: Iterable[Word], now: Optional[datetime] = None) -> LearningPathStats:
        """Count words per stage and summarize learning progress."""
        words = check_pool(pool)
        counts = {stage: 0 for stage in LearningStage}
        for word in words:
            counts[word.stage] += 1

        total = len(words)
        weights = self.config.stage_weights
        weighted = sum(weights.get(stage.value, 0.0) * count for stage, count in counts.items())

        return LearningPathStats(
            total=total,
            unseen=counts[LearningStage.UNSEEN],
            previewed=counts[LearningStage.PREVIEWED],
            quiz_passed=counts[LearningStage.QUIZ_PASSED],
            deep_learned=counts[LearningStage.DEEP_LEARNED],
            mastered=sum(1 for word in words if word.mastery_status is MasteryStatus.MASTERED),
            ready_for_quiz=sum(1 for word in words if self.is_due_for_quiz(word, now)),
            needs_deep_learn=sum(1 for word in words if self.needs_deep_learning(word)),
            struggling=sum(1 for word in words if word.is_struggling),
            learning_percentage=weighted / total * 100 if total else 0.0,
        )

    def recommendation(self, pool: Iterable[Word], now: Optional[datetime] = None) -> LearningRecommendation:
        """Get the single recommended next action."""
        return self.recommendation_for_stats(self.stats(pool, now))

    @staticmethod
    def recommendation_for_stats(stats: LearningPathStats) -> LearningRecommendation:
        """Pick the next action from stats: preview, then quiz, then deep learn."""
        if stats.unseen > 0:
            return LearningRecommendation.preview(stats.unseen, "Learn new words")
        if stats.ready_for_quiz > 0:
            return LearningRecommendation.quiz(stats.ready_for_quiz, "Prove you know these words")
        if stats.needs_deep_learn > 0:
            return LearningRecommendation.deep_learn(stats.needs_deep_learn, "Lock in your knowledge")
        return LearningRecommendation.all_caught_up()

    # Daily session

    def _preview_quota(self, unseen: int, daily_goal: int) -> int:
        share = min(1.0, max(0.0, self.config.preview_share))
        return min(unseen, math.ceil(daily_goal * share))

    def build_daily_session(
        self, pool: Iterable[Word], daily_goal: Optional[int] = None, now: Optional[datetime] = None
    ) -> DailySessionConfig:
        """Build the preview, quiz and deep-learn words for today's session."""
        words = check_pool(pool)
        daily_goal = self.config.daily_goal if daily_goal is None else max(0, daily_goal)

        unseen = sum(1 for word in words if word.stage is LearningStage.UNSEEN)
        preview_words = self.preview_queue(words, self._preview_quota(unseen, daily_goal))
        quiz_words = self.quiz_queue(words, daily_goal - len(preview_words), now)
        deep_learn = self.deep_learn_queue(words, 1)

        session = DailySessionConfig(
            preview_words=preview_words,
            quiz_words=quiz_words,
            deep_learn_word=deep_learn[0] if deep_learn else None,
        )
        logger.info(
            f"Built daily session (goal {daily_goal}): {len(session.preview_words)} preview, "
            f"{len(session.quiz_words)} quiz, deep learn: {session.deep_learn_word is not None}"
        )
        return session

    def daily_session_summary(
        self, pool: Iterable[Word], daily_goal: Optional[int] = None, now: Optional[datetime] = None
    ) -> DailySessionSummary:
        """Count what today's session would contain without building it."""
        words = check_pool(pool)
        daily_goal = self.config.daily_goal if daily_goal is None else max(0, daily_goal)

        unseen = sum(1 for word in words if word.stage is LearningStage.UNSEEN)
        preview = self._preview_quota(unseen, daily_goal)
        ready = sum(1 for word in words if self.is_due_for_quiz(word, now))
        return DailySessionSummary(
            preview=preview,
            quiz=min(ready, daily_goal - preview),
            deep_learn=any(self.needs_deep_learning(word) for word in words),
        )

    def has_daily_session_content(
        self, pool: Iterable[Word], daily_goal: Optional[int] = None, now: Optional[datetime] = None
    ) -> bool:
        """Check if a daily session would have anything to show."""
        return self.daily_session_summary(pool, daily_goal, now).total_items > 0
