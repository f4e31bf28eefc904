"""Spaced repetition scheduling for word reviews."""
import logging
from datetime import UTC, datetime, timedelta
from typing import Iterable, List, Optional

from vocabpath import monitoring
from vocabpath.config import SchedulerSettings, settings
from vocabpath.models.base import as_utc
from vocabpath.models.models import MasteryStatus, Word

logger = logging.getLogger(__name__)


def overdue_sort_key(word: Word) -> tuple:
    """Sort key putting the most overdue words first.

    Words that were never scheduled count as the most overdue of all.
    """
    next_review = as_utc(word.next_review_at)
    if next_review is None:
        return (0, datetime.min.replace(tzinfo=UTC))
    return (1, next_review)


def check_pool(pool: Optional[Iterable[Word]]) -> List[Word]:
    """Materialize a word pool, failing loudly on a missing one."""
    if pool is None:
        raise TypeError("Word pool is required")
    return list(pool)


class SpacedRepetitionService:
    """SM-2 style scheduler driven by yes/no recall outcomes."""

    def __init__(self, config: Optional[SchedulerSettings] = None):
        """Initialize the service with scheduler settings."""
        self.config = config or settings.scheduler

    def is_due(self, word: Word, now: Optional[datetime] = None) -> bool:
        """Check if the word's review date has come."""
        now = as_utc(now) or datetime.now(UTC)
        next_review = as_utc(word.next_review_at)
        return next_review is None or next_review <= now

    def select_due(self, pool: Iterable[Word], now: Optional[datetime] = None, limit: int = 20) -> List[Word]:
        """Get words due for review, most overdue first."""
        now = as_utc(now) or datetime.now(UTC)
        limit = max(0, limit)
        candidates = [
            word for word in check_pool(pool)
            if self.is_due(word, now)
            or word.mastery_status in (MasteryStatus.NEW, MasteryStatus.LEARNING)
        ]
        # sorted() is stable, so ties keep pool order
        due = sorted(candidates, key=overdue_sort_key)[:limit]
        logger.debug(f"Selected {len(due)} due words out of {len(candidates)} candidates")
        return due

    def _clamp_ease(self, ease_factor: Optional[float]) -> float:
        if ease_factor is None:
            ease_factor = self.config.default_ease_factor
        return min(self.config.max_ease_factor, max(self.config.min_ease_factor, ease_factor))

    def _next_interval(self, repetitions: int, interval_days: int, ease_factor: float) -> int:
        """Interval after a successful recall that brought repetitions to `repetitions`."""
        graduation = self.config.graduation_intervals
        if repetitions <= len(graduation):
            return graduation[repetitions - 1]
        return min(self.config.max_interval_days, max(1, round(max(1, interval_days) * ease_factor)))

    def process_response(
        self,
        word: Word,
        knew_it: bool,
        now: Optional[datetime] = None,
        response_time: Optional[float] = None,
    ) -> Word:
        """Update the word's spaced repetition fields from a recall outcome.

        `response_time` (seconds) is folded into the word's average answer time
        when given.
        """
        now = as_utc(now) or datetime.now(UTC)
        if response_time is not None:
            word.record_response_time(response_time)
        repetitions = max(0, word.repetitions or 0)
        interval_days = max(1, word.interval_days or 1)
        ease_factor = self._clamp_ease(word.ease_factor)

        if knew_it:
            repetitions += 1
            ease_factor = round(min(ease_factor + self.config.ease_bonus, self.config.max_ease_factor), 2)
            interval_days = self._next_interval(repetitions, interval_days, ease_factor)
        else:
            repetitions = 0
            ease_factor = round(max(self.config.min_ease_factor, ease_factor - self.config.ease_penalty), 2)
            interval_days = 1

        word.repetitions = repetitions
        word.ease_factor = ease_factor
        word.interval_days = interval_days
        word.times_reviewed = max(0, word.times_reviewed or 0) + 1
        word.times_correct = min(word.times_reviewed, max(0, word.times_correct or 0) + (1 if knew_it else 0))
        word.last_reviewed_at = now
        word.next_review_at = now + timedelta(days=interval_days)

        monitoring.reviews_processed.labels(outcome="correct" if knew_it else "incorrect").inc()
        logger.debug(
            f"Processed response for {word.term!r}: knew_it={knew_it}, repetitions={repetitions}, "
            f"ease={word.ease_factor}, interval={interval_days}d, status={word.mastery_status.value}"
        )
        return word

    def estimated_days_to_mastery(self, word: Word) -> int:
        """Days of review left before mastery if every remaining recall succeeds."""
        repetitions = max(0, word.repetitions or 0)
        interval_days = max(1, word.interval_days or 1)
        ease_factor = self._clamp_ease(word.ease_factor)
        total_days = 0
        while repetitions < self.config.mastery_repetitions:
            repetitions += 1
            ease_factor = round(min(ease_factor + self.config.ease_bonus, self.config.max_ease_factor), 2)
            interval_days = self._next_interval(repetitions, interval_days, ease_factor)
            total_days += interval_days
        return total_days
