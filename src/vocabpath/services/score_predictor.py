"""Service for predicting GRE Verbal scores from learner performance.

GRE Verbal Reasoning scores range from 130 to 170 in 1-point increments. The
estimate starts from the median score and adds bonuses for mastered words,
quiz accuracy, response speed and deep-learned words.
"""
import logging
from typing import Iterable, Optional

from vocabpath.config import ScoreSettings, settings
from vocabpath.models.models import LearningStage, MasteryStatus, Word
from vocabpath.services.spaced_repetition import check_pool

logger = logging.getLogger(__name__)

# Approximate ETS percentiles for scores 140-170
PERCENTILES = {
    170: 99, 169: 99, 168: 98, 167: 97, 166: 96, 165: 95, 164: 93, 163: 91,
    162: 88, 161: 86, 160: 83, 159: 80, 158: 77, 157: 73, 156: 69, 155: 65,
    154: 61, 153: 56, 152: 52, 151: 47, 150: 43, 149: 38, 148: 34, 147: 30,
    146: 26, 145: 22, 144: 19, 143: 16, 142: 13, 141: 10, 140: 8,
}


class ScorePredictorService:
    """Maps mastery and accuracy into an estimated exam score and readiness."""

    def __init__(self, config: Optional[ScoreSettings] = None):
        """Initialize the service with score settings."""
        self.config = config or settings.score

    def _clamp(self, score: int) -> int:
        return min(self.config.max_score, max(self.config.min_score, score))

    def calculate_score(
        self,
        mastered_words: int,
        total_words: int,
        accuracy: float,
        avg_response_time: float = 10.0,
        deep_learned_count: int = 0,
    ) -> int:
        """Calculate estimated GRE Verbal score.

        Args:
            mastered_words: Number of words the learner has mastered
            total_words: Total words in the pool
            accuracy: Overall quiz accuracy (0.0 - 1.0)
            avg_response_time: Average response time in seconds
            deep_learned_count: Words that have been deep learned

        Returns:
            Estimated score, always within 130-170.
        """
        config = self.config
        # Every ~33 mastered words is worth a point, up to 15 points
        word_bonus = min(config.max_word_bonus, max(0, mastered_words) // config.words_per_point)

        accuracy_bonus = round((accuracy - config.neutral_accuracy) * 25)
        accuracy_bonus = max(-config.max_accuracy_bonus, min(config.max_accuracy_bonus, accuracy_bonus))

        speed_bonus = config.speed_bonus if avg_response_time < config.speed_threshold else 0
        deep_bonus = min(config.max_deep_bonus, max(0, deep_learned_count) // config.deep_learned_per_point)

        score = self._clamp(config.base_score + word_bonus + accuracy_bonus + speed_bonus + deep_bonus)
        logger.debug(
            f"Score {score}: words +{word_bonus}, accuracy {accuracy_bonus:+d}, "
            f"speed +{speed_bonus}, deep +{deep_bonus} ({mastered_words}/{total_words} mastered)"
        )
        return score

    def calculate_score_from_stats(
        self,
        mastered_count: int,
        deep_learned_count: int,
        total_count: int,
        total_studied: int,
        total_correct: int,
        avg_response_time: float = 10.0,
    ) -> int:
        """Calculate the score from raw review counters."""
        if total_studied > 0:
            accuracy = total_correct / total_studied
        else:
            accuracy = self.config.neutral_accuracy  # Default assumption

        return self.calculate_score(
            mastered_words=mastered_count,
            total_words=total_count,
            accuracy=accuracy,
            avg_response_time=avg_response_time,
            deep_learned_count=deep_learned_count,
        )

    @staticmethod
    def average_response_time(words: Iterable[Word]) -> Optional[float]:
        """Answer time averaged over every timed review in the pool, or None if nothing was timed."""
        timed = [word for word in words if word.timed_reviews]
        total_reviews = sum(word.timed_reviews for word in timed)
        if not total_reviews:
            return None
        return sum(word.average_response_time * word.timed_reviews for word in timed) / total_reviews

    def calculate_score_for_pool(self, pool: Iterable[Word], avg_response_time: Optional[float] = None) -> int:
        """Calculate the score straight from a word pool.

        Without an explicit `avg_response_time` the pool's own timed reviews are used,
        falling back to 10 seconds when no answer was timed.
        """
        words = check_pool(pool)
        if avg_response_time is None:
            avg_response_time = self.average_response_time(words)
        if avg_response_time is None:
            avg_response_time = 10.0
        return self.calculate_score_from_stats(
            mastered_count=sum(1 for word in words if word.mastery_status is MasteryStatus.MASTERED),
            deep_learned_count=sum(1 for word in words if word.stage is LearningStage.DEEP_LEARNED),
            total_count=len(words),
            total_studied=sum(word.times_reviewed for word in words),
            total_correct=sum(word.times_correct for word in words),
            avg_response_time=avg_response_time,
        )

    def calculate_readiness(
        self,
        mastered_words: int,
        total_words: int,
        current_score: int,
        target_score: Optional[int] = None,
    ) -> float:
        """Blend word coverage and score-gap closure into a 0-1 readiness value."""
        if target_score is None:
            target_score = self.config.target_score
        floor = self.config.min_score

        word_readiness = min(1.0, max(0, mastered_words) / max(1, total_words))
        score_progress = min(1.0, (current_score - floor) / max(1, target_score - floor))

        readiness = (word_readiness + score_progress) / 2
        return min(1.0, max(0.0, readiness))

    @staticmethod
    def score_description(score: int) -> str:
        """Describe what a score means."""
        if score >= 170:
            return "Perfect! Top 1% of test takers"
        if score >= 165:
            return "Excellent! Top 5% of test takers"
        if score >= 160:
            return "Great! Top 15% of test takers"
        if score >= 155:
            return "Good! Above average"
        if score >= 150:
            return "Average performance"
        if score >= 145:
            return "Below average - keep practicing!"
        if score >= 140:
            return "Needs improvement"
        return "Keep studying to improve!"

    @staticmethod
    def percentile(score: int) -> int:
        """Approximate percentile for a score."""
        if score > 170:
            return 99
        if score in PERCENTILES:
            return PERCENTILES[score]
        return max(1, score - 130)

    def target_advice(self, current_score: int, target_score: int, days_remaining: Optional[int] = None) -> str:
        """Suggest how much work closes the gap to the target score."""
        points_needed = target_score - current_score
        if points_needed <= 0:
            return "You're on track to meet your goal!"

        words_needed = points_needed * self.config.words_per_point
        if days_remaining:
            words_per_day = max(5, words_needed // days_remaining)
            return f"Study {words_per_day} more words/day to reach {target_score}"
        return f"Master {words_needed} more words to reach {target_score}"

    def project_score(self, current_score: int, words_per_day: float, days_remaining: int) -> int:
        """Project the score if the current learning rate holds."""
        projected_words = int(max(0.0, words_per_day) * max(0, days_remaining))
        return self._clamp(current_score + projected_words // self.config.words_per_point)
