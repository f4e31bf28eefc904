"""Configuration settings for the vocabulary engine."""
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Learning path settings
STAGE_WEIGHTS = {
    "unseen": 0.0,
    "previewed": 0.33,
    "quizPassed": 0.66,
    "deepLearned": 1.0,
}


def _get_int_list(name: str, default: str = "") -> list[int]:
    """Parse a comma separated list of integers from an environment variable."""
    return [int(value) for value in os.getenv(name, default).split(",") if value.strip()]


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///vocabpath.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = os.getenv("LOG_FILE", None)
    max_bytes: int = int(os.getenv("LOG_MAX_BYTES", str(10 * 1024 * 1024)))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "5"))


@dataclass
class SchedulerSettings:
    """Spaced repetition settings.

    Ease factors are kept to two decimals. The next interval is
    ``round(interval * ease)`` with Python's round-half-to-even, so
    1 day at ease 2.5 gives 2 days and 3 days at ease 2.5 gives 8.
    """
    default_ease_factor: float = float(os.getenv("DEFAULT_EASE_FACTOR", "2.5"))
    min_ease_factor: float = float(os.getenv("MIN_EASE_FACTOR", "1.3"))
    max_ease_factor: float = float(os.getenv("MAX_EASE_FACTOR", "3.0"))
    ease_bonus: float = float(os.getenv("EASE_BONUS", "0.1"))
    ease_penalty: float = float(os.getenv("EASE_PENALTY", "0.2"))
    mastery_repetitions: int = int(os.getenv("MASTERY_REPETITIONS", "5"))
    max_interval_days: int = int(os.getenv("MAX_INTERVAL_DAYS", "36500"))
    # Fixed intervals for the first repetitions, e.g. "1,6" for classic SM-2.
    graduation_intervals: list[int] = field(
        default_factory=lambda: _get_int_list("GRADUATION_INTERVALS")
    )


@dataclass
class LearningPathSettings:
    """Learning path and daily session settings."""
    struggling_accuracy: float = float(os.getenv("STRUGGLING_ACCURACY", "0.5"))
    struggling_min_reviews: int = int(os.getenv("STRUGGLING_MIN_REVIEWS", "3"))
    deep_learn_confidence: int = int(os.getenv("DEEP_LEARN_CONFIDENCE", "3"))
    max_confidence: int = 5
    stage_weights: dict[str, float] = field(default_factory=lambda: dict(STAGE_WEIGHTS))
    preview_share: float = float(os.getenv("PREVIEW_SHARE", "0.5"))
    daily_goal: int = int(os.getenv("DAILY_GOAL", "10"))
    queue_limit: int = int(os.getenv("QUEUE_LIMIT", "20"))
    deep_learn_queue_limit: int = int(os.getenv("DEEP_LEARN_QUEUE_LIMIT", "10"))
    max_explanation_length: int = 1000
    max_example_length: int = 500


@dataclass
class QuestionSettings:
    """Quiz question generation settings."""
    option_count: int = int(os.getenv("OPTION_COUNT", "4"))
    typo_similarity: float = float(os.getenv("TYPO_SIMILARITY", "0.8"))
    substring_coverage: float = float(os.getenv("SUBSTRING_COVERAGE", "0.8"))
    keyword_pass_ratio: float = float(os.getenv("KEYWORD_PASS_RATIO", "0.6"))
    keyword_partial_ratio: float = float(os.getenv("KEYWORD_PARTIAL_RATIO", "0.3"))
    max_answer_length: int = 200


@dataclass
class ScoreSettings:
    """Exam score prediction settings (GRE Verbal scale)."""
    base_score: int = 145
    min_score: int = 130
    max_score: int = 170
    words_per_point: int = 33
    max_word_bonus: int = 15
    max_accuracy_bonus: int = 5
    neutral_accuracy: float = 0.7
    speed_threshold: float = float(os.getenv("SPEED_THRESHOLD", "5.0"))
    speed_bonus: int = 3
    deep_learned_per_point: int = 25
    max_deep_bonus: int = 2
    target_score: int = int(os.getenv("TARGET_SCORE", "160"))


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_scheduler_settings() -> SchedulerSettings:
    """Get scheduler settings."""
    return SchedulerSettings()


def get_learning_path_settings() -> LearningPathSettings:
    """Get learning path settings."""
    return LearningPathSettings()


def get_question_settings() -> QuestionSettings:
    """Get question settings."""
    return QuestionSettings()


def get_score_settings() -> ScoreSettings:
    """Get score settings."""
    return ScoreSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    scheduler: SchedulerSettings = field(default_factory=get_scheduler_settings)
    learning_path: LearningPathSettings = field(default_factory=get_learning_path_settings)
    questions: QuestionSettings = field(default_factory=get_question_settings)
    score: ScoreSettings = field(default_factory=get_score_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if self.scheduler.min_ease_factor > self.scheduler.max_ease_factor:
            raise ValueError("MIN_EASE_FACTOR cannot be greater than MAX_EASE_FACTOR")

        if not self.scheduler.min_ease_factor <= self.scheduler.default_ease_factor <= self.scheduler.max_ease_factor:
            raise ValueError("DEFAULT_EASE_FACTOR must be between MIN_EASE_FACTOR and MAX_EASE_FACTOR")

        if self.scheduler.mastery_repetitions < 1:
            raise ValueError("MASTERY_REPETITIONS must be positive")

        if any(interval < 1 for interval in self.scheduler.graduation_intervals):
            raise ValueError("GRADUATION_INTERVALS must contain positive day counts")

        if self.learning_path.struggling_accuracy < 0 or self.learning_path.struggling_accuracy > 1:
            raise ValueError("STRUGGLING_ACCURACY must be between 0 and 1")

        if self.learning_path.preview_share < 0 or self.learning_path.preview_share > 1:
            raise ValueError("PREVIEW_SHARE must be between 0 and 1")

        if self.learning_path.daily_goal < 1:
            raise ValueError("DAILY_GOAL must be positive")

        if self.questions.option_count < 2:
            raise ValueError("OPTION_COUNT must be at least 2")

        if self.score.min_score > self.score.max_score:
            raise ValueError("Minimum score cannot be greater than maximum score")

        if not self.score.min_score <= self.score.target_score <= self.score.max_score:
            raise ValueError("TARGET_SCORE must be within the score range")


# Create global settings instance
settings = Settings()
settings.validate()
