"""Test configuration."""
import os
from datetime import UTC, datetime
from pathlib import Path

import pytest
from dotenv import load_dotenv
from faker import Faker

# Set test environment before any imports
os.environ["ENV"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

# Load test environment variables
test_env_path = Path(__file__).parent.parent.parent.parent / ".env.test"
load_dotenv(test_env_path)

# Import after environment setup
from vocabpath.models.models import Difficulty, LearningStage, Word

fake = Faker()


@pytest.fixture
def now() -> datetime:
    """A fixed point in time for scheduling tests."""
    return datetime(2024, 3, 1, 9, 0, tzinfo=UTC)


@pytest.fixture
def make_word():
    """Factory for transient words with unique terms."""
    counter = {"n": 0}

    def _make_word(**kwargs) -> Word:
        counter["n"] += 1
        kwargs.setdefault("term", f"{fake.word()}{counter['n']}")
        kwargs.setdefault("definition", fake.sentence())
        kwargs.setdefault("part_of_speech", "adjective")
        kwargs.setdefault("difficulty", Difficulty.COMMON)
        kwargs.setdefault("stage", LearningStage.UNSEEN)
        return Word(**kwargs)

    return _make_word
