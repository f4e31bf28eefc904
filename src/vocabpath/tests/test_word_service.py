"""Tests for word service."""
import json
from datetime import UTC, datetime, timedelta
from typing import Generator

import pytest
from faker import Faker
from sqlalchemy.orm import Session

from vocabpath.models.base import Base, SessionLocal, as_utc, engine, get_db, init_db
from vocabpath.models.models import Difficulty, FrequencyTier, LearningStage
from vocabpath.services.learning_path import LearningPathService
from vocabpath.services.word_service import WordService

fake = Faker()


@pytest.fixture(autouse=True)
def setup_database():
    """Recreate the schema before each test."""
    Base.metadata.drop_all(bind=engine)
    init_db()
    yield
    engine.dispose()


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def word_service(db: Session) -> WordService:
    """Create a word service instance."""
    return WordService(db)


def entry(**kwargs) -> dict:
    """Build a word pack entry."""
    data = {
        "term": fake.unique.word(),
        "definition": fake.sentence(),
        "part_of_speech": "noun",
    }
    data.update(kwargs)
    return data


def test_create_word(word_service: WordService) -> None:
    """Test word creation with pack fields and defaults."""
    word = word_service.create_word(
        entry(
            term="laconic",
            synonyms=["terse", "concise", "terse"],
            difficulty="Advanced",
            frequency="essential",
        )
    )

    assert word.id is not None
    assert word.synonyms == ["terse", "concise"]
    assert word.antonyms == []
    assert word.difficulty is Difficulty.ADVANCED
    assert word.frequency is FrequencyTier.ESSENTIAL
    assert word.stage is LearningStage.UNSEEN
    assert word.ease_factor == 2.5
    assert word.created_at is not None

    # Creating the same term again returns the stored word
    assert word_service.create_word(entry(term="laconic")).id == word.id


def test_create_word_matches_terms_literally(word_service: WordService) -> None:
    """Test wildcard characters in a term never match a different stored word."""
    abate = word_service.create_word(entry(term="abate"))

    underscored = word_service.create_word(entry(term="a_ate", definition="something else"))
    percent = word_service.create_word(entry(term="ab%", definition="another thing"))

    assert underscored.term == "a_ate"
    assert percent.term == "ab%"
    assert word_service.get_word_count() == 3
    assert word_service.get_word_by_term("ABATE") is abate
    assert word_service.get_word_by_term("a%") is None


def test_word_from_entry_null_tiers() -> None:
    """Test null difficulty and frequency fall back to the defaults."""
    word = WordService.word_from_entry(entry(difficulty=None, frequency=None))

    assert word.difficulty is Difficulty.COMMON
    assert word.frequency is FrequencyTier.COMMON


def test_word_from_entry_requires_fields() -> None:
    """Test entries without a term or definition are rejected."""
    with pytest.raises(ValueError, match="definition"):
        WordService.word_from_entry({"term": "abate"})
    with pytest.raises(ValueError, match="term"):
        WordService.word_from_entry({"definition": "to lessen"})
    with pytest.raises(ValueError):
        WordService.word_from_entry(entry(difficulty="impossible"))


def test_seed_words_skips_duplicates(word_service: WordService) -> None:
    """Test seeding ignores terms already stored or repeated in the batch."""
    word_service.create_word(entry(term="abate"))

    seeded = word_service.seed_words([entry(term="Abate"), entry(term="venal"), entry(term="VENAL"), entry()])

    assert len(seeded) == 2
    assert word_service.get_word_count() == 3


def test_load_word_pack(word_service: WordService, tmp_path) -> None:
    """Test loading a JSON word pack from disk."""
    pack = tmp_path / "words.json"
    pack.write_text(json.dumps([entry(term="obdurate"), entry(term="prodigal", difficulty="expert")]))

    words = word_service.load_word_pack(pack)

    assert [word.term for word in words] == ["obdurate", "prodigal"]
    assert word_service.get_word_by_term("PRODIGAL").difficulty is Difficulty.EXPERT

    bad_pack = tmp_path / "bad.json"
    bad_pack.write_text(json.dumps({"term": "obdurate"}))
    with pytest.raises(ValueError):
        word_service.load_word_pack(bad_pack)


def test_get_pool_filters(word_service: WordService, db: Session) -> None:
    """Test pool queries by difficulty and stage, in insertion order."""
    first = word_service.create_word(entry(difficulty="common"))
    second = word_service.create_word(entry(difficulty="expert"))
    third = word_service.create_word(entry(difficulty="expert"))
    third.stage = LearningStage.PREVIEWED
    word_service.save()

    assert word_service.get_pool() == [first, second, third]
    assert word_service.get_pool(difficulty=Difficulty.EXPERT) == [second, third]
    assert word_service.get_pool(stage=LearningStage.PREVIEWED) == [third]
    assert word_service.get_word(second.id) is second
    assert word_service.get_word(9999) is None


def test_search_words(word_service: WordService) -> None:
    """Test searching by term or definition."""
    word_service.create_word(entry(term="garrulous", definition="excessively talkative"))
    word_service.create_word(entry(term="taciturn", definition="reserved in speech"))

    assert [word.term for word in word_service.search_words("talk")] == ["garrulous"]
    assert [word.term for word in word_service.search_words("TACI")] == ["taciturn"]
    assert word_service.search_words("zzz") == []


def test_engine_changes_persist(word_service: WordService, db: Session) -> None:
    """Test learning path updates survive a round trip through the store."""
    word = word_service.create_word(entry(term="abate", synonyms=["lessen"]))
    now = datetime(2024, 3, 1, 9, 0, tzinfo=UTC)
    learning_path = LearningPathService()

    learning_path.mark_previewed(word, now)
    learning_path.record_quiz_attempt(word, True, now)
    word_service.save()
    word_id = word.id
    db.expunge_all()

    stored = word_service.get_word(word_id)
    assert stored.stage is LearningStage.QUIZ_PASSED
    assert stored.synonyms == ["lessen"]
    assert stored.repetitions == 1
    assert stored.times_correct == 1
    assert as_utc(stored.next_review_at) == now + timedelta(days=stored.interval_days)
    assert as_utc(stored.last_reviewed_at) == now
    assert learning_path.is_due_for_quiz(stored, now) is False


def test_get_db_yields_session() -> None:
    """Test the session generator opens a working session."""
    db_gen = get_db()
    session = next(db_gen)
    assert WordService(session).get_word_count() == 0
    db_gen.close()


def test_as_utc() -> None:
    """Test naive datetimes are read as UTC."""
    naive = datetime(2024, 3, 1, 9, 0)
    assert as_utc(naive) == datetime(2024, 3, 1, 9, 0, tzinfo=UTC)
    assert as_utc(None) is None


def test_word_repr(word_service: WordService) -> None:
    """Test the debug representation."""
    word = word_service.create_word(entry(term="venal"))
    assert repr(word) == f"<Word {word.id} 'venal' stage=unseen reps=0>"


if __name__ == "__main__":
    pytest.main([__file__])
