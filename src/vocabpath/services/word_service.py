"""Service for loading and persisting word records."""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from vocabpath.models.models import Difficulty, FrequencyTier, LearningStage, Word

logger = logging.getLogger(__name__)

# Word pack fields that may be copied straight onto a record
WORD_FIELDS = (
    "term",
    "definition",
    "part_of_speech",
    "example_sentence",
    "synonyms",
    "antonyms",
    "mnemonic",
    "root_word",
    "root_meaning",
    "usage_notes",
)


class WordService:
    """Store adapter the engine gets its word pools from."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db

    def get_word(self, word_id: int) -> Optional[Word]:
        """Get a word by its ID."""
        return self.db.query(Word).filter(Word.id == word_id).first()

    def get_word_by_term(self, term: str) -> Optional[Word]:
        """Get a word by its term, ignoring case."""
        return self.db.query(Word).filter(func.lower(Word.term) == term.lower()).first()

    def get_pool(
        self,
        difficulty: Optional[Difficulty] = None,
        stage: Optional[LearningStage] = None,
    ) -> List[Word]:
        """Get the word pool, optionally narrowed to one difficulty or stage."""
        query = self.db.query(Word)
        if difficulty is not None:
            query = query.filter(Word.difficulty == difficulty)
        if stage is not None:
            query = query.filter(Word.stage == stage)
        return query.order_by(Word.id).all()

    def get_word_count(self) -> int:
        """Get the count of words in the database."""
        return self.db.query(Word).count()

    def search_words(self, query: str, limit: int = 10) -> List[Word]:
        """Search for words by term or definition."""
        return (
            self.db.query(Word)
            .filter(
                or_(
                    Word.term.ilike(f"%{query}%"),
                    Word.definition.ilike(f"%{query}%"),
                )
            )
            .order_by(Word.id)
            .limit(limit)
            .all()
        )

    @staticmethod
    def word_from_entry(entry: Dict[str, Any]) -> Word:
        """Build a transient word from a word pack entry."""
        missing = [key for key in ("term", "definition") if not entry.get(key)]
        if missing:
            raise ValueError(f"Word entry is missing required fields: {', '.join(missing)}")

        fields = {key: entry[key] for key in WORD_FIELDS if entry.get(key) is not None}
        if entry.get("difficulty") is not None:
            fields["difficulty"] = Difficulty(entry["difficulty"].lower())
        if entry.get("frequency") is not None:
            fields["frequency"] = FrequencyTier(entry["frequency"].lower())
        return Word(**fields)

    def create_word(self, entry: Dict[str, Any]) -> Word:
        """Create a word from an entry, or return the existing one with that term."""
        existing_word = self.get_word_by_term(entry.get("term", ""))
        if existing_word:
            return existing_word

        word = self.word_from_entry(entry)
        self.db.add(word)
        self.db.commit()
        self.db.refresh(word)
        return word

    def seed_words(self, entries: Iterable[Dict[str, Any]]) -> List[Word]:
        """Add every new entry to the store in a single commit."""
        words = []
        seen = {term.lower() for (term,) in self.db.query(Word.term).all()}
        for entry in entries:
            word = self.word_from_entry(entry)
            if word.term.lower() in seen:
                continue
            seen.add(word.term.lower())
            words.append(word)

        self.db.add_all(words)
        self.db.commit()
        logger.info(f"Seeded {len(words)} words")
        return words

    def load_word_pack(self, path: Path | str) -> List[Word]:
        """Seed words from a JSON word pack (a list of entries)."""
        with open(path, encoding="utf-8") as fh:
            entries = json.load(fh)
        if not isinstance(entries, list):
            raise ValueError(f"Word pack {path} must contain a list of words")
        logger.info(f"Loading {len(entries)} entries from {path}")
        return self.seed_words(entries)

    def save(self) -> None:
        """Commit pending mutations made by the engine."""
        self.db.commit()
        logger.debug("Word pool changes committed")
