"""Models for quiz question data structures."""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from vocabpath.models.models import Word


class QuestionType(Enum):
    """Available active recall question types."""
    DEFINITION_RECALL = "definition_recall"  # Type the definition from memory
    SENTENCE_COMPLETION = "sentence_completion"  # Fill in the blank
    SYNONYM_SELECTION = "synonym_selection"  # Choose the word with similar meaning
    ANTONYM_SELECTION = "antonym_selection"  # Choose the word with opposite meaning
    DEFINITION_MATCH = "definition_match"  # Match the word to its definition
    WORD_FROM_DEFINITION = "word_from_definition"  # Identify the word from its definition


@dataclass(frozen=True)
class QuestionOption:
    """One multiple-choice option."""
    text: str
    is_correct: bool = False


@dataclass
class ActiveRecallQuestion:
    """A single quiz item for a word."""
    word: Word
    type: QuestionType
    prompt: str
    correct_answer: str
    options: Optional[List[QuestionOption]] = None
    hint: Optional[str] = None

    @property
    def is_multiple_choice(self) -> bool:
        return self.options is not None


@dataclass(frozen=True)
class AnswerResult:
    """Outcome of checking a learner's answer."""
    is_correct: bool
    score: int  # 0-100
    feedback: str


@dataclass
class DeepMomentQuestion:
    """A 'which explanation fits' question for a struggling word."""
    word: Word
    prompt: str
    options: List[QuestionOption]
    correct_explanation: str
