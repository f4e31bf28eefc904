"""Active recall question generation and answer validation."""
import logging
import random
import re
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Sequence, Type, final

from vocabpath import monitoring
from vocabpath.config import QuestionSettings, settings
from vocabpath.models.models import Word
from vocabpath.models.question_models import (
    ActiveRecallQuestion,
    AnswerResult,
    DeepMomentQuestion,
    QuestionOption,
    QuestionType,
)
from vocabpath.services.spaced_repetition import check_pool

logger = logging.getLogger(__name__)

BLANK = "_____"

STOP_WORDS = {
    "a", "an", "the", "is", "are", "was", "were", "be", "been", "being",
    "to", "of", "in", "for", "on", "with", "at", "by", "from", "or", "and",
}

WRONG_EXPLANATIONS = {
    "noun": ["A type of action or behavior", "A descriptive quality or characteristic"],
    "verb": ["A person, place, or thing", "A quality used to describe something"],
    "adjective": ["An action word describing movement", "A specific person or location"],
    "adverb": ["A physical object or item", "A state of being or existence"],
}
DEFAULT_WRONG_EXPLANATIONS = [
    "The opposite meaning of what it actually is",
    "A common misconception about this word",
]


def normalize_answer(text: str) -> str:
    """Lowercase, strip punctuation and collapse whitespace."""
    text = re.sub(r"[^\w\s]", " ", text.lower())
    return " ".join(text.split())


def levenshtein_distance(s1: str, s2: str) -> int:
    """Calculate Levenshtein distance between two strings."""
    if len(s1) < len(s2):
        return levenshtein_distance(s2, s1)
    if not s2:
        return len(s1)

    previous_row = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row
    return previous_row[-1]


def extract_keywords(text: str) -> List[str]:
    """Content words of a normalized definition."""
    return [token for token in text.split() if len(token) > 2 and token not in STOP_WORDS]


def get_all_subclasses(cls):
    """Get all subclasses of a class."""
    all_subclasses = []
    for subclass in cls.__subclasses__():
        all_subclasses.append(subclass)
        all_subclasses.extend(get_all_subclasses(subclass))
    return all_subclasses


class BaseQuestionBuilder(ABC):
    """Base class for all question types."""

    """Fields and methods that must be implemented by subclasses."""
    type: Optional[QuestionType] = None

    @classmethod
    def is_available(cls, word: Word) -> bool:
        """Determine if this question type can be asked about the given word."""
        return True

    @abstractmethod
    def _create_question(self, word: Word, pool: List[Word]) -> Optional[ActiveRecallQuestion]:
        """Build the question, or return None if the pool is too thin for it."""
        raise NotImplementedError("Subclasses must implement this method")

    """Fields and methods that must not be overridden by subclasses."""

    @final
    def __init__(self, generator: "QuestionGenerator"):
        self.generator = generator
        self.rng = generator.rng

    @final
    def create_question(self, word: Word, pool: List[Word]) -> Optional[ActiveRecallQuestion]:
        others = [other for other in pool if other is not word and other.term != word.term]
        return self._create_question(word, others)

    @final
    def _multiple_choice(
        self,
        word: Word,
        prompt: str,
        correct: str,
        distractors: List[str],
        hint: Optional[str],
    ) -> Optional[ActiveRecallQuestion]:
        if len(distractors) < self.generator.option_count - 1:
            return None
        options = [QuestionOption(text) for text in distractors]
        options.append(QuestionOption(correct, is_correct=True))
        self.rng.shuffle(options)
        return ActiveRecallQuestion(
            word=word,
            type=self.type,
            prompt=prompt,
            correct_answer=correct,
            options=options,
            hint=hint,
        )


class DefinitionRecallQuestion(BaseQuestionBuilder):
    """Type the definition from memory."""
    type = QuestionType.DEFINITION_RECALL

    def _create_question(self, word: Word, pool: List[Word]) -> ActiveRecallQuestion:
        return ActiveRecallQuestion(
            word=word,
            type=self.type,
            prompt=f'What is the definition of "{word.term}"?',
            correct_answer=word.definition,
            hint=word.mnemonic,
        )


class SentenceCompletionQuestion(BaseQuestionBuilder):
    """Fill in the blank in the word's example sentence."""
    type = QuestionType.SENTENCE_COMPLETION

    @staticmethod
    def _pattern(word: Word) -> re.Pattern:
        # Blank out inflected forms too ("abated" for "abate")
        return re.compile(rf"\b{re.escape(word.term)}\w*", re.IGNORECASE)

    @classmethod
    def is_available(cls, word: Word) -> bool:
        sentence = (word.example_sentence or "").strip()
        return bool(sentence) and cls._pattern(word).search(sentence) is not None

    def _create_question(self, word: Word, pool: List[Word]) -> Optional[ActiveRecallQuestion]:
        prompt = self._pattern(word).sub(BLANK, word.example_sentence.strip())
        distractors = self.generator.pick_distractors(
            word, [(other, other.term) for other in pool], word.term
        )
        return self._multiple_choice(word, prompt, word.term, distractors, f"Part of speech: {word.part_of_speech}")


class SynonymSelectionQuestion(BaseQuestionBuilder):
    """Choose the word with a similar meaning."""
    type = QuestionType.SYNONYM_SELECTION

    @classmethod
    def is_available(cls, word: Word) -> bool:
        return bool(word.synonyms)

    def _create_question(self, word: Word, pool: List[Word]) -> Optional[ActiveRecallQuestion]:
        correct = self.rng.choice(word.synonyms)
        distractors = self.generator.pick_distractors(
            word,
            [(other, other.term) for other in pool],
            correct,
            exclude=word.synonyms,
        )
        return self._multiple_choice(
            word, f'Which word is a synonym of "{word.term}"?', correct, distractors, word.definition
        )


class AntonymSelectionQuestion(BaseQuestionBuilder):
    """Choose the word with the opposite meaning."""
    type = QuestionType.ANTONYM_SELECTION

    @classmethod
    def is_available(cls, word: Word) -> bool:
        return bool(word.antonyms)

    def _create_question(self, word: Word, pool: List[Word]) -> Optional[ActiveRecallQuestion]:
        correct = self.rng.choice(word.antonyms)
        # The word's own synonyms make the most tempting wrong answers
        distractors = self.generator.pick_distractors(
            word,
            [(other, other.term) for other in pool],
            correct,
            exclude=word.antonyms,
            preferred=word.synonyms[:2],
        )
        return self._multiple_choice(
            word, f'Which word is an antonym of "{word.term}"?', correct, distractors, word.definition
        )


class DefinitionMatchQuestion(BaseQuestionBuilder):
    """Pick the correct definition of the word."""
    type = QuestionType.DEFINITION_MATCH

    def _create_question(self, word: Word, pool: List[Word]) -> Optional[ActiveRecallQuestion]:
        distractors = self.generator.pick_distractors(
            word, [(other, other.definition) for other in pool], word.definition
        )
        return self._multiple_choice(
            word,
            f'Select the correct definition of "{word.term}":',
            word.definition,
            distractors,
            word.example_sentence or None,
        )


class WordFromDefinitionQuestion(BaseQuestionBuilder):
    """Pick the word that matches a definition."""
    type = QuestionType.WORD_FROM_DEFINITION

    def _create_question(self, word: Word, pool: List[Word]) -> Optional[ActiveRecallQuestion]:
        distractors = self.generator.pick_distractors(
            word, [(other, other.term) for other in pool], word.term
        )
        return self._multiple_choice(
            word, word.definition, word.term, distractors, f"Part of speech: {word.part_of_speech}"
        )


class QuestionGenerator:
    """Builds quiz questions for words and grades the answers."""

    builders: Dict[QuestionType, Type[BaseQuestionBuilder]] = {
        builder.type: builder for builder in get_all_subclasses(BaseQuestionBuilder)
    }

    def __init__(self, rng: Optional[random.Random] = None, config: Optional[QuestionSettings] = None):
        """Initialize the generator with a random source and question settings."""
        self.rng = rng or random.Random()
        self.config = config or settings.questions
        self.option_count = self.config.option_count

    def available_types(self, word: Word) -> List[QuestionType]:
        """Get the question types that can be asked about the word."""
        return [question_type for question_type in QuestionType if self.builders[question_type].is_available(word)]

    def pick_distractors(
        self,
        word: Word,
        candidates: Sequence[tuple],
        correct: str,
        exclude: Iterable[str] = (),
        preferred: Iterable[str] = (),
    ) -> List[str]:
        """Choose up to `option_count - 1` distinct wrong options.

        `candidates` are (source word, option text) pairs. Texts from words sharing
        the part of speech and difficulty come first, then the part of speech only,
        then everything else; `preferred` texts go before all of them.
        """
        needed = self.option_count - 1
        seen = {normalize_answer(correct)} | {normalize_answer(text) for text in exclude}
        tiers: List[List[str]] = [list(preferred), [], [], []]
        for other, text in candidates:
            same_pos = (other.part_of_speech or "").lower() == (word.part_of_speech or "").lower()
            if same_pos and other.difficulty == word.difficulty:
                tiers[1].append(text)
            elif same_pos:
                tiers[2].append(text)
            else:
                tiers[3].append(text)

        distractors: List[str] = []
        for tier in tiers[1:]:
            self.rng.shuffle(tier)
        for tier in tiers:
            for text in tier:
                key = normalize_answer(text or "")
                if not key or key in seen:
                    continue
                seen.add(key)
                distractors.append(text)
                if len(distractors) == needed:
                    return distractors
        return distractors

    def generate_question(
        self, word: Word, question_type: QuestionType, pool: Iterable[Word]
    ) -> ActiveRecallQuestion:
        """Generate a question of the given type, falling back to definition recall."""
        builder_cls = self.builders[question_type]
        question = None
        if builder_cls.is_available(word):
            question = builder_cls(self).create_question(word, check_pool(pool))
        else:
            logger.warning(f"{question_type.value} is not available for {word.term!r}")

        if question is None:
            logger.warning(f"Falling back to definition recall for {word.term!r} (requested {question_type.value})")
            question = DefinitionRecallQuestion(self).create_question(word, [])

        monitoring.questions_generated.labels(question_type=question.type.value).inc()
        return question

    def generate_random_question(self, word: Word, pool: Iterable[Word]) -> ActiveRecallQuestion:
        """Generate a question of a random available type."""
        question_type = self.rng.choice(self.available_types(word))
        return self.generate_question(word, question_type, pool)

    def validate_text_answer(
        self,
        user_input: str,
        correct_answer: str,
        question_type: QuestionType = QuestionType.DEFINITION_RECALL,
    ) -> AnswerResult:
        """Grade a free text answer against the expected one."""
        answer = normalize_answer((user_input or "").strip()[: self.config.max_answer_length])
        expected = normalize_answer(correct_answer or "")

        if not answer:
            result = AnswerResult(is_correct=False, score=0, feedback="Please enter an answer")
        elif answer == expected:
            result = AnswerResult(is_correct=True, score=100, feedback="Perfect!")
        elif self._is_near_match(answer, expected):
            result = AnswerResult(is_correct=True, score=100, feedback="Close enough! Watch the spelling.")
        else:
            result = None
            if question_type is QuestionType.DEFINITION_RECALL:
                result = self._grade_keywords(answer, expected)
            if result is None:
                result = AnswerResult(is_correct=False, score=0, feedback="Not quite. Keep practicing!")

        monitoring.answers_validated.labels(result="correct" if result.is_correct else "incorrect").inc()
        logger.debug(f"Validated answer {user_input!r}: correct={result.is_correct}, score={result.score}")
        return result

    def _is_near_match(self, answer: str, expected: str) -> bool:
        longest = max(len(answer), len(expected))
        similarity = 1 - levenshtein_distance(answer, expected) / longest
        if similarity >= self.config.typo_similarity:
            return True
        if answer in expected or expected in answer:
            return min(len(answer), len(expected)) / longest >= self.config.substring_coverage
        return False

    def _grade_keywords(self, answer: str, expected: str) -> Optional[AnswerResult]:
        keywords = extract_keywords(expected)
        if not keywords:
            return None
        matched = [keyword for keyword in keywords if keyword in answer]
        ratio = len(matched) / len(keywords)
        if ratio >= self.config.keyword_pass_ratio:
            return AnswerResult(
                is_correct=True, score=int(ratio * 100), feedback="Good recall! You captured the key concepts."
            )
        if ratio >= self.config.keyword_partial_ratio:
            return AnswerResult(
                is_correct=False, score=int(ratio * 100), feedback="Partial understanding. Review the full definition."
            )
        return None

    def validate_option_answer(self, question: ActiveRecallQuestion, chosen: str) -> AnswerResult:
        """Grade a multiple choice pick; free text questions go through text validation."""
        if not question.is_multiple_choice:
            return self.validate_text_answer(chosen, question.correct_answer, question.type)

        is_correct = any(option.is_correct and option.text == chosen for option in question.options)
        monitoring.answers_validated.labels(result="correct" if is_correct else "incorrect").inc()
        if is_correct:
            return AnswerResult(is_correct=True, score=100, feedback="Correct!")
        return AnswerResult(is_correct=False, score=0, feedback=f"The answer was: {question.correct_answer}")

    def generate_deep_moment_question(self, word: Word) -> DeepMomentQuestion:
        """Build a 'which explanation fits' question for a struggling word."""
        correct = word.definition
        if word.mnemonic:
            correct = f"{correct} (Think: {word.mnemonic})"

        wrong = []
        if word.antonyms:
            wrong.append(f'Similar in meaning to "{word.antonyms[0]}"')
        wrong.extend(WRONG_EXPLANATIONS.get((word.part_of_speech or "").lower(), DEFAULT_WRONG_EXPLANATIONS))
        if len(wrong) < 3:
            wrong.append("A word with an unrelated meaning")

        options = [QuestionOption(text) for text in wrong[:3]]
        options.append(QuestionOption(correct, is_correct=True))
        self.rng.shuffle(options)
        return DeepMomentQuestion(
            word=word,
            prompt=f'Which explanation best captures the meaning of "{word.term}"?',
            options=options,
            correct_explanation=correct,
        )
