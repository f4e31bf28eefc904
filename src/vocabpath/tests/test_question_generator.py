"""Tests for question generator."""
import random

import pytest

from vocabpath.config import QuestionSettings
from vocabpath.models.models import Difficulty
from vocabpath.models.question_models import QuestionType
from vocabpath.services.question_generator import (
    BLANK,
    QuestionGenerator,
    levenshtein_distance,
    normalize_answer,
)

DEFINITION = "to reduce in intensity or amount"


@pytest.fixture
def generator() -> QuestionGenerator:
    """Create a generator with a seeded random source."""
    return QuestionGenerator(rng=random.Random(42), config=QuestionSettings())


@pytest.fixture
def abate(make_word):
    """A fully populated word."""
    return make_word(
        term="abate",
        definition=DEFINITION,
        part_of_speech="verb",
        example_sentence="The storm began to abate by noon.",
        synonyms=["lessen", "diminish", "subside"],
        antonyms=["intensify"],
        mnemonic="A BATE-d breath slowly lets out",
    )


@pytest.fixture
def pool(make_word, abate):
    """A pool with several verbs plus a few nouns."""
    verbs = [
        make_word(term=f"verb{i}", definition=f"verb meaning number {i}", part_of_speech="verb")
        for i in range(5)
    ]
    nouns = [
        make_word(term=f"noun{i}", definition=f"noun meaning number {i}", part_of_speech="noun")
        for i in range(3)
    ]
    return [abate] + verbs + nouns


def correct_options(question):
    return [option for option in question.options if option.is_correct]


def test_helpers() -> None:
    """Test normalization and edit distance."""
    assert normalize_answer("  To Reduce, in   intensity! ") == "to reduce in intensity"
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance("abate", "abate") == 0


def test_available_types(generator, abate, make_word) -> None:
    """Test question types depend on the word's data."""
    assert generator.available_types(abate) == list(QuestionType)

    bare = make_word(example_sentence="")
    assert generator.available_types(bare) == [
        QuestionType.DEFINITION_RECALL,
        QuestionType.DEFINITION_MATCH,
        QuestionType.WORD_FROM_DEFINITION,
    ]

    # The sentence must actually contain the word
    unrelated = make_word(term="laconic", example_sentence="He spoke very little.")
    assert QuestionType.SENTENCE_COMPLETION not in generator.available_types(unrelated)


@pytest.mark.parametrize(
    "question_type",
    [
        QuestionType.SENTENCE_COMPLETION,
        QuestionType.SYNONYM_SELECTION,
        QuestionType.ANTONYM_SELECTION,
        QuestionType.DEFINITION_MATCH,
        QuestionType.WORD_FROM_DEFINITION,
    ],
)
def test_multiple_choice_has_one_correct_option(generator, abate, pool, question_type) -> None:
    """Test every multiple choice question has distinct options and one right answer."""
    question = generator.generate_question(abate, question_type, pool)

    assert question.type is question_type
    assert question.is_multiple_choice
    assert len(question.options) == generator.option_count
    keys = [normalize_answer(option.text) for option in question.options]
    assert len(set(keys)) == len(keys)
    assert len(correct_options(question)) == 1
    assert correct_options(question)[0].text == question.correct_answer


def test_definition_recall(generator, abate, pool) -> None:
    """Test free text recall questions."""
    question = generator.generate_question(abate, QuestionType.DEFINITION_RECALL, pool)

    assert not question.is_multiple_choice
    assert question.correct_answer == DEFINITION
    assert "abate" in question.prompt
    assert question.hint == abate.mnemonic


def test_sentence_completion_blanks_the_word(generator, abate, pool, make_word) -> None:
    """Test the word is blanked out of its example sentence."""
    question = generator.generate_question(abate, QuestionType.SENTENCE_COMPLETION, pool)
    assert question.prompt == f"The storm began to {BLANK} by noon."
    assert question.correct_answer == "abate"

    inflected = make_word(term="abate", example_sentence="The wind Abated overnight.", part_of_speech="verb")
    question = generator.generate_question(inflected, QuestionType.SENTENCE_COMPLETION, pool)
    assert question.prompt == f"The wind {BLANK} overnight."


def test_antonym_prefers_synonyms_as_distractors(generator, abate, pool) -> None:
    """Test the word's own synonyms are offered as wrong antonyms."""
    question = generator.generate_question(abate, QuestionType.ANTONYM_SELECTION, pool)

    texts = [option.text for option in question.options]
    assert question.correct_answer == "intensify"
    assert "lessen" in texts
    assert "diminish" in texts


def test_synonym_excludes_other_synonyms(generator, abate, pool) -> None:
    """Test other synonyms never show up as wrong answers."""
    question = generator.generate_question(abate, QuestionType.SYNONYM_SELECTION, pool)

    assert question.correct_answer in abate.synonyms
    wrong = [option.text for option in question.options if not option.is_correct]
    assert not set(wrong) & set(abate.synonyms)


def test_distractors_prefer_same_part_of_speech(generator, abate, pool) -> None:
    """Test distractors come from same part of speech words first."""
    question = generator.generate_question(abate, QuestionType.DEFINITION_MATCH, pool)

    wrong = [option.text for option in question.options if not option.is_correct]
    assert all(text.startswith("verb meaning") for text in wrong)


def test_distractors_prefer_same_difficulty(generator, make_word) -> None:
    """Test same difficulty words beat other difficulties."""
    word = make_word(part_of_speech="noun", difficulty=Difficulty.EXPERT)
    same = [make_word(part_of_speech="noun", difficulty=Difficulty.EXPERT) for _ in range(3)]
    other = [make_word(part_of_speech="noun", difficulty=Difficulty.COMMON) for _ in range(3)]

    question = generator.generate_question(word, QuestionType.WORD_FROM_DEFINITION, [word] + other + same)

    wrong = {option.text for option in question.options if not option.is_correct}
    assert wrong == {candidate.term for candidate in same}


def test_duplicate_definition_is_not_a_distractor(generator, abate, pool, make_word) -> None:
    """Test a pool word sharing the definition cannot duplicate the right answer."""
    twin = make_word(definition=DEFINITION.upper(), part_of_speech="verb")

    question = generator.generate_question(abate, QuestionType.DEFINITION_MATCH, pool + [twin])

    keys = [normalize_answer(option.text) for option in question.options]
    assert keys.count(normalize_answer(DEFINITION)) == 1


def test_unavailable_type_falls_back(generator, make_word, pool) -> None:
    """Test types the word cannot support fall back to definition recall."""
    word = make_word(synonyms=[], antonyms=[])

    question = generator.generate_question(word, QuestionType.SYNONYM_SELECTION, pool)

    assert question.type is QuestionType.DEFINITION_RECALL
    assert question.options is None


def test_thin_pool_falls_back(generator, abate, make_word) -> None:
    """Test a pool too small for a full option set falls back to definition recall."""
    pool = [abate, make_word(part_of_speech="verb"), make_word(part_of_speech="verb")]

    question = generator.generate_question(abate, QuestionType.DEFINITION_MATCH, pool)

    assert question.type is QuestionType.DEFINITION_RECALL


def test_seeded_generation_is_deterministic(abate, pool) -> None:
    """Test the same seed gives the same question."""
    first = QuestionGenerator(rng=random.Random(7)).generate_random_question(abate, pool)
    second = QuestionGenerator(rng=random.Random(7)).generate_random_question(abate, pool)

    assert first.type is second.type
    assert first.options == second.options


def test_random_question_uses_available_type(generator, make_word, pool) -> None:
    """Test random questions only pick supported types."""
    word = make_word(example_sentence="")
    for _ in range(10):
        question = generator.generate_random_question(word, pool)
        assert question.type in generator.available_types(word)


@pytest.mark.parametrize(
    "answer,is_correct,score,feedback",
    [
        ("", False, 0, "Please enter an answer"),
        ("   ", False, 0, "Please enter an answer"),
        ("To reduce in intensity, or amount!", True, 100, "Perfect!"),
        ("to reduse in intensity or amount", True, 100, "Close enough! Watch the spelling."),
        ("reduce the intensity", True, 66, "Good recall! You captured the key concepts."),
        ("an amount", False, 33, "Partial understanding. Review the full definition."),
        ("a happy dog", False, 0, "Not quite. Keep practicing!"),
    ],
)
def test_validate_definition_answer(generator, answer, is_correct, score, feedback) -> None:
    """Test free text grading of definitions."""
    result = generator.validate_text_answer(answer, DEFINITION)

    assert result.is_correct is is_correct
    assert result.score == score
    assert result.feedback == feedback


def test_validate_word_answer(generator) -> None:
    """Test word answers get typo tolerance but no keyword credit."""
    result = generator.validate_text_answer("abatee", "abate", QuestionType.SENTENCE_COMPLETION)
    assert result.is_correct

    result = generator.validate_text_answer("lessen", "abate", QuestionType.SENTENCE_COMPLETION)
    assert not result.is_correct
    assert result.score == 0


def test_validate_option_answer(generator, abate, pool) -> None:
    """Test multiple choice grading."""
    question = generator.generate_question(abate, QuestionType.WORD_FROM_DEFINITION, pool)
    wrong = next(option for option in question.options if not option.is_correct)

    assert generator.validate_option_answer(question, "abate").feedback == "Correct!"
    result = generator.validate_option_answer(question, wrong.text)
    assert not result.is_correct
    assert result.feedback == "The answer was: abate"


def test_validate_option_answer_on_recall_question(generator, abate, pool) -> None:
    """Test free text questions are graded as text."""
    question = generator.generate_question(abate, QuestionType.DEFINITION_RECALL, pool)

    assert generator.validate_option_answer(question, DEFINITION).is_correct


def test_deep_moment_question(generator, abate, make_word) -> None:
    """Test deep moment questions have four options and one right explanation."""
    question = generator.generate_deep_moment_question(abate)

    assert len(question.options) == 4
    assert len(correct_options(question)) == 1
    assert question.correct_explanation == f"{DEFINITION} (Think: {abate.mnemonic})"
    assert any("intensify" in option.text for option in question.options)

    plain = make_word(part_of_speech="interjection", mnemonic=None)
    question = generator.generate_deep_moment_question(plain)
    assert len(question.options) == 4
    assert question.correct_explanation == plain.definition


if __name__ == "__main__":
    pytest.main([__file__])
