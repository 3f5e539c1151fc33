import pytest

from whodidit.errors import QuestionSupplyError, ValidationError
from whodidit.services.games.codes import CODE_ALPHABET, generate_game_code, normalize_game_code
from whodidit.services.games.questions import QUESTIONS, get_random_questions


def test_game_code_shape():
    for _ in range(200):
        code = generate_game_code()
        assert len(code) == 4
        assert all(ch in CODE_ALPHABET for ch in code)


def test_code_alphabet_skips_ambiguous_characters():
    for ch in '0O1IL':
        assert ch not in CODE_ALPHABET
    assert CODE_ALPHABET == CODE_ALPHABET.upper()


def test_custom_code_length():
    assert len(generate_game_code(6)) == 6


def test_normalize_game_code():
    assert normalize_game_code('  ab2c ') == 'AB2C'
    assert normalize_game_code(None) == ''


def test_questions_are_distinct_and_from_corpus():
    picked = get_random_questions(5)
    assert len(picked) == 5
    assert len(set(picked)) == 5
    assert all(q in QUESTIONS for q in picked)


def test_whole_corpus_can_be_drawn():
    picked = get_random_questions(len(QUESTIONS))
    assert sorted(picked) == sorted(QUESTIONS)


def test_too_many_questions_is_an_error():
    with pytest.raises(QuestionSupplyError):
        get_random_questions(len(QUESTIONS) + 1)


def test_zero_questions_is_an_error():
    with pytest.raises(ValidationError):
        get_random_questions(0)
