import pytest

from analyzer.similarity import (
    band_message,
    missed_word_score,
    score,
    score_band,
    word_breakdown,
)

PAIRS = [
    ('The quick brown fox.', 'the quick brown box'),
    ('Hello, how are you today?', 'hello how are you'),
    ('', 'something'),
    ('cat', 'cut'),
    ('I would like a cup of coffee, please.', 'I would like a cup of tea please'),
    ('abc', ''),
]


@pytest.mark.parametrize(
    's', ['Hello!', 'The weather is beautiful.', '', '   ', 'She sells seashells.']
)
def test_identical_strings_score_100(s):
    assert score(s, s) == 100


@pytest.mark.parametrize('target', ['Hello, how are you today?', 'a', 'What time?'])
def test_empty_recognition_scores_zero(target):
    assert score(target, '') == 0
    assert score(target, None) == 0


def test_both_empty_is_exact_match():
    assert score('', '') == 100
    assert score('?!', None) == 100


def test_empty_target_with_speech_scores_zero():
    assert score('', 'hello') == 0


@pytest.mark.parametrize('a,b', PAIRS)
def test_score_is_symmetric(a, b):
    if a and b:
        assert score(a, b) == score(b, a)


@pytest.mark.parametrize('a,b', PAIRS)
def test_score_in_range(a, b):
    assert 0 <= score(a, b) <= 100
    assert 0 <= score(b, a) <= 100


def test_normalization_ignores_case_and_punctuation():
    assert score('Hello, World!', 'hello world') == 100
    assert score('  Really?  ', 'really') == 100


def test_levenshtein_ratio():
    assert score('cat', 'cut') == 67
    assert score('ab', 'ac') == 50


def test_half_rounds_up():
    # 8 символов, расстояние 3 -> 62.5
    assert score('abcdefgh', 'abcdeXYZ') == 63


def test_pangram_scenario():
    target = 'The quick brown fox jumps over the lazy dog.'
    recognized = 'the quick brown fox jumps over the lazy dog'
    overall = score(target, recognized)
    words = word_breakdown(target, overall, recognized)
    assert overall == 100
    assert len(words) == 9
    assert all(w.is_correct and w.score == 100 for w in words)
    assert words[0].word == 'The'
    assert words[-1].word == 'dog'


def test_empty_recognition_scenario():
    target = 'Hello, how are you today?'
    overall = score(target, '')
    words = word_breakdown(target, overall, '')
    assert overall == 0
    assert [w.word for w in words] == ['Hello', 'how', 'are', 'you', 'today']
    assert all(not w.is_correct and w.score == 0 for w in words)


def test_substituted_word_scenario():
    target = 'I would like a cup of coffee, please.'
    recognized = 'I would like a cup of tea please'
    overall = score(target, recognized)
    words = word_breakdown(target, overall, recognized)
    assert 0 < overall < 100
    assert [w.is_correct for w in words[:6]] == [True] * 6
    assert words[6].word == 'coffee'
    assert not words[6].is_correct
    assert words[6].score == overall - 20
    assert words[7].word == 'please'
    assert words[7].is_correct


def test_dropped_word_misaligns_following_words():
    target = 'I would like a cup of coffee, please.'
    recognized = 'I would like cup of coffee please'
    overall = score(target, recognized)
    words = word_breakdown(target, overall, recognized)
    assert [w.is_correct for w in words] == [True, True, True] + [False] * 5


@pytest.mark.parametrize(
    'recognized', [None, '', 'one', 'one two three four five six seven eight nine ten']
)
def test_breakdown_length_matches_target(recognized):
    target = 'Could you help me find the nearest station?'
    words = word_breakdown(target, 50, recognized)
    assert len(words) == 8


def test_missing_transcript_marks_all_incorrect():
    words = word_breakdown('The weather is beautiful.', 85)
    assert all(not w.is_correct for w in words)
    assert {w.score for w in words} == {65}


def test_missed_word_score_floor():
    assert missed_word_score(15) == 0
    assert missed_word_score(20) == 0
    assert missed_word_score(90) == 70


def test_word_score_to_dict():
    ws = word_breakdown('Hello.', 100, 'hello')[0]
    assert ws.to_dict() == {'word': 'Hello', 'isCorrect': True, 'score': 100}


@pytest.mark.parametrize(
    'value,band', [(100, 'excellent'), (80, 'excellent'), (79, 'good'), (60, 'good'), (59, 'poor'), (0, 'poor')]
)
def test_score_band(value, band):
    assert score_band(value) == band
    assert band_message(value)
