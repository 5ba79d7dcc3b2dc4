from text import normalize_text, split_bulk_lines
from utils.text import normalize_for_scoring, split_words


def test_normalize_text_collapses_whitespace():
    assert normalize_text('  Hello ,  how   are you ? ') == 'Hello, how are you?'
    assert normalize_text(None) == ''


def test_split_bulk_lines():
    raw = 'First one.\n\n   \n  Second   one. \n'
    assert split_bulk_lines(raw) == ['First one.', 'Second one.']


def test_normalize_for_scoring():
    assert normalize_for_scoring(' Hello, World! Really? ') == 'hello world really'
    assert normalize_for_scoring("Don't stop.") == "don't stop"
    assert normalize_for_scoring(None) == ''


def test_split_words():
    assert split_words('a  b\tc\n') == ['a', 'b', 'c']
    assert split_words(None) == []
