from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from rapidfuzz.distance import Levenshtein

from configs.thresholds import BAND_MESSAGES, SCORE_BANDS, WORD_MISS_PENALTY
from utils.text import normalize_for_scoring, split_words, strip_punctuation


@dataclass(frozen=True)
class WordScore:
    word: str
    is_correct: bool
    score: int

    def to_dict(self) -> dict[str, Any]:
        return {'word': self.word, 'isCorrect': self.is_correct, 'score': self.score}


def _clamp(value: float, lo: int = 0, hi: int = 100) -> int:
    return int(max(lo, min(hi, value)))


def score(target: str | None, recognized: str | None) -> int:
    """Character-level similarity of two utterances, 0..100.

    Both sides are lowercased and stripped of ``. , ! ?`` before comparing.
    Identical strings (including two empty ones) score 100, an empty
    transcript scores 0, anything else is ``(maxLen - distance) / maxLen``.
    """
    ref = normalize_for_scoring(target)
    hyp = normalize_for_scoring(recognized)
    if ref == hyp:
        return 100
    if not hyp:
        return 0
    distance = Levenshtein.distance(ref, hyp)
    max_len = max(len(ref), len(hyp))
    similarity = (max_len - distance) / max_len * 100.0
    # Python round() is banker's rounding, scores use half-up
    return _clamp(int(similarity + 0.5))


def missed_word_score(overall: int) -> int:
    return max(0, overall - WORD_MISS_PENALTY)


def word_breakdown(
    target: str | None, overall: int, recognized: str | None = None
) -> list[WordScore]:
    words = [strip_punctuation(w) for w in split_words(target)]
    heard = split_words(recognized)
    result: list[WordScore] = []
    for index, word in enumerate(words):
        candidate = normalize_for_scoring(heard[index]) if index < len(heard) else ''
        if word.lower() == candidate:
            result.append(WordScore(word=word, is_correct=True, score=100))
        else:
            result.append(
                WordScore(word=word, is_correct=False, score=missed_word_score(overall))
            )
    return result


def score_band(value: int) -> str:
    if value >= SCORE_BANDS['excellent']:
        return 'excellent'
    if value >= SCORE_BANDS['good']:
        return 'good'
    return 'poor'


def band_message(value: int) -> str:
    return BAND_MESSAGES[score_band(value)]
