from __future__ import annotations

import re

_SCORING_PUNCT = re.compile(r'[.,!?]')


def strip_punctuation(s: str) -> str:
    return _SCORING_PUNCT.sub('', s)


def normalize_for_scoring(s: str | None) -> str:
    if not s:
        return ''
    return strip_punctuation(s.lower()).strip()


def split_words(s: str | None) -> list[str]:
    if not s:
        return []
    return s.split()
