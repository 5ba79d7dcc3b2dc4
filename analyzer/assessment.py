from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Any

from analyzer.recognition import (
    Recognized,
    RecognitionOutcome,
    fallback_score,
    outcome_kind,
)
from analyzer.similarity import (
    WordScore,
    band_message,
    score,
    score_band,
    word_breakdown,
)
from processors.alignment import ALIGNMENTS, aligned_word_breakdown, expert_alignment


@dataclass
class Assessment:
    score: int
    word_scores: list[WordScore]
    recognized_text: str | None = None
    simulated: bool = False
    source: str = 'recognized'
    alignment: str = 'positional'
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def band(self) -> str:
        return score_band(self.score)

    def to_dict(self) -> dict[str, Any]:
        return {
            'score': self.score,
            'band': self.band,
            'message': band_message(self.score),
            'recognizedText': self.recognized_text,
            'wordScores': [w.to_dict() for w in self.word_scores],
            'simulated': self.simulated,
            'source': self.source,
            'alignment': self.alignment,
            **({'details': self.details} if self.details else {}),
        }


def breakdown(
    target: str, overall: int, recognized: str | None, alignment: str = 'positional'
) -> list[WordScore]:
    if alignment not in ALIGNMENTS:
        raise ValueError(f'Unknown alignment: {alignment}')
    if alignment == 'sequence':
        return aligned_word_breakdown(target, overall, recognized)
    return word_breakdown(target, overall, recognized)


def assess(
    target: str,
    outcome: RecognitionOutcome,
    alignment: str = 'positional',
    rng: random.Random | None = None,
) -> Assessment:
    if isinstance(outcome, Recognized):
        overall = score(target, outcome.text)
        result = Assessment(
            score=overall,
            word_scores=breakdown(target, overall, outcome.text, alignment),
            recognized_text=outcome.text,
            alignment=alignment,
        )
        if alignment == 'sequence':
            result.details['alignment'] = expert_alignment(target, outcome.text)
        return result
    overall = fallback_score(outcome, rng)
    return Assessment(
        score=overall,
        word_scores=breakdown(target, overall, None, alignment),
        simulated=True,
        source=outcome_kind(outcome),
        alignment=alignment,
    )
