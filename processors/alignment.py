from __future__ import annotations

import difflib
import html

from rapidfuzz.distance import Levenshtein

from analyzer.similarity import WordScore, missed_word_score
from utils.text import normalize_for_scoring, split_words, strip_punctuation

ALIGNMENTS = ('positional', 'sequence')


def _sim(arg_a: str, arg_b: str) -> float:
    return float(Levenshtein.normalized_similarity(arg_a.lower(), arg_b.lower()))


def _tokens(s: str | None) -> list[str]:
    return [tok for tok in (normalize_for_scoring(w) for w in split_words(s)) if tok]


def align_tokens(
    ref_tokens: list[str], hyp_tokens: list[str]
) -> list[tuple[str, str, float]]:
    matcher = difflib.SequenceMatcher(a=ref_tokens, b=hyp_tokens, autojunk=False)
    aligned: list[tuple[str, str, float]] = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == 'equal':
            for offset in range(i2 - i1):
                word = ref_tokens[i1 + offset]
                aligned.append((word, word, 1.0))
        elif tag == 'replace':
            length = min(i2 - i1, j2 - j1)
            for offset in range(length):
                rw = ref_tokens[i1 + offset]
                hw = hyp_tokens[j1 + offset]
                aligned.append((rw, hw, _sim(rw, hw)))
            for rw in ref_tokens[i1 + length : i2]:
                aligned.append((rw, '', 0.0))
            for hw in hyp_tokens[j1 + length : j2]:
                aligned.append(('', hw, 0.0))
        elif tag == 'delete':
            for rw in ref_tokens[i1:i2]:
                aligned.append((rw, '', 0.0))
        elif tag == 'insert':
            for hw in hyp_tokens[j1:j2]:
                aligned.append(('', hw, 0.0))
    return aligned


def aligned_word_breakdown(
    target: str | None, overall: int, recognized: str | None = None
) -> list[WordScore]:
    """Per-word breakdown that survives inserted or dropped words.

    Same shape and scoring rule as the positional breakdown: one entry per
    target word, 100 for a matched word, ``overall - 20`` otherwise.
    """
    words = [strip_punctuation(w) for w in split_words(target)]
    ref = [w.lower() for w in words]
    hyp = _tokens(recognized)
    matched: set[int] = set()
    matcher = difflib.SequenceMatcher(a=ref, b=hyp, autojunk=False)
    for block in matcher.get_matching_blocks():
        matched.update(range(block.a, block.a + block.size))
    miss = missed_word_score(overall)
    return [
        WordScore(word=w, is_correct=True, score=100)
        if index in matched
        else WordScore(word=w, is_correct=False, score=miss)
        for index, w in enumerate(words)
    ]


def expert_alignment(ref: str, hyp: str) -> dict:
    ref_toks = _tokens(ref)
    hyp_toks = _tokens(hyp)
    pairs = align_tokens(ref_toks, hyp_toks)
    count = max(1, len(ref_toks))
    subs = sum(1 for item_r, item_h, sim in pairs if item_r and item_h and sim < 1.0)
    dels = sum(1 for item_r, item_h, _ in pairs if item_r and not item_h)
    ins = sum(1 for item_r, item_h, _ in pairs if item_h and not item_r)
    wer = (subs + dels + ins) / count
    chunks: list[str] = []
    for item_r, item_h, sim in pairs:
        r, h = html.escape(item_r), html.escape(item_h)
        if item_r and item_h:
            if sim == 1.0:
                chunks.append(f"<span style='color:#2e7d32'>{h}</span>")
            else:
                chunks.append(
                    f"<span title='эталон: {r}; похожесть: {sim:.2f}' style='background:#fff3cd;border-bottom:1px dotted #f0ad4e'>{h}</span>"
                )
        elif item_r:
            chunks.append(
                f"<span title='пропущено' style='background:#ffe0e0;text-decoration:line-through'>{r}</span>"
            )
        else:
            chunks.append(f"<span title='лишнее слово' style='background:#e0f0ff'>{h}</span>")
    return {
        'alignment': [
            {'ref': item_r, 'hyp': item_h, 'sim': round(sim, 3)}
            for item_r, item_h, sim in pairs
        ],
        'wer': round(wer, 3),
        'diff_html': ' '.join(chunks),
    }
