from __future__ import annotations

import re
import unicodedata


def normalize_text(s: str | None) -> str:
    if not s:
        return ''
    s = unicodedata.normalize('NFC', s).replace('\u00a0', ' ')
    s = re.sub(r'\s+', ' ', s)
    s = re.sub(r'\s+([,.;:!?…])', r'\1', s)
    return s.strip()


def split_bulk_lines(raw: str) -> list[str]:
    lines = (normalize_text(line) for line in (raw or '').splitlines())
    return [line for line in lines if line]
