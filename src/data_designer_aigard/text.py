"""Word and sentence segmentation for mixed Cyrillic/Latin text, plus entity masking."""

from __future__ import annotations

import re
from collections.abc import Iterator

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_CHUNK_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+")
_WORD_RES: dict[int, re.Pattern[str]] = {}


def _word_re(min_length: int) -> re.Pattern[str]:
    pattern = _WORD_RES.get(min_length)
    if pattern is None:
        pattern = re.compile(r"[a-zа-яё]{%d,}" % max(1, min_length))
        _WORD_RES[min_length] = pattern
    return pattern


def iter_words(text: str, min_length: int = 3) -> Iterator[str]:
    """Yield lowercase letter runs of at least ``min_length`` characters."""
    for m in _word_re(min_length).finditer(text.lower()):
        yield m.group(0)


def words(text: str, min_length: int = 3) -> list[str]:
    return list(iter_words(text, min_length))


def sentences(text: str, min_chars: int = 3) -> list[str]:
    """Split on runs of terminal punctuation, keeping fragments longer than ``min_chars``."""
    out = []
    for fragment in _SENTENCE_SPLIT_RE.split(text):
        s = fragment.strip()
        if len(s) > min_chars:
            out.append(s)
    return out


def sentence_spans(text: str) -> list[str]:
    """Split after terminal punctuation without dropping anything but the separating whitespace."""
    return [s for s in _CHUNK_BOUNDARY_RE.split(text) if s]


# ---------------------------------------------------------------------------
# Neutralization
# ---------------------------------------------------------------------------

_UNITS = (
    r"л\.?\s*с|hp|кг|kg|км|km|мл|м|г|gb|mb|тыс|руб|₽|\$|€|%"
)
_SPEC_RE = re.compile(r"\d+(?:[.,]\d+)?\s*(?:" + _UNITS + r")(?![a-zа-яё])", re.IGNORECASE)
_YEAR_RE = re.compile(r"(?<!\d)\d{4}(?!\d)(?:\s*(?:года|году|год|year|г\.?)(?![a-zа-яё]))?", re.IGNORECASE)
_NUM_RE = re.compile(r"\d+")

BRANDS = (
    "lada", "лада", "калина", "приора", "веста", "toyota", "тойота", "bmw", "бмв",
    "mercedes", "мерседес", "audi", "volkswagen", "honda", "ford", "kia", "киа",
    "hyundai", "хендай", "nissan", "mazda", "iphone", "айфон", "samsung", "самсунг",
    "xiaomi", "huawei", "google", "гугл", "apple", "эпл", "microsoft",
)
PLACES = (
    "москва", "москве", "питер", "спб", "россия", "россии", "украина", "сша", "usa",
    "америка", "европа", "китай", "германия", "франция",
)
_BRAND_RE = re.compile(r"\b(?:" + "|".join(BRANDS) + r")\b", re.IGNORECASE)
_PLACE_RE = re.compile(r"\b(?:" + "|".join(PLACES) + r")\b", re.IGNORECASE)

# Unit-bearing numbers go first, otherwise the bare digit rule eats their digits.
_NEUTRALIZERS: list[tuple[re.Pattern[str], str]] = [
    (_SPEC_RE, "[SPEC]"),
    (_YEAR_RE, "[YEAR]"),
    (_NUM_RE, "[NUM]"),
    (_BRAND_RE, "[BRAND]"),
    (_PLACE_RE, "[PLACE]"),
]


def neutralize(text: str) -> str:
    """Mask numbers, years, brands, and places so structural signals see form, not topic."""
    for pattern, placeholder in _NEUTRALIZERS:
        text = pattern.sub(placeholder, text)
    return text
