from __future__ import annotations

import unicodedata
from bisect import bisect_right
from enum import StrEnum


class CharTypeError(ValueError):
    pass


class CharType(StrEnum):
    SPACE = "space"
    CONTENT_HALF = "content-half"
    CONTENT_FULL = "content-full"
    PUNCTUATION_HALF = "punctuation-half"
    PUNCTUATION_FULL = "punctuation-full"
    PUNCTUATION_MARK = "punctuation-mark"

    # Only produced for excluded spans, never by classify().
    RAW = "raw"
    CODE = "code"
    HYPER_MARK = "hyper-mark"


CONTENT_TYPES = frozenset({CharType.CONTENT_HALF, CharType.CONTENT_FULL})
PUNCTUATION_TYPES = frozenset({CharType.PUNCTUATION_HALF, CharType.PUNCTUATION_FULL, CharType.PUNCTUATION_MARK})


# Identifier-ish ASCII symbols stay glued to words (`@Vuejs_Events`, `#1`, `100%`).
_HALF_CONTENT_SYMBOLS = frozenset("@_#$%")

_SPACES = frozenset(" \t　")

# Wide punctuation outside the block table below.
_FULL_PUNCTUATION = frozenset("—―‘’“”…‥·⸺⸻")

# (first, last, type) sorted by first code point. Ranges not listed here fall
# back to unicodedata (category + east asian width).
_BLOCKS: tuple[tuple[int, int, CharType], ...] = (
    (0x2E80, 0x2EFF, CharType.CONTENT_FULL),  # CJK Radicals Supplement
    (0x2F00, 0x2FDF, CharType.CONTENT_FULL),  # Kangxi Radicals
    (0x2FF0, 0x2FFF, CharType.CONTENT_FULL),  # Ideographic Description Characters
    (0x3001, 0x3004, CharType.PUNCTUATION_FULL),
    (0x3005, 0x3007, CharType.CONTENT_FULL),  # 々〆〇
    (0x3008, 0x3020, CharType.PUNCTUATION_FULL),
    (0x3021, 0x3029, CharType.CONTENT_FULL),  # Hangzhou numerals
    (0x302A, 0x302F, CharType.CONTENT_FULL),
    (0x3030, 0x3030, CharType.PUNCTUATION_FULL),
    (0x3031, 0x303C, CharType.CONTENT_FULL),
    (0x303D, 0x303F, CharType.PUNCTUATION_FULL),
    (0x3040, 0x309F, CharType.CONTENT_FULL),  # Hiragana
    (0x30A0, 0x30A0, CharType.PUNCTUATION_FULL),
    (0x30A1, 0x30FA, CharType.CONTENT_FULL),  # Katakana
    (0x30FB, 0x30FB, CharType.PUNCTUATION_FULL),  # ・
    (0x30FC, 0x30FF, CharType.CONTENT_FULL),
    (0x3100, 0x312F, CharType.CONTENT_FULL),  # Bopomofo
    (0x3130, 0x318F, CharType.CONTENT_FULL),  # Hangul Compatibility Jamo
    (0x3190, 0x31FF, CharType.CONTENT_FULL),  # Kanbun .. Katakana Phonetic Extensions
    (0x3200, 0x33FF, CharType.CONTENT_FULL),  # Enclosed CJK, CJK Compatibility
    (0x3400, 0x4DBF, CharType.CONTENT_FULL),  # CJK Extension A
    (0x4E00, 0x9FFF, CharType.CONTENT_FULL),  # CJK Unified Ideographs
    (0xA000, 0xA4CF, CharType.CONTENT_FULL),  # Yi
    (0xAC00, 0xD7AF, CharType.CONTENT_FULL),  # Hangul Syllables
    (0xF900, 0xFAFF, CharType.CONTENT_FULL),  # CJK Compatibility Ideographs
    (0xFE10, 0xFE1F, CharType.PUNCTUATION_FULL),  # Vertical Forms
    (0xFE30, 0xFE4F, CharType.PUNCTUATION_FULL),  # CJK Compatibility Forms
    (0xFE50, 0xFE6F, CharType.PUNCTUATION_FULL),  # Small Form Variants
    (0xFF01, 0xFF0F, CharType.PUNCTUATION_FULL),
    (0xFF10, 0xFF19, CharType.CONTENT_FULL),  # full-width digits
    (0xFF1A, 0xFF20, CharType.PUNCTUATION_FULL),
    (0xFF21, 0xFF3A, CharType.CONTENT_FULL),  # full-width A-Z
    (0xFF3B, 0xFF40, CharType.PUNCTUATION_FULL),
    (0xFF41, 0xFF5A, CharType.CONTENT_FULL),  # full-width a-z
    (0xFF5B, 0xFF65, CharType.PUNCTUATION_FULL),
    (0xFF66, 0xFFDC, CharType.CONTENT_FULL),  # half-width katakana / hangul
    (0xFFE0, 0xFFEE, CharType.PUNCTUATION_FULL),
    (0x1B000, 0x1B16F, CharType.CONTENT_FULL),  # Kana Supplement / Extended-A
    (0x20000, 0x2FA1F, CharType.CONTENT_FULL),  # CJK Extensions B-F, Compatibility Supplement
    (0x30000, 0x323AF, CharType.CONTENT_FULL),  # CJK Extensions G-H
)

_BLOCK_STARTS = [first for first, _last, _type in _BLOCKS]


def _lookup_block(cp: int) -> CharType | None:
    i = bisect_right(_BLOCK_STARTS, cp) - 1
    if i < 0:
        return None
    first, last, kind = _BLOCKS[i]
    if first <= cp <= last:
        return kind
    return None


def _is_wide(ch: str) -> bool:
    return unicodedata.east_asian_width(ch) in {"W", "F"}


def classify(ch: str) -> CharType:
    """Map a single character to its CharType.

    Depends only on the code point: no locale or neighbouring characters.
    """

    if not isinstance(ch, str) or len(ch) != 1:
        raise CharTypeError(f"expected a single character, got {ch!r}")
    cp = ord(ch)
    if 0xD800 <= cp <= 0xDFFF:
        raise CharTypeError(f"lone surrogate U+{cp:04X} cannot be classified")

    if ch in _SPACES or ch.isspace():
        return CharType.SPACE

    if cp < 0x80:
        if ch.isalnum() or ch in _HALF_CONTENT_SYMBOLS:
            return CharType.CONTENT_HALF
        if ch.isprintable():
            return CharType.PUNCTUATION_HALF
        return CharType.CONTENT_HALF

    if ch in _FULL_PUNCTUATION:
        return CharType.PUNCTUATION_FULL

    kind = _lookup_block(cp)
    if kind is not None:
        return kind

    category = unicodedata.category(ch)
    if category[0] in {"L", "M", "N"}:
        return CharType.CONTENT_FULL if _is_wide(ch) else CharType.CONTENT_HALF
    if category[0] == "P":
        return CharType.PUNCTUATION_FULL if _is_wide(ch) else CharType.PUNCTUATION_HALF
    if category[0] == "S":
        # Wide symbols (emoji) read like characters in CJK prose.
        return CharType.CONTENT_FULL if _is_wide(ch) else CharType.PUNCTUATION_HALF
    return CharType.CONTENT_HALF
