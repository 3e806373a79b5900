"""
normalize.py — Text normalization & keyword extraction for material matching.

Responsibilities:
  - Canonicalize free text (case, diacritics, punctuation, whitespace)
  - Derive a stable set of significant keywords from a name

Design principles:
  - Total functions: never raise, non-text input normalizes to ''
  - Idempotent: normalize(normalize(s)) == normalize(s)
"""

import re
import unicodedata
from typing import Any

# ── Portuguese letters, mapped explicitly in case NFD leaves them composed ──
_PORTUGUESE_MAP = str.maketrans({
    'ã': 'a', 'á': 'a', 'à': 'a', 'â': 'a',
    'é': 'e', 'ê': 'e', 'è': 'e',
    'í': 'i', 'î': 'i', 'ì': 'i',
    'ó': 'o', 'ô': 'o', 'õ': 'o', 'ò': 'o',
    'ú': 'u', 'û': 'u', 'ù': 'u', 'ü': 'u',
    'ç': 'c',
})

# Combining diacritical marks block (U+0300–U+036F)
_COMBINING_MARKS = re.compile(r'[\u0300-\u036f]')
_NON_ALNUM = re.compile(r'[^a-z0-9]')
_WHITESPACE = re.compile(r'\s+')

MIN_KEYWORD_LENGTH = 3

STOP_WORDS = frozenset({
    'para', 'com', 'por', 'sem',
    'the', 'and', 'for', 'with',
})


def normalize(text: Any) -> str:
    """
    Canonicalize a string for comparison:
    1. Lower-case
    2. Map Portuguese accented letters, NFD-decompose, drop combining marks
    3. Replace everything outside [a-z0-9] with a space
    4. Collapse whitespace and trim

    Returns '' for None or non-string input.
    """
    if not isinstance(text, str):
        return ''

    s = text.lower()
    s = s.translate(_PORTUGUESE_MAP)
    s = unicodedata.normalize('NFD', s)
    s = _COMBINING_MARKS.sub('', s)
    s = _NON_ALNUM.sub(' ', s)
    s = _WHITESPACE.sub(' ', s)
    return s.strip()


def extract_keywords(text: Any) -> set[str]:
    """Significant tokens of a normalized string (length ≥ 3, no stop words)."""
    normalized = normalize(text)
    if not normalized:
        return set()
    return {
        token for token in normalized.split(' ')
        if len(token) >= MIN_KEYWORD_LENGTH and token not in STOP_WORDS
    }
