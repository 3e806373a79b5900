"""
similarity.py — Pairwise similarity primitives for material matching.

  string_similarity   — normalized Levenshtein similarity of two strings
  keyword_similarity  — overlap of two keyword sets with partial-match credit

Both return floats and never raise on empty input.
"""

from typing import Iterable

from rapidfuzz.distance import Levenshtein

from etl.normalize import normalize, MIN_KEYWORD_LENGTH

# ── Per keyword-pair scores ──
KEYWORD_EXACT_SCORE = 1.0
KEYWORD_CONTAINS_SCORE = 0.8

# A keyword's best match only counts when it is strictly above this
KEYWORD_MATCH_FLOOR = 0.6


def string_similarity(a: str, b: str) -> float:
    """
    1 - (edit distance / longer length) on the normalized strings.

    The equality check runs before the emptiness check, so two strings that
    both normalize to '' are identical (1.0).
    """
    na = normalize(a)
    nb = normalize(b)

    if na == nb:
        return 1.0
    if not na or not nb:
        return 0.0

    max_len = max(len(na), len(nb))
    distance = Levenshtein.distance(na, nb)
    return (max_len - distance) / max_len


def keyword_pair_score(a: str, b: str) -> float:
    """Score one keyword against another: exact, containment, else edit similarity."""
    if a == b:
        return KEYWORD_EXACT_SCORE
    if len(a) >= MIN_KEYWORD_LENGTH and len(b) >= MIN_KEYWORD_LENGTH and (a in b or b in a):
        return KEYWORD_CONTAINS_SCORE
    return string_similarity(a, b)


def keyword_similarity(keywords_a: Iterable[str], keywords_b: Iterable[str]) -> float:
    """
    Sum of each A keyword's best score against B (only scores > 0.6 count),
    divided by the size of the larger set.

    Note the asymmetry: only A's keywords are scored, so
    keyword_similarity(A, B) and keyword_similarity(B, A) can differ.
    """
    set_a = set(keywords_a)
    set_b = set(keywords_b)
    if not set_a or not set_b:
        return 0.0

    total = 0.0
    for kw_a in sorted(set_a):
        best = max(keyword_pair_score(kw_a, kw_b) for kw_b in set_b)
        if best > KEYWORD_MATCH_FLOOR:
            total += best

    return total / max(len(set_a), len(set_b))
