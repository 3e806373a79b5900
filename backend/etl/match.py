"""
match.py — Material Matching Engine.

Reconciles an imported (name, manufacturer) pair against the material catalog.

Per candidate, first rule wins:
  1. normalized name AND manufacturer equal        → 1.00
  2. normalized name equal, manufacturer differs   → 0.90
  3. blended: 0.6·name similarity + 0.2·keyword similarity
     + 0.2·manufacturer similarity, raised to 0.70 when one normalized
     name contains the other
Candidates whose name normalizes to '' are skipped. An imported name that
normalizes to '' is contained in every candidate name, so it scores the floor.

Selection is a fold over the candidates in catalog order keeping the first
strict maximum; the 0.5 acceptance threshold is applied once, at the end.
Anti-Hallucination: the result is always an existing catalog entry or None.
"""

import logging
from typing import Iterable, Optional

from etl.models import CatalogMaterial, MatchCandidate
from etl.normalize import normalize, extract_keywords
from etl.similarity import string_similarity, keyword_similarity

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════
#  Scoring weights & thresholds
# ═══════════════════════════════════════════════════════
SCORE_EXACT = 1.0            # name + manufacturer identical
SCORE_NAME_EXACT = 0.9       # name identical, manufacturer differs
SCORE_CONTAINS_FLOOR = 0.7   # one name contains the other

BLEND_WEIGHTS = {
    'name':         0.6,
    'keywords':     0.2,
    'manufacturer': 0.2,
}

THRESHOLD_MATCH = 0.5


class _Prepared:
    """Normalized view of one catalog entry, computed once per import run."""
    __slots__ = ('material', 'name', 'manufacturer', 'keywords')

    def __init__(self, material: CatalogMaterial):
        self.material = material
        self.name = normalize(material.name)
        self.manufacturer = normalize(material.manufacturer)
        self.keywords = extract_keywords(material.name)


class _Query:
    __slots__ = ('raw_name', 'raw_manufacturer', 'name', 'manufacturer', 'keywords')

    def __init__(self, name: str, manufacturer: str):
        self.raw_name = name
        self.raw_manufacturer = manufacturer
        self.name = normalize(name)
        self.manufacturer = normalize(manufacturer)
        self.keywords = extract_keywords(name)


def _score(query: _Query, cand: _Prepared) -> Optional[float]:
    if not cand.name:
        return None

    if query.name == cand.name:
        if query.manufacturer == cand.manufacturer:
            return SCORE_EXACT
        return SCORE_NAME_EXACT

    blended = (
        BLEND_WEIGHTS['name'] * string_similarity(query.raw_name, cand.material.name)
        + BLEND_WEIGHTS['keywords'] * keyword_similarity(query.keywords, cand.keywords)
        + BLEND_WEIGHTS['manufacturer'] * string_similarity(
            query.raw_manufacturer, cand.material.manufacturer)
    )
    if query.name in cand.name or cand.name in query.name:
        blended = max(blended, SCORE_CONTAINS_FLOOR)
    return blended


def score_candidate(name: str, manufacturer: str,
                    candidate: CatalogMaterial) -> Optional[float]:
    """Score one catalog material against an imported row; None when skipped."""
    return _score(_Query(name, manufacturer), _Prepared(candidate))


class MaterialMatcher:
    """
    Matcher bound to one catalog snapshot.
    Catalog entries are normalized once; iteration follows catalog order,
    which decides ties.
    """

    def __init__(self, catalog: Iterable[CatalogMaterial]):
        self._entries = [_Prepared(m) for m in catalog]
        skipped = sum(1 for e in self._entries if not e.name)
        logger.info(
            f"MaterialMatcher ready: {len(self._entries)} catalog materials"
            + (f" ({skipped} without a usable name)" if skipped else "")
        )

    def __len__(self) -> int:
        return len(self._entries)

    def _scored(self, query: _Query):
        for entry in self._entries:
            score = _score(query, entry)
            if score is not None:
                yield entry.material, score

    def best(self, name: str, manufacturer: str) -> Optional[MatchCandidate]:
        """Highest-scoring candidate at or above the threshold, first one on ties."""
        query = _Query(name, manufacturer)
        best: Optional[tuple[float, CatalogMaterial]] = None
        for material, score in self._scored(query):
            if best is None or score > best[0]:
                best = (score, material)

        if best is None or best[0] < THRESHOLD_MATCH:
            logger.debug(
                f"No match for '{name}' / '{manufacturer}'"
                + (f" (best {best[0]:.3f})" if best else "")
            )
            return None

        score, material = best
        logger.debug(f"Matched '{name}' → '{material.name}' ({score:.3f})")
        return MatchCandidate(material=material, score=min(score, 1.0))

    def find(self, name: str, manufacturer: str) -> Optional[CatalogMaterial]:
        candidate = self.best(name, manufacturer)
        return candidate.material if candidate else None

    def rank(self, name: str, manufacturer: str, limit: int = 5) -> list[MatchCandidate]:
        """All scored candidates, best first; equal scores keep catalog order."""
        query = _Query(name, manufacturer)
        ranked = sorted(self._scored(query), key=lambda x: x[1], reverse=True)
        return [
            MatchCandidate(material=m, score=min(s, 1.0))
            for m, s in ranked[:limit]
        ]


def find_match(imported_name: str, imported_manufacturer: str,
               candidates: Iterable[CatalogMaterial]) -> Optional[CatalogMaterial]:
    """Best catalog material for an imported row, or None below the threshold."""
    return MaterialMatcher(candidates).find(imported_name, imported_manufacturer)


def rank_candidates(imported_name: str, imported_manufacturer: str,
                    candidates: Iterable[CatalogMaterial],
                    limit: int = 5) -> list[MatchCandidate]:
    return MaterialMatcher(candidates).rank(imported_name, imported_manufacturer, limit)
