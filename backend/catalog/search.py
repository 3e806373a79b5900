"""
search.py — Catalog filtering and evaluation summaries.
"""

import logging
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from catalog.constants import CERTIFICATION_FILTER_KEYS, EvaluationType
from etl.normalize import normalize

logger = logging.getLogger(__name__)

ALL = 'all'


class MaterialFilter(BaseModel):
    """Search criteria; 'all' (or empty) disables a select filter."""
    model_config = ConfigDict(extra='ignore')

    term: str = ''
    manufacturer: str = ALL
    category: str = ALL
    subcategory: str = ALL
    certifications: list[EvaluationType] = Field(default_factory=list)

    @field_validator('manufacturer', 'category', 'subcategory', mode='before')
    @classmethod
    def empty_means_all(cls, v):
        return v or ALL

    @field_validator('certifications', mode='before')
    @classmethod
    def resolve_short_keys(cls, v):
        if isinstance(v, str):
            v = [v]
        return [CERTIFICATION_FILTER_KEYS.get(item, item) for item in (v or [])]


def _matches_select(value: str, wanted: str) -> bool:
    return wanted == ALL or (value or '') == wanted


def _evaluation_types(material: dict) -> set[str]:
    return {e.get('type') for e in material.get('evaluations') or []}


def filter_materials(materials: Iterable[dict], criteria: Optional[MaterialFilter] = None) -> list[dict]:
    """Materials meeting every criterion, in input order."""
    criteria = criteria or MaterialFilter()
    term = normalize(criteria.term)
    required = {c.value for c in criteria.certifications}

    kept = []
    for m in materials:
        if term:
            haystack = ' '.join(normalize(m.get(k)) for k in ('name', 'manufacturer', 'description'))
            if term not in haystack:
                continue
        if not _matches_select(m.get('manufacturer'), criteria.manufacturer):
            continue
        if not _matches_select(m.get('category'), criteria.category):
            continue
        if not _matches_select(m.get('subcategory'), criteria.subcategory):
            continue
        if required and not required <= _evaluation_types(m):
            continue
        kept.append(m)

    logger.debug(f"Filter kept {len(kept)} materials")
    return kept


def _version_key(version: Optional[str]) -> tuple[int, int]:
    parts = (version or '').split('.')
    try:
        major = int(parts[0])
        minor = int(parts[1]) if len(parts) > 1 else 0
    except ValueError:
        return (0, 0)
    return (major, minor)


def group_evaluations_by_type(evaluations: Iterable[dict]) -> dict[str, list[dict]]:
    """Evaluations grouped by type (first-seen order), newest version first."""
    groups: dict[str, list[dict]] = {}
    for e in evaluations:
        groups.setdefault(e.get('type'), []).append(e)
    for items in groups.values():
        items.sort(key=lambda e: _version_key(e.get('version')), reverse=True)
    return groups


def average_conformity(materials: Iterable[dict]) -> float:
    """Mean conformity over every evaluation of the given materials (0.0 if none)."""
    values = [e.get('conformity') or 0
              for m in materials for e in (m.get('evaluations') or [])]
    if not values:
        return 0.0
    return round(sum(values) / len(values), 1)
