"""
exchange.py — JSON export / import of the whole catalog.

Import modes:
  replace: drop every material, re-add the imported ones (ids discarded),
            replace the config
  merge  : match imported materials to existing ones by case- and
            accent-insensitive name AND manufacturer; merge evaluations by
            (type, version); union the config pick lists
"""

import re
import logging
import unicodedata
from datetime import datetime, timezone
from typing import Iterable, Optional

from pydantic import ValidationError

from catalog.constants import INVALID_CATEGORIES
from catalog.models import CatalogConfig, Material
from catalog.store import (
    add_material, delete_all_materials, get_config, get_materials,
    save_config, update_material,
)

logger = logging.getLogger(__name__)

IMPORT_MODES = ('replace', 'merge')

_COMBINING_MARKS = re.compile(r'[\u0300-\u036f]')


def fold(text: Optional[str]) -> str:
    """Lower-case and strip accents; used as the merge identity of a material."""
    return _COMBINING_MARKS.sub('', unicodedata.normalize('NFD', (text or '').lower()))


def export_data(db_path: str) -> dict:
    return {
        'materials': get_materials(db_path),
        'config': get_config(db_path),
        'exported_at': datetime.now(timezone.utc).isoformat(),
    }


def _valid_materials(raw: Iterable[dict], counts: dict) -> list[Material]:
    materials = []
    for idx, item in enumerate(raw):
        try:
            materials.append(Material.model_validate(item))
        except ValidationError as e:
            counts['skipped'] += 1
            logger.warning(f"Imported material #{idx} skipped: {e.error_count()} validation errors")
    return materials


def _merge_evaluations(existing: list[dict], imported: list[dict]) -> list[dict]:
    merged = list(existing)
    for evaluation in imported:
        key = (evaluation.get('type'), evaluation.get('version'))
        idx = next((i for i, e in enumerate(merged)
                    if (e.get('type'), e.get('version')) == key), None)
        if idx is None:
            merged.append(evaluation)
        else:
            merged[idx] = evaluation
    return merged


def _union(first: list, second: list) -> list:
    return list(dict.fromkeys([*first, *second]))


def merge_config(current: dict, imported: dict) -> dict:
    """Union pick lists in order; imported subcategory lists win per category."""
    imported = CatalogConfig.model_validate(imported).model_dump(by_alias=True)
    return {
        'manufacturers': _union(current.get('manufacturers', []), imported['manufacturers']),
        'categories': _union(current.get('categories', []), imported['categories']),
        'subcategories': {**current.get('subcategories', {}), **imported['subcategories']},
        'evaluationTypes': _union(current.get('evaluationTypes', []), imported['evaluationTypes']),
    }


def import_data(db_path: str, data: dict, mode: str = 'merge') -> dict:
    """
    Apply an exported catalog document. Materials that fail validation are
    skipped and counted.

    Returns:
        {'added': int, 'updated': int, 'deleted': int, 'skipped': int}
    """
    if mode not in IMPORT_MODES:
        raise ValueError(f"Unknown import mode '{mode}'. Expected one of {IMPORT_MODES}")

    counts = {'added': 0, 'updated': 0, 'deleted': 0, 'skipped': 0}
    raw_materials = data.get('materials')
    imported_config = data.get('config')

    if mode == 'replace':
        if raw_materials is not None:
            materials = _valid_materials(raw_materials, counts)
            counts['deleted'] = delete_all_materials(db_path)
            for material in materials:
                add_material(db_path, material.model_copy(update={'id': None}))
                counts['added'] += 1
        if imported_config:
            save_config(db_path, imported_config)

    else:
        existing = {(fold(m['name']), fold(m['manufacturer'])): m for m in get_materials(db_path)}
        for material in _valid_materials(raw_materials or [], counts):
            key = (fold(material.name), fold(material.manufacturer))
            match = existing.get(key)
            if match is None:
                add_material(db_path, material.model_copy(update={'id': None}))
                counts['added'] += 1
                continue

            imported_evals = material.model_dump(mode='json', by_alias=True)['evaluations']
            merged = _merge_evaluations(match['evaluations'], imported_evals)
            existing[key] = update_material(db_path, match['id'], {'evaluations': merged})
            counts['updated'] += 1

        if imported_config:
            save_config(db_path, merge_config(get_config(db_path), imported_config))

    logger.info(
        f"Catalog import ({mode}): {counts['added']} added, {counts['updated']} updated, "
        f"{counts['deleted']} deleted, {counts['skipped']} skipped"
    )
    return counts


def clean_invalid_categories(db_path: str, invalid: Optional[Iterable[str]] = None) -> dict:
    """Remove placeholder categories and their subcategory lists from the config."""
    invalid = set(INVALID_CATEGORIES if invalid is None else invalid)
    config = get_config(db_path)
    removed = [c for c in config.get('categories', []) if c in invalid]

    config['categories'] = [c for c in config.get('categories', []) if c not in invalid]
    config['subcategories'] = {k: v for k, v in config.get('subcategories', {}).items()
                               if k not in invalid}
    saved = save_config(db_path, config)

    if removed:
        logger.info(f"Removed invalid categories: {removed}")
    return saved
