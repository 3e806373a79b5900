"""
pipeline.py — Project material import orchestrator.
Runs: Layer 1 (Ingest) → Layer 2 (Clean & Validate) → Layer 3 (Match) →
      Layer 4 (Report), either inline (import_rows / import_file) or as a
      batch in a background thread with status polling.

Row-level problems never abort an import; only an unreadable file does, and
then nothing is applied: the result list is empty, counts are zero and the
summary carries one top-level error.
"""

import json
import logging
import os
import sqlite3
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Union

from etl.clean import HEADER_OFFSET, is_blank_row, validate_row
from etl.ingest import IngestError, read_rows
from etl.match import MaterialMatcher
from etl.models import CatalogMaterial, ImportSummary, MatchResult
from etl.report import generate_summary

logger = logging.getLogger(__name__)

CatalogLike = Iterable[Union[CatalogMaterial, dict]]


def _as_catalog(catalog: CatalogLike) -> list[CatalogMaterial]:
    return [m if isinstance(m, CatalogMaterial) else CatalogMaterial.model_validate(m)
            for m in catalog]


# ═══════════════════════════════════════════════════════
#  Inline import
# ═══════════════════════════════════════════════════════

def import_rows(raw_rows: Iterable[Any], catalog: CatalogLike,
                matcher: Optional[MaterialMatcher] = None
                ) -> tuple[list[MatchResult], ImportSummary]:
    """
    Validate and match data rows (header already removed) against the catalog.

    Row i is reported as spreadsheet row i + 2. Blank rows are skipped without
    being counted; invalid rows add one error each and are not processed.
    """
    if matcher is None:
        matcher = MaterialMatcher(_as_catalog(catalog))

    results: list[MatchResult] = []
    errors: list[str] = []
    total = processed = matched = 0

    for idx, cells in enumerate(raw_rows):
        row_number = idx + HEADER_OFFSET
        try:
            if is_blank_row(cells):
                continue
            total += 1

            row, error = validate_row(cells, row_number)
            if error:
                errors.append(error)
                continue

            candidate = matcher.best(row.name, row.manufacturer)
        except Exception as row_err:
            # Never crash on a single row — record it and continue
            logger.warning(f"Row {row_number} error: {row_err}")
            errors.append(f"Row {row_number}: could not be processed ({row_err})")
            continue

        processed += 1
        if candidate:
            matched += 1
            results.append(MatchResult(row=row, matched_material=candidate.material,
                                       score=candidate.score))
        else:
            results.append(MatchResult(row=row))

    summary = ImportSummary(total=total, processed=processed, matched=matched, errors=errors)
    logger.info(
        f"Import complete: {matched}/{processed} matched, "
        f"{len(errors)} invalid, {total} non-blank rows"
    )
    return results, summary


def import_file(filepath: str, catalog: CatalogLike,
                matcher: Optional[MaterialMatcher] = None
                ) -> tuple[list[MatchResult], ImportSummary]:
    """Read a spreadsheet, drop its header row and import the rest."""
    try:
        rows = read_rows(filepath)
    except IngestError as e:
        logger.warning(f"Import aborted: {e}")
        return [], failed_summary(str(e))

    return import_rows(rows[1:], catalog, matcher=matcher)


def failed_summary(message: str) -> ImportSummary:
    return ImportSummary(errors=[message], failed=True)


def project_materials(results: Iterable[MatchResult]) -> list[dict]:
    """Project material records for the imported rows, with their catalog link."""
    materials = []
    for result in results:
        row = result.row
        materials.append({
            'id': row.external_id,
            'name': row.name,
            'manufacturer': row.manufacturer,
            'quantity_m2': row.quantity_m2,
            'quantity_m3': row.quantity_m3,
            'units': row.units,
            'matched_material_id': result.matched_material.id if result.matched else None,
            'match_score': round(result.score, 4),
        })
    return materials


# ═══════════════════════════════════════════════════════
#  Batch import (background thread + polling)
# ═══════════════════════════════════════════════════════

def init_import_tables(db_path: str):
    """Create the import batch table if it doesn't exist."""
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS import_batches (
            id              TEXT PRIMARY KEY,
            filename        TEXT NOT NULL,
            project_id      INTEGER,
            status          TEXT NOT NULL DEFAULT 'pending',
            total_rows      INTEGER DEFAULT 0,
            processed       INTEGER DEFAULT 0,
            matched         INTEGER DEFAULT 0,
            created_at      DATETIME DEFAULT CURRENT_TIMESTAMP,
            completed_at    DATETIME,
            summary_json    TEXT,
            materials_json  TEXT,
            error_msg       TEXT
        )
    """)
    conn.commit()
    conn.close()


def create_batch(db_path: str, filename: str, project_id: Optional[int] = None) -> str:
    """Create a new batch record and return its UUID."""
    batch_id = str(uuid.uuid4())
    conn = sqlite3.connect(db_path)
    conn.execute(
        "INSERT INTO import_batches (id, filename, project_id, status) VALUES (?, ?, ?, 'pending')",
        (batch_id, filename, project_id)
    )
    conn.commit()
    conn.close()
    return batch_id


def get_batch_status(db_path: str, batch_id: str) -> Optional[dict]:
    """Current status of a batch for polling, or None if unknown."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    row = conn.execute("SELECT * FROM import_batches WHERE id = ?", (batch_id,)).fetchone()
    conn.close()

    if not row:
        return None

    result = {
        'id': row['id'],
        'filename': row['filename'],
        'project_id': row['project_id'],
        'status': row['status'],
        'total_rows': row['total_rows'],
        'processed': row['processed'],
        'matched': row['matched'],
        'created_at': row['created_at'],
        'completed_at': row['completed_at'],
        'error_msg': row['error_msg'],
        'summary': None,
        'materials': [],
    }
    try:
        if row['summary_json']:
            result['summary'] = json.loads(row['summary_json'])
        if row['materials_json']:
            result['materials'] = json.loads(row['materials_json'])
    except (json.JSONDecodeError, TypeError):
        logger.warning(f"[Batch {batch_id[:8]}] stored JSON is unreadable")
    return result


def run_async(db_path: str, batch_id: str, filepath: str) -> threading.Thread:
    """Start the batch import in a background thread."""
    t = threading.Thread(
        target=run_batch,
        args=(db_path, batch_id, filepath),
        daemon=True
    )
    t.start()
    return t


def run_batch(db_path: str, batch_id: str, filepath: str):
    """
    Batch import logic. Reads the catalog from the store, imports the file,
    stores the report and reconciled materials, and attaches them to the
    batch's project when one is set.

    The uploaded file is removed once the batch finishes.
    Never crashes — all errors are caught and stored in batch status.
    """
    # Imported here: the catalog package depends on etl, not the other way round
    from catalog.store import catalog_materials, attach_project_materials

    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    try:
        cursor.execute("UPDATE import_batches SET status = 'processing' WHERE id = ?", (batch_id,))
        conn.commit()
        project_id = cursor.execute(
            "SELECT project_id FROM import_batches WHERE id = ?", (batch_id,)
        ).fetchone()[0]

        logger.info(f"[Batch {batch_id[:8]}] Ingesting file: {filepath}")
        matcher = MaterialMatcher(catalog_materials(db_path))
        results, summary = import_file(filepath, [], matcher=matcher)
        report = generate_summary(results, summary, matcher)

        if summary.failed:
            cursor.execute("""
                UPDATE import_batches
                SET status = 'error', error_msg = ?, summary_json = ?, completed_at = ?
                WHERE id = ?
            """, (summary.errors[0], json.dumps(report),
                  datetime.now(timezone.utc).isoformat(), batch_id))
            conn.commit()
            return

        materials = project_materials(results)
        if project_id is not None:
            attach_project_materials(db_path, project_id, materials)

        cursor.execute("""
            UPDATE import_batches
            SET status = 'completed', completed_at = ?, total_rows = ?, processed = ?,
                matched = ?, summary_json = ?, materials_json = ?
            WHERE id = ?
        """, (datetime.now(timezone.utc).isoformat(), summary.total, summary.processed,
              summary.matched, json.dumps(report), json.dumps(materials), batch_id))
        conn.commit()

        logger.info(
            f"[Batch {batch_id[:8]}] Pipeline complete: "
            f"{summary.matched}/{summary.processed} matched ({summary.match_rate}%), "
            f"{len(summary.errors)} invalid rows"
        )

    except Exception as e:
        logger.error(f"[Batch {batch_id[:8]}] Pipeline error: {e}", exc_info=True)
        cursor.execute(
            "UPDATE import_batches SET status = 'error', error_msg = ? WHERE id = ?",
            (str(e)[:500], batch_id)
        )
        conn.commit()

    finally:
        conn.close()
        if os.path.exists(filepath):
            os.remove(filepath)
