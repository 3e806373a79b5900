"""
store.py — SQLite persistence for the material catalog.

Tables:
  materials : catalog materials, evaluations stored as JSON
  projects  : projects with their imported material list (JSON)
  config    : single 'main' row holding the catalog pick lists
  files     : evaluation documents, id '<materialId><type>v<version>'

Every function opens its own connection from `db_path`. Missing records raise
NotFoundError; malformed payloads raise pydantic.ValidationError.
"""

import os
import copy
import json
import sqlite3
import logging
from datetime import datetime, timezone
from typing import Optional, Union

from catalog.constants import DEFAULT_CONFIG
from catalog.models import CatalogConfig, Material, Project, ProjectMaterial
from etl.models import CatalogMaterial

logger = logging.getLogger(__name__)

CONFIG_KEY = 'main'


class NotFoundError(LookupError):
    """Requested catalog record does not exist."""


def _connect(db_path: str) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def init_catalog_tables(db_path: str):
    """Create catalog tables if they don't exist."""
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS materials (
            id                INTEGER PRIMARY KEY AUTOINCREMENT,
            name              TEXT NOT NULL,
            manufacturer      TEXT DEFAULT '',
            category          TEXT DEFAULT '',
            subcategory       TEXT DEFAULT '',
            description       TEXT DEFAULT '',
            evaluations_json  TEXT DEFAULT '[]',
            created_at        TEXT,
            updated_at        TEXT
        )
    """)
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_materials_name ON materials(name)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_materials_category ON materials(category)")
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS projects (
            id              INTEGER PRIMARY KEY AUTOINCREMENT,
            name            TEXT NOT NULL,
            description     TEXT DEFAULT '',
            start_date      TEXT,
            end_date        TEXT,
            materials_json  TEXT DEFAULT '[]',
            created_at      TEXT,
            updated_at      TEXT
        )
    """)
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS config (
            key     TEXT PRIMARY KEY,
            value   TEXT NOT NULL
        )
    """)
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS files (
            id               TEXT PRIMARY KEY,
            material_id      INTEGER NOT NULL,
            evaluation_type  TEXT NOT NULL,
            version          TEXT NOT NULL,
            file_name        TEXT NOT NULL,
            content          BLOB NOT NULL,
            mime_type        TEXT,
            uploaded_at      TEXT
        )
    """)
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_files_material ON files(material_id)")
    conn.commit()
    conn.close()


# ═══════════════════════════════════════════════════════
#  Materials
# ═══════════════════════════════════════════════════════

def _material_from_row(row: sqlite3.Row) -> dict:
    return {
        'id': row['id'],
        'name': row['name'],
        'manufacturer': row['manufacturer'] or '',
        'category': row['category'] or '',
        'subcategory': row['subcategory'] or '',
        'description': row['description'] or '',
        'evaluations': json.loads(row['evaluations_json'] or '[]'),
        'created_at': row['created_at'],
        'updated_at': row['updated_at'],
    }


def _material_values(material: Material) -> tuple:
    dumped = material.model_dump(mode='json', by_alias=True)
    return (
        material.name, material.manufacturer, material.category,
        material.subcategory, material.description,
        json.dumps(dumped['evaluations']),
    )


def add_material(db_path: str, data: Union[dict, Material]) -> dict:
    """Insert a new material; any incoming id or timestamps are ignored."""
    material = data if isinstance(data, Material) else Material.model_validate(data)
    now = _now()

    conn = _connect(db_path)
    cursor = conn.cursor()
    cursor.execute("""
        INSERT INTO materials
            (name, manufacturer, category, subcategory, description,
             evaluations_json, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
    """, _material_values(material) + (now, now))
    material_id = cursor.lastrowid
    conn.commit()
    conn.close()

    logger.info(f"Material {material_id} added: {material.name}")
    return get_material(db_path, material_id)


def update_material(db_path: str, material_id: int, data: dict) -> dict:
    """Apply a partial update to an existing material."""
    existing = get_material(db_path, material_id)
    merged = {**existing, **data, 'id': material_id}
    material = Material.model_validate(merged)

    conn = _connect(db_path)
    conn.execute("""
        UPDATE materials
        SET name = ?, manufacturer = ?, category = ?, subcategory = ?,
            description = ?, evaluations_json = ?, updated_at = ?
        WHERE id = ?
    """, _material_values(material) + (_now(), material_id))
    conn.commit()
    conn.close()
    return get_material(db_path, material_id)


def get_material(db_path: str, material_id: int) -> dict:
    conn = _connect(db_path)
    row = conn.execute("SELECT * FROM materials WHERE id = ?", (material_id,)).fetchone()
    conn.close()
    if not row:
        raise NotFoundError(f"Material {material_id} not found")
    return _material_from_row(row)


def get_materials(db_path: str) -> list[dict]:
    """All materials in storage (id) order."""
    conn = _connect(db_path)
    rows = conn.execute("SELECT * FROM materials ORDER BY id").fetchall()
    conn.close()
    return [_material_from_row(r) for r in rows]


def delete_material(db_path: str, material_id: int):
    """Delete a material and its evaluation files."""
    conn = _connect(db_path)
    cursor = conn.cursor()
    cursor.execute("DELETE FROM materials WHERE id = ?", (material_id,))
    deleted = cursor.rowcount
    cursor.execute("DELETE FROM files WHERE material_id = ?", (material_id,))
    conn.commit()
    conn.close()
    if not deleted:
        raise NotFoundError(f"Material {material_id} not found")


def delete_all_materials(db_path: str) -> int:
    conn = _connect(db_path)
    cursor = conn.cursor()
    cursor.execute("DELETE FROM materials")
    count = cursor.rowcount
    cursor.execute("DELETE FROM files")
    conn.commit()
    conn.close()
    return count


def catalog_materials(db_path: str) -> list[CatalogMaterial]:
    """Catalog entries in storage order, in the form the matcher consumes."""
    conn = _connect(db_path)
    rows = conn.execute("SELECT id, name, manufacturer FROM materials ORDER BY id").fetchall()
    conn.close()
    return [CatalogMaterial(id=r['id'], name=r['name'] or '', manufacturer=r['manufacturer'] or '')
            for r in rows]


# ═══════════════════════════════════════════════════════
#  Projects
# ═══════════════════════════════════════════════════════

def _project_from_row(row: sqlite3.Row) -> dict:
    return {
        'id': row['id'],
        'name': row['name'],
        'description': row['description'] or '',
        'start_date': row['start_date'],
        'end_date': row['end_date'],
        'materials': json.loads(row['materials_json'] or '[]'),
        'created_at': row['created_at'],
        'updated_at': row['updated_at'],
    }


def _project_values(project: Project) -> tuple:
    materials = [m.model_dump(mode='json') for m in project.materials]
    return (project.name, project.description, project.start_date,
            project.end_date, json.dumps(materials))


def add_project(db_path: str, data: Union[dict, Project]) -> dict:
    project = data if isinstance(data, Project) else Project.model_validate(data)
    now = _now()

    conn = _connect(db_path)
    cursor = conn.cursor()
    cursor.execute("""
        INSERT INTO projects
            (name, description, start_date, end_date, materials_json, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
    """, _project_values(project) + (now, now))
    project_id = cursor.lastrowid
    conn.commit()
    conn.close()

    logger.info(f"Project {project_id} added: {project.name}")
    return get_project(db_path, project_id)


def update_project(db_path: str, project_id: int, data: dict) -> dict:
    existing = get_project(db_path, project_id)
    project = Project.model_validate({**existing, **data, 'id': project_id})

    conn = _connect(db_path)
    conn.execute("""
        UPDATE projects
        SET name = ?, description = ?, start_date = ?, end_date = ?,
            materials_json = ?, updated_at = ?
        WHERE id = ?
    """, _project_values(project) + (_now(), project_id))
    conn.commit()
    conn.close()
    return get_project(db_path, project_id)


def get_project(db_path: str, project_id: int) -> dict:
    conn = _connect(db_path)
    row = conn.execute("SELECT * FROM projects WHERE id = ?", (project_id,)).fetchone()
    conn.close()
    if not row:
        raise NotFoundError(f"Project {project_id} not found")
    return _project_from_row(row)


def get_projects(db_path: str) -> list[dict]:
    conn = _connect(db_path)
    rows = conn.execute("SELECT * FROM projects ORDER BY id").fetchall()
    conn.close()
    return [_project_from_row(r) for r in rows]


def delete_project(db_path: str, project_id: int):
    conn = _connect(db_path)
    cursor = conn.cursor()
    cursor.execute("DELETE FROM projects WHERE id = ?", (project_id,))
    deleted = cursor.rowcount
    conn.commit()
    conn.close()
    if not deleted:
        raise NotFoundError(f"Project {project_id} not found")


def attach_project_materials(db_path: str, project_id: int, materials: list[dict]) -> dict:
    """
    Merge imported material lines into a project's list. A line whose id is
    already present replaces it in place; new ids are appended in order.
    """
    project = get_project(db_path, project_id)
    incoming = [ProjectMaterial.model_validate(m).model_dump(mode='json') for m in materials]

    merged = list(project['materials'])
    position = {m.get('id'): i for i, m in enumerate(merged)}
    for line in incoming:
        if line['id'] in position:
            merged[position[line['id']]] = line
        else:
            position[line['id']] = len(merged)
            merged.append(line)

    logger.info(f"Project {project_id}: {len(incoming)} imported lines, {len(merged)} total")
    return update_project(db_path, project_id, {'materials': merged})


# ═══════════════════════════════════════════════════════
#  Config
# ═══════════════════════════════════════════════════════

def get_config(db_path: str) -> dict:
    """Stored catalog config, or the defaults when none was saved."""
    conn = _connect(db_path)
    row = conn.execute("SELECT value FROM config WHERE key = ?", (CONFIG_KEY,)).fetchone()
    conn.close()
    if not row:
        return copy.deepcopy(DEFAULT_CONFIG)
    return json.loads(row['value'])


def save_config(db_path: str, data: Union[dict, CatalogConfig]) -> dict:
    config = data if isinstance(data, CatalogConfig) else CatalogConfig.model_validate(data)
    value = config.model_dump(by_alias=True)

    conn = _connect(db_path)
    conn.execute("INSERT OR REPLACE INTO config (key, value) VALUES (?, ?)",
                 (CONFIG_KEY, json.dumps(value)))
    conn.commit()
    conn.close()
    return value


# ═══════════════════════════════════════════════════════
#  Evaluation files
# ═══════════════════════════════════════════════════════

def file_id_for(material_id: Union[int, str], evaluation_type: str, version: str) -> str:
    return f"{material_id}{evaluation_type}v{version}"


def save_file(db_path: str, material_id: int, evaluation_type: str, version: str,
              upload_name: str, content: bytes, mime_type: Optional[str] = None) -> str:
    """
    Store an evaluation document, replacing any previous upload for the same
    material/type/version. Returns the stored file name '<fileId>.<ext>'.
    """
    file_id = file_id_for(material_id, evaluation_type, version)
    ext = os.path.splitext(upload_name or '')[1]
    file_name = f"{file_id}{ext}"

    conn = _connect(db_path)
    conn.execute("""
        INSERT OR REPLACE INTO files
            (id, material_id, evaluation_type, version, file_name, content, mime_type, uploaded_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
    """, (file_id, material_id, evaluation_type, version, file_name,
          sqlite3.Binary(content), mime_type, _now()))
    conn.commit()
    conn.close()

    logger.info(f"Stored evaluation file {file_name} ({len(content)} bytes)")
    return file_name


def get_file(db_path: str, file_id: str) -> dict:
    conn = _connect(db_path)
    row = conn.execute("SELECT * FROM files WHERE id = ?", (file_id,)).fetchone()
    conn.close()
    if not row:
        raise NotFoundError(f"File {file_id} not found")
    return {
        'id': row['id'],
        'material_id': row['material_id'],
        'evaluation_type': row['evaluation_type'],
        'version': row['version'],
        'file_name': row['file_name'],
        'content': bytes(row['content']),
        'mime_type': row['mime_type'],
        'uploaded_at': row['uploaded_at'],
    }
