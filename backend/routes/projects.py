"""
projects.py — Flask Blueprint for projects and their material-list import.
Routes: projects CRUD, spreadsheet upload (background batch), status polling,
        synchronous import preview.
"""

import os
import uuid
import logging
from flask import Blueprint, request, jsonify, current_app
from werkzeug.utils import secure_filename

from catalog.store import (
    add_project, update_project, get_project, get_projects, delete_project,
    catalog_materials,
)
from etl.ingest import SUPPORTED_EXTENSIONS
from etl.match import MaterialMatcher
from etl.pipeline import (
    create_batch, get_batch_status, run_async, import_file, project_materials,
)
from etl.report import generate_summary

logger = logging.getLogger(__name__)

projects_bp = Blueprint('projects', __name__)


def _db() -> str:
    return current_app.config['CATALOG_DB_PATH']


def _allowed_file(filename: str) -> bool:
    return os.path.splitext(filename)[1].lower() in SUPPORTED_EXTENSIONS


def _save_upload():
    """
    Validate and store the uploaded spreadsheet.
    Returns (filepath, original_name, None) or (None, None, error_response).
    """
    if 'file' not in request.files:
        return None, None, (jsonify({'error': 'No file provided'}), 400)

    file = request.files['file']
    if not file.filename:
        return None, None, (jsonify({'error': 'Empty filename'}), 400)

    if not _allowed_file(file.filename):
        allowed = ', '.join(sorted(SUPPORTED_EXTENSIONS))
        return None, None, (jsonify({'error': f'Unsupported file type. Allowed: {allowed}'}), 400)

    upload_folder = current_app.config['UPLOAD_FOLDER']
    os.makedirs(upload_folder, exist_ok=True)

    safe_name = secure_filename(file.filename) or f"upload{os.path.splitext(file.filename)[1].lower()}"
    filepath = os.path.join(upload_folder, f"{uuid.uuid4().hex[:12]}_{safe_name}")
    file.save(filepath)
    return filepath, file.filename, None


# ═══════════════════════════════════════════════════════
#  Projects
# ═══════════════════════════════════════════════════════

@projects_bp.route('/api/projects', methods=['GET'])
def list_projects():
    projects = get_projects(_db())
    return jsonify({'items': projects, 'total': len(projects)})


@projects_bp.route('/api/projects', methods=['POST'])
def create_project():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'No JSON body'}), 400
    return jsonify(add_project(_db(), data)), 201


@projects_bp.route('/api/projects/<int:project_id>', methods=['GET'])
def read_project(project_id):
    return jsonify(get_project(_db(), project_id))


@projects_bp.route('/api/projects/<int:project_id>', methods=['PUT'])
def edit_project(project_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'No JSON body'}), 400
    return jsonify(update_project(_db(), project_id, data))


@projects_bp.route('/api/projects/<int:project_id>', methods=['DELETE'])
def remove_project(project_id):
    delete_project(_db(), project_id)
    return jsonify({'success': True})


# ═══════════════════════════════════════════════════════
#  Material list import
# ═══════════════════════════════════════════════════════

@projects_bp.route('/api/projects/<int:project_id>/import', methods=['POST'])
def upload_project_materials(project_id):
    """
    Accept a spreadsheet, create a batch, start processing in background.
    Matched and unmatched rows are attached to the project when it completes.
    Returns: { batch_id: str, filename: str }
    """
    get_project(_db(), project_id)

    filepath, filename, error = _save_upload()
    if error:
        return error

    batch_id = create_batch(_db(), filename, project_id=project_id)
    logger.info(f"Created batch {batch_id[:8]} for project {project_id}: {filename}")

    run_async(_db(), batch_id, filepath)
    return jsonify({'batch_id': batch_id, 'filename': filename}), 202


@projects_bp.route('/api/projects/import/status/<batch_id>')
def import_status(batch_id):
    """Poll batch processing status."""
    status = get_batch_status(_db(), batch_id)
    if status is None:
        return jsonify({'error': 'Batch not found'}), 404
    return jsonify(status)


@projects_bp.route('/api/projects/import/preview', methods=['POST'])
def preview_import():
    """
    Run the import synchronously without touching any project.
    Returns the report plus the reconciled material lines.
    """
    filepath, _, error = _save_upload()
    if error:
        return error

    try:
        matcher = MaterialMatcher(catalog_materials(_db()))
        results, summary = import_file(filepath, [], matcher=matcher)
    finally:
        os.remove(filepath)

    report = generate_summary(results, summary, matcher)
    status = 422 if summary.failed else 200
    return jsonify({**report, 'materials': project_materials(results)}), status
