"""
catalog.py — Flask Blueprint for the material catalog API.
Routes: materials CRUD + search, evaluations (conformity, next version,
        status), evaluation files, config, data export/import.
"""

import io
import json
import logging
from flask import Blueprint, request, jsonify, current_app, send_file
from werkzeug.utils import secure_filename

from catalog.constants import STATUS_MAP, EvaluationType
from catalog.evaluations import (
    parse_evaluation, calculate_conformity, conformity_band,
    generate_version, evaluation_status,
)
from catalog.exchange import export_data, import_data, clean_invalid_categories
from catalog.search import MaterialFilter, filter_materials, group_evaluations_by_type, average_conformity
from catalog.store import (
    add_material, update_material, get_material, get_materials, delete_material,
    get_config, save_config, save_file, get_file, file_id_for,
)

logger = logging.getLogger(__name__)

catalog_bp = Blueprint('catalog', __name__)


def _db() -> str:
    return current_app.config['CATALOG_DB_PATH']


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None
    return data


# ═══════════════════════════════════════════════════════
#  Materials
# ═══════════════════════════════════════════════════════

@catalog_bp.route('/api/materials', methods=['GET'])
def list_materials():
    materials = get_materials(_db())
    return jsonify({'items': materials, 'total': len(materials)})


@catalog_bp.route('/api/materials', methods=['POST'])
def create_material():
    data = _json_body()
    if data is None:
        return jsonify({'error': 'No JSON body'}), 400
    return jsonify(add_material(_db(), data)), 201


@catalog_bp.route('/api/materials/<int:material_id>', methods=['GET'])
def read_material(material_id):
    return jsonify(get_material(_db(), material_id))


@catalog_bp.route('/api/materials/<int:material_id>', methods=['PUT'])
def edit_material(material_id):
    data = _json_body()
    if data is None:
        return jsonify({'error': 'No JSON body'}), 400
    return jsonify(update_material(_db(), material_id, data))


@catalog_bp.route('/api/materials/<int:material_id>', methods=['DELETE'])
def remove_material(material_id):
    delete_material(_db(), material_id)
    return jsonify({'success': True})


@catalog_bp.route('/api/materials/search')
def search_materials():
    """
    Query params: q, manufacturer, category, subcategory, cert (repeatable,
    short key like 'EPD' / 'FSC_PEFC' or full type name).
    """
    criteria = MaterialFilter(
        term=request.args.get('q', ''),
        manufacturer=request.args.get('manufacturer', 'all'),
        category=request.args.get('category', 'all'),
        subcategory=request.args.get('subcategory', 'all'),
        certifications=request.args.getlist('cert'),
    )
    items = filter_materials(get_materials(_db()), criteria)
    return jsonify({
        'items': items,
        'total': len(items),
        'average_conformity': average_conformity(items),
    })


@catalog_bp.route('/api/materials/<int:material_id>/evaluations')
def material_evaluations(material_id):
    """Evaluations grouped by type, each with validity status and conformity band."""
    material = get_material(_db(), material_id)
    project_start = request.args.get('project_start')
    project_end = request.args.get('project_end')

    groups = {}
    for kind, evaluations in group_evaluations_by_type(material['evaluations']).items():
        annotated = []
        for e in evaluations:
            status = evaluation_status(e, project_start, project_end)
            annotated.append({
                **e,
                'status': status.value,
                'status_label': STATUS_MAP[status].label_en,
                'band': conformity_band(e.get('conformity') or 0),
            })
        groups[kind] = annotated
    return jsonify({'material_id': material_id, 'groups': groups})


# ═══════════════════════════════════════════════════════
#  Evaluation helpers
# ═══════════════════════════════════════════════════════

@catalog_bp.route('/api/evaluations/types')
def evaluation_types():
    return jsonify({'types': [t.value for t in EvaluationType]})


@catalog_bp.route('/api/evaluations/conformity', methods=['POST'])
def evaluation_conformity():
    """Body: an evaluation (camelCase or snake_case). Returns its computed conformity."""
    data = _json_body()
    if data is None:
        return jsonify({'error': 'No JSON body'}), 400
    evaluation = parse_evaluation(data)
    conformity = calculate_conformity(evaluation)
    return jsonify({'type': evaluation.type, 'conformity': conformity,
                    'band': conformity_band(conformity)})


@catalog_bp.route('/api/evaluations/version', methods=['POST'])
def next_evaluation_version():
    """
    Body: { type: str, material_id?: int, existing?: [evaluation, ...] }
    Existing evaluations come from the stored material when material_id is given.
    """
    data = _json_body()
    if data is None or not data.get('type'):
        return jsonify({'error': 'type is required'}), 400
    try:
        kind = EvaluationType(data['type'])
    except ValueError:
        return jsonify({'error': f"Unknown evaluation type '{data['type']}'"}), 400

    existing = data.get('existing') or []
    if data.get('material_id') is not None:
        existing = get_material(_db(), int(data['material_id']))['evaluations']
    return jsonify({'type': kind.value, 'version': generate_version(kind, existing)})


# ═══════════════════════════════════════════════════════
#  Evaluation files
# ═══════════════════════════════════════════════════════

@catalog_bp.route('/api/materials/<int:material_id>/files', methods=['POST'])
def upload_evaluation_file(material_id):
    """Multipart: file, type, version."""
    if 'file' not in request.files:
        return jsonify({'error': 'No file provided'}), 400
    file = request.files['file']
    if not file.filename:
        return jsonify({'error': 'Empty filename'}), 400

    kind = request.form.get('type', '')
    version = request.form.get('version', '')
    if not kind or not version:
        return jsonify({'error': 'type and version are required'}), 400

    get_material(_db(), material_id)
    file_name = save_file(
        _db(), material_id, kind, version,
        secure_filename(file.filename) or file.filename,
        file.read(), file.mimetype,
    )
    return jsonify({'file_id': file_id_for(material_id, kind, version), 'file_name': file_name}), 201


@catalog_bp.route('/api/files/<path:file_id>')
def download_evaluation_file(file_id):
    stored = get_file(_db(), file_id)
    return send_file(
        io.BytesIO(stored['content']),
        mimetype=stored['mime_type'] or 'application/octet-stream',
        as_attachment=True,
        download_name=stored['file_name'],
    )


# ═══════════════════════════════════════════════════════
#  Config + data exchange
# ═══════════════════════════════════════════════════════

@catalog_bp.route('/api/config', methods=['GET'])
def read_config():
    return jsonify(get_config(_db()))


@catalog_bp.route('/api/config', methods=['PUT'])
def write_config():
    data = _json_body()
    if data is None:
        return jsonify({'error': 'No JSON body'}), 400
    return jsonify(save_config(_db(), data))


@catalog_bp.route('/api/config/clean', methods=['POST'])
def clean_config():
    return jsonify(clean_invalid_categories(_db()))


@catalog_bp.route('/api/data/export')
def export_catalog():
    return jsonify(export_data(_db()))


@catalog_bp.route('/api/data/import', methods=['POST'])
def import_catalog():
    """
    Either multipart (file=<export.json>, mode) or JSON { mode, data }.
    mode: 'merge' (default) or 'replace'.
    """
    if 'file' in request.files:
        mode = request.form.get('mode', 'merge')
        try:
            data = json.loads(request.files['file'].read().decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            return jsonify({'error': f'Invalid JSON file: {e}'}), 400
    else:
        body = _json_body()
        if body is None:
            return jsonify({'error': 'No JSON body'}), 400
        mode = body.get('mode', 'merge')
        data = body.get('data', body)

    if not isinstance(data, dict):
        return jsonify({'error': 'Import data must be an object'}), 400

    try:
        counts = import_data(_db(), data, mode)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    return jsonify({'success': True, **counts})
