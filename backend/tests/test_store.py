"""
SQLite catalog store
"""

import pytest
from pydantic import ValidationError

from catalog.constants import DEFAULT_CONFIG
from catalog.store import (
    NotFoundError,
    add_material, update_material, get_material, get_materials, delete_material,
    catalog_materials,
    add_project, update_project, get_project, get_projects, delete_project,
    attach_project_materials,
    get_config, save_config, save_file, get_file,
)
from etl.models import CatalogMaterial


def test_add_and_get_material(db_path):
    created = add_material(db_path, {
        'id': 99,
        'name': '  Cork Board ',
        'manufacturer': 'Amorim',
        'evaluations': [{'type': 'EPD', 'document_id': True}],
    })
    assert created['id'] != 99
    assert created['name'] == 'Cork Board'
    assert created['created_at'] == created['updated_at']
    assert created['evaluations'][0]['documentId'] is True

    assert get_material(db_path, created['id']) == created


def test_materials_in_storage_order(seeded_db):
    names = [m['name'] for m in get_materials(seeded_db)]
    assert names == ['Oak Panel', 'Concrete C30', 'Tempered Glass 8mm']


def test_update_material(seeded_db):
    before = get_material(seeded_db, 1)
    after = update_material(seeded_db, 1, {'description': 'Oiled oak'})
    assert after['description'] == 'Oiled oak'
    assert after['name'] == 'Oak Panel'
    assert after['created_at'] == before['created_at']
    assert len(after['evaluations']) == 2


def test_invalid_material_rejected(db_path):
    with pytest.raises(ValidationError):
        add_material(db_path, {'name': '   '})
    with pytest.raises(ValidationError):
        add_material(db_path, {'name': 'Oak', 'evaluations': [{'type': 'LEED'}]})


def test_missing_material(db_path):
    with pytest.raises(NotFoundError):
        get_material(db_path, 1)
    with pytest.raises(NotFoundError):
        update_material(db_path, 1, {'name': 'x'})
    with pytest.raises(NotFoundError):
        delete_material(db_path, 1)


def test_delete_material(seeded_db):
    delete_material(seeded_db, 2)
    assert [m['id'] for m in get_materials(seeded_db)] == [1, 3]


def test_catalog_materials(seeded_db):
    catalog = catalog_materials(seeded_db)
    assert all(isinstance(m, CatalogMaterial) for m in catalog)
    assert [(m.id, m.name) for m in catalog][0] == (1, 'Oak Panel')


# ═══════════════════════════════════════════════════════
#  Projects
# ═══════════════════════════════════════════════════════

def test_project_crud(db_path):
    project = add_project(db_path, {'name': 'Porto Housing', 'startDate': '2024-01-01'})
    assert project['start_date'] == '2024-01-01'
    assert project['materials'] == []

    updated = update_project(db_path, project['id'], {'end_date': '2026-06-30'})
    assert updated['end_date'] == '2026-06-30'
    assert [p['name'] for p in get_projects(db_path)] == ['Porto Housing']

    delete_project(db_path, project['id'])
    with pytest.raises(NotFoundError):
        get_project(db_path, project['id'])


def test_attach_project_materials_merges_by_id(db_path):
    project = add_project(db_path, {'name': 'Porto Housing', 'materials': [
        {'id': 'M1', 'name': 'Oak', 'manufacturer': 'WoodCo', 'units': 1},
        {'id': 'M2', 'name': 'Glass', 'manufacturer': 'GlassWorks', 'units': 2},
    ]})
    attached = attach_project_materials(db_path, project['id'], [
        {'id': 'M2', 'name': 'Glass 8mm', 'manufacturer': 'GlassWorks', 'units': 5},
        {'id': 'M3', 'name': 'Brick', 'manufacturer': 'ClayCo', 'quantity_m2': 40},
    ])
    assert [m['id'] for m in attached['materials']] == ['M1', 'M2', 'M3']
    assert attached['materials'][1]['units'] == 5.0
    assert attached['materials'][1]['name'] == 'Glass 8mm'


def test_attach_to_missing_project(db_path):
    with pytest.raises(NotFoundError):
        attach_project_materials(db_path, 42, [])


# ═══════════════════════════════════════════════════════
#  Config + files
# ═══════════════════════════════════════════════════════

def test_default_config(db_path):
    config = get_config(db_path)
    assert config == DEFAULT_CONFIG
    config['categories'].append('Stone')
    assert 'Stone' not in DEFAULT_CONFIG['categories']


def test_save_config(db_path):
    save_config(db_path, {
        'manufacturers': ['WoodCo'],
        'categories': ['Wood'],
        'subcategories': {'Wood': ['Oak']},
        'evaluationTypes': ['EPD'],
    })
    config = get_config(db_path)
    assert config['manufacturers'] == ['WoodCo']
    assert config['evaluationTypes'] == ['EPD']


def test_save_and_get_file(seeded_db):
    file_name = save_file(seeded_db, 1, 'EPD', '1.0', 'declaration.pdf', b'%PDF-1.4 one', 'application/pdf')
    assert file_name == '1EPDv1.0.pdf'

    stored = get_file(seeded_db, '1EPDv1.0')
    assert stored['content'] == b'%PDF-1.4 one'
    assert stored['mime_type'] == 'application/pdf'

    save_file(seeded_db, 1, 'EPD', '1.0', 'declaration.pdf', b'%PDF-1.4 two')
    assert get_file(seeded_db, '1EPDv1.0')['content'] == b'%PDF-1.4 two'


def test_deleting_material_removes_files(seeded_db):
    save_file(seeded_db, 2, 'EPD', '1.0', 'epd.pdf', b'data')
    delete_material(seeded_db, 2)
    with pytest.raises(NotFoundError):
        get_file(seeded_db, '2EPDv1.0')
