"""
Shared fixtures: temporary SQLite catalog, sample catalog materials and a
Flask test client bound to a temporary data directory.
"""

import sys
import os

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app import create_app
from catalog.store import add_material, init_catalog_tables
from etl.models import CatalogMaterial
from etl.pipeline import init_import_tables


@pytest.fixture
def catalog():
    """Catalog in storage order; ids are plain ints."""
    return [
        CatalogMaterial(id=1, name='Oak Panel', manufacturer='WoodCo'),
        CatalogMaterial(id=2, name='Concrete C30', manufacturer='Amorim Cimentos'),
        CatalogMaterial(id=3, name='Tempered Glass 8mm', manufacturer='GlassWorks'),
    ]


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / 'catalog.db')
    init_catalog_tables(path)
    init_import_tables(path)
    return path


@pytest.fixture
def seeded_db(db_path):
    """Store holding three materials (ids 1..3) with a few evaluations."""
    add_material(db_path, {
        'name': 'Oak Panel',
        'manufacturer': 'WoodCo',
        'category': 'Wood',
        'subcategory': 'Natural Wood',
        'description': 'Solid oak wall panel',
        'evaluations': [
            {'type': 'EPD', 'version': '1.0', 'issueDate': '2022-01-01',
             'validTo': '2026-12-31', 'conformity': 80, 'documentId': True},
            {'type': 'FSC / PEFC', 'version': '1.0', 'conformity': 100},
        ],
    })
    add_material(db_path, {
        'name': 'Concrete C30',
        'manufacturer': 'Amorim Cimentos',
        'category': 'Concrete',
        'subcategory': 'Standard Concrete',
        'evaluations': [
            {'type': 'EPD', 'version': '1.0', 'conformity': 40},
        ],
    })
    add_material(db_path, {
        'name': 'Tempered Glass 8mm',
        'manufacturer': 'GlassWorks',
        'category': 'Glass',
    })
    return db_path


@pytest.fixture
def app(tmp_path):
    return create_app({'DATA_DIR': str(tmp_path / 'data'), 'TESTING': True})


@pytest.fixture
def client(app):
    return app.test_client()
