"""
Catalog filtering and evaluation summaries
"""

import pytest
from pydantic import ValidationError

from catalog.constants import EvaluationType
from catalog.search import MaterialFilter, filter_materials, group_evaluations_by_type, average_conformity
from catalog.store import get_materials


@pytest.fixture
def materials(seeded_db):
    return get_materials(seeded_db)


def _names(items):
    return [m['name'] for m in items]


def test_no_criteria_keeps_everything(materials):
    assert filter_materials(materials) == materials


def test_term_is_accent_and_case_insensitive(materials):
    assert _names(filter_materials(materials, MaterialFilter(term='CONCRÉTE'))) == ['Concrete C30']
    assert _names(filter_materials(materials, MaterialFilter(term='amorim'))) == ['Concrete C30']


def test_term_matches_description(materials):
    assert _names(filter_materials(materials, MaterialFilter(term='wall'))) == ['Oak Panel']


def test_select_filters(materials):
    assert _names(filter_materials(materials, MaterialFilter(category='Glass'))) == ['Tempered Glass 8mm']
    assert len(filter_materials(materials, MaterialFilter(category='all', manufacturer=''))) == 3
    assert filter_materials(materials, MaterialFilter(subcategory='Bamboo')) == []


def test_certification_filter_requires_every_type(materials):
    assert _names(filter_materials(materials, MaterialFilter(certifications=['EPD']))) == [
        'Oak Panel', 'Concrete C30',
    ]
    assert _names(filter_materials(materials, MaterialFilter(certifications=['EPD', 'FSC_PEFC']))) == [
        'Oak Panel',
    ]
    assert filter_materials(materials, MaterialFilter(certifications=['ECOLABEL'])) == []


def test_certification_keys():
    criteria = MaterialFilter(certifications=['MI', 'Health Product Declaration'])
    assert criteria.certifications == [
        EvaluationType.MANUFACTURER_INVENTORY, EvaluationType.HEALTH_PRODUCT_DECLARATION,
    ]
    with pytest.raises(ValidationError):
        MaterialFilter(certifications=['LEED'])


def test_group_evaluations_by_type():
    groups = group_evaluations_by_type([
        {'type': 'EPD', 'version': '1.0'},
        {'type': 'C2C', 'version': '1.0'},
        {'type': 'EPD', 'version': '1.10'},
        {'type': 'EPD', 'version': '1.2'},
    ])
    assert list(groups) == ['EPD', 'C2C']
    assert [e['version'] for e in groups['EPD']] == ['1.10', '1.2', '1.0']


def test_average_conformity(materials):
    assert average_conformity(materials) == pytest.approx(73.3)
    assert average_conformity([]) == 0.0
