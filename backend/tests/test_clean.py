"""
Row cleaning & validation
"""

import math

import pytest

from etl.clean import cell_text, parse_quantity, is_blank_row, validate_row


def test_cell_text():
    assert cell_text(None) == ''
    assert cell_text(math.nan) == ''
    assert cell_text(150.0) == '150'
    assert cell_text(12.5) == '12.5'
    assert cell_text('  Oak Panel ') == 'Oak Panel'
    assert cell_text(chr(0xFEFF) + 'Oak' + chr(0x200B)) == 'Oak'
    assert cell_text('Oak' + chr(0xA0) + 'Panel') == 'Oak Panel'


@pytest.mark.parametrize('raw, expected', [
    ('12,5', 12.5),
    ('1,234.5', 1234.5),
    ('1.234,5', 1234.5),
    ('1.234.567,25', 1234567.25),
    (' 40 ', 40.0),
    ('0', 0.0),
    (0, 0.0),
    (7, 7.0),
    (2.25, 2.25),
])
def test_parse_quantity(raw, expected):
    assert parse_quantity(raw) == expected


@pytest.mark.parametrize('raw', [None, '', '   ', 'abc', 'n/a', math.nan, True])
def test_parse_quantity_missing(raw):
    assert parse_quantity(raw) is None


def test_blank_row_detection():
    assert is_blank_row([None, '', ' ', None, None, None])
    assert is_blank_row([])
    assert not is_blank_row(['', '', '', '', '', '0'])
    assert not is_blank_row(['M1'])


def test_missing_manufacturer():
    row, error = validate_row(['M1', 'Oak Panel', '', '10', '', ''], 2)
    assert row is None
    assert error == 'Row 2: Name and Manufacturer are required'


def test_missing_name_reported_before_quantities():
    row, error = validate_row(['M1', '', 'WoodCo', '', '', ''], 7)
    assert row is None
    assert error == 'Row 7: Name and Manufacturer are required'


def test_missing_quantities():
    row, error = validate_row(['M1', 'Oak Panel', 'WoodCo', '', None, 'abc'], 3)
    assert row is None
    assert error == 'Row 3: at least one quantity (area, volume, or units) is required'


def test_valid_row():
    row, error = validate_row(['M1', ' Oak Panel ', 'WoodCo', '12,5', None, 0], 4)
    assert error is None
    assert row.external_id == 'M1'
    assert row.name == 'Oak Panel'
    assert row.quantity_m2 == 12.5
    assert row.quantity_m3 is None
    assert row.units == 0.0
    assert row.has_quantity


def test_empty_external_id_uses_row_number():
    row, _ = validate_row(['', 'Oak Panel', 'WoodCo', None, '3', None], 5)
    assert row.external_id == 'ROW-5'
    assert row.row_number == 5


def test_short_row_is_padded():
    row, error = validate_row(['M1', 'Oak Panel', 'WoodCo', '1'], 2)
    assert error is None
    assert row.quantity_m2 == 1.0
    assert row.units is None
