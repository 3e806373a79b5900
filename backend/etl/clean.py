"""
clean.py — Layer 2: Row Cleaning & Validation for project material lists.

Responsibilities:
  - Cell sanitizing (invisible chars, NaN, numeric cells rendered as text)
  - Quantity parsing (area m², volume m³, unit count)
  - Required-field validation with human row numbers in messages

Design principles:
  - Never crash on bad data: a bad row yields exactly one error message
  - Validation order: name/manufacturer first, then quantities
"""

import math
import logging
from typing import Any, Optional, Sequence

from etl.models import ImportRow

logger = logging.getLogger(__name__)

# Data row i (0-based, header excluded) is spreadsheet row i + HEADER_OFFSET
HEADER_OFFSET = 2

ERROR_REQUIRED_TEXT = "Row {n}: Name and Manufacturer are required"
ERROR_REQUIRED_QUANTITY = "Row {n}: at least one quantity (area, volume, or units) is required"


# ═══════════════════════════════════════════════════════
#  Cell cleaning
# ═══════════════════════════════════════════════════════

def cell_text(value: Any) -> str:
    """
    Render a raw cell as stripped text:
    - None / NaN → ''
    - integral floats lose their '.0' (150.0 → '150')
    - BOM, zero-width and non-breaking spaces are removed
    """
    if value is None:
        return ''
    if isinstance(value, float):
        if math.isnan(value):
            return ''
        if value.is_integer():
            return str(int(value))
    s = str(value)
    s = s.replace('\ufeff', '')
    s = s.replace('\u200b', '')
    s = s.replace('\xa0', ' ')
    return s.strip()


def parse_quantity(value: Any) -> Optional[float]:
    """Parse a quantity cell; ',' or '.' may be the decimal separator, whichever comes last. Non-numeric → None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if isinstance(value, float) and math.isnan(value) else float(value)

    text = cell_text(value).replace(' ', '')
    if not text:
        return None
    if ',' in text and '.' in text:
        # the separator appearing last is the decimal one
        if text.rfind(',') > text.rfind('.'):
            text = text.replace('.', '').replace(',', '.')
        else:
            text = text.replace(',', '')
    elif ',' in text:
        text = text.replace(',', '.')
    try:
        number = float(text)
    except ValueError:
        return None
    return None if math.isnan(number) else number


def _cell(cells: Sequence, index: int) -> Any:
    return cells[index] if index < len(cells) else None


def is_blank_row(cells: Sequence) -> bool:
    """True when id, name, manufacturer and all three quantities are empty."""
    return all(cell_text(_cell(cells, i)) == '' for i in range(6))


# ═══════════════════════════════════════════════════════
#  Row-level validation (main entry point)
# ═══════════════════════════════════════════════════════

def validate_row(cells: Sequence, row_number: int) -> tuple[Optional[ImportRow], Optional[str]]:
    """
    Validate one raw row: [external_id, name, manufacturer, m², m³, units].

    Returns (ImportRow, None) for a valid row, or (None, error_message).
    An empty external id is replaced by 'ROW-<row_number>'.
    """
    name = cell_text(_cell(cells, 1))
    manufacturer = cell_text(_cell(cells, 2))
    if not name or not manufacturer:
        return None, ERROR_REQUIRED_TEXT.format(n=row_number)

    quantity_m2 = parse_quantity(_cell(cells, 3))
    quantity_m3 = parse_quantity(_cell(cells, 4))
    units = parse_quantity(_cell(cells, 5))
    if quantity_m2 is None and quantity_m3 is None and units is None:
        return None, ERROR_REQUIRED_QUANTITY.format(n=row_number)

    external_id = cell_text(_cell(cells, 0)) or f"ROW-{row_number}"

    return ImportRow(
        row_number=row_number,
        external_id=external_id,
        name=name,
        manufacturer=manufacturer,
        quantity_m2=quantity_m2,
        quantity_m3=quantity_m3,
        units=units,
    ), None
