"""
ingest.py — Layer 1: Spreadsheet Ingestion for project material lists.

Responsibilities:
  - Open Excel (.xlsx/.xls) and CSV files and return raw rows
  - Multi-encoding fallback for CSV
  - Smart sheet selection for multi-sheet workbooks

Expected layout (fixed column order, row 0 is a header):
    ID | Name | Manufacturer | M² | M³ | Units

Design principles:
  - Blank rows are kept so row numbers match the spreadsheet
  - A file that cannot be read raises IngestError; nothing is partially returned
"""

import csv
import os
import re
import logging

import pandas as pd

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {'.csv', '.xlsx', '.xls'}

# Fixed column order of a project material list
COLUMNS = ['external_id', 'name', 'manufacturer', 'quantity_m2', 'quantity_m3', 'units']

# Sheet name patterns that suggest a material list
MATERIAL_SHEET_PATTERNS = [
    re.compile(r'material', re.IGNORECASE),
    re.compile(r'materia', re.IGNORECASE),
    re.compile(r'project', re.IGNORECASE),
    re.compile(r'projeto', re.IGNORECASE),
    re.compile(r'quantit', re.IGNORECASE),
    re.compile(r'bill\s*of', re.IGNORECASE),
    re.compile(r'boq', re.IGNORECASE),
]

_ENCODINGS_TO_TRY = ['utf-8-sig', 'utf-8', 'cp1252', 'latin-1']
_DELIMITERS = [',', ';', '\t']


class IngestError(ValueError):
    """The file is missing, unsupported, corrupt or has no rows."""


# ═══════════════════════════════════════════════════════
#  Main entry point
# ═══════════════════════════════════════════════════════

def read_rows(filepath: str) -> list[list]:
    """
    Read a spreadsheet and return every row as a list of cell values,
    padded/truncated to the six expected columns. Row 0 is the header.

    Raises IngestError when the file cannot be read.
    """
    if not os.path.isfile(filepath):
        raise IngestError(f"File not found: {os.path.basename(filepath)}")

    ext = _detect_file_type(filepath)
    if ext not in SUPPORTED_EXTENSIONS:
        raise IngestError(f"Unsupported file type: {ext or 'unknown'}")

    try:
        if ext == '.csv':
            df = _read_csv_smart(filepath)
        else:
            df = _read_excel_smart(filepath, ext)
    except IngestError:
        raise
    except Exception as e:
        logger.error(f"File read error: {e}", exc_info=True)
        raise IngestError(f"Could not read file: {str(e)[:200]}") from e

    if df is None or df.empty:
        raise IngestError("File is empty or contains no rows")

    rows = [_fit_row(values) for values in df.itertuples(index=False, name=None)]
    logger.info(f"Ingested {len(rows)} rows ({len(df.columns)} cols) from {os.path.basename(filepath)}")
    return rows


def _fit_row(values) -> list:
    cells = [None if _is_missing(v) else v for v in values]
    if len(cells) < len(COLUMNS):
        cells.extend([None] * (len(COLUMNS) - len(cells)))
    return cells[:len(COLUMNS)]


def _is_missing(value) -> bool:
    try:
        return value is None or bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


# ═══════════════════════════════════════════════════════
#  File Type Detection
# ═══════════════════════════════════════════════════════

def _detect_file_type(filepath: str) -> str:
    """Detect file type from extension, with magic-byte fallback."""
    ext = os.path.splitext(filepath)[1].lower()
    if ext in SUPPORTED_EXTENSIONS:
        return ext

    try:
        with open(filepath, 'rb') as f:
            header = f.read(8)
    except OSError:
        return ext
    if header[:4] == b'PK\x03\x04':
        return '.xlsx'
    if header[:8] == b'\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1':
        return '.xls'
    return ext


# ═══════════════════════════════════════════════════════
#  CSV Reading with Encoding Fallback
# ═══════════════════════════════════════════════════════

def _read_csv_smart(filepath: str) -> pd.DataFrame:
    """Read CSV without header inference, trying encodings in order."""
    last_error = None
    for enc in _ENCODINGS_TO_TRY:
        try:
            sep = _sniff_delimiter(filepath, enc)
            df = pd.read_csv(filepath, encoding=enc, dtype=str, keep_default_na=False,
                             header=None, skip_blank_lines=False, sep=sep,
                             engine='python', on_bad_lines=_trim_extra_cells)
            logger.debug(f"CSV decoded as {enc}")
            return df
        except UnicodeDecodeError as e:
            last_error = e
            continue
        except pd.errors.EmptyDataError:
            raise IngestError("File is empty or contains no rows")
        except (pd.errors.ParserError, csv.Error) as e:
            raise IngestError(f"Malformed CSV: {str(e)[:200]}") from e

    raise IngestError(f"Could not decode CSV: {str(last_error)[:200]}")


def _trim_extra_cells(bad_line: list[str]) -> list[str]:
    """Keep the leading cells of a row that is wider than the header."""
    logger.warning(f"CSV row has {len(bad_line)} cells, keeping the first {len(COLUMNS)}")
    return bad_line[:len(COLUMNS)]


def _sniff_delimiter(filepath: str, encoding: str) -> str:
    """Pick the most frequent of , ; and tab in the first line."""
    with open(filepath, encoding=encoding) as f:
        first_line = f.readline()
    counts = {d: first_line.count(d) for d in _DELIMITERS}
    best = max(_DELIMITERS, key=lambda d: counts[d])
    return best if counts[best] else ','


# ═══════════════════════════════════════════════════════
#  Excel Reading with Smart Sheet Selection
# ═══════════════════════════════════════════════════════

def _read_excel_smart(filepath: str, ext: str) -> pd.DataFrame:
    engine = 'openpyxl' if ext == '.xlsx' else None

    try:
        xls = pd.ExcelFile(filepath, engine=engine)
    except Exception as e:
        raise IngestError(f"Cannot read Excel file: {str(e)[:200]}") from e

    with xls:
        sheet_names = xls.sheet_names
        if not sheet_names:
            raise IngestError("Excel file has no sheets")

        if len(sheet_names) == 1:
            selected = sheet_names[0]
        else:
            selected = _select_best_sheet(xls, sheet_names)
            logger.info(f"Multiple sheets found ({len(sheet_names)}), selected '{selected}'")

        return pd.read_excel(xls, sheet_name=selected, dtype=str,
                             keep_default_na=False, header=None)


def _select_best_sheet(xls: pd.ExcelFile, sheet_names: list[str]) -> str:
    """
    Prefer a non-empty sheet whose name looks like a material list,
    then the non-empty sheet with the most rows, then the first sheet.
    """
    row_counts = {}
    for name in sheet_names:
        try:
            df = pd.read_excel(xls, sheet_name=name, dtype=str, keep_default_na=False,
                               header=None, nrows=300)
            row_counts[name] = len(df)
        except Exception:
            row_counts[name] = 0

    non_empty = [n for n in sheet_names if row_counts.get(n, 0) > 0]
    if not non_empty:
        return sheet_names[0]

    for pattern in MATERIAL_SHEET_PATTERNS:
        for name in non_empty:
            if pattern.search(name):
                return name

    return max(non_empty, key=lambda n: row_counts[n])
