# backend/services/row_extractor.py
from __future__ import annotations

import io
import logging
import math
import zipfile
from datetime import datetime
from typing import Any, List, Optional

import pandas as pd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from backend.errors import NoSheetError, UnreadableWorkbookError
from backend.models import CellValue, Row, Table

logger = logging.getLogger(__name__)

_ZIP_MAGIC = b"PK\x03\x04"                          # .xlsx / .xlsm
_OLE_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"    # legacy .xls


# ---------------------- cell helpers ----------------------
def _is_blank(v: Any) -> bool:
    if v is None:
        return True
    if isinstance(v, str):
        return v.strip() == ""
    if isinstance(v, float) and math.isnan(v):
        return True
    return False

def _from_pandas(v: Any) -> CellValue:
    if v is None or v is pd.NaT:
        return None
    if isinstance(v, pd.Timestamp):
        return v.to_pydatetime()
    if isinstance(v, float) and math.isnan(v):
        return None
    if hasattr(v, "item") and not isinstance(v, (str, bytes, datetime)):
        # numpy scalars -> python scalars
        return v.item()
    return v


# ---------------------- first-sheet readers ----------------------
def _values_from_openpyxl(buffer: bytes, input_name: str) -> List[List[Any]]:
    try:
        wb = load_workbook(io.BytesIO(buffer), data_only=True, read_only=True)
    except (zipfile.BadZipFile, InvalidFileException, KeyError, OSError) as e:
        raise UnreadableWorkbookError(input_name, str(e)) from e
    try:
        if not wb.sheetnames:
            raise NoSheetError(input_name)
        ws = wb[wb.sheetnames[0]]
        return [list(r) for r in ws.iter_rows(values_only=True)]
    finally:
        try: wb.close()
        except Exception: pass

def _values_from_legacy_xls(buffer: bytes, input_name: str) -> List[List[Any]]:
    try:
        frames = pd.read_excel(
            io.BytesIO(buffer), sheet_name=None, header=None, dtype=object, engine="xlrd"
        )
    except ImportError:
        raise
    except Exception as e:
        raise UnreadableWorkbookError(input_name, str(e)) from e
    if not frames:
        raise NoSheetError(input_name)
    first = next(iter(frames.values()))
    return [[_from_pandas(v) for v in row] for row in first.itertuples(index=False, name=None)]

def read_first_sheet_values(buffer: bytes, input_name: str) -> List[List[Any]]:
    """Raw cell grid of the first worksheet. Format is detected from content, not filename."""
    head = bytes(buffer[:8])
    if head.startswith(_ZIP_MAGIC):
        return _values_from_openpyxl(buffer, input_name)
    if head == _OLE_MAGIC:
        return _values_from_legacy_xls(buffer, input_name)
    raise UnreadableWorkbookError(input_name, "unrecognised file signature")


# ---------------------- grid -> table ----------------------
def _header_names(header: List[Any], keep: List[int]) -> List[str]:
    raw = [
        f"Column{j + 1}" if _is_blank(header[j] if j < len(header) else None) else str(header[j])
        for j in keep
    ]
    # generated suffixes never reuse a name that appears in the header itself
    reserved = set(raw)
    used: set[str] = set()
    counters: dict[str, int] = {}
    names: List[str] = []
    for name in raw:
        if name in used:
            n = counters.get(name, 0) + 1
            while f"{name}_{n}" in used or f"{name}_{n}" in reserved:
                n += 1
            counters[name] = n
            name = f"{name}_{n}"
        used.add(name)
        names.append(name)
    return names

def table_from_values(values: List[List[Any]]) -> Table:
    """
    First non-blank row is the header; every following row becomes a mapping
    over all header columns (empty cells -> None). Fully blank rows are dropped.
    """
    start: Optional[int] = None
    for i, row in enumerate(values):
        if any(not _is_blank(c) for c in row):
            start = i
            break
    if start is None:
        return []

    header = values[start]
    body = [r for r in values[start + 1:] if any(not _is_blank(c) for c in r)]
    width = max([len(header)] + [len(r) for r in body])

    # drop trailing/phantom columns that have neither a header nor any data
    keep = [
        j for j in range(width)
        if (j < len(header) and not _is_blank(header[j]))
        or any(j < len(r) and not _is_blank(r[j]) for r in body)
    ]
    names = _header_names(header, keep)

    table: Table = []
    for r in body:
        row: Row = {}
        for name, j in zip(names, keep):
            v = r[j] if j < len(r) else None
            row[name] = None if _is_blank(v) and not isinstance(v, str) else v
        table.append(row)
    return table

def extract(buffer: bytes, input_name: str) -> Table:
    """Read the first sheet of ``buffer`` into a Table. ``input_name`` is 'realized' or 'unrealized'."""
    values = read_first_sheet_values(buffer, input_name)
    table = table_from_values(values)
    logger.debug("extracted %d rows from %s workbook", len(table), input_name)
    return table
