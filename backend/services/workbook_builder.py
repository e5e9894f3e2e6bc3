# backend/services/workbook_builder.py
from __future__ import annotations

import io
from typing import List, Sequence

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Font
from openpyxl.worksheet.worksheet import Worksheet

from backend.models import SymbolAggregateRow, Table, VintagePartition
from backend.services import initial_purchase

REALIZED_TITLE = "Realized"
UNREALIZED_TITLE = "Unrealized"
SHEET_ORDER = (REALIZED_TITLE, UNREALIZED_TITLE, initial_purchase.SHEET_TITLE)
DATE_FORMAT = "yyyy-mm-dd"


def header_for(rows: Table) -> List[str]:
    """Union of row keys in order of first appearance."""
    seen: dict[str, None] = {}
    for row in rows:
        for k in row:
            seen.setdefault(k, None)
    return list(seen)

def _text_cell(ws: Worksheet, r: int, c: int, value):
    if isinstance(value, str):
        value = ILLEGAL_CHARACTERS_RE.sub("", value)
    cell = ws.cell(row=r, column=c, value=value)
    if isinstance(value, str) and value.startswith("="):
        # pass-through data, never a formula
        cell.data_type = "s"
    return cell

def _write_header(ws: Worksheet, names: Sequence[str]) -> None:
    bold = Font(bold=True)
    for c, name in enumerate(names, start=1):
        _text_cell(ws, 1, c, name).font = bold

def write_table(ws: Worksheet, rows: Table) -> None:
    """Header plus one row per mapping; an empty table leaves the sheet blank."""
    if not rows:
        return
    header = header_for(rows)
    _write_header(ws, header)
    for r, row in enumerate(rows, start=2):
        for c, name in enumerate(header, start=1):
            _text_cell(ws, r, c, row.get(name))

def trimmed_symbols(rows: Table, symbol_key: str = initial_purchase.DEFAULT_SYMBOL_KEY) -> Table:
    """Copies of ``rows`` with the symbol cell stripped so it matches the Initial Purchase criteria."""
    out: Table = []
    for row in rows:
        v = row.get(symbol_key)
        if isinstance(v, str) and v != v.strip():
            row = {**row, symbol_key: v.strip()}
        out.append(row)
    return out

def write_initial_purchase(ws: Worksheet, aggregates: Sequence[SymbolAggregateRow]) -> None:
    _write_header(ws, initial_purchase.HEADER)
    for r, agg in enumerate(aggregates, start=initial_purchase.FIRST_DATA_ROW):
        symbol, first_date, amount = agg.as_cells()
        _text_cell(ws, r, 1, symbol)
        ws.cell(row=r, column=2, value=first_date).number_format = DATE_FORMAT
        ws.cell(row=r, column=3, value=amount)
    ws.column_dimensions["A"].width = 14
    ws.column_dimensions["B"].width = 20
    ws.column_dimensions["C"].width = 16


def build_workbook(
    partition: VintagePartition,
    aggregates: Sequence[SymbolAggregateRow],
    symbol_key: str = initial_purchase.DEFAULT_SYMBOL_KEY,
) -> Workbook:
    writers = {
        REALIZED_TITLE: lambda ws: write_table(ws, trimmed_symbols(partition.realized_rows, symbol_key)),
        UNREALIZED_TITLE: lambda ws: write_table(ws, partition.unrealized_rows),
        initial_purchase.SHEET_TITLE: lambda ws: write_initial_purchase(ws, aggregates),
    }
    wb = Workbook()
    wb.remove(wb.active)
    for title in SHEET_ORDER:
        writers[title](wb.create_sheet(title))
    return wb

def synthesize(
    partition: VintagePartition,
    aggregates: Sequence[SymbolAggregateRow],
    symbol_key: str = initial_purchase.DEFAULT_SYMBOL_KEY,
) -> bytes:
    """Serialize the three-sheet workbook for one vintage to .xlsx bytes."""
    wb = build_workbook(partition, aggregates, symbol_key)
    mem = io.BytesIO()
    wb.save(mem)
    return mem.getvalue()
