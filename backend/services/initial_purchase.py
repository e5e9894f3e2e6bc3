# backend/services/initial_purchase.py
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Dict, List, Optional

from openpyxl.utils.cell import column_index_from_string

from backend.models import SymbolAggregateRow, Table

SHEET_TITLE = "Initial Purchase"
HEADER = ["Symbol", "First Purchase Date", "Initial Amount"]
FIRST_DATA_ROW = 2
SOURCE_SHEET = "Realized"
BUY_ACTION = "BUY"
DEFAULT_SYMBOL_KEY = "Symbol"


# ---------------------- Realized sheet column contract ----------------------
@dataclass(frozen=True)
class RealizedColumnRefs:
    """
    Column letters of the Realized sheet the formulas point at. This is the
    only place the layout is encoded; reordering the Realized export means
    updating these letters.
    """

    symbol: str = "B"
    action: str = "C"
    date: str = "A"
    amount: str = "G"

    def __post_init__(self):
        for f in fields(self):
            letter = str(getattr(self, f.name)).strip().upper()
            column_index_from_string(letter)  # raises ValueError on junk
            object.__setattr__(self, f.name, letter)

    @classmethod
    def from_mapping(cls, overrides: Optional[Dict[str, str]]) -> "RealizedColumnRefs":
        base = cls()
        if not overrides:
            return base
        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown Realized column refs: {', '.join(sorted(unknown))}")
        return replace(base, **overrides)

    def col(self, name: str) -> str:
        letter = getattr(self, name)
        return f"{SOURCE_SHEET}!${letter}:${letter}"


# ---------------------- formula templates ----------------------
# MINIFS is a post-2007 function and must be stored with the _xlfn. prefix.
_FIRST_DATE = '=_xlfn.MINIFS({date},{symbol},$A{row},{action},"{buy}")'
_INITIAL_AMOUNT = '=SUMIFS({amount},{symbol},$A{row},{action},"{buy}",{date},$B{row})'


def first_purchase_date_formula(row: int, refs: RealizedColumnRefs) -> str:
    return _FIRST_DATE.format(
        date=refs.col("date"), symbol=refs.col("symbol"), action=refs.col("action"),
        row=row, buy=BUY_ACTION,
    )

def initial_amount_formula(row: int, refs: RealizedColumnRefs) -> str:
    return _INITIAL_AMOUNT.format(
        amount=refs.col("amount"), symbol=refs.col("symbol"), action=refs.col("action"),
        date=refs.col("date"), row=row, buy=BUY_ACTION,
    )


def unique_symbols(realized_rows: Table, symbol_key: str = DEFAULT_SYMBOL_KEY) -> List[str]:
    out = set()
    for row in realized_rows:
        v = row.get(symbol_key)
        if v is None:
            continue
        s = str(v).strip()
        if s:
            out.add(s)
    return sorted(out)

def derive(
    realized_rows: Table,
    refs: Optional[RealizedColumnRefs] = None,
    symbol_key: str = DEFAULT_SYMBOL_KEY,
) -> List[SymbolAggregateRow]:
    """
    One row per distinct symbol (ascending) holding unevaluated formulas for
    the earliest BUY date and the amount bought on that date. Formulas span
    whole columns so they stay correct if the Realized sheet is edited later.
    """
    refs = refs or RealizedColumnRefs()
    return [
        SymbolAggregateRow(
            symbol=symbol,
            first_purchase_date_formula=first_purchase_date_formula(row, refs),
            initial_amount_formula=initial_amount_formula(row, refs),
        )
        for row, symbol in enumerate(unique_symbols(realized_rows, symbol_key), start=FIRST_DATA_ROW)
    ]
