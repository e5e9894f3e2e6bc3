from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Dict, List, Union

# A cell is a string, a number, a date/time, or empty (None).
CellValue = Union[str, int, float, bool, datetime, date, time, None]

# Ordered column-name -> cell mapping. Insertion order is the column order.
Row = Dict[str, CellValue]
Table = List[Row]


def filename_for(vintage_name: str) -> str:
    return f"{vintage_name}_Portfolio.xlsx"


# ------------------ Vintage Partition ------------------
@dataclass(frozen=True)
class VintagePartition:
    vintage_name: str
    realized_rows: Table = field(default_factory=list)
    unrealized_rows: Table = field(default_factory=list)

    def __repr__(self):
        return (
            f"<VintagePartition {self.vintage_name} "
            f"realized={len(self.realized_rows)} unrealized={len(self.unrealized_rows)}>"
        )


# ------------------ Initial Purchase row ------------------
@dataclass(frozen=True)
class SymbolAggregateRow:
    """One row of the Initial Purchase sheet. Formulas are stored unevaluated."""

    symbol: str
    first_purchase_date_formula: str
    initial_amount_formula: str

    def as_cells(self) -> list:
        return [self.symbol, self.first_purchase_date_formula, self.initial_amount_formula]


# ------------------ Vintage Result ------------------
@dataclass(frozen=True)
class VintageResult:
    vintage_name: str
    filename: str
    realized_row_count: int
    unrealized_row_count: int
    file_size: int

    @classmethod
    def for_partition(cls, partition: VintagePartition, buffer: bytes) -> "VintageResult":
        return cls(
            vintage_name=partition.vintage_name,
            filename=filename_for(partition.vintage_name),
            realized_row_count=len(partition.realized_rows),
            unrealized_row_count=len(partition.unrealized_rows),
            file_size=len(buffer),
        )

    def to_dict(self):
        return {
            "vintageName": self.vintage_name,
            "filename": self.filename,
            "realizedRowCount": self.realized_row_count,
            "unrealizedRowCount": self.unrealized_row_count,
            "fileSize": self.file_size,
        }


def summary_message(results: List[VintageResult]) -> str:
    """Human readable summary listing vintages in emission order."""
    noun = "Vintage" if len(results) == 1 else "Vintages"
    names = ", ".join(r.vintage_name for r in results)
    return f"Successfully processed {len(results)} {noun}: {names}"
