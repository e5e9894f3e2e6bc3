# backend/services/vintage_partitioner.py
from __future__ import annotations

from typing import List, Optional, Set

from backend.errors import MissingVintageColumnError
from backend.models import Row, Table, VintagePartition

DEFAULT_VINTAGE_KEY = "Vintage"


def _key_spellings(key: str) -> tuple[str, ...]:
    # Only the configured spelling and its lower-case form; no other casings.
    lower = key.lower()
    return (key,) if lower == key else (key, lower)

def vintage_of(row: Row, key: str = DEFAULT_VINTAGE_KEY) -> Optional[str]:
    """Trimmed vintage label of a row, or None when absent/empty."""
    for k in _key_spellings(key):
        v = row.get(k)
        if v is None:
            continue
        s = str(v).strip()
        if s:
            return s
    return None

def collect_vintages(table: Table, key: str = DEFAULT_VINTAGE_KEY) -> Set[str]:
    out: Set[str] = set()
    for row in table:
        v = vintage_of(row, key)
        if v:
            out.add(v)
    return out

def rows_for_vintage(table: Table, vintage_name: str, key: str = DEFAULT_VINTAGE_KEY) -> Table:
    return [row for row in table if vintage_of(row, key) == vintage_name]


def partition(
    realized: Table,
    unrealized: Table,
    key: str = DEFAULT_VINTAGE_KEY,
) -> List[VintagePartition]:
    """
    Split both tables by vintage.

    Partitions come back in plain lexicographic order of the vintage label
    ("CQ10" sorts before "CQ2"). Downstream consumers depend on this exact
    ordering, so it is kept as-is.
    """
    realized_vintages = collect_vintages(realized, key)
    unrealized_vintages = collect_vintages(unrealized, key)

    if not realized_vintages:
        raise MissingVintageColumnError("realized", key)
    if not unrealized_vintages:
        raise MissingVintageColumnError("unrealized", key)

    return [
        VintagePartition(
            vintage_name=name,
            realized_rows=rows_for_vintage(realized, name, key),
            unrealized_rows=rows_for_vintage(unrealized, name, key),
        )
        for name in sorted(realized_vintages | unrealized_vintages)
    ]
