# backend/services/vintage_service.py
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from backend.models import VintagePartition, VintageResult
from backend.services import row_extractor
from backend.services.initial_purchase import DEFAULT_SYMBOL_KEY, RealizedColumnRefs, derive
from backend.services.vintage_partitioner import DEFAULT_VINTAGE_KEY, partition
from backend.services.vintage_store import VintageStore
from backend.services.workbook_builder import synthesize

logger = logging.getLogger(__name__)


def split_portfolios(
    realized_buffer: bytes,
    unrealized_buffer: bytes,
    vintage_key: str = DEFAULT_VINTAGE_KEY,
) -> List[VintagePartition]:
    realized = row_extractor.extract(realized_buffer, "realized")
    unrealized = row_extractor.extract(unrealized_buffer, "unrealized")
    return partition(realized, unrealized, key=vintage_key)


def process(
    realized_buffer: bytes,
    unrealized_buffer: bytes,
    vintage_key: str = DEFAULT_VINTAGE_KEY,
    symbol_key: str = DEFAULT_SYMBOL_KEY,
    refs: Optional[RealizedColumnRefs] = None,
) -> List[Tuple[VintageResult, bytes]]:
    """
    Extract -> partition -> (per vintage) derive + synthesize.

    All-or-nothing: any failure aborts the whole batch and nothing is returned.
    """
    partitions = split_portfolios(realized_buffer, unrealized_buffer, vintage_key)
    logger.info("Found %d vintages: %s", len(partitions), ", ".join(p.vintage_name for p in partitions))

    out: List[Tuple[VintageResult, bytes]] = []
    for part in partitions:
        aggregates = derive(part.realized_rows, refs=refs, symbol_key=symbol_key)
        buffer = synthesize(part, aggregates, symbol_key=symbol_key)
        result = VintageResult.for_partition(part, buffer)
        logger.info(
            "Vintage %s: %d realized, %d unrealized, %d symbols, %d bytes",
            part.vintage_name, result.realized_row_count, result.unrealized_row_count,
            len(aggregates), result.file_size,
        )
        out.append((result, buffer))
    return out


def store_results(store: VintageStore, results: List[Tuple[VintageResult, bytes]]) -> None:
    """Hand every generated workbook to the keyed store. Keys are vintage names."""
    for result, buffer in results:
        store.put(result.vintage_name, buffer)
