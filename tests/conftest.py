from __future__ import annotations

import io
from datetime import datetime

import pytest
from openpyxl import Workbook

from app import create_app
from backend.services.vintage_store import MemoryVintageStore


def make_xlsx(rows: list[list]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Sheet1"
    for row in rows:
        ws.append(row)
    mem = io.BytesIO()
    wb.save(mem)
    return mem.getvalue()


REALIZED_HEADER = ["Date", "Symbol", "Action", "Vintage", "Quantity", "Price", "Amount"]
UNREALIZED_HEADER = ["Vintage", "Symbol", "Quantity", "Market Value"]


@pytest.fixture
def realized_xlsx() -> bytes:
    return make_xlsx([
        REALIZED_HEADER,
        [datetime(2023, 1, 5), "AAPL", "BUY", "CQ1", 10, 150.0, 1500.0],
        [datetime(2023, 2, 1), "GOOGL", "BUY", "CQ2", 5, 100.0, 500.0],
        [datetime(2023, 3, 9), "AAPL", "SELL", "CQ1", 10, 170.0, 1700.0],
        [None, None, None, None, None, None, None],
        [datetime(2023, 4, 1), "MSFT", "BUY", None, 1, 300.0, 300.0],
    ])


@pytest.fixture
def unrealized_xlsx() -> bytes:
    return make_xlsx([
        UNREALIZED_HEADER,
        ["CQ1", "AAPL", 5, 900.0],
        ["CQ3", "TSLA", 2, 400.0],
    ])


@pytest.fixture
def store() -> MemoryVintageStore:
    return MemoryVintageStore()


@pytest.fixture
def app(store):
    return create_app({"TESTING": True, "MAX_UPLOAD_MB": 1}, store=store)


@pytest.fixture
def client(app):
    return app.test_client()
