import io
from datetime import datetime

from openpyxl import load_workbook

from backend.models import VintagePartition
from backend.services.initial_purchase import derive
from backend.services.workbook_builder import header_for, synthesize


def _load(buffer: bytes):
    return load_workbook(io.BytesIO(buffer))


def test_three_sheets_in_fixed_order() -> None:
    part = VintagePartition(
        "CQ1",
        realized_rows=[{"Date": datetime(2023, 1, 5), "Symbol": "AAPL", "Action": "BUY", "Vintage": "CQ1"}],
        unrealized_rows=[{"Vintage": "CQ1", "Symbol": "AAPL", "Quantity": 5}],
    )
    wb = _load(synthesize(part, derive(part.realized_rows)))

    assert wb.sheetnames == ["Realized", "Unrealized", "Initial Purchase"]

    realized = wb["Realized"]
    assert [c.value for c in realized[1]] == ["Date", "Symbol", "Action", "Vintage"]
    assert realized["A2"].value == datetime(2023, 1, 5)
    assert realized["B2"].value == "AAPL"

    unrealized = wb["Unrealized"]
    assert [c.value for c in unrealized[2]] == ["CQ1", "AAPL", 5]


def test_initial_purchase_sheet_holds_formulas() -> None:
    part = VintagePartition("CQ1", realized_rows=[{"Symbol": "MSFT"}, {"Symbol": "AAPL"}])
    aggs = derive(part.realized_rows)
    ws = _load(synthesize(part, aggs))["Initial Purchase"]

    assert [c.value for c in ws[1]] == ["Symbol", "First Purchase Date", "Initial Amount"]
    assert ws["A2"].value == "AAPL"
    assert ws["A3"].value == "MSFT"
    assert ws["B2"].data_type == "f"
    assert ws["B2"].value == aggs[0].first_purchase_date_formula
    assert ws["C3"].value == aggs[1].initial_amount_formula
    assert ws["B2"].number_format == "yyyy-mm-dd"


def test_empty_row_sets_do_not_raise() -> None:
    part = VintagePartition("CQ9", realized_rows=[], unrealized_rows=[{"Vintage": "CQ9"}])
    wb = _load(synthesize(part, derive(part.realized_rows)))

    assert wb["Realized"].max_row == 1
    assert wb["Realized"]["A1"].value is None
    ip = wb["Initial Purchase"]
    assert ip.max_row == 1
    assert ip["A1"].value == "Symbol"


def test_header_is_union_of_keys() -> None:
    rows = [{"a": 1, "b": 2}, {"a": 3, "c": 4}]
    assert header_for(rows) == ["a", "b", "c"]

    ws = _load(synthesize(VintagePartition("X", realized_rows=rows), []))["Realized"]
    assert [c.value for c in ws[3]] == [3, None, 4]


def test_equals_prefixed_text_is_not_a_formula() -> None:
    part = VintagePartition("X", realized_rows=[{"Note": "=1+1", "Bad": "a\x07b"}])
    ws = _load(synthesize(part, []))["Realized"]

    assert ws["A2"].data_type == "s"
    assert ws["A2"].value == "=1+1"
    assert ws["B2"].value == "ab"


def test_realized_symbols_are_written_trimmed() -> None:
    part = VintagePartition(
        "X",
        realized_rows=[{"Symbol": " MSFT ", "Action": "BUY", "Note": " keep "}],
    )
    aggs = derive(part.realized_rows)
    wb = _load(synthesize(part, aggs))

    assert wb["Realized"]["A2"].value == "MSFT"
    assert wb["Realized"]["C2"].value == " keep "
    assert wb["Initial Purchase"]["A2"].value == "MSFT"
    assert part.realized_rows[0]["Symbol"] == " MSFT "
