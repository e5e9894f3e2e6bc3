import io

from openpyxl import load_workbook

from conftest import make_xlsx


def _upload(client, realized: bytes, unrealized: bytes, realized_name="realized.xlsx", unrealized_name="unrealized.xlsx"):
    return client.post(
        "/api/process-files",
        data={
            "realized": (io.BytesIO(realized), realized_name),
            "unrealized": (io.BytesIO(unrealized), unrealized_name),
        },
        content_type="multipart/form-data",
    )


def test_health(client) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok"}


def test_process_files_returns_results_and_stores_workbooks(client, store, realized_xlsx, unrealized_xlsx) -> None:
    resp = _upload(client, realized_xlsx, unrealized_xlsx)

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["message"] == "Successfully processed 3 Vintages: CQ1, CQ2, CQ3"
    assert [v["vintageName"] for v in body["vintages"]] == ["CQ1", "CQ2", "CQ3"]
    first = body["vintages"][0]
    assert first["filename"] == "CQ1_Portfolio.xlsx"
    assert first["realizedRowCount"] == 2
    assert first["unrealizedRowCount"] == 1
    assert first["fileSize"] == len(store.get("CQ1"))
    assert store.keys() == ["CQ1", "CQ2", "CQ3"]


def test_process_files_requires_both_uploads(client, realized_xlsx) -> None:
    resp = client.post(
        "/api/process-files",
        data={"realized": (io.BytesIO(realized_xlsx), "realized.xlsx")},
        content_type="multipart/form-data",
    )
    assert resp.status_code == 400
    assert "Both realized and unrealized" in resp.get_json()["message"]


def test_process_files_rejects_non_excel(client, store, realized_xlsx) -> None:
    resp = _upload(client, realized_xlsx, b"a,b\n1,2\n", unrealized_name="positions.txt")
    assert resp.status_code == 400
    assert "Only Excel files are allowed" in resp.get_json()["message"]
    assert resp.get_json()["error"] == "UnsupportedFileTypeError"
    assert len(store) == 0


def test_process_files_missing_vintage_is_client_error(client, store, unrealized_xlsx) -> None:
    realized = make_xlsx([["Symbol", "Action"], ["AAPL", "BUY"]])
    resp = _upload(client, realized, unrealized_xlsx)
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Realized Excel file does not contain a 'Vintage' column"
    assert resp.get_json()["error"] == "MissingVintageColumnError"
    assert len(store) == 0


def test_process_files_corrupt_workbook_is_client_error(client, realized_xlsx) -> None:
    resp = _upload(client, realized_xlsx, b"PK\x03\x04garbage")
    assert resp.status_code == 400
    assert resp.get_json()["message"].startswith("Unrealized file is not a readable Excel workbook")
    assert resp.get_json()["error"] == "UnreadableWorkbookError"


def test_process_files_unexpected_failure_is_server_error(client, monkeypatch, realized_xlsx, unrealized_xlsx) -> None:
    from backend.routes import vintage_routes

    def boom(*args, **kwargs):
        raise RuntimeError("synthesis exploded")

    monkeypatch.setattr(vintage_routes, "process", boom)
    resp = _upload(client, realized_xlsx, unrealized_xlsx)
    assert resp.status_code == 500
    assert resp.get_json()["message"] == "synthesis exploded"
    assert resp.get_json()["error"] == "ProcessingError"


def test_process_files_rejects_oversized_upload(client, unrealized_xlsx) -> None:
    too_big = b"PK\x03\x04" + b"0" * (1024 * 1024 + 10)
    resp = _upload(client, too_big, unrealized_xlsx)
    assert resp.status_code == 413
    assert "exceeds 1MB" in resp.get_json()["message"]


def test_download_returns_stored_workbook(client, realized_xlsx, unrealized_xlsx) -> None:
    _upload(client, realized_xlsx, unrealized_xlsx)

    resp = client.get("/api/download/CQ2")
    assert resp.status_code == 200
    assert resp.mimetype == "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    assert "attachment" in resp.headers["Content-Disposition"]
    assert "CQ2_Portfolio.xlsx" in resp.headers["Content-Disposition"]

    wb = load_workbook(io.BytesIO(resp.data))
    assert wb.sheetnames == ["Realized", "Unrealized", "Initial Purchase"]
    assert wb["Realized"]["B2"].value == "GOOGL"


def test_download_unknown_vintage_is_404(client) -> None:
    resp = client.get("/api/download/CQ42")
    assert resp.status_code == 404
    assert resp.get_json()["message"] == "Vintage file 'CQ42' not found"


def test_clear_vintages(client, store, realized_xlsx, unrealized_xlsx) -> None:
    _upload(client, realized_xlsx, unrealized_xlsx)
    assert len(store) == 3

    resp = client.delete("/api/vintages")
    assert resp.status_code == 204
    assert len(store) == 0
    assert client.get("/api/download/CQ1").status_code == 404
