# backend/routes/vintage_routes.py
from __future__ import annotations

import io
import os

from flask import Blueprint, current_app, jsonify, request, send_file
from werkzeug.datastructures import FileStorage
from werkzeug.exceptions import RequestEntityTooLarge
from werkzeug.utils import secure_filename

from backend.errors import InputValidationError, UnsupportedFileTypeError
from backend.extensions import get_store
from backend.models import filename_for, summary_message
from backend.services.initial_purchase import RealizedColumnRefs
from backend.services.vintage_service import process, store_results

vintage_bp = Blueprint("vintage", __name__, url_prefix="/api")

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
ALLOWED_MIME_TYPES = {XLSX_MIME, "application/vnd.ms-excel"}
ALLOWED_EXTENSIONS = {".xlsx", ".xls", ".xlsm"}


# ---------------------- helpers ----------------------
def _read_upload(f: FileStorage, input_name: str) -> bytes:
    filename = secure_filename(f.filename or "")
    ext = os.path.splitext(filename)[1].lower()
    if f.mimetype not in ALLOWED_MIME_TYPES and ext not in ALLOWED_EXTENSIONS:
        raise UnsupportedFileTypeError(input_name, f.filename or "")

    limit = int(current_app.config.get("MAX_UPLOAD_MB", 10)) * 1024 * 1024
    data = f.read(limit + 1)
    if len(data) > limit:
        raise RequestEntityTooLarge(
            f"{input_name.capitalize()} file exceeds {current_app.config.get('MAX_UPLOAD_MB', 10)}MB"
        )
    return data

def _column_refs() -> RealizedColumnRefs:
    return RealizedColumnRefs.from_mapping(current_app.config.get("REALIZED_COLUMN_REFS"))


# ---------------------- routes ----------------------
@vintage_bp.post("/process-files")
def process_files():
    """
    Form-data:
      - realized: Excel export of realized positions
      - unrealized: Excel export of unrealized positions
    """
    realized = request.files.get("realized")
    unrealized = request.files.get("unrealized")
    if not realized or not unrealized:
        return jsonify(message="Both realized and unrealized Excel files are required"), 400

    try:
        realized_buffer = _read_upload(realized, "realized")
        unrealized_buffer = _read_upload(unrealized, "unrealized")

        results = process(
            realized_buffer,
            unrealized_buffer,
            vintage_key=current_app.config.get("VINTAGE_KEY", "Vintage"),
            symbol_key=current_app.config.get("SYMBOL_KEY", "Symbol"),
            refs=_column_refs(),
        )
        store_results(get_store(current_app), results)
    except InputValidationError as e:
        current_app.logger.warning("Rejected upload: %s", e.message)
        return jsonify(message=e.message, error=type(e).__name__), 400
    except RequestEntityTooLarge as e:
        return jsonify(message=e.description, error="RequestEntityTooLarge"), 413
    except Exception as e:
        current_app.logger.exception("Error processing files")
        return jsonify(message=str(e) or "Failed to process files", error="ProcessingError"), 500

    vintages = [r for r, _ in results]
    return jsonify(
        vintages=[v.to_dict() for v in vintages],
        message=summary_message(vintages),
    )


@vintage_bp.get("/download/<path:vintage_name>")
def download(vintage_name: str):
    try:
        buffer = get_store(current_app).get(vintage_name)
    except Exception as e:
        current_app.logger.exception("Error downloading file")
        return jsonify(message=str(e) or "Failed to download file"), 500

    if buffer is None:
        return jsonify(message=f"Vintage file '{vintage_name}' not found"), 404

    return send_file(
        io.BytesIO(buffer),
        as_attachment=True,
        download_name=filename_for(vintage_name),
        mimetype=XLSX_MIME,
    )


@vintage_bp.delete("/vintages")
def clear_vintages():
    get_store(current_app).clear()
    current_app.logger.info("Vintage store cleared")
    return "", 204
