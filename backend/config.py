# backend/config.py
import json
import os

from dotenv import load_dotenv

load_dotenv()


def _to_bool(env_name: str, default: str = "false") -> bool:
    return (os.getenv(env_name, default) or "").strip().lower() in ("1", "true", "yes", "y")


def _json_env(env_name: str) -> dict:
    raw = (os.getenv(env_name) or "").strip()
    if not raw:
        return {}
    return json.loads(raw)


class Config:
    DEBUG = _to_bool("FLASK_DEBUG")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Upload limits (per file); the request may carry two files plus form overhead
    MAX_UPLOAD_MB = int(os.getenv("MAX_UPLOAD_MB", "10"))
    MAX_CONTENT_LENGTH = (2 * MAX_UPLOAD_MB + 1) * 1024 * 1024

    VINTAGE_KEY = os.getenv("VINTAGE_KEY", "Vintage")
    SYMBOL_KEY = os.getenv("SYMBOL_KEY", "Symbol")

    # e.g. {"date": "A", "symbol": "B", "action": "C", "amount": "G"}
    REALIZED_COLUMN_REFS = _json_env("REALIZED_COLUMN_REFS")

    CORS_ALLOWED_ORIGINS = [
        o.strip() for o in os.getenv("CORS_ALLOWED_ORIGINS", "*").split(",") if o.strip()
    ]
