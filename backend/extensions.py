# extensions.py
from __future__ import annotations

from flask import Flask
from flask_cors import CORS

from backend.services.vintage_store import MemoryVintageStore, VintageStore

STORE_KEY = "vintage_store"


def init_extensions(app: Flask, store: VintageStore | None = None):
    CORS(
        app,
        resources={r"/api/*": {"origins": app.config.get("CORS_ALLOWED_ORIGINS") or "*"}},
        expose_headers=["Content-Disposition"],
    )
    # one store per app; created empty at startup
    app.extensions[STORE_KEY] = store if store is not None else MemoryVintageStore()


def get_store(app: Flask) -> VintageStore:
    return app.extensions[STORE_KEY]
