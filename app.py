# app.py
import logging
from typing import Optional

from flask import Flask, jsonify
from werkzeug.exceptions import RequestEntityTooLarge

from backend.cli import init_cli
from backend.config import Config
from backend.extensions import init_extensions
from backend.routes.vintage_routes import vintage_bp
from backend.services.vintage_store import VintageStore


# ---------- helpers ----------
def _configure_logging(app: Flask) -> None:
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    app.logger.setLevel(level)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(RequestEntityTooLarge)
    def too_large(e):
        mb = app.config.get("MAX_UPLOAD_MB", 10)
        return jsonify(message=f"Upload too large (limit {mb}MB per file)", error="RequestEntityTooLarge"), 413


# ---------- app factory ----------
def create_app(test_config: Optional[dict] = None, store: Optional[VintageStore] = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)
        if "MAX_UPLOAD_MB" in test_config and "MAX_CONTENT_LENGTH" not in test_config:
            app.config["MAX_CONTENT_LENGTH"] = (2 * int(test_config["MAX_UPLOAD_MB"]) + 1) * 1024 * 1024

    _configure_logging(app)
    init_extensions(app, store=store)
    _register_error_handlers(app)
    init_cli(app)

    # Health check
    @app.get("/health")
    def health():
        return jsonify(status="ok")

    app.register_blueprint(vintage_bp)

    app.logger.info("Vintage splitter ready (max upload %sMB per file)", app.config.get("MAX_UPLOAD_MB"))
    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host="localhost", port=5001, debug=True)
