# annonsanalys/__init__.py
from __future__ import annotations
import logging
from datetime import datetime, timezone
from flask import Flask
from flask_cors import CORS

from .config import get_config
from .extensions import init_supabase, init_openai, login_manager
from .routes import register_routes


def create_app(env: str | None = None, *, supabase=None, ai_client=None) -> Flask:
    """
    Build the app. ``supabase`` and ``ai_client`` are created from config
    unless passed in (tests hand in fakes).
    """
    app = Flask(__name__)
    app.config.from_object(get_config(env))

    # CORS & logging
    CORS(app, origins=app.config["CORS_ORIGINS"] or "*")
    logging.basicConfig(level=logging.INFO)

    # Extensions / clients
    app.config["SUPABASE"] = supabase if supabase is not None else init_supabase(app.config)
    app.config["OPENAI_CLIENT"] = ai_client if ai_client is not None else init_openai(app.config)

    # ---------- Flask-Login ----------
    login_manager.init_app(app)

    # ---------- Blueprints ----------
    register_routes(app)

    @app.get("/healthz")
    def health():
        return {"ok": True, "ts": datetime.now(timezone.utc).isoformat()}

    return app
