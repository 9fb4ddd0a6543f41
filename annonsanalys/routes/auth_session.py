from __future__ import annotations
from flask import Blueprint, request, jsonify, current_app
from flask_login import login_user, logout_user

from ..extensions import User
from ..services.users import get_or_bootstrap_user

auth_session_bp = Blueprint("auth_session", __name__)


@auth_session_bp.post("/api/session/login")
def api_session_login():
    supabase = current_app.config["SUPABASE"]
    data = request.get_json(silent=True) or {}
    token = (data.get("access_token") or "").strip()
    if not token:
        return jsonify(error="Missing access_token"), 400

    try:
        # Validate token & get user from Supabase
        res = supabase.auth.get_user(token)
        user = getattr(res, "user", None) or {}
        auth_id = getattr(user, "id", None) or (user.get("id") if isinstance(user, dict) else None)
        email = getattr(user, "email", None) or (user.get("email") if isinstance(user, dict) else None)
    except Exception:
        current_app.logger.exception("session login failed")
        return jsonify(error="Invalid token"), 401
    if not auth_id:
        return jsonify(error="Invalid token"), 401

    row = get_or_bootstrap_user(supabase, auth_id, email, current_app.config.get("USERS_TABLE", "users"))
    login_user(User(**row))
    return jsonify(ok=True, auth_id=auth_id, role=row.get("role", "user"))


@auth_session_bp.post("/api/session/logout")
def api_session_logout():
    logout_user()
    return jsonify(ok=True)
