from flask import Blueprint, request, jsonify, current_app
from ..security.admin import require_admin
from ..services.dashboard import build_dashboard
from ..services.storage import fetch_dashboard_rows

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api")


@dashboard_bp.get("/dashboard")
@require_admin
def dashboard():
    try:
        tokens, analyses = fetch_dashboard_rows(current_app.config["SUPABASE"])
    except Exception:
        current_app.logger.exception("dashboard query failed")
        return jsonify(error="Could not load dashboard data."), 500

    return jsonify(build_dashboard(
        tokens,
        analyses,
        role=request.args.get("role", ""),
        role_a=request.args.get("roleA", ""),
        role_b=request.args.get("roleB", ""),
    ))
