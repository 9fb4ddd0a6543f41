from __future__ import annotations
from flask import Flask


def register_routes(app: Flask) -> None:
    from .compare import compare_bp
    from .analyses import analyses_bp
    from .dashboard import dashboard_bp
    from .auth_session import auth_session_bp

    app.register_blueprint(compare_bp)
    app.register_blueprint(analyses_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(auth_session_bp)
