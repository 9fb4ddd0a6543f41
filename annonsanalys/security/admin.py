# annonsanalys/security/admin.py
from __future__ import annotations
from functools import wraps
from flask import abort
from flask_login import login_required, current_user


def require_admin(fn):
    """
    Use on admin routes: @require_admin
    - 401 for anonymous callers (via login_required)
    - 403 unless the user has an admin role or is listed in ANNONSANALYS_ADMINS
    """
    @wraps(fn)
    @login_required
    def _wrapped(*args, **kwargs):
        if not getattr(current_user, "is_admin", False):
            abort(403)
        return fn(*args, **kwargs)
    return _wrapped
