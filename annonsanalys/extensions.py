import logging
from flask import current_app
from flask_login import LoginManager, UserMixin
from supabase import create_client
from openai import OpenAI

from .services.users import fetch_user_row

# 1) A single LoginManager instance you can init on the app (JSON API: no login_view, 401 instead)
login_manager = LoginManager()


# 2) Small factory to build a Supabase client from config
def init_supabase(config):
    url = config.get("SUPABASE_URL")
    key = config.get("SUPABASE_SERVICE_KEY")
    if not url or not key:
        raise RuntimeError("Missing SUPABASE_URL or SUPABASE_SERVICE_KEY")
    return create_client(url, key)


# 3) Small factory to build an OpenAI client from config
def init_openai(config):
    api_key = config.get("OPENAI_API_KEY")
    if not api_key:
        raise RuntimeError("Missing OPENAI_API_KEY")
    return OpenAI(api_key=api_key)


# 4) Minimal user object Flask-Login can store in the session
class User(UserMixin):
    def __init__(self, auth_id, email=None, role="user", **_):
        self.id = auth_id
        self.email = email
        self.role = (role or "user").lower()

    @property
    def is_admin(self) -> bool:
        admins = current_app.config.get("ANNONSANALYS_ADMINS") or set()
        return self.role in ("admin", "superadmin") or self.id in admins or (self.email or "") in admins


# 5) Bring the user (with role) back on each request
@login_manager.user_loader
def load_user(auth_id: str):
    supabase = current_app.config.get("SUPABASE")
    if not auth_id or supabase is None:
        return None
    try:
        row = fetch_user_row(supabase, auth_id, current_app.config.get("USERS_TABLE", "users"))
    except Exception:
        logging.exception("load_user failed")
        return None
    return User(**row) if row else None
