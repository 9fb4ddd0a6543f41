from typing import Optional, Dict, Any
from flask_login import current_user


def fetch_user_row(supabase, auth_id: str, table: str = "users") -> Optional[Dict[str, Any]]:
    r = supabase.table(table).select("auth_id,email,role").eq("auth_id", auth_id).limit(1).execute()
    return (getattr(r, "data", None) or [None])[0]


def get_or_bootstrap_user(supabase_admin, auth_id: Optional[str], email: Optional[str], table: str = "users") -> Dict[str, Any]:
    """
    Ensure a users row exists for this auth_id. Returns a dict with at least 'auth_id' and 'role'.
    """
    if not auth_id:
        return {"auth_id": None, "role": "guest"}
    try:
        row = fetch_user_row(supabase_admin, auth_id, table)
        if not row:
            row = {"auth_id": auth_id, "email": email, "role": "user"}
            supabase_admin.table(table).insert(row).execute()
        row["role"] = (row.get("role") or "user").lower()
        return row
    except Exception:
        # Fail-safe: a profile hiccup must not block sign-in
        return {"auth_id": auth_id, "email": email, "role": "user"}


def current_user_id(payload: Optional[Dict[str, Any]] = None) -> Optional[str]:
    """Session user if signed in, else the opaque userId the caller sent (or None)."""
    if getattr(current_user, "is_authenticated", False):
        return current_user.id
    uid = (payload or {}).get("userId")
    return (uid.strip() or None) if isinstance(uid, str) else None
