# annonsanalys/services/storage.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from flask import current_app

from ..schemas import AnalysisResult

logger = logging.getLogger(__name__)

ANALYSIS_COLUMNS = "id,created_at,user_id,recommended_ad_id,recommended_label,raw_ads,result"
TOKEN_COLUMNS = "id,analysis_id,ad_id,source_block,section_id,token_type,token_text,created_at"


def _table(key: str, default: str) -> str:
    try:
        return current_app.config.get(key) or default
    except RuntimeError:
        # outside an app context (scripts)
        return default


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _rows(resp) -> List[Dict[str, Any]]:
    data = getattr(resp, "data", None)
    return data if isinstance(data, list) else []


# ---------- Writes (failures are logged, never raised) ----------
def save_analysis(db, raw_ads: Sequence[str], result: AnalysisResult, user_id: Optional[str],
                  prompt_version: Optional[str] = None) -> Optional[str]:
    """Insert the analysis row and return its id, or None if the write failed."""
    rec = result.ad_by_id(result.comparison.recommendation_ad_id)
    row = {
        "raw_ads": list(raw_ads),
        "result": result.to_json(),
        "user_id": user_id,
        "recommended_ad_id": result.comparison.recommendation_ad_id,
        "recommended_label": (rec.label if rec else None) or result.comparison.recommendation_label,
        "prompt_version": prompt_version,
        "created_at": _now(),
    }
    try:
        resp = db.table(_table("ANALYSES_TABLE", "ad_rawdata")).insert(row).execute()
        rows = _rows(resp)
        return rows[0].get("id") if rows else None
    except Exception:
        logger.exception("could not save analysis")
        return None


def save_tokens(db, analysis_id: str, records: List[dict]) -> bool:
    """Replace the token rows of one analysis."""
    table = _table("TOKENS_TABLE", "ad_analysis_tokens")
    stamp = _now()
    try:
        db.table(table).delete().eq("analysis_id", analysis_id).execute()
        if records:
            db.table(table).insert([dict(r, analysis_id=analysis_id, created_at=stamp) for r in records]).execute()
        return True
    except Exception:
        logger.exception("could not save %d tokens for analysis %s", len(records), analysis_id)
        return False


def save_answers(db, rows: List[dict]) -> bool:
    if not rows:
        return True
    stamp = _now()
    rows = [dict(r, created_at=r.get("created_at") or stamp) for r in rows]
    try:
        db.table(_table("ANSWERS_TABLE", "ad_preference_answers")).insert(rows).execute()
        return True
    except Exception:
        logger.exception("could not save %d preference answers", len(rows))
        return False


# ---------- Reads (errors propagate) ----------
def list_analyses(db, user_id: str, limit: int = 20) -> List[Dict[str, Any]]:
    resp = (
        db.table(_table("ANALYSES_TABLE", "ad_rawdata"))
        .select(ANALYSIS_COLUMNS)
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .limit(limit)
        .execute()
    )
    return _rows(resp)


def get_analysis(db, analysis_id: str) -> Optional[Dict[str, Any]]:
    resp = (
        db.table(_table("ANALYSES_TABLE", "ad_rawdata"))
        .select(ANALYSIS_COLUMNS)
        .eq("id", analysis_id)
        .limit(1)
        .execute()
    )
    rows = _rows(resp)
    return rows[0] if rows else None


def list_answers(db, analysis_id: str) -> List[Dict[str, Any]]:
    resp = (
        db.table(_table("ANSWERS_TABLE", "ad_preference_answers"))
        .select("question_id,option_id,ad_id,created_at")
        .eq("analysis_id", analysis_id)
        .order("created_at")
        .execute()
    )
    return _rows(resp)


def fetch_dashboard_rows(db, token_limit: int = 1000, analysis_limit: int = 100):
    tokens = (
        db.table(_table("TOKENS_TABLE", "ad_analysis_tokens"))
        .select(TOKEN_COLUMNS)
        .order("created_at", desc=True)
        .limit(token_limit)
        .execute()
    )
    analyses = (
        db.table(_table("ANALYSES_TABLE", "ad_rawdata"))
        .select(ANALYSIS_COLUMNS)
        .order("created_at", desc=True)
        .limit(analysis_limit)
        .execute()
    )
    return _rows(tokens), _rows(analyses)
