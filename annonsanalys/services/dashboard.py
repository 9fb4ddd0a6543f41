# annonsanalys/services/dashboard.py
from __future__ import annotations

import json
from collections import Counter
from typing import Any, Dict, List, Optional

TRAIT_TYPES = {"strength", "theme"}
TOP_N = 10
RECENT_TOKENS = 30
UNKNOWN = "—"


def _ads_of(analysis: Optional[dict]) -> List[dict]:
    result = (analysis or {}).get("result")
    ads = result.get("ads") if isinstance(result, dict) else None
    return [a for a in ads if isinstance(a, dict)] if isinstance(ads, list) else []


def count_by(tokens: List[dict], key: str) -> List[list]:
    counts = Counter(t.get(key) for t in tokens if t.get(key))
    return [[k, v] for k, v in counts.most_common()]


def analysis_matches_role(analysis: dict, query: str) -> bool:
    q = (query or "").strip().lower()
    if not q:
        return False
    for ad in _ads_of(analysis):
        label = str(ad.get("label") or "").lower()
        summary = str(ad.get("summary") or "").lower()
        if q in label or q in summary:
            return True
    raw = json.dumps(analysis.get("raw_ads") or "", ensure_ascii=False).lower()
    return q in raw


def role_trait_stats(query: str, analyses: List[dict], tokens: List[dict]) -> Dict[str, Any]:
    q = (query or "").strip()
    if not q:
        return {"query": q, "analysisCount": 0, "traitTokenCount": 0, "traitCounts": {}}

    ids = {a.get("id") for a in analyses if analysis_matches_role(a, q)}
    traits = [t for t in tokens if t.get("analysis_id") in ids and t.get("token_type") in TRAIT_TYPES]
    counts = Counter(str(t.get("token_text") or "").strip() for t in traits)
    counts.pop("", None)
    return {
        "query": q,
        "analysisCount": len(ids),
        "traitTokenCount": len(traits),
        "traitCounts": dict(counts),
    }


def compare_roles(stats_a: Dict[str, Any], stats_b: Dict[str, Any]) -> List[dict]:
    a, b = stats_a["traitCounts"], stats_b["traitCounts"]
    rows = [
        {"trait": trait, "countA": a.get(trait, 0), "countB": b.get(trait, 0), "total": a.get(trait, 0) + b.get(trait, 0)}
        for trait in dict.fromkeys(list(a) + list(b))
    ]
    rows.sort(key=lambda r: r["total"], reverse=True)
    return rows[:TOP_N]


def role_and_employer(token: dict, analyses_by_id: Dict[Any, dict]) -> Dict[str, str]:
    """Split the label of the token's ad ("Jurist – Acme") into role and employer."""
    analysis = analyses_by_id.get(token.get("analysis_id"))
    ads = _ads_of(analysis)
    if not ads:
        return {"role": UNKNOWN, "employer": UNKNOWN}

    ad = None
    if token.get("ad_id"):
        ad = next((a for a in ads if a.get("id") == token["ad_id"]), None)
    if ad is None and analysis.get("recommended_ad_id"):
        ad = next((a for a in ads if a.get("id") == analysis["recommended_ad_id"]), None)
    ad = ad or ads[0]

    label = str(ad.get("label") or "").strip()
    if not label:
        return {"role": UNKNOWN, "employer": UNKNOWN}
    parts = label.split("–") if "–" in label else label.split("-")
    role = parts[0].strip() or label
    employer = parts[1].strip() if len(parts) > 1 and parts[1].strip() else UNKNOWN
    return {"role": role, "employer": employer}


def build_dashboard(tokens: List[dict], analyses: List[dict], role: str = "",
                    role_a: str = "", role_b: str = "") -> Dict[str, Any]:
    by_id = {a.get("id"): a for a in analyses}

    recent = [dict(t, **role_and_employer(t, by_id)) for t in tokens[:RECENT_TOKENS]]

    out: Dict[str, Any] = {
        "totals": {"analyses": len(analyses), "tokens": len(tokens)},
        "tokensByType": count_by(tokens, "token_type"),
        "tokensBySource": count_by(tokens, "source_block"),
        "recentTokens": recent,
        "role": None,
        "compare": None,
    }

    if role.strip():
        stats = role_trait_stats(role, analyses, tokens)
        top = Counter(stats.pop("traitCounts")).most_common(TOP_N)
        out["role"] = dict(stats, topTraits=[[k, v] for k, v in top])

    if role_a.strip() and role_b.strip():
        sa = role_trait_stats(role_a, analyses, tokens)
        sb = role_trait_stats(role_b, analyses, tokens)
        out["compare"] = {
            "roleA": {"query": sa["query"], "analysisCount": sa["analysisCount"], "traitTokenCount": sa["traitTokenCount"]},
            "roleB": {"query": sb["query"], "analysisCount": sb["analysisCount"], "traitTokenCount": sb["traitTokenCount"]},
            "rows": compare_roles(sa, sb),
        }
    return out
