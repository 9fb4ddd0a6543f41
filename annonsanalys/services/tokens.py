# annonsanalys/services/tokens.py
from __future__ import annotations

from typing import Iterable, List, Optional

from ..schemas import AnalysisResult

ADVICE_FIELDS = (("themes", "theme"), ("keywords", "keyword"), ("ats_tips", "ats_tip"))
DEEP_FIELDS = (
    ("strengths", "strength"),
    ("risks", "risk"),
    ("culture_and_fit", "culture"),
    ("development", "development"),
)


def _records(items: Iterable[str], *, analysis_id, user_id, ad_id, source_block, section_id, token_type) -> List[dict]:
    out = []
    for position, item in enumerate(items or []):
        text = item.strip() if isinstance(item, str) else ""
        if not text:
            continue
        out.append({
            "analysis_id": analysis_id,
            "user_id": user_id,
            "ad_id": ad_id,
            "source_block": source_block,
            "section_id": section_id,
            "token_type": token_type,
            "token_text": text,
            "position": position,
        })
    return out


def extract_tokens(result: AnalysisResult, analysis_id: Optional[str], user_id: Optional[str]) -> List[dict]:
    """Flatten advice, deep analysis and section bullets into token rows."""
    rows: List[dict] = []
    common = {"analysis_id": analysis_id, "user_id": user_id}

    if result.application_advice:
        for per_ad in result.application_advice.per_ad:
            for attr, token_type in ADVICE_FIELDS:
                rows += _records(getattr(per_ad, attr), ad_id=per_ad.ad_id, source_block="application_advice",
                                 section_id=None, token_type=token_type, **common)

    for deep in result.deep_analysis_per_ad or []:
        for attr, token_type in DEEP_FIELDS:
            rows += _records(getattr(deep, attr), ad_id=deep.ad_id, source_block="deep_analysis",
                             section_id=None, token_type=token_type, **common)

    for section in result.sections:
        for per_ad in section.per_ad:
            rows += _records(per_ad.highlights, ad_id=per_ad.ad_id, source_block="sections",
                             section_id=section.id, token_type="highlight", **common)
        # cross-ad, so no ad_id
        rows += _records(section.key_differences, ad_id=None, source_block="sections",
                         section_id=section.id, token_type="key_difference", **common)
    return rows
