# annonsanalys/services/analysis.py
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..errors import InvalidInput, InvalidModelOutput
from ..schemas import AnalysisResult
from .ai import call_json_model
from .preferences import normalize_ad_id
from .prompts import MIN_ADS, build_comparison_prompt
from .sanitize import parse_model_json

logger = logging.getLogger(__name__)

FALLBACK_RECOMMENDATION = "the recommended role"


# ---------- Input ----------
def validate_ads(ads_input: Any) -> List[str]:
    """Check the submitted ads and return them trimmed. Raises InvalidInput."""
    if not isinstance(ads_input, list) or len(ads_input) < MIN_ADS:
        raise InvalidInput('You must send an "ads" field with at least two ads (array of strings).')

    ads = []
    for i, value in enumerate(ads_input):
        if not isinstance(value, str):
            raise InvalidInput(f"Ad at index {i} is not a string.")
        trimmed = value.strip()
        if not trimmed:
            raise InvalidInput(f"Ad at index {i} is empty after trimming.")
        ads.append(trimmed)

    if not ads[0] or not ads[1]:
        raise InvalidInput("At least ad A and ad B must contain text for the analysis to run.")
    return ads


# ---------- Normalization (never raises) ----------
def _text(v: Any) -> str:
    return v.strip() if isinstance(v, str) else ""


def _ad_label(ad: Dict[str, Any]) -> str:
    title, company = _text(ad.get("title")), _text(ad.get("company"))
    if title and company:
        return f"{title} – {company}"
    return title or company or f"Ad {_text(ad.get('id')) or '?'}"


def recommendation_label(ads: List[Any], comparison: Dict[str, Any]) -> str:
    wanted = _text(comparison.get("recommendationAdId")).lower()
    if wanted:
        for ad in ads:
            if isinstance(ad, dict) and _text(ad.get("id")).lower() == wanted:
                label = _text(ad.get("label")) or _ad_label(ad)
                if label:
                    return label
    return _text(comparison.get("recommendationLabel")) or FALLBACK_RECOMMENDATION


def normalize_result(data: Any) -> Dict[str, Any]:
    """
    Fill the gaps a model leaves in an analysis.

    Guarantees a ``comparison`` with a non-empty ``reason`` and a non-empty
    ``label`` on every ad. Works on a copy of the parsed JSON.
    """
    out = copy.deepcopy(data) if isinstance(data, dict) else {}

    ads = out.get("ads")
    ads = ads if isinstance(ads, list) else []
    for ad in ads:
        if not isinstance(ad, dict):
            continue
        if not _text(ad.get("title")):
            ad["title"] = _text(ad.get("label"))
        if not _text(ad.get("label")):
            ad["label"] = _ad_label(ad)
    out["ads"] = ads

    comparison = out.get("comparison")
    if not isinstance(comparison, dict):
        comparison = {"recommendationAdId": None, "recommendationLabel": None, "reason": ""}
    if not _text(comparison.get("reason")):
        label = recommendation_label(ads, comparison)
        comparison["reason"] = (
            f"Based on the ad content, {label} appears to be the most interesting option right now."
        )
    out["comparison"] = comparison
    return out


# ---------- Validation ----------
def _canonical(ad_ids: Dict[str, str], raw: Optional[str], where: str) -> str:
    norm = normalize_ad_id(raw)
    if norm not in ad_ids:
        raise InvalidModelOutput(f"{where} refers to unknown ad {raw!r}")
    return ad_ids[norm]


def validate_result(data: Dict[str, Any], expected_ads: Optional[int] = None) -> AnalysisResult:
    """
    Turn normalized JSON into an AnalysisResult.

    Ad ids are canonicalised to single letters and every adId reference is
    pointed at the ad it names; a reference to no known ad, a duplicate
    ad, or a wrong number of ads raises InvalidModelOutput.
    """
    try:
        result = AnalysisResult.model_validate(data)
    except ValidationError as e:
        logger.error("model output failed validation: %s", e)
        raise InvalidModelOutput(f"model output does not match the analysis shape: {e.error_count()} error(s)") from e

    if expected_ads is not None and len(result.ads) != expected_ads:
        raise InvalidModelOutput(f"model returned {len(result.ads)} ads for {expected_ads} submitted")

    ad_ids: Dict[str, str] = {}
    for ad in result.ads:
        norm = normalize_ad_id(ad.id)
        if not norm or norm in ad_ids:
            raise InvalidModelOutput(f"duplicate or empty ad id {ad.id!r}")
        ad.id = norm
        ad_ids[norm] = norm

    for section in result.sections:
        for per_ad in section.per_ad:
            per_ad.ad_id = _canonical(ad_ids, per_ad.ad_id, f"section {section.id!r}")
    if result.application_advice:
        for per_ad in result.application_advice.per_ad:
            per_ad.ad_id = _canonical(ad_ids, per_ad.ad_id, "applicationAdvice")
    for deep in result.deep_analysis_per_ad or []:
        deep.ad_id = _canonical(ad_ids, deep.ad_id, "deepAnalysisPerAd")
    for q in result.questions or []:
        for opt in q.options:
            opt.ad_id = _canonical(ad_ids, opt.ad_id, f"question {q.id!r}")

    rec = result.comparison.recommendation_ad_id
    if rec is not None:
        norm = normalize_ad_id(rec)
        result.comparison.recommendation_ad_id = norm if norm in ad_ids else None
    return result


# ---------- Orchestration ----------
def analyze_ads(
    client,
    ads: List[str],
    *,
    model: Optional[str] = None,
    language: str = "Swedish",
    schema: Optional[dict] = None,
    max_tokens: int = 4096,
    temperature: float = 0.4,
) -> AnalysisResult:
    """Prompt the model with the ads and return the validated comparison."""
    prompt = build_comparison_prompt(ads, language=language)
    raw = call_json_model(
        client, prompt, schema=schema, model=model, max_tokens=max_tokens, temperature=temperature
    )
    parsed = parse_model_json(raw)
    return validate_result(normalize_result(parsed), expected_ads=len(ads))


def comparison_schema() -> dict:
    return AnalysisResult.model_json_schema(by_alias=True)
