# annonsanalys/routes/compare.py
from flask import Blueprint, request, jsonify, current_app

from ..errors import AnalysisError, InvalidInput, UnparsableResponse
from ..services.analysis import analyze_ads, comparison_schema, validate_ads
from ..services.prompts import PROMPT_VERSION
from ..services.storage import save_analysis, save_tokens
from ..services.tokens import extract_tokens
from ..services.users import current_user_id

compare_bp = Blueprint("compare", __name__)


@compare_bp.post("/annonsanalys/compare")
def compare():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify(error="Invalid JSON in request body."), 400

    try:
        ads = validate_ads(payload.get("ads"))
    except InvalidInput as e:
        return jsonify(error=e.user_message), 400

    cfg = current_app.config
    user_id = current_user_id(payload)

    try:
        result = analyze_ads(
            cfg["OPENAI_CLIENT"],
            ads,
            model=cfg["ANALYSIS_MODEL"],
            language=cfg["ANALYSIS_LANGUAGE"],
            schema=comparison_schema() if cfg["ANALYSIS_USE_SCHEMA"] else None,
            max_tokens=cfg["ANALYSIS_MAX_TOKENS"],
            temperature=cfg["ANALYSIS_TEMPERATURE"],
        )
    except UnparsableResponse as e:
        current_app.logger.error("unparsable model reply\nraw: %r\ncleaned: %r", e.raw_text, e.cleaned_text)
        return jsonify(error=e.user_message), e.status_code
    except AnalysisError as e:
        current_app.logger.error("ad analysis failed: %s", e)
        return jsonify(error=e.user_message), e.status_code
    except Exception:
        current_app.logger.exception("Unhandled error in /annonsanalys/compare")
        return jsonify(error=AnalysisError.user_message), 500

    # storing is best effort: the caller gets the analysis either way
    db = cfg["SUPABASE"]
    analysis_id = save_analysis(db, ads, result, user_id, PROMPT_VERSION)
    if analysis_id is not None:
        save_tokens(db, analysis_id, extract_tokens(result, analysis_id, user_id))

    body = result.to_json()
    body["analysisId"] = analysis_id
    return jsonify(body)
