# annonsanalys/routes/analyses.py
from flask import Blueprint, request, jsonify, current_app
from pydantic import ValidationError

from ..schemas import AnalysisResult
from ..services.preferences import replay_answers
from ..services.storage import get_analysis, list_analyses, list_answers, save_answers
from ..services.users import current_user_id

analyses_bp = Blueprint("analyses", __name__, url_prefix="/api/analyses")


def _load_owned(analysis_id: str, user_id):
    """The stored row and its parsed result, or None if missing or someone else's."""
    row = get_analysis(current_app.config["SUPABASE"], analysis_id)
    if not row:
        return None, None
    owner = row.get("user_id")
    if owner and owner != user_id:
        return None, None
    try:
        return row, AnalysisResult.model_validate(row.get("result") or {})
    except ValidationError:
        current_app.logger.exception("stored analysis %s has an unreadable result", analysis_id)
        return None, None


@analyses_bp.get("")
def my_analyses():
    user_id = current_user_id(request.args)
    if not user_id:
        return jsonify(error="Sign in to see your previous analyses."), 401
    try:
        rows = list_analyses(current_app.config["SUPABASE"], user_id)
    except Exception:
        current_app.logger.exception("listing analyses failed")
        return jsonify(error="Could not load your analyses."), 500

    out = []
    for r in rows:
        ads = ((r.get("result") or {}).get("ads")) or []
        out.append({
            "id": r.get("id"),
            "created_at": r.get("created_at"),
            "recommended_ad_id": r.get("recommended_ad_id"),
            "recommended_label": r.get("recommended_label"),
            "ads": [{"id": a.get("id"), "label": a.get("label")} for a in ads if isinstance(a, dict)],
        })
    return jsonify(analyses=out)


@analyses_bp.get("/<analysis_id>")
def analysis_detail(analysis_id):
    user_id = current_user_id(request.args)
    try:
        row, result = _load_owned(analysis_id, user_id)
        if row is None:
            return jsonify(error="Analysis not found."), 404
        state = replay_answers(result, list_answers(current_app.config["SUPABASE"], analysis_id))
    except Exception:
        current_app.logger.exception("loading analysis %s failed", analysis_id)
        return jsonify(error="Could not load the analysis."), 500

    return jsonify(
        id=row.get("id"),
        created_at=row.get("created_at"),
        raw_ads=row.get("raw_ads"),
        result=result.to_json(),
        preferences=state.to_json(),
    )


@analyses_bp.post("/<analysis_id>/answers")
def submit_answers(analysis_id):
    payload = request.get_json(silent=True) or {}
    answers = payload.get("answers")
    if not isinstance(answers, dict) or not answers:
        return jsonify(error='Send an "answers" object mapping question ids to option ids (null un-answers).'), 400

    user_id = current_user_id(payload)
    db = current_app.config["SUPABASE"]
    try:
        row, result = _load_owned(analysis_id, user_id)
        if row is None:
            return jsonify(error="Analysis not found."), 404
        state = replay_answers(result, list_answers(db, analysis_id))
    except Exception:
        current_app.logger.exception("loading analysis %s failed", analysis_id)
        return jsonify(error="Could not load the analysis."), 500

    new_rows = []
    for qid, choice in answers.items():
        question = state.question(qid)
        if question is None:
            return jsonify(error=f"Unknown question {qid!r}."), 400
        opt = None
        if choice is None:
            state.clear(qid)
        else:
            try:
                opt = state.answer(qid, str(choice))
            except ValueError:
                return jsonify(error=f"{choice!r} is not an answer to question {qid!r}."), 400
        new_rows.append({
            "analysis_id": analysis_id,
            "user_id": user_id,
            "question_id": qid,
            "question_text": question.text,
            "option_id": opt.id if opt else None,
            "option_label": opt.label if opt else None,
            "ad_id": opt.ad_id if opt else None,
        })

    save_answers(db, new_rows)
    return jsonify(state.to_json())
