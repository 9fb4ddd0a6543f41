# annonsanalys/services/preferences.py
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from ..schemas import AnalysisResult, PreferenceOption, PreferenceQuestion

MAX_REASONS = 3

_LETTER = re.compile(r"[A-Za-zÅÄÖåäö]")
_PREFIXED = re.compile(r"^(?:annons|ad)\s+([A-Za-zÅÄÖåäö])$", re.I)


def normalize_ad_id(raw: Optional[str]) -> str:
    """
    Reduce "a", " A ", "Annons A" and friends to "A".

    Otherwise the first letter wins, except that an "Annons X" or "Ad X"
    label maps to X rather than to the A of its prefix. validate_result
    canonicalises every adId through this, so "Annons B" references ad B.
    """
    if not raw:
        return ""
    s = str(raw).strip()
    if len(s) == 1:
        return s.upper()
    m = _PREFIXED.match(s)
    if m:
        return m.group(1).upper()
    m = _LETTER.search(s)
    if m:
        return m.group(0).upper()
    return s.upper()


@dataclass(frozen=True)
class TopPreference:
    ad_id: str
    label: str
    score: int
    total_answers: int

    def to_json(self) -> dict:
        return {"adId": self.ad_id, "label": self.label, "score": self.score, "totalAnswers": self.total_answers}


@dataclass(frozen=True)
class AnswerReason:
    question_id: str
    question_text: str
    option_label: str

    def to_json(self) -> dict:
        return {"questionId": self.question_id, "questionText": self.question_text, "optionLabel": self.option_label}


def preference_scores(result: AnalysisResult, answers: Mapping[str, str]) -> Dict[str, int]:
    """Votes per normalized ad id; every ad starts at zero, in ad order."""
    scores: Dict[str, int] = {}
    for ad in result.ads:
        scores.setdefault(normalize_ad_id(ad.id), 0)

    known = {q.id for q in (result.questions or [])}
    for qid, ad_id in answers.items():
        if qid not in known or not ad_id:
            continue
        norm = normalize_ad_id(ad_id)
        # an id the analysis never mentioned still gets counted
        scores[norm] = scores.get(norm, 0) + 1
    return scores


def answered_count(result: AnalysisResult, answers: Mapping[str, str]) -> int:
    return sum(1 for q in (result.questions or []) if answers.get(q.id))


def top_preference(result: AnalysisResult, answers: Mapping[str, str]) -> Optional[TopPreference]:
    """
    The ad the answers point to, or None until every question is answered.

    Ties go to the ad listed first.
    """
    total_questions = len(result.questions or [])
    total_answers = answered_count(result, answers)
    if total_questions == 0 or total_answers != total_questions:
        return None

    best_id, best_score = None, 0
    for ad_id, score in preference_scores(result, answers).items():
        if score > best_score:
            best_id, best_score = ad_id, score
    if best_id is None:
        return None

    for ad in result.ads:
        if normalize_ad_id(ad.id) == best_id:
            return TopPreference(ad.id, ad.label, best_score, total_answers)
    return TopPreference(best_id, f"Ad {best_id}", best_score, total_answers)


def _chosen_option(question: PreferenceQuestion, ad_id: str) -> Optional[PreferenceOption]:
    norm = normalize_ad_id(ad_id)
    for opt in question.options:
        if normalize_ad_id(opt.ad_id) == norm:
            return opt
    return None


def answer_reasons(result: AnalysisResult, answers: Mapping[str, str], top: TopPreference,
                   options: Optional[Mapping[str, str]] = None) -> tuple[List[AnswerReason], bool]:
    """
    Answers that back the winning ad, capped at MAX_REASONS.

    ``options`` maps question ids to the option id actually picked; without
    it the first option pointing at the answered ad is shown. The flag is
    True when more supporting answers exist than were returned.
    """
    winner = normalize_ad_id(top.ad_id)
    supporting: List[AnswerReason] = []
    for q in result.questions or []:
        chosen = answers.get(q.id)
        if not chosen:
            continue
        picked = (options or {}).get(q.id)
        opt = next((o for o in q.options if o.id == picked), None) if picked else None
        opt = opt or _chosen_option(q, chosen)
        if opt is None or normalize_ad_id(opt.ad_id) != winner:
            continue
        supporting.append(AnswerReason(q.id, q.text, opt.label))
    return supporting[:MAX_REASONS], len(supporting) > MAX_REASONS


@dataclass
class PreferenceAnswers:
    """
    Quiz answers for one analysis.

    Each question is either unanswered or answered with one ad id. The
    recommendation is derived on every read, so changing or clearing an
    answer drops a previous recommendation until all questions are
    answered again.
    """

    result: AnalysisResult
    answers: Dict[str, str] = field(default_factory=dict)
    options: Dict[str, str] = field(default_factory=dict)

    def question(self, question_id: str) -> Optional[PreferenceQuestion]:
        for q in self.result.questions or []:
            if q.id == question_id:
                return q
        return None

    def answer(self, question_id: str, choice: str) -> PreferenceOption:
        """Answer with an option id, or with the ad id one of the options points to."""
        q = self.question(question_id)
        if q is None:
            raise KeyError(question_id)
        opt = next((o for o in q.options if o.id == choice), None) or _chosen_option(q, choice)
        if opt is None:
            raise ValueError(f"{choice!r} is not an option of question {question_id!r}")
        self.answers[question_id] = opt.ad_id
        self.options[question_id] = opt.id
        return opt

    def clear(self, question_id: str) -> None:
        self.answers.pop(question_id, None)
        self.options.pop(question_id, None)

    @property
    def total_questions(self) -> int:
        return len(self.result.questions or [])

    @property
    def answered(self) -> int:
        return answered_count(self.result, self.answers)

    @property
    def is_resolved(self) -> bool:
        return self.recommendation() is not None

    def scores(self) -> Dict[str, int]:
        return preference_scores(self.result, self.answers)

    def recommendation(self) -> Optional[TopPreference]:
        return top_preference(self.result, self.answers)

    def to_json(self) -> dict:
        top = self.recommendation()
        rec = None
        if top is not None:
            reasons, more = answer_reasons(self.result, self.answers, top, self.options)
            rec = dict(top.to_json(), reasons=[r.to_json() for r in reasons], moreReasons=more)
        return {
            "answers": dict(self.options),
            "answeredCount": self.answered,
            "totalQuestions": self.total_questions,
            "scores": self.scores(),
            "recommendation": rec,
        }


def replay_answers(result: AnalysisResult, rows: Sequence[Mapping]) -> PreferenceAnswers:
    """
    Rebuild quiz state from stored answer rows (oldest first; later rows win).

    Rows for questions the analysis no longer has are skipped.
    """
    state = PreferenceAnswers(result)
    for row in rows:
        qid = row.get("question_id")
        choice = row.get("option_id") or row.get("ad_id")
        if not qid:
            continue
        if not choice:
            # a row without a choice records an un-answered question
            state.clear(qid)
            continue
        try:
            state.answer(qid, choice)
        except (KeyError, ValueError):
            continue
    return state
