# tests/conftest.py
import copy
import itertools
import json
from types import SimpleNamespace

import pytest

from annonsanalys import create_app


# ---------- in-memory Supabase ----------
class FakeQuery:
    def __init__(self, db, table):
        self.db, self.table = db, table
        self.op, self.payload = "select", None
        self.filters, self.order_by, self.max_rows = [], None, None

    def select(self, *_cols):
        self.op = "select"
        return self

    def insert(self, rows):
        self.op, self.payload = "insert", rows
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, col, val):
        self.filters.append((col, val))
        return self

    def order(self, col, desc=False):
        self.order_by = (col, desc)
        return self

    def limit(self, n):
        self.max_rows = n
        return self

    def _match(self, row):
        return all(row.get(c) == v for c, v in self.filters)

    def execute(self):
        if self.table in self.db.failing or (self.op == "insert" and self.table in self.db.failing_inserts):
            raise RuntimeError(f"table {self.table} is down")
        rows = self.db.tables.setdefault(self.table, [])
        if self.op == "insert":
            new = self.payload if isinstance(self.payload, list) else [self.payload]
            out = []
            for r in new:
                r = copy.deepcopy(r)
                r.setdefault("id", f"{self.table}-{next(self.db.ids)}")
                rows.append(r)
                out.append(r)
            return SimpleNamespace(data=out)
        if self.op == "delete":
            gone = [r for r in rows if self._match(r)]
            self.db.tables[self.table] = [r for r in rows if not self._match(r)]
            return SimpleNamespace(data=gone)
        found = [copy.deepcopy(r) for r in rows if self._match(r)]
        if self.order_by:
            col, desc = self.order_by
            found.sort(key=lambda r: r.get(col) or "", reverse=desc)
        if self.max_rows is not None:
            found = found[: self.max_rows]
        return SimpleNamespace(data=found)


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.failing = set()
        self.failing_inserts = set()
        self.ids = itertools.count(1)
        self.auth = SimpleNamespace(get_user=self._get_user)
        self.sessions = {}

    def table(self, name):
        return FakeQuery(self, name)

    def _get_user(self, token):
        if token not in self.sessions:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=SimpleNamespace(**self.sessions[token]))


# ---------- scripted OpenAI client ----------
class FakeCompletions:
    def __init__(self, owner):
        self.owner = owner

    def create(self, **kwargs):
        self.owner.calls.append(kwargs)
        reply = self.owner.replies.pop(0) if len(self.owner.replies) > 1 else self.owner.replies[0]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, SimpleNamespace):
            return reply
        if not isinstance(reply, str):
            reply = json.dumps(reply, ensure_ascii=False)
        return completion(reply)


def completion(content, finish_reason="stop", refusal=None):
    message = SimpleNamespace(content=content, refusal=refusal)
    return SimpleNamespace(choices=[SimpleNamespace(message=message, finish_reason=finish_reason)])


class FakeOpenAI:
    def __init__(self, *replies):
        self.replies = list(replies) or [""]
        self.calls = []
        self.chat = SimpleNamespace(completions=FakeCompletions(self))


# ---------- sample model output ----------
def sample_result(**overrides):
    data = {
        "ads": [
            {"id": "A", "title": "Jurist", "company": "Acme", "summary": "Affärsjuridik.", "score": 80},
            {"id": "B", "title": "Bolagsjurist", "company": "Beta AB", "summary": "Avtal och bolagsrätt.", "score": 70},
        ],
        "comparison": {"recommendationAdId": "A", "recommendationLabel": "Jurist hos Acme", "reason": "Bredare roll."},
        "sections": [
            {
                "id": "role",
                "title": "Roll",
                "description": "Vad man gör.",
                "perAd": [
                    {"adId": "A", "highlights": ["Rådgivning", "Processer"]},
                    {"adId": "B", "highlights": ["Avtal"]},
                ],
                "key_differences": ["A är bredare"],
            }
        ],
        "applicationAdvice": {
            "overallTips": ["Var konkret"],
            "perAd": [
                {"adId": "A", "themes": ["Affärsnära"], "keywords": ["M&A"], "atsTips": ["Skriv jurist"]},
                {"adId": "B", "themes": ["Noggrann"], "keywords": ["avtal"], "atsTips": []},
            ],
        },
        "deepAnalysisPerAd": [
            {"adId": "A", "strengths": ["Bred roll"], "risks": ["Hög takt"], "cultureAndFit": ["Platt"], "development": ["Partnerspår"]},
            {"adId": "B", "strengths": ["Stabilt"], "risks": [], "cultureAndFit": [], "development": []},
        ],
        "questions": [
            {"id": "q1", "text": "Tempo?", "options": [{"id": "q1_a", "label": "Högt", "adId": "A"}, {"id": "q1_b", "label": "Lugnt", "adId": "B"}]},
            {"id": "q2", "text": "Uppgifter?", "options": [{"id": "q2_a", "label": "Breda", "adId": "A"}, {"id": "q2_b", "label": "Djupa", "adId": "B"}]},
            {"id": "q3", "text": "Storlek?", "options": [{"id": "q3_a", "label": "Stor", "adId": "A"}, {"id": "q3_b", "label": "Liten", "adId": "B"}]},
        ],
    }
    data.update(overrides)
    return data


@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture
def ai():
    return FakeOpenAI(sample_result())


@pytest.fixture
def app(db, ai):
    return create_app("test", supabase=db, ai_client=ai)


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def login(client, db):
    """Sign the test client in as a users row (created on the fly)."""
    def _login(auth_id, email, role="user"):
        db.tables.setdefault("users", []).append({"auth_id": auth_id, "email": email, "role": role})
        with client.session_transaction() as s:
            s["_user_id"] = auth_id
            s["_fresh"] = True
    return _login
