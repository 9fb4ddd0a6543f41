import pytest

ADS = ["Full ad text for role X", "Full ad text for role Y"]


@pytest.fixture
def analysis_id(client):
    r = client.post("/annonsanalys/compare", json={"ads": ADS, "userId": "user-1"})
    return r.get_json()["analysisId"]


def test_list_requires_a_user(client):
    assert client.get("/api/analyses").status_code == 401


def test_list_my_analyses(client, analysis_id):
    client.post("/annonsanalys/compare", json={"ads": ADS, "userId": "user-2"})
    r = client.get("/api/analyses?userId=user-1")
    assert r.status_code == 200
    rows = r.get_json()["analyses"]
    assert [row["id"] for row in rows] == [analysis_id]
    assert rows[0]["ads"] == [{"id": "A", "label": "Jurist – Acme"}, {"id": "B", "label": "Bolagsjurist – Beta AB"}]


def test_answers_resolve_once_all_questions_are_answered(client, db, analysis_id):
    url = f"/api/analyses/{analysis_id}/answers"
    r = client.post(url, json={"userId": "user-1", "answers": {"q1": "q1_a", "q2": "q2_a"}})
    assert r.status_code == 200
    assert r.get_json()["recommendation"] is None

    r = client.post(url, json={"userId": "user-1", "answers": {"q3": "B"}})
    body = r.get_json()
    assert body["answeredCount"] == 3
    rec = body["recommendation"]
    assert (rec["adId"], rec["score"], rec["totalAnswers"]) == ("A", 2, 3)
    assert rec["label"] == "Jurist – Acme"

    rows = db.tables["ad_preference_answers"]
    assert len(rows) == 3
    assert rows[-1]["option_id"] == "q3_b" and rows[-1]["ad_id"] == "B"
    assert rows[-1]["question_text"] == "Storlek?"


def test_detail_replays_previous_answers(client, analysis_id):
    client.post(f"/api/analyses/{analysis_id}/answers", json={"userId": "user-1", "answers": {"q1": "q1_b"}})
    r = client.get(f"/api/analyses/{analysis_id}?userId=user-1")
    assert r.status_code == 200
    body = r.get_json()
    assert body["raw_ads"] == ADS
    assert body["result"]["ads"][0]["id"] == "A"
    assert body["preferences"]["answers"] == {"q1": "q1_b"}
    assert body["preferences"]["recommendation"] is None


def test_other_users_cannot_see_or_answer(client, analysis_id):
    assert client.get(f"/api/analyses/{analysis_id}?userId=intruder").status_code == 404
    r = client.post(f"/api/analyses/{analysis_id}/answers", json={"userId": "intruder", "answers": {"q1": "q1_a"}})
    assert r.status_code == 404


def test_unknown_analysis_is_404(client):
    assert client.get("/api/analyses/missing").status_code == 404


@pytest.mark.parametrize("answers", [{}, {"nope": "q1_a"}, {"q1": "q7_x"}, "q1"])
def test_bad_answers_are_rejected(client, db, analysis_id, answers):
    r = client.post(f"/api/analyses/{analysis_id}/answers", json={"userId": "user-1", "answers": answers})
    assert r.status_code == 400
    assert "ad_preference_answers" not in db.tables


def test_answer_storage_failure_is_not_fatal(client, db, analysis_id):
    db.failing_inserts.add("ad_preference_answers")
    r = client.post(f"/api/analyses/{analysis_id}/answers", json={"userId": "user-1", "answers": {"q1": "q1_a"}})
    assert r.status_code == 200
    assert r.get_json()["answers"] == {"q1": "q1_a"}


def test_null_choice_unanswers_a_question(client, db, analysis_id):
    url = f"/api/analyses/{analysis_id}/answers"
    client.post(url, json={"userId": "user-1", "answers": {"q1": "q1_a", "q2": "q2_a", "q3": "q3_a"}})

    r = client.post(url, json={"userId": "user-1", "answers": {"q2": None}})
    assert r.status_code == 200
    body = r.get_json()
    assert body["answers"] == {"q1": "q1_a", "q3": "q3_a"}
    assert body["answeredCount"] == 2
    assert body["recommendation"] is None
    assert db.tables["ad_preference_answers"][-1]["option_id"] is None

    detail = client.get(f"/api/analyses/{analysis_id}?userId=user-1").get_json()
    assert detail["preferences"]["answers"] == {"q1": "q1_a", "q3": "q3_a"}
    assert detail["preferences"]["recommendation"] is None
