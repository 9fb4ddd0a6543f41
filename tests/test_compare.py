import httpx
import openai
import pytest

from conftest import FakeOpenAI, completion, sample_result
from annonsanalys import create_app

ADS = ["Full ad text for role X", "Full ad text for role Y"]


@pytest.mark.parametrize("body", [
    {"ads": []},
    {"ads": ["only one"]},
    {"ads": ["   ", "text"]},
    {"ads": ["text", 7]},
    {"ads": "not a list"},
])
def test_bad_submissions_never_reach_the_model(client, ai, body):
    r = client.post("/annonsanalys/compare", json=body)
    assert r.status_code == 400
    assert r.get_json()["error"]
    assert ai.calls == []


def test_non_json_body_is_rejected(client, ai):
    r = client.post("/annonsanalys/compare", data="ads=1", content_type="text/plain")
    assert r.status_code == 400
    assert ai.calls == []


def test_successful_analysis_is_returned_and_stored(db):
    data = sample_result(comparison={"recommendationAdId": "A"})
    for ad in data["ads"]:
        ad.pop("label", None)
    app = create_app("test", supabase=db, ai_client=FakeOpenAI(data))

    r = app.test_client().post("/annonsanalys/compare", json={"ads": ADS, "userId": "user-7"})

    assert r.status_code == 200
    body = r.get_json()
    assert [a["id"] for a in body["ads"]] == ["A", "B"]
    assert all(a["label"] for a in body["ads"])
    assert body["comparison"]["reason"]
    assert body["analysisId"]

    row = db.tables["ad_rawdata"][0]
    assert row["id"] == body["analysisId"]
    assert row["raw_ads"] == ADS
    assert row["user_id"] == "user-7"
    assert row["recommended_ad_id"] == "A"
    assert row["recommended_label"] == "Jurist – Acme"
    tokens = db.tables["ad_analysis_tokens"]
    assert len(tokens) == 14
    assert {t["analysis_id"] for t in tokens} == {body["analysisId"]}


def test_session_user_wins_over_body_user_id(client, db, login):
    login("auth-1", "me@example.com")
    r = client.post("/annonsanalys/compare", json={"ads": ADS, "userId": "someone-else"})
    assert r.status_code == 200
    assert db.tables["ad_rawdata"][0]["user_id"] == "auth-1"


def test_storage_failure_is_not_fatal(client, db):
    db.failing.add("ad_rawdata")
    r = client.post("/annonsanalys/compare", json={"ads": ADS})
    assert r.status_code == 200
    assert r.get_json()["analysisId"] is None
    assert "ad_analysis_tokens" not in db.tables


def test_token_failure_is_not_fatal(client, db):
    db.failing.add("ad_analysis_tokens")
    r = client.post("/annonsanalys/compare", json={"ads": ADS})
    assert r.status_code == 200
    assert r.get_json()["analysisId"]


def test_blocked_model_reports_the_reason(db):
    app = create_app("test", supabase=db, ai_client=FakeOpenAI(completion(None, refusal="unsafe content")))
    r = app.test_client().post("/annonsanalys/compare", json={"ads": ADS})
    assert r.status_code == 500
    message = r.get_json()["error"]
    assert "unsafe content" in message
    assert "internal error" not in message


def test_provider_outage_is_a_generic_500(db):
    req = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    err = openai.APIStatusError("down", response=httpx.Response(502, request=req), body=None)
    app = create_app("test", supabase=db, ai_client=FakeOpenAI(err))
    r = app.test_client().post("/annonsanalys/compare", json={"ads": ADS})
    assert r.status_code == 500
    assert "unavailable" in r.get_json()["error"]
    assert "ad_rawdata" not in db.tables


def test_unparsable_reply_hides_raw_text(db):
    app = create_app("test", supabase=db, ai_client=FakeOpenAI("secret prose without json"))
    r = app.test_client().post("/annonsanalys/compare", json={"ads": ADS})
    assert r.status_code == 500
    assert "secret prose" not in r.get_json()["error"]


def test_wrong_ad_count_is_a_500(db):
    data = sample_result()
    data["ads"] = data["ads"][:1]
    app = create_app("test", supabase=db, ai_client=FakeOpenAI(data))
    r = app.test_client().post("/annonsanalys/compare", json={"ads": ADS})
    assert r.status_code == 500


def test_configured_model_is_used(db):
    ai = FakeOpenAI(sample_result())
    app = create_app("test", supabase=db, ai_client=ai)
    app.config["ANALYSIS_MODEL"] = "gpt-special"
    app.test_client().post("/annonsanalys/compare", json={"ads": ADS})
    assert ai.calls[0]["model"] == "gpt-special"


def test_null_fields_in_the_reply_still_give_an_analysis(db):
    data = sample_result()
    data["ads"][0]["summary"] = None
    data["sections"][0]["perAd"][0]["highlights"] = ["Rådgivning", None]
    app = create_app("test", supabase=db, ai_client=FakeOpenAI(data))

    r = app.test_client().post("/annonsanalys/compare", json={"ads": ADS})

    assert r.status_code == 200
    assert r.get_json()["sections"][0]["perAd"][0]["highlights"] == ["Rådgivning"]
