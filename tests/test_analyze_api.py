"""Tests for the analyze-text route."""
import json

import pytest

from llm import ANALYSIS_CONFIG

ANALYSIS = {
    "vocabulary": [{"word": "DEF", "meaning": "letters", "example": "ABC DEF", "exampleTranslation": "abc def"}],
    "grammar": [],
    "contextAnalysis": "middle of the alphabet",
    "notes": ["note"],
}


def _request(article_id, start=3, end=6, selected="DEF"):
    return {"articleId": article_id, "selectedText": selected, "startIndex": start, "endIndex": end}


def test_analyze_returns_context_and_analysis(client, fake_model, stored_article):
    article_id = stored_article("ABCDEFGHIJ", target_lang="en")
    fake_model.replies = [json.dumps(ANALYSIS)]

    resp = client.post("/api/analyze-text", json=_request(article_id))
    assert resp.status_code == 200
    body = resp.json()
    assert body["context"] == {"before": "ABC", "selected": "DEF", "after": "GHIJ"}
    assert body["analysis"] == ANALYSIS


def test_analyze_prompt_marks_span(client, fake_model, stored_article):
    article_id = stored_article("ABCDEFGHIJ", source_lang="en", target_lang="de")
    fake_model.replies = ["{}"]
    client.post("/api/analyze-text", json=_request(article_id))

    ((prompt, config),) = fake_model.calls
    assert "ABC>>>DEF<<<GHIJ" in prompt
    assert "German" in prompt
    assert "in English" in prompt
    assert config == ANALYSIS_CONFIG


def test_analyze_selected_text_is_echoed(client, fake_model, stored_article):
    article_id = stored_article("ABCDEFGHIJ", target_lang="en")
    fake_model.replies = ["{}"]
    body = client.post("/api/analyze-text", json=_request(article_id, selected="something else")).json()
    assert body["context"]["selected"] == "something else"


def test_analyze_zero_start_index_is_accepted(client, fake_model, stored_article):
    article_id = stored_article("ABCDEFGHIJ", target_lang="en")
    fake_model.replies = ["{}"]
    resp = client.post("/api/analyze-text", json=_request(article_id, start=0, end=10, selected="ABCDEFGHIJ"))
    assert resp.status_code == 200
    assert resp.json()["context"] == {"before": "", "selected": "ABCDEFGHIJ", "after": ""}


def test_analyze_fenced_reply(client, fake_model, stored_article):
    article_id = stored_article(target_lang="en")
    fake_model.replies = ['```json\n{"vocabulary":[]}\n```']
    resp = client.post("/api/analyze-text", json=_request(article_id))
    assert resp.status_code == 200
    assert resp.json()["analysis"] == {"vocabulary": []}


def test_analyze_malformed_reply(client, fake_model, stored_article):
    article_id = stored_article()
    fake_model.replies = ["not json"]
    resp = client.post("/api/analyze-text", json=_request(article_id))
    assert resp.status_code == 502
    assert resp.json() == {"detail": "Failed to analyze text"}


@pytest.mark.parametrize("reply", [
    {"vocabulary": "none"},
    {"exercises": [{"type": "choice", "question": "?", "options": ["1", "2"], "answer": 1}]},
    {"exercises": [{"options": None}], "notes": None},
    {"vocabulary": [{"word": 3}, "loose string", {"meaning": "no word"}]},
])
def test_analyze_returns_loosely_typed_reply_unchanged(client, fake_model, stored_article, reply):
    article_id = stored_article(target_lang="ja")
    fake_model.replies = [json.dumps(reply)]
    resp = client.post("/api/analyze-text", json=_request(article_id))
    assert resp.status_code == 200
    assert resp.json()["analysis"] == reply


def test_analyze_whitespace_selection_is_accepted(client, fake_model, stored_article):
    article_id = stored_article("ABC DEF", target_lang="en")
    fake_model.replies = ["{}"]
    resp = client.post("/api/analyze-text", json=_request(article_id, start=3, end=4, selected=" "))
    assert resp.status_code == 200
    assert resp.json()["context"] == {"before": "ABC", "selected": " ", "after": "DEF"}


def test_analyze_empty_selection_is_rejected(client, fake_model, stored_article):
    resp = client.post("/api/analyze-text", json=_request(stored_article(), selected=""))
    assert resp.status_code == 400
    assert fake_model.calls == []


@pytest.mark.parametrize("kwargs", [
    {"json": [1, 2, 3]},
    {"json": "articleId"},
    {},
    {"content": b"{not json", "headers": {"Content-Type": "application/json"}},
])
def test_analyze_non_object_body(client, fake_model, kwargs):
    resp = client.post("/api/analyze-text", **kwargs)
    assert resp.status_code == 400
    assert resp.json() == {"detail": "Failed to analyze text"}
    assert fake_model.calls == []


def test_analyze_unknown_article_skips_model(client, fake_model):
    fake_model.replies = ["{}"]
    resp = client.post("/api/analyze-text", json=_request("doesNotExist"))
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Failed to analyze text"
    assert fake_model.calls == []


def test_analyze_no_candidate_text(client, fake_model, stored_article):
    article_id = stored_article()
    fake_model.replies = [None]
    resp = client.post("/api/analyze-text", json=_request(article_id))
    assert resp.status_code == 502
    assert resp.json()["detail"] == "Failed to analyze text"


@pytest.mark.parametrize("missing", ["articleId", "selectedText", "startIndex", "endIndex"])
def test_analyze_missing_field(client, fake_model, stored_article, missing):
    payload = {k: v for k, v in _request(stored_article()).items() if k != missing}
    resp = client.post("/api/analyze-text", json=payload)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Failed to analyze text"
    assert fake_model.calls == []


@pytest.mark.parametrize("start,end", [(-1, 3), (6, 3)])
def test_analyze_invalid_span(client, stored_article, start, end):
    resp = client.post("/api/analyze-text", json=_request(stored_article(), start=start, end=end))
    assert resp.status_code == 400


def test_analyze_fills_missing_japanese_reading(client, fake_model, stored_article):
    article_id = stored_article("今日は東京へ行きます", target_lang="ja")
    fake_model.replies = [json.dumps({"vocabulary": [{"word": "東京", "meaning": "Tokyo"},
                                                     {"word": "行く", "reading": "iku"}]})]
    body = client.post("/api/analyze-text", json=_request(article_id, start=3, end=5, selected="東京")).json()
    first, second = body["analysis"]["vocabulary"]
    assert first["reading"]
    assert second["reading"] == "iku"
