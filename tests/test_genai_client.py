import io
import json
import urllib.error

from app.markeng import genai_client
from app.markeng.genai_client import SUMMARY_EMPTY, SUMMARY_UNAVAILABLE, GenAIClient, client_from_config


class _Resp(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


def _reply(text: str) -> _Resp:
    body = {"candidates": [{"content": {"parts": [{"text": text}]}}]}
    return _Resp(json.dumps(body).encode("utf-8"))


def _fake_urlopen(replies, seen):
    def urlopen(req, timeout=None):
        seen.append(req)
        reply = replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    return urlopen


def test_client_from_config_defaults():
    client = client_from_config({"GEMINI_API_KEY": "  key  "})
    assert client.api_key == "key"
    assert client.model == "gemini-1.5-flash"
    assert client.timeout_seconds == 30


def test_fetch_upcoming_expos_parses_json_array(monkeypatch):
    seen = []
    listings = [{"name": "IMTEX 2026", "date": "Jan 22-28, 2026"}, "junk"]
    monkeypatch.setattr(genai_client.urllib.request, "urlopen", _fake_urlopen([_reply(json.dumps(listings))], seen))

    items = GenAIClient(api_key="k").fetch_upcoming_expos("Die & Mould")

    assert items == [{"name": "IMTEX 2026", "date": "Jan 22-28, 2026"}]
    [req] = seen
    assert req.full_url.endswith("/models/gemini-1.5-flash:generateContent")
    assert req.get_header("X-goog-api-key") == "k"
    sent = json.loads(req.data)
    assert sent["generationConfig"]["responseMimeType"] == "application/json"
    assert "Die & Mould" in sent["contents"][0]["parts"][0]["text"]


def test_fetch_upcoming_expos_returns_empty_on_bad_payload(monkeypatch):
    monkeypatch.setattr(genai_client.urllib.request, "urlopen", _fake_urlopen([_reply("not json")], []))
    assert GenAIClient(api_key="k").fetch_upcoming_expos() == []

    monkeypatch.setattr(genai_client.urllib.request, "urlopen", _fake_urlopen([_reply('{"name": "x"}')], []))
    assert GenAIClient(api_key="k").fetch_upcoming_expos() == []


def test_missing_key_never_calls_out(monkeypatch):
    seen = []
    monkeypatch.setattr(genai_client.urllib.request, "urlopen", _fake_urlopen([], seen))
    assert GenAIClient(api_key="").fetch_upcoming_expos() == []
    assert GenAIClient(api_key="").generate_market_summary({"x": 1}) == SUMMARY_UNAVAILABLE
    assert seen == []


def test_rate_limit_is_retried(monkeypatch):
    monkeypatch.setattr(genai_client.time, "sleep", lambda s: None)
    limited = urllib.error.HTTPError("u", 429, "Too Many Requests", {}, io.BytesIO(b""))
    seen = []
    monkeypatch.setattr(
        genai_client.urllib.request, "urlopen", _fake_urlopen([limited, _reply("  Strong quarter.  ")], seen)
    )
    assert GenAIClient(api_key="k").generate_market_summary({"turnover": 1}) == "Strong quarter."
    assert len(seen) == 2


def test_client_error_is_not_retried(monkeypatch):
    bad = urllib.error.HTTPError("u", 400, "Bad Request", {}, io.BytesIO(b"bad prompt"))
    seen = []
    monkeypatch.setattr(genai_client.urllib.request, "urlopen", _fake_urlopen([bad], seen))
    assert GenAIClient(api_key="k").generate_market_summary({}) == SUMMARY_UNAVAILABLE
    assert len(seen) == 1


def test_empty_summary_text(monkeypatch):
    monkeypatch.setattr(genai_client.urllib.request, "urlopen", _fake_urlopen([_reply("   ")], []))
    assert GenAIClient(api_key="k").generate_market_summary({}) == SUMMARY_EMPTY


def test_dropped_connection_is_retried_then_degrades(monkeypatch):
    monkeypatch.setattr(genai_client.time, "sleep", lambda s: None)
    seen = []
    monkeypatch.setattr(
        genai_client.urllib.request,
        "urlopen",
        _fake_urlopen([ConnectionResetError("reset"), ConnectionResetError("reset"), ConnectionResetError("reset")], seen),
    )
    assert GenAIClient(api_key="k").fetch_upcoming_expos() == []
    assert len(seen) == 3

    seen.clear()
    monkeypatch.setattr(
        genai_client.urllib.request,
        "urlopen",
        _fake_urlopen([ConnectionResetError("reset"), _reply("Steady growth.")], seen),
    )
    assert GenAIClient(api_key="k").generate_market_summary({}) == "Steady growth."
    assert len(seen) == 2


def test_summary_unavailable_after_repeated_resets(monkeypatch):
    monkeypatch.setattr(genai_client.time, "sleep", lambda s: None)
    replies = [ConnectionResetError("reset") for _ in range(3)]
    monkeypatch.setattr(genai_client.urllib.request, "urlopen", _fake_urlopen(replies, []))
    assert GenAIClient(api_key="k").generate_market_summary({}) == SUMMARY_UNAVAILABLE


def test_null_text_part_is_empty_summary(monkeypatch):
    body = {"candidates": [{"content": {"parts": [{"text": None}]}}]}
    monkeypatch.setattr(
        genai_client.urllib.request, "urlopen", _fake_urlopen([_Resp(json.dumps(body).encode("utf-8"))], [])
    )
    assert GenAIClient(api_key="k").generate_market_summary({}) == SUMMARY_EMPTY


def test_unexpected_response_shapes_are_empty_summary(monkeypatch):
    bodies = [b"[]", b'{"candidates": "nope"}', b'{"candidates": [{"content": {"parts": "x"}}]}']
    for raw in bodies:
        monkeypatch.setattr(genai_client.urllib.request, "urlopen", _fake_urlopen([_Resp(raw)], []))
        assert GenAIClient(api_key="k").generate_market_summary({}) == SUMMARY_EMPTY
