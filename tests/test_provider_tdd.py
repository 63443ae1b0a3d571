from __future__ import annotations

import json
from pathlib import Path

import pytest
import requests

from quiz_bingo.content import OpenRouterProvider, StaticPoolProvider, image_to_data_uri
from quiz_bingo.content.openrouter import items_prompt, parse_items, strip_code_fence
from quiz_bingo.errors import GenerationError
from quiz_bingo.models import SubjectContext


class FakeResponse:
    def __init__(self, content=None, *, status: int = 200, reason: str = "OK"):
        self.status_code = status
        self.reason = reason
        self.ok = status < 400
        self._content = content
        self.text = "" if content is None else str(content)

    def json(self):
        return {"choices": [{"message": {"content": self._content}}]}


class FakeSession:
    def __init__(self, *responses, error: Exception | None = None):
        self.responses = list(responses)
        self.error = error
        self.calls = []

    def post(self, url, headers=None, json=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)


def provider(session: FakeSession) -> OpenRouterProvider:
    return OpenRouterProvider(api_key="test-key", session=session)


def test_strip_code_fence():
    assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence('  {"a": 1} ') == '{"a": 1}'


def test_parse_items_accepts_wrapped_and_bare_arrays():
    wrapped = parse_items({"items": [{"problem": "2+2", "answer": "4"}]})
    bare = parse_items([{"problem": "2+2", "answer": "4"}, {"problem": "", "answer": None}])
    assert [i.id for i in wrapped] == ["item-0"]
    assert bare[1].problem == "?" and bare[1].answer == "?"
    assert parse_items({}) == []
    with pytest.raises(GenerationError):
        parse_items("nonsense")


def test_items_prompt_by_mode():
    assert "Capitals" in items_prompt("Capitals", 12, False, "similar")
    assert "EXACTLY 12" in items_prompt("", 12, True, "exact")
    assert "similar" in items_prompt("", 12, True, "similar")


def test_detect_subject_parses_fenced_reply():
    session = FakeSession(FakeResponse('```json\n{"subject": "Mathematics", "isMath": true}\n```'))
    context = provider(session).detect_subject("fractions")
    assert context == SubjectContext("Mathematics", True)
    body = session.calls[0]["json"]
    assert body["response_format"] == {"type": "json_object"}
    assert session.calls[0]["headers"]["Authorization"] == "Bearer test-key"


def test_detect_subject_defaults_to_general():
    context = provider(FakeSession(FakeResponse("{}"))).detect_subject("things")
    assert context == SubjectContext("General", False)


def test_detect_subject_needs_topic_or_image():
    with pytest.raises(ValueError):
        provider(FakeSession()).detect_subject("")


def test_generate_items_sends_image_and_returns_items(tmp_path: Path):
    image = tmp_path / "sheet.png"
    image.write_bytes(b"\x89PNG fake")
    reply = json.dumps({"items": [{"problem": f"q{i}", "answer": f"a{i}"} for i in range(3)]})
    session = FakeSession(FakeResponse(reply))
    items = provider(session).generate_items(SubjectContext("History"), "", 3, str(image), "exact")

    assert [i.answer for i in items] == ["a0", "a1", "a2"]
    user = session.calls[0]["json"]["messages"][1]["content"]
    assert user[1]["image_url"]["url"].startswith("data:image/png;base64,")


def test_generate_items_rejects_unknown_mode():
    with pytest.raises(ValueError):
        provider(FakeSession()).generate_items(SubjectContext("History"), "Rome", 3, None, "loose")


def test_http_error_becomes_generation_error():
    session = FakeSession(FakeResponse("quota", status=429, reason="Too Many Requests"))
    with pytest.raises(GenerationError, match="429"):
        provider(session).generate_items(SubjectContext("History"), "Rome", 3)


def test_network_error_becomes_generation_error():
    session = FakeSession(error=requests.ConnectionError("offline"))
    with pytest.raises(GenerationError):
        provider(session).detect_subject("Rome")


def test_unparseable_reply_becomes_generation_error():
    with pytest.raises(GenerationError):
        provider(FakeSession(FakeResponse("not json"))).detect_subject("Rome")


def test_missing_api_key(monkeypatch):
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    monkeypatch.delenv("API_KEY", raising=False)
    session = FakeSession()
    with pytest.raises(GenerationError, match="API key"):
        OpenRouterProvider(session=session).detect_subject("Rome")
    assert session.calls == []


def test_image_to_data_uri_passthrough():
    assert image_to_data_uri(None) is None
    assert image_to_data_uri("data:image/png;base64,AAA") == "data:image/png;base64,AAA"


def test_static_pool_from_json(tmp_path: Path):
    path = tmp_path / "pool.json"
    path.write_text(
        json.dumps(
            {
                "subject": "Algebra",
                "isMath": True,
                "items": [{"problem": f"x+{i}=5", "answer": str(5 - i)} for i in range(5)],
            }
        ),
        encoding="utf-8",
    )
    source = StaticPoolProvider(path)
    context = source.detect_subject("")
    assert context == SubjectContext("Algebra", True)
    items = source.generate_items(context, "", 3)
    assert [i.id for i in items] == ["item-0", "item-1", "item-2"]


def test_static_pool_from_yaml_list(tmp_path: Path):
    path = tmp_path / "pool.yaml"
    path.write_text("- problem: Capital of France\n  answer: Paris\n", encoding="utf-8")
    source = StaticPoolProvider(path)
    assert source.detect_subject("Capitals") == SubjectContext("Capitals", False)
    assert source.generate_items(SubjectContext("Capitals"), "", 10)[0].answer == "Paris"


def test_static_pool_missing_file(tmp_path: Path):
    with pytest.raises(GenerationError):
        StaticPoolProvider(tmp_path / "missing.json").detect_subject("x")


def test_parse_items_drops_repeated_answers():
    items = parse_items(
        [
            {"problem": "Capital of France", "answer": "Paris"},
            {"problem": "City of light", "answer": " paris "},
            {"problem": "Capital of Italy", "answer": "Rome"},
        ]
    )
    assert [(i.id, i.answer) for i in items] == [("item-0", "Paris"), ("item-1", "Rome")]


def test_generate_items_keeps_only_requested_count():
    reply = json.dumps({"items": [{"problem": f"q{i}", "answer": f"a{i}"} for i in range(5)]})
    items = provider(FakeSession(FakeResponse(reply))).generate_items(SubjectContext("History"), "Rome", 3)
    assert [i.id for i in items] == ["item-0", "item-1", "item-2"]


def test_unreadable_image_becomes_generation_error(tmp_path: Path):
    session = FakeSession()
    with pytest.raises(GenerationError, match="reference image"):
        provider(session).generate_items(SubjectContext("History"), "", 3, str(tmp_path / "nope.png"))
    assert session.calls == []
