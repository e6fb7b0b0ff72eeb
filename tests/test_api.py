"""Tests for API endpoints (no external API keys required)."""

from __future__ import annotations

import json
from collections.abc import Iterator
from unittest.mock import patch

import anthropic
import httpx
import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import _build_service, get_notes_service
from src.api.main import app
from src.config import Settings
from src.notes.service import NotesService
from src.pipeline_config import PipelineConfig
from tests.fakes import FakeClient, word_count

client = TestClient(app)


@pytest.fixture
def fake_llm() -> Iterator[FakeClient]:
    """Route every request through a NotesService backed by a scripted client."""
    llm = FakeClient()
    service = NotesService(llm, config=PipelineConfig.for_provider("local"), estimate=word_count)
    app.dependency_overrides[get_notes_service] = lambda: service
    yield llm
    app.dependency_overrides.clear()


def _overloaded() -> anthropic.APIStatusError:
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    return anthropic.APIStatusError(
        "Overloaded", response=httpx.Response(529, request=request), body=None
    )


def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


class TestEnhanceEndpoint:
    def test_enhance(self, fake_llm: FakeClient) -> None:
        fake_llm.replies = ["- **Launch**: Friday"]
        response = client.post(
            "/api/notes/enhance",
            json={
                "transcript": "",
                "turns": [{"speaker": "Alice", "text": "Ship Friday"}, {"text": "Agreed"}],
                "personal_notes": "launch",
            },
        )
        assert response.status_code == 200
        assert response.json() == {"notes": "- **Launch**: Friday", "template_id": "default-summary"}
        assert "[S1]: Ship Friday\n\nAgreed" in fake_llm.calls[0].user

    def test_custom_template(self, fake_llm: FakeClient) -> None:
        response = client.post(
            "/api/notes/enhance",
            json={
                "transcript": "Alice: hi",
                "custom_template": {"system_prompt": "Be terse.", "user_prompt": "Go: {transcript}"},
            },
        )
        assert response.status_code == 200
        assert response.json()["template_id"] == "custom"
        assert fake_llm.calls[0].system == "Be terse."
        assert fake_llm.calls[0].user.startswith("Go: Speaker labeling:")

    def test_invalid_custom_template_returns_400(self, fake_llm: FakeClient) -> None:
        response = client.post(
            "/api/notes/enhance",
            json={
                "transcript": "hi",
                "custom_template": {"system_prompt": "", "user_prompt": "{{#if hasTranscript}}"},
            },
        )
        assert response.status_code == 400
        assert "Unclosed" in response.json()["detail"]
        assert fake_llm.calls == []

    def test_unknown_template_returns_404(self, fake_llm: FakeClient) -> None:
        response = client.post(
            "/api/notes/enhance", json={"transcript": "hi", "template_id": "missing"}
        )
        assert response.status_code == 404

    def test_missing_input_returns_400(self, fake_llm: FakeClient) -> None:
        response = client.post("/api/notes/enhance", json={"transcript": " "})
        assert response.status_code == 400
        assert response.json()["detail"].startswith("Failed to enhance notes")

    def test_budget_exceeded_returns_413(self, fake_llm: FakeClient) -> None:
        fake_llm.default = " ".join(["verbose"] * 200)
        response = client.post(
            "/api/notes/enhance",
            json={
                "transcript": " ".join(["word"] * 400),
                "budget": {"max_prompt_tokens": 150, "max_chunk_tokens": 100},
            },
        )
        assert response.status_code == 413

    def test_non_positive_budget_rejected(self, fake_llm: FakeClient) -> None:
        response = client.post(
            "/api/notes/enhance", json={"transcript": "hi", "budget": {"max_chunk_tokens": 0}}
        )
        assert response.status_code == 422

    def test_provider_error_returns_502(self, fake_llm: FakeClient) -> None:
        fake_llm.replies = [RuntimeError("upstream exploded")]
        response = client.post("/api/notes/enhance", json={"transcript": "hi"})
        assert response.status_code == 502
        assert response.json()["detail"] == "Failed to enhance notes: upstream exploded"

    def test_overloaded_provider_returns_503(self, fake_llm: FakeClient) -> None:
        fake_llm.replies = [_overloaded()]
        response = client.post("/api/notes/enhance", json={"transcript": "hi"})
        assert response.status_code == 503
        assert "LLM unavailable" in response.json()["detail"]


class TestTranscriptFormats:
    VTT = """WEBVTT

00:00:01.000 --> 00:00:04.000
<v Alice>Ship Friday</v>

00:00:04.500 --> 00:00:06.000
<v You>Agreed</v>
"""

    def test_vtt_transcript(self, fake_llm: FakeClient) -> None:
        response = client.post(
            "/api/notes/enhance", json={"transcript": self.VTT, "transcript_format": "vtt"}
        )
        assert response.status_code == 200
        prompt = fake_llm.calls[0].user
        assert "[S1]: Ship Friday\n\n[You]: Agreed" in prompt
        assert "WEBVTT" not in prompt
        assert "-->" not in prompt

    def test_json_transcript_in_chat(self, fake_llm: FakeClient) -> None:
        body = json.dumps({"utterances": [{"speaker": "A", "text": "Budget is 5k"}]})
        response = client.post(
            "/api/chat",
            json={"question": "Budget?", "transcript": body, "transcript_format": "json"},
        )
        assert response.status_code == 200
        assert "[S1]: Budget is 5k" in fake_llm.calls[0].user
        assert "utterances" not in fake_llm.calls[0].user

    def test_explicit_turns_win(self, fake_llm: FakeClient) -> None:
        response = client.post(
            "/api/notes/title",
            json={
                "transcript": "not json",
                "transcript_format": "json",
                "turns": [{"speaker": "You", "text": "Roadmap"}],
            },
        )
        assert response.status_code == 200
        assert "[You]: Roadmap" in fake_llm.calls[0].user

    @pytest.mark.parametrize(
        "path", ["/api/notes/enhance", "/api/notes/dynamic", "/api/notes/title", "/api/chat"]
    )
    def test_malformed_json_returns_400(self, fake_llm: FakeClient, path: str) -> None:
        body = {"question": "Q?", "transcript": "{oops", "transcript_format": "json"}
        response = client.post(path, json=body)
        assert response.status_code == 400
        assert response.json()["detail"].startswith("Invalid json transcript")
        assert fake_llm.calls == []

    def test_unknown_format_rejected(self, fake_llm: FakeClient) -> None:
        response = client.post(
            "/api/notes/enhance", json={"transcript": "hi", "transcript_format": "srt"}
        )
        assert response.status_code == 422


class TestDynamicAndTitleEndpoints:
    def test_dynamic_note(self, fake_llm: FakeClient) -> None:
        fake_llm.replies = ["summary", "[]", "- **Highlights & Outcomes**: shipped"]
        response = client.post("/api/notes/dynamic", json={"transcript": "Alice: we shipped"})
        assert response.status_code == 200
        assert response.json() == {"notes": "- **Highlights & Outcomes**: shipped"}

    def test_dynamic_note_without_transcript(self, fake_llm: FakeClient) -> None:
        response = client.post("/api/notes/dynamic", json={"personal_notes": "only notes"})
        assert response.status_code == 400

    def test_title(self, fake_llm: FakeClient) -> None:
        fake_llm.replies = ['"Launch Planning"']
        response = client.post("/api/notes/title", json={"transcript": "Alice: launch"})
        assert response.json() == {"title": "Launch Planning"}

    def test_title_falls_back(self, fake_llm: FakeClient) -> None:
        fake_llm.replies = [RuntimeError("down")]
        response = client.post("/api/notes/title", json={"transcript": "Alice: launch"})
        assert response.status_code == 200
        assert response.json() == {"title": "Untitled Meeting"}


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class TestChatEndpoint:
    def test_chat(self, fake_llm: FakeClient) -> None:
        fake_llm.replies = ["Friday."]
        response = client.post(
            "/api/chat",
            json={"question": "When?", "transcript": "Alice: Friday", "enhanced_notes": "ship"},
        )
        assert response.status_code == 200
        assert response.json() == {"answer": "Friday."}
        assert "Enhanced Notes:\nship" in fake_llm.calls[0].user

    def test_question_required(self, fake_llm: FakeClient) -> None:
        response = client.post("/api/chat", json={"transcript": "hi"})
        assert response.status_code == 422

    def test_blank_question_returns_400(self, fake_llm: FakeClient) -> None:
        response = client.post("/api/chat", json={"question": "  "})
        assert response.status_code == 400
        assert fake_llm.calls == []


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


class TestTemplateEndpoints:
    def test_list(self) -> None:
        response = client.get("/api/templates")
        assert response.status_code == 200
        ids = [t["id"] for t in response.json()]
        assert ids == ["default-summary", "dynamic-note", "action-focused"]
        assert all(t["is_built_in"] for t in response.json())

    def test_validate(self) -> None:
        response = client.post(
            "/api/templates/validate", json={"user_prompt": "{{#if hasAgenda}}{x}{{/if}}"}
        )
        body = response.json()
        assert body["valid"] is False
        assert len(body["errors"]) == 2

    def test_validate_ok(self) -> None:
        response = client.post("/api/templates/validate", json={"user_prompt": "{transcript}"})
        assert response.json() == {"valid": True, "errors": []}


# ---------------------------------------------------------------------------
# Provider configuration
# ---------------------------------------------------------------------------


def test_missing_api_key_returns_501():
    """Without a configured key the service cannot be built; no external call is made."""
    _build_service.cache_clear()
    unconfigured = Settings(_env_file=None, llm_provider="openai", openai_api_key="")
    try:
        with patch("src.api.dependencies.settings", unconfigured):
            response = client.post("/api/notes/title", json={"transcript": "hi"})
    finally:
        _build_service.cache_clear()
    assert response.status_code == 501
    assert "not configured" in response.json()["detail"]
