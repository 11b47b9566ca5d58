"""Tests for codespark.server — the FastAPI explanation service."""

from __future__ import annotations

import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from codespark import constants
from codespark.config import ServiceConfig
from codespark.explainer import ExplanationRequester
from codespark.llm_client import LLMClient
from codespark.plan_types import LineKind, Step
from codespark.server import CHAT_ERROR, MISSING_CODE_ERROR, create_app


class FakeLLMClient(LLMClient):
    """Returns a fixed response and records every call."""

    def __init__(self, response: str = "Python made a box!"):
        self._response = response
        self.calls: list[dict] = []

    def complete(self, system_prompt, user_message, max_tokens=512, history=None,
                 temperature=0.7):
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_message": user_message,
                "max_tokens": max_tokens,
                "history": history,
                "temperature": temperature,
            }
        )
        return self._response


class FailingLLMClient(LLMClient):
    """LLM client that always raises an exception."""

    def complete(self, system_prompt, user_message, max_tokens=512, history=None,
                 temperature=0.7):
        raise ConnectionError("LLM service unavailable")


@pytest.fixture
def llm():
    return FakeLLMClient()


@pytest.fixture
def client(llm):
    return TestClient(create_app(llm, ServiceConfig(max_tokens=300, temperature=0.5)))


class TestTutorialExplanation:
    def test_envelope(self, client):
        response = client.post(
            constants.TUTORIAL_EXPLANATION_PATH, json={"code": "x = 5", "output": "{}"}
        )
        assert response.status_code == 200
        assert response.json()["candidates"][0]["content"]["parts"][0]["text"] == (
            "Python made a box!"
        )

    def test_prompt_and_config(self, client, llm):
        client.post(
            constants.TUTORIAL_EXPLANATION_PATH, json={"code": "print(area)", "output": "200"}
        )
        call = llm.calls[0]
        assert "10-year-old" in call["user_message"]
        assert "print(area)" in call["user_message"]
        assert "200" in call["user_message"]
        assert call["max_tokens"] == 300
        assert call["temperature"] == 0.5

    def test_llm_failure_is_502(self):
        client = TestClient(create_app(FailingLLMClient()))
        response = client.post(constants.TUTORIAL_EXPLANATION_PATH, json={"code": "x"})
        assert response.status_code == 502
        assert response.json()["details"] == "LLM service unavailable"


class TestProgramExplanation:
    def test_missing_code_is_400(self, client, llm):
        response = client.post(constants.PROGRAM_EXPLANATION_PATH, json={"inputHistory": []})
        assert response.status_code == 400
        assert response.json() == {"error": MISSING_CODE_ERROR}
        assert llm.calls == []

    def test_input_history_in_prompt(self, client, llm):
        response = client.post(
            constants.PROGRAM_EXPLANATION_PATH,
            json={"code": "a = input()\nb = input()", "inputHistory": ["3", "4"]},
        )
        assert response.status_code == 200
        prompt = llm.calls[0]["user_message"]
        assert "Input #1: 3\nInput #2: 4" in prompt
        assert "```python\na = input()\nb = input()\n```" in prompt
        assert "BM Style" in llm.calls[0]["system_prompt"]

    def test_no_inputs(self, client, llm):
        client.post(constants.PROGRAM_EXPLANATION_PATH, json={"code": "x = 1"})
        assert "No input provided." in llm.calls[0]["user_message"]

    def test_llm_failure_is_502(self):
        client = TestClient(create_app(FailingLLMClient()))
        response = client.post(constants.PROGRAM_EXPLANATION_PATH, json={"code": "x = 1"})
        assert response.status_code == 502
        assert set(response.json()) == {"error", "details"}


class TestChat:
    def _history(self, n):
        return [
            {"role": "user" if i % 2 == 0 else "model", "parts": [{"text": f"turn {i}"}]}
            for i in range(n)
        ]

    def test_reply(self, client):
        response = client.post(constants.CHAT_PATH, json={"query": "help?"})
        assert response.status_code == 200
        assert response.json() == {"reply": "Python made a box!"}

    def test_only_last_four_turns_forwarded(self, client, llm):
        client.post(
            constants.CHAT_PATH,
            json={"query": "why?", "code": "print(a+b)", "output": "34",
                  "history": self._history(6)},
        )
        call = llm.calls[0]
        assert [m["content"] for m in call["history"]] == ["turn 2", "turn 3", "turn 4", "turn 5"]
        assert [m["role"] for m in call["history"]] == ["user", "assistant", "user", "assistant"]
        assert call["user_message"] == "why?"
        assert "print(a+b)" in call["system_prompt"]
        assert call["max_tokens"] == 80

    def test_failure_is_500(self):
        client = TestClient(create_app(FailingLLMClient()))
        response = client.post(constants.CHAT_PATH, json={"query": "hi"})
        assert response.status_code == 500
        assert response.json() == {"error": CHAT_ERROR}


class TestRequesterAgainstService:
    def test_requester_round_trip(self, llm):
        app = create_app(llm)

        async def scenario():
            requester = ExplanationRequester(
                "http://testserver", transport=httpx.ASGITransport(app=app)
            )
            try:
                step = Step(0, "x = 5", LineKind.ASSIGNMENT)
                text = await requester.explain_step(step, '{"x": "5"}', {"x": "5"})
                lines = await requester.explain_program("x = 5", [])
                return text, lines
            finally:
                await requester.aclose()

        llm._response = '["Line 1 → x gets 5"]'
        text, lines = asyncio.run(scenario())
        assert text == '["Line 1 → x gets 5"]'
        assert lines == ["Line 1 → x gets 5"]
