"""Explanation requester — asks the explanation service for learner-facing text.

Every public coroutine resolves to displayable text: transport failures and
malformed bodies are turned into tagged results at the boundary and then into
canned, line-kind-specific fallback strings. Requests are never retried.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Union

import httpx
from pydantic import BaseModel, ValidationError

from .errors import MalformedResponseError, TransportError
from .plan_types import LineKind, Step
from . import constants

logger = logging.getLogger(__name__)

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


# ── Response shapes ──────────────────────────────────────────────


class _Part(BaseModel):
    text: str


class _Content(BaseModel):
    parts: list[_Part]


class _Candidate(BaseModel):
    content: _Content


class GenerationResponse(BaseModel):
    """``{candidates: [{content: {parts: [{text}]}}]}``"""

    candidates: list[_Candidate]

    def first_text(self) -> str:
        if not self.candidates or not self.candidates[0].content.parts:
            raise MalformedResponseError("response has no candidate text")
        return self.candidates[0].content.parts[0].text


class ChatResponse(BaseModel):
    reply: str


@dataclass(frozen=True)
class ExplanationOk:
    text: str


@dataclass(frozen=True)
class ExplanationMalformed:
    reason: str


@dataclass(frozen=True)
class ExplanationTransportFailure:
    reason: str


ExplanationResult = Union[ExplanationOk, ExplanationMalformed, ExplanationTransportFailure]


# ── Chat history ─────────────────────────────────────────────────


@dataclass(frozen=True)
class ChatTurn:
    role: str  # "user" or "model"
    text: str

    def to_payload(self) -> dict[str, Any]:
        return {"role": self.role, "parts": [{"text": self.text}]}


@dataclass
class ChatHistory:
    turns: list[ChatTurn] = field(default_factory=list)

    def record(self, query: str, reply: str) -> None:
        self.turns.append(ChatTurn(role="user", text=query))
        self.turns.append(ChatTurn(role="model", text=reply))

    def to_payload(self) -> list[dict[str, Any]]:
        return [turn.to_payload() for turn in self.turns]

    def __len__(self) -> int:
        return len(self.turns)


# ── Fallbacks ────────────────────────────────────────────────────


def step_fallback(
    step: Step, variables: dict[str, str], name: str | None = None
) -> str:
    """Canned explanation used when the service cannot answer for *step*."""
    if step.kind == LineKind.INPUT:
        if name is None and variables:
            name = list(variables)[-1]
        if name is not None:
            return constants.FALLBACK_INPUT.format(
                value=variables.get(name, ""), name=name
            )
    if step.kind == LineKind.PRINT:
        return constants.FALLBACK_PRINT
    return constants.FALLBACK_LINE.format(line=step.display_line, code=step.code)


def parse_program_explanation(text: str) -> list[str]:
    """Split model text into per-line explanations.

    Prefers the first JSON array found in *text*; otherwise every non-blank
    line is one explanation.
    """
    match = _JSON_ARRAY.search(text)
    if match is not None:
        try:
            items = json.loads(match.group(0))
        except json.JSONDecodeError:
            logger.debug("Explanation array did not parse; splitting lines")
        else:
            if isinstance(items, list):
                return [str(item) for item in items]
    return [line for line in text.split("\n") if line.strip()]


# ── Requester ────────────────────────────────────────────────────


class ExplanationRequester:
    """Async client for the explanation service.

    Args:
        base_url: Root URL of the explanation service.
        timeout: Seconds before a request counts as a transport failure.
        transport: Optional httpx transport (``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        base_url: str = constants.DEFAULT_SERVICE_URL,
        timeout: float = constants.DEFAULT_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url, timeout=timeout, transport=transport
        )

    async def _post(self, path: str, payload: dict[str, Any]) -> Any:
        try:
            response = await self._client.post(path, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise TransportError(f"{path}: {exc}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponseError(f"{path}: body is not JSON") from exc

    async def _generate(self, path: str, payload: dict[str, Any]) -> ExplanationResult:
        try:
            body = await self._post(path, payload)
            text = GenerationResponse.model_validate(body).first_text()
        except TransportError as exc:
            logger.warning("Explanation service unreachable: %s", exc)
            return ExplanationTransportFailure(reason=str(exc))
        except (MalformedResponseError, ValidationError) as exc:
            logger.warning("Malformed explanation response from %s: %s", path, exc)
            return ExplanationMalformed(reason=str(exc))
        return ExplanationOk(text=text.strip())

    async def fetch(self, code: str, context: str) -> ExplanationResult:
        """Request a short tutorial explanation of *code* given *context*."""
        return await self._generate(
            constants.TUTORIAL_EXPLANATION_PATH, {"code": code, "output": context}
        )

    async def explain_step(
        self,
        step: Step,
        context: str,
        variables: dict[str, str],
        name: str | None = None,
    ) -> str:
        result = await self.fetch(step.code, context)
        if isinstance(result, ExplanationOk) and result.text:
            return result.text
        return step_fallback(step, variables, name)

    async def explain_error(
        self, code: str, message: str, fallback: str = constants.FALLBACK_ERROR
    ) -> str:
        result = await self.fetch(code, message)
        if isinstance(result, ExplanationOk) and result.text:
            return result.text
        return fallback

    async def explain_program(self, code: str, input_history: list[str]) -> list[str]:
        """Whole-program, line-by-line explanation (BM style)."""
        result = await self._generate(
            constants.PROGRAM_EXPLANATION_PATH,
            {"code": code, "inputHistory": list(input_history)},
        )
        if isinstance(result, ExplanationOk):
            lines = parse_program_explanation(result.text)
            if lines:
                return lines
        return list(constants.FALLBACK_PROGRAM)

    async def chat(
        self, query: str, code: str, output: str, history: ChatHistory
    ) -> str:
        """Ask the assistant a follow-up question; records the turn on success."""
        payload = {
            "query": query,
            "code": code,
            "output": output,
            "history": history.to_payload(),
        }
        try:
            body = await self._post(constants.CHAT_PATH, payload)
            reply = ChatResponse.model_validate(body).reply
        except (TransportError, MalformedResponseError, ValidationError) as exc:
            logger.warning("Assistant chat failed: %s", exc)
            return constants.FALLBACK_CHAT
        history.record(query, reply)
        return reply

    async def aclose(self) -> None:
        await self._client.aclose()
