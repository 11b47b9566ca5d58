"""Explanation service — a small FastAPI app in front of an LLM provider.

Responses to the two explanation routes use the candidates/content/parts
envelope the stepping client already parses; the chat route returns
``{"reply": ...}``.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .config import ServiceConfig
from .llm_client import LLMClient, Message
from . import constants, prompts

logger = logging.getLogger(__name__)

CHAT_MAX_TOKENS = 80
CHAT_TEMPERATURE = 0.6
CHAT_ERROR = "Assistant is thinking... try again!"
MISSING_CODE_ERROR = "Missing code in request body."


class TutorialRequest(BaseModel):
    code: str = ""
    output: str = ""


class ProgramRequest(BaseModel):
    code: str = ""
    inputHistory: list[str] | None = None


class TurnPart(BaseModel):
    text: str = ""


class HistoryTurn(BaseModel):
    role: str
    parts: list[TurnPart] = Field(default_factory=list)

    def to_message(self) -> Message:
        role = "assistant" if self.role == "model" else "user"
        text = self.parts[0].text if self.parts else ""
        return {"role": role, "content": text}


class ChatRequest(BaseModel):
    query: str
    code: str = ""
    output: str = ""
    history: list[HistoryTurn] = Field(default_factory=list)


def generation_envelope(text: str) -> dict[str, Any]:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def _llm_failure(exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=502, content={"error": "LLM provider error", "details": str(exc)}
    )


def create_app(llm_client: LLMClient, config: ServiceConfig | None = None) -> FastAPI:
    """Build the app around *llm_client*; nothing is read from globals."""
    config = config or ServiceConfig()
    app = FastAPI(title="codespark explanation service", version="0.1")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    def complete(system_prompt: str, user_message: str, **kwargs: Any) -> str:
        kwargs.setdefault("max_tokens", config.max_tokens)
        kwargs.setdefault("temperature", config.temperature)
        return llm_client.complete(system_prompt, user_message, **kwargs)

    # Plain ``def`` handlers: provider SDK calls block, so FastAPI runs them
    # in its threadpool.

    @app.post(constants.TUTORIAL_EXPLANATION_PATH)
    def tutorial_explanation(req: TutorialRequest):
        logger.info("Tutorial explanation for %r", req.code)
        try:
            text = complete(
                prompts.TUTORIAL_SYSTEM_PROMPT, prompts.tutorial_prompt(req.code, req.output)
            )
        except Exception as exc:  # provider SDKs raise their own error types
            logger.warning("Tutorial explanation failed: %s", exc)
            return _llm_failure(exc)
        return generation_envelope(text)

    @app.post(constants.PROGRAM_EXPLANATION_PATH)
    def program_explanation(req: ProgramRequest):
        if not req.code:
            return JSONResponse(status_code=400, content={"error": MISSING_CODE_ERROR})
        logger.info("Program explanation, %d inputs", len(req.inputHistory or []))
        try:
            text = complete(
                prompts.PROGRAM_SYSTEM_PROMPT,
                prompts.program_prompt(req.code, req.inputHistory),
            )
        except Exception as exc:  # provider SDKs raise their own error types
            logger.warning("Program explanation failed: %s", exc)
            return _llm_failure(exc)
        return generation_envelope(text)

    @app.post(constants.CHAT_PATH)
    def chat_with_assistant(req: ChatRequest):
        history = [turn.to_message() for turn in req.history[-constants.CHAT_CONTEXT_TURNS:]]
        logger.info("Chat query with %d prior turns", len(history))
        try:
            reply = complete(
                prompts.chat_system_prompt(req.code, req.output),
                req.query,
                history=history,
                max_tokens=CHAT_MAX_TOKENS,
                temperature=CHAT_TEMPERATURE,
            )
        except Exception as exc:  # provider SDKs raise their own error types
            logger.warning("Chat failed: %s", exc)
            return JSONResponse(status_code=500, content={"error": CHAT_ERROR})
        return {"reply": reply}

    return app
