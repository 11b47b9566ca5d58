"""Runtime configuration, read from the environment (and ``.env``)."""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

from . import constants

DEFAULT_PROVIDER = "groq"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
DEFAULT_MAX_TOKENS = 512
DEFAULT_TEMPERATURE = 0.7


@dataclass(frozen=True)
class ServiceConfig:
    """Settings for the explanation service."""

    provider: str = DEFAULT_PROVIDER
    model: str = ""
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> ServiceConfig:
        if load_env_file:
            load_dotenv(find_dotenv(usecwd=True))
        return cls(
            provider=os.environ.get("CODESPARK_LLM_PROVIDER", DEFAULT_PROVIDER),
            model=os.environ.get("CODESPARK_LLM_MODEL", ""),
            max_tokens=int(os.environ.get("CODESPARK_MAX_TOKENS", DEFAULT_MAX_TOKENS)),
            temperature=float(
                os.environ.get("CODESPARK_TEMPERATURE", DEFAULT_TEMPERATURE)
            ),
            host=os.environ.get("CODESPARK_HOST", DEFAULT_HOST),
            port=int(os.environ.get("CODESPARK_PORT", DEFAULT_PORT)),
        )


@dataclass(frozen=True)
class ClientConfig:
    """Settings for a stepping session talking to the explanation service."""

    service_url: str = constants.DEFAULT_SERVICE_URL
    timeout_s: float = constants.DEFAULT_TIMEOUT_S
    animation_speed: float = 1.0

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> ClientConfig:
        if load_env_file:
            load_dotenv(find_dotenv(usecwd=True))
        return cls(
            service_url=os.environ.get(
                "CODESPARK_SERVICE_URL", constants.DEFAULT_SERVICE_URL
            ),
            timeout_s=float(
                os.environ.get("CODESPARK_TIMEOUT_S", constants.DEFAULT_TIMEOUT_S)
            ),
            animation_speed=float(os.environ.get("CODESPARK_ANIMATION_SPEED", 1.0)),
        )
