"""Tests for codespark.config."""

from __future__ import annotations

from codespark import constants
from codespark.config import ClientConfig, ServiceConfig


class TestServiceConfig:
    def test_defaults(self, monkeypatch):
        for name in ("CODESPARK_LLM_PROVIDER", "CODESPARK_LLM_MODEL", "CODESPARK_PORT",
                     "CODESPARK_HOST", "CODESPARK_MAX_TOKENS", "CODESPARK_TEMPERATURE"):
            monkeypatch.delenv(name, raising=False)
        config = ServiceConfig.from_env(load_env_file=False)
        assert config == ServiceConfig()
        assert config.port == 3000

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("CODESPARK_LLM_PROVIDER", "claude")
        monkeypatch.setenv("CODESPARK_LLM_MODEL", "claude-haiku")
        monkeypatch.setenv("CODESPARK_PORT", "8080")
        monkeypatch.setenv("CODESPARK_TEMPERATURE", "0.2")
        config = ServiceConfig.from_env(load_env_file=False)
        assert config.provider == "claude"
        assert config.model == "claude-haiku"
        assert config.port == 8080
        assert config.temperature == 0.2

    def test_dotenv_file(self, monkeypatch, tmp_path):
        monkeypatch.delenv("CODESPARK_LLM_PROVIDER", raising=False)
        (tmp_path / ".env").write_text("CODESPARK_LLM_PROVIDER=ollama\n")
        monkeypatch.chdir(tmp_path)
        assert ServiceConfig.from_env().provider == "ollama"


class TestClientConfig:
    def test_defaults(self, monkeypatch):
        for name in ("CODESPARK_SERVICE_URL", "CODESPARK_TIMEOUT_S", "CODESPARK_ANIMATION_SPEED"):
            monkeypatch.delenv(name, raising=False)
        config = ClientConfig.from_env(load_env_file=False)
        assert config.service_url == constants.DEFAULT_SERVICE_URL
        assert config.timeout_s == constants.DEFAULT_TIMEOUT_S
        assert config.animation_speed == 1.0

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("CODESPARK_SERVICE_URL", "http://explain.local:9000")
        monkeypatch.setenv("CODESPARK_ANIMATION_SPEED", "0")
        config = ClientConfig.from_env(load_env_file=False)
        assert config.service_url == "http://explain.local:9000"
        assert config.animation_speed == 0.0
