"""Unit tests for configuration."""

import logging

import pytest

from agent_job_orchestrator.core.config import LLMConfig, OrchestratorConfig, RuntimeConfig
from agent_job_orchestrator.server.config import ServerSettings


def test_llm_config_defaults() -> None:
    """Test LLM config default values."""
    config = LLMConfig(openai_api_key="test-key")

    assert config.provider == "openai"
    assert config.openai_model == "gpt-4"
    assert config.openai_temperature == 0.7
    assert config.llama_n_ctx == 4096
    assert config.batch_size == 8


def test_runtime_config_defaults() -> None:
    config = RuntimeConfig()

    assert config.job_restart == "permanent"
    assert config.finalize_template is None


def test_llm_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ORCHESTRATOR_LLM_PROVIDER", "http")
    monkeypatch.setenv("ORCHESTRATOR_LLM_HTTP_URL", "http://localhost:8080/generate")
    monkeypatch.setenv("ORCHESTRATOR_RUNTIME_JOB_RESTART", "transient")

    assert LLMConfig().http_url == "http://localhost:8080/generate"
    assert LLMConfig().provider == "http"
    assert RuntimeConfig().job_restart == "transient"


def test_invalid_restart_policy_rejected() -> None:
    with pytest.raises(ValueError):
        RuntimeConfig(job_restart="sometimes")


def test_orchestrator_config_composition() -> None:
    """Test orchestrator config with nested configs."""
    config = OrchestratorConfig(
        log_level="DEBUG",
        debug=True,
    )

    assert config.log_level == "DEBUG"
    assert config.debug is True
    assert isinstance(config.llm, LLMConfig)
    assert isinstance(config.runtime, RuntimeConfig)


def test_setup_logging_debug() -> None:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    package_logger = logging.getLogger("agent_job_orchestrator")
    try:
        OrchestratorConfig(log_level="WARNING", debug=True).setup_logging()

        assert root.level == logging.WARNING
        assert package_logger.level == logging.DEBUG
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
        for handler in handlers:
            root.addHandler(handler)
        root.setLevel(level)
        package_logger.setLevel(logging.NOTSET)


def test_server_settings_cors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ORCHESTRATOR_SERVER_CORS_ORIGINS", "http://a.test, ,http://b.test")

    assert ServerSettings().parsed_cors_origins() == ["http://a.test", "http://b.test"]
