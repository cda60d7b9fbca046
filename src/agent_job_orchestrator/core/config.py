"""Core configuration for the orchestrator."""

import logging
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from agent_job_orchestrator.core.logging import configure_logging


class LLMConfig(BaseSettings):
    """Configuration for the serving backend built from settings."""

    provider: Literal["openai", "llama", "http"] = Field(
        default="openai",
        description="Backend used for servings created from settings",
    )

    # OpenAI settings
    openai_api_key: str | None = Field(
        default=None,
        description="OpenAI API key",
    )
    openai_model: str = Field(
        default="gpt-4",
        description="OpenAI model to use",
    )
    openai_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Temperature for OpenAI model",
    )

    # LLaMA settings
    llama_model_path: Path | None = Field(
        default=None,
        description="Path to LLaMA model file",
    )
    llama_n_ctx: int = Field(
        default=4096,
        gt=0,
        description="Context window size for LLaMA",
    )
    llama_n_threads: int | None = Field(
        default=None,
        description="Number of threads for LLaMA (None = auto)",
    )
    llama_max_tokens: int = Field(
        default=512,
        gt=0,
        description="Maximum tokens generated per prompt",
    )

    # Batching (batch-model servings)
    batch_size: int = Field(
        default=8,
        gt=0,
        description="Maximum number of prompts run in one batch",
    )
    batch_timeout_seconds: float = Field(
        default=0.01,
        ge=0.0,
        description="How long a batch waits for more prompts before running",
    )

    # Generic HTTP worker settings
    http_url: str | None = Field(
        default=None,
        description="Endpoint receiving {'prompt', 'input', ...} and returning text",
    )
    http_timeout_seconds: float = Field(
        default=60.0,
        gt=0.0,
        description="HTTP request timeout",
    )

    model_config = SettingsConfigDict(
        env_prefix="ORCHESTRATOR_LLM_",
        env_file=".env",
        extra="ignore",
    )


class RuntimeConfig(BaseSettings):
    """Configuration for job supervision."""

    job_restart: Literal["permanent", "transient", "temporary"] = Field(
        default="permanent",
        description=(
            "Restart policy for job engines. 'permanent' replaces an engine after it "
            "completes or fails, 'transient' only after a failure."
        ),
    )
    finalize_template: str | None = Field(
        default=None,
        description=(
            "Template applied to prompts of servings built from settings, e.g. "
            "'<s>[INST]{prompt}[/INST]'. None sends the prompt unchanged."
        ),
    )

    model_config = SettingsConfigDict(
        env_prefix="ORCHESTRATOR_RUNTIME_",
        env_file=".env",
        extra="ignore",
    )


class OrchestratorConfig(BaseSettings):
    """Main configuration for the orchestrator."""

    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    llm: LLMConfig = Field(
        default_factory=LLMConfig,
        description="LLM configuration",
    )
    runtime: RuntimeConfig = Field(
        default_factory=RuntimeConfig,
        description="Runtime configuration",
    )

    model_config = SettingsConfigDict(
        env_prefix="ORCHESTRATOR_",
        env_file=".env",
        extra="ignore",
    )

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        configure_logging(self.log_level)

        if self.debug:
            logging.getLogger("agent_job_orchestrator").setLevel(logging.DEBUG)
