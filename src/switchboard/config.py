"""Configuration loader with YAML parsing, env-var interpolation, and Pydantic validation."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Literal, Optional

import pydantic
import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

from switchboard.errors import ConfigError


class GatewayConfig(BaseModel):
    backend: Literal["anthropic", "claude_code"] = "anthropic"
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 1000
    temperature: float = 0.7
    system_prompt: str = ""


class AnthropicConfig(BaseModel):
    api_key: str
    base_url: Optional[str] = None
    max_retries: int = 3
    timeout: int = 120


class ClaudeCodeConfig(BaseModel):
    cli_path: str = "claude"
    model: str = "sonnet"
    timeout: int = 300


class SearchConfig(BaseModel):
    endpoint: str = "https://api.bing.microsoft.com/v7.0/search"
    api_key: str = ""  # raw key or JSON secret {"apiKey": ...}
    timeout: float = 10.0
    max_results: int = Field(default=5, ge=1, le=5)


class CodeExecutionConfig(BaseModel):
    backend: Literal["subprocess", "http"] = "subprocess"
    python_path: str = "python3"
    node_path: str = "node"
    timeout: int = 30
    max_output_chars: int = 20000
    sandbox_url: Optional[str] = None


class StorageConfig(BaseModel):
    db_path: str = "./data/switchboard.db"


class ChatConfig(BaseModel):
    history_limit: int = Field(default=20, ge=1)
    title_max_length: int = Field(default=50, ge=1)


class AppConfig(BaseModel):
    log_level: str = "INFO"
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    anthropic: Optional[AnthropicConfig] = None
    claude_code: ClaudeCodeConfig = Field(default_factory=ClaudeCodeConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    code_execution: CodeExecutionConfig = Field(default_factory=CodeExecutionConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    chat: ChatConfig = Field(default_factory=ChatConfig)

    @model_validator(mode="after")
    def _check_backends(self) -> AppConfig:
        if self.gateway.backend == "anthropic" and self.anthropic is None:
            raise ValueError("gateway backend 'anthropic' requires an 'anthropic' section")
        if self.code_execution.backend == "http" and not self.code_execution.sandbox_url:
            raise ValueError("code_execution backend 'http' requires 'sandbox_url'")
        return self


_ENV_VAR_PATTERN = re.compile(r"\$\{(\w+)\}")


def _interpolate_env_vars(text: str, missing: set[str] | None = None) -> str:
    """Replace ${VAR_NAME} patterns with environment variable values.

    Unresolved names are left in place and collected into *missing*.
    """

    def _replace(match: re.Match) -> str:
        var_name = match.group(1)
        value = os.environ.get(var_name)
        if value is None:
            if missing is not None:
                missing.add(var_name)
            return match.group(0)
        return value

    return _ENV_VAR_PATTERN.sub(_replace, text)


def _format_validation_error(exc: pydantic.ValidationError) -> str:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"]) or "(root)"
        problems.append(f"{location}: {err['msg']}")
    return "; ".join(problems)


def load_config(config_path: str | Path = "config.yaml", env_path: str | Path = ".env") -> AppConfig:
    """Load and validate configuration from YAML file with env-var interpolation.

    Every referenced environment variable is checked before validation, and all
    missing names are reported together in one :class:`ConfigError`.
    """
    env_file = Path(env_path)
    if env_file.exists():
        load_dotenv(env_file)

    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_file}")

    raw_text = config_file.read_text(encoding="utf-8")

    missing: set[str] = set()
    interpolated = _interpolate_env_vars(raw_text, missing)
    if missing:
        raise ConfigError(
            f"Missing required environment variables: {', '.join(sorted(missing))}"
        )

    data = yaml.safe_load(interpolated) or {}
    try:
        return AppConfig(**data)
    except pydantic.ValidationError as e:
        raise ConfigError(f"Invalid configuration: {_format_validation_error(e)}") from e
