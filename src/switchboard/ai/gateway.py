"""Language model gateway with Anthropic API and Claude Code CLI backends."""

from __future__ import annotations

import asyncio
import json
import os
import platform
import shutil
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator

import httpx

from switchboard.config import AnthropicConfig, ClaudeCodeConfig, GatewayConfig
from switchboard.errors import ConfigError, GatewayError
from switchboard.log import get_logger

logger = get_logger(__name__)


class LLMGateway(ABC):
    """Abstract base class for language model backends."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        ...

    @abstractmethod
    async def generate(self, messages: list[dict[str, Any]]) -> str:
        """Return the complete response text for a message list.

        Raises GatewayError when the remote call fails or its payload is malformed.
        """
        ...

    @abstractmethod
    def generate_stream(self, messages: list[dict[str, Any]]) -> AsyncIterator[str]:
        """Yield response text fragments in order. The iterator is not restartable."""
        ...


def split_system(
    messages: list[dict[str, Any]], base_system: str = ""
) -> tuple[str, list[dict[str, Any]]]:
    """Lift system-role messages into a system prompt and normalize content to parts."""
    system_parts = [base_system] if base_system else []
    api_messages: list[dict[str, Any]] = []
    for msg in messages:
        role = msg.get("role", "user")
        content = msg.get("content", "")
        if role == "system":
            text = content if isinstance(content, str) else "\n".join(
                p.get("text", "") for p in content if p.get("type") == "text"
            )
            if text:
                system_parts.append(text)
            continue
        if isinstance(content, str):
            content = [{"type": "text", "text": content}]
        api_messages.append({"role": role, "content": content})
    return "\n\n".join(system_parts), api_messages


class AnthropicGateway(LLMGateway):
    """Anthropic API backend using the official SDK."""

    def __init__(
        self,
        config: AnthropicConfig,
        gateway_config: GatewayConfig,
        http_client: httpx.AsyncClient | None = None,
    ):
        import anthropic

        self._anthropic = anthropic
        self._client = anthropic.AsyncAnthropic(
            api_key=config.api_key,
            base_url=config.base_url,
            max_retries=config.max_retries,
            timeout=config.timeout,
            http_client=http_client,
        )
        self._config = gateway_config

    @property
    def model_name(self) -> str:
        return self._config.model

    def _request_kwargs(self, messages: list[dict[str, Any]]) -> dict[str, Any]:
        system, api_messages = split_system(messages, self._config.system_prompt)
        kwargs: dict[str, Any] = {
            "model": self._config.model,
            "max_tokens": self._config.max_tokens,
            "messages": api_messages,
            "temperature": self._config.temperature,
        }
        if system:
            kwargs["system"] = system
        return kwargs

    async def generate(self, messages: list[dict[str, Any]]) -> str:
        kwargs = self._request_kwargs(messages)
        logger.debug("api_request", model=self.model_name, message_count=len(messages))
        try:
            response = await self._client.messages.create(**kwargs)
        except self._anthropic.APIError as e:
            logger.error("api_error", model=self.model_name, error=str(e))
            raise GatewayError(f"Language model request failed: {e}") from e

        text = "".join(b.text for b in response.content if b.type == "text")
        if not text:
            raise GatewayError("Invalid response format from language model")
        logger.debug(
            "api_response",
            model=self.model_name,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            stop_reason=response.stop_reason,
        )
        return text

    async def generate_stream(self, messages: list[dict[str, Any]]) -> AsyncIterator[str]:
        kwargs = self._request_kwargs(messages)
        logger.debug("api_stream_request", model=self.model_name, message_count=len(messages))
        try:
            async with self._client.messages.stream(**kwargs) as stream:
                async for text in stream.text_stream:
                    if text:
                        yield text
        except self._anthropic.APIError as e:
            logger.error("api_stream_error", model=self.model_name, error=str(e))
            raise GatewayError(f"Language model stream failed: {e}") from e
        logger.debug("api_stream_completed", model=self.model_name)


class ClaudeCodeGateway(LLMGateway):
    """Claude Code CLI backend using subprocess.

    The CLI returns its answer in one piece, so the stream has a single fragment.
    """

    def __init__(self, config: ClaudeCodeConfig, gateway_config: GatewayConfig):
        self._cli_path = self._resolve_cli_path(config.cli_path)
        self._model = config.model
        self._timeout = config.timeout
        self._system_prompt = gateway_config.system_prompt

    @property
    def model_name(self) -> str:
        return self._model

    @staticmethod
    def _resolve_cli_path(cli_path: str) -> str:
        """Resolve the claude CLI path, checking common install locations."""
        if os.path.isabs(cli_path) and os.path.exists(cli_path):
            return cli_path

        found = shutil.which(cli_path)
        if found:
            return found

        # npm global installs on Windows are not always on PATH
        if platform.system() == "Windows":
            candidates = []
            for var in ("APPDATA", "LOCALAPPDATA"):
                base = os.environ.get(var, "")
                if base:
                    candidates.append(os.path.join(base, "npm", "claude.cmd"))
            for candidate in candidates:
                if os.path.exists(candidate):
                    return candidate

        return cli_path

    async def generate(self, messages: list[dict[str, Any]]) -> str:
        system, api_messages = split_system(messages, self._system_prompt)
        prompt = self._build_prompt(system, api_messages)

        # Prompt goes through stdin to avoid Windows argument encoding issues
        cmd = [self._cli_path, "-p", "--output-format", "json", "--model", self._model]
        logger.info("claude_code_request", cli_path=self._cli_path, prompt_length=len(prompt))

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await asyncio.wait_for(
                process.communicate(input=prompt.encode("utf-8")),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            logger.error("claude_code_timeout", timeout=self._timeout)
            raise GatewayError(f"Claude Code timed out after {self._timeout} seconds") from e
        except FileNotFoundError as e:
            logger.error("claude_code_not_found", cli_path=self._cli_path)
            raise GatewayError(f"Claude Code CLI not found at '{self._cli_path}'") from e

        stdout_text = stdout.decode("utf-8", errors="replace").strip()
        stderr_text = stderr.decode("utf-8", errors="replace").strip()

        if process.returncode != 0:
            logger.error(
                "claude_code_error",
                returncode=process.returncode,
                stderr=stderr_text,
                stdout=stdout_text[:500],
            )
            detail = stderr_text or stdout_text or "(no output)"
            raise GatewayError(f"Claude Code error (exit {process.returncode}): {detail}")

        text = self._parse_response(stdout_text)
        if not text:
            raise GatewayError("Claude Code returned an empty response")
        return text

    async def generate_stream(self, messages: list[dict[str, Any]]) -> AsyncIterator[str]:
        yield await self.generate(messages)

    @staticmethod
    def _build_prompt(system: str, messages: list[dict[str, Any]]) -> str:
        """Flatten the system prompt and message history into a single prompt string."""
        parts: list[str] = []
        if system:
            parts.append(f"[System Instructions]\n{system}\n")
        for msg in messages:
            label = msg["role"].title()
            for block in msg["content"]:
                if block.get("type") == "text":
                    parts.append(f"[{label}]\n{block['text']}")
                elif block.get("type") == "image":
                    parts.append(f"[{label}]\n(image omitted)")
        return "\n\n".join(parts)

    @staticmethod
    def _parse_response(output: str) -> str:
        """Parse Claude Code CLI JSON output: {"result": "...", ...} or a list of events."""
        try:
            data = json.loads(output)
        except json.JSONDecodeError:
            return output

        if isinstance(data, dict):
            return data.get("result", "")
        if isinstance(data, list):
            texts = [
                item.get("result", "")
                for item in data
                if isinstance(item, dict) and item.get("type") == "result"
            ]
            return "\n".join(texts)
        raise GatewayError("Malformed Claude Code response")


def create_gateway(gateway_config: GatewayConfig, anthropic_config: AnthropicConfig | None,
                   claude_code_config: ClaudeCodeConfig) -> LLMGateway:
    """Build the gateway selected by ``gateway.backend``."""
    match gateway_config.backend:
        case "anthropic":
            if anthropic_config is None:
                raise ConfigError("'anthropic' backend selected but no 'anthropic' section in config")
            return AnthropicGateway(anthropic_config, gateway_config)
        case "claude_code":
            return ClaudeCodeGateway(claude_code_config, gateway_config)
        case _:
            raise ConfigError(f"Unknown gateway backend: {gateway_config.backend}")
