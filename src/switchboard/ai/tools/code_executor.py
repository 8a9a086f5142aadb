"""Code execution adapters: local interpreters or a remote sandbox."""

from __future__ import annotations

import asyncio
import tempfile
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

import httpx

from switchboard.config import CodeExecutionConfig
from switchboard.core.types import CodeLanguage
from switchboard.errors import AdapterInfrastructureError, ConfigError
from switchboard.log import get_logger

logger = get_logger(__name__)

_SCRIPT_NAMES = {
    CodeLanguage.PYTHON: "main.py",
    CodeLanguage.NODE: "main.js",
}


@dataclass(frozen=True)
class CodeExecutionRequest:
    language: CodeLanguage
    code: str
    stdin: str = ""


@dataclass(frozen=True)
class CodeExecutionResult:
    stdout: str
    stderr: str
    exit_code: int
    duration_ms: int

    @classmethod
    def failure(cls, message: str) -> CodeExecutionResult:
        return cls(stdout="", stderr=message, exit_code=1, duration_ms=0)


class CodeExecutor(ABC):
    """Run source code and report its outcome.

    Implementations never raise: infrastructure failures come back as a
    result with exit_code=1 and a descriptive stderr. A nonzero exit code
    from the program itself is an ordinary result too.
    """

    async def execute(self, request: CodeExecutionRequest) -> CodeExecutionResult:
        try:
            result = await self._execute(request)
        except Exception as e:
            logger.error("code_execution_failed", language=request.language, error=str(e))
            return CodeExecutionResult.failure(f"Code executor error: {e}")
        logger.info(
            "code_executed",
            language=request.language,
            exit_code=result.exit_code,
            duration_ms=result.duration_ms,
        )
        return result

    @abstractmethod
    async def _execute(self, request: CodeExecutionRequest) -> CodeExecutionResult:
        ...


class SubprocessCodeExecutor(CodeExecutor):
    """Runs code with locally installed python/node interpreters in a scratch directory."""

    def __init__(self, config: CodeExecutionConfig):
        self._interpreters = {
            CodeLanguage.PYTHON: config.python_path,
            CodeLanguage.NODE: config.node_path,
        }
        self._timeout = config.timeout
        self._max_output = config.max_output_chars
        logger.warning(
            "code_execution_unsandboxed",
            python_path=config.python_path,
            node_path=config.node_path,
        )

    async def _execute(self, request: CodeExecutionRequest) -> CodeExecutionResult:
        interpreter = self._interpreters[request.language]

        with tempfile.TemporaryDirectory(prefix="switchboard-") as workdir:
            script = Path(workdir) / _SCRIPT_NAMES[request.language]
            script.write_text(request.code, encoding="utf-8")

            start = time.monotonic()
            try:
                process = await asyncio.create_subprocess_exec(
                    interpreter,
                    str(script),
                    stdin=asyncio.subprocess.PIPE,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    cwd=workdir,
                )
            except FileNotFoundError as e:
                raise AdapterInfrastructureError(f"Interpreter not found: {interpreter}") from e

            try:
                stdout, stderr = await asyncio.wait_for(
                    process.communicate(input=request.stdin.encode("utf-8")),
                    timeout=self._timeout,
                )
            except asyncio.TimeoutError as e:
                process.kill()
                await process.wait()
                raise AdapterInfrastructureError(
                    f"Execution timed out after {self._timeout} seconds"
                ) from e
            duration_ms = int((time.monotonic() - start) * 1000)

        return CodeExecutionResult(
            stdout=stdout.decode("utf-8", errors="replace")[: self._max_output],
            stderr=stderr.decode("utf-8", errors="replace")[: self._max_output],
            exit_code=process.returncode if process.returncode is not None else 1,
            duration_ms=duration_ms,
        )


class HttpCodeExecutor(CodeExecutor):
    """Sends code to a remote sandbox service.

    Request body: ``{"language", "code", "stdin"}``. Response body:
    ``{"stdout", "stderr", "exitCode", "durationMs"}``, or ``{"errorMessage"}``
    when the sandbox function itself failed.
    """

    def __init__(self, config: CodeExecutionConfig, transport: httpx.AsyncBaseTransport | None = None):
        if not config.sandbox_url:
            raise ConfigError("code_execution.sandbox_url is required for the http backend")
        self._url = config.sandbox_url
        self._timeout = config.timeout
        self._transport = transport

    async def _execute(self, request: CodeExecutionRequest) -> CodeExecutionResult:
        payload = {
            "language": str(request.language),
            "code": request.code,
            "stdin": request.stdin,
        }
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.post(self._url, json=payload)
            data = response.json()

        if not isinstance(data, dict):
            raise AdapterInfrastructureError("Malformed sandbox response")
        if "errorMessage" in data:
            logger.error("sandbox_function_error", error=data["errorMessage"])
            return CodeExecutionResult.failure(
                f"Sandbox execution error: {data.get('errorMessage') or 'Unknown error'}"
            )
        response.raise_for_status()

        return CodeExecutionResult(
            stdout=str(data.get("stdout") or ""),
            stderr=str(data.get("stderr") or ""),
            exit_code=int(data.get("exitCode") or 0),
            duration_ms=int(data.get("durationMs") or 0),
        )


def create_code_executor(config: CodeExecutionConfig) -> CodeExecutor:
    match config.backend:
        case "subprocess":
            return SubprocessCodeExecutor(config)
        case "http":
            return HttpCodeExecutor(config)
        case _:
            raise ConfigError(f"Unknown code execution backend: {config.backend}")
