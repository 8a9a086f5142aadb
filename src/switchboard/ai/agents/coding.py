"""Coding agent: generate with the gateway, then run the fenced code it produced."""

from __future__ import annotations

from typing import Any, AsyncIterator

from switchboard.ai.agents.base import Agent
from switchboard.ai.gateway import LLMGateway
from switchboard.ai.tools.code_blocks import extract_code_blocks
from switchboard.ai.tools.code_executor import (
    CodeExecutionRequest,
    CodeExecutionResult,
    CodeExecutor,
)
from switchboard.log import get_logger

logger = get_logger(__name__)

NO_CODE_NOTICE = "\n\n*No executable code blocks found in the response.*\n"
RESULTS_HEADER = "\n\n**Code Execution Results:**\n\n"
# Labeled so the report itself is never picked up as runnable code.
RESULT_FENCE_OPEN = "```text\n"
RESULT_FENCE_CLOSE = "```\n\n"


def format_result(result: CodeExecutionResult) -> list[str]:
    lines = []
    if result.stdout:
        lines.append(f"stdout:\n{result.stdout}\n")
    if result.stderr:
        lines.append(f"stderr:\n{result.stderr}\n")
    lines.append(f"exit_code: {result.exit_code}\n")
    lines.append(f"duration: {result.duration_ms}ms\n")
    return lines


class CodingAgent(Agent):
    name = "coding"

    def __init__(self, gateway: LLMGateway, executor: CodeExecutor):
        self._gateway = gateway
        self._executor = executor

    async def process(self, messages: list[dict[str, Any]]) -> str:
        generated = await self._gateway.generate(messages)
        report = [fragment async for fragment in self._execution_report(generated)]
        return generated + "".join(report)

    async def process_stream(self, messages: list[dict[str, Any]]) -> AsyncIterator[str]:
        generated: list[str] = []
        async for fragment in self._gateway.generate_stream(messages):
            generated.append(fragment)
            yield fragment

        async for fragment in self._execution_report("".join(generated)):
            yield fragment

    async def _execution_report(self, generated: str) -> AsyncIterator[str]:
        blocks = extract_code_blocks(generated)
        logger.info("coding_agent_blocks", block_count=len(blocks))
        if not blocks:
            yield NO_CODE_NOTICE
            return

        yield RESULTS_HEADER
        for index, block in enumerate(blocks, start=1):
            yield f"**Execution {index}** ({block.language}):\n"
            yield RESULT_FENCE_OPEN
            try:
                result = await self._executor.execute(
                    CodeExecutionRequest(language=block.language, code=block.code)
                )
            except Exception as e:
                # later blocks still run
                logger.error("code_block_execution_error", index=index, error=str(e))
                yield f"execution_error: {str(e) or type(e).__name__}\n"
            else:
                for line in format_result(result):
                    yield line
            yield RESULT_FENCE_CLOSE
