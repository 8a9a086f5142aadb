"""Plain conversation agent: no tools, straight to the gateway."""

from __future__ import annotations

from typing import Any, AsyncIterator

from switchboard.ai.agents.base import Agent
from switchboard.ai.gateway import LLMGateway
from switchboard.log import get_logger

logger = get_logger(__name__)


class GenericAgent(Agent):
    name = "generic"

    def __init__(self, gateway: LLMGateway):
        self._gateway = gateway

    async def process(self, messages: list[dict[str, Any]]) -> str:
        logger.debug("generic_agent_process", message_count=len(messages))
        return await self._gateway.generate(messages)

    async def process_stream(self, messages: list[dict[str, Any]]) -> AsyncIterator[str]:
        logger.debug("generic_agent_stream", message_count=len(messages))
        async for fragment in self._gateway.generate_stream(messages):
            yield fragment
