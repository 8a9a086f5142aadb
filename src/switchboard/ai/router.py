"""Keyword intent classification and dispatch to agents."""

from __future__ import annotations

from typing import Any, AsyncIterator

from switchboard.ai.agents.base import Agent
from switchboard.ai.content import last_message_text
from switchboard.core.types import Intent
from switchboard.log import get_logger

logger = get_logger(__name__)

# Checked in this order: a search keyword wins over a code keyword.
SEARCH_KEYWORDS = (
    "search", "find", "look up", "stock", "price", "market",
    "financial", "crypto", "bitcoin", "news", "current", "latest",
)
CODE_KEYWORDS = (
    "code", "execute", "run", "python", "javascript",
    "script", "program", "calculate", "compute",
)


def classify_intent(messages: list[dict[str, Any]]) -> Intent:
    """Classify by substring match on the last message's text."""
    if not messages:
        return Intent.GENERAL

    text = last_message_text(messages).lower()
    if any(keyword in text for keyword in SEARCH_KEYWORDS):
        return Intent.WEB_SEARCH
    if any(keyword in text for keyword in CODE_KEYWORDS):
        return Intent.CODE_EXECUTION
    return Intent.GENERAL


class Router:
    """Dispatches a message list to the agent matching its intent."""

    def __init__(self, general: Agent, web_search: Agent, code_execution: Agent):
        self._general = general
        self._web_search = web_search
        self._code_execution = code_execution

    def agent_for(self, intent: Intent | str) -> Agent:
        match intent:
            case Intent.GENERAL:
                return self._general
            case Intent.WEB_SEARCH:
                return self._web_search
            case Intent.CODE_EXECUTION:
                return self._code_execution
            case _:
                logger.warning("unknown_intent", intent=str(intent))
                return self._general

    def _select(self, messages: list[dict[str, Any]], streaming: bool) -> Agent:
        intent = classify_intent(messages)
        agent = self.agent_for(intent)
        logger.info(
            "intent_classified",
            intent=str(intent),
            agent=agent.name,
            streaming=streaming,
            message_count=len(messages),
        )
        return agent

    async def route(self, messages: list[dict[str, Any]]) -> str:
        return await self._select(messages, streaming=False).process(messages)

    async def route_stream(self, messages: list[dict[str, Any]]) -> AsyncIterator[str]:
        agent = self._select(messages, streaming=True)
        async for fragment in agent.process_stream(messages):
            yield fragment
