"""Search agent: web search first, then a cited analysis from the gateway."""

from __future__ import annotations

import re
from typing import Any, AsyncIterator

from switchboard.ai.agents.base import Agent
from switchboard.ai.agents.generic import GenericAgent
from switchboard.ai.content import append_text, last_message_text
from switchboard.ai.gateway import LLMGateway
from switchboard.ai.tools.search import SearchAdapter, SearchResponse
from switchboard.log import get_logger

logger = get_logger(__name__)

FILLER_PATTERN = re.compile(r"please|can you|could you|help me|i want to|search for", re.IGNORECASE)

FALLBACK_NOTICE = "No search results found. Falling back to general knowledge.\n\n"

DISCLAIMER = (
    "**Financial Information Disclaimer**: The following information is based on "
    "recent web search results and AI analysis. This should not be considered as "
    "financial advice. Always consult with qualified financial professionals before "
    "making investment decisions.\n\n"
)

ANALYSIS_INSTRUCTION = (
    "Based on this current information, please provide a comprehensive analysis. "
    "Include relevant details from the search results and cite specific sources "
    "when possible.\n"
)


def extract_search_query(messages: list[dict[str, Any]]) -> str:
    """Strip conversational filler from the last message to get a search query."""
    return FILLER_PATTERN.sub("", last_message_text(messages)).strip()


def source_fragments(response: SearchResponse) -> list[str]:
    """Disclaimer and numbered source list, in emission order."""
    fragments = [DISCLAIMER, "**Sources:**\n"]
    for index, result in enumerate(response.results, start=1):
        fragments.append(f"{index}. [{result.title}]({result.url})\n")
    fragments.append("\n**Analysis:**\n\n")
    return fragments


def build_search_context(response: SearchResponse) -> str:
    lines = [f'\n\nCurrent search results for "{response.query}":\n\n']
    for index, result in enumerate(response.results, start=1):
        lines.append(
            f"{index}. **{result.title}**\n"
            f"   URL: {result.url}\n"
            f"   Summary: {result.snippet}\n\n"
        )
    lines.append(ANALYSIS_INSTRUCTION)
    return "".join(lines)


def augment_messages(messages: list[dict[str, Any]], response: SearchResponse) -> list[dict[str, Any]]:
    """Copy *messages* with the search context appended to the last message's text."""
    augmented = list(messages)
    if augmented:
        last = augmented[-1]
        augmented[-1] = {
            **last,
            "content": append_text(last.get("content", ""), build_search_context(response)),
        }
    return augmented


class SearchAgent(Agent):
    name = "search"

    def __init__(self, gateway: LLMGateway, search_adapter: SearchAdapter):
        self._gateway = gateway
        self._search = search_adapter
        self._fallback = GenericAgent(gateway)

    async def _run_search(self, messages: list[dict[str, Any]]) -> SearchResponse:
        query = extract_search_query(messages)
        logger.info("search_agent_query", query=query)
        return await self._search.search(query)

    async def process(self, messages: list[dict[str, Any]]) -> str:
        response = await self._run_search(messages)
        if not response.results:
            logger.info("search_agent_fallback", query=response.query)
            return FALLBACK_NOTICE + await self._fallback.process(messages)

        analysis = await self._gateway.generate(augment_messages(messages, response))
        return "".join(source_fragments(response)) + analysis

    async def process_stream(self, messages: list[dict[str, Any]]) -> AsyncIterator[str]:
        response = await self._run_search(messages)
        if not response.results:
            logger.info("search_agent_fallback", query=response.query)
            yield FALLBACK_NOTICE
            async for fragment in self._fallback.process_stream(messages):
                yield fragment
            return

        for fragment in source_fragments(response):
            yield fragment
        async for fragment in self._gateway.generate_stream(augment_messages(messages, response)):
            yield fragment
