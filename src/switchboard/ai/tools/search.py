"""Web search adapter backed by the Bing Web Search API."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import httpx

from switchboard.config import SearchConfig
from switchboard.errors import AdapterInfrastructureError
from switchboard.log import get_logger

logger = get_logger(__name__)

USER_AGENT = "Switchboard-Assistant/1.0"


@dataclass(frozen=True)
class SearchResult:
    title: str
    url: str
    snippet: str


@dataclass(frozen=True)
class SearchResponse:
    query: str
    results: list[SearchResult] = field(default_factory=list)


class SearchAdapter(ABC):
    """Query -> ranked results. Implementations never raise.

    An empty result list stands for both "nothing found" and "search failed".
    """

    @abstractmethod
    async def search(self, query: str) -> SearchResponse:
        ...


def parse_api_key(secret: str) -> str:
    """Accept a raw key or a JSON secret of the form {"apiKey": ...} / {"key": ...}."""
    secret = secret.strip()
    try:
        data = json.loads(secret)
    except json.JSONDecodeError:
        return secret
    if isinstance(data, dict):
        return str(data.get("apiKey") or data.get("key") or "")
    return secret


class BingSearchAdapter(SearchAdapter):
    def __init__(self, config: SearchConfig, transport: httpx.AsyncBaseTransport | None = None):
        self._config = config
        self._transport = transport

    def _api_key(self) -> str:
        key = parse_api_key(self._config.api_key)
        if not key:
            raise AdapterInfrastructureError("Unable to retrieve search API credentials")
        return key

    async def search(self, query: str) -> SearchResponse:
        try:
            results = await self._search(query)
        except Exception as e:
            logger.error("web_search_failed", query=query, error=str(e))
            return SearchResponse(query=query, results=[])
        logger.info("web_search_completed", query=query, result_count=len(results))
        return SearchResponse(query=query, results=results)

    async def _search(self, query: str) -> list[SearchResult]:
        api_key = self._api_key()
        params = {
            "q": query,
            "count": str(self._config.max_results),
            "offset": "0",
            "mkt": "en-US",
            "safeSearch": "Moderate",
        }
        headers = {"Ocp-Apim-Subscription-Key": api_key, "User-Agent": USER_AGENT}

        async with httpx.AsyncClient(timeout=self._config.timeout, transport=self._transport) as client:
            response = await client.get(self._config.endpoint, params=params, headers=headers)
            response.raise_for_status()
            data = response.json()

        if not isinstance(data, dict):
            raise AdapterInfrastructureError("Malformed search response")
        items = (data.get("webPages") or {}).get("value") or []
        return [
            SearchResult(
                title=item.get("name") or "No title",
                url=item.get("url") or "",
                snippet=item.get("snippet") or "No description available",
            )
            for item in items[: self._config.max_results]
        ]
