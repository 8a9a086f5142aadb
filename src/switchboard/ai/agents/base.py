"""Common contract for request-handling agents."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator


class Agent(ABC):
    """Turns a message list into a response, whole or as a stream of fragments."""

    name: str = "agent"

    @abstractmethod
    async def process(self, messages: list[dict[str, Any]]) -> str:
        ...

    @abstractmethod
    def process_stream(self, messages: list[dict[str, Any]]) -> AsyncIterator[str]:
        ...
