"""Stream events delivered to streaming callers, and their NDJSON wire form."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional

from switchboard.core.types import StreamEventType


@dataclass(frozen=True, slots=True)
class StreamEvent:
    """One wire unit: zero or more tokens, then exactly one final or error."""

    type: StreamEventType
    data: str = ""
    metadata: Optional[dict[str, Any]] = None

    @classmethod
    def token(cls, fragment: str) -> StreamEvent:
        return cls(StreamEventType.TOKEN, fragment)

    @classmethod
    def final(cls, conversation_id: str) -> StreamEvent:
        return cls(StreamEventType.FINAL, "", {"conversationId": conversation_id})

    @classmethod
    def error(cls, message: str) -> StreamEvent:
        return cls(StreamEventType.ERROR, message)

    @property
    def is_terminal(self) -> bool:
        return self.type is not StreamEventType.TOKEN

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": str(self.type), "data": self.data}
        if self.metadata is not None:
            payload["metadata"] = self.metadata
        return payload

    def to_json_line(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False) + "\n"


async def ndjson_stream(events: AsyncIterator[StreamEvent]) -> AsyncIterator[str]:
    """Serialize events as newline-delimited JSON, one object per line."""
    async for event in events:
        yield event.to_json_line()
