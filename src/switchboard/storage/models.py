"""Data models for storage layer."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Union

# Plain text, or an ordered list of typed parts ({"type": "text"|"image", ...}).
Content = Union[str, list[dict[str, Any]]]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


_last_millis = 0


def new_sort_key() -> str:
    """Monotonic message key: zero-padded epoch millis plus a uniqueness suffix.

    Within one process the millisecond part never repeats or goes backwards, so
    a reply always sorts after the message that prompted it.
    """
    global _last_millis
    millis = max(time.time_ns() // 1_000_000, _last_millis + 1)
    _last_millis = millis
    return f"{millis:013d}#{uuid.uuid4().hex}"


def conversation_key(owner_id: str, conversation_id: str) -> str:
    """Partition key shared by every message of one conversation."""
    return f"{owner_id}#{conversation_id}"


@dataclass
class ConversationRecord:
    owner_id: str
    conversation_id: str
    title: str
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def key(self) -> str:
        return conversation_key(self.owner_id, self.conversation_id)


@dataclass(frozen=True)
class MessageRecord:
    conversation_key: str
    role: str  # "user" | "assistant" | "system"
    content: Content
    sort_key: str = field(default_factory=new_sort_key)
    timestamp: datetime = field(default_factory=utcnow)
