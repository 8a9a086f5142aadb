"""Helpers for message content and conversion of stored history to gateway messages."""

from __future__ import annotations

from typing import Any

from switchboard.storage.models import Content, MessageRecord


def effective_text(content: Content) -> str:
    """Return the raw string, or the first text part's value for structured content."""
    if isinstance(content, str):
        return content
    for part in content:
        if isinstance(part, dict) and part.get("type") == "text":
            return part.get("text") or ""
    return ""


def last_message_text(messages: list[dict[str, Any]]) -> str:
    if not messages:
        return ""
    return effective_text(messages[-1].get("content", ""))


def append_text(content: Content, suffix: str) -> Content:
    """Return a copy of *content* whose text grows by *suffix*.

    Non-text parts are carried over unchanged. Structured content without a
    text part is returned as is.
    """
    if isinstance(content, str):
        return content + suffix
    return [
        {**part, "text": part.get("text", "") + suffix}
        if isinstance(part, dict) and part.get("type") == "text"
        else part
        for part in content
    ]


def build_messages(history: list[MessageRecord]) -> list[dict[str, Any]]:
    """Convert stored records into gateway messages in chronological order.

    Records may arrive in any order; they are sorted by key and projected to
    ``{"role", "content"}``, dropping timestamps.
    """
    return [
        {"role": record.role, "content": record.content}
        for record in sorted(history, key=lambda r: r.sort_key)
    ]
