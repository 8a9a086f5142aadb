"""Shared types and enumerations."""

from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Intent(StrEnum):
    """Routing tag selecting which agent handles a turn. Never persisted."""

    GENERAL = "general"
    WEB_SEARCH = "web_search"
    CODE_EXECUTION = "code_execution"


class CodeLanguage(StrEnum):
    PYTHON = "python"
    NODE = "node"


class StreamEventType(StrEnum):
    TOKEN = "token"
    FINAL = "final"
    ERROR = "error"
