"""Chat service: owns the per-turn lifecycle around the router.

A turn moves through these states, strictly in order:

    RESOLVED -> USER_PERSISTED -> HISTORY_LOADED -> ROUTED
             -> ASSISTANT_PERSISTED -> METADATA_UPDATED

A failure at any state ends the turn. Whatever was already written stays
written: a user message can be saved even when generation then fails.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, AsyncIterator, Optional

from switchboard.ai.content import build_messages
from switchboard.ai.router import Router
from switchboard.chat.events import StreamEvent
from switchboard.core.types import Role
from switchboard.errors import AppError, AuthenticationError, NotFoundError, ValidationError
from switchboard.log import get_logger
from switchboard.storage.conversation_repo import ConversationRepository
from switchboard.storage.message_repo import MessageRepository
from switchboard.storage.models import ConversationRecord, MessageRecord, utcnow

logger = get_logger(__name__)

DEFAULT_TITLE = "New Conversation"


class TurnState(StrEnum):
    RESOLVED = "resolved"
    USER_PERSISTED = "user_persisted"
    HISTORY_LOADED = "history_loaded"
    ROUTED = "routed"
    ASSISTANT_PERSISTED = "assistant_persisted"
    METADATA_UPDATED = "metadata_updated"


@dataclass(frozen=True)
class User:
    id: str
    email: Optional[str] = None
    username: str = ""


@dataclass(frozen=True)
class ChatResponse:
    response: str
    conversation_id: str

    def to_dict(self) -> dict[str, Any]:
        return {"response": self.response, "conversationId": self.conversation_id}


@dataclass
class ConversationDetail:
    conversation: ConversationRecord
    messages: list[MessageRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        conv = self.conversation
        return {
            "conversation": {
                "conversationId": conv.conversation_id,
                "title": conv.title,
                "createdAt": conv.created_at.isoformat(),
                "updatedAt": conv.updated_at.isoformat(),
            },
            "messages": [
                {"role": m.role, "content": m.content, "timestamp": m.timestamp.isoformat()}
                for m in self.messages
            ],
        }


def generate_title(first_message: str, max_length: int = 50) -> str:
    """Title from the first message, truncated with an ellipsis when too long."""
    if len(first_message) > max_length:
        return first_message[:max_length] + "..."
    return first_message or DEFAULT_TITLE


class ChatService:
    """Handles the full flow: conversation -> user message -> history -> router -> reply."""

    def __init__(
        self,
        router: Router,
        conversation_repo: ConversationRepository,
        message_repo: MessageRepository,
        history_limit: int = 20,
        title_max_length: int = 50,
    ):
        self._router = router
        self._conversations = conversation_repo
        self._messages = message_repo
        self._history_limit = history_limit
        self._title_max_length = title_max_length

    async def process_message(
        self, user: User, prompt: str, conversation_id: str | None = None
    ) -> ChatResponse:
        """Run one turn and return the whole response. Errors propagate to the caller."""
        try:
            conversation, messages = await self._begin_turn(user, prompt, conversation_id)
            response = await self._router.route(messages)
            self._log_state(TurnState.ROUTED, conversation, response_length=len(response))
            await self._finish_turn(conversation, response)
        except Exception as e:
            logger.error("turn_failed", user_id=user.id if user else None, error=str(e))
            raise
        return ChatResponse(response=response, conversation_id=conversation.conversation_id)

    async def process_message_stream(
        self, user: User, prompt: str, conversation_id: str | None = None
    ) -> AsyncIterator[StreamEvent]:
        """Run one turn, yielding a token event per fragment as soon as it arrives.

        The stream always ends with exactly one final or error event.
        """
        try:
            conversation, messages = await self._begin_turn(user, prompt, conversation_id)

            fragments: list[str] = []
            async for fragment in self._router.route_stream(messages):
                fragments.append(fragment)
                yield StreamEvent.token(fragment)
            response = "".join(fragments)
            self._log_state(
                TurnState.ROUTED,
                conversation,
                fragment_count=len(fragments),
                response_length=len(response),
            )

            await self._finish_turn(conversation, response)
        except Exception as e:
            logger.error("turn_stream_failed", user_id=user.id if user else None, error=str(e))
            yield StreamEvent.error(_error_message(e))
            return

        yield StreamEvent.final(conversation.conversation_id)

    async def list_conversations(self, user: User) -> list[ConversationRecord]:
        """The user's conversations, most recently active first."""
        self._check_user(user)
        return await self._conversations.list_by_owner(user.id)

    async def get_conversation_with_messages(
        self, user: User, conversation_id: str, limit: int = 100
    ) -> ConversationDetail:
        self._check_user(user)
        conversation = await self._conversations.get(user.id, conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation not found")
        records = await self._messages.list(conversation.key, limit)
        return ConversationDetail(
            conversation=conversation,
            messages=sorted(records, key=lambda r: r.sort_key),
        )

    async def _begin_turn(
        self, user: User, prompt: str, conversation_id: str | None
    ) -> tuple[ConversationRecord, list[dict[str, Any]]]:
        """Validate, resolve the conversation, save the user message, load history."""
        self._check_user(user)
        if not isinstance(prompt, str) or not prompt.strip():
            raise ValidationError("Required field 'prompt' is missing")

        conversation = await self._resolve_conversation(user, prompt, conversation_id)
        self._log_state(TurnState.RESOLVED, conversation)

        await self._messages.append(
            MessageRecord(conversation_key=conversation.key, role=Role.USER, content=prompt)
        )
        self._log_state(TurnState.USER_PERSISTED, conversation)

        history = await self._messages.list(conversation.key, self._history_limit)
        messages = build_messages(history)
        self._log_state(TurnState.HISTORY_LOADED, conversation, message_count=len(messages))
        return conversation, messages

    async def _finish_turn(self, conversation: ConversationRecord, response: str) -> None:
        await self._messages.append(
            MessageRecord(conversation_key=conversation.key, role=Role.ASSISTANT, content=response)
        )
        self._log_state(TurnState.ASSISTANT_PERSISTED, conversation)

        conversation.updated_at = max(utcnow(), conversation.created_at)
        await self._conversations.upsert(conversation)
        self._log_state(TurnState.METADATA_UPDATED, conversation)

    async def _resolve_conversation(
        self, user: User, prompt: str, conversation_id: str | None
    ) -> ConversationRecord:
        if conversation_id:
            existing = await self._conversations.get(user.id, conversation_id)
            if existing is None:
                raise NotFoundError("Conversation not found")
            return existing

        now = utcnow()
        conversation = ConversationRecord(
            owner_id=user.id,
            conversation_id=str(uuid.uuid4()),
            title=generate_title(prompt, self._title_max_length),
            created_at=now,
            updated_at=now,
        )
        await self._conversations.create(conversation)
        return conversation

    @staticmethod
    def _check_user(user: User | None) -> None:
        if user is None or not user.id:
            raise AuthenticationError("User not authenticated")

    @staticmethod
    def _log_state(state: TurnState, conversation: ConversationRecord, **fields: Any) -> None:
        logger.debug(
            "turn_state",
            state=str(state),
            conversation_id=conversation.conversation_id,
            **fields,
        )


def _error_message(exc: Exception) -> str:
    if isinstance(exc, AppError):
        return exc.message
    return str(exc) or "Unknown error"
