"""Conversation metadata repository keyed on (owner_id, conversation_id)."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import aiosqlite

from switchboard.errors import AlreadyExistsError
from switchboard.log import get_logger
from switchboard.storage.database import Database
from switchboard.storage.models import ConversationRecord

logger = get_logger(__name__)


class ConversationRepository:
    """Create/read/update conversation metadata. Ownership is part of the key."""

    def __init__(self, db: Database):
        self._db = db

    async def get(self, owner_id: str, conversation_id: str) -> Optional[ConversationRecord]:
        cursor = await self._db.conn.execute(
            "SELECT * FROM conversations WHERE owner_id = ? AND conversation_id = ?",
            (owner_id, conversation_id),
        )
        row = await cursor.fetchone()
        return self._row_to_record(row) if row else None

    async def create(self, record: ConversationRecord) -> None:
        """Insert a new conversation. Fails if the key is already present."""
        try:
            await self._db.conn.execute(
                """INSERT INTO conversations
                   (owner_id, conversation_id, title, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (
                    record.owner_id,
                    record.conversation_id,
                    record.title,
                    record.created_at.isoformat(timespec="microseconds"),
                    record.updated_at.isoformat(timespec="microseconds"),
                ),
            )
        except aiosqlite.IntegrityError as e:
            raise AlreadyExistsError(
                f"Conversation {record.conversation_id} already exists"
            ) from e
        await self._db.conn.commit()
        logger.info(
            "conversation_created",
            owner_id=record.owner_id,
            conversation_id=record.conversation_id,
        )

    async def upsert(self, record: ConversationRecord) -> None:
        """Write the record, replacing title and updated_at if it exists."""
        await self._db.conn.execute(
            """INSERT INTO conversations
               (owner_id, conversation_id, title, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?)
               ON CONFLICT(owner_id, conversation_id)
               DO UPDATE SET title = excluded.title, updated_at = excluded.updated_at""",
            (
                record.owner_id,
                record.conversation_id,
                record.title,
                record.created_at.isoformat(timespec="microseconds"),
                record.updated_at.isoformat(timespec="microseconds"),
            ),
        )
        await self._db.conn.commit()

    async def list_by_owner(self, owner_id: str) -> list[ConversationRecord]:
        """List an owner's conversations, most recently updated first."""
        cursor = await self._db.conn.execute(
            "SELECT * FROM conversations WHERE owner_id = ? ORDER BY updated_at DESC",
            (owner_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_record(row) for row in rows]

    @staticmethod
    def _row_to_record(row) -> ConversationRecord:
        return ConversationRecord(
            owner_id=row["owner_id"],
            conversation_id=row["conversation_id"],
            title=row["title"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
