"""Append-only message log, partitioned by conversation key."""

from __future__ import annotations

import json
from datetime import datetime

from switchboard.storage.database import Database
from switchboard.storage.models import MessageRecord


class MessageRepository:
    """Append and read conversation messages ordered by their sort key."""

    def __init__(self, db: Database):
        self._db = db

    async def append(self, record: MessageRecord) -> None:
        await self._db.conn.execute(
            """INSERT INTO messages
               (conversation_key, sort_key, role, content_json, created_at)
               VALUES (?, ?, ?, ?, ?)""",
            (
                record.conversation_key,
                record.sort_key,
                str(record.role),
                json.dumps(record.content),
                record.timestamp.isoformat(timespec="microseconds"),
            ),
        )
        await self._db.conn.commit()

    async def list(self, conversation_key: str, limit: int = 20) -> list[MessageRecord]:
        """Return the most recent *limit* messages, newest first.

        Callers wanting chronological order must re-sort by ``sort_key``.
        """
        cursor = await self._db.conn.execute(
            """SELECT * FROM messages
               WHERE conversation_key = ?
               ORDER BY sort_key DESC
               LIMIT ?""",
            (conversation_key, limit),
        )
        rows = await cursor.fetchall()
        return [self._row_to_record(row) for row in rows]

    @staticmethod
    def _row_to_record(row) -> MessageRecord:
        return MessageRecord(
            conversation_key=row["conversation_key"],
            sort_key=row["sort_key"],
            role=row["role"],
            content=json.loads(row["content_json"]),
            timestamp=datetime.fromisoformat(row["created_at"]),
        )
