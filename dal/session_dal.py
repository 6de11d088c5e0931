"""Async Data Access Layer for the SESSION table.

Provides SessionDAL with async CRUD operations compatible with
`utils.database_init.AsyncDatabaseInitializer`. History and analyzed data are
stored as JSON text.
"""

from __future__ import annotations

import json
from typing import Optional, Sequence

from models.session_models import SessionMessage, SessionState
from utils.database_init import AsyncDatabaseInitializer


class SessionDAL:
    """Data access layer for persisted sessions."""

    _COLUMNS = (
        "session_id",
        "history",
        "analyzed_data",
        "analyzed_image",
        "task",
        "created_at",
        "last_access",
    )
    _COLUMN_LIST = ", ".join(_COLUMNS)
    _PLACEHOLDERS = ", ".join("?" for _ in _COLUMNS)

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def upsert_session(self, state: SessionState) -> None:
        """Insert or replace the row for `state.session_id`."""
        analyzed_data = json.dumps(state.analyzed_data) if state.analyzed_data is not None else None
        history = json.dumps([message.to_dict() for message in state.history])

        async with self._db.connection() as conn:
            await conn.execute(
                f"INSERT OR REPLACE INTO SESSION ({self._COLUMN_LIST}) VALUES ({self._PLACEHOLDERS})",
                (
                    state.session_id,
                    history,
                    analyzed_data,
                    state.analyzed_image,
                    state.task,
                    state.created_at,
                    state.last_access,
                ),
            )
            await conn.commit()

    async def get_session(self, session_id: str) -> Optional[SessionState]:
        """Return the stored session, or None if not found."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM SESSION WHERE session_id = ?",
                (session_id,),
            )
            row = await cur.fetchone()
            return self._row_to_state(row) if row else None

    async def delete_session(self, session_id: str) -> bool:
        """Delete a session row. Returns True if a row was deleted."""
        async with self._db.connection() as conn:
            await conn.execute("DELETE FROM SESSION WHERE session_id = ?", (session_id,))
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()
            return bool(changed and changed[0] > 0)

    async def count_sessions(self) -> int:
        async with self._db.connection() as conn:
            cur = await conn.execute("SELECT COUNT(*) FROM SESSION")
            row = await cur.fetchone()
            return int(row[0]) if row else 0

    @staticmethod
    def _row_to_state(row: Sequence[object]) -> SessionState:
        """Convert a DB row tuple into a SessionState."""
        history = [SessionMessage.from_dict(item) for item in json.loads(row[1] or "[]")]
        return SessionState(
            session_id=row[0],
            history=history,
            analyzed_data=json.loads(row[2]) if row[2] is not None else None,
            analyzed_image=row[3],
            task=row[4],
            created_at=row[5],
            last_access=row[6],
        )
