"""Session store that writes through to SQLite."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from dal.session_dal import SessionDAL
from models.session_models import SessionState
from services.session_store import SessionStore
from utils.database_init import AsyncDatabaseInitializer

LOGGER = logging.getLogger(__name__)


class SqliteSessionStore(SessionStore):
	"""`SessionStore` whose entries survive a process restart.

	Sessions stay cached in memory once loaded; every `save()` rewrites the
	row, and `reset()` and eviction delete it.
	"""

	backend = "sqlite"

	def __init__(
		self,
		db_initializer: AsyncDatabaseInitializer,
		ttl_seconds: Optional[float] = None,
		max_sessions: Optional[int] = None,
		clock: Callable[[], float] = time.time,
	) -> None:
		super().__init__(ttl_seconds=ttl_seconds, max_sessions=max_sessions, clock=clock)
		self.dal = SessionDAL(db_initializer)

	async def save(self, state: SessionState) -> None:
		await self.dal.upsert_session(state)

	async def reset(self, session_id: str) -> bool:
		in_memory = await super().reset(session_id)
		in_db = await self.dal.delete_session(session_id)
		return in_memory or in_db

	async def resolve(self, session_id: Optional[str] = None):
		resolved_id, state = await super().resolve(session_id)
		if resolved_id != session_id:
			await self.save(state)
		return resolved_id, state

	async def _drop(self, session_id: str) -> None:
		await super()._drop(session_id)
		await self.dal.delete_session(session_id)

	async def _load(self, session_id: str) -> Optional[SessionState]:
		state = await self.dal.get_session(session_id)
		if state is not None and self.ttl_seconds is not None and state.last_access < self._clock() - self.ttl_seconds:
			LOGGER.info("Discarding expired session %s from SQLite", session_id)
			await self.dal.delete_session(session_id)
			return None
		if state is not None:
			LOGGER.info("Loaded session %s from SQLite", session_id)
		return state
