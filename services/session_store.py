"""In-memory store for conversation sessions."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Dict, Optional, Tuple
from uuid import uuid4

from models.session_models import SessionState

LOGGER = logging.getLogger(__name__)


class SessionStore:
	"""Map session ids to `SessionState` for the life of the process.

	Handlers go through `session()`, which serializes requests carrying the
	same id with a per-session `asyncio.Lock`. With `ttl_seconds` and
	`max_sessions` unset nothing is ever evicted and the store grows by one
	entry per distinct session id.

	Args:
		ttl_seconds: Drop sessions idle for longer than this many seconds.
		max_sessions: Keep at most this many sessions, dropping least recently used.
		clock: Time source returning seconds; injectable for tests.
	"""

	backend = "memory"

	def __init__(
		self,
		ttl_seconds: Optional[float] = None,
		max_sessions: Optional[int] = None,
		clock: Callable[[], float] = time.time,
	) -> None:
		self._sessions: "OrderedDict[str, SessionState]" = OrderedDict()
		self._locks: Dict[str, asyncio.Lock] = {}
		self.ttl_seconds = ttl_seconds
		self.max_sessions = max_sessions
		self._clock = clock

	def __len__(self) -> int:
		return len(self._sessions)

	def __contains__(self, session_id: object) -> bool:
		return session_id in self._sessions

	async def resolve(self, session_id: Optional[str] = None) -> Tuple[str, SessionState]:
		"""Return the session for `session_id`, creating a fresh one when absent or unknown."""
		await self._evict_expired()
		if session_id:
			state = await self._cached_or_loaded(session_id)
			if state is not None:
				self._touch(state)
				return session_id, state

		state = self._create()
		LOGGER.info("New session created: %s", state.session_id)
		await self._enforce_capacity()
		return state.session_id, state

	async def get(self, session_id: str) -> SessionState:
		"""Return a live session without creating one, or raise KeyError if missing.

		Expired sessions count as missing; a hit refreshes the idle timer.
		"""
		await self._evict_expired()
		state = await self._cached_or_loaded(session_id)
		if state is None:
			raise KeyError(f"Session {session_id} not found")
		self._touch(state)
		return state

	async def reset(self, session_id: str) -> bool:
		"""Delete a session entirely. Returns False when it did not exist."""
		removed = self._sessions.pop(session_id, None) is not None
		self._locks.pop(session_id, None)
		if removed:
			LOGGER.info("Cleared session: %s", session_id)
		return removed

	async def save(self, state: SessionState) -> None:
		"""Persist a mutated session. In memory the stored object is already current."""

	@asynccontextmanager
	async def session(self, session_id: Optional[str] = None) -> AsyncIterator[SessionState]:
		"""Resolve a session and hold its lock for the duration of a request."""
		resolved_id, state = await self.resolve(session_id)
		lock = self._locks.setdefault(resolved_id, asyncio.Lock())
		async with lock:
			try:
				yield state
			finally:
				self._touch(state)
				if resolved_id in self._sessions:
					await self.save(state)

	async def _cached_or_loaded(self, session_id: str) -> Optional[SessionState]:
		state = self._sessions.get(session_id)
		if state is not None:
			return state
		loaded = await self._load(session_id)
		if loaded is None:
			return None
		# Another request may have loaded the same id while this one awaited.
		return self._sessions.setdefault(session_id, loaded)

	def _create(self) -> SessionState:
		now = self._clock()
		state = SessionState(session_id=uuid4().hex, created_at=now, last_access=now)
		self._sessions[state.session_id] = state
		return state

	def _touch(self, state: SessionState) -> None:
		state.last_access = self._clock()
		if state.session_id in self._sessions:
			self._sessions.move_to_end(state.session_id)

	def _is_busy(self, session_id: str) -> bool:
		lock = self._locks.get(session_id)
		return lock is not None and lock.locked()

	async def _evict_expired(self) -> None:
		if self.ttl_seconds is None:
			return
		cutoff = self._clock() - self.ttl_seconds
		expired = [
			sid for sid, state in self._sessions.items()
			if state.last_access < cutoff and not self._is_busy(sid)
		]
		for sid in expired:
			LOGGER.info("Evicting idle session: %s", sid)
			await self._drop(sid)

	async def _enforce_capacity(self) -> None:
		if self.max_sessions is None:
			return
		for sid in list(self._sessions):
			if len(self._sessions) <= self.max_sessions:
				break
			if self._is_busy(sid):
				continue
			LOGGER.info("Evicting least recently used session: %s", sid)
			await self._drop(sid)

	async def _drop(self, session_id: str) -> None:
		self._sessions.pop(session_id, None)
		self._locks.pop(session_id, None)

	async def _load(self, session_id: str) -> Optional[SessionState]:
		"""Fetch a session not held in memory. The in-memory store has no backing storage."""
		return None
