"""Session lifecycle helpers."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Request

from services.session_store import SessionStore
from utils.errors import SessionNotFoundError


async def clear_history(request: Request, session_id: Optional[str]) -> Dict[str, Any]:
	"""Delete a session so the next request with its id starts from scratch."""
	store: SessionStore = request.app.state.session_store
	if not session_id or not await store.reset(session_id):
		raise SessionNotFoundError("Session not found or no sessionId provided.", session_id=session_id)
	return {"message": f"Conversation history cleared for session: {session_id}"}
