"""Shared turn handling for the conversational endpoints."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from fastapi import Request

from models.session_models import ROLE_ASSISTANT, ROLE_SYSTEM, SessionMessage, SessionState
from services.inference.base import InferenceClient
from utils.errors import InferenceError, ValidationError

LOGGER = logging.getLogger(__name__)


def require_text(value: Optional[str], detail: str) -> str:
	"""Return `value` or raise ValidationError when it is missing or blank."""
	if value is None or not value.strip():
		raise ValidationError(detail)
	return value


def prime_session(request: Request, state: SessionState, task: str, system_prompt: str) -> bool:
	"""Push the task's system message when the history is empty.

	With `reprime_on_task_switch` enabled the message is also pushed when the
	session last ran a different task. Returns True when a message was added.
	"""
	reprime = request.app.state.settings.reprime_on_task_switch
	if state.history and not (reprime and state.task != task):
		return False
	state.history.append(SessionMessage(role=ROLE_SYSTEM, content=system_prompt))
	state.task = task
	LOGGER.info("System prompt for task '%s' set on session %s", task, state.session_id)
	return True


async def run_turn(
	client: InferenceClient,
	model: str,
	state: SessionState,
	pending: Iterable[SessionMessage],
	failure_message: str,
) -> str:
	"""Append `pending` messages, call the chat endpoint, and return the reply.

	On failure the pending messages are removed again so the history only
	reflects completed turns.
	"""
	pending = list(pending)
	state.history.extend(pending)
	LOGGER.info("User message added to history. Current history length: %d", len(state.history))
	try:
		return await client.chat(model, state.history_payload())
	except Exception as exc:
		del state.history[len(state.history) - len(pending):]
		LOGGER.error(
			"Model call failed for session %s; rolled back to %d messages: %s",
			state.session_id,
			len(state.history),
			exc,
		)
		if isinstance(exc, InferenceError):
			exc.session_id = state.session_id
			exc.message = failure_message
		raise


def record_reply(state: SessionState, reply: str) -> None:
	state.history.append(SessionMessage(role=ROLE_ASSISTANT, content=reply))
	LOGGER.info("Model response added to history. New history length: %d", len(state.history))
