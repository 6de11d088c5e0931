"""Conversational question answering."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import Request

from controllers.conversation import prime_session, record_reply, require_text, run_turn
from models.directive import Directive, DirectiveKind
from models.session_models import ROLE_SYSTEM, ROLE_USER, SessionMessage
from services.prompts import TASK_CHAT, chat_system_prompt, tool_output_message
from services.response_classifier import classify

LOGGER = logging.getLogger(__name__)

DIRECT_COMMANDS = (
    ("generate csv:", DirectiveKind.GENERATE_CSV),
    ("generate image:", DirectiveKind.GENERATE_IMAGE),
    ("show me an image of:", DirectiveKind.GENERATE_IMAGE),
)


def detect_direct_command(question: str) -> Optional[Directive]:
    """Return a directive for ``generate csv:``-style commands (case-insensitive)."""
    lowered = question.lower()
    for prefix, kind in DIRECT_COMMANDS:
        if lowered.startswith(prefix):
            return Directive(kind=kind, instruction_text=question[len(prefix):].strip())
    return None


async def handle_chat(request: Request, question: Optional[str], session_id: Optional[str]) -> Dict[str, Any]:
    """Answer a chat question, or short-circuit a direct generation command.

    Direct commands never reach the model and leave sessions untouched; the
    caller's `sessionId` is echoed back as given.
    """
    question = require_text(question, "No question provided.")
    LOGGER.info("Chat request. Session ID: %s, question length: %d", session_id, len(question))

    direct = detect_direct_command(question)
    if direct is not None:
        LOGGER.info("Direct %s generation command detected", direct.file_type)
        return {
            "message": f"Command received to generate {direct.file_type}.",
            **direct.envelope_fields(),
            "sessionId": session_id,
        }

    settings = request.app.state.settings
    facts = request.app.state.fact_provider
    client = request.app.state.inference_client

    async with request.app.state.session_store.session(session_id) as state:
        prime_session(request, state, TASK_CHAT, chat_system_prompt(facts.current_datetime()))

        pending = []
        tool = facts.detect(question)
        if tool is not None:
            LOGGER.info("Tool '%s' detected; injecting its output", tool.tool_used)
            pending.append(SessionMessage(role=ROLE_SYSTEM, content=tool_output_message(tool.data)))
        pending.append(SessionMessage(role=ROLE_USER, content=question))

        answer = await run_turn(
            client, settings.default_model, state, pending, "Failed to get chat response"
        )
        directive = classify(answer)
        record_reply(state, answer)

        return {
            "message": "Chat response received",
            "answer": answer,
            **directive.envelope_fields(),
            "sessionId": state.session_id,
        }
