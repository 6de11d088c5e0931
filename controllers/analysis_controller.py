"""Analysis of uploaded CSV, image, and PDF payloads."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import Request

from controllers.conversation import prime_session, record_reply, require_text, run_turn
from models.directive import Directive, DirectiveKind
from models.session_models import ROLE_USER, SessionMessage
from services import prompts
from services.response_classifier import IMAGE_FIRST, classify, extract_json_array
from utils.document_text import extract_pdf_text
from utils.errors import ParseError
from utils.media_validation import decode_base64_payload, ensure_base64_image
from utils.table_convert import records_to_table, table_to_records

LOGGER = logging.getLogger(__name__)


def _envelope(message: str, reply: str, directive: Directive, session_id: str) -> Dict[str, Any]:
    return {
        "message": message,
        "response": reply,
        **directive.envelope_fields(),
        "sessionId": session_id,
    }


async def analyze_csv(
    request: Request, csv_text: Optional[str], prompt: Optional[str], session_id: Optional[str]
) -> Dict[str, Any]:
    """Parse CSV, attach the records to the session, and ask the model about them.

    Raises:
        ValidationError: If no CSV content is provided.
        ParseError: If the CSV is malformed.
        InferenceError: If the model call fails (the user turn is rolled back).
    """
    csv_text = require_text(csv_text, "No CSV content provided.")
    prompt = prompt or prompts.DEFAULT_CSV_PROMPT
    settings = request.app.state.settings
    LOGGER.info("Analyze CSV request. Session ID: %s, CSV length: %d", session_id, len(csv_text))

    async with request.app.state.session_store.session(session_id) as state:
        state.clear_analysis()
        prime_session(request, state, prompts.TASK_CSV, prompts.csv_analyst_system_prompt())

        try:
            records = table_to_records(csv_text)
        except ParseError as exc:
            LOGGER.error("Error parsing CSV content: %s", exc.detail)
            raise ParseError(
                f"Failed to parse CSV content. Please ensure it's valid CSV format. ({exc.detail})",
                session_id=state.session_id,
            ) from exc
        state.analyzed_data = records
        if records:
            LOGGER.info("Parsed CSV headers: %s", ", ".join(records[0].keys()))
        else:
            LOGGER.warning("Parsed CSV data is empty")

        user_message = SessionMessage(role=ROLE_USER, content=prompts.csv_analysis_prompt(prompt, records))
        reply = await run_turn(
            request.app.state.inference_client,
            settings.default_model,
            state,
            [user_message],
            "Failed to analyze CSV",
        )
        directive = classify(reply)
        record_reply(state, reply)
        return _envelope("CSV analysis complete", reply, directive, state.session_id)


def _embedded_csv(reply: str, directive: Directive):
    """Convert a JSON array embedded in a CSV directive straight to CSV text.

    Returns the (possibly rewritten) reply, directive, and CSV content.
    """
    if directive.kind is not DirectiveKind.GENERATE_CSV:
        return reply, directive, None
    found = extract_json_array(reply)
    if found is None:
        return reply, directive, None

    block, rows = found
    LOGGER.warning("Model embedded JSON for the CSV directly in its analysis reply")
    try:
        csv_content = records_to_table(rows)
    except ParseError as exc:
        LOGGER.error("Error converting embedded JSON to CSV: %s", exc.detail)
        rewritten = (
            f"The model provided JSON, but it could not be converted to CSV: {exc.detail}\n\n"
            f"Original model response: {reply}"
        )
        return rewritten, Directive(), None

    reply = reply.replace(block, "").strip()
    if not reply and csv_content:
        reply = prompts.EMBEDDED_CSV_NOTICE
    return reply, directive, csv_content


async def analyze_image(
    request: Request, image: Optional[str], prompt: Optional[str], session_id: Optional[str]
) -> Dict[str, Any]:
    """Attach an image to the session and ask the multimodal model about it.

    IMAGE_REQUEST takes priority over CSV_REQUEST here. A CSV directive that
    already carries a fenced JSON array is answered with `csvContent`.
    """
    image = require_text(image, "No image data (base64) provided.")
    prompt = prompt or prompts.DEFAULT_IMAGE_PROMPT
    settings = request.app.state.settings
    LOGGER.info("Analyze image request. Session ID: %s, image data length: %d", session_id, len(image))

    async with request.app.state.session_store.session(session_id) as state:
        state.clear_analysis()
        prime_session(request, state, prompts.TASK_IMAGE, prompts.image_analyst_system_prompt())

        try:
            image_b64 = ensure_base64_image(image)
        except ParseError as exc:
            raise ParseError(exc.detail, session_id=state.session_id) from exc
        state.analyzed_image = image_b64
        LOGGER.info("Image stored in session %s", state.session_id)

        user_message = SessionMessage(role=ROLE_USER, content=prompt, images=[image_b64])
        reply = await run_turn(
            request.app.state.inference_client,
            settings.multimodal_model,
            state,
            [user_message],
            "Failed to analyze image",
        )
        directive = classify(reply, IMAGE_FIRST)
        reply, directive, csv_content = _embedded_csv(reply, directive)
        record_reply(state, reply)

        payload = _envelope("Image analysis complete", reply, directive, state.session_id)
        payload["csvContent"] = csv_content
        return payload


async def analyze_pdf(
    request: Request, pdf: Optional[str], prompt: Optional[str], session_id: Optional[str]
) -> Dict[str, Any]:
    """Extract PDF text, attach it to the session, and ask the model about it."""
    pdf = require_text(pdf, "No PDF data (base64) provided.")
    prompt = prompt or prompts.DEFAULT_PDF_PROMPT
    settings = request.app.state.settings
    LOGGER.info("Analyze PDF request. Session ID: %s, PDF data length: %d", session_id, len(pdf))

    async with request.app.state.session_store.session(session_id) as state:
        state.clear_analysis()
        prime_session(request, state, prompts.TASK_PDF, prompts.document_analyst_system_prompt())

        try:
            text = extract_pdf_text(decode_base64_payload(pdf, "PDF"))
        except ParseError as exc:
            LOGGER.error("Error parsing PDF content: %s", exc.detail)
            raise ParseError(exc.detail, session_id=state.session_id) from exc
        state.analyzed_data = text

        user_message = SessionMessage(role=ROLE_USER, content=prompts.document_analysis_prompt(prompt, text))
        reply = await run_turn(
            request.app.state.inference_client,
            settings.default_model,
            state,
            [user_message],
            "Failed to analyze PDF",
        )
        directive = classify(reply)
        record_reply(state, reply)
        return _envelope("PDF analysis complete", reply, directive, state.session_id)
