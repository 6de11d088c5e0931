"""CSV and image-description generation."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import Request

from controllers.conversation import require_text
from models.session_models import SessionState
from services.csv_generator import CsvGenerator
from services.image_describer import OUTPUT_FILE_NAME, ImageDescriber
from utils.errors import InferenceError

LOGGER = logging.getLogger(__name__)


async def _existing_session(request: Request, session_id: Optional[str]) -> Optional[SessionState]:
    if not session_id:
        return None
    try:
        return await request.app.state.session_store.get(session_id)
    except KeyError:
        LOGGER.info("Session %s not found; generating without analyzed context", session_id)
        return None


async def generate_csv(request: Request, prompt: Optional[str], session_id: Optional[str]) -> Dict[str, Any]:
    """Generate CSV text, grounded on the session's analyzed data when present.

    An empty result is a soft failure: status 200 with an explanatory message.
    """
    prompt = require_text(prompt, "Prompt for CSV generation cannot be empty.")
    settings = request.app.state.settings
    state = await _existing_session(request, session_id)

    generator = CsvGenerator(request.app.state.inference_client, settings.default_model)
    try:
        result = await generator.generate(prompt, state.analyzed_data if state else None)
    except InferenceError as exc:
        exc.message = "Failed to generate CSV"
        raise

    if result.is_empty:
        LOGGER.warning("Generated CSV content is empty")
        return {
            "message": "Generated empty CSV. Please refine your prompt or data.",
            "csvContent": "",
            "fileName": result.file_name,
            "empty": True,
        }
    return {
        "message": "CSV content generated successfully",
        "csvContent": result.content,
        "fileName": result.file_name,
    }


async def generate_image(request: Request, prompt: Optional[str], session_id: Optional[str]) -> Dict[str, Any]:
    """Produce a textual image description or transformation plan."""
    prompt = require_text(prompt, "Prompt for image analysis/processing cannot be empty.")
    settings = request.app.state.settings
    state = await _existing_session(request, session_id)

    describer = ImageDescriber(request.app.state.inference_client, settings.multimodal_model)
    try:
        text = await describer.describe(prompt, state.analyzed_image if state else None)
    except InferenceError as exc:
        exc.message = "Failed to process image with multimodal model"
        raise

    return {
        "message": "Image analysis/description generated successfully",
        "response": text,
        "fileName": OUTPUT_FILE_NAME,
    }
