"""Detect directive markers and embedded JSON in model output."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional, Sequence, Tuple

from models.directive import Directive, DirectiveKind

LOGGER = logging.getLogger(__name__)

CSV_MARKER = "CSV_REQUEST:"
IMAGE_MARKER = "IMAGE_REQUEST:"

MARKERS = {
	DirectiveKind.GENERATE_CSV: CSV_MARKER,
	DirectiveKind.GENERATE_IMAGE: IMAGE_MARKER,
}

CSV_FIRST: Tuple[DirectiveKind, ...] = (DirectiveKind.GENERATE_CSV, DirectiveKind.GENERATE_IMAGE)
IMAGE_FIRST: Tuple[DirectiveKind, ...] = (DirectiveKind.GENERATE_IMAGE, DirectiveKind.GENERATE_CSV)

_JSON_BLOCK = re.compile(r"```json[ \t]*\r?\n(.*?)\r?\n[ \t]*```", re.DOTALL)


def classify(text: str, priority: Sequence[DirectiveKind] = CSV_FIRST) -> Directive:
	"""Return the directive encoded at the very start of `text`.

	Markers are only recognised at position 0; a marker mentioned later in the
	prose leaves the output classified as a plain answer.
	"""
	for kind in priority:
		marker = MARKERS[kind]
		if text.startswith(marker):
			instruction = text[len(marker):].strip()
			LOGGER.info("Model requested %s generation (instruction length %d)", kind.value, len(instruction))
			return Directive(kind=kind, instruction_text=instruction)
	return Directive()


def extract_json_block(text: str) -> Optional[Tuple[str, Any]]:
	"""Return the first ```json fenced block and its parsed value.

	Returns None when no block is present or its body is not valid JSON.
	"""
	match = _JSON_BLOCK.search(text)
	if not match:
		return None
	try:
		parsed = json.loads(match.group(1).strip())
	except ValueError:
		LOGGER.warning("Fenced JSON block found but could not be parsed")
		return None
	return match.group(0), parsed


def extract_json_array(text: str) -> Optional[Tuple[str, list]]:
	"""Like `extract_json_block` but only accept a top-level JSON array."""
	found = extract_json_block(text)
	if found is None:
		return None
	block, parsed = found
	if not isinstance(parsed, list):
		LOGGER.warning("Fenced JSON block is not an array; ignoring it")
		return None
	return block, parsed
