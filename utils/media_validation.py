"""Validation helpers for base64 media payloads sent as JSON."""

import base64
import binascii
import io
import re

from PIL import Image, UnidentifiedImageError

from utils.errors import ParseError

_DATA_URL_PREFIX = re.compile(r"^data:[\w.+-]+/[\w.+-]+(;[\w=.+-]+)*;base64,", re.IGNORECASE)


def strip_data_url(payload: str) -> str:
    """Return the bare base64 body, dropping a `data:<mime>;base64,` prefix if present."""
    stripped = payload.strip()
    return _DATA_URL_PREFIX.sub("", stripped, count=1)


def decode_base64_payload(payload: str, what: str = "payload") -> bytes:
    """Decode base64 text (optionally a data URL) into bytes.

    Raises:
        ParseError: If the text is not valid base64 or decodes to nothing.
    """
    body = "".join(strip_data_url(payload).split())
    try:
        raw = base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ParseError(f"Invalid base64 {what} data provided") from exc
    if not raw:
        raise ParseError(f"Decoded {what} is empty")
    return raw


def ensure_base64_image(payload: str) -> str:
    """Validate a base64 image and return it without any data URL prefix.

    The image is opened with Pillow to reject payloads that are valid base64
    but not a supported image format.

    Raises:
        ParseError: If the data cannot be decoded or opened as an image.
    """
    raw = decode_base64_payload(payload, "image")
    try:
        with Image.open(io.BytesIO(raw)) as img:
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ParseError("Decoded bytes are not a supported image format") from exc
    return base64.b64encode(raw).decode("ascii")
