"""Inference over an OpenAI-compatible Chat Completions endpoint.

Ollama exposes one under ``/v1``; LM Studio, vLLM and hosted services work the
same way. Images are sent as base64 data URLs.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from openai import AsyncOpenAI, OpenAIError

from utils.errors import InferenceError

LOGGER = logging.getLogger(__name__)


def to_image_data_url(image_b64: str) -> str:
    """Wrap bare base64 image text as a data URL suitable for vision input."""
    if image_b64.startswith("data:"):
        return image_b64
    return f"data:image/jpeg;base64,{image_b64}"


def to_chat_message(message: Dict[str, Any]) -> Dict[str, Any]:
    """Convert an Ollama-style message (`images` list) to Chat Completions form."""
    images = message.get("images") or []
    if not images:
        return {"role": message["role"], "content": message.get("content", "")}
    content: List[Dict[str, Any]] = [{"type": "text", "text": message.get("content", "")}]
    content.extend(
        {"type": "image_url", "image_url": {"url": to_image_data_url(image)}} for image in images
    )
    return {"role": message["role"], "content": content}


class OpenAICompatibleClient:
    """Adapter exposing `complete`/`chat` on top of `AsyncOpenAI`."""

    backend = "openai"

    def __init__(self, client: AsyncOpenAI) -> None:
        if client is None:
            raise ValueError("AsyncOpenAI client is required.")
        self.client = client

    async def _create(self, model: str, messages: List[Dict[str, Any]]) -> str:
        try:
            completion = await self.client.chat.completions.create(
                model=model,
                messages=[to_chat_message(message) for message in messages],
                stream=False,
            )
        except OpenAIError as exc:
            LOGGER.error("OpenAI-compatible completion failed for model %s: %s", model, exc)
            raise InferenceError(f"Failed to generate content: {exc}") from exc

        choices = getattr(completion, "choices", None) or []
        if not choices:
            raise InferenceError("Invalid completion format: no choices returned")
        content = getattr(choices[0].message, "content", None)
        if not isinstance(content, str):
            raise InferenceError("Invalid completion format: missing message content")
        return content

    async def complete(self, model: str, prompt: str, images: Optional[Sequence[str]] = None) -> str:
        LOGGER.info("Calling chat.completions (single-shot). Model: %s, images: %d", model, len(images or []))
        message: Dict[str, Any] = {"role": "user", "content": prompt}
        if images:
            message["images"] = list(images)
        return await self._create(model, [message])

    async def chat(self, model: str, messages: List[Dict[str, Any]]) -> str:
        LOGGER.info("Calling chat.completions. Model: %s, messages: %d", model, len(messages))
        return await self._create(model, messages)

    async def aclose(self) -> None:
        close = getattr(self.client, "close", None)
        if close is not None:
            await close()
