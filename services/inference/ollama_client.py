"""Native Ollama HTTP client (`/api/generate` and `/api/chat`)."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from utils.errors import InferenceError

LOGGER = logging.getLogger(__name__)


class OllamaClient:
    """Send non-streaming completion requests to a local Ollama server.

    Args:
        base_url: Server root, e.g. ``http://localhost:11434``.
        timeout: Seconds to wait for a response; ``None`` waits indefinitely.
        http_client: Optional pre-built `httpx.AsyncClient` (tests inject a mock transport).
    """

    backend = "ollama"

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.post(url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            LOGGER.error(
                "Ollama %s returned status %s: %s",
                path,
                exc.response.status_code,
                exc.response.text[:500],
            )
            raise InferenceError(
                f"Ollama {path} failed with status {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            LOGGER.error("Error calling Ollama %s with model %s: %s", path, payload.get("model"), exc)
            raise InferenceError(f"Failed to reach Ollama at {url}: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise InferenceError(f"Ollama {path} returned a non-JSON body") from exc
        if not isinstance(data, dict):
            raise InferenceError(f"Invalid Ollama response format from {path}")
        return data

    async def complete(self, model: str, prompt: str, images: Optional[Sequence[str]] = None) -> str:
        """Call ``/api/generate`` and return the `response` text."""
        images = list(images or [])
        LOGGER.info(
            "Calling Ollama /api/generate. Model: %s, prompt length: %d, image count: %d",
            model,
            len(prompt),
            len(images),
        )
        data = await self._post(
            "/api/generate",
            {"model": model, "prompt": prompt, "images": images, "stream": False},
        )
        text = data.get("response")
        if not isinstance(text, str):
            raise InferenceError("Invalid Ollama response format: missing 'response'")
        LOGGER.info("Received /api/generate response. Length: %d", len(text))
        return text

    async def chat(self, model: str, messages: List[Dict[str, Any]]) -> str:
        """Call ``/api/chat`` with the full history and return the assistant content."""
        LOGGER.info("Calling Ollama /api/chat. Model: %s, messages: %d", model, len(messages))
        data = await self._post(
            "/api/chat",
            {"model": model, "messages": messages, "stream": False},
        )
        message = data.get("message")
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise InferenceError("Invalid Ollama response format: missing 'message.content'")
        LOGGER.info("Received /api/chat response. Length: %d", len(content))
        return content

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
