"""Interface shared by the inference backends."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Sequence


class InferenceClient(Protocol):
    """Blocking-from-the-caller completion service.

    Both operations return the whole completion in one round trip; no
    streaming, retries, or backoff. Failures raise `utils.errors.InferenceError`.
    """

    backend: str

    async def complete(self, model: str, prompt: str, images: Optional[Sequence[str]] = None) -> str:
        """Single-shot prompt -> completion, optionally with base64 images."""
        ...

    async def chat(self, model: str, messages: List[Dict[str, Any]]) -> str:
        """Full message history -> newest assistant content."""
        ...

    async def aclose(self) -> None:
        ...
