"""Build the configured inference backend."""

from __future__ import annotations

from openai import AsyncOpenAI

from services.inference.base import InferenceClient
from services.inference.ollama_client import OllamaClient
from services.inference.openai_client import OpenAICompatibleClient
from utils.settings import Settings


def build_inference_client(settings: Settings) -> InferenceClient:
    """Return the client selected by `settings.inference_backend`."""
    if settings.inference_backend == "openai":
        try:
            client = AsyncOpenAI(
                base_url=settings.openai_base_url,
                api_key=settings.openai_api_key,
                timeout=settings.inference_timeout,
                max_retries=0,
            )
        except Exception as exc:
            raise RuntimeError("Failed to initialize OpenAI Async client") from exc
        return OpenAICompatibleClient(client)
    return OllamaClient(settings.ollama_base_url, timeout=settings.inference_timeout)
