import asyncio
import json

import httpx
import pytest

from services.inference.ollama_client import OllamaClient
from utils.errors import InferenceError


def _client(handler):
    transport = httpx.MockTransport(handler)
    return OllamaClient("http://ollama.test", http_client=httpx.AsyncClient(transport=transport))


def test_complete_posts_generate_payload_and_returns_response():
    captured = {}

    def handler(request):
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"response": "hello"})

    result = asyncio.run(_client(handler).complete("llava", "hi", ["aW1n"]))

    assert result == "hello"
    assert captured["url"] == "http://ollama.test/api/generate"
    assert captured["body"] == {"model": "llava", "prompt": "hi", "images": ["aW1n"], "stream": False}


def test_chat_posts_messages_and_returns_content():
    captured = {}
    messages = [{"role": "system", "content": "be brief"}, {"role": "user", "content": "hi"}]

    def handler(request):
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"message": {"role": "assistant", "content": "hey"}})

    result = asyncio.run(_client(handler).chat("llama", messages))

    assert result == "hey"
    assert captured["url"] == "http://ollama.test/api/chat"
    assert captured["body"] == {"model": "llama", "messages": messages, "stream": False}


def test_error_status_raises_inference_error():
    def handler(request):
        return httpx.Response(500, json={"error": "model not found"})

    with pytest.raises(InferenceError, match="status 500"):
        asyncio.run(_client(handler).chat("llama", []))


def test_transport_failure_raises_inference_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(InferenceError, match="Failed to reach Ollama"):
        asyncio.run(_client(handler).complete("llama", "hi"))


def test_malformed_body_raises_inference_error():
    def handler(request):
        return httpx.Response(200, json={"unexpected": True})

    with pytest.raises(InferenceError, match="missing 'message.content'"):
        asyncio.run(_client(handler).chat("llama", []))
