import asyncio
from types import SimpleNamespace

import httpx
import openai
import pytest

from services.inference.openai_client import OpenAICompatibleClient, to_chat_message
from utils.errors import InferenceError


class _FakeCompletions:
    def __init__(self, content="done", error=None):
        self.content = content
        self.error = error
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _client(completions):
    return OpenAICompatibleClient(SimpleNamespace(chat=SimpleNamespace(completions=completions)))


def test_to_chat_message_converts_images_to_data_urls():
    message = to_chat_message({"role": "user", "content": "what is this", "images": ["aW1n"]})

    assert message["content"][0] == {"type": "text", "text": "what is this"}
    assert message["content"][1]["image_url"]["url"] == "data:image/jpeg;base64,aW1n"


def test_complete_sends_single_user_message():
    completions = _FakeCompletions("four")

    result = asyncio.run(_client(completions).complete("llama3", "2+2?"))

    assert result == "four"
    assert completions.kwargs["model"] == "llama3"
    assert completions.kwargs["messages"] == [{"role": "user", "content": "2+2?"}]


def test_chat_wraps_sdk_errors():
    request = httpx.Request("POST", "http://localhost:11434/v1/chat/completions")
    completions = _FakeCompletions(error=openai.APIConnectionError(request=request))

    with pytest.raises(InferenceError):
        asyncio.run(_client(completions).chat("llama3", [{"role": "user", "content": "hi"}]))
