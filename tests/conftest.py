import base64
import copy
import io
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from main import create_app
from services.realtime_facts import RealtimeFactProvider
from services.session_store import SessionStore
from utils.errors import InferenceError
from utils.settings import Settings

FIXED_NOW = datetime(2024, 5, 17, 9, 30, 0, tzinfo=timezone.utc)


class FakeInferenceClient:
    """Records calls and returns queued replies instead of calling a model."""

    backend = "fake"

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.calls = []
        self.error = None

    def queue(self, *replies):
        self.replies.extend(replies)

    def fail_with(self, detail="connection refused"):
        self.error = InferenceError(detail)

    def _next(self):
        if self.error is not None:
            raise self.error
        return self.replies.pop(0) if self.replies else "ok"

    async def complete(self, model, prompt, images=None):
        self.calls.append({"op": "complete", "model": model, "prompt": prompt, "images": list(images or [])})
        return self._next()

    async def chat(self, model, messages):
        self.calls.append({"op": "chat", "model": model, "messages": copy.deepcopy(messages)})
        return self._next()

    async def aclose(self):
        pass


def make_png_b64(color=(200, 30, 30)):
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color).save(buffer, format="PNG")
    return base64.b64encode(buffer.getvalue()).decode("ascii")


def make_pdf_bytes(text):
    """Build a one-page PDF showing `text` in Helvetica."""
    stream = f"BT /F1 24 Tf 72 720 Td ({text}) Tj ET".encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R "
        b"/Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"
    xref_at = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_at)
    return bytes(out)


@pytest.fixture
def fake_client():
    return FakeInferenceClient()


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def fact_provider():
    return RealtimeFactProvider(clock=lambda: FIXED_NOW)


@pytest.fixture
def settings(tmp_path):
    return Settings(public_dir=tmp_path / "public")


@pytest.fixture
def app(settings, fake_client, store, fact_provider):
    return create_app(settings, inference_client=fake_client, session_store=store, fact_provider=fact_provider)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def png_b64():
    return make_png_b64()


@pytest.fixture
def pdf_b64():
    return base64.b64encode(make_pdf_bytes("Quarterly revenue grew 12 percent")).decode("ascii")
