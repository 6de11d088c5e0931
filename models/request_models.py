"""JSON request bodies accepted by the HTTP routes.

Fields are optional at the schema level; controllers report missing values
as `ValidationError` so every client error shares the `{error}` shape.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SessionPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: Optional[str] = Field(default=None, alias="sessionId")


class ChatPayload(SessionPayload):
    question: Optional[str] = None


class CsvAnalysisPayload(SessionPayload):
    csv: Optional[str] = None
    prompt: Optional[str] = None


class ImageAnalysisPayload(SessionPayload):
    image: Optional[str] = None
    prompt: Optional[str] = None


class PdfAnalysisPayload(SessionPayload):
    pdf: Optional[str] = None
    prompt: Optional[str] = None


class GenerationPayload(SessionPayload):
    prompt: Optional[str] = None
