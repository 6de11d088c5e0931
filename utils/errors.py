"""Error types raised by the orchestration layer and rendered by `main.py`."""

from __future__ import annotations

from typing import Any, Dict, Optional


class OrchestratorError(Exception):
    """Base error carrying the HTTP status and the session it belongs to."""

    status_code = 500

    def __init__(self, detail: str, *, session_id: Optional[str] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.session_id = session_id

    def to_payload(self) -> Dict[str, Any]:
        """Return the JSON body sent back to the client."""
        return {"error": self.detail}


class ValidationError(OrchestratorError):
    """A required request field is missing or empty."""

    status_code = 400


class ParseError(OrchestratorError):
    """Tabular, document, or image input could not be decoded."""

    status_code = 400


class SessionNotFoundError(OrchestratorError):
    """The referenced session id does not exist."""

    status_code = 404


class InferenceError(OrchestratorError):
    """The model endpoint failed (transport, status, or response shape).

    Args:
        detail: Human readable failure description.
        message: Endpoint-specific summary shown to the user.
        session_id: Session whose turn was rolled back, if any.
    """

    status_code = 500

    def __init__(
        self,
        detail: str,
        *,
        message: str = "Failed to get a response from the model",
        session_id: Optional[str] = None,
    ) -> None:
        super().__init__(detail, session_id=session_id)
        self.message = message

    def to_payload(self) -> Dict[str, Any]:
        return {"message": self.message, "error": self.detail, "sessionId": self.session_id}
