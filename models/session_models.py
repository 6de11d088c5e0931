"""Session domain models for conversational orchestration."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

Record = Dict[str, str]
AnalyzedData = Union[List[Record], str]

ROLE_SYSTEM = "system"
ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"


@dataclass
class SessionMessage:
	"""Role-tagged message sent to the chat endpoint."""

	role: str
	content: str
	images: Optional[List[str]] = None
	created_at: float = field(default_factory=lambda: time.time())

	def to_payload(self) -> Dict[str, Any]:
		"""Return the wire form expected by the inference endpoint."""
		payload: Dict[str, Any] = {"role": self.role, "content": self.content}
		if self.images:
			payload["images"] = list(self.images)
		return payload

	def to_dict(self) -> Dict[str, Any]:
		data = self.to_payload()
		data["created_at"] = self.created_at
		return data

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "SessionMessage":
		return cls(
			role=data["role"],
			content=data.get("content", ""),
			images=data.get("images") or None,
			created_at=data.get("created_at") or time.time(),
		)


@dataclass
class SessionState:
	"""In-memory conversation context for one session id.

	`analyzed_data` holds either parsed CSV records or extracted document text;
	`analyzed_image` holds a base64 image. Both are cleared by every analyze-*
	request before the new payload is attached.
	"""

	session_id: str
	history: List[SessionMessage] = field(default_factory=list)
	analyzed_data: Optional[AnalyzedData] = None
	analyzed_image: Optional[str] = None
	task: Optional[str] = None
	created_at: float = field(default_factory=lambda: time.time())
	last_access: float = field(default_factory=lambda: time.time())

	def clear_analysis(self) -> None:
		"""Drop any previously attached data or image."""
		self.analyzed_data = None
		self.analyzed_image = None

	def history_payload(self) -> List[Dict[str, Any]]:
		return [message.to_payload() for message in self.history]
