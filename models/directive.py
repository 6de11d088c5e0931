"""Classification result for model output."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class DirectiveKind(str, Enum):
    NONE = "none"
    GENERATE_CSV = "generate_csv"
    GENERATE_IMAGE = "generate_image"


FILE_TYPES = {
    DirectiveKind.GENERATE_CSV: "csv",
    DirectiveKind.GENERATE_IMAGE: "image",
}


@dataclass(frozen=True)
class Directive:
    """An instruction to synthesize a follow-on artifact, or `none`.

    Attributes:
        kind: Which artifact, if any, the model asked for.
        instruction_text: Text following the marker, whitespace-trimmed. Empty for `none`.
    """

    kind: DirectiveKind = DirectiveKind.NONE
    instruction_text: str = ""

    @property
    def is_action(self) -> bool:
        return self.kind is not DirectiveKind.NONE

    @property
    def file_type(self) -> Optional[str]:
        """Return the `fileType` reported to the client (``csv``/``image``)."""
        return FILE_TYPES.get(self.kind)

    @property
    def generation_prompt(self) -> Optional[str]:
        return self.instruction_text if self.is_action else None

    def envelope_fields(self) -> dict:
        """Return the `action`/`fileType`/`generationPrompt` response fields."""
        fields = {"fileType": self.file_type, "generationPrompt": self.generation_prompt}
        if self.is_action:
            fields["action"] = "generate_file"
        return fields
