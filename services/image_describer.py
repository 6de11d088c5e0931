"""Text output for "generate image" requests.

There is no image synthesis: the multimodal model describes or plans the
image, re-using the session's analyzed image when one is attached.
"""

from __future__ import annotations

import logging
from typing import Optional

from services.inference.base import InferenceClient
from services.prompts import image_generation_prompt

LOGGER = logging.getLogger(__name__)

OUTPUT_FILE_NAME = "image_analysis.txt"


class ImageDescriber:
    def __init__(self, client: InferenceClient, model: str) -> None:
        if client is None:
            raise ValueError("Inference client is required.")
        self.client = client
        self.model = model

    async def describe(self, prompt: str, analyzed_image: Optional[str] = None) -> str:
        """Return the model's textual output for `prompt`."""
        images = [analyzed_image] if analyzed_image else []
        if images:
            LOGGER.info("Re-attaching analyzed image for multimodal processing")
        text = await self.client.complete(self.model, image_generation_prompt(prompt, bool(images)), images)
        LOGGER.info("Received textual image output. Length: %d", len(text))
        return text
