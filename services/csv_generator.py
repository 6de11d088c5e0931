"""CSV generation built on the single-shot completion endpoint."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from models.session_models import AnalyzedData
from services.inference.base import InferenceClient
from services.prompts import csv_generation_prompt
from services.response_classifier import extract_json_array
from utils.table_convert import records_to_table

LOGGER = logging.getLogger(__name__)

GENERATED_FILE_NAME = "generated_data.csv"
EMPTY_FILE_NAME = "empty_generated.csv"


@dataclass
class CsvResult:
    content: str

    @property
    def is_empty(self) -> bool:
        return not self.content.strip()

    @property
    def file_name(self) -> str:
        return EMPTY_FILE_NAME if self.is_empty else GENERATED_FILE_NAME


class CsvGenerator:
    """Ask the model for a fenced JSON array and turn it into CSV text.

    When the reply carries no usable JSON array the raw reply is returned as
    if it were already CSV.
    """

    def __init__(self, client: InferenceClient, model: str) -> None:
        if client is None:
            raise ValueError("Inference client is required.")
        self.client = client
        self.model = model

    async def generate(self, prompt: str, analyzed_data: Optional[AnalyzedData] = None) -> CsvResult:
        if isinstance(analyzed_data, list):
            LOGGER.info("Generating CSV from %d analyzed records", len(analyzed_data))
        elif analyzed_data:
            LOGGER.info("Generating CSV from analyzed document text (%d chars)", len(analyzed_data))
        else:
            LOGGER.info("No analyzed data; generating CSV from the prompt alone")

        raw = await self.client.complete(self.model, csv_generation_prompt(prompt, analyzed_data))
        LOGGER.info("Model returned %d chars for CSV generation", len(raw))

        found = extract_json_array(raw)
        if found is None:
            LOGGER.warning("No JSON array in the model reply; treating raw content as CSV")
            return CsvResult(raw)

        _, rows = found
        if any(not isinstance(row, dict) for row in rows):
            LOGGER.warning("JSON array holds non-object items; treating raw content as CSV")
            return CsvResult(raw)
        return CsvResult(records_to_table(rows))
