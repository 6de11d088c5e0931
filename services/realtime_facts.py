"""Deterministic answers for date/time and weather questions.

The facts are injected into the conversation as a system message; the model
still writes the final reply.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

LOGGER = logging.getLogger(__name__)

DATE_TIME_KEYWORDS = (
    "today's date",
    "current date",
    "what date is it",
    "current time",
    "what time is it",
    "date and time",
)
WEATHER_KEYWORDS = ("weather", "temperature")

TOOL_DATE_TIME = "get_date_time"
TOOL_WEATHER = "get_weather"

_WEATHER_LOCATION = re.compile(r"weather in (.+)")


@dataclass(frozen=True)
class ToolResult:
    tool_used: str
    data: str


class RealtimeFactProvider:
    """Answer a closed set of intents without contacting the model.

    Args:
        location: Default location for date/time and weather facts.
        timezone: IANA timezone name used to render the current time.
        clock: Callable returning an aware `datetime`; injectable for tests.
    """

    def __init__(
        self,
        location: str = "Adimali, Kerala, India",
        timezone: str = "Asia/Kolkata",
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.location = location
        self.tz = ZoneInfo(timezone)
        self._clock = clock or (lambda: datetime.now(self.tz))

    def current_datetime(self) -> str:
        now = self._clock().astimezone(self.tz)
        return f"The current date and time in {self.location} is: {now.strftime('%A, %d %B %Y, %H:%M:%S')}."

    def weather(self, location: Optional[str] = None) -> str:
        # Placeholder reading; no weather service is wired in.
        where = location or self.location
        LOGGER.info("Fetching placeholder weather for %s", where)
        return f"The current weather in {where} is sunny with a temperature of 30°C."

    def detect(self, question: str) -> Optional[ToolResult]:
        """Return a fact when the question matches a known intent, else None."""
        lowered = question.lower()
        if any(keyword in lowered for keyword in DATE_TIME_KEYWORDS):
            LOGGER.info("Date/time intent detected")
            return ToolResult(TOOL_DATE_TIME, self.current_datetime())

        if any(keyword in lowered for keyword in WEATHER_KEYWORDS):
            match = _WEATHER_LOCATION.search(lowered)
            location = match.group(1).strip().rstrip("?.!") if match else None
            LOGGER.info("Weather intent detected for location: %s", location or self.location)
            return ToolResult(TOOL_WEATHER, self.weather(location or None))

        return None
