"""인사 메시지 생성.

시간대(아침/오후/저녁)와 날씨를 조합한 인사말을 만듭니다.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, time
from typing import Optional

from src.mock_system.weather_service import WeatherService

GREETING_PATTERN = re.compile(r"^(hi|hello|hey|good morning|good afternoon|good evening|greetings?).*")

BASE_GREETINGS = {
    "morning": "Good morning",
    "afternoon": "Good afternoon",
    "evening": "Good evening",
}

WEATHER_MESSAGES = {
    "sunny": "on a sunshine day!",
    "cloudy": "a bit cloudy but I'm here to help!",
    "rainy": "stay dry out there!",
    "stormy": "let me help make your stormy day better.",
}
DEFAULT_WEATHER_MESSAGE = "I'm here to help you today!"


@dataclass(frozen=True)
class Greeting:
    message: str
    time_of_day: str
    weather_condition: str
    timestamp: datetime


def is_greeting(message: Optional[str]) -> bool:
    """인사 메시지 여부."""
    if not message or not message.strip():
        return False
    return GREETING_PATTERN.match(message.lower().strip()) is not None


def get_time_of_day(t: time) -> str:
    """05:00-11:59 morning, 12:00-16:59 afternoon, 그 외 evening."""
    if 5 <= t.hour < 12:
        return "morning"
    if 12 <= t.hour < 17:
        return "afternoon"
    return "evening"


class GreetingService:
    """시간대/날씨 기반 인사 서비스."""

    def __init__(self, weather_service: Optional[WeatherService] = None):
        self.weather_service = weather_service or WeatherService()

    def generate_greeting(
        self,
        now: Optional[datetime] = None,
        weather_condition: Optional[str] = None,
    ) -> Greeting:
        """인사말 생성.

        Args:
            now: 기준 시각 (없으면 현재 시각)
            weather_condition: 날씨 상태 (없으면 현재 날씨 조회)
        """
        now = now or datetime.now()
        time_of_day = get_time_of_day(now.time())
        if weather_condition:
            weather = self.weather_service.get_weather_by_condition(weather_condition)
        else:
            weather = self.weather_service.get_current_weather()

        base = BASE_GREETINGS.get(time_of_day, "Hello")
        weather_message = WEATHER_MESSAGES.get(weather.condition, DEFAULT_WEATHER_MESSAGE)
        return Greeting(
            message=f"{base}, {weather_message}",
            time_of_day=time_of_day,
            weather_condition=weather.condition,
            timestamp=now,
        )
