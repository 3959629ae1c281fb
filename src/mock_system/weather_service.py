"""날씨 Mock 서비스.

sunny/cloudy/rainy/stormy 4가지 상태를 임의로 반환합니다.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class WeatherReport:
    condition: str
    description: str
    temperature: float
    location: str


MOCK_WEATHER: List[WeatherReport] = [
    WeatherReport("sunny", "Clear skies with bright sunshine", 28.5, "Bangkok"),
    WeatherReport("cloudy", "Partly cloudy with overcast skies", 25.0, "Bangkok"),
    WeatherReport("rainy", "Light rain with occasional showers", 22.3, "Bangkok"),
    WeatherReport("stormy", "Heavy rain with thunderstorms", 20.8, "Bangkok"),
]


class WeatherService:
    """날씨 정보 Mock 서비스."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    def get_current_weather(self) -> WeatherReport:
        """현재 날씨 (임의 선택)."""
        return self._rng.choice(MOCK_WEATHER)

    def get_weather_by_condition(self, condition: str) -> WeatherReport:
        """상태명으로 날씨 조회 (없으면 sunny)."""
        for report in MOCK_WEATHER:
            if report.condition == (condition or "").lower():
                return report
        return MOCK_WEATHER[0]
