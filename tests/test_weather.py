import asyncio
import json

import pytest

from roamly.errors import InvalidInput, UpstreamUnavailable
from roamly.tools.weather import fetch_weather, parse_current, weather_icon

SAMPLE = {
    "current_condition": [
        {
            "temp_F": "68",
            "temp_C": "20",
            "humidity": "40",
            "FeelsLikeF": "67",
            "weatherDesc": [{"value": "Partly cloudy"}],
        }
    ]
}


class FakeFetcher:
    def __init__(self, body: str):
        self.body = body
        self.calls = []

    async def fetch_text(self, url, *, params=None):
        self.calls.append((url, params))
        return self.body


@pytest.mark.parametrize(
    "condition, icon",
    [("Sunny", "☀️"), ("Partly cloudy", "☁️"), ("Light rain", "🌧️"), ("Heavy snow", "❄️"), ("Mist", "🌫️"), ("", "🌤️")],
)
def test_weather_icon(condition, icon):
    assert weather_icon(condition) == icon


def test_parse_current():
    weather = parse_current(SAMPLE)
    assert weather.model_dump() == {
        "temp_f": 68,
        "temp_c": 20,
        "condition": "Partly cloudy",
        "icon": "☁️",
        "humidity": 40,
        "feels_like_f": 67,
    }
    with pytest.raises(UpstreamUnavailable):
        parse_current({"current_condition": []})


def test_fetch_weather_builds_wttr_request():
    async def run() -> None:
        fetcher = FakeFetcher(json.dumps(SAMPLE))
        weather = await fetch_weather("New York", fetcher=fetcher, endpoint="https://wttr.in")
        assert weather.temp_f == 68
        assert fetcher.calls == [("https://wttr.in/New%20York", {"format": "j1"})]

    asyncio.run(run())


def test_fetch_weather_failures():
    async def run() -> None:
        with pytest.raises(InvalidInput):
            await fetch_weather("  ", fetcher=FakeFetcher(""))
        with pytest.raises(UpstreamUnavailable):
            await fetch_weather("Paris", fetcher=FakeFetcher(""))
        with pytest.raises(UpstreamUnavailable):
            await fetch_weather("Paris", fetcher=FakeFetcher("<html>oops</html>"))

    asyncio.run(run())
