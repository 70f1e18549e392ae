"""Current conditions from wttr.in (``format=j1``)."""
from __future__ import annotations

import json
from typing import Any, Dict, Optional
from urllib.parse import quote

from roamly.config import get_logger, get_settings
from roamly.errors import InvalidInput, UpstreamUnavailable
from roamly.schemas import Weather
from roamly.tools.websearch import WebFetcher

logger = get_logger(__name__)

_ICONS = (
    (("sun", "clear"), "☀️"),
    (("cloud", "overcast"), "☁️"),
    (("rain", "drizzle"), "🌧️"),
    (("snow",), "❄️"),
    (("thunder", "storm"), "⛈️"),
    (("fog", "mist", "haze"), "🌫️"),
    (("wind",), "💨"),
)
DEFAULT_ICON = "🌤️"


def weather_icon(condition: str) -> str:
    text = (condition or "").lower()
    for words, icon in _ICONS:
        if any(word in text for word in words):
            return icon
    return DEFAULT_ICON


def _int(value: Any, field: str) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise UpstreamUnavailable(f"Weather payload missing {field}") from exc


def parse_current(payload: Dict[str, Any]) -> Weather:
    conditions = payload.get("current_condition") if isinstance(payload, dict) else None
    if not conditions:
        raise UpstreamUnavailable("No weather data")
    current = conditions[0]
    desc = current.get("weatherDesc") or [{}]
    condition = (desc[0] or {}).get("value") or "Unknown"
    return Weather(
        temp_f=_int(current.get("temp_F"), "temp_F"),
        temp_c=_int(current.get("temp_C"), "temp_C"),
        condition=condition,
        icon=weather_icon(condition),
        humidity=_int(current.get("humidity"), "humidity"),
        feels_like_f=_int(current.get("FeelsLikeF"), "FeelsLikeF"),
    )


async def fetch_weather(location: Optional[str], *, fetcher: Optional[WebFetcher] = None,
                        endpoint: Optional[str] = None) -> Weather:
    if not location or not location.strip():
        raise InvalidInput("Location is required")
    fetcher = fetcher or WebFetcher()
    endpoint = (endpoint or get_settings().weather_endpoint).rstrip("/")
    url = f"{endpoint}/{quote(location.strip())}"

    body = await fetcher.fetch_text(url, params={"format": "j1"})
    if not body:
        raise UpstreamUnavailable("Weather API error")
    try:
        payload = json.loads(body)
    except ValueError as exc:
        logger.warning("Weather response for %s was not JSON", location)
        raise UpstreamUnavailable("Weather API error") from exc
    weather = parse_current(payload)
    logger.debug("Weather for %s: %s %sF", location, weather.condition, weather.temp_f)
    return weather
