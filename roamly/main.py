from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from roamly.agents.itinerary import generate_itinerary
from roamly.agents.price_estimator import search_price_estimate
from roamly.cache import TTLCache
from roamly.config import get_logger, get_settings
from roamly.errors import InvalidInput, RoamlyError, UpstreamUnavailable
from roamly.orchestrator import unfurl
from roamly.schemas import PriceEstimate
from roamly.store import TripStore, build_trip_store
from roamly.tools.weather import fetch_weather
from roamly.tools.websearch import WebSearcher

logger = get_logger(__name__)
settings = get_settings()

app = FastAPI(title="Roamly Enrichment API")

# Browser clients (the trip board, local dev servers) call this API directly.
# ROAMLY_ALLOWED_ORIGINS narrows it down in deployed environments.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.unfurl_cache = TTLCache(settings.unfurl_cache_ttl)
app.state.trip_store = build_trip_store(settings)


@app.exception_handler(RoamlyError)
async def roamly_error_handler(request: Request, exc: RoamlyError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def get_trip_store(request: Request) -> TripStore:
    return request.app.state.trip_store


def get_unfurl_cache(request: Request) -> Optional[TTLCache]:
    return getattr(request.app.state, "unfurl_cache", None)


@app.post("/api/unfurl")
async def api_unfurl(
    payload: Dict[str, Any] = Body(...),
    cache: Optional[TTLCache] = Depends(get_unfurl_cache),
) -> Dict[str, Any]:
    """Preview metadata, rating and enrichment for a pasted link."""
    url = payload.get("url")
    if not url:
        raise InvalidInput("No url")
    link = await unfurl(url, cache=cache, location=payload.get("location"))
    return link.model_dump(mode="json", by_alias=True)


@app.post("/api/generate-itinerary")
async def api_generate_itinerary(
    payload: Dict[str, Any] = Body(...),
    store: TripStore = Depends(get_trip_store),
) -> Dict[str, Any]:
    trip_id = payload.get("tripId") or payload.get("trip_id")
    if not trip_id:
        raise InvalidInput("Trip ID is required")
    try:
        trip = await store.get_trip(str(trip_id))
    except UpstreamUnavailable as exc:
        logger.error("Generate itinerary failed for trip %s: %s", trip_id, exc)
        raise RoamlyError("Failed to generate itinerary") from exc

    itinerary = generate_itinerary(trip.links, trip.start_date, trip.end_date, trip.destination)
    return itinerary.model_dump(mode="json", by_alias=True)


@app.post("/api/estimate-price")
async def api_estimate_price(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    title = payload.get("title")
    if not title:
        raise InvalidInput("Title is required")
    try:
        estimate = await search_price_estimate(
            WebSearcher(),
            title,
            payload.get("category") or "other",
            payload.get("location") or settings.default_location,
            price_range=payload.get("priceRange"),
            description=payload.get("description"),
        )
    except Exception:
        logger.exception("Price estimate error for '%s'", title)
        estimate = PriceEstimate(
            estimated_cost=50,
            confidence="low",
            source="error_fallback",
            explanation="Could not estimate price",
        )
    return estimate.model_dump(mode="json", by_alias=True)


@app.get("/api/weather")
async def api_weather(location: Optional[str] = Query(None)) -> Any:
    if not location:
        raise InvalidInput("Location is required")
    try:
        weather = await fetch_weather(location)
    except UpstreamUnavailable:
        logger.warning("Weather fetch error for %s", location, exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Failed to fetch weather"})
    return weather.model_dump()


@app.get("/api/ping")
async def api_ping_get() -> Dict[str, Any]:
    return {"ok": True, "method": "GET"}


@app.post("/api/ping")
async def api_ping_post(request: Request) -> Dict[str, Any]:
    raw = await request.body()
    return {"ok": True, "method": "POST", "body": raw.decode("utf-8", errors="replace")}
