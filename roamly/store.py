"""Read-only access to trips and their links.

The service never writes trips; it only needs the date range, destination and
link rows for one trip at a time. ``SupabaseTripStore`` talks to the PostgREST
API directly with httpx, ``InMemoryTripStore`` backs tests and local runs.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Optional

import httpx
from pydantic import ValidationError

from roamly.config import Settings, get_logger, get_settings
from roamly.errors import TripNotFound, UpstreamUnavailable
from roamly.schemas import TripRecord

logger = get_logger(__name__)


class TripStore(ABC):
    @abstractmethod
    async def get_trip(self, trip_id: str) -> TripRecord:
        """Return the trip with its links; ``TripNotFound`` when it does not exist."""
        raise NotImplementedError


class InMemoryTripStore(TripStore):
    def __init__(self, trips: Optional[Iterable[Any]] = None):
        self._trips: Dict[str, TripRecord] = {}
        for trip in trips or ():
            self.add(trip)

    def add(self, trip: Any) -> TripRecord:
        record = trip if isinstance(trip, TripRecord) else TripRecord.model_validate(trip)
        self._trips[record.id] = record
        return record

    async def get_trip(self, trip_id: str) -> TripRecord:
        record = self._trips.get(str(trip_id))
        if record is None:
            raise TripNotFound("Trip not found")
        return record.model_copy(deep=True)


class SupabaseTripStore(TripStore):
    """``trips`` rows with embedded ``links`` via ``select=*,links(*)``."""

    def __init__(self, url: str, key: str, *, timeout: float = 8.0):
        self.base_url = url.rstrip("/") + "/rest/v1"
        self.key = key
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SupabaseTripStore":
        settings = settings or get_settings()
        if not settings.supabase_url or not settings.supabase_key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set")
        return cls(settings.supabase_url, settings.supabase_key, timeout=settings.fetch_timeout)

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Accept": "application/json",
        }

    async def get_trip(self, trip_id: str) -> TripRecord:
        params = {"id": f"eq.{trip_id}", "select": "*,links(*)"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                r = await client.get(f"{self.base_url}/trips", params=params, headers=self._headers())
                r.raise_for_status()
                rows = r.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Trip store request failed for trip %s", trip_id, exc_info=True)
            raise UpstreamUnavailable("Trip store unavailable") from exc

        if not isinstance(rows, list) or not rows:
            raise TripNotFound("Trip not found")
        try:
            return TripRecord.model_validate(rows[0])
        except ValidationError as exc:
            logger.warning("Trip %s has an unexpected shape: %s", trip_id, exc)
            raise UpstreamUnavailable("Trip store returned an invalid row") from exc


def build_trip_store(settings: Optional[Settings] = None) -> TripStore:
    settings = settings or get_settings()
    if settings.supabase_url and settings.supabase_key:
        logger.info("Using Supabase trip store at %s", settings.supabase_url)
        return SupabaseTripStore.from_settings(settings)
    logger.info("SUPABASE_URL not set; using an empty in-memory trip store")
    return InMemoryTripStore()
