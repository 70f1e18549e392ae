"""Rating lookups across review sources.

All sources are queried concurrently; the merge walks ``SOURCE_PRIORITY`` in
order and takes the first source that produced a rating, so the answer never
depends on which request finished first.
"""
from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Tuple

from roamly.config import get_logger
from roamly.extract import meta
from roamly.extract.signals import text_signals
from roamly.schemas import RatingSignal
from roamly.tools.websearch import SourcePolicy

logger = get_logger(__name__)

SOURCE_PRIORITY: Tuple[str, ...] = ("Yelp", "TripAdvisor", "Google")

_SOURCE_POLICIES: Dict[str, SourcePolicy] = {
    "Yelp": SourcePolicy(allow_domains=[r"yelp\.com"], max_results=3, max_per_domain=3),
    "TripAdvisor": SourcePolicy(allow_domains=[r"tripadvisor\."], max_results=3, max_per_domain=3),
    "Google": SourcePolicy(deny_domains=[r"duckduckgo\.com"], max_results=5, max_per_domain=2),
}


def source_query(source: str, name: str, location: Optional[str] = None) -> str:
    where = f" {location}" if location else ""
    if source == "Yelp":
        return f'"{name}"{where} site:yelp.com'
    if source == "TripAdvisor":
        return f'"{name}"{where} site:tripadvisor.com'
    return f'"{name}"{where} reviews rating'


def signal_from_results(results: List[Dict], source: str) -> RatingSignal:
    """First result whose title/snippet carries a rating; price/count come from the same result."""
    for result in results:
        text = f"{result.get('title', '')} {result.get('content', '')}"
        signal = text_signals(text, source)
        if signal.rating is not None:
            return signal
    return RatingSignal()


async def lookup_source(searcher, source: str, name: str, location: Optional[str] = None) -> RatingSignal:
    results = await searcher.search(source_query(source, name, location), _SOURCE_POLICIES[source])
    return signal_from_results(results, source)


def merge_by_priority(signals: Dict[str, RatingSignal]) -> Optional[RatingSignal]:
    for source in SOURCE_PRIORITY:
        signal = signals.get(source)
        if signal is not None and signal.rating is not None:
            return signal
    return None


async def search_ratings(searcher, name: str, location: Optional[str] = None) -> Optional[RatingSignal]:
    """Yelp > TripAdvisor > Google; the first source with a rating wins outright."""
    outcomes = await asyncio.gather(
        *(lookup_source(searcher, source, name, location) for source in SOURCE_PRIORITY),
        return_exceptions=True,
    )
    signals: Dict[str, RatingSignal] = {}
    for source, outcome in zip(SOURCE_PRIORITY, outcomes):
        if isinstance(outcome, BaseException):
            logger.warning("Rating lookup via %s failed for '%s'", source, name, exc_info=outcome)
            continue
        signals[source] = outcome
    winner = merge_by_priority(signals)
    if winner:
        logger.info("Rating for '%s' taken from %s (%.1f)", name, winner.source, winner.rating)
    return winner


async def find_image(searcher, fetcher, name: str, location: Optional[str] = None) -> Optional[str]:
    """One image-only lookup: the og:image of the first search hit for the venue."""
    where = f" {location}" if location else ""
    results = await searcher.search(f'"{name}"{where} restaurant')
    if not results:
        return None
    target = results[0]["url"]
    html = await fetcher.fetch_text(target)
    return meta.image_url(html, target) if html else None
