"""Venue enrichment from free-text search results.

Harvests venue type, meal times, cuisine and a price-per-person estimate out
of a search corpus and asks ``roamly.llm`` for a short summary. An empty
corpus yields an empty enrichment.
"""
from __future__ import annotations

import asyncio
import re
from typing import Dict, List, Optional, Tuple

from roamly.agents.price_estimator import (
    FOOD_PRICE_TABLE,
    dollar_count,
    extract_price_from_text,
    get_hotel_tier,
    is_fine_dining,
)
from roamly.config import get_logger
from roamly.llm import summarize_venue
from roamly.schemas import VenueEnrichment

logger = get_logger(__name__)

_VENUE_TYPE_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("fast_casual", ("fast casual", "fast-casual", "counter service", "counter-service", "quick bite",
                     "food hall", "takeout", "take-out", "grab and go", "food truck")),
    ("cafe", ("cafe", "café", "coffee", "bakery", "espresso", "patisserie", "tea room")),
    ("bar", ("cocktail", "wine bar", "speakeasy", "pub", "taproom", "brewery", "bar")),
)

_CUISINES: Tuple[str, ...] = (
    "italian", "french", "japanese", "sushi", "ramen", "chinese", "dim sum", "thai", "vietnamese",
    "korean", "indian", "mexican", "spanish", "tapas", "greek", "mediterranean", "middle eastern",
    "lebanese", "turkish", "american", "new american", "southern", "bbq", "barbecue", "seafood",
    "steakhouse", "pizza", "vegan", "vegetarian", "peruvian", "brazilian", "caribbean", "ethiopian",
)

_MEAL_WORDS: Dict[str, Tuple[str, ...]] = {
    "breakfast": ("breakfast", "brunch", "morning", "pastries", "bagel"),
    "lunch": ("lunch", "midday", "sandwich"),
    "dinner": ("dinner", "supper", "evening", "late night", "tasting menu"),
}

_DEFAULT_MEALS: Dict[str, List[str]] = {
    "fine_dining": ["dinner"],
    "cafe": ["breakfast", "lunch"],
    "bar": ["dinner"],
    "fast_casual": ["lunch", "dinner"],
    "casual": ["lunch", "dinner"],
}


def _count(text: str, phrase: str) -> int:
    return len(re.findall(r"(?<![a-z])" + re.escape(phrase.strip()) + r"(?![a-z])", text))


def detect_venue_type(corpus: str, title: str, price_range: Optional[str] = None) -> str:
    if is_fine_dining(title, corpus) or dollar_count(price_range) == 4:
        return "fine_dining"
    text = f"{title} {corpus}".lower()
    best, best_hits = "casual", 0
    for venue_type, words in _VENUE_TYPE_KEYWORDS:
        hits = sum(_count(text, w) for w in words)
        if hits > best_hits:
            best, best_hits = venue_type, hits
    return best


def detect_meal_times(corpus: str, venue_type: str) -> List[str]:
    text = corpus.lower()
    found = [meal for meal, words in _MEAL_WORDS.items() if any(_count(text, w) for w in words)]
    return found or list(_DEFAULT_MEALS.get(venue_type, ["lunch", "dinner"]))


def detect_cuisine(corpus: str, title: str) -> Optional[str]:
    text = f"{title} {corpus}".lower()
    best, best_hits = None, 0
    for cuisine in _CUISINES:
        hits = _count(text, cuisine)
        if hits > best_hits:
            best, best_hits = cuisine, hits
    if best is None:
        return None
    return best.upper() if best == "bbq" else best.title()


def estimate_per_person(corpus: str, price_range: Optional[str]) -> Optional[float]:
    found = extract_price_from_text(corpus, "restaurant")
    if found is not None:
        return float(found)
    count = dollar_count(price_range)
    return float(FOOD_PRICE_TABLE[count]) if count else None


def enrich_food(title: str, corpus: str, price_range: Optional[str] = None) -> VenueEnrichment:
    if not corpus:
        return VenueEnrichment()
    venue_type = detect_venue_type(corpus, title, price_range)
    facts = {
        "venue_type": venue_type,
        "meal_times": detect_meal_times(corpus, venue_type),
        "cuisine_type": detect_cuisine(corpus, title),
        "estimated_price_per_person": estimate_per_person(corpus, price_range),
    }
    return VenueEnrichment(**facts, ai_summary=summarize_venue(title, "food", facts, corpus))


def enrich_hotel(title: str, corpus: str) -> VenueEnrichment:
    if not corpus:
        return VenueEnrichment()
    tier, nightly = get_hotel_tier(title)
    facts = {"tier": tier, "nightly_rate": nightly}
    return VenueEnrichment(ai_summary=summarize_venue(title, "hotel", facts, corpus))


def enrichment_query(title: str, category: str, location: Optional[str] = None) -> str:
    where = f" {location}" if location else ""
    if category == "hotel":
        return f'"{title}"{where} hotel review'
    return f'"{title}"{where} restaurant cuisine menu hours'


async def enrich_venue(
    searcher,
    title: str,
    category: str,
    *,
    location: Optional[str] = None,
    price_range: Optional[str] = None,
) -> VenueEnrichment:
    """Secondary search for food/hotel venues. Other categories get nothing."""
    if category not in ("food", "hotel"):
        return VenueEnrichment()
    corpus = await searcher.search_text(enrichment_query(title, category, location))
    if not corpus:
        logger.info("No enrichment corpus for '%s'", title)
        return VenueEnrichment()
    if category == "hotel":
        return await asyncio.to_thread(enrich_hotel, title, corpus)
    return await asyncio.to_thread(enrich_food, title, corpus, price_range)
