# roamly/orchestrator.py
from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from roamly.agents.classifier import classify
from roamly.agents.enrichment import enrich_venue
from roamly.agents.review_search import find_image, search_ratings
from roamly.cache import TTLCache, fingerprint
from roamly.config import get_logger
from roamly.errors import InvalidInput
from roamly.extract import jsonld, meta
from roamly.extract.signals import extract_jsonld_signals, extract_review_signals, review_site_for
from roamly.schemas import RatingSignal, VenueEnrichment, VenueLink
from roamly.tools.websearch import WebFetcher, WebSearcher

logger = get_logger(__name__)

MIN_SEARCHABLE_TITLE = 3


def normalize_url(url: Any) -> str:
    """Validate a pasted URL, adding ``https://`` when the scheme is missing."""
    if not isinstance(url, str) or not url.strip():
        raise InvalidInput("No url")
    candidate = url.strip()
    if "://" not in candidate:
        candidate = f"https://{candidate.lstrip('/')}"
    try:
        parsed = urlparse(candidate)
    except ValueError as exc:
        raise InvalidInput(f"Malformed url: {url}") from exc
    if parsed.scheme not in ("http", "https") or not parsed.netloc or "." not in (parsed.hostname or ""):
        raise InvalidInput(f"Malformed url: {url}")
    return candidate


async def _nothing(value=None):
    return value


def _settled(outcome: Any, label: str, url: str, default: Any) -> Any:
    if isinstance(outcome, BaseException):
        logger.warning("%s lookup failed for %s", label, url, exc_info=outcome)
        return default
    return outcome


async def unfurl(
    url: Any,
    *,
    fetcher: Optional[WebFetcher] = None,
    searcher: Optional[WebSearcher] = None,
    cache: Optional[TTLCache] = None,
    location: Optional[str] = None,
) -> VenueLink:
    """Fetch ``url`` and build a best-effort VenueLink.

    Only invalid input raises. Every network step degrades to ``None`` fields
    for what it would have contributed; ``title`` and ``category`` are always
    filled in.
    """
    target = normalize_url(url)
    key = fingerprint(target)
    if cache is not None:
        cached = cache.get(key)
        if cached is not None:
            logger.debug("Unfurl cache hit for %s", target)
            return cached.model_copy(deep=True)

    fetcher = fetcher or WebFetcher()
    searcher = searcher or WebSearcher(fetcher=fetcher)

    # Page metadata
    page = await fetcher.fetch(target)
    html = page.body if page.ok else ""
    if not html:
        logger.info("No page body for %s (status %s); continuing with URL-derived data", target, page.status)

    title = meta.clean_title(meta.raw_title(html), target) or meta.hostname(target) or target
    category = classify(target, title)
    record: Dict[str, Any] = {
        "url": target,
        "title": title,
        "description": meta.description(html),
        "image_url": meta.image_url(html, target) or meta.absolutize(jsonld.first_image(html), target),
        "site_name": meta.site_name(html, target),
        "category": category,
    }
    logger.info("Unfurled %s as '%s' (%s)", target, title, category)

    # Direct-page signals
    site = review_site_for(target)
    signal = extract_review_signals(html, site) if site else extract_jsonld_signals(html)

    # Independent lookups, run concurrently
    searchable = len(title.strip()) >= MIN_SEARCHABLE_TITLE
    want_ratings = signal.rating is None and searchable
    want_enrichment = category in ("food", "hotel") and searchable
    want_image = record["image_url"] is None and category == "food" and searchable

    rating_outcome, enrichment_outcome, image_outcome = await asyncio.gather(
        search_ratings(searcher, title, location) if want_ratings else _nothing(),
        enrich_venue(searcher, title, category, location=location, price_range=signal.price_range)
        if want_enrichment else _nothing(VenueEnrichment()),
        find_image(searcher, fetcher, title, location) if want_image else _nothing(),
        return_exceptions=True,
    )

    searched: Optional[RatingSignal] = _settled(rating_outcome, "Rating", target, None)
    enrichment: VenueEnrichment = _settled(enrichment_outcome, "Enrichment", target, VenueEnrichment())
    image: Optional[str] = _settled(image_outcome, "Image", target, None)

    # Merge: page signals first, searched signals fill gaps only
    rating = signal.rating
    review_count = signal.review_count
    price_range = signal.price_range
    rating_source = signal.source if signal.rating is not None else None
    if rating is None and searched is not None:
        rating = searched.rating
        rating_source = searched.source
        if review_count is None:
            review_count = searched.review_count
        if price_range is None:
            price_range = searched.price_range
    if rating_source is None and price_range is not None:
        rating_source = "price_range"

    record.update(
        rating=rating,
        review_count=review_count,
        price_range=price_range,
        rating_source=rating_source,
    )
    if image and not record["image_url"]:
        record["image_url"] = meta.absolutize(image, target)

    if category == "food":
        record.update(enrichment.model_dump(exclude_none=True))
    elif enrichment.ai_summary:
        record["ai_summary"] = enrichment.ai_summary

    link = VenueLink.model_validate(record)
    if cache is not None:
        cache.put(key, link.model_copy(deep=True))
    return link
