import asyncio
from typing import Dict, List, Optional

import pytest

from roamly import llm
from roamly.cache import TTLCache
from roamly.errors import InvalidInput
from roamly.orchestrator import normalize_url, unfurl
from roamly.tools.websearch import FetchResult, WebSearcher


@pytest.fixture(autouse=True)
def _no_llm(monkeypatch):
    monkeypatch.setattr(llm, "_client", None)


class FakeFetcher:
    def __init__(self, pages: Optional[Dict[str, str]] = None):
        self.pages = pages or {}
        self.calls: List[str] = []

    async def fetch(self, url, *, params=None):
        self.calls.append(url)
        body = self.pages.get(url)
        if body is None:
            return FetchResult(url=url, status=0, body="")
        return FetchResult(url=url, status=200, body=body)

    async def fetch_text(self, url, *, params=None):
        result = await self.fetch(url, params=params)
        return result.body if result.ok else ""


class FakeSearcher:
    """Routes queries to canned results by substring; slow routes finish last."""

    def __init__(self, routes: Optional[Dict[str, List[Dict]]] = None, delays: Optional[Dict[str, float]] = None):
        self.routes = routes or {}
        self.delays = delays or {}
        self.queries: List[str] = []

    async def search(self, query, policy=None):
        self.queries.append(query)
        for marker, results in self.routes.items():
            if marker in query:
                await asyncio.sleep(self.delays.get(marker, 0))
                return results
        return []

    async def search_text(self, query, policy=None):
        results = await self.search(query, policy)
        return " ".join(f"{r['title']}. {r['content']}" for r in results).strip()

    async def search_html(self, query):
        return ""


def test_normalize_url():
    assert normalize_url("example.com/x") == "https://example.com/x"
    assert normalize_url("  http://example.com ") == "http://example.com"
    for bad in ("", "   ", None, "not a url", "ftp://example.com/file"):
        with pytest.raises(InvalidInput):
            normalize_url(bad)


def test_unfurl_degrades_when_every_fetch_fails():
    async def run() -> None:
        fetcher = FakeFetcher()
        searcher = WebSearcher(fetcher=fetcher)
        link = await unfurl("https://www.yelp.com/biz/joes-pizza-new-york", fetcher=fetcher, searcher=searcher)

        assert link.title == "Joes Pizza New York"
        assert link.category == "food"
        assert link.rating is None
        assert link.review_count is None
        assert link.price_range is None
        assert link.image_url is None
        assert link.venue_type is None
        assert link.ai_summary is None

    asyncio.run(run())


def test_unfurl_uses_page_rating_and_enrichment():
    async def run() -> None:
        url = "https://www.opentable.com/r/lilia-brooklyn"
        page = (
            '<meta property="og:title" content="Lilia - Brooklyn, NY | OpenTable">'
            '<meta property="og:image" content="/photos/lilia.jpg">'
            '<script type="application/ld+json">'
            '{"@type": "Restaurant", "priceRange": "$$$", "aggregateRating": {"ratingValue": 4.7, "reviewCount": 3120}}'
            "</script>"
        )
        searcher = FakeSearcher({
            "restaurant cuisine": [
                {"url": "https://eater.com/lilia", "title": "Lilia", "content": "Italian pasta dinner spot, about $60 per person"},
            ],
        })
        link = await unfurl(url, fetcher=FakeFetcher({url: page}), searcher=searcher)

        assert link.title == "Lilia"
        assert link.category == "food"
        assert (link.rating, link.review_count, link.rating_source) == (4.7, 3120, "OpenTable")
        assert link.price_range == "$$$"
        assert link.image_url == "https://www.opentable.com/photos/lilia.jpg"
        assert link.venue_type == "casual"
        assert link.cuisine_type == "Italian"
        assert link.meal_times == ["dinner"]
        assert link.estimated_price_per_person == 60.0
        assert link.ai_summary.startswith("Lilia is an Italian")
        assert not any("site:yelp.com" in q for q in searcher.queries)

    asyncio.run(run())


def test_searched_ratings_merge_by_source_priority():
    async def run() -> None:
        url = "https://lilia.example.com/"
        searcher = FakeSearcher(
            routes={
                "site:yelp.com": [],
                "site:tripadvisor.com": [
                    {"url": "https://www.tripadvisor.com/x", "title": "Lilia - Tripadvisor", "content": "Rated 4.5 out of 5 by 900 reviews"},
                ],
                "reviews rating": [
                    {"url": "https://maps.example.com/lilia", "title": "Lilia", "content": "4.8 stars (2,000 reviews) $$$"},
                ],
            },
            delays={"site:tripadvisor.com": 0.02},
        )
        link = await unfurl(url, fetcher=FakeFetcher({url: "<title>Lilia</title>"}), searcher=searcher)

        assert link.rating == 4.5
        assert link.rating_source == "TripAdvisor"
        assert link.review_count == 900
        assert link.price_range is None

    asyncio.run(run())


def test_unfurl_cache_short_circuits_repeat_requests():
    async def run() -> None:
        url = "https://example.com/pier-walk"
        fetcher = FakeFetcher({url: "<title>Pier Walk</title>"})
        cache = TTLCache(60)

        first = await unfurl(url, fetcher=fetcher, searcher=FakeSearcher(), cache=cache)
        second = await unfurl(url + "/", fetcher=fetcher, searcher=FakeSearcher(), cache=cache)

        assert fetcher.calls == [url]
        assert first == second
        assert first is not second

    asyncio.run(run())
