import asyncio
from typing import List

import httpx

from roamly.tools.websearch import SourcePolicy, WebFetcher, WebSearcher, parse_results


class DummyResponse:
    def __init__(self, text: str, status_code: int = 200, url: str = ""):
        self.text = text
        self.status_code = status_code
        self.url = url


class DummyAsyncClient:
    def __init__(self, response: DummyResponse, *args, **kwargs):
        self.response = response
        self.kwargs = kwargs
        self.requests: List[tuple] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def get(self, url, params=None, headers=None):
        self.requests.append((url, params, headers))
        return self.response


class RaisingAsyncClient(DummyAsyncClient):
    async def get(self, url, params=None, headers=None):
        raise httpx.ConnectError("connection refused")


class SlowAsyncClient(DummyAsyncClient):
    async def get(self, url, params=None, headers=None):
        await asyncio.sleep(1)
        return self.response


def _result(href: str, title: str, snippet: str) -> str:
    return (
        f'<div class="result"><h2><a rel="nofollow" class="result__a" href="{href}">{title}</a></h2>'
        f'<a class="result__snippet" href="{href}">{snippet}</a></div>'
    )


def _serp(*results: str) -> str:
    return "<html><body>" + "".join(results) + "</body></html>"


def test_fetch_returns_body_and_sends_user_agent(monkeypatch):
    async def run() -> None:
        clients: List[DummyAsyncClient] = []

        def factory(*args, **kwargs):
            client = DummyAsyncClient(DummyResponse("<html>ok</html>", url="https://example.com/"), *args, **kwargs)
            clients.append(client)
            return client

        monkeypatch.setattr(httpx, "AsyncClient", factory)
        fetcher = WebFetcher(timeout=2.0, user_agent="TestAgent/1.0")
        result = await fetcher.fetch("https://example.com/")

        assert result.ok
        assert result.body == "<html>ok</html>"
        assert clients[0].kwargs["follow_redirects"] is True
        assert clients[0].requests[0][2]["User-Agent"] == "TestAgent/1.0"

    asyncio.run(run())


def test_fetch_failures_never_raise(monkeypatch):
    async def run() -> None:
        monkeypatch.setattr(httpx, "AsyncClient", lambda *a, **kw: DummyAsyncClient(DummyResponse("denied", 403)))
        forbidden = await WebFetcher(timeout=2.0).fetch("https://example.com/")
        assert (forbidden.status, forbidden.body, forbidden.ok) == (403, "", False)

        monkeypatch.setattr(httpx, "AsyncClient", lambda *a, **kw: RaisingAsyncClient(DummyResponse("")))
        refused = await WebFetcher(timeout=2.0).fetch("https://example.com/")
        assert refused.status == 0

        monkeypatch.setattr(httpx, "AsyncClient", lambda *a, **kw: SlowAsyncClient(DummyResponse("late")))
        slow = await WebFetcher(timeout=0.05).fetch_text("https://example.com/")
        assert slow == ""

    asyncio.run(run())


def test_websearch_search_applies_source_policy(monkeypatch):
    async def run() -> None:
        html = _serp(
            _result("https://allowed.com/a", "A", "first"),
            _result("https://allowed.com/a", "A duplicate", "dupe"),
            _result("https://denied.com/x", "Denied", "nope"),
            _result("https://other.com/1", "Other 1", "one"),
            _result("https://other.com/2", "Other 2", "two"),
            _result("https://other.com/3", "Other 3", "three"),
        )
        clients: List[DummyAsyncClient] = []

        def factory(*args, **kwargs):
            client = DummyAsyncClient(DummyResponse(html), *args, **kwargs)
            clients.append(client)
            return client

        monkeypatch.setattr(httpx, "AsyncClient", factory)

        policy = SourcePolicy(deny_domains=[r"denied\.com"], max_results=4, max_per_domain=1)
        searcher = WebSearcher(policy)

        results = await searcher.search("family travel ideas")

        assert len(results) == 2  # allowed.com and first other.com entry
        assert {r["url"] for r in results} == {"https://allowed.com/a", "https://other.com/1"}
        assert all(r["title"] for r in results)
        assert all("content" in r for r in results)
        assert clients[0].requests[0][1] == {"q": "family travel ideas"}

    asyncio.run(run())


def test_search_text_joins_titles_and_snippets(monkeypatch):
    async def run() -> None:
        html = _serp(_result("https://yelp.com/biz/lilia", "Lilia - Yelp", "4.5 stars <b>Italian</b>"))
        monkeypatch.setattr(httpx, "AsyncClient", lambda *a, **kw: DummyAsyncClient(DummyResponse(html)))
        text = await WebSearcher().search_text("lilia")
        assert text == "Lilia - Yelp. 4.5 stars Italian"

    asyncio.run(run())


def test_parse_results_unwraps_redirects_and_tolerates_junk():
    href = "//duckduckgo.com/l/?uddg=https%3A%2F%2Fwww.yelp.com%2Fbiz%2Flilia&amp;rut=abc"
    results = parse_results(_serp(_result(href, "Lilia &amp; Co", "snippet")))
    assert results == [{"url": "https://www.yelp.com/biz/lilia", "title": "Lilia & Co", "content": "snippet"}]
    assert parse_results("<html>no results here</html>") == []
    assert parse_results("") == []
