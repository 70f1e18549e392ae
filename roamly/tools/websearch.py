from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence
from urllib.parse import parse_qs, unquote, urlparse
import asyncio
import re

import httpx

from roamly.config import Settings, get_logger, get_settings
from roamly.tools.html_to_text import clean_fragment

logger = get_logger(__name__)

_RESULT_LINK = re.compile(
    r"<a[^>]*class=[\"'][^\"']*result__a[^\"']*[\"'][^>]*href=[\"']([^\"']+)[\"'][^>]*>(.*?)</a>",
    re.IGNORECASE | re.DOTALL,
)
_RESULT_LINK_HREF_FIRST = re.compile(
    r"<a[^>]*href=[\"']([^\"']+)[\"'][^>]*class=[\"'][^\"']*result__a[^\"']*[\"'][^>]*>(.*?)</a>",
    re.IGNORECASE | re.DOTALL,
)
_RESULT_SNIPPET = re.compile(
    r"<(?:a|div|td)[^>]*class=[\"'][^\"']*result__snippet[^\"']*[\"'][^>]*>(.*?)</(?:a|div|td)>",
    re.IGNORECASE | re.DOTALL,
)


@dataclass
class SourcePolicy:
    allow_domains: Optional[Sequence[str]] = None
    deny_domains: Optional[Sequence[str]] = None
    max_results: int = 6
    max_per_domain: int = 2

    def allowed(self, url: str) -> bool:
        def match_any(patterns: Optional[Sequence[str]]) -> bool:
            return bool(patterns) and any(re.search(p, url) for p in patterns)
        if self.deny_domains and match_any(self.deny_domains):
            return False
        if self.allow_domains:
            return match_any(self.allow_domains)
        return True


@dataclass
class FetchResult:
    url: str
    status: int
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class WebFetcher:
    """Single-attempt page fetcher. Never raises for network trouble or bad status."""

    def __init__(self, settings: Optional[Settings] = None, *, timeout: Optional[float] = None,
                 user_agent: Optional[str] = None):
        settings = settings or get_settings()
        self.timeout = timeout if timeout is not None else settings.fetch_timeout
        self.user_agent = user_agent or settings.user_agent

    async def fetch(self, url: str, *, params: Optional[Dict[str, str]] = None) -> FetchResult:
        try:
            return await asyncio.wait_for(self._get(url, params), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Timed out after %.1fs fetching %s", self.timeout, url)
        except Exception:
            logger.warning("Failed to fetch url %s", url, exc_info=True)
        return FetchResult(url=url, status=0, body="")

    async def _get(self, url: str, params: Optional[Dict[str, str]]) -> FetchResult:
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/json;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            r = await client.get(url, params=params, headers=headers)
        if not 200 <= r.status_code < 300:
            logger.info("Fetch of %s returned HTTP %s", url, r.status_code)
            return FetchResult(url=str(url), status=r.status_code, body="")
        return FetchResult(url=str(r.url) if getattr(r, "url", None) else url, status=r.status_code, body=r.text)

    async def fetch_text(self, url: str, *, params: Optional[Dict[str, str]] = None) -> str:
        result = await self.fetch(url, params=params)
        return result.body if result.ok else ""


class WebSearcher:
    """
    Search-engine result pages (DuckDuckGo HTML endpoint) parsed into
    ``{"url", "title", "content"}`` dicts and filtered by a ``SourcePolicy``.
    """

    def __init__(self, policy: Optional[SourcePolicy] = None, *, fetcher: Optional[WebFetcher] = None,
                 settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.policy = policy or SourcePolicy()
        self.fetcher = fetcher or WebFetcher(settings)
        self.endpoint = settings.search_endpoint

    async def search_html(self, query: str) -> str:
        """Raw result page for ``query``; empty string when the engine is unreachable."""
        return await self.fetcher.fetch_text(self.endpoint, params={"q": query})

    async def search(self, query: str, policy: Optional[SourcePolicy] = None) -> List[Dict]:
        html = await self.search_html(query)
        if not html:
            return []
        results = self._apply_policy(parse_results(html), policy or self.policy)
        logger.debug("Search query '%s' produced %d results", query, len(results))
        return results

    async def search_text(self, query: str, policy: Optional[SourcePolicy] = None) -> str:
        """Titles and snippets joined into one corpus for free-text mining."""
        results = await self.search(query, policy)
        return " ".join(f"{r['title']}. {r['content']}" for r in results).strip()

    @staticmethod
    def _apply_policy(results: Iterable[Dict], policy: SourcePolicy) -> List[Dict]:
        filtered: List[Dict] = []
        seen_urls: set[str] = set()
        per_domain: Dict[str, int] = {}

        for result in results:
            url = result.get("url") or result.get("href")
            if not url:
                continue
            if url in seen_urls:
                continue
            if not policy.allowed(url):
                continue

            domain = _domain_for(url)
            if not domain:
                continue
            if per_domain.get(domain, 0) >= policy.max_per_domain:
                continue

            title = result.get("title") or ""
            snippet = result.get("content") or result.get("snippet") or ""
            filtered.append({"url": url, "title": title, "content": snippet})
            seen_urls.add(url)
            per_domain[domain] = per_domain.get(domain, 0) + 1

            if len(filtered) >= policy.max_results:
                break

        return filtered


def _domain_for(url: str) -> str:
    try:
        parsed = urlparse(url)
    except ValueError:
        return ""
    return (parsed.netloc or "").lower()


def _unwrap_redirect(href: str) -> str:
    href = href.replace("&amp;", "&")
    if href.startswith("//"):
        href = "https:" + href
    try:
        parsed = urlparse(href)
    except ValueError:
        return href
    if "duckduckgo.com" in (parsed.netloc or "") and parsed.path.startswith("/l/"):
        target = parse_qs(parsed.query).get("uddg")
        if target:
            return unquote(target[0])
    return href


def parse_results(html: str) -> List[Dict[str, str]]:
    """Parse a DuckDuckGo HTML result page. Unrecognised markup yields an empty list."""
    links = _RESULT_LINK.findall(html or "") or _RESULT_LINK_HREF_FIRST.findall(html or "")
    snippets = _RESULT_SNIPPET.findall(html or "")
    results: List[Dict[str, str]] = []
    for idx, (href, title) in enumerate(links):
        results.append(
            {
                "url": _unwrap_redirect(href),
                "title": clean_fragment(title),
                "content": clean_fragment(snippets[idx]) if idx < len(snippets) else "",
            }
        )
    return results
