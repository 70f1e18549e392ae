"""Open Graph / meta-tag readers and title cleanup for unfurled pages."""
from __future__ import annotations

import html as _html
import re
from typing import Dict, Iterable, List, Optional
from urllib.parse import unquote, urljoin, urlparse

from roamly.tools.html_to_text import clean_fragment

_META_TAG = re.compile(r"<meta\b[^>]*>", re.IGNORECASE)
_LINK_TAG = re.compile(r"<link\b[^>]*>", re.IGNORECASE)
_ATTR = re.compile(r"""([a-zA-Z_:.-]+)\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+))""")
_TITLE_TAG = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)
_SEPARATORS = re.compile(r"\s+(?:\||-|–|—|·|•|::)\s+")

SITE_NAMES = (
    "yelp",
    "tripadvisor",
    "opentable",
    "resy",
    "tock",
    "exploretock",
    "google maps",
    "google",
    "booking.com",
    "expedia",
    "expedia.com",
    "hotels.com",
    "airbnb",
    "vrbo",
    "viator",
    "getyourguide",
    "klook",
    "eventbrite",
    "ticketmaster",
    "the infatuation",
    "eater",
    "eater ny",
    "time out",
    "instagram",
    "facebook",
)

GENERIC_TITLES = {
    "",
    "home",
    "homepage",
    "home page",
    "menu",
    "menus",
    "welcome",
    "official site",
    "official website",
    "index",
    "untitled",
    "new link",
    "reservations",
    "book now",
    "log in",
    "login",
    "sign in",
    "page not found",
    "not found",
    "404",
    "403 forbidden",
    "access denied",
    "just a moment...",
    "attention required!",
    "robot check",
    "are you a robot?",
}

_FILLER_SEGMENTS = (
    re.compile(r"^updated\b", re.IGNORECASE),
    re.compile(r"^\d[\d,]*\s+(?:photos|reviews)\b", re.IGNORECASE),
    re.compile(r"^(?:menu, )?prices?\b.*reviews?$", re.IGNORECASE),
    re.compile(r"^(?:restaurant|hotel|attraction)?\s*reviews?$", re.IGNORECASE),
    re.compile(r"^phone number\b", re.IGNORECASE),
    re.compile(r"^(?:book|reserve)\b.*(?:online|table|now)$", re.IGNORECASE),
)

_SLUG_NOISE = {"index", "index.html", "home", "menu", "menus", "en", "us", "en-us", "biz", "r", "restaurant", "hotel", "www"}


def _attrs(tag: str) -> Dict[str, str]:
    found: Dict[str, str] = {}
    for match in _ATTR.finditer(tag):
        key = match.group(1).lower()
        value = next((g for g in match.groups()[1:] if g is not None), "")
        found.setdefault(key, value)
    return found


def _meta_index(html: str) -> List[Dict[str, str]]:
    return [_attrs(tag) for tag in _META_TAG.findall(html or "")]


def meta_content(html: str, *names: str) -> Optional[str]:
    """Return the first non-empty ``content`` among meta tags named ``names`` (in order)."""
    tags = _meta_index(html)
    for name in names:
        wanted = name.lower()
        for attrs in tags:
            key = (attrs.get("property") or attrs.get("name") or attrs.get("itemprop") or "").lower()
            if key != wanted:
                continue
            content = _html.unescape(attrs.get("content", "")).strip()
            if content:
                return content
    return None


def page_title(html: str) -> Optional[str]:
    match = _TITLE_TAG.search(html or "")
    if not match:
        return None
    return clean_fragment(match.group(1)) or None


def raw_title(html: str) -> Optional[str]:
    return meta_content(html, "og:title", "twitter:title") or page_title(html)


def description(html: str) -> Optional[str]:
    value = meta_content(html, "og:description", "description", "twitter:description")
    if value:
        return clean_fragment(value)[:500] or None
    return None


def site_name(html: str, url: str) -> Optional[str]:
    return meta_content(html, "og:site_name") or hostname(url) or None


def image_url(html: str, page_url: str) -> Optional[str]:
    candidate = meta_content(
        html,
        "og:image:secure_url",
        "og:image",
        "og:image:url",
        "twitter:image",
        "twitter:image:src",
    )
    if not candidate:
        for tag in _LINK_TAG.findall(html or ""):
            attrs = _attrs(tag)
            if attrs.get("rel", "").lower() == "image_src" and attrs.get("href"):
                candidate = _html.unescape(attrs["href"]).strip()
                break
    return absolutize(candidate, page_url)


def absolutize(candidate: Optional[str], page_url: str) -> Optional[str]:
    if not candidate or candidate.startswith("data:"):
        return None
    try:
        resolved = urljoin(page_url or "", candidate.strip())
    except ValueError:
        return None
    if not resolved.startswith(("http://", "https://")):
        return None
    return resolved


def hostname(url: str) -> str:
    try:
        host = urlparse(url or "").hostname or ""
    except ValueError:
        return ""
    return host[4:] if host.startswith("www.") else host


# ---------- title cleanup ----------
def _is_filler(segment: str) -> bool:
    lowered = segment.strip().lower()
    if lowered in GENERIC_TITLES or lowered in SITE_NAMES:
        return True
    return any(pattern.search(segment.strip()) for pattern in _FILLER_SEGMENTS)


def _tidy_case(name: str) -> str:
    letters = [c for c in name if c.isalpha()]
    if len(letters) > 3 and all(c.isupper() for c in letters):
        return name.title()
    return name


def is_generic_title(title: Optional[str]) -> bool:
    return not title or title.strip().lower() in GENERIC_TITLES or len(title.strip()) < 2


def clean_title(raw: Optional[str], url: str) -> str:
    """Strip site suffixes and filler from a page title, falling back to a URL-derived name."""
    if raw:
        segments = [seg.strip() for seg in _SEPARATORS.split(clean_fragment(raw)) if seg.strip()]
        kept = [seg for seg in segments if not _is_filler(seg)]
        if kept:
            name = kept[0]
            if "tripadvisor" in hostname(url) and ", " in name:
                name = name.split(", ")[0]
            name = _tidy_case(name.strip(" ,:;"))
            if not is_generic_title(name):
                return name
    return name_from_url(url)


def _humanize_slug(slug: str) -> str:
    slug = unquote(slug)
    slug = re.sub(r"\.(?:html?|php|aspx?)$", "", slug, flags=re.IGNORECASE)
    words = re.sub(r"[-_+]+", " ", slug).strip()
    words = re.sub(r"\s+", " ", words)
    if words and words == words.lower():
        return words.title()
    return words


def _meaningful_segments(path: str) -> Iterable[str]:
    for segment in reversed([s for s in path.split("/") if s]):
        lowered = segment.lower()
        if lowered in _SLUG_NOISE or lowered.isdigit() or len(lowered) < 2:
            continue
        yield segment


def name_from_url(url: str) -> str:
    """Best-effort venue name from a URL path, or the host when the path says nothing."""
    try:
        parsed = urlparse(url or "")
    except ValueError:
        return (url or "Link").strip() or "Link"
    host = hostname(url)
    path = parsed.path or ""

    if "tripadvisor" in host:
        match = re.search(r"-Reviews-([^-/.]+)", path)
        if match:
            return _humanize_slug(match.group(1))
    if "yelp" in host:
        match = re.search(r"/biz/([^/?#]+)", path)
        if match:
            return _humanize_slug(re.sub(r"-\d+$", "", match.group(1)))

    for segment in _meaningful_segments(path):
        name = _humanize_slug(segment)
        if name and not is_generic_title(name):
            return name

    if host:
        labels = host.split(".")
        label = labels[-2] if len(labels) >= 2 else labels[0]
        return label[:1].upper() + label[1:]
    return (url or "Link").strip() or "Link"
