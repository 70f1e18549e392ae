"""Rating / review-count / price-range extraction from raw review-site markup.

Every reader is an ordered chain of strategies. A strategy takes the raw
markup and returns a value or ``None``; the first non-``None`` value wins and
nothing is merged across strategies.
"""
from __future__ import annotations

import re
from typing import Callable, Optional, Sequence, TypeVar
from urllib.parse import urlparse

from roamly.config import get_logger
from roamly.extract import jsonld
from roamly.schemas import RatingSignal
from roamly.tools.html_to_text import html_to_text

logger = get_logger(__name__)

T = TypeVar("T")
Strategy = Callable[[str], Optional[T]]

REVIEW_SITES = {
    "yelp": "Yelp",
    "tripadvisor": "TripAdvisor",
    "opentable": "OpenTable",
}

_YELP_ARIA = re.compile(r"aria-label=[\"'](\d(?:\.\d)?) star rating[\"']", re.IGNORECASE)
_TA_BUBBLE_CLASS = re.compile(r"\bbubble_([1-5])([05])\b")
_TA_BUBBLE_TEXT = re.compile(r"(?<![\d.])(\d(?:\.\d)?) of 5 bubbles", re.IGNORECASE)
_OT_INLINE = re.compile(r"[\"'](?:overallRating|ratingValue|rating)[\"']\s*:\s*[\"']?(\d(?:\.\d+)?)", re.IGNORECASE)

_TEXT_RATINGS = (
    re.compile(r"(?<![\d.,/])(\d(?:\.\d)?)\s*(?:out of|/)\s*5(?![\d/]|[.,]\d)", re.IGNORECASE),
    re.compile(r"(?<![\d.,/])(\d(?:\.\d)?)[\s-]*stars?\b", re.IGNORECASE),
    re.compile(r"\brated\s*(\d(?:\.\d)?)(?![\d/]|[.,]\d)", re.IGNORECASE),
)
_REVIEW_COUNT_TEXT = re.compile(r"\(?(\d{1,3}(?:,\d{3})+|\d+)\)?\s*(?:reviews|ratings)\b", re.IGNORECASE)

_LABELLED_PRICE = (
    re.compile(r"aria-label=[\"']Price(?: range)?:?\s*(\$+)[\"']", re.IGNORECASE),
    re.compile(r"price[-_ ]?range[^>]*>\s*(?:<[^>]+>\s*)*(\$+)(?![\d$])", re.IGNORECASE),
    re.compile(r"[\"']priceRange[\"']\s*:\s*[\"'](\$+)[\"']"),
    re.compile(r"\bprice[^<>$]{0,30}[:>]\s*(\$+)(?![\d$])", re.IGNORECASE),
)
_BARE_PRICE = re.compile(r"(?<![\w$])(\${1,4})(?![\w$])(?!\s*\d)")
_GLYPH_RUN = re.compile(r"(?<!\$)(\$+)(?!\$)(?!\s*\d)")


def first_match(strategies: Sequence[Strategy], html: str) -> Optional[T]:
    for strategy in strategies:
        try:
            value = strategy(html)
        except Exception:  # extractors must stay total over arbitrary markup
            logger.debug("Strategy %s failed", getattr(strategy, "__name__", strategy), exc_info=True)
            continue
        if value is not None:
            return value
    return None


def valid_rating(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return value if 1.0 <= value <= 5.0 else None


def normalize_price_range(value: Optional[str]) -> Optional[str]:
    """Reduce ``"$$ - $$$"`` style values to the first glyph run ("$".."$$$$")."""
    if not value or not isinstance(value, str):
        return None
    match = _GLYPH_RUN.search(value)
    if not match:
        return None
    return "$" * min(len(match.group(1)), 4)


def review_site_for(url: str) -> Optional[str]:
    try:
        host = (urlparse(url or "").hostname or "").lower()
    except ValueError:
        return None
    for key, label in REVIEW_SITES.items():
        if key in host:
            return label
    return None


# ---------- rating strategies ----------
def _first_valid(pattern: re.Pattern, text: str, scale: float = 1.0) -> Optional[float]:
    for match in pattern.finditer(text):
        try:
            value = float(match.group(1)) * scale
        except ValueError:
            continue
        if valid_rating(value) is not None:
            return round(value, 1)
    return None


def yelp_rating(html: str) -> Optional[float]:
    return _first_valid(_YELP_ARIA, html)


def tripadvisor_rating(html: str) -> Optional[float]:
    for match in _TA_BUBBLE_CLASS.finditer(html):
        value = valid_rating(float(f"{match.group(1)}.{match.group(2)}"))
        if value is not None:
            return value
    return _first_valid(_TA_BUBBLE_TEXT, html)


def opentable_rating(html: str) -> Optional[float]:
    return _first_valid(_OT_INLINE, html)


SITE_RATING_STRATEGIES = {
    "Yelp": (yelp_rating,),
    "TripAdvisor": (tripadvisor_rating,),
    "OpenTable": (opentable_rating,),
}


def text_rating(text: str) -> Optional[float]:
    for pattern in _TEXT_RATINGS:
        value = _first_valid(pattern, text)
        if value is not None:
            return value
    return None


def _markup_text_rating(html: str) -> Optional[float]:
    return text_rating(html_to_text(html))


def rating_strategies(site: Optional[str] = None) -> Sequence[Strategy]:
    idioms = SITE_RATING_STRATEGIES.get(site) if site else None
    if idioms is None:
        idioms = (yelp_rating, tripadvisor_rating, opentable_rating)
    return (jsonld.rating, *idioms, _markup_text_rating)


def extract_rating(html: str, site: Optional[str] = None) -> Optional[float]:
    return first_match(rating_strategies(site), html or "")


# ---------- review count ----------
def text_review_count(text: str) -> Optional[int]:
    match = _REVIEW_COUNT_TEXT.search(text or "")
    if not match:
        return None
    return int(match.group(1).replace(",", ""))


def _markup_review_count(html: str) -> Optional[int]:
    return text_review_count(html_to_text(html))


def extract_review_count(html: str) -> Optional[int]:
    return first_match((jsonld.review_count, _markup_review_count), html or "")


# ---------- price range ----------
def _jsonld_price(html: str) -> Optional[str]:
    return normalize_price_range(jsonld.price_range(html))


def _labelled_price(html: str) -> Optional[str]:
    for pattern in _LABELLED_PRICE:
        match = pattern.search(html)
        if match:
            return normalize_price_range(match.group(1))
    return None


def text_price_range(text: str) -> Optional[str]:
    match = _BARE_PRICE.search(text or "")
    return match.group(1) if match else None


def _markup_price(html: str) -> Optional[str]:
    return text_price_range(html_to_text(html))


def extract_price_range(html: str) -> Optional[str]:
    return first_match((_jsonld_price, _labelled_price, _markup_price), html or "")


# ---------- combined ----------
def extract_review_signals(html: str, site: Optional[str] = None) -> RatingSignal:
    """Rating, review count and price range from one page; source is the site label."""
    html = html or ""
    signal = RatingSignal(
        rating=extract_rating(html, site),
        review_count=extract_review_count(html),
        price_range=extract_price_range(html),
    )
    if not signal.is_empty():
        signal.source = site
    return signal


def extract_jsonld_signals(html: str) -> RatingSignal:
    """Structured data only, used for pages that are not known review sites."""
    html = html or ""
    signal = RatingSignal(
        rating=first_match((jsonld.rating,), html),
        review_count=first_match((jsonld.review_count,), html),
        price_range=first_match((_jsonld_price,), html),
    )
    if not signal.is_empty():
        signal.source = "website"
    return signal


def text_signals(text: str, source: str) -> RatingSignal:
    """Signals from plain text such as search-result snippets."""
    signal = RatingSignal(
        rating=first_match((text_rating,), text or ""),
        review_count=first_match((text_review_count,), text or ""),
        price_range=first_match((text_price_range,), text or ""),
    )
    if not signal.is_empty():
        signal.source = source
    return signal
