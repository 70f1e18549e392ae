"""Cost heuristics for venues.

``estimate_cost`` is pure and synchronous: it only consults the static tables
below plus whatever snippet text the caller already collected.
``search_price_estimate`` is the networked variant used by the estimate-price
endpoint; it runs a few search queries and then defers to ``estimate_cost``.
"""
from __future__ import annotations

import re
from typing import Dict, List, Literal, Optional, Sequence, Tuple

from roamly.config import get_logger
from roamly.extract.signals import normalize_price_range
from roamly.schemas import PriceEstimate
from roamly.tools.html_to_text import html_to_text

logger = get_logger(__name__)

VenueKind = Literal["restaurant", "hotel", "activity"]

# Per-person meal cost by dollar-sign count.
FOOD_PRICE_TABLE: Dict[int, int] = {1: 20, 2: 40, 3: 75, 4: 175}

FINE_DINING_ESTIMATE = 200

CATEGORY_DEFAULTS: Dict[str, Tuple[int, str]] = {
    "food": (50, "Default restaurant estimate - suggest adding actual cost"),
    "activity": (35, "Default activity estimate"),
    "other": (25, "Default estimate"),
}

# Nightly rates, checked in this order; first tier with a substring hit wins.
HOTEL_TIERS: Tuple[Tuple[str, int, Tuple[str, ...]], ...] = (
    ("luxury", 950, (
        "four seasons", "fourseasons", "ritz carlton", "ritz-carlton", "st. regis", "st regis",
        "mandarin oriental", "peninsula", "waldorf astoria", "waldorf", "aman", "rosewood",
        "park hyatt", "baccarat", "the mark", "the carlyle", "carlyle", "the plaza", "plaza hotel",
        "the pierre", "pierre hotel", "the langham", "langham", "the greenwich", "equinox hotel",
        "one hotel", "edition", "the edition", "nomad hotel", "gramercy park hotel",
    )),
    ("upscale", 450, (
        "marriott", "hilton", "hyatt", "westin", "sheraton", "w hotel", "w new york",
        "conrad", "intercontinental", "kimpton", "thompson", "dream hotel", "sixty hotels",
        "soho grand", "tribeca grand", "the standard", "standard hotel", "ace hotel",
        "the dominick", "dominick", "lotte", "the whitby", "the william",
        "the beekman", "refinery hotel", "gansevoort", "the james", "viceroy",
    )),
    ("midrange", 275, (
        "holiday inn", "courtyard", "residence inn", "hampton inn", "hampton", "doubletree",
        "crowne plaza", "radisson", "wyndham", "best western",
        "even hotel", "cambria", "hotel indigo", "aloft", "element", "fairfield",
        "springhill", "towneplace", "homewood suites", "embassy suites",
    )),
    ("budget", 175, (
        "pod", "moxy", "citizenm", "citizen m", "yotel", "freehand", "hi hostel",
        "hostelling", "la quinta", "red roof", "motel 6", "super 8", "days inn",
        "microtel", "travelodge", "howard johnson", "econo lodge", "sleep inn",
        "arlo", "made hotel", "the jane",
    )),
    ("rental", 250, ("airbnb", "vrbo", "apartment", "loft")),
)
UNKNOWN_HOTEL_TIER = ("unknown", 350)

_FINE_DINING = re.compile(
    r"\b(?:michelin|tasting menu|omakase|fine dining|chef'?s table|james beard|starred|"
    r"haute cuisine|eleven madison|per se|le bernardin|masa|kaiseki|prix fixe)\b",
    re.IGNORECASE,
)

# Plausible per-unit prices; anything outside is treated as noise.
PLAUSIBLE_WINDOWS: Dict[VenueKind, Tuple[int, int]] = {
    "restaurant": (20, 400),
    "hotel": (100, 2000),
    "activity": (10, 200),
}

_RANGE = r"\$(\d{{{lo},{hi}}})\s*[-–]\s*\$?(\d{{{lo},{hi}}})"

_PRICE_PATTERNS: Dict[VenueKind, Tuple[Tuple[str, re.Pattern], ...]] = {
    "restaurant": (
        ("per_person", re.compile(r"\$(\d{2,3})\s*(?:per person|pp\b|/\s*person|a head|per head)", re.IGNORECASE)),
        ("tasting_menu", re.compile(r"tasting menu[^$]{0,80}\$(\d{2,4})|\$(\d{2,4})[^$]{0,80}tasting menu", re.IGNORECASE)),
        ("range", re.compile(_RANGE.format(lo=2, hi=3))),
        ("bare", re.compile(r"\$(\d{2,3})(?![\d,.])")),
    ),
    "hotel": (
        ("nightly", re.compile(r"\$(\d{2,4})\s*(?:/\s*night|per night|a night|nightly)", re.IGNORECASE)),
        ("from", re.compile(r"(?:from|starting at|rates? from)\s*\$(\d{2,4})", re.IGNORECASE)),
        ("range", re.compile(_RANGE.format(lo=3, hi=4))),
        ("bare", re.compile(r"\$(\d{3,4})(?![\d,.])")),
    ),
    "activity": (
        ("ticket", re.compile(r"(?:tickets?|admission|entry)[^$]{0,60}\$(\d{1,3})|\$(\d{1,3})[^$]{0,60}(?:tickets?|admission|entry)", re.IGNORECASE)),
        ("from", re.compile(r"(?:from|starting at)\s*\$(\d{1,3})", re.IGNORECASE)),
        ("range", re.compile(_RANGE.format(lo=1, hi=3))),
        ("bare", re.compile(r"\$(\d{1,3})(?![\d,.])")),
    ),
}


def venue_kind(category: Optional[str]) -> VenueKind:
    if category == "food":
        return "restaurant"
    if category == "hotel":
        return "hotel"
    return "activity"


def dollar_count(price_range: Optional[str]) -> int:
    glyphs = normalize_price_range(price_range)
    return len(glyphs) if glyphs else 0


def median(values: Sequence[int]) -> int:
    """Upper median: for an even count the higher of the two middle values."""
    ordered = sorted(values)
    return ordered[len(ordered) // 2]


def _candidates(pattern_name: str, pattern: re.Pattern, text: str) -> List[int]:
    found: List[int] = []
    for match in pattern.finditer(text):
        groups = [g for g in match.groups() if g is not None]
        if not groups:
            continue
        if pattern_name == "range" and len(groups) >= 2:
            low, high = int(groups[0]), int(groups[1])
            found.append(round((low + high) / 2))
        else:
            found.append(int(groups[0]))
    return found


def extract_price_from_text(text: str, kind: VenueKind) -> Optional[int]:
    """Pull a plausible price out of search-result text.

    Patterns are tried from most to least specific. The first pattern that
    produces any value inside the plausibility window decides; with several
    survivors the median is returned rather than the first hit.
    """
    if not text:
        return None
    clean = html_to_text(text) if "<" in text else re.sub(r"\s+", " ", text)
    low, high = PLAUSIBLE_WINDOWS[kind]
    for name, pattern in _PRICE_PATTERNS[kind]:
        survivors = [p for p in _candidates(name, pattern, clean) if low <= p <= high]
        if survivors:
            logger.debug("Price pattern '%s' matched %s for %s", name, survivors, kind)
            return median(survivors)
    return None


def is_fine_dining(title: Optional[str], description: Optional[str] = None) -> bool:
    return bool(_FINE_DINING.search(f"{title or ''} {description or ''}"))


def get_hotel_tier(title: Optional[str]) -> Tuple[str, int]:
    name = (title or "").lower()
    for tier, estimate, brands in HOTEL_TIERS:
        if any(brand in name for brand in brands):
            return tier, estimate
    return UNKNOWN_HOTEL_TIER


def fallback_estimate(
    category: Optional[str],
    title: Optional[str],
    description: Optional[str] = None,
    price_range: Optional[str] = None,
) -> PriceEstimate:
    category = category if category in ("hotel", "food", "activity", "other") else "other"
    count = dollar_count(price_range)

    if count and category == "food":
        return PriceEstimate(
            estimated_cost=FOOD_PRICE_TABLE[count],
            confidence="medium",
            source="price_range",
            explanation=f"Based on {'$' * count} price indicator",
        )

    if category == "hotel":
        tier, estimate = get_hotel_tier(title)
        return PriceEstimate(
            estimated_cost=estimate,
            confidence="low" if tier == "unknown" else "medium",
            source=f"hotel_tier_{tier}",
            explanation=f"{tier.capitalize()} hotel - estimated ${estimate}/night",
        )

    if category == "food" and (is_fine_dining(title, description) or count == 4):
        return PriceEstimate(
            estimated_cost=FINE_DINING_ESTIMATE,
            confidence="medium",
            source="fine_dining_heuristic",
            explanation=f"Fine dining restaurant - estimated ${FINE_DINING_ESTIMATE}/person",
        )

    cost, explanation = CATEGORY_DEFAULTS[category if category in CATEGORY_DEFAULTS else "other"]
    return PriceEstimate(
        estimated_cost=cost,
        confidence="low",
        source="category_default",
        explanation=explanation,
    )


def estimate_cost(
    category: Optional[str],
    title: Optional[str],
    description: Optional[str] = None,
    price_range: Optional[str] = None,
    snippets: Optional[str] = None,
) -> PriceEstimate:
    """Cost for one venue: per person for food and activities, per night for hotels."""
    if snippets:
        found = extract_price_from_text(snippets, venue_kind(category))
        if found is not None:
            return PriceEstimate(
                estimated_cost=found,
                confidence="high",
                source="web_search",
                explanation=f"Found price from web search: ~${found}",
            )
    return fallback_estimate(category, title, description, price_range)


def price_queries(title: str, category: Optional[str], location: str) -> List[str]:
    kind = venue_kind(category)
    if kind == "restaurant":
        return [
            f'"{title}" {location} price per person',
            f'"{title}" {location} menu prices how much',
            f'"{title}" restaurant cost dinner',
        ]
    if kind == "hotel":
        return [
            f'"{title}" {location} room rate per night',
            f'"{title}" hotel nightly rate price',
            f'"{title}" {location} hotel cost',
        ]
    return [
        f'"{title}" {location} ticket price admission',
        f'"{title}" cost how much',
    ]


async def search_price_estimate(
    searcher,
    title: str,
    category: Optional[str],
    location: str,
    *,
    price_range: Optional[str] = None,
    description: Optional[str] = None,
) -> PriceEstimate:
    """Try web-search queries in order, then fall back to the static heuristics."""
    kind = venue_kind(category)
    for query in price_queries(title, category, location):
        page = await searcher.search_html(query)
        if not page:
            continue
        found = extract_price_from_text(page, kind)
        if found is not None:
            logger.info("Web search priced '%s' at ~$%s via query '%s'", title, found, query)
            return PriceEstimate(
                estimated_cost=found,
                confidence="high",
                source="web_search",
                explanation=f"Found price from web search: ~${found}",
            )
    logger.info("No web price for '%s'; using heuristics", title)
    return fallback_estimate(category, title, description, price_range)
