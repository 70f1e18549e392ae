"""URL/title to venue category.

Groups are tested in a fixed order, hotel -> food -> activity, and the first
group with a hit wins. TripAdvisor pages are told apart by their path marker
(`Hotel_Review`, `Restaurant_Review`); any other TripAdvisor URL falls through
to the activity group, which holds the bare host.
"""
from __future__ import annotations

import re
from typing import Any, Tuple

from roamly.schemas import Category

_HOTEL_PATTERNS: Tuple[str, ...] = (
    r"booking\.com",
    r"hotels\.com",
    r"expedia\.",
    r"airbnb\.[a-z.]+/(?!experiences)",
    r"vrbo\.",
    r"agoda\.",
    r"trivago\.",
    r"hostelworld\.",
    r"marriott\.com",
    r"hilton\.com",
    r"hyatt\.com",
    r"ihg\.com",
    r"accor\.com",
    r"fourseasons\.com",
    r"ritzcarlton\.com",
    r"hotel_review",
    r"\bhotels?\b",
    r"\bresorts?\b",
    r"\binn\b",
    r"\bsuites?\b",
    r"\blodge\b",
    r"\bhostels?\b",
    r"\bmotels?\b",
    r"\bbed (?:and|&) breakfast\b",
    r"\bb&b\b",
    r"\baccommodations?\b",
    r"\bvacation rentals?\b",
)

_FOOD_PATTERNS: Tuple[str, ...] = (
    r"yelp\.",
    r"opentable\.",
    r"resy\.com",
    r"exploretock\.",
    r"theinfatuation\.",
    r"eater\.com",
    r"guide\.michelin\.",
    r"doordash\.",
    r"ubereats\.",
    r"grubhub\.",
    r"restaurant_review",
    r"\brestaurants?\b",
    r"\bcaf[eé]s?\b",
    r"\bcoffee\b",
    r"\bbakery\b",
    r"\bbistro\b",
    r"\bbrasserie\b",
    r"\btrattoria\b",
    r"\bosteria\b",
    r"\bpizzeria\b",
    r"\bpizza\b",
    r"\bsushi\b",
    r"\bramen\b",
    r"\btacos?\b",
    r"\btaqueria\b",
    r"\bburgers?\b",
    r"\bdiner\b",
    r"\bdining\b",
    r"\bsteakhouse\b",
    r"\bomakase\b",
    r"\btasting menu\b",
    r"\bbrunch\b",
    r"\bbreakfast\b",
    r"\bmenus?\b",
    r"\beatery\b",
    r"\bkitchen\b",
    r"\bgrill\b",
    r"\bbar\b",
    r"\bwine bar\b",
    r"\bcocktails?\b",
    r"\bfood\b",
)

_ACTIVITY_PATTERNS: Tuple[str, ...] = (
    r"viator\.",
    r"getyourguide\.",
    r"klook\.",
    r"eventbrite\.",
    r"ticketmaster\.",
    r"stubhub\.",
    r"broadway\.",
    r"tripadvisor\.",
    r"airbnb\.[a-z.]+/experiences",
    r"attraction_review",
    r"\bmuseums?\b",
    r"\bgallery\b",
    r"\btours?\b",
    r"\btickets?\b",
    r"\bparks?\b",
    r"\bzoo\b",
    r"\baquarium\b",
    r"\btheat(?:er|re)\b",
    r"\bshows?\b",
    r"\bconcerts?\b",
    r"\bexhibits?(?:ion)?\b",
    r"\battractions?\b",
    r"\bexperiences?\b",
    r"\bexcursions?\b",
    r"\bcruises?\b",
    r"\bhik(?:e|ing)\b",
    r"\bspa\b",
    r"\bthings to do\b",
)

_GROUPS: Tuple[Tuple[Category, re.Pattern], ...] = tuple(
    (category, re.compile("|".join(patterns), re.IGNORECASE))
    for category, patterns in (
        ("hotel", _HOTEL_PATTERNS),
        ("food", _FOOD_PATTERNS),
        ("activity", _ACTIVITY_PATTERNS),
    )
)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def classify(url: Any, title: Any = None) -> Category:
    """Return hotel, food, activity or other. Never raises."""
    haystack = f"{_as_text(url)} {_as_text(title)}".lower()
    for category, pattern in _GROUPS:
        if pattern.search(haystack):
            return category
    return "other"
