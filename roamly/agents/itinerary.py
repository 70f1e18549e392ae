"""Confirmed venues -> day-by-day itinerary.

Pure and deterministic: the same links in the same order over the same dates
always give the same plan. Costs come from the static estimator tables only.
"""
from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from roamly.agents.price_estimator import estimate_cost, is_fine_dining
from roamly.config import get_logger
from roamly.errors import InvalidInput, InvalidRange
from roamly.schemas import MEAL_ORDER, DayPlan, Itinerary, ItineraryItem, VenueLink

logger = get_logger(__name__)

CHECKIN_TIME = "3:00 PM"
CHECKOUT_TIME = "11:00 AM"
OTHER_TIME = "2:00 PM"

MEAL_SLOTS: Dict[str, Tuple[str, str]] = {
    "breakfast": ("9:00 AM", "morning"),
    "lunch": ("12:30 PM", "afternoon"),
    "dinner": ("7:00 PM", "evening"),
}
ACTIVITY_SLOTS: Tuple[Tuple[str, str], ...] = (("10:00 AM", "morning"), ("2:00 PM", "afternoon"))

FINE_DINING_PREFERENCE = ("dinner", "lunch")
BREAKFAST_PREFERENCE = ("breakfast",)
CASUAL_PREFERENCE = ("lunch",)
DEFAULT_PREFERENCE = ("dinner", "lunch", "breakfast")

_BREAKFAST_WORDS = re.compile(
    r"\b(?:breakfast|brunch|bakery|boulangerie|patisserie|bagels?|pancakes?|waffles?|donuts?|doughnuts?|"
    r"caf[eé]|coffee|espresso|diner)\b",
    re.IGNORECASE,
)
_CASUAL_WORDS = re.compile(
    r"\b(?:deli|sandwich(?:es)?|pizza|pizzeria|burgers?|tacos?|taqueria|food truck|food hall|"
    r"hot dogs?|noodles?|dumplings?|counter|slice|salad|bowls?)\b",
    re.IGNORECASE,
)
_CLOCK = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])\s*$")

DateLike = Union[str, date, datetime]


def parse_date(value: DateLike, field: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            pass
    raise InvalidInput(f"Invalid {field}: {value!r}")


def clock_minutes(time_label: str) -> int:
    """Minutes after midnight for "h:MM AM/PM" labels; unknown labels sort last."""
    match = _CLOCK.match(time_label or "")
    if not match:
        return 24 * 60
    hour, minute, meridiem = int(match.group(1)) % 12, int(match.group(2)), match.group(3).upper()
    if meridiem == "PM":
        hour += 12
    return hour * 60 + minute


def meal_preference(link: VenueLink) -> Tuple[str, ...]:
    """Ordered meal periods this venue would rather fill."""
    text = f"{link.title or ''} {link.description or ''}"
    if link.venue_type == "fine_dining" or link.price_range == "$$$$" or is_fine_dining(link.title, link.description):
        return FINE_DINING_PREFERENCE
    if link.meal_times:
        return tuple(link.meal_times)
    if link.venue_type == "cafe" or _BREAKFAST_WORDS.search(text):
        return BREAKFAST_PREFERENCE
    if link.venue_type in ("casual", "fast_casual") or _CASUAL_WORDS.search(text):
        return CASUAL_PREFERENCE
    return DEFAULT_PREFERENCE


class MealSlots:
    """Free/used map over (day index, meal) pairs, ``3 * trip_days`` in total."""

    def __init__(self, trip_days: int):
        self.trip_days = trip_days
        self._free = {(day, meal) for day in range(trip_days) for meal in MEAL_ORDER}

    def take(self, preference: Sequence[str]) -> Optional[Tuple[int, str]]:
        for meal in preference:
            for day in range(self.trip_days):
                if (day, meal) in self._free:
                    self._free.discard((day, meal))
                    return day, meal
        for day in range(self.trip_days):
            for meal in MEAL_ORDER:
                if (day, meal) in self._free:
                    self._free.discard((day, meal))
                    return day, meal
        return None


def _partition(links: Iterable[VenueLink]) -> Dict[str, List[VenueLink]]:
    buckets: Dict[str, List[VenueLink]] = {"hotel": [], "food": [], "activity": [], "other": []}
    for link in links:
        buckets.get(link.category, buckets["other"]).append(link)
    return buckets


def _cost(link: VenueLink) -> float:
    return float(estimate_cost(link.category, link.title, link.description, link.price_range).estimated_cost)


def _plural(count: int, singular: str, plural: str) -> str:
    return f"{count} {singular if count == 1 else plural}"


def _day_label(day_number: int, day: date) -> str:
    return f"Day {day_number} - {day:%a}, {day:%b} {day.day}"


def build_summary(trip_days: int, destination: str, hotels: int, meals: int, activities: int) -> str:
    return (
        f"{trip_days}-day trip to {destination} with {_plural(hotels, 'stay', 'stays')}, "
        f"{_plural(meals, 'meal', 'meals')}, and {_plural(activities, 'activity', 'activities')}."
    )


def generate_itinerary(
    links: Iterable[VenueLink],
    start: DateLike,
    end: DateLike,
    destination: Optional[str] = None,
) -> Itinerary:
    """Lay confirmed links out over the trip.

    Raises ``InvalidRange`` when ``end`` precedes ``start`` and ``InvalidInput``
    when either date cannot be parsed.
    """
    start_day = parse_date(start, "start date")
    end_day = parse_date(end, "end date")
    trip_days = (end_day - start_day).days + 1
    if trip_days < 1:
        raise InvalidRange(f"End date {end_day.isoformat()} is before start date {start_day.isoformat()}")
    destination = (destination or "").strip() or "your destination"

    confirmed = [link for link in links if link.is_confirmed]
    buckets = _partition(confirmed)
    hotels, meals, activities, others = buckets["hotel"], buckets["food"], buckets["activity"], buckets["other"]

    days: List[DayPlan] = []
    for idx in range(trip_days):
        current = start_day + timedelta(days=idx)
        days.append(DayPlan(date=current.isoformat(), day_number=idx + 1, day_label=_day_label(idx + 1, current)))

    # Hotel: one stay, cost for the whole trip on the check-in item
    if hotels:
        hotel = hotels[0]
        if len(hotels) > 1:
            logger.info("%d hotels confirmed; scheduling only '%s'", len(hotels), hotel.title)
        first, last = days[0], days[-1]
        first.items.append(
            ItineraryItem(
                id=f"{first.date}-checkin",
                date=first.date,
                time=CHECKIN_TIME,
                time_slot="afternoon",
                type="hotel_checkin",
                title=f"Check in at {hotel.title or 'Hotel'}",
                subtitle=f"{hotel.price_range} per night" if hotel.price_range else None,
                link=hotel,
                estimated_cost=_cost(hotel) * trip_days,
            )
        )
        last.items.append(
            ItineraryItem(
                id=f"{last.date}-checkout",
                date=last.date,
                time=CHECKOUT_TIME,
                time_slot="morning",
                type="hotel_checkout",
                title=f"Check out from {hotel.title or 'Hotel'}",
                link=hotel,
            )
        )

    # Meals: preferred free slot, else any free slot, else dropped
    slots = MealSlots(trip_days)
    for idx, meal in enumerate(meals):
        picked = slots.take(meal_preference(meal))
        if picked is None:
            logger.info("No free meal slot left; dropping '%s' from the schedule", meal.title)
            continue
        day_idx, period = picked
        day = days[day_idx]
        time_label, time_slot = MEAL_SLOTS[period]
        day.items.append(
            ItineraryItem(
                id=f"{day.date}-meal-{idx}",
                date=day.date,
                time=time_label,
                time_slot=time_slot,
                type="meal",
                title=f"{period.capitalize()} at {meal.title or 'Restaurant'}",
                subtitle=meal.price_range or None,
                link=meal,
                estimated_cost=_cost(meal),
            )
        )

    # Activities: round-robin over days, morning/afternoon alternating
    for idx, activity in enumerate(activities):
        day = days[idx % trip_days]
        time_label, time_slot = ACTIVITY_SLOTS[idx % len(ACTIVITY_SLOTS)]
        day.items.append(
            ItineraryItem(
                id=f"{day.date}-activity-{idx}",
                date=day.date,
                time=time_label,
                time_slot=time_slot,
                type="activity",
                title=activity.title or "Activity",
                subtitle=activity.price_range or None,
                link=activity,
                estimated_cost=_cost(activity),
            )
        )

    for idx, other in enumerate(others):
        day = days[idx % trip_days]
        day.items.append(
            ItineraryItem(
                id=f"{day.date}-other-{idx}",
                date=day.date,
                time=OTHER_TIME,
                time_slot="afternoon",
                type="other",
                title=other.title or "Activity",
                link=other,
                estimated_cost=_cost(other),
            )
        )

    for day in days:
        day.items.sort(key=lambda item: clock_minutes(item.time))

    total_cost = sum(item.estimated_cost or 0.0 for day in days for item in day.items)
    summary = build_summary(trip_days, destination, len(hotels), len(meals), len(activities) + len(others))
    logger.info("Built %d-day itinerary for %s (total $%.0f)", trip_days, destination, total_cost)
    return Itinerary(days=days, total_cost=total_cost, summary=summary)
