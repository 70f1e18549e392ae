from datetime import date, timedelta

import pytest

from roamly.agents.itinerary import clock_minutes, generate_itinerary, meal_preference
from roamly.errors import InvalidInput, InvalidRange
from roamly.schemas import VenueLink


def _link(category, title, confirmed=True, **extra) -> VenueLink:
    slug = title.lower().replace(" ", "-").replace("'", "")
    return VenueLink(url=f"https://example.com/{slug}", title=title, category=category, is_confirmed=confirmed, **extra)


def _items(itinerary, item_type=None):
    return [item for day in itinerary.days for item in day.items if item_type is None or item.type == item_type]


def test_day_count_and_labels():
    itinerary = generate_itinerary([], "2026-03-01", "2026-03-03", "Paris")
    assert [d.day_number for d in itinerary.days] == [1, 2, 3]
    assert [d.date for d in itinerary.days] == ["2026-03-01", "2026-03-02", "2026-03-03"]
    assert itinerary.days[0].day_label == "Day 1 - Sun, Mar 1"
    assert itinerary.total_cost == 0
    assert itinerary.summary == "3-day trip to Paris with 0 stays, 0 meals, and 0 activities."


def test_day_count_invariant_over_ranges():
    start = date(2026, 1, 28)
    for span in range(0, 10):
        end = start + timedelta(days=span)
        itinerary = generate_itinerary([], start.isoformat(), end.isoformat(), "Rome")
        assert len(itinerary.days) == span + 1
        assert itinerary.days[-1].date == end.isoformat()


def test_invalid_dates():
    with pytest.raises(InvalidRange):
        generate_itinerary([], "2026-03-03", "2026-03-01", "Paris")
    with pytest.raises(InvalidInput):
        generate_itinerary([], "not-a-date", "2026-03-01", "Paris")


def test_hotel_checkin_and_checkout():
    hotel = _link("hotel", "The Ritz-Carlton")
    itinerary = generate_itinerary([hotel], "2026-03-01", "2026-03-03", "New York")

    first, last = itinerary.days[0].items, itinerary.days[-1].items
    assert [i.type for i in first] == ["hotel_checkin"]
    assert first[0].time == "3:00 PM"
    assert first[0].id == "2026-03-01-checkin"
    assert first[0].estimated_cost == 950 * 3
    assert [i.type for i in last] == ["hotel_checkout"]
    assert last[0].time == "11:00 AM"
    assert last[0].estimated_cost is None
    assert itinerary.days[1].items == []
    assert itinerary.total_cost == 2850


def test_one_day_trip_gets_checkout_before_checkin():
    itinerary = generate_itinerary([_link("hotel", "Blue Door Guesthouse")], "2026-03-01", "2026-03-01")
    assert [i.type for i in itinerary.days[0].items] == ["hotel_checkout", "hotel_checkin"]


def test_tasting_menu_goes_to_dinner():
    atomix = _link("food", "Atomix", description="Korean tasting menu in NoMad")
    itinerary = generate_itinerary([atomix], "2026-03-01", "2026-03-02", "New York")
    meal = _items(itinerary, "meal")[0]
    assert meal.time == "7:00 PM"
    assert meal.time_slot == "evening"
    assert meal.title == "Dinner at Atomix"
    assert meal.estimated_cost == 200


def test_meal_preferences():
    assert meal_preference(_link("food", "Sunrise Bakery")) == ("breakfast",)
    assert meal_preference(_link("food", "Joe's Pizza")) == ("lunch",)
    assert meal_preference(_link("food", "Some Place")) == ("dinner", "lunch", "breakfast")
    assert meal_preference(_link("food", "Some Place", venue_type="fine_dining")) == ("dinner", "lunch")
    assert meal_preference(_link("food", "Lucali", venue_type="casual", meal_times=["dinner"])) == ("dinner",)
    assert meal_preference(_link("food", "Buvette", meal_times=["lunch", "breakfast"])) == ("breakfast", "lunch")


def test_known_meal_times_steer_slot_choice():
    pizza = _link("food", "Joe's Pizza")
    lucali = _link("food", "Lucali", venue_type="casual", meal_times=["dinner"])
    itinerary = generate_itinerary([pizza, lucali], "2026-03-01", "2026-03-01", "New York")
    placed = {item.link.title: item.time for item in _items(itinerary, "meal")}
    assert placed == {"Joe's Pizza": "12:30 PM", "Lucali": "7:00 PM"}


def test_preferred_period_filled_across_days_before_falling_back():
    meals = [_link("food", f"Tasting Menu {n}") for n in range(3)]
    itinerary = generate_itinerary(meals, "2026-03-01", "2026-03-02", "Paris")
    placed = [(item.date, item.time) for item in _items(itinerary, "meal")]
    assert sorted(placed) == sorted([
        ("2026-03-01", "7:00 PM"),
        ("2026-03-02", "7:00 PM"),
        ("2026-03-01", "12:30 PM"),
    ])


def test_meals_beyond_capacity_are_dropped():
    meals = [_link("food", f"Some Place {n}") for n in range(4)]
    itinerary = generate_itinerary(meals, "2026-03-01", "2026-03-01", "Paris")
    assert len(_items(itinerary, "meal")) == 3
    assert {i.time for i in _items(itinerary, "meal")} == {"9:00 AM", "12:30 PM", "7:00 PM"}


def test_activities_and_others_round_robin():
    activities = [_link("activity", f"Museum {n}") for n in range(3)]
    other = _link("other", "Pick up tickets")
    itinerary = generate_itinerary(activities + [other], "2026-03-01", "2026-03-02", "Paris")

    placed = [(i.date, i.time, i.time_slot) for i in _items(itinerary, "activity")]
    assert ("2026-03-01", "10:00 AM", "morning") in placed
    assert ("2026-03-02", "2:00 PM", "afternoon") in placed
    assert placed.count(("2026-03-01", "10:00 AM", "morning")) == 2

    others = _items(itinerary, "other")
    assert [(o.date, o.time) for o in others] == [("2026-03-01", "2:00 PM")]
    assert others[0].estimated_cost == 25


def test_unconfirmed_links_and_missing_category():
    rows = [
        _link("food", "Skipped Spot", confirmed=False),
        VenueLink.model_validate({"url": "https://example.com/x", "title": "Mystery", "category": None, "is_confirmed": True}),
    ]
    itinerary = generate_itinerary(rows, "2026-03-01", "2026-03-01", None)
    assert [i.type for i in _items(itinerary)] == ["other"]
    assert itinerary.summary == "1-day trip to your destination with 0 stays, 0 meals, and 1 activity."


def _full_trip():
    return [
        _link("hotel", "Hampton Inn Manhattan"),
        _link("food", "Sunrise Bakery", price_range="$"),
        _link("food", "Joe's Pizza", price_range="$"),
        _link("food", "Le Bernardin", description="Michelin starred seafood"),
        _link("activity", "Museum of Modern Art"),
        _link("activity", "Harbor Cruise"),
        _link("other", "Meet friends"),
    ]


def test_items_sorted_by_time_and_total_consistent():
    itinerary = generate_itinerary(_full_trip(), "2026-03-01", "2026-03-03", "New York")
    for day in itinerary.days:
        minutes = [clock_minutes(i.time) for i in day.items]
        assert minutes == sorted(minutes)
    assert itinerary.total_cost == sum(i.estimated_cost or 0 for i in _items(itinerary))
    assert itinerary.summary == "3-day trip to New York with 1 stay, 3 meals, and 3 activities."


def test_generation_is_idempotent():
    first = generate_itinerary(_full_trip(), "2026-03-01", "2026-03-03", "New York")
    second = generate_itinerary(_full_trip(), "2026-03-01", "2026-03-03", "New York")
    assert first.model_dump() == second.model_dump()


def test_clock_minutes():
    assert clock_minutes("12:30 PM") == 12 * 60 + 30
    assert clock_minutes("12:05 AM") == 5
    assert clock_minutes("9:00 AM") < clock_minutes("2:00 PM") < clock_minutes("7:00 PM")
