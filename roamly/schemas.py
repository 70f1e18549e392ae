from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Category = Literal["hotel", "food", "activity", "other"]
VenueType = Literal["fine_dining", "fast_casual", "cafe", "bar", "casual"]
MealTime = Literal["breakfast", "lunch", "dinner"]
PriceRange = Literal["$", "$$", "$$$", "$$$$"]
TimeSlot = Literal["morning", "afternoon", "evening", "night"]
ItemType = Literal["hotel_checkin", "hotel_checkout", "meal", "activity", "other"]
Confidence = Literal["high", "medium", "low"]

CATEGORIES = ("hotel", "food", "activity", "other")
MEAL_ORDER = ("breakfast", "lunch", "dinner")


class ApiModel(BaseModel):
    """Snake_case in Python, camelCase on the wire; either spelling validates."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, alias_generator=to_camel)


# ------- Venue records -------
class VenueLink(ApiModel):
    id: Optional[str] = None
    url: str
    title: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    site_name: Optional[str] = None
    category: Category = "other"
    rating: Optional[float] = None
    review_count: Optional[int] = None
    price_range: Optional[PriceRange] = None
    rating_source: Optional[str] = None
    # Enrichment (food only, hotels may carry a summary)
    venue_type: Optional[VenueType] = None
    meal_times: Optional[List[MealTime]] = None
    estimated_price_per_person: Optional[float] = None
    cuisine_type: Optional[str] = None
    ai_summary: Optional[str] = None
    is_confirmed: bool = False

    @field_validator("category", mode="before")
    @classmethod
    def _unknown_category_is_other(cls, value):
        if isinstance(value, str) and value.lower() in CATEGORIES:
            return value.lower()
        return "other"

    @field_validator("price_range", mode="before")
    @classmethod
    def _glyph_price_range(cls, value):
        if value is None:
            return None
        text = str(value).strip()
        if not text or set(text) != {"$"}:
            return None
        return "$" * min(len(text), 4)

    @field_validator("meal_times", mode="before")
    @classmethod
    def _ordered_meal_times(cls, value):
        if value is None:
            return None
        if isinstance(value, str):
            value = [value]
        picked = {str(v).lower() for v in value}
        return [meal for meal in MEAL_ORDER if meal in picked]


class RatingSignal(ApiModel):
    rating: Optional[float] = None
    review_count: Optional[int] = None
    price_range: Optional[PriceRange] = None
    source: Optional[str] = None

    def is_empty(self) -> bool:
        return self.rating is None and self.review_count is None and self.price_range is None


class VenueEnrichment(ApiModel):
    venue_type: Optional[VenueType] = None
    meal_times: Optional[List[MealTime]] = None
    estimated_price_per_person: Optional[float] = None
    cuisine_type: Optional[str] = None
    ai_summary: Optional[str] = None


class PriceEstimate(ApiModel):
    estimated_cost: float
    confidence: Confidence
    source: str
    explanation: str


# ------- Itinerary -------
class ItineraryItem(ApiModel):
    id: str
    date: str
    time: str
    time_slot: TimeSlot
    type: ItemType
    title: str
    subtitle: Optional[str] = None
    link: Optional[VenueLink] = None
    estimated_cost: Optional[float] = None


class DayPlan(ApiModel):
    date: str
    day_number: int
    day_label: str
    items: List[ItineraryItem] = Field(default_factory=list)


class Itinerary(ApiModel):
    days: List[DayPlan] = Field(default_factory=list)
    total_cost: float = 0.0
    summary: str = ""


# ------- Store rows -------
class TripRecord(ApiModel):
    id: str
    name: Optional[str] = None
    destination: Optional[str] = None
    start_date: str
    end_date: str
    links: List[VenueLink] = Field(default_factory=list)

    @field_validator("links", mode="before")
    @classmethod
    def _null_links(cls, value):
        return value or []


# ------- Weather -------
class Weather(BaseModel):
    temp_f: int
    temp_c: int
    condition: str
    icon: str
    humidity: int
    feels_like_f: int
