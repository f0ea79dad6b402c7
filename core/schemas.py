# core/schemas.py
# ------------------------------------------------------------------------------
# Shapes of the JSON payloads Gemini is asked to produce. Field aliases keep the
# camelCase keys used in the prompts and in stored trips.

from typing import List, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field, model_validator

ActivityType = Literal["attraction", "food", "adventure", "culture", "relaxation", "shopping"]
ACTIVITY_TYPES = get_args(ActivityType)


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Activity(_Payload):
    time: str
    activity: str
    description: str = ""
    duration: str = ""
    type: ActivityType


class Meals(_Payload):
    breakfast: str = ""
    lunch: str = ""
    dinner: str = ""


class DayPlan(_Payload):
    day: int
    theme: str = ""
    activities: List[Activity]
    meals: Meals = Field(default_factory=Meals)
    accommodation: Optional[str] = None


class Itinerary(_Payload):
    destination: str
    country: str
    days: int = Field(ge=1)
    travel_style: str = Field(alias="travelStyle")
    overview: str = ""
    tips: List[str] = Field(default_factory=list)
    itinerary: List[DayPlan]

    @model_validator(mode="after")
    def _check_day_numbers(self):
        numbers = [d.day for d in self.itinerary]
        if numbers != list(range(1, len(numbers) + 1)):
            raise ValueError(f"day numbers must run 1..n in order, got {numbers}")
        if len(numbers) != self.days:
            raise ValueError(f"itinerary has {len(numbers)} day plans but days={self.days}")
        return self


class PlaceDetail(_Payload):
    name: str
    category: str = ""
    location: str = ""
    continent: str = ""
    description: str
    history: str = ""
    highlights: List[str] = Field(default_factory=list)
    best_time: str = Field("", alias="bestTime")
    entry_fee: str = Field("", alias="entryFee")
    duration: str = ""
    tips: List[str] = Field(default_factory=list)
    nearby_attractions: List[str] = Field(default_factory=list, alias="nearbyAttractions")
    fun_fact: str = Field("", alias="funFact")


class PlaceSummary(_Payload):
    name: str
    location: str = ""
    continent: str = ""
    tagline: str = ""
    period: str = ""
    rating: Optional[float] = None
    visitors: str = ""
    tags: List[str] = Field(default_factory=list)
    unsplash_query: str = Field("", alias="unsplashQuery")
