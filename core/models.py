# core/models.py

import datetime as dt
from dataclasses import dataclass, field
from typing import List, Literal, Optional


@dataclass(frozen=True)
class WeatherSample:
    dt: int
    temp: float
    temp_min: float
    temp_max: float
    feels_like: float
    humidity: int
    pressure: int
    wind_speed: float
    wind_deg: Optional[int]
    condition: str
    description: str
    icon: str
    pop: float = 0.0


@dataclass(frozen=True)
class DailyForecast:
    date_key: dt.date
    day: str            # "Tue"
    date: str           # "Jun 4"
    temp: int
    temp_min: int
    temp_max: int
    condition: str
    description: str
    icon: str
    humidity: int
    wind: float
    wind_deg: Optional[int]
    pop: int            # probability of precipitation, %


@dataclass(frozen=True)
class CurrentWeather:
    city: str
    country: str
    temp: int
    feels_like: int
    temp_min: int
    temp_max: int
    humidity: int
    wind: float
    wind_deg: Optional[int]
    condition: str
    description: str
    icon: str
    visibility: int     # km
    pressure: int
    sunrise: int
    sunset: int
    timezone: int       # offset from UTC, seconds


@dataclass(frozen=True)
class WeatherReport:
    current: CurrentWeather
    forecast: List[DailyForecast] = field(default_factory=list)


@dataclass
class ChatMessage:
    role: Literal["user", "assistant"]
    content: str


@dataclass
class ItineraryRequest:
    destination: str
    country: str
    days: int
    travel_style: str
    interests: List[str] = field(default_factory=list)
