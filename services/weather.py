# services/weather.py

from __future__ import annotations

import datetime as dt
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable

import requests

import config
from core.errors import WeatherError
from core.models import CurrentWeather, DailyForecast, WeatherReport, WeatherSample

logger = logging.getLogger(__name__)

_DEFAULT_ERROR = "Could not fetch weather data."
_FORECAST_SAMPLES = 40      # 5 days x 8 three-hour slots
_MAX_DAYS = 5

_EMOJI = {
    "Clear": "☀️",
    "Clouds": "☁️",
    "Rain": "🌧️",
    "Drizzle": "🌦️",
    "Thunderstorm": "⛈️",
    "Snow": "❄️",
    "Mist": "🌫️",
    "Fog": "🌫️",
    "Haze": "🌫️",
    "Smoke": "🌫️",
    "Dust": "🌪️",
    "Sand": "🌪️",
    "Tornado": "🌪️",
}
_COMPASS = ["N", "NE", "E", "SE", "S", "SW", "W", "NW"]


# ──────────────────────────────────────────────────────────────────────────────
# Rounding (half-up, like the provider's own widgets)
# ──────────────────────────────────────────────────────────────────────────────
def _round(x: float) -> int:
    return math.floor(x + 0.5)


def _round1(x: float) -> float:
    return math.floor(x * 10 + 0.5) / 10


# ──────────────────────────────────────────────────────────────────────────────
# HTTP
# ──────────────────────────────────────────────────────────────────────────────
def _req(endpoint: str, **params) -> dict:
    """
    GET an OpenWeather endpoint in metric units.
    Any transport failure or 4xx/5xx becomes a WeatherError carrying the
    provider's `message` when it sent one.
    """
    params.update(appid=config.weather_api_key(), units="metric")
    url = f"{config.OPENWEATHER_BASE_URL}/{endpoint}"
    try:
        r = requests.get(url, params=params, timeout=config.weather_timeout())
    except requests.RequestException as exc:
        logger.error("OpenWeather %s request failed: %s", endpoint, exc)
        raise WeatherError(_DEFAULT_ERROR) from exc

    if r.status_code >= 400:
        try:
            msg = r.json().get("message") or _DEFAULT_ERROR
        except ValueError:
            msg = _DEFAULT_ERROR
        logger.error("OpenWeather %s returned %s: %s", endpoint, r.status_code, msg)
        raise WeatherError(msg)

    try:
        return r.json()
    except ValueError as exc:
        raise WeatherError(_DEFAULT_ERROR) from exc


# ──────────────────────────────────────────────────────────────────────────────
# Current conditions
# ──────────────────────────────────────────────────────────────────────────────
def normalize_current(d: dict) -> CurrentWeather:
    """Map a raw `/weather` payload to a CurrentWeather snapshot."""
    main, wind, sys_ = d["main"], d.get("wind", {}), d.get("sys", {})
    w = d["weather"][0]
    return CurrentWeather(
        city=d["name"],
        country=sys_.get("country", ""),
        temp=_round(main["temp"]),
        feels_like=_round(main["feels_like"]),
        temp_min=_round(main["temp_min"]),
        temp_max=_round(main["temp_max"]),
        humidity=main["humidity"],
        wind=_round1(wind.get("speed", 0)),
        wind_deg=wind.get("deg"),
        condition=w["main"],
        description=w["description"],
        icon=w["icon"],
        # missing visibility means "unlimited", reported as 10 km
        visibility=_round((d.get("visibility") or 10000) / 1000),
        pressure=main["pressure"],
        sunrise=sys_.get("sunrise", 0),
        sunset=sys_.get("sunset", 0),
        timezone=d.get("timezone", 0),
    )


def fetch_current(city: str) -> CurrentWeather:
    data = _req("weather", q=city)
    try:
        return normalize_current(data)
    except (KeyError, IndexError, TypeError) as exc:
        raise WeatherError(f"Unexpected current-weather payload for {city!r}.") from exc


# ──────────────────────────────────────────────────────────────────────────────
# Forecast
# ──────────────────────────────────────────────────────────────────────────────
def parse_sample(item: dict) -> WeatherSample:
    main, wind = item["main"], item.get("wind", {})
    w = item["weather"][0]
    return WeatherSample(
        dt=item["dt"],
        temp=main["temp"],
        temp_min=main.get("temp_min", main["temp"]),
        temp_max=main.get("temp_max", main["temp"]),
        feels_like=main.get("feels_like", main["temp"]),
        humidity=main["humidity"],
        pressure=main.get("pressure", 0),
        wind_speed=wind.get("speed", 0),
        wind_deg=wind.get("deg"),
        condition=w["main"],
        description=w["description"],
        icon=w["icon"],
        pop=item.get("pop") or 0.0,
    )


def aggregate_forecast(
    samples: Iterable[WeatherSample], tz: dt.tzinfo | None = None
) -> list[DailyForecast]:
    """
    Collapse 3-hour samples into one record per UTC calendar date.

    The representative sample of a date is the one whose hour (in `tz`, or the
    machine's local zone when None) is nearest to 12:00; the first one seen
    wins a tie. temp_min/temp_max span every sample of the date, every other
    field comes from the representative. At most the first five dates seen
    are returned, in the order they first appeared.
    """
    buckets: dict[dt.date, dict] = {}
    for s in samples:
        key = dt.datetime.fromtimestamp(s.dt, dt.timezone.utc).date()
        hour = dt.datetime.fromtimestamp(s.dt, tz).hour
        b = buckets.get(key)
        if b is None:
            buckets[key] = {"rep": s, "hour": hour, "temps": [s.temp]}
            continue
        if abs(hour - 12) < abs(b["hour"] - 12):
            b["rep"], b["hour"] = s, hour
        b["temps"].append(s.temp)

    days: list[DailyForecast] = []
    for key, b in list(buckets.items())[:_MAX_DAYS]:
        rep: WeatherSample = b["rep"]
        days.append(
            DailyForecast(
                date_key=key,
                day=key.strftime("%a"),
                date=f"{key:%b} {key.day}",
                temp=_round(rep.temp),
                temp_min=_round(min(b["temps"])),
                temp_max=_round(max(b["temps"])),
                condition=rep.condition,
                description=rep.description,
                icon=rep.icon,
                humidity=rep.humidity,
                wind=_round1(rep.wind_speed),
                wind_deg=rep.wind_deg,
                pop=_round(rep.pop * 100),
            )
        )
    return days


def fetch_forecast(city: str, tz: dt.tzinfo | None = None) -> list[DailyForecast]:
    """5-day / 3-hour OpenWeather forecast, grouped into daily records."""
    data = _req("forecast", q=city, cnt=_FORECAST_SAMPLES)
    try:
        samples = [parse_sample(item) for item in data["list"]]
    except (KeyError, IndexError, TypeError) as exc:
        raise WeatherError(f"Unexpected forecast payload for {city!r}.") from exc
    logger.debug("Aggregating %d forecast samples for %s", len(samples), city)
    return aggregate_forecast(samples, tz)


def fetch_weather(city: str) -> WeatherReport:
    """
    Current conditions and forecast, fetched concurrently.
    If either call fails the whole report fails; nothing partial is returned.
    """
    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="weather") as pool:
        current = pool.submit(fetch_current, city)
        forecast = pool.submit(fetch_forecast, city)
        report = WeatherReport(current=current.result(), forecast=forecast.result())
    logger.info("Weather for %s: %s°C, %d forecast days", city, report.current.temp, len(report.forecast))
    return report


# ──────────────────────────────────────────────────────────────────────────────
# Display helpers
# ──────────────────────────────────────────────────────────────────────────────
def icon_url(icon: str) -> str:
    return f"https://openweathermap.org/img/wn/{icon}@2x.png"


def weather_emoji(condition: str) -> str:
    return _EMOJI.get(condition, "🌡️")


def wind_direction(deg: float) -> str:
    return _COMPASS[_round(deg / 45) % 8]


def format_time(ts: int, tz_offset: int) -> str:
    """HH:MM of an epoch timestamp at a location `tz_offset` seconds from UTC."""
    return dt.datetime.fromtimestamp(ts + tz_offset, dt.timezone.utc).strftime("%H:%M")
