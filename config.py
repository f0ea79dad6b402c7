# config.py

import logging
import os

from dotenv import load_dotenv

OPENWEATHER_BASE_URL = "https://api.openweathermap.org/data/2.5"
TRIPS_KEY = "wanderai_trips"

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


def load_env() -> None:
    """Load `.env` into the process environment. Entry points call this first."""
    load_dotenv()


def setup_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or os.getenv("LOG_LEVEL", "INFO")).upper(),
        format=LOG_FORMAT,
    )


def weather_api_key() -> str:
    k = os.getenv("OW_API_KEY")
    if not k:
        raise RuntimeError("Environment variable OW_API_KEY is missing.")
    return k


def gemini_api_key() -> str:
    k = os.getenv("GEMINI_API_KEY")
    if not k:
        raise RuntimeError("Environment variable GEMINI_API_KEY is missing.")
    return k


def gemini_model_name() -> str:
    return os.getenv("GEMINI_MODEL", "gemini-1.5-flash")


def weather_timeout() -> float:
    return float(os.getenv("WEATHER_TIMEOUT", "10"))


def refresh_minutes() -> float:
    return float(os.getenv("WEATHER_REFRESH_MINUTES", "10"))


def trips_file() -> str:
    return os.getenv("WANDERAI_TRIPS_FILE", os.path.join("~", ".wanderai", "trips.json"))
