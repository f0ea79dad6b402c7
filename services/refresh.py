# services/refresh.py

import datetime as dt
import logging
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler

import config
from core.errors import TravelError
from core.models import WeatherReport
from services import weather as wsvc

logger = logging.getLogger(__name__)


class WeatherMonitor:
    """
    Keeps a city's weather fresh: fetches right away, then every
    `interval_minutes` until stop() is called.

    Only one fetch runs at a time; a tick that comes due while the previous
    fetch is still in flight is skipped.
    """

    def __init__(
        self,
        city: str,
        on_update: Callable[[WeatherReport], None],
        on_error: Optional[Callable[[Exception], None]] = None,
        interval_minutes: Optional[float] = None,
        fetch: Callable[[str], WeatherReport] = wsvc.fetch_weather,
    ):
        self.city = city
        self.on_update = on_update
        self.on_error = on_error
        self.interval_minutes = interval_minutes or config.refresh_minutes()
        self.fetch = fetch
        self._scheduler: Optional[BackgroundScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def refresh(self) -> None:
        try:
            report = self.fetch(self.city)
        except (TravelError, RuntimeError, ValueError) as exc:
            logger.warning("Weather refresh for %s failed: %s", self.city, exc)
            if self.on_error:
                self.on_error(exc)
            return
        self.on_update(report)

    def start(self) -> None:
        if self.running:
            return
        self._scheduler = BackgroundScheduler()
        self._scheduler.add_job(
            self.refresh,
            "interval",
            minutes=self.interval_minutes,
            next_run_time=dt.datetime.now(),
            id=f"weather:{self.city}",
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info("Refreshing weather for %s every %s min", self.city, self.interval_minutes)

    def stop(self) -> None:
        if self._scheduler is None:
            return
        self._scheduler.remove_all_jobs()
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Stopped weather refresh for %s", self.city)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *exc):
        self.stop()
