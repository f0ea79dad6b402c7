# services/trips.py

from __future__ import annotations

import datetime as dt
import json
import logging
import os
import time
from collections.abc import MutableMapping
from typing import Iterator, Optional

import config
from core.schemas import Itinerary

logger = logging.getLogger(__name__)


class JsonFileStorage(MutableMapping):
    """
    A string key-value store kept in one JSON file.
    Every write rewrites the whole file.
    """

    def __init__(self, path: str):
        self.path = os.path.expanduser(path)

    def _load(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, encoding="utf-8") as f:
            return json.load(f)

    def _dump(self, data: dict) -> None:
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        tmp = f"{self.path}.tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False)
        os.replace(tmp, self.path)

    def __getitem__(self, key: str) -> str:
        return self._load()[key]

    def __setitem__(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def __delitem__(self, key: str) -> None:
        data = self._load()
        del data[key]
        self._dump(data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._load())

    def __len__(self) -> int:
        return len(self._load())


class TripStore:
    """
    Saved itineraries, newest first, kept as one JSON list under a fixed key
    of any string key-value mapping.
    """

    def __init__(self, storage: Optional[MutableMapping] = None, key: str = config.TRIPS_KEY):
        self.storage = {} if storage is None else storage
        self.key = key

    @classmethod
    def from_env(cls) -> "TripStore":
        return cls(JsonFileStorage(config.trips_file()))

    def list(self) -> list[dict]:
        raw = self.storage.get(self.key)
        if not raw:
            return []
        try:
            trips = json.loads(raw)
        except ValueError:
            logger.warning("Saved trips under %r are not valid JSON, starting empty", self.key)
            return []
        return trips if isinstance(trips, list) else []

    def _save(self, trips: list[dict]) -> None:
        self.storage[self.key] = json.dumps(trips, ensure_ascii=False)

    def get(self, trip_id: int) -> Optional[dict]:
        return next((t for t in self.list() if t.get("id") == trip_id), None)

    def add(self, itinerary: Itinerary | dict, image: Optional[str] = None) -> dict:
        if isinstance(itinerary, Itinerary):
            itinerary = itinerary.model_dump(by_alias=True)

        trips = self.list()
        trip_id = int(time.time() * 1000)
        taken = {t.get("id") for t in trips}
        while trip_id in taken:
            trip_id += 1

        trip = {
            **itinerary,
            "id": trip_id,
            "savedAt": dt.datetime.now(dt.timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "image": image,
        }
        self._save([trip] + trips)
        logger.info("Saved trip %s to %s", trip_id, itinerary.get("destination"))
        return trip

    def remove(self, trip_id: int) -> bool:
        trips = self.list()
        kept = [t for t in trips if t.get("id") != trip_id]
        self._save(kept)
        return len(kept) != len(trips)
