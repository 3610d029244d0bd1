"""Zone name to zone ID cache."""

import threading
from collections.abc import Callable

from cfdns._logging import get_logger

logger = get_logger(__name__)


class ZoneCache:
    """Thread-safe mapping of zone names to Cloudflare zone IDs.

    Zone IDs never change for a given zone name, so entries do not expire;
    they live as long as the cache object. One cache can be shared between
    providers by passing it to each of them.
    """

    def __init__(self) -> None:
        self._zones: dict[str, str] = {}
        self._loading: dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(zone: str) -> str:
        return zone.rstrip(".").lower()

    def get(self, zone: str) -> str | None:
        """Return the cached zone ID, or None on a miss."""
        with self._lock:
            return self._zones.get(self._key(zone))

    def get_or_load(self, zone: str, loader: Callable[[str], str]) -> str:
        """Return the zone ID, calling ``loader`` once on a miss.

        Each zone has its own loading lock: concurrent misses for the same
        zone result in a single lookup, while lookups of other zones are not
        held up.

        Args:
            zone: Zone name, with or without trailing dot.
            loader: Called with ``zone`` to fetch the ID remotely.

        Returns:
            The zone ID.
        """
        key = self._key(zone)
        with self._lock:
            zone_id = self._zones.get(key)
            if zone_id is not None:
                return zone_id
            key_lock = self._loading.setdefault(key, threading.Lock())

        with key_lock:
            with self._lock:
                zone_id = self._zones.get(key)
            if zone_id is not None:
                return zone_id

            zone_id = loader(zone)
            with self._lock:
                self._zones[key] = zone_id
                self._loading.pop(key, None)
            logger.debug("Zone ID cached", extra={"zone": zone, "zone_id": zone_id})
            return zone_id

    def clear(self) -> None:
        """Drop every cached zone ID."""
        with self._lock:
            self._zones.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._zones)

    def __contains__(self, zone: object) -> bool:
        if not isinstance(zone, str):
            return False
        with self._lock:
            return self._key(zone) in self._zones
