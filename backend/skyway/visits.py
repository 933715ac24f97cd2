import logging
import threading
import time
from typing import Callable, Dict, List, Tuple

logger = logging.getLogger(__name__)


class VisitCounter:
    """Per-building visit counts, throttled to one increment per building per window."""

    def __init__(self, throttle_s: float = 120.0, clock: Callable[[], float] = time.monotonic):
        self.throttle_s = throttle_s
        self._clock = clock
        self._counts: Dict[str, int] = {}
        self._last: Dict[str, float] = {}
        self._lock = threading.Lock()

    def increment_visit(self, building_name: str) -> bool:
        now = self._clock()
        with self._lock:
            last = self._last.get(building_name)
            if last is not None and now - last < self.throttle_s:
                return False
            self._counts[building_name] = self._counts.get(building_name, 0) + 1
            self._last[building_name] = now
        logger.debug("Visit recorded for %s", building_name)
        return True

    def count(self, building_name: str) -> int:
        with self._lock:
            return self._counts.get(building_name, 0)

    def top(self, limit: int = 5) -> List[Tuple[str, int]]:
        with self._lock:
            items = list(self._counts.items())
        items.sort(key=lambda kv: (-kv[1], kv[0]))
        return items[:limit]
