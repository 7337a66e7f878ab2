from threading import Lock
from typing import Dict, List, Optional
import logging

from teachgen.services.duplicate_detector import DEFAULT_THRESHOLD, is_duplicate_of_any

logger = logging.getLogger("history_store")

RESET_PREVIOUS = "previous"
RESET_CURRENT = "current"


class HistoryStore:
    """Accepted outputs per request fingerprint, plus the last fingerprint seen on each route.

    Lives for the process (or test) lifetime; nothing is persisted. The lock
    keeps single map operations atomic; a whole sampling loop is not serialized.
    """

    def __init__(self, threshold: float = DEFAULT_THRESHOLD, reset_target: str = RESET_PREVIOUS):
        if reset_target not in (RESET_PREVIOUS, RESET_CURRENT):
            raise ValueError(f"unknown reset target: {reset_target}")
        self.threshold = threshold
        self.reset_target = reset_target
        self._history: Dict[str, List[str]] = {}
        self._route_recency: Dict[str, str] = {}
        self._lock = Lock()

    def get(self, fingerprint: str) -> List[str]:
        with self._lock:
            return list(self._history.get(fingerprint, []))

    def append(self, fingerprint: str, text: str) -> None:
        with self._lock:
            entries = self._history.setdefault(fingerprint, [])
            if text not in entries:
                entries.append(text)

    def reset(self, fingerprint: str) -> None:
        with self._lock:
            self._history.pop(fingerprint, None)

    def is_duplicate(self, fingerprint: str, candidate: str) -> bool:
        return is_duplicate_of_any(candidate, self.get(fingerprint), self.threshold)

    def last_fingerprint(self, route_key: str) -> Optional[str]:
        with self._lock:
            return self._route_recency.get(route_key)

    def history_after_observe(self, route_key: str, fingerprint: str) -> List[str]:
        """History `fingerprint` would have once `observe_route` ran, without changing anything."""
        previous = self.last_fingerprint(route_key)
        if self.reset_target == RESET_CURRENT and previous is not None and previous != fingerprint:
            return []
        return self.get(fingerprint)

    def observe_route(self, route_key: str, fingerprint: str) -> Optional[str]:
        """Record `fingerprint` as current for `route_key`, resetting history when it changed.

        Returns the fingerprint that was current before this call.
        """
        with self._lock:
            previous = self._route_recency.get(route_key)
            self._route_recency[route_key] = fingerprint
        if previous is None or previous == fingerprint:
            return previous

        if self.reset_target == RESET_PREVIOUS:
            logger.info("New request on %s, clearing history of previous request %s", route_key, previous)
            self.reset(previous)
        elif not self.get(fingerprint):
            logger.warning("New request on %s, reset of incoming request %s is a no-op (no stored history)",
                           route_key, fingerprint)
        else:
            logger.info("New request on %s, resetting history of returning request %s", route_key, fingerprint)
            self.reset(fingerprint)
        return previous

    def clear(self) -> None:
        with self._lock:
            self._history.clear()
            self._route_recency.clear()
