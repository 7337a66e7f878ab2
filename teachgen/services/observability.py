from collections import deque
from contextlib import contextmanager
from datetime import datetime, timezone
from threading import Lock
from time import perf_counter
from typing import Any, Deque, Dict, Iterator, Optional

import numpy as np

# (name, numerator counter, denominator counter)
DERIVED_RATES = (
    ("sampler_duplicate_rate", "sampler_duplicate_total", "sampler_attempt_total"),
    ("sampler_exhausted_rate", "sampler_exhausted_total", "sampler_attempt_total"),
    ("balancer_void_rate", "balancer_void_total", "balancer_applied_total"),
)


class _Timer:
    __slots__ = ("count", "sum_ms", "min_ms", "max_ms", "recent")

    def __init__(self, window: int):
        self.count = 0
        self.sum_ms = 0.0
        self.min_ms = float("inf")
        self.max_ms = 0.0
        self.recent: Deque[float] = deque(maxlen=window)

    def add(self, value_ms: float) -> None:
        self.count += 1
        self.sum_ms += value_ms
        self.min_ms = min(self.min_ms, value_ms)
        self.max_ms = max(self.max_ms, value_ms)
        self.recent.append(value_ms)

    def summary(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "avg_ms": self.sum_ms / self.count if self.count else 0.0,
            "min_ms": self.min_ms if self.count else 0.0,
            "max_ms": self.max_ms,
            "p95_ms": float(np.percentile(list(self.recent), 95)) if self.recent else 0.0,
        }


class InMemoryObservability:
    """Process-local counters, latency summaries and recent sampling traces.

    Timers keep all-time count/avg/min/max plus a p95 over the last
    ``timer_window`` observations.
    """

    def __init__(self, max_traces: int = 200, timer_window: int = 500):
        self._lock = Lock()
        self._timer_window = timer_window
        self._counters: Dict[str, int] = {}
        self._timers: Dict[str, _Timer] = {}
        self._traces: Deque[Dict[str, Any]] = deque(maxlen=max_traces)

    def incr(self, name: str, value: int = 1) -> None:
        with self._lock:
            self._counters[name] = self._counters.get(name, 0) + int(value)

    def counter(self, name: str) -> int:
        with self._lock:
            return self._counters.get(name, 0)

    def observe_ms(self, name: str, value_ms: float) -> None:
        with self._lock:
            timer = self._timers.get(name)
            if timer is None:
                timer = self._timers[name] = _Timer(self._timer_window)
            timer.add(float(value_ms))

    @contextmanager
    def timed(self, name: str) -> Iterator[None]:
        started = perf_counter()
        try:
            yield
        finally:
            self.observe_ms(name, (perf_counter() - started) * 1000.0)

    def add_trace(self, event: Dict[str, Any]) -> None:
        payload = dict(event or {})
        payload.setdefault("ts", datetime.now(timezone.utc).isoformat())
        with self._lock:
            self._traces.append(payload)

    def traces(self, state: Optional[str] = None) -> list:
        with self._lock:
            items = list(self._traces)
        if state:
            items = [t for t in items if t.get("state") == state]
        return items

    def rates(self) -> Dict[str, float]:
        with self._lock:
            counters = dict(self._counters)
        out = {}
        for name, num, den in DERIVED_RATES:
            if counters.get(den):
                out[name] = counters.get(num, 0) / counters[den]
        return out

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            counters = dict(self._counters)
            timers = {name: timer.summary() for name, timer in self._timers.items()}
            traces = list(self._traces)
        return {
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "counters": counters,
            "rates": self.rates(),
            "timers": timers,
            "recent_traces": traces,
        }

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._timers.clear()
            self._traces.clear()


observability = InMemoryObservability()
