"""
Per-request performance counters.

Collected along a single request and returned with its result, next
to (not instead of) the process-wide Prometheus metrics.
"""

import time
from collections import defaultdict
from contextlib import contextmanager
from typing import Dict, Iterator


class PerformanceMetrics:
    """요청 단위 성능 카운터 (시간은 밀리초)"""

    def __init__(self):
        self._values: Dict[str, float] = defaultdict(float)

    def add(self, key: str, value: float = 1) -> None:
        self._values[key] += value

    def get(self, key: str) -> float:
        return self._values.get(key, 0.0)

    @contextmanager
    def timer(self, key: str) -> Iterator[None]:
        t0 = time.perf_counter()
        try:
            yield
        finally:
            self._values[key] += round((time.perf_counter() - t0) * 1000, 3)

    def add_provider_stats(self, external_api_calls: int = 0, cache_hits: int = 0, cache_misses: int = 0) -> None:
        self.add("external_api_calls", external_api_calls)
        self.add("cache_hits", cache_hits)
        self.add("cache_misses", cache_misses)

    def as_dict(self) -> Dict[str, float]:
        return dict(self._values)
