"""
Metrics definitions for the Seawater risk engine.

This module defines Prometheus metrics for monitoring the
assessment cache, provider fan-out and bulk batch processing.
"""

from prometheus_client import Counter, Histogram

# 카운터 메트릭
risk_cache_lookups = Counter(
    "risk_cache_lookups_total",
    "Risk assessment cache lookups",
    ["result"]
)

aggregator_calls = Counter(
    "aggregator_calls_total",
    "Calls made to the climate data aggregator",
    ["mode"]
)

geocode_calls = Counter(
    "geocode_calls_total",
    "Calls made to the geocoding gateway",
    ["mode"]
)

regional_cache_lookups = Counter(
    "regional_cache_lookups_total",
    "Regional radius-search cache lookups",
    ["result"]
)

bulk_addresses = Counter(
    "bulk_addresses_total",
    "Addresses processed by bulk analysis",
    ["outcome"]
)

usage_tracking_failures = Counter(
    "usage_tracking_failures_total",
    "Usage events that could not be recorded",
    ["endpoint"]
)

# 히스토그램 메트릭
bulk_chunk_seconds = Histogram(
    "bulk_chunk_duration_seconds",
    "Time spent processing one bulk chunk",
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0]
)

radius_search_seconds = Histogram(
    "radius_search_duration_seconds",
    "Radius search latency",
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0]
)
