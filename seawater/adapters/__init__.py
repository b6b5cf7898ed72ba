"""
Adapters for the Seawater hexagonal architecture.

This module contains the concrete implementations of port interfaces
that handle external I/O: SQLite persistence and HTTP providers.
"""

from .storage import SQLitePropertyStore, SQLiteRiskAssessmentStore, SQLiteRegionalCache, SQLiteUsageTracker
from .http import JsonApiClient, HttpGeocodingGateway, HttpClimateAggregator, HttpBoundaryClient

__all__ = [
    "SQLitePropertyStore", "SQLiteRiskAssessmentStore", "SQLiteRegionalCache", "SQLiteUsageTracker",
    "JsonApiClient", "HttpGeocodingGateway", "HttpClimateAggregator", "HttpBoundaryClient",
]
