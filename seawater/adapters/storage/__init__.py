"""
Storage adapters for the Seawater hexagonal architecture.

This module contains SQLite-backed adapters for properties, risk
assessments, the regional radius-search cache and usage events.
"""

from .sqlite_store import SQLitePropertyStore, SQLiteRiskAssessmentStore
from .sqlite_cache import SQLiteRegionalCache
from .sqlite_usage import SQLiteUsageTracker

__all__ = ["SQLitePropertyStore", "SQLiteRiskAssessmentStore", "SQLiteRegionalCache", "SQLiteUsageTracker"]
