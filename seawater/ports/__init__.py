"""
Port interfaces for the Seawater hexagonal architecture.

This module defines the port interfaces (Protocols) that define
the contracts between the core engine and external collaborators.
"""

from .geocoding import GeocodingPort
from .climate import ClimateDataPort
from .property_store import PropertyStorePort
from .assessment_store import RiskAssessmentStorePort
from .regional_cache import RegionalCachePort
from .boundary import BoundaryPort
from .usage import UsageTrackerPort

__all__ = [
    "GeocodingPort", "ClimateDataPort", "PropertyStorePort", "RiskAssessmentStorePort",
    "RegionalCachePort", "BoundaryPort", "UsageTrackerPort",
]
