"""
Core domain models and pure functions for the Seawater risk engine.

This module contains the domain models, result types, error taxonomy
and pure business logic that are independent of external I/O.
"""

from .models import Property, RiskAssessment, SpatialMatch, EnrichedProperty, RequestContext
from .result import Ok, Err, Result
from .errors import NotFoundError, ClimateDataError, SubscriptionError, ValidationError
from .normalize import normalize_address

__all__ = [
    "Property", "RiskAssessment", "SpatialMatch", "EnrichedProperty", "RequestContext",
    "Ok", "Err", "Result",
    "NotFoundError", "ClimateDataError", "SubscriptionError", "ValidationError",
    "normalize_address",
]
