"""
Engine features for the Seawater risk engine.

Property resolution, the assessment freshness gate, radius search,
property comparison and usage recording.
"""

from .property_resolver import PropertyResolver, Resolution
from .risk_cache import RiskAssessmentCache, AssessmentLookup
from .radius_search import GeographicRadiusSearch
from .comparison import PropertyComparison
from .usage import UsageRecorder

__all__ = [
    "PropertyResolver", "Resolution", "RiskAssessmentCache", "AssessmentLookup",
    "GeographicRadiusSearch", "PropertyComparison", "UsageRecorder",
]
