"""
HTTP adapters for external Seawater providers.

aiohttp JSON clients for the geocoding gateway, the climate data
aggregator and the boundary data service.
"""

from .client import JsonApiClient
from .geocoding import HttpGeocodingGateway
from .climate import HttpClimateAggregator
from .boundary import HttpBoundaryClient

__all__ = ["JsonApiClient", "HttpGeocodingGateway", "HttpClimateAggregator", "HttpBoundaryClient"]
