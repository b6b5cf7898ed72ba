"""
HTTP boundary data adapter.
"""

from typing import Any, Dict
from seawater.core.normalize import boundary_names
from .client import JsonApiClient


class HttpBoundaryClient(JsonApiClient):
    """행정/재해 경계 데이터 HTTP 어댑터"""

    async def get_boundary_data(self, latitude: float, longitude: float, radius_m: float) -> Dict[str, Any]:
        data = await self._make_request("GET", "/boundaries", params={
            "lat": str(latitude),
            "lon": str(longitude),
            "radius": str(radius_m),
        })
        return {
            "counties": boundary_names(data.get("counties")),
            "floodZones": boundary_names(data.get("floodZones")),
            "wildfireZones": boundary_names(data.get("wildfireZones")),
            "administrativeAreas": boundary_names(data.get("administrativeAreas")),
        }
