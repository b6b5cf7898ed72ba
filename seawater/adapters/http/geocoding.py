"""
HTTP geocoding gateway adapter.
"""

from typing import Any, Dict, List
from seawater.observability.logging_setup import get_logger
from .client import JsonApiClient

log = get_logger("seawater.http.geocoding")


class HttpGeocodingGateway(JsonApiClient):
    """지오코딩 게이트웨이 HTTP 어댑터"""

    async def geocode(self, address: str) -> Dict[str, Any]:
        data = await self._make_request("POST", "/geocode", json={"address": address})
        log.debug(f"지오코딩 응답 success:{data.get('success')} address:{address}")
        return data

    async def batch_geocode(self, addresses: List[str]) -> Dict[str, Any]:
        data = await self._make_request("POST", "/geocode/batch", json={"addresses": addresses})
        log.info(f"일괄 지오코딩 응답 count:{len(data.get('results') or [])} api_calls:{data.get('api_calls')}")
        return data
