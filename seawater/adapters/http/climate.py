"""
HTTP climate data aggregator adapter.

The aggregator classifies its own failures (retryable, error_source);
this adapter passes payloads through untouched.
"""

from typing import Any, Dict, List
from seawater.observability.logging_setup import get_logger
from .client import JsonApiClient

log = get_logger("seawater.http.climate")


class HttpClimateAggregator(JsonApiClient):
    """기후 데이터 집계기 HTTP 어댑터"""

    async def aggregate(self, latitude: float, longitude: float, risk_types: List[str]) -> Dict[str, Any]:
        data = await self._make_request("POST", "/aggregate", json={
            "latitude": latitude,
            "longitude": longitude,
            "riskTypes": risk_types,
        })
        log.debug(f"집계 응답 success:{data.get('success')} lat:{latitude} lon:{longitude}")
        return data

    async def batch_aggregate(self, locations: List[Dict[str, Any]], risk_types: List[str]) -> Dict[str, Any]:
        data = await self._make_request("POST", "/aggregate/batch", json={
            "locations": locations,
            "riskTypes": risk_types,
        })
        log.info(f"일괄 집계 응답 count:{len(data.get('results') or [])}")
        return data
