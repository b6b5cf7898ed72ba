"""
Climate data aggregator port interface.

This module defines the protocol for the external provider that
produces per-hazard and overall risk scores for a coordinate pair.
"""

from typing import Any, Dict, List, Protocol

class ClimateDataPort(Protocol):
    """기후 데이터 집계기 포트 인터페이스"""
    
    async def aggregate(self, latitude: float, longitude: float, risk_types: List[str]) -> Dict[str, Any]:
        """
        한 좌표의 기후 위험 데이터를 집계합니다.
        
        Args:
            latitude: 위도
            longitude: 경도
            risk_types: 위험 유형 필터 (["all"] 포함 가능)
            
        Returns:
            {success, riskData: {overall_risk_score, <hazard>_risk_score...}, sources,
             external_api_calls, cache_hits, cache_misses, error_source}
        """
        ...
    
    async def batch_aggregate(self, locations: List[Dict[str, Any]], risk_types: List[str]) -> Dict[str, Any]:
        """
        여러 좌표의 기후 위험 데이터를 한 번에 집계합니다.
        
        Args:
            locations: [{latitude, longitude, address}, ...]
            risk_types: 위험 유형 필터
            
        Returns:
            {results: [{address, success, riskData | error}], external_api_calls, cache_hits, cache_misses}
        """
        ...
