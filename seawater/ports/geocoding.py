"""
Geocoding gateway port interface.

This module defines the protocol for translating free-text addresses
into coordinates. Payloads are raw provider dicts; the core converts
them with core.normalize.
"""

from typing import Any, Dict, List, Protocol

class GeocodingPort(Protocol):
    """지오코딩 게이트웨이 포트 인터페이스"""
    
    async def geocode(self, address: str) -> Dict[str, Any]:
        """
        단일 주소를 지오코딩합니다.
        
        Args:
            address: 자유 형식 주소
            
        Returns:
            {success, latitude, longitude, accuracy, source, ...}
        """
        ...
    
    async def batch_geocode(self, addresses: List[str]) -> Dict[str, Any]:
        """
        여러 주소를 한 번에 지오코딩합니다.
        
        Args:
            addresses: 주소 목록
            
        Returns:
            {success, api_calls, results: [{address, success, latitude, longitude, accuracy, source}]}
        """
        ...
