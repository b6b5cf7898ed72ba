"""
Regional cache port interface.

This module defines the protocol for the TTL-bound cache of
enriched radius-search results.
"""

from typing import Any, Dict, Optional, Protocol

class RegionalCachePort(Protocol):
    """지역 캐시 포트 인터페이스"""
    
    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        """
        키로 값을 조회합니다.
        
        Args:
            key: 조회할 키
            
        Returns:
            값 또는 None (만료 포함)
        """
        ...
    
    async def set(self, key: str, value: Dict[str, Any], ttl_sec: int) -> None:
        """
        키-값을 저장합니다.
        
        Args:
            key: 저장할 키
            value: JSON 직렬화 가능한 값
            ttl_sec: TTL (초)
        """
        ...
