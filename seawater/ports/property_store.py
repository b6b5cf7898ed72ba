"""
Property store port interface.

This module defines the protocol for durable storage of resolved
addresses and their coordinates, including the radius query.
"""

from typing import List, Optional, Protocol
from seawater.core.models import Property, SpatialMatch

class PropertyStorePort(Protocol):
    """부동산 저장소 포트 인터페이스"""
    
    async def find_by_normalized_address(self, normalized_address: str) -> Optional[Property]:
        """
        정규화된 주소로 부동산을 조회합니다.
        
        Returns:
            Property 또는 None
        """
        ...
    
    async def upsert_property(self, prop: Property) -> Property:
        """
        정규화된 주소 기준으로 부동산을 삽입/갱신합니다.
        
        Returns:
            식별자가 부여된 Property
        """
        ...
    
    async def find_within_radius(self,
                                 latitude: float,
                                 longitude: float,
                                 radius_m: float,
                                 *,
                                 risk_threshold: Optional[float] = None,
                                 property_type: Optional[str] = None,
                                 limit: int = 1000) -> List[SpatialMatch]:
        """
        중심점 반경 내의 부동산을 거리순으로 조회합니다.
        
        Args:
            latitude: 중심 위도
            longitude: 중심 경도
            radius_m: 반경 (미터)
            risk_threshold: 최소 종합 위험 점수
            property_type: 부동산 유형 필터
            limit: 최대 결과 수
            
        Returns:
            SpatialMatch 목록 (현재 평가 점수가 포함될 수 있음)
        """
        ...
