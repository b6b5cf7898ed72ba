"""
Boundary data port interface.
"""

from typing import Any, Dict, Protocol

class BoundaryPort(Protocol):
    """행정/재해 경계 데이터 포트 인터페이스"""
    
    async def get_boundary_data(self, latitude: float, longitude: float, radius_m: float) -> Dict[str, Any]:
        """
        검색 영역의 경계 정보를 조회합니다.
        
        Returns:
            {counties, floodZones, wildfireZones, administrativeAreas}
        """
        ...
