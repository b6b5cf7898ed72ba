"""
Risk assessment store port interface.
"""

from typing import Optional, Protocol
from seawater.core.models import RiskAssessment

class RiskAssessmentStorePort(Protocol):
    """위험 평가 저장소 포트 인터페이스"""
    
    async def get_current(self, property_id: int) -> Optional[RiskAssessment]:
        """
        부동산의 가장 최근 평가를 조회합니다 (만료 판단은 호출자 몫).
        
        Returns:
            RiskAssessment 또는 None
        """
        ...
    
    async def upsert(self, assessment: RiskAssessment) -> RiskAssessment:
        """
        새 평가를 저장하고 이전 현재 평가를 대체합니다.
        
        Returns:
            식별자가 부여된 RiskAssessment
        """
        ...
