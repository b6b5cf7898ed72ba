"""
Single-property risk flow.

Property Resolver -> Risk Assessment Cache -> usage event. Errors
propagate as whole-request failures after a non-billable usage event.
"""

from typing import Optional
from seawater.core.models import PropertyRiskQuery, PropertyRiskResult, RequestContext
from seawater.features.property_resolver import PropertyResolver
from seawater.features.risk_cache import RiskAssessmentCache
from seawater.features.usage import UsageRecorder
from seawater.observability.perf import PerformanceMetrics
from seawater.observability.logging_setup import get_logger, request_scope

log = get_logger("seawater.property_risk")

ENDPOINT = "property_risk"
COORDINATE_PROVIDED = "coordinate_provided"


class PropertyRiskService:
    """단일 부동산 위험 조회 서비스"""

    def __init__(self,
                 resolver: PropertyResolver,
                 risk_cache: RiskAssessmentCache,
                 usage: Optional[UsageRecorder] = None,
                 cost: float = 0.001):
        """
        초기화합니다.
        
        Args:
            resolver: 부동산 해석기
            risk_cache: 위험 평가 캐시
            usage: 사용량 기록기
            cost: 요청당 비용
        """
        self.resolver = resolver
        self.risk_cache = risk_cache
        self.usage = usage or UsageRecorder()
        self.cost = cost

    async def assess(self, query: PropertyRiskQuery, context: Optional[RequestContext] = None) -> PropertyRiskResult:
        """
        주소 또는 좌표의 현재 위험 평가를 반환합니다.
        
        Raises:
            NotFoundError: 위치를 결정할 수 없음
            ClimateDataError: 집계기 실패
        """
        perf = PerformanceMetrics()
        with request_scope(context.request_id if context else None):
            try:
                resolution = await self.resolver.resolve(
                    address=query.address, coordinates=query.coordinates, perf=perf)
                assessment, cache_status = await self.risk_cache.get_or_compute(
                    resolution.prop, resolution.coordinates, query.risk_types, perf)
            except Exception as e:
                log.error(f"부동산 위험 조회 실패: {e}", address=query.address)
                await self.usage.record_failure(context, endpoint=ENDPOINT, http_method="GET", error=e)
                raise

            await self.usage.record(context, endpoint=ENDPOINT, http_method="GET",
                                    property_count=1, cost=self.cost)

        prop = resolution.prop
        return PropertyRiskResult(
            property=prop,
            coordinates=resolution.coordinates,
            geocoding_accuracy=prop.geocoding_accuracy if prop else COORDINATE_PROVIDED,
            risk_assessment=assessment,
            cache_status=cache_status,
            performance=perf.as_dict(),
        )
