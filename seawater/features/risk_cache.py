"""
Risk assessment cache for the Seawater risk engine.

Owns the freshness contract for a property's risk record: a current
assessment is reused unchanged, anything else triggers exactly one
aggregator call. Scores are stored verbatim, never transformed.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Literal, Optional, Tuple
from seawater.core.errors import ClimateDataError
from seawater.core.models import ClimateData, Coordinates, Property, RiskAssessment
from seawater.core.normalize import to_climate_result
from seawater.core.result import Err
from seawater.ports.assessment_store import RiskAssessmentStorePort
from seawater.ports.climate import ClimateDataPort
from seawater.observability import metrics
from seawater.observability.perf import PerformanceMetrics
from seawater.observability.logging_setup import get_logger

log = get_logger("seawater.risk_cache")

AssessmentLookup = Tuple[RiskAssessment, Literal["hit", "miss"]]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RiskAssessmentCache:
    """위험 평가 신선도 게이트"""

    def __init__(self,
                 store: RiskAssessmentStorePort,
                 aggregator: ClimateDataPort,
                 *,
                 ttl_days: int = 30,
                 assessment_version: str = "1.0",
                 clock: Callable[[], datetime] = utcnow):
        """
        초기화합니다.
        
        Args:
            store: 위험 평가 저장소 포트
            aggregator: 기후 데이터 집계기 포트
            ttl_days: 평가 유효 기간 (일)
            assessment_version: 평가 버전 태그
            clock: 현재 시각 함수 (테스트 주입용)
        """
        self.store = store
        self.aggregator = aggregator
        self.ttl = timedelta(days=ttl_days)
        self.assessment_version = assessment_version
        self.clock = clock

    async def lookup(self, property_id: int) -> Optional[RiskAssessment]:
        """
        현재 평가만 조회합니다. 재계산하지 않습니다.
        
        Returns:
            현재 평가 또는 None (없거나 만료)
        """
        assessment = await self.store.get_current(property_id)
        if assessment is not None and assessment.is_current(self.clock()):
            return assessment
        return None

    async def get_or_compute(self,
                             prop: Optional[Property],
                             coordinates: Coordinates,
                             risk_types: Optional[List[str]] = None,
                             perf: Optional[PerformanceMetrics] = None) -> AssessmentLookup:
        """
        현재 평가를 반환하고, 없거나 만료되었으면 집계기로 재계산합니다.
        
        Args:
            prop: 저장된 부동산 (임시 좌표 요청이면 None)
            coordinates: 집계기 호출 좌표
            risk_types: 위험 유형 필터
            perf: 요청 단위 성능 카운터
            
        Returns:
            (평가, "hit" | "miss")
            
        Raises:
            ClimateDataError: 집계기 실패
        """
        perf = perf or PerformanceMetrics()

        if prop is not None and prop.id is not None:
            with perf.timer("database_time"):
                current = await self.lookup(prop.id)
            if current is not None:
                metrics.risk_cache_lookups.labels(result="hit").inc()
                perf.add("cache_hits")
                log.debug("위험 평가 캐시 히트", property_id=prop.id)
                return current, "hit"

        metrics.risk_cache_lookups.labels(result="miss").inc()
        perf.add("cache_misses")
        log.info("위험 평가 캐시 미스, 집계 진행",
                 property_id=prop.id if prop else None,
                 latitude=coordinates.latitude, longitude=coordinates.longitude)

        with perf.timer("risk_calculation_time"):
            try:
                raw = await self.aggregator.aggregate(
                    coordinates.latitude, coordinates.longitude, risk_types or ["all"])
            except Exception as e:
                log.error(f"기후 데이터 집계 호출 실패: {e}")
                raise ClimateDataError(f"Climate data aggregation failed: {e}",
                                       source="aggregator", retryable=True) from e
        metrics.aggregator_calls.labels(mode="single").inc()

        result = to_climate_result(raw)
        if isinstance(result, Err):
            log.warning(f"집계기 오류 응답: {result.message}", source=result.source, retryable=result.retryable)
            raise ClimateDataError(result.message, source=result.source or "aggregator",
                                   retryable=result.retryable)

        data = result.data
        perf.add_provider_stats(data.external_api_calls, data.cache_hits, data.cache_misses)

        with perf.timer("database_time"):
            assessment = await self.record(prop, data)
        return assessment, "miss"

    async def record(self, prop: Optional[Property], data: ClimateData) -> RiskAssessment:
        """
        집계 결과로 새 평가를 만들고, 부동산이 있으면 저장합니다.
        
        Args:
            prop: 저장된 부동산 (None이면 저장하지 않음)
            data: 정규화된 기후 데이터
            
        Returns:
            RiskAssessment (임시 경로면 property_id가 None)
        """
        now = self.clock()
        assessment = RiskAssessment(
            property_id=prop.id if prop else None,
            overall_risk_score=data.overall_risk_score,
            hazard_scores=dict(data.hazard_scores),
            risk_category=data.risk_category,
            fema_flood_zone=data.fema_flood_zone,
            confidence_score=data.confidence_score,
            assessment_version=self.assessment_version,
            created_at=now,
            expires_at=now + self.ttl,
        )
        if prop is None or prop.id is None:
            return assessment

        stored = await self.store.upsert(assessment)
        log.info("위험 평가 저장", property_id=prop.id, overall_risk_score=stored.overall_risk_score)
        return stored
