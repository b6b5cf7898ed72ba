"""
Geographic radius search for the Seawater risk engine.

Answers "what risk profile exists near this point": a spatial query over
the property store, per-result enrichment from embedded scores or the
risk assessment cache (never the aggregator), a regional result cache
keyed by the rounded search parameters, pagination and analytics over
the full result set.
"""

import asyncio
import time
from datetime import datetime, timedelta
from typing import Callable, List, Optional
from seawater.core.analytics import geographic_analytics, paginate, relative_position
from seawater.core.normalize import to_boundary_context
from seawater.core.models import (
    BoundaryContext, EnrichedProperty, LocationContext, RadiusQuery, RadiusSearchParams,
    RadiusSearchResult, RegionalCacheEntry, RequestContext, SpatialMatch,
)
from seawater.ports.boundary import BoundaryPort
from seawater.ports.property_store import PropertyStorePort
from seawater.ports.regional_cache import RegionalCachePort
from seawater.settings import Billing, Cache, RadiusSearch
from seawater.observability import metrics
from seawater.observability.perf import PerformanceMetrics
from seawater.observability.logging_setup import get_logger
from .risk_cache import RiskAssessmentCache, utcnow
from .usage import UsageRecorder

log = get_logger("seawater.radius_search")

ENDPOINT = "geographic_risk"
RISK_UNAVAILABLE = "Risk data unavailable"
BOUNDARY_UNAVAILABLE = "Boundary data unavailable"


def _fmt(value: Optional[float]) -> str:
    return "any" if value is None else f"{value:g}"


class GeographicRadiusSearch:
    """반경 검색 + 지역 캐시"""

    def __init__(self,
                 store: PropertyStorePort,
                 risk_cache: RiskAssessmentCache,
                 regional_cache: Optional[RegionalCachePort] = None,
                 boundary: Optional[BoundaryPort] = None,
                 usage: Optional[UsageRecorder] = None,
                 *,
                 radius_cfg: Optional[RadiusSearch] = None,
                 cache_cfg: Optional[Cache] = None,
                 billing: Optional[Billing] = None,
                 clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.risk_cache = risk_cache
        self.regional_cache = regional_cache
        self.boundary = boundary
        self.usage = usage or UsageRecorder()
        self.radius_cfg = radius_cfg or RadiusSearch()
        self.cache_cfg = cache_cfg or Cache()
        self.billing = billing or Billing()
        self.clock = clock

    def search_params(self, query: RadiusQuery) -> RadiusSearchParams:
        """캐시 식별에 쓰이는 파라미터 (중심 좌표 반올림)"""
        precision = self.cache_cfg.center_precision
        return RadiusSearchParams(
            latitude=round(query.latitude, precision),
            longitude=round(query.longitude, precision),
            radius_m=query.radius_m,
            risk_threshold=query.risk_threshold,
            property_type=query.property_type,
        )

    def cache_key(self, params: RadiusSearchParams) -> str:
        precision = self.cache_cfg.center_precision
        return (f"geo_risk_{params.latitude:.{precision}f}_{params.longitude:.{precision}f}"
                f"_{_fmt(params.radius_m)}_{_fmt(params.risk_threshold)}_{params.property_type or 'any'}")

    async def search(self, query: RadiusQuery, context: Optional[RequestContext] = None) -> RadiusSearchResult:
        """
        반경 검색을 수행합니다.
        
        지역 캐시 히트면 공간 쿼리와 보강을 모두 건너뜁니다. 공간 쿼리나
        경계 데이터 실패는 전체 검색을 중단하지 않고 결과에 표시됩니다.
        
        Args:
            query: 검증된 반경 검색 쿼리
            context: 요청자 컨텍스트 (사용량 기록용)
            
        Returns:
            RadiusSearchResult
        """
        t0 = time.perf_counter()
        perf = PerformanceMetrics()
        try:
            result = await self._search(query, perf)
        except Exception as e:
            await self.usage.record_failure(context, endpoint=ENDPOINT, http_method="GET", error=e)
            raise
        finally:
            metrics.radius_search_seconds.observe(time.perf_counter() - t0)

        billable_count = min(result.total_results, self.billing.geographic_billable_cap)
        await self.usage.record(
            context,
            endpoint=ENDPOINT,
            http_method="GET",
            property_count=result.total_results,
            cost=self.billing.geographic_base_cost + self.billing.geographic_per_property_cost * billable_count,
        )
        return result

    async def _search(self, query: RadiusQuery, perf: PerformanceMetrics) -> RadiusSearchResult:
        params = self.search_params(query)
        key = self.cache_key(params)

        spatial_error: Optional[str] = None
        enriched = await self._read_cache(key, params)
        if enriched is not None:
            cache_status = "hit"
            perf.add("cache_hits")
            log.info("지역 캐시 히트", key=key, results=len(enriched))
        else:
            cache_status = "miss"
            perf.add("cache_misses")
            try:
                with perf.timer("spatial_query_time"):
                    matches = await self.store.find_within_radius(
                        params.latitude, params.longitude, params.radius_m,
                        risk_threshold=params.risk_threshold,
                        property_type=params.property_type,
                        limit=self.radius_cfg.max_results,
                    )
            except Exception as e:
                log.warning(f"공간 쿼리 실패, 빈 결과 반환: {e}", key=key)
                spatial_error = f"Spatial query failed: {e}"
                enriched = []
            else:
                with perf.timer("enrichment_time"):
                    enriched = await self._enrich(matches)
                await self._write_cache(key, params, enriched)

        boundary = await self._boundary_context(params)

        page_size = min(query.page_size or self.radius_cfg.default_page_size, self.radius_cfg.max_page_size)
        window, pagination = paginate(enriched, query.page, page_size)
        analytics = geographic_analytics(
            enriched, params.latitude, params.longitude, params.radius_m,
            self.radius_cfg.inner_radius_ratio,
        )

        return RadiusSearchResult(
            properties=window,
            total_results=len(enriched),
            pagination=pagination,
            analytics=analytics,
            boundary_context=boundary,
            cache_status=cache_status,
            spatial_query_error=spatial_error,
            performance=perf.as_dict(),
        )

    async def _enrich(self, matches: List[SpatialMatch]) -> List[EnrichedProperty]:
        # gather는 입력 순서를 보존 (거리순)
        return list(await asyncio.gather(*(self._enrich_one(m) for m in matches)))

    async def _enrich_one(self, match: SpatialMatch) -> EnrichedProperty:
        location = LocationContext(
            distance_from_center=round(match.distance_meters),
            relative_position=relative_position(match.distance_meters),
        )
        if match.has_embedded_risk:
            return EnrichedProperty(
                property=match.property,
                distance_meters=match.distance_meters,
                risk_assessment=match.embedded_risk,
                risk_status="embedded",
                location_context=location,
            )

        assessment = None
        if match.property.id is not None:
            try:
                assessment = await self.risk_cache.lookup(match.property.id)
            except Exception as e:
                log.warning(f"위험 평가 조회 실패: {e}", property_id=match.property.id)

        if assessment is None:
            return EnrichedProperty(
                property=match.property,
                distance_meters=match.distance_meters,
                risk_status="unavailable",
                location_context=location,
                error=RISK_UNAVAILABLE,
            )
        return EnrichedProperty(
            property=match.property,
            distance_meters=match.distance_meters,
            risk_assessment=assessment.scores(),
            risk_status="cached",
            location_context=location,
        )

    async def _read_cache(self, key: str, params: RadiusSearchParams) -> Optional[List[EnrichedProperty]]:
        if self.regional_cache is None:
            return None
        try:
            raw = await self.regional_cache.get(key)
            if raw is None:
                metrics.regional_cache_lookups.labels(result="miss").inc()
                return None
            entry = RegionalCacheEntry.model_validate(raw)
        except Exception as e:
            log.warning(f"지역 캐시 읽기 실패: {e}", key=key)
            metrics.regional_cache_lookups.labels(result="error").inc()
            return None

        ttl = timedelta(seconds=self.cache_cfg.regional_cache_ttl_sec)
        # 키 충돌 시에도 파라미터가 완전히 같아야 히트
        if entry.search_params != params or self.clock() - entry.timestamp >= ttl:
            metrics.regional_cache_lookups.labels(result="miss").inc()
            return None
        metrics.regional_cache_lookups.labels(result="hit").inc()
        return entry.properties

    async def _write_cache(self, key: str, params: RadiusSearchParams, enriched: List[EnrichedProperty]) -> None:
        if self.regional_cache is None:
            return
        entry = RegionalCacheEntry(properties=enriched, search_params=params, timestamp=self.clock())
        try:
            await self.regional_cache.set(key, entry.model_dump(mode="json"), self.cache_cfg.regional_cache_ttl_sec)
        except Exception as e:
            log.warning(f"지역 캐시 쓰기 실패: {e}", key=key)

    async def _boundary_context(self, params: RadiusSearchParams) -> BoundaryContext:
        if self.boundary is None:
            return BoundaryContext(error=BOUNDARY_UNAVAILABLE)
        try:
            data = await self.boundary.get_boundary_data(params.latitude, params.longitude, params.radius_m)
            return to_boundary_context(data)
        except Exception as e:
            log.warning(f"경계 데이터 조회 실패: {e}")
            return BoundaryContext(error=BOUNDARY_UNAVAILABLE)
