"""
Bulk batch orchestrator for the Seawater risk engine.

Resolves up to a tier-bounded number of addresses in fixed-size chunks,
processed strictly one after another with a pause in between. Each chunk
runs as a pipeline of stages (validate -> lookup -> geocode gap fill ->
persist properties -> aggregate -> persist assessments); every stage
returns an (ok, failed) pair keyed by address. Per-address failures are
recorded, never raised: every input address ends up in exactly one of
successes or errors.
"""

import asyncio
import time
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union
from seawater.core.analytics import bulk_analytics
from seawater.core.errors import SubscriptionError, ValidationError
from seawater.core.models import (
    BatchError, BulkResult, BulkSuccess, ClimateData, Property, RequestContext, RiskAssessment,
)
from seawater.core.normalize import (
    normalize_address, to_batch_climate_results, to_batch_geocode_results, to_geocode_result,
)
from seawater.core.result import Err, Result
from seawater.core.validation import parse_risk_types, validate_address
from seawater.features.property_resolver import build_property
from seawater.features.risk_cache import RiskAssessmentCache
from seawater.features.usage import UsageRecorder
from seawater.ports.climate import ClimateDataPort
from seawater.ports.geocoding import GeocodingPort
from seawater.ports.property_store import PropertyStorePort
from seawater.settings import Bulk, BulkTier
from seawater.observability import metrics
from seawater.observability.perf import PerformanceMetrics
from seawater.observability.logging_setup import get_logger, request_scope

log = get_logger("seawater.bulk")

ENDPOINT = "bulk_analysis"
NOT_PROCESSED = "Address was not processed"

Stage = Tuple[Dict[str, Any], Dict[str, str]]


def _partition(keys: Sequence[str], outcomes: Iterable[Any], error_prefix: str) -> Stage:
    """gather(return_exceptions=True) 결과를 (성공, 실패) 맵으로 나눕니다."""
    ok: Dict[str, Any] = {}
    failed: Dict[str, str] = {}
    for key, outcome in zip(keys, outcomes):
        if isinstance(outcome, Exception):
            failed[key] = f"{error_prefix}: {outcome}"
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            ok[key] = outcome
    return ok, failed


class BulkBatchOrchestrator:
    """대량 주소 위험 분석 오케스트레이터"""

    def __init__(self,
                 store: PropertyStorePort,
                 geocoder: GeocodingPort,
                 aggregator: ClimateDataPort,
                 risk_cache: RiskAssessmentCache,
                 usage: Optional[UsageRecorder] = None,
                 *,
                 bulk_cfg: Optional[Bulk] = None):
        """
        초기화합니다.
        
        Args:
            store: 부동산 저장소 포트
            geocoder: 지오코딩 게이트웨이 포트
            aggregator: 기후 데이터 집계기 포트
            risk_cache: 위험 평가 캐시 (평가 저장에 사용)
            usage: 사용량 기록기
            bulk_cfg: 구독 등급별 대량 분석 제한
        """
        self.store = store
        self.geocoder = geocoder
        self.aggregator = aggregator
        self.risk_cache = risk_cache
        self.usage = usage or UsageRecorder()
        self.bulk_cfg = bulk_cfg or Bulk()

    def tier_limits(self, tier: str, address_count: int) -> BulkTier:
        """
        구독 등급의 대량 분석 제한을 반환합니다.
        
        Raises:
            SubscriptionError: 대량 분석 불가 등급이거나 주소 수 초과
        """
        limits = self.bulk_cfg.tiers.get(tier)
        if limits is None:
            raise SubscriptionError(
                f"Bulk analysis requires one of: {', '.join(sorted(self.bulk_cfg.tiers))}",
                tier=tier, feature="bulk_analysis")
        if address_count > limits.max_addresses:
            raise SubscriptionError(
                f"Maximum {limits.max_addresses} addresses allowed for {tier} tier",
                tier=tier, feature="bulk_analysis")
        return limits

    async def analyze(self,
                      addresses: List[str],
                      *,
                      risk_types: Union[str, List[str], None] = None,
                      context: Optional[RequestContext] = None) -> BulkResult:
        """
        주소 목록을 청크 단위로 분석합니다.
        
        등급 제한 초과만 요청 전체 실패이며, 그 외 주소별 실패는 errors에 기록됩니다.
        
        Args:
            addresses: 분석할 주소 목록 (입력 순서 유지)
            risk_types: 위험 유형 필터
            context: 요청자 컨텍스트
            
        Returns:
            BulkResult
            
        Raises:
            SubscriptionError: 등급 제한 초과 (어떤 작업도 하기 전에 발생)
        """
        context = context or RequestContext()
        with request_scope(context.request_id, tier=context.subscription_tier):
            return await self._analyze(addresses, risk_types, context)

    async def _analyze(self,
                       addresses: List[str],
                       risk_types: Union[str, List[str], None],
                       context: RequestContext) -> BulkResult:
        try:
            limits = self.tier_limits(context.subscription_tier, len(addresses))
        except SubscriptionError as e:
            log.warning(f"대량 분석 거부: {e.message}", tier=context.subscription_tier, count=len(addresses))
            await self.usage.record_failure(context, endpoint=ENDPOINT, http_method="POST", error=e)
            raise

        try:
            risk_types = parse_risk_types(risk_types)
        except ValueError as e:
            error = ValidationError(str(e), [{"field": "risk_types", "message": str(e)}])
            await self.usage.record_failure(context, endpoint=ENDPOINT, http_method="POST", error=error)
            raise error from e

        perf = PerformanceMetrics()
        successes: List[BulkSuccess] = []
        errors: List[BatchError] = []

        size = limits.batch_size
        chunks = [addresses[i:i + size] for i in range(0, len(addresses), size)]
        log.info("대량 분석 시작", total=len(addresses), chunks=len(chunks), tier=context.subscription_tier)

        with perf.timer("total_time"):
            for batch_index, chunk in enumerate(chunks):
                t0 = time.perf_counter()
                ok, failed = await self._run_chunk(chunk, batch_index * size, batch_index, risk_types, perf)
                successes.extend(ok)
                errors.extend(failed)
                metrics.bulk_chunk_seconds.observe(time.perf_counter() - t0)
                log.info(f"청크 처리 완료 {batch_index + 1}/{len(chunks)}",
                         succeeded=len(ok), failed=len(failed))

                if batch_index < len(chunks) - 1:
                    await asyncio.sleep(limits.inter_chunk_delay_ms / 1000)

        errors.extend(self._unaccounted(addresses, successes, errors, size))
        successes.sort(key=lambda s: s.index)
        errors.sort(key=lambda e: e.index)

        metrics.bulk_addresses.labels(outcome="success").inc(len(successes))
        metrics.bulk_addresses.labels(outcome="error").inc(len(errors))

        await self.usage.record(
            context,
            endpoint=ENDPOINT,
            http_method="POST",
            property_count=len(successes),
            cost=limits.base_cost + limits.per_property_cost * len(successes),
        )
        log.info("대량 분석 완료", succeeded=len(successes), failed=len(errors))
        return BulkResult(
            successes=successes,
            errors=errors,
            analytics=bulk_analytics(successes, len(addresses)),
            performance=perf.as_dict(),
        )

    @staticmethod
    def _unaccounted(addresses: List[str],
                     successes: List[BulkSuccess],
                     errors: List[BatchError],
                     size: int) -> List[BatchError]:
        seen = {s.index for s in successes} | {e.index for e in errors}
        return [
            BatchError(address=address, error=NOT_PROCESSED, batch_index=index // size, index=index)
            for index, address in enumerate(addresses) if index not in seen
        ]

    async def _run_chunk(self,
                         chunk: List[str],
                         offset: int,
                         batch_index: int,
                         risk_types: List[str],
                         perf: PerformanceMetrics) -> Tuple[List[BulkSuccess], List[BatchError]]:
        try:
            return await self._process_chunk(chunk, offset, batch_index, risk_types, perf)
        except Exception as e:
            log.error(f"청크 전체 처리 실패 batch_index:{batch_index} error:{e}")
            return [], [
                BatchError(address=address, error=f"Batch processing failed: {e}",
                           batch_index=batch_index, index=offset + i)
                for i, address in enumerate(chunk)
            ]

    async def _process_chunk(self,
                             chunk: List[str],
                             offset: int,
                             batch_index: int,
                             risk_types: List[str],
                             perf: PerformanceMetrics) -> Tuple[List[BulkSuccess], List[BatchError]]:
        positions: Dict[int, str] = {}
        failures: Dict[int, str] = {}
        for i, raw in enumerate(chunk):
            try:
                positions[offset + i] = validate_address(raw)
            except ValueError as e:
                failures[offset + i] = f"Invalid address: {e}"

        # 정규화 키가 같은 주소는 첫 입력 표기로 한 번만 처리하고 입력 위치로 다시 펼침
        representatives: Dict[str, str] = {}
        for address in positions.values():
            representatives.setdefault(normalize_address(address), address)
        unique = list(representatives.values())

        with perf.timer("database_time"):
            existing, missing = await self._lookup_existing(unique)
        with perf.timer("geocoding_time"):
            located, geocode_failed = await self._geocode_gap(missing, perf)
        with perf.timer("database_time"):
            created, create_failed = await self._persist_properties(located)
        properties: Dict[str, Property] = {**existing, **created}

        with perf.timer("risk_calculation_time"):
            climate, climate_failed = await self._aggregate(properties, risk_types, perf)
        with perf.timer("database_time"):
            assessments, store_failed = await self._persist_assessments(properties, climate)

        stage_failures = {**geocode_failed, **create_failed, **climate_failed, **store_failed}

        successes: List[BulkSuccess] = []
        errors: List[BatchError] = [
            BatchError(address=chunk[index - offset], error=message, batch_index=batch_index, index=index)
            for index, message in failures.items()
        ]
        for index, address in positions.items():
            key = representatives[normalize_address(address)]
            assessment = assessments.get(key)
            if assessment is not None:
                successes.append(BulkSuccess(address=address, index=index, batch_index=batch_index,
                                             property=properties[key], risk_assessment=assessment))
            else:
                errors.append(BatchError(address=address, error=stage_failures.get(key, NOT_PROCESSED),
                                         batch_index=batch_index, index=index))
        return successes, errors

    async def _lookup_existing(self, addresses: List[str]) -> Tuple[Dict[str, Property], List[str]]:
        outcomes = await asyncio.gather(
            *(self.store.find_by_normalized_address(normalize_address(a)) for a in addresses),
            return_exceptions=True,
        )
        existing: Dict[str, Property] = {}
        missing: List[str] = []
        for address, outcome in zip(addresses, outcomes):
            if isinstance(outcome, Exception):
                log.warning(f"기존 부동산 조회 실패, 지오코딩으로 진행: {outcome}", address=address)
                missing.append(address)
            elif isinstance(outcome, BaseException):
                raise outcome
            elif outcome is None:
                missing.append(address)
            else:
                existing[address] = outcome
        return existing, missing

    async def _geocode_gap(self, missing: List[str], perf: PerformanceMetrics) -> Stage:
        if not missing:
            return {}, {}

        raw: Optional[Dict[str, Any]] = None
        try:
            raw = await self.geocoder.batch_geocode(missing)
            metrics.geocode_calls.labels(mode="batch").inc()
        except Exception as e:
            log.warning(f"일괄 지오코딩 호출 실패, 개별 지오코딩으로 전환: {e}")

        if raw is not None and raw.get("success"):
            results = to_batch_geocode_results(raw)
            perf.add("external_api_calls", raw.get("api_calls") or 1)
        else:
            log.warning("일괄 지오코딩 실패, 개별 지오코딩 진행", count=len(missing))
            outcomes = await asyncio.gather(*(self._geocode_one(a) for a in missing))
            results = dict(zip(missing, outcomes))
            perf.add("external_api_calls", len(missing))

        located: Dict[str, Property] = {}
        failed: Dict[str, str] = {}
        for address in missing:
            result = results.get(address)
            if result is None:
                failed[address] = "Unable to geocode or locate property: no geocoding result"
            elif isinstance(result, Err):
                failed[address] = f"Unable to geocode or locate property: {result.message}"
            else:
                located[address] = build_property(address, result.data)
        return located, failed

    async def _geocode_one(self, address: str) -> Result:
        metrics.geocode_calls.labels(mode="fallback").inc()
        try:
            raw = await self.geocoder.geocode(address)
        except Exception as e:
            return Err(kind="geocode", message=str(e), retryable=True)
        return to_geocode_result(raw)

    async def _persist_properties(self, located: Dict[str, Property]) -> Stage:
        keys = list(located)
        outcomes = await asyncio.gather(
            *(self.store.upsert_property(located[k]) for k in keys), return_exceptions=True)
        return _partition(keys, outcomes, "Failed to create property")

    async def _aggregate(self,
                         properties: Dict[str, Property],
                         risk_types: List[str],
                         perf: PerformanceMetrics) -> Stage:
        if not properties:
            return {}, {}

        locations = [
            {"latitude": p.latitude, "longitude": p.longitude, "address": address}
            for address, p in properties.items()
        ]
        # 호출 자체의 예외는 청크 전체 실패로 전파
        raw = await self.aggregator.batch_aggregate(locations, risk_types)
        metrics.aggregator_calls.labels(mode="batch").inc()
        raw = raw or {}
        perf.add_provider_stats(int(raw.get("external_api_calls") or 0),
                                int(raw.get("cache_hits") or 0),
                                int(raw.get("cache_misses") or 0))

        results = to_batch_climate_results(raw)
        climate: Dict[str, ClimateData] = {}
        failed: Dict[str, str] = {}
        for address in properties:
            result = results.get(address)
            if result is None:
                failed[address] = "No climate data returned"
            elif isinstance(result, Err):
                failed[address] = f"Climate data error: {result.message}"
            else:
                climate[address] = result.data
        return climate, failed

    async def _persist_assessments(self,
                                   properties: Dict[str, Property],
                                   climate: Dict[str, ClimateData]) -> Tuple[Dict[str, RiskAssessment], Dict[str, str]]:
        keys = list(climate)
        outcomes = await asyncio.gather(
            *(self.risk_cache.record(properties[k], climate[k]) for k in keys), return_exceptions=True)
        return _partition(keys, outcomes, "Failed to store risk assessment")
