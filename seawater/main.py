# seawater/main.py
import os, sys, json, uuid, asyncio, argparse
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional
from pydantic import ValidationError as QueryValidationError
from seawater.settings import Settings
from seawater.observability.logging_setup import setup_logging, get_logger
from seawater.core.errors import SeawaterError
from seawater.core.models import ComparisonQuery, PropertyRiskQuery, RadiusQuery, RequestContext
from seawater.adapters.storage import (
    SQLitePropertyStore, SQLiteRiskAssessmentStore, SQLiteRegionalCache, SQLiteUsageTracker,
)
from seawater.adapters.http import HttpGeocodingGateway, HttpClimateAggregator, HttpBoundaryClient
from seawater.features import (
    PropertyResolver, RiskAssessmentCache, GeographicRadiusSearch, PropertyComparison, UsageRecorder,
)
from seawater.orchestrators import PropertyRiskService, BulkBatchOrchestrator

def _b(name, default=False): return os.getenv(name, str(default)).lower() in ("1","true","yes","on")

def build_settings() -> Settings:
    s = Settings()

    # 캐시
    s.cache.assessment_ttl_days = int(os.getenv("ASSESSMENT_TTL_DAYS", s.cache.assessment_ttl_days))
    s.cache.regional_cache_ttl_sec = int(os.getenv("REGIONAL_CACHE_TTL_SEC", s.cache.regional_cache_ttl_sec))

    # 반경 검색
    s.radius_search.max_results = int(os.getenv("RADIUS_MAX_RESULTS", s.radius_search.max_results))

    # 대량 분석 (모든 등급에 공통 적용)
    delay = os.getenv("BULK_INTER_CHUNK_DELAY_MS")
    if delay is not None:
        for tier in s.bulk.tiers.values():
            tier.inter_chunk_delay_ms = int(delay)

    # 저장소
    s.storage.db_path = os.getenv("SEAWATER_DB_PATH", s.storage.db_path)
    s.storage.cache_path = os.getenv("REGIONAL_CACHE_PATH", s.storage.cache_path)
    s.storage.usage_path = os.getenv("USAGE_DB_PATH", s.storage.usage_path)

    # 외부 제공자
    s.providers.geocoder_url = os.getenv("GEOCODER_URL", s.providers.geocoder_url)
    s.providers.aggregator_url = os.getenv("AGGREGATOR_URL", s.providers.aggregator_url)
    s.providers.boundary_url = os.getenv("BOUNDARY_URL", s.providers.boundary_url)
    s.providers.api_key = os.getenv("PROVIDER_API_KEY", s.providers.api_key)
    s.providers.timeout_sec = int(os.getenv("PROVIDER_TIMEOUT_SEC", s.providers.timeout_sec))
    s.providers.max_retries = int(os.getenv("PROVIDER_MAX_RETRIES", s.providers.max_retries))

    # 관측성
    s.observability.log_level = os.getenv("LOG_LEVEL", s.observability.log_level)
    s.observability.json_logs = _b("JSON_LOGS", s.observability.json_logs)

    return s

@dataclass
class Engine:
    """연결된 엔진 구성요소 묶음"""
    property_risk: PropertyRiskService
    radius_search: GeographicRadiusSearch
    comparison: PropertyComparison
    bulk: BulkBatchOrchestrator

@asynccontextmanager
async def open_engine(s: Settings) -> AsyncIterator[Engine]:
    """저장소를 초기화하고 HTTP 세션을 연 엔진을 제공합니다."""
    log = get_logger("seawater.main")
    p = s.providers
    async with AsyncExitStack() as stack:
        properties = SQLitePropertyStore(s.storage.db_path); await properties.init()
        assessments = SQLiteRiskAssessmentStore(s.storage.db_path); await assessments.init()
        regional = SQLiteRegionalCache(s.storage.cache_path); await regional.init()
        tracker = SQLiteUsageTracker(s.storage.usage_path); await tracker.init()

        geocoder = await stack.enter_async_context(
            HttpGeocodingGateway(p.geocoder_url, p.api_key, p.timeout_sec, p.max_retries))
        aggregator = await stack.enter_async_context(
            HttpClimateAggregator(p.aggregator_url, p.api_key, p.timeout_sec, p.max_retries))
        boundary = None
        if p.boundary_url:
            boundary = await stack.enter_async_context(
                HttpBoundaryClient(p.boundary_url, p.api_key, p.timeout_sec, p.max_retries))
        else:
            log.warning("BOUNDARY_URL 미설정, 경계 데이터 없이 반경 검색")

        usage = UsageRecorder(tracker)
        resolver = PropertyResolver(properties, geocoder)
        risk_cache = RiskAssessmentCache(
            assessments, aggregator,
            ttl_days=s.cache.assessment_ttl_days,
            assessment_version=s.cache.assessment_version,
        )
        log.info("엔진 구성 완료")
        yield Engine(
            property_risk=PropertyRiskService(resolver, risk_cache, usage, cost=s.billing.property_risk_cost),
            radius_search=GeographicRadiusSearch(
                properties, risk_cache, regional, boundary, usage,
                radius_cfg=s.radius_search, cache_cfg=s.cache, billing=s.billing,
            ),
            comparison=PropertyComparison(resolver, risk_cache, usage,
                                          per_property_cost=s.billing.comparison_per_property_cost),
            bulk=BulkBatchOrchestrator(properties, geocoder, aggregator, risk_cache, usage, bulk_cfg=s.bulk),
        )

def _parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="seawater", description="Climate risk lookups")
    ap.add_argument("--user-id")
    ap.add_argument("--api-key-id")
    ap.add_argument("--tier", default="free")
    sub = ap.add_subparsers(dest="command", required=True)

    prop = sub.add_parser("property", help="single property risk")
    prop.add_argument("--address")
    prop.add_argument("--lat", type=float)
    prop.add_argument("--lon", type=float)
    prop.add_argument("--risk-types", default="all")

    radius = sub.add_parser("radius", help="risk near a point")
    radius.add_argument("--lat", type=float, required=True)
    radius.add_argument("--lon", type=float, required=True)
    radius.add_argument("--radius-m", type=float, required=True)
    radius.add_argument("--risk-threshold", type=float)
    radius.add_argument("--property-type")
    radius.add_argument("--page", type=int, default=1)
    radius.add_argument("--page-size", type=int)

    compare = sub.add_parser("compare", help="compare 2-10 addresses")
    compare.add_argument("addresses", nargs="+")
    compare.add_argument("--risk-types", default="all")

    bulk = sub.add_parser("bulk", help="bulk analysis from a file (one address per line)")
    bulk.add_argument("file")
    bulk.add_argument("--risk-types", default="all")
    return ap

async def run(args: argparse.Namespace, s: Settings) -> str:
    context = RequestContext(user_id=args.user_id, api_key_id=args.api_key_id, subscription_tier=args.tier,
                             request_id=uuid.uuid4().hex)
    async with open_engine(s) as engine:
        if args.command == "property":
            query = PropertyRiskQuery(address=args.address, latitude=args.lat, longitude=args.lon,
                                      risk_types=args.risk_types)
            result = await engine.property_risk.assess(query, context)
        elif args.command == "radius":
            query = RadiusQuery(latitude=args.lat, longitude=args.lon, radius_m=args.radius_m,
                                risk_threshold=args.risk_threshold, property_type=args.property_type,
                                page=args.page, page_size=args.page_size)
            result = await engine.radius_search.search(query, context)
        elif args.command == "compare":
            query = ComparisonQuery(addresses=args.addresses, risk_types=args.risk_types)
            result = await engine.comparison.compare(query, context)
        else:
            with open(args.file, encoding="utf-8") as f:
                addresses = [line.strip() for line in f if line.strip()]
            result = await engine.bulk.analyze(addresses, risk_types=args.risk_types, context=context)
    return result.model_dump_json(indent=2)

def cli(argv: Optional[list] = None) -> int:
    args = _parser().parse_args(argv)
    s = build_settings()
    setup_logging(s.observability.log_level, s.observability.json_logs,
                  s.observability.service_name, s.observability.build_version)
    log = get_logger("seawater.main")
    try:
        print(asyncio.run(run(args, s)))
        return 0
    except QueryValidationError as e:
        print(json.dumps({"type": "ValidationError", "message": str(e)}), file=sys.stderr)
        return 2
    except SeawaterError as e:
        log.error(f"요청 실패: {e.message}")
        print(json.dumps(e.to_dict()), file=sys.stderr)
        return 1

if __name__ == "__main__":
    sys.exit(cli())
