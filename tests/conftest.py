"""
테스트 설정 및 픽스처

이 모듈은 pytest 설정과 공통 픽스처를 제공합니다.
포트 대역(fake)은 메모리 기반이며 호출 횟수를 기록합니다.
"""

import inspect
import pytest
import tempfile
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock
from seawater.settings import Settings
from seawater.common.geo import haversine_distance_m
from seawater.core.models import Property, RiskAssessment, SpatialMatch, UsageEvent


class FakeClock:
    """수동으로 진행시키는 시계"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class InMemoryPropertyStore:
    """메모리 기반 부동산 저장소"""

    def __init__(self):
        self.by_address: Dict[str, Property] = {}
        self.spatial_rows: List[SpatialMatch] = []
        self.spatial_calls = 0
        self.upsert_calls = 0
        self.fail_upsert_for: set = set()
        self._next_id = 1

    async def find_by_normalized_address(self, normalized_address: str) -> Optional[Property]:
        return self.by_address.get(normalized_address)

    async def upsert_property(self, prop: Property) -> Property:
        self.upsert_calls += 1
        if prop.normalized_address in self.fail_upsert_for:
            raise RuntimeError("disk full")
        existing = self.by_address.get(prop.normalized_address)
        prop_id = existing.id if existing else self._next_id
        if existing is None:
            self._next_id += 1
        stored = prop.model_copy(update={"id": prop_id})
        self.by_address[prop.normalized_address] = stored
        return stored

    async def find_within_radius(self, latitude, longitude, radius_m, *,
                                 risk_threshold=None, property_type=None, limit=1000) -> List[SpatialMatch]:
        self.spatial_calls += 1
        return list(self.spatial_rows)[:limit]


class InMemoryAssessmentStore:
    """메모리 기반 위험 평가 저장소"""

    def __init__(self):
        self.current: Dict[int, RiskAssessment] = {}
        self.history: List[RiskAssessment] = []

    async def get_current(self, property_id: int) -> Optional[RiskAssessment]:
        return self.current.get(property_id)

    async def upsert(self, assessment: RiskAssessment) -> RiskAssessment:
        stored = assessment.model_copy(update={"id": len(self.history) + 1})
        self.history.append(stored)
        self.current[assessment.property_id] = stored
        return stored


class InMemoryRegionalCache:
    """메모리 기반 지역 캐시 (TTL은 호출자가 판단)"""

    def __init__(self):
        self.data: Dict[str, Dict[str, Any]] = {}
        self.set_calls = 0

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        return self.data.get(key)

    async def set(self, key: str, value: Dict[str, Any], ttl_sec: int) -> None:
        self.set_calls += 1
        self.data[key] = value


class InMemoryUsageTracker:
    """메모리 기반 사용량 추적기"""

    def __init__(self):
        self.events: List[UsageEvent] = []

    async def track(self, event: UsageEvent) -> None:
        self.events.append(event)


def geocode_ok(latitude: float, longitude: float, **extra) -> Dict[str, Any]:
    """지오코딩 성공 응답"""
    return {"success": True, "latitude": latitude, "longitude": longitude,
            "accuracy": "rooftop", "source": "test", **extra}


def aggregate_ok(overall: float, **hazards) -> Dict[str, Any]:
    """집계 성공 응답"""
    risk_data = {"overall_risk_score": overall}
    risk_data.update({f"{k}_risk_score": v for k, v in hazards.items()})
    return {"success": True, "riskData": risk_data, "sources": ["fema"],
            "external_api_calls": 1, "cache_hits": 0, "cache_misses": 1}


def make_property(prop_id: int, address: str, latitude: float = 25.0, longitude: float = -80.0,
                  state: Optional[str] = "FL") -> Property:
    return Property(id=prop_id, address=address, normalized_address=address.strip().lower(),
                    latitude=latitude, longitude=longitude, state=state)


def make_assessment(property_id: int, overall: float, created_at: datetime, **hazards) -> RiskAssessment:
    return RiskAssessment(property_id=property_id, overall_risk_score=overall, hazard_scores=hazards,
                          created_at=created_at, expires_at=created_at + timedelta(days=30))


def make_match(prop: Property, center_lat: float, center_lon: float, embedded=None) -> SpatialMatch:
    distance = haversine_distance_m(center_lat, center_lon, prop.latitude, prop.longitude)
    return SpatialMatch(property=prop, distance_meters=distance, embedded_risk=embedded)


@pytest.fixture
def temp_db_path():
    """임시 데이터베이스 파일 경로"""
    with tempfile.NamedTemporaryFile(suffix='.db', delete=False) as f:
        temp_path = f.name
    yield temp_path
    # 테스트 후 파일 정리
    if os.path.exists(temp_path):
        os.unlink(temp_path)


@pytest.fixture
def sample_settings():
    """테스트용 설정 (청크 간 지연 없음)"""
    settings = Settings()
    settings.observability.service_name = "test-service"
    for tier in settings.bulk.tiers.values():
        tier.inter_chunk_delay_ms = 0
    return settings


@pytest.fixture
def fixed_now():
    return datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(fixed_now):
    return FakeClock(fixed_now)


@pytest.fixture
def property_store():
    return InMemoryPropertyStore()


@pytest.fixture
def assessment_store():
    return InMemoryAssessmentStore()


@pytest.fixture
def regional_cache():
    return InMemoryRegionalCache()


@pytest.fixture
def usage_tracker():
    return InMemoryUsageTracker()


@pytest.fixture
def mock_geocoder():
    """테스트용 지오코딩 게이트웨이"""
    geocoder = AsyncMock()
    geocoder.geocode.return_value = geocode_ok(25.0, -80.0)
    geocoder.batch_geocode.return_value = {"success": True, "api_calls": 1, "results": []}
    return geocoder


@pytest.fixture
def mock_aggregator():
    """테스트용 기후 데이터 집계기"""
    aggregator = AsyncMock()
    aggregator.aggregate.return_value = aggregate_ok(72, flood=85, wildfire=10)
    aggregator.batch_aggregate.return_value = {"results": []}
    return aggregator


@pytest.fixture
def mock_boundary():
    boundary = AsyncMock()
    boundary.get_boundary_data.return_value = {
        "counties": ["Miami-Dade"],
        "floodZones": ["AE"],
        "wildfireZones": [],
        "administrativeAreas": ["Miami"],
    }
    return boundary


# pytest 설정
def pytest_configure(config):
    """pytest 설정"""
    config.addinivalue_line(
        "markers", "slow: 느린 테스트 마커"
    )
    config.addinivalue_line(
        "markers", "integration: 통합 테스트 마커"
    )


def pytest_collection_modifyitems(config, items):
    """테스트 아이템 수정"""
    for item in items:
        # 비동기 테스트에 asyncio 마커 추가
        if inspect.iscoroutinefunction(getattr(item, "function", None)):
            item.add_marker(pytest.mark.asyncio)

        # SQLite 파일을 쓰는 어댑터 테스트는 통합 테스트로 분류
        if "sqlite" in item.nodeid:
            item.add_marker(pytest.mark.integration)
