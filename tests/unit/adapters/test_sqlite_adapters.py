"""
SQLite 저장소 어댑터 단위 테스트
"""

import pytest
from datetime import datetime, timedelta, timezone
from seawater.adapters.storage import (
    SQLitePropertyStore, SQLiteRegionalCache, SQLiteRiskAssessmentStore, SQLiteUsageTracker,
)
from seawater.core.models import Property, RiskAssessment, UsageEvent

pytestmark = pytest.mark.integration

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


def _property(address, latitude=25.7617, longitude=-80.1918, **extra):
    return Property(address=address, normalized_address=address.strip().lower(),
                    latitude=latitude, longitude=longitude, state="FL", **extra)


def _assessment(property_id, score, created_at=NOW, **hazards):
    return RiskAssessment(property_id=property_id, overall_risk_score=score, hazard_scores=hazards,
                          created_at=created_at, expires_at=created_at + timedelta(days=30))


@pytest.fixture
async def stores(temp_db_path):
    properties = SQLitePropertyStore(temp_db_path)
    assessments = SQLiteRiskAssessmentStore(temp_db_path)
    await properties.init()
    await assessments.init()
    return properties, assessments


class TestSQLitePropertyStore:
    """부동산 저장소 테스트"""

    @pytest.mark.asyncio
    async def test_upsert_is_idempotent(self, stores):
        properties, _ = stores

        first = await properties.upsert_property(_property("1 Ocean Ave"))
        second = await properties.upsert_property(_property("1 Ocean Ave", geocoding_accuracy="rooftop"))

        assert first.id == second.id
        assert second.geocoding_accuracy == "rooftop"
        assert await properties.get_count() == 1

    @pytest.mark.asyncio
    async def test_find_by_normalized_address(self, stores):
        properties, _ = stores
        await properties.upsert_property(_property("1 Ocean Ave"))

        found = await properties.find_by_normalized_address("1 ocean ave")

        assert found is not None
        assert found.address == "1 Ocean Ave"
        assert await properties.find_by_normalized_address("2 ocean ave") is None

    @pytest.mark.asyncio
    async def test_radius_query_orders_and_embeds_scores(self, stores):
        properties, assessments = stores
        near = await properties.upsert_property(_property("1 Near St", latitude=25.7620))
        far = await properties.upsert_property(_property("2 Far St", latitude=25.7700))
        await properties.upsert_property(_property("3 Outside St", latitude=26.5))
        await assessments.upsert(_assessment(far.id, 80, flood=90))

        matches = await properties.find_within_radius(25.7617, -80.1918, 2000, now=NOW)

        assert [m.property.id for m in matches] == [near.id, far.id]
        assert matches[0].embedded_risk is None
        assert matches[1].embedded_risk.overall_risk_score == 80
        assert matches[1].embedded_risk.hazard_scores == {"flood": 90}
        assert matches[0].distance_meters < matches[1].distance_meters <= 2000

    @pytest.mark.asyncio
    async def test_radius_query_filters(self, stores):
        properties, assessments = stores
        low = await properties.upsert_property(_property("1 Low St", property_type="residential"))
        high = await properties.upsert_property(_property("2 High St", latitude=25.7618,
                                                          property_type="commercial"))
        await assessments.upsert(_assessment(low.id, 20))
        await assessments.upsert(_assessment(high.id, 70))

        over_threshold = await properties.find_within_radius(25.7617, -80.1918, 500,
                                                             risk_threshold=60, now=NOW)
        residential = await properties.find_within_radius(25.7617, -80.1918, 500,
                                                          property_type="residential", now=NOW)

        assert [m.property.id for m in over_threshold] == [high.id]
        assert [m.property.id for m in residential] == [low.id]

    @pytest.mark.asyncio
    async def test_expired_scores_not_embedded(self, stores):
        properties, assessments = stores
        prop = await properties.upsert_property(_property("1 Ocean Ave"))
        await assessments.upsert(_assessment(prop.id, 50, created_at=NOW - timedelta(days=31)))

        matches = await properties.find_within_radius(25.7617, -80.1918, 100, now=NOW)

        assert matches[0].embedded_risk is None

    @pytest.mark.asyncio
    async def test_radius_query_limit(self, stores):
        properties, _ = stores
        for i in range(5):
            await properties.upsert_property(_property(f"{i} Bay Rd", latitude=25.7617 + i * 0.0001))

        matches = await properties.find_within_radius(25.7617, -80.1918, 1000, limit=3, now=NOW)

        assert len(matches) == 3


class TestSQLiteRiskAssessmentStore:
    """위험 평가 저장소 테스트"""

    @pytest.mark.asyncio
    async def test_upsert_supersedes_current(self, stores):
        properties, assessments = stores
        prop = await properties.upsert_property(_property("1 Ocean Ave"))

        await assessments.upsert(_assessment(prop.id, 40))
        newer = await assessments.upsert(_assessment(prop.id, 72, created_at=NOW + timedelta(days=31)))

        current = await assessments.get_current(prop.id)
        assert current.id == newer.id
        assert current.overall_risk_score == 72
        assert current.expires_at == NOW + timedelta(days=61)
        assert await assessments.get_history_count(prop.id) == 2

    @pytest.mark.asyncio
    async def test_get_current_missing(self, stores):
        _, assessments = stores
        assert await assessments.get_current(12345) is None

    @pytest.mark.asyncio
    async def test_ephemeral_assessment_rejected(self, stores):
        _, assessments = stores
        ephemeral = RiskAssessment(overall_risk_score=1, created_at=NOW, expires_at=NOW + timedelta(days=30))
        with pytest.raises(ValueError):
            await assessments.upsert(ephemeral)


class TestSQLiteRegionalCache:
    """지역 캐시 테스트"""

    @pytest.mark.asyncio
    async def test_ttl(self, temp_db_path):
        cache = SQLiteRegionalCache(temp_db_path)
        await cache.init()

        await cache.set("geo_risk_k", {"properties": []}, ttl_sec=3600, now=1000)

        assert await cache.get("geo_risk_k", now=4599) == {"properties": []}
        assert await cache.get("geo_risk_k", now=4600) is None
        assert await cache.gc(now=4600) == 1

    @pytest.mark.asyncio
    async def test_last_write_wins(self, temp_db_path):
        cache = SQLiteRegionalCache(temp_db_path)
        await cache.init()

        await cache.set("k", {"v": 1}, ttl_sec=60, now=0)
        await cache.set("k", {"v": 2}, ttl_sec=60, now=0)

        assert await cache.get("k", now=10) == {"v": 2}


class TestSQLiteUsageTracker:
    @pytest.mark.asyncio
    async def test_track_appends(self, temp_db_path):
        tracker = SQLiteUsageTracker(temp_db_path)
        await tracker.init()

        await tracker.track(UsageEvent(endpoint="property_risk", cost=0.001, user_id="u-1"))
        await tracker.track(UsageEvent(endpoint="property_risk", billable_request=False))

        assert await tracker.get_count() == 2
