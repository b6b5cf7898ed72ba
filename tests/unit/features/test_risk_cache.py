"""
RiskAssessmentCache 단위 테스트

신선도 게이트(히트/미스/만료)와 집계기 오류 전파를 검증합니다.
"""

import pytest
from datetime import timedelta
from seawater.core.errors import ClimateDataError
from seawater.core.models import ClimateData, Coordinates
from seawater.features.risk_cache import RiskAssessmentCache

from conftest import make_assessment, make_property

COORDS = Coordinates(latitude=25.0, longitude=-80.0)


@pytest.fixture
def cache(assessment_store, mock_aggregator, clock):
    return RiskAssessmentCache(assessment_store, mock_aggregator, clock=clock)


class TestRiskAssessmentCache:
    """위험 평가 캐시 테스트"""

    @pytest.mark.asyncio
    async def test_miss_computes_and_persists(self, cache, assessment_store, mock_aggregator, fixed_now):
        prop = make_property(1, "1 Ocean Ave")

        assessment, status = await cache.get_or_compute(prop, COORDS, ["all"])

        assert status == "miss"
        mock_aggregator.aggregate.assert_awaited_once_with(25.0, -80.0, ["all"])
        assert assessment.overall_risk_score == 72
        assert assessment.hazard_scores == {"flood": 85, "wildfire": 10}
        assert assessment.created_at == fixed_now
        assert assessment.expires_at == fixed_now + timedelta(days=30)
        assert assessment.assessment_version == "1.0"
        assert assessment_store.current[1].id == assessment.id

    @pytest.mark.asyncio
    async def test_current_assessment_is_hit(self, cache, assessment_store, mock_aggregator, clock, fixed_now):
        prop = make_property(1, "1 Ocean Ave")
        first, _ = await cache.get_or_compute(prop, COORDS)
        clock.advance(days=29)

        second, status = await cache.get_or_compute(prop, COORDS)

        assert status == "hit"
        assert second == first
        assert mock_aggregator.aggregate.await_count == 1

    @pytest.mark.asyncio
    async def test_expired_assessment_recomputed(self, cache, assessment_store, mock_aggregator, clock, fixed_now):
        prop = make_property(1, "1 Ocean Ave")
        await cache.get_or_compute(prop, COORDS)
        clock.advance(days=30)
        mock_aggregator.aggregate.return_value = {"success": True, "riskData": {"overall_risk_score": 40}}

        assessment, status = await cache.get_or_compute(prop, COORDS)

        assert status == "miss"
        assert assessment.overall_risk_score == 40
        assert assessment.expires_at == clock.now + timedelta(days=30)
        assert len(assessment_store.history) == 2

    @pytest.mark.asyncio
    async def test_ephemeral_path_not_persisted(self, cache, assessment_store, mock_aggregator):
        assessment, status = await cache.get_or_compute(None, COORDS)

        assert status == "miss"
        assert assessment.ephemeral
        assert assessment_store.history == []

    @pytest.mark.asyncio
    async def test_aggregator_error_carries_retryable_flag(self, cache, mock_aggregator, assessment_store):
        mock_aggregator.aggregate.return_value = {"success": False, "error": "bad coordinates",
                                                  "retryable": False, "error_source": "noaa"}

        with pytest.raises(ClimateDataError) as exc_info:
            await cache.get_or_compute(make_property(1, "1 Ocean Ave"), COORDS)

        assert exc_info.value.retryable is False
        assert exc_info.value.source == "noaa"
        assert assessment_store.history == []

    @pytest.mark.asyncio
    async def test_aggregator_exception_is_retryable(self, cache, mock_aggregator):
        mock_aggregator.aggregate.side_effect = TimeoutError("upstream timeout")

        with pytest.raises(ClimateDataError) as exc_info:
            await cache.get_or_compute(None, COORDS)

        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    async def test_lookup_never_computes(self, cache, assessment_store, mock_aggregator, fixed_now, clock):
        assert await cache.lookup(1) is None

        assessment_store.current[1] = make_assessment(1, 55, fixed_now - timedelta(days=31))
        assert await cache.lookup(1) is None

        assessment_store.current[2] = make_assessment(2, 65, fixed_now - timedelta(days=1))
        assert (await cache.lookup(2)).overall_risk_score == 65
        mock_aggregator.aggregate.assert_not_called()

    @pytest.mark.asyncio
    async def test_record_builds_expiry(self, cache, fixed_now):
        data = ClimateData(overall_risk_score=12.5, hazard_scores={"heat": 3})
        assessment = await cache.record(make_property(3, "3 Palm Way"), data)
        assert assessment.property_id == 3
        assert assessment.expires_at - assessment.created_at == timedelta(days=30)
