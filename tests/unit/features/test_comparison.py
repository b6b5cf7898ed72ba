"""
PropertyComparison 단위 테스트
"""

import pytest
from seawater.core.models import ComparisonQuery, RequestContext
from seawater.features.comparison import PropertyComparison
from seawater.features.property_resolver import PropertyResolver
from seawater.features.risk_cache import RiskAssessmentCache
from seawater.features.usage import UsageRecorder

from conftest import aggregate_ok, geocode_ok


@pytest.fixture
def comparison(property_store, assessment_store, mock_geocoder, mock_aggregator, usage_tracker, clock):
    resolver = PropertyResolver(property_store, mock_geocoder)
    cache = RiskAssessmentCache(assessment_store, mock_aggregator, clock=clock)
    return PropertyComparison(resolver, cache, UsageRecorder(usage_tracker))


class TestPropertyComparison:
    """부동산 비교 테스트"""

    @pytest.mark.asyncio
    async def test_ranked_riskiest_first(self, comparison, mock_geocoder, mock_aggregator, usage_tracker):
        mock_geocoder.geocode.side_effect = [
            geocode_ok(25.0, -80.0, state="FL"),
            geocode_ok(34.0, -118.0, state="CA"),
            geocode_ok(40.0, -74.0, state="NY"),
        ]
        mock_aggregator.aggregate.side_effect = [
            aggregate_ok(72, flood=85),
            aggregate_ok(81, wildfire=90),
            aggregate_ok(20),
        ]
        query = ComparisonQuery(addresses=["1 Ocean Ave", "2 Canyon Rd", "3 Park Ave"])

        result = await comparison.compare(query, RequestContext(user_id="u-1"))

        assert [e.property.address for e in result.properties] == ["2 Canyon Rd", "1 Ocean Ave", "3 Park Ave"]
        assert [e.comparison_rank for e in result.properties] == [1, 2, 3]
        analytics = result.analytics
        assert analytics["highest_risk_property"] == "2 Canyon Rd"
        assert analytics["lowest_risk_property"] == "3 Park Ave"
        assert analytics["risk_score_range"] == {"min": 20, "max": 81, "average": 57.7}
        assert analytics["flood_risk_properties"] == 1
        assert analytics["wildfire_risk_properties"] == 1
        assert analytics["geographic_distribution"] == {"FL": 1, "CA": 1, "NY": 1}
        assert usage_tracker.events[0].cost == pytest.approx(0.006)

    @pytest.mark.asyncio
    async def test_per_address_failures_collected(self, comparison, mock_geocoder):
        mock_geocoder.geocode.side_effect = [geocode_ok(25.0, -80.0), {"success": False}]
        query = ComparisonQuery(addresses=["1 Ocean Ave", "404 Nowhere Rd"])

        result = await comparison.compare(query)

        assert len(result.properties) == 1
        assert result.errors[0].address == "404 Nowhere Rd"
        assert result.errors[0].index == 1
        assert "Unable to geocode" in result.errors[0].error

    @pytest.mark.asyncio
    async def test_store_error_for_one_address_collected(self, comparison, property_store, usage_tracker):
        property_store.fail_upsert_for.add("2 canyon rd")
        query = ComparisonQuery(addresses=["1 Ocean Ave", "2 Canyon Rd"])

        result = await comparison.compare(query, RequestContext(user_id="u-1"))

        assert [e.property.address for e in result.properties] == ["1 Ocean Ave"]
        assert result.errors[0].address == "2 Canyon Rd"
        assert result.errors[0].index == 1
        assert result.errors[0].error == "disk full"
        assert usage_tracker.events[0].billable_request
        assert usage_tracker.events[0].property_count == 1

    @pytest.mark.asyncio
    async def test_store_lookup_error_collected(self, comparison, property_store):
        original = property_store.find_by_normalized_address

        async def flaky_lookup(normalized_address):
            if normalized_address == "2 canyon rd":
                raise RuntimeError("db locked")
            return await original(normalized_address)

        property_store.find_by_normalized_address = flaky_lookup
        query = ComparisonQuery(addresses=["1 Ocean Ave", "2 Canyon Rd"])

        result = await comparison.compare(query)

        assert len(result.properties) == 1
        assert result.errors[0].error == "db locked"

    @pytest.mark.asyncio
    async def test_all_failed_has_empty_analytics(self, comparison, mock_aggregator):
        mock_aggregator.aggregate.return_value = {"success": False, "error": "down"}
        query = ComparisonQuery(addresses=["1 Ocean Ave", "2 Canyon Rd"])

        result = await comparison.compare(query)

        assert result.properties == []
        assert len(result.errors) == 2
        assert result.analytics == {}
