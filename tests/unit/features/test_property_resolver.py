"""
PropertyResolver 단위 테스트
"""

import pytest
from seawater.core.errors import NotFoundError
from seawater.core.models import Coordinates
from seawater.features.property_resolver import PropertyResolver, Resolution
from seawater.observability.perf import PerformanceMetrics

from conftest import make_property


@pytest.fixture
def resolver(property_store, mock_geocoder):
    return PropertyResolver(property_store, mock_geocoder)


class TestPropertyResolver:
    """부동산 해석기 테스트"""

    @pytest.mark.asyncio
    async def test_existing_property_skips_geocoding(self, resolver, property_store, mock_geocoder):
        existing = make_property(7, "1 Ocean Ave")
        property_store.by_address["1 ocean ave"] = existing

        resolution = await resolver.resolve(address="  1 OCEAN AVE ")

        assert resolution.prop == existing
        assert not resolution.created
        mock_geocoder.geocode.assert_not_called()

    @pytest.mark.asyncio
    async def test_unseen_address_geocoded_once_and_persisted(self, resolver, property_store, mock_geocoder):
        perf = PerformanceMetrics()
        resolution = await resolver.resolve(address="1 Ocean Ave", perf=perf)

        mock_geocoder.geocode.assert_awaited_once_with("1 Ocean Ave")
        assert resolution.created
        assert resolution.prop.id == 1
        assert resolution.prop.normalized_address == "1 ocean ave"
        assert resolution.coordinates == Coordinates(latitude=25.0, longitude=-80.0)
        assert property_store.upsert_calls == 1
        assert perf.get("external_api_calls") == 1

    @pytest.mark.asyncio
    async def test_geocode_failure_raises_not_found(self, resolver, property_store, mock_geocoder):
        mock_geocoder.geocode.return_value = {"success": False, "error": "no match"}

        with pytest.raises(NotFoundError) as exc_info:
            await resolver.resolve(address="404 Nowhere Rd")

        assert exc_info.value.resource == "property"
        assert property_store.upsert_calls == 0

    @pytest.mark.asyncio
    async def test_geocoder_exception_raises_not_found(self, resolver, mock_geocoder):
        mock_geocoder.geocode.side_effect = ConnectionError("gateway down")

        with pytest.raises(NotFoundError):
            await resolver.resolve(address="1 Ocean Ave")

        assert mock_geocoder.geocode.await_count == 1

    @pytest.mark.asyncio
    async def test_coordinates_only_is_ephemeral(self, resolver, property_store, mock_geocoder):
        coords = Coordinates(latitude=30.0, longitude=-90.0)

        resolution = await resolver.resolve(coordinates=coords)

        assert resolution.ephemeral
        assert resolution.coordinates == coords
        mock_geocoder.geocode.assert_not_called()
        assert property_store.upsert_calls == 0

    @pytest.mark.asyncio
    async def test_nothing_to_resolve(self, resolver):
        with pytest.raises(NotFoundError) as exc_info:
            await resolver.resolve()
        assert exc_info.value.resource == "coordinates"


class TestResolution:
    """해석 결과 타입 테스트"""

    def test_stored_property_is_not_ephemeral(self):
        prop = make_property(3, "3 Park Ave")
        resolution = Resolution(coordinates=prop.coordinates, prop=prop)

        assert not resolution.ephemeral
        assert resolution.prop.id == 3

    def test_coordinates_without_property_is_ephemeral(self):
        resolution = Resolution(coordinates=Coordinates(latitude=30.0, longitude=-90.0))

        assert resolution.ephemeral
        assert resolution.prop is None
        assert not resolution.created

    def test_feature_and_orchestrator_packages_import(self):
        import seawater.features as features
        import seawater.orchestrators as orchestrators
        from seawater import main

        assert features.PropertyResolver is PropertyResolver
        assert orchestrators.BulkBatchOrchestrator is not None
        assert callable(main.cli)
