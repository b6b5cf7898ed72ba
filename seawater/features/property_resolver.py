"""
Property resolution for the Seawater risk engine.

Deduplicates address lookups against the property store before
invoking the geocoding gateway. Coordinate-only requests resolve to
an ephemeral location and never create a property.
"""

from dataclasses import dataclass
from typing import Optional
from seawater.core.errors import NotFoundError
from seawater.core.models import Coordinates, GeocodedLocation, Property
from seawater.core.normalize import normalize_address, to_geocode_result
from seawater.core.result import Err
from seawater.ports.geocoding import GeocodingPort
from seawater.ports.property_store import PropertyStorePort
from seawater.observability import metrics
from seawater.observability.perf import PerformanceMetrics
from seawater.observability.logging_setup import get_logger

log = get_logger("seawater.resolver")


def build_property(address: str, location: GeocodedLocation) -> Property:
    """지오코딩 결과로 저장 전 Property를 만듭니다."""
    return Property(
        address=address,
        normalized_address=normalize_address(address),
        latitude=location.latitude,
        longitude=location.longitude,
        city=location.city,
        state=location.state,
        zip_code=location.zip_code,
        county=location.county,
        geocoding_accuracy=location.accuracy,
        geocoding_source=location.source,
    )


@dataclass
class Resolution:
    """해석 결과: 저장된 Property 또는 임시 좌표"""
    coordinates: Coordinates
    prop: Optional[Property] = None
    created: bool = False

    @property
    def ephemeral(self) -> bool:
        return self.prop is None


class PropertyResolver:
    """주소/좌표 → Property 해석기"""

    def __init__(self, store: PropertyStorePort, geocoder: GeocodingPort):
        """
        초기화합니다.
        
        Args:
            store: 부동산 저장소 포트
            geocoder: 지오코딩 게이트웨이 포트
        """
        self.store = store
        self.geocoder = geocoder

    async def resolve(self,
                      address: Optional[str] = None,
                      coordinates: Optional[Coordinates] = None,
                      perf: Optional[PerformanceMetrics] = None) -> Resolution:
        """
        주소 또는 좌표를 해석합니다.
        
        주소가 있으면 저장소를 먼저 조회하고, 없을 때만 한 번 지오코딩한 뒤
        새 Property를 upsert 합니다. 재시도는 게이트웨이의 몫입니다.
        
        Raises:
            NotFoundError: 지오코딩 실패 또는 위치를 결정할 수 없음
        """
        perf = perf or PerformanceMetrics()

        if address:
            with perf.timer("database_time"):
                existing = await self.store.find_by_normalized_address(normalize_address(address))
            if existing is not None:
                log.debug("기존 부동산 사용", property_id=existing.id, address=existing.address)
                return Resolution(coordinates=existing.coordinates, prop=existing)

            log.info("부동산 없음, 지오코딩 진행", address=address)
            with perf.timer("geocoding_time"):
                try:
                    raw = await self.geocoder.geocode(address)
                except Exception as e:
                    log.error(f"지오코딩 호출 실패 address:{address} error:{e}")
                    raise NotFoundError(f"Unable to geocode address: {address}", "property") from e
            metrics.geocode_calls.labels(mode="single").inc()
            perf.add("external_api_calls")

            result = to_geocode_result(raw)
            if isinstance(result, Err):
                raise NotFoundError(f"Unable to geocode address: {address}", "property")

            with perf.timer("database_time"):
                created = await self.store.upsert_property(build_property(address, result.data))
            log.info("새 부동산 생성", property_id=created.id, address=created.address)
            return Resolution(coordinates=created.coordinates, prop=created, created=True)

        if coordinates is not None:
            return Resolution(coordinates=coordinates)

        raise NotFoundError("Unable to determine property location", "coordinates")
