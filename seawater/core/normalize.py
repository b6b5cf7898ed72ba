"""
Normalization functions for the Seawater risk engine.

This module contains pure functions for converting raw provider payloads
(geocoder, climate aggregator, spatial rows) into internal domain models
and tagged results.
"""

from typing import Any, Dict, List, Optional
from .models import BoundaryContext, ClimateData, GeocodedLocation
from .result import Err, Ok, Result
from seawater.observability.logging_setup import get_logger

log = get_logger("seawater.normalize")

SCORE_SUFFIX = "_risk_score"
OVERALL_KEY = "overall_risk_score"


def normalize_address(address: str) -> str:
    """주소 비교 키: 소문자 + 앞뒤 공백 제거"""
    return address.strip().lower()


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def extract_hazard_scores(data: Dict[str, Any]) -> Dict[str, float]:
    """
    `<hazard>_risk_score` 키들을 위험 유형별 점수 딕셔너리로 추출합니다.

    값은 변환 없이 그대로 사용하며 (숫자화만 수행), 비어 있는 값은 건너뜁니다.
    """
    scores: Dict[str, float] = {}
    for key, value in data.items():
        if not key.endswith(SCORE_SUFFIX) or key == OVERALL_KEY:
            continue
        score = _as_float(value)
        if score is not None:
            scores[key[: -len(SCORE_SUFFIX)]] = score
    return scores


def to_geocode_result(raw: Optional[Dict[str, Any]]) -> Result[GeocodedLocation]:
    """지오코딩 게이트웨이 응답을 Ok/Err로 변환합니다."""
    if not raw or not raw.get("success"):
        message = (raw or {}).get("error") or "geocoding failed"
        return Err(kind="geocode", message=str(message),
                   retryable=bool((raw or {}).get("retryable", False)),
                   source=(raw or {}).get("source"))

    lat = _as_float(raw.get("latitude"))
    lon = _as_float(raw.get("longitude"))
    if lat is None or lon is None or not (-90 <= lat <= 90 and -180 <= lon <= 180):
        log.warning(f"지오코딩 좌표가 유효하지 않음: latitude={raw.get('latitude')}, longitude={raw.get('longitude')}")
        return Err(kind="geocode", message="geocoder returned invalid coordinates",
                   source=raw.get("source"))

    return Ok(GeocodedLocation(
        latitude=lat,
        longitude=lon,
        accuracy=raw.get("accuracy"),
        source=raw.get("source"),
        city=raw.get("city"),
        state=raw.get("state"),
        zip_code=raw.get("zip_code") or raw.get("zipCode"),
        county=raw.get("county"),
    ))


def to_climate_data(risk_data: Dict[str, Any], envelope: Optional[Dict[str, Any]] = None) -> Result[ClimateData]:
    """riskData 본문을 ClimateData로 변환합니다. overall 점수가 없으면 Err."""
    envelope = envelope or {}
    overall = _as_float(risk_data.get(OVERALL_KEY))
    if overall is None:
        return Err(kind="climate_data", message="aggregator payload is missing overall_risk_score",
                   retryable=False, source=envelope.get("error_source"))

    sources = envelope.get("sources") or []
    if isinstance(sources, dict):
        sources = list(sources.keys())

    return Ok(ClimateData(
        overall_risk_score=overall,
        hazard_scores=extract_hazard_scores(risk_data),
        risk_category=risk_data.get("risk_category"),
        fema_flood_zone=risk_data.get("fema_flood_zone"),
        confidence_score=_as_float(risk_data.get("confidence_score")),
        sources=[str(s) for s in sources],
        external_api_calls=int(envelope.get("external_api_calls") or 0),
        cache_hits=int(envelope.get("cache_hits") or 0),
        cache_misses=int(envelope.get("cache_misses") or 0),
    ))


def to_climate_result(raw: Optional[Dict[str, Any]]) -> Result[ClimateData]:
    """기후 데이터 집계기 응답을 Ok/Err로 변환합니다."""
    if not raw or not raw.get("success"):
        raw = raw or {}
        # 재시도 가능 여부는 집계기 분류를 따름 (없으면 재시도 가능으로 간주)
        return Err(kind="climate_data",
                   message=str(raw.get("error") or "Unable to retrieve climate risk data"),
                   retryable=bool(raw.get("retryable", True)),
                   source=raw.get("error_source"))
    return to_climate_data(raw.get("riskData") or {}, raw)


def to_batch_climate_results(raw: Optional[Dict[str, Any]]) -> Dict[str, Result[ClimateData]]:
    """batchAggregate 응답을 주소별 결과 맵으로 변환합니다."""
    results: Dict[str, Result[ClimateData]] = {}
    for item in (raw or {}).get("results") or []:
        address = item.get("address")
        if address is None:
            continue
        if item.get("success"):
            results[address] = to_climate_data(item.get("riskData") or {}, item)
        else:
            results[address] = Err(kind="climate_data",
                                   message=str(item.get("error") or "unknown error"),
                                   retryable=bool(item.get("retryable", True)),
                                   source=item.get("error_source"))
    return results


def to_batch_geocode_results(raw: Optional[Dict[str, Any]]) -> Dict[str, Result[GeocodedLocation]]:
    """batchGeocode 응답을 주소별 결과 맵으로 변환합니다."""
    results: Dict[str, Result[GeocodedLocation]] = {}
    for item in (raw or {}).get("results") or []:
        address = item.get("address")
        if address is not None:
            results[address] = to_geocode_result(item)
    return results


def boundary_names(items: Any) -> List[str]:
    """경계 항목 목록을 이름 문자열 목록으로 변환합니다. 항목은 문자열, 숫자 또는 {name|id: ...} 객체입니다."""
    if not isinstance(items, (list, tuple)):
        return []
    names = []
    for item in items:
        if isinstance(item, dict):
            name = item.get("name") or item.get("id")
            if name:
                names.append(str(name))
        elif item is not None:
            names.append(str(item))
    return names


def to_boundary_context(raw: Optional[Dict[str, Any]]) -> BoundaryContext:
    """
    경계 데이터 응답을 BoundaryContext로 변환합니다.

    Raises:
        TypeError: 응답이 객체가 아님
    """
    if raw is None:
        return BoundaryContext()
    if not isinstance(raw, dict):
        raise TypeError(f"boundary payload must be an object, got {type(raw).__name__}")
    return BoundaryContext(
        counties=boundary_names(raw.get("counties")),
        flood_zones=boundary_names(raw.get("floodZones")),
        wildfire_zones=boundary_names(raw.get("wildfireZones")),
        administrative_areas=boundary_names(raw.get("administrativeAreas")),
    )
