"""
Core domain models for the Seawater risk engine.

This module defines the domain entities (properties, risk assessments),
request queries and result records using Pydantic v2 for type safety
and validation.
"""

from datetime import datetime
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from .validation import validate_address, parse_risk_types

# 위험 등급 타입 정의
RiskBand = Literal["low", "moderate", "high", "very_high"]
RiskStatus = Literal["embedded", "cached", "unavailable"]
CacheStatus = Literal["hit", "miss"]

PROPERTY_TYPES = (
    "residential", "commercial", "industrial", "agricultural",
    "mixed_use", "institutional", "recreational", "vacant",
)


class Coordinates(BaseModel):
    """위경도 좌표 모델"""
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class GeocodedLocation(BaseModel):
    """지오코딩 결과 모델"""
    latitude: float
    longitude: float
    accuracy: Optional[str] = None
    source: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    county: Optional[str] = None


class Property(BaseModel):
    """부동산(주소) 모델 - 좌표의 단일 진실 공급원"""
    id: Optional[int] = None
    address: str
    normalized_address: str
    latitude: float
    longitude: float
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    county: Optional[str] = None
    property_type: Optional[str] = None
    geocoding_accuracy: Optional[str] = None
    geocoding_source: Optional[str] = None

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(latitude=self.latitude, longitude=self.longitude)


class ClimateData(BaseModel):
    """기후 데이터 집계기의 정규화된 응답"""
    overall_risk_score: float
    hazard_scores: Dict[str, float] = Field(default_factory=dict)
    risk_category: Optional[str] = None
    fema_flood_zone: Optional[str] = None
    confidence_score: Optional[float] = None
    sources: List[str] = Field(default_factory=list)
    external_api_calls: int = 0
    cache_hits: int = 0
    cache_misses: int = 0


class RiskScores(BaseModel):
    """점수만 담은 위험 스냅샷 (반경 검색 결과용)"""
    overall_risk_score: float
    hazard_scores: Dict[str, float] = Field(default_factory=dict)
    expires_at: Optional[datetime] = None


class RiskAssessment(BaseModel):
    """기후 위험 평가 모델"""
    id: Optional[int] = None
    property_id: Optional[int] = None
    overall_risk_score: float
    hazard_scores: Dict[str, float] = Field(default_factory=dict)
    risk_category: Optional[str] = None
    fema_flood_zone: Optional[str] = None
    confidence_score: Optional[float] = None
    assessment_version: str = "1.0"
    created_at: datetime
    expires_at: datetime

    @property
    def ephemeral(self) -> bool:
        return self.property_id is None

    def is_current(self, now: datetime) -> bool:
        return now < self.expires_at

    def scores(self) -> RiskScores:
        return RiskScores(
            overall_risk_score=self.overall_risk_score,
            hazard_scores=dict(self.hazard_scores),
            expires_at=self.expires_at,
        )


class SpatialMatch(BaseModel):
    """공간 쿼리 결과 한 건 (중심점 거리 포함)"""
    property: Property
    distance_meters: float
    embedded_risk: Optional[RiskScores] = None

    @property
    def has_embedded_risk(self) -> bool:
        return self.embedded_risk is not None


class LocationContext(BaseModel):
    distance_from_center: int
    relative_position: str


class EnrichedProperty(BaseModel):
    """위험 점수가 붙은 반경 검색 결과"""
    property: Property
    distance_meters: float
    risk_assessment: Optional[RiskScores] = None
    risk_status: RiskStatus
    location_context: LocationContext
    error: Optional[str] = None


class RadiusSearchParams(BaseModel):
    """지역 캐시 키를 구성하는 검색 파라미터 (중심 좌표는 반올림 값)"""
    latitude: float
    longitude: float
    radius_m: float
    risk_threshold: Optional[float] = None
    property_type: Optional[str] = None


class RegionalCacheEntry(BaseModel):
    properties: List[EnrichedProperty] = Field(default_factory=list)
    search_params: RadiusSearchParams
    timestamp: datetime


class RequestContext(BaseModel):
    """요청자 컨텍스트 (과금 식별자, 구독 등급)"""
    user_id: Optional[str] = None
    api_key_id: Optional[str] = None
    subscription_tier: str = "free"
    request_id: Optional[str] = None

    @property
    def billable(self) -> bool:
        return bool(self.user_id or self.api_key_id)


class UsageEvent(BaseModel):
    endpoint: str
    http_method: str = "GET"
    status_code: int = 200
    property_count: int = 0
    billable_request: bool = True
    cost: float = 0.0
    user_id: Optional[str] = None
    api_key_id: Optional[str] = None


# ---- 요청 쿼리 ----

class PropertyRiskQuery(BaseModel):
    """단일 부동산 위험 조회 쿼리 (주소 또는 좌표)"""
    address: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    risk_types: List[str] = Field(default_factory=lambda: ["all"])

    @field_validator("address")
    @classmethod
    def _check_address(cls, v: Optional[str]) -> Optional[str]:
        return validate_address(v) if v is not None else None

    @field_validator("risk_types", mode="before")
    @classmethod
    def _check_risk_types(cls, v):
        return parse_risk_types(v)

    @model_validator(mode="after")
    def _require_location(self):
        if self.address is None and (self.latitude is None or self.longitude is None):
            raise ValueError("address or latitude/longitude is required")
        return self

    @property
    def coordinates(self) -> Optional[Coordinates]:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinates(latitude=self.latitude, longitude=self.longitude)


class RadiusQuery(BaseModel):
    """반경 검색 쿼리"""
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    radius_m: float = Field(gt=0, le=50000)
    risk_threshold: Optional[float] = Field(default=None, ge=0, le=100)
    property_type: Optional[str] = None
    risk_types: List[str] = Field(default_factory=lambda: ["all"])
    page: int = Field(default=1, ge=1)
    page_size: Optional[int] = Field(default=None, ge=1, le=100)

    @field_validator("property_type")
    @classmethod
    def _check_property_type(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        normalized = str(v).strip().lower()
        if normalized not in PROPERTY_TYPES:
            raise ValueError(f"Invalid property type: {v}. Valid types: {', '.join(PROPERTY_TYPES)}")
        return normalized

    @field_validator("risk_types", mode="before")
    @classmethod
    def _check_risk_types(cls, v):
        return parse_risk_types(v)


class ComparisonQuery(BaseModel):
    addresses: List[str] = Field(min_length=2, max_length=10)
    risk_types: List[str] = Field(default_factory=lambda: ["all"])

    @field_validator("addresses")
    @classmethod
    def _check_addresses(cls, v: List[str]) -> List[str]:
        return [validate_address(a) for a in v]

    @field_validator("risk_types", mode="before")
    @classmethod
    def _check_risk_types(cls, v):
        return parse_risk_types(v)


# ---- 분석 결과 ----

class BandCounts(BaseModel):
    low: int = 0
    moderate: int = 0
    high: int = 0
    very_high: int = 0


class RiskSummary(BaseModel):
    average_risk_score: float
    min_risk_score: float
    max_risk_score: float
    risk_distribution: BandCounts


class SpatialDistribution(BaseModel):
    center_point: str
    search_radius_meters: float
    average_distance_from_center: float
    closest_property_distance: float
    furthest_property_distance: float


class RiskConcentration(BaseModel):
    inner_radius_avg_risk: float
    outer_radius_avg_risk: float
    risk_gradient: float                      # 양수면 중심부 위험이 높음


class GeographicAnalytics(BaseModel):
    spatial_distribution: Optional[SpatialDistribution] = None
    risk_distribution: Optional[RiskSummary] = None
    risk_concentration: Optional[RiskConcentration] = None
    geographic_clustering: Dict[str, int] = Field(default_factory=dict)


class Pagination(BaseModel):
    current_page: int
    page_size: int
    total_records: int
    total_pages: int
    has_next: bool
    has_previous: bool
    start_index: int
    end_index: int


class BoundaryContext(BaseModel):
    counties: List[str] = Field(default_factory=list)
    flood_zones: List[str] = Field(default_factory=list)
    wildfire_zones: List[str] = Field(default_factory=list)
    administrative_areas: List[str] = Field(default_factory=list)
    error: Optional[str] = None


class RadiusSearchResult(BaseModel):
    properties: List[EnrichedProperty] = Field(default_factory=list)
    total_results: int = 0
    pagination: Pagination
    analytics: GeographicAnalytics
    boundary_context: BoundaryContext
    cache_status: CacheStatus
    spatial_query_error: Optional[str] = None
    performance: Dict[str, float] = Field(default_factory=dict)


class BatchError(BaseModel):
    """대량 분석의 주소별 오류 기록 (예외가 아님)"""
    address: str
    error: str
    batch_index: int
    index: int


class BulkSuccess(BaseModel):
    address: str
    index: int
    batch_index: int
    property: Property
    risk_assessment: RiskAssessment


class BulkAnalytics(BaseModel):
    total_requested: int
    successful_analyses: int
    failed_analyses: int
    success_rate: float
    risk_summary: Optional[RiskSummary] = None
    geographic_distribution: Dict[str, int] = Field(default_factory=dict)


class BulkResult(BaseModel):
    successes: List[BulkSuccess] = Field(default_factory=list)
    errors: List[BatchError] = Field(default_factory=list)
    analytics: BulkAnalytics
    performance: Dict[str, float] = Field(default_factory=dict)


class PropertyRiskResult(BaseModel):
    property: Optional[Property] = None
    coordinates: Coordinates
    geocoding_accuracy: Optional[str] = None
    risk_assessment: RiskAssessment
    cache_status: CacheStatus
    performance: Dict[str, float] = Field(default_factory=dict)


class ComparisonEntry(BaseModel):
    property: Property
    risk_assessment: RiskAssessment
    comparison_rank: int = 0


class ComparisonError(BaseModel):
    address: str
    error: str
    index: int


class ComparisonResult(BaseModel):
    properties: List[ComparisonEntry] = Field(default_factory=list)
    errors: List[ComparisonError] = Field(default_factory=list)
    analytics: Dict[str, object] = Field(default_factory=dict)
