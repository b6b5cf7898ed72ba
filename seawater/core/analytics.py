"""
Descriptive analytics for the Seawater risk engine.

Pure functions computing risk-band distributions, radius-search spatial
analytics, bulk summaries and pagination. Nothing here touches I/O.
"""

import math
from collections import Counter
from typing import Iterable, List, Optional, Sequence, Tuple, TypeVar
from .models import (
    BandCounts, BulkAnalytics, BulkSuccess, EnrichedProperty, GeographicAnalytics,
    Pagination, RiskBand, RiskConcentration, RiskSummary, SpatialDistribution,
)

T = TypeVar("T")

# 위험 등급 하한값 (낮음 -> 높음)
BAND_FLOORS = (
    ("very_high", 80.0),
    ("high", 60.0),
    ("moderate", 40.0),
)


def risk_band(score: float) -> RiskBand:
    for band, floor in BAND_FLOORS:
        if score >= floor:
            return band
    return "low"


def band_counts(scores: Iterable[float]) -> BandCounts:
    counts = Counter(risk_band(s) for s in scores)
    return BandCounts(
        low=counts["low"],
        moderate=counts["moderate"],
        high=counts["high"],
        very_high=counts["very_high"],
    )


def _mean(values: Sequence[float]) -> float:
    return round(sum(values) / len(values), 1)


def summarize_scores(scores: Sequence[float]) -> Optional[RiskSummary]:
    """평균/최소/최대 점수와 등급 분포를 계산합니다. 점수가 없으면 None."""
    if not scores:
        return None
    return RiskSummary(
        average_risk_score=_mean(scores),
        min_risk_score=min(scores),
        max_risk_score=max(scores),
        risk_distribution=band_counts(scores),
    )


def state_distribution(states: Iterable[Optional[str]]) -> dict:
    return dict(Counter(s for s in states if s))


def relative_position(distance_meters: float) -> str:
    if distance_meters < 100:
        return "very_close"
    if distance_meters < 500:
        return "close"
    if distance_meters < 1000:
        return "nearby"
    if distance_meters < 5000:
        return "moderate_distance"
    return "far"


def risk_concentration(
    pairs: Sequence[Tuple[float, float]],
    radius_m: float,
    inner_ratio: float = 0.5,
) -> Optional[RiskConcentration]:
    """
    반경 내측/외측의 평균 위험 점수를 비교합니다.

    Args:
        pairs: (중심점 거리, 종합 점수) 목록
        radius_m: 검색 반경 (미터)
        inner_ratio: 내측으로 간주할 반경 비율

    Returns:
        양쪽 모두 표본이 있으면 RiskConcentration, 아니면 None
    """
    boundary = radius_m * inner_ratio
    inner = [score for distance, score in pairs if distance < boundary]
    outer = [score for distance, score in pairs if distance >= boundary]
    if not inner or not outer:
        return None

    inner_avg = sum(inner) / len(inner)
    outer_avg = sum(outer) / len(outer)
    return RiskConcentration(
        inner_radius_avg_risk=round(inner_avg, 1),
        outer_radius_avg_risk=round(outer_avg, 1),
        risk_gradient=round(inner_avg - outer_avg, 1),
    )


def geographic_analytics(
    results: Sequence[EnrichedProperty],
    latitude: float,
    longitude: float,
    radius_m: float,
    inner_ratio: float = 0.5,
) -> GeographicAnalytics:
    """페이지 적용 전 전체 결과 집합에 대한 반경 검색 분석"""
    if not results:
        return GeographicAnalytics()

    distances = [r.distance_meters for r in results]
    spatial = SpatialDistribution(
        center_point=f"{latitude},{longitude}",
        search_radius_meters=radius_m,
        average_distance_from_center=_mean(distances),
        closest_property_distance=min(distances),
        furthest_property_distance=max(distances),
    )

    scored = [r for r in results if r.risk_assessment is not None]
    scores = [r.risk_assessment.overall_risk_score for r in scored]
    pairs = [(r.distance_meters, r.risk_assessment.overall_risk_score) for r in scored]

    return GeographicAnalytics(
        spatial_distribution=spatial,
        risk_distribution=summarize_scores(scores),
        risk_concentration=risk_concentration(pairs, radius_m, inner_ratio),
        geographic_clustering=state_distribution(r.property.state for r in results),
    )


def bulk_analytics(successes: Sequence[BulkSuccess], total_requested: int) -> BulkAnalytics:
    succeeded = len(successes)
    success_rate = round(succeeded / total_requested * 100, 1) if total_requested else 0.0
    scores = [s.risk_assessment.overall_risk_score for s in successes]
    return BulkAnalytics(
        total_requested=total_requested,
        successful_analyses=succeeded,
        failed_analyses=total_requested - succeeded,
        success_rate=success_rate,
        risk_summary=summarize_scores(scores),
        geographic_distribution=state_distribution(s.property.state for s in successes),
    )


def paginate(items: List[T], page: int, page_size: int) -> Tuple[List[T], Pagination]:
    total = len(items)
    total_pages = math.ceil(total / page_size) if page_size else 0
    start = (page - 1) * page_size
    end = min(start + page_size, total)
    window = items[start:end] if start < total else []
    return window, Pagination(
        current_page=page,
        page_size=page_size,
        total_records=total,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_previous=page > 1,
        start_index=start + 1 if window else 0,
        end_index=end if window else 0,
    )
