"""
Property comparison for the Seawater risk engine.

Resolves 2-10 addresses one after another through the resolver and the
risk assessment cache, ranks them riskiest first and summarizes the set.
"""

from typing import Dict, List, Optional
from seawater.core.analytics import band_counts, state_distribution
from seawater.core.models import (
    ComparisonEntry, ComparisonError, ComparisonQuery, ComparisonResult, RequestContext,
)
from seawater.observability.perf import PerformanceMetrics
from seawater.observability.logging_setup import get_logger
from .property_resolver import PropertyResolver
from .risk_cache import RiskAssessmentCache
from .usage import UsageRecorder

log = get_logger("seawater.comparison")

ENDPOINT = "property_comparison"
DOMINANT_HAZARD_FLOOR = 60.0


def comparison_analytics(entries: List[ComparisonEntry]) -> Dict[str, object]:
    """순위가 매겨진 비교 결과 요약 (entries는 위험 점수 내림차순)"""
    if not entries:
        return {}

    scores = [e.risk_assessment.overall_risk_score for e in entries]
    hazards = [e.risk_assessment.hazard_scores for e in entries]
    return {
        "highest_risk_property": entries[0].property.address,
        "lowest_risk_property": entries[-1].property.address,
        "risk_score_range": {
            "min": min(scores),
            "max": max(scores),
            "average": round(sum(scores) / len(scores), 1),
        },
        "risk_distribution": band_counts(scores).model_dump(),
        "flood_risk_properties": sum(1 for h in hazards if h.get("flood", 0) >= DOMINANT_HAZARD_FLOOR),
        "wildfire_risk_properties": sum(1 for h in hazards if h.get("wildfire", 0) >= DOMINANT_HAZARD_FLOOR),
        "geographic_distribution": state_distribution(e.property.state for e in entries),
    }


class PropertyComparison:
    """여러 부동산의 위험 비교"""

    def __init__(self,
                 resolver: PropertyResolver,
                 risk_cache: RiskAssessmentCache,
                 usage: Optional[UsageRecorder] = None,
                 per_property_cost: float = 0.002):
        self.resolver = resolver
        self.risk_cache = risk_cache
        self.usage = usage or UsageRecorder()
        self.per_property_cost = per_property_cost

    async def compare(self, query: ComparisonQuery, context: Optional[RequestContext] = None) -> ComparisonResult:
        """
        주소들을 순차적으로 평가하고 위험 점수 순으로 정렬합니다.
        
        개별 주소 실패는 errors에 기록되며 요청 전체를 실패시키지 않습니다.
        """
        perf = PerformanceMetrics()
        entries: List[ComparisonEntry] = []
        errors: List[ComparisonError] = []

        try:
            for index, address in enumerate(query.addresses):
                try:
                    resolution = await self.resolver.resolve(address=address, perf=perf)
                    assessment, _ = await self.risk_cache.get_or_compute(
                        resolution.prop, resolution.coordinates, query.risk_types, perf)
                except Exception as e:
                    log.warning(f"비교 대상 평가 실패 address:{address} error:{e}")
                    errors.append(ComparisonError(address=address, error=str(e), index=index))
                    continue
                entries.append(ComparisonEntry(property=resolution.prop, risk_assessment=assessment))

            entries.sort(key=lambda e: e.risk_assessment.overall_risk_score, reverse=True)
            for rank, entry in enumerate(entries, start=1):
                entry.comparison_rank = rank
        except Exception as e:
            await self.usage.record_failure(context, endpoint=ENDPOINT, http_method="POST", error=e)
            raise

        await self.usage.record(
            context,
            endpoint=ENDPOINT,
            http_method="POST",
            property_count=len(entries),
            cost=self.per_property_cost * len(entries),
        )
        log.info("부동산 비교 완료", compared=len(entries), failed=len(errors))
        return ComparisonResult(properties=entries, errors=errors, analytics=comparison_analytics(entries))
