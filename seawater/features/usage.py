"""
Usage recording for billing.

Wraps the usage tracker port so that every entry point emits one event
per request and tracking failures never mask the primary result.
"""

from typing import Optional
from seawater.core.models import RequestContext, UsageEvent
from seawater.ports.usage import UsageTrackerPort
from seawater.observability import metrics
from seawater.observability.logging_setup import get_logger

log = get_logger("seawater.usage")


class UsageRecorder:
    """사용량 이벤트 기록기 (실패는 로그만 남김)"""

    def __init__(self, tracker: Optional[UsageTrackerPort] = None):
        self.tracker = tracker

    async def record(self,
                     context: Optional[RequestContext],
                     *,
                     endpoint: str,
                     http_method: str,
                     property_count: int,
                     cost: float,
                     status_code: int = 200,
                     billable: bool = True) -> None:
        """
        사용량 이벤트를 기록합니다. 과금 식별자가 없는 요청은 건너뜁니다.
        
        Args:
            context: 요청 컨텍스트
            endpoint: 엔드포인트 이름
            http_method: HTTP 메서드
            property_count: 과금 대상 부동산 수
            cost: 비용
            status_code: 응답 상태 코드
            billable: 과금 여부
        """
        if self.tracker is None or context is None or not context.billable:
            return

        event = UsageEvent(
            endpoint=endpoint,
            http_method=http_method,
            status_code=status_code,
            property_count=property_count,
            billable_request=billable,
            cost=round(cost, 6),
            user_id=context.user_id,
            api_key_id=context.api_key_id,
        )
        try:
            await self.tracker.track(event)
        except Exception as e:
            metrics.usage_tracking_failures.labels(endpoint=endpoint).inc()
            log.error(f"사용량 기록 실패 endpoint:{endpoint} error:{e}")

    async def record_failure(self,
                             context: Optional[RequestContext],
                             *,
                             endpoint: str,
                             http_method: str,
                             error: Exception) -> None:
        """실패한 요청을 비과금(비용 0)으로 기록합니다."""
        await self.record(
            context,
            endpoint=endpoint,
            http_method=http_method,
            property_count=0,
            cost=0.0,
            status_code=getattr(error, "status_code", 500),
            billable=False,
        )
