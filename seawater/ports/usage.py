"""
Usage/billing tracker port interface.

Fire-and-forget: callers log and swallow failures.
"""

from typing import Protocol
from seawater.core.models import UsageEvent

class UsageTrackerPort(Protocol):
    """사용량/과금 추적 포트 인터페이스"""
    
    async def track(self, event: UsageEvent) -> None:
        """
        사용량 이벤트를 기록합니다.
        
        Args:
            event: 사용량 이벤트
        """
        ...
