"""
SQLite-based usage tracker for Seawater.

Append-only usage events for billing.
"""

import aiosqlite
import time
from seawater.core.models import UsageEvent
from seawater.observability.logging_setup import get_logger

log = get_logger("seawater.usage_store")

# SQLite 스키마
SCHEMA = """
CREATE TABLE IF NOT EXISTS usage_events (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    endpoint TEXT NOT NULL,
    http_method TEXT NOT NULL,
    status_code INTEGER NOT NULL,
    property_count INTEGER NOT NULL DEFAULT 0,
    billable_request INTEGER NOT NULL DEFAULT 1,
    cost REAL NOT NULL DEFAULT 0,
    user_id TEXT,
    api_key_id TEXT,
    created_at INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_usage_user ON usage_events(user_id, created_at);
"""


class SQLiteUsageTracker:
    """SQLite 기반 사용량 추적기"""

    def __init__(self, path: str):
        self.path = path
        log.info(f"SQLiteUsageTracker 초기화: {path}")

    async def init(self) -> None:
        """데이터베이스를 초기화합니다."""
        async with aiosqlite.connect(self.path) as db:
            await db.executescript(SCHEMA)
            await db.commit()

    async def track(self, event: UsageEvent) -> None:
        """
        사용량 이벤트를 추가합니다.
        
        Args:
            event: 사용량 이벤트
        """
        async with aiosqlite.connect(self.path) as db:
            await db.execute(
                "INSERT INTO usage_events (endpoint, http_method, status_code, property_count, "
                "billable_request, cost, user_id, api_key_id, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    event.endpoint,
                    event.http_method,
                    event.status_code,
                    event.property_count,
                    1 if event.billable_request else 0,
                    event.cost,
                    event.user_id,
                    event.api_key_id,
                    int(time.time()),
                )
            )
            await db.commit()

    async def get_count(self) -> int:
        """
        저장된 이벤트 수를 반환합니다.
        
        Returns:
            이벤트 수
        """
        try:
            async with aiosqlite.connect(self.path) as db:
                cursor = await db.execute("SELECT COUNT(*) FROM usage_events")
                result = await cursor.fetchone()
                return result[0] if result else 0
        except Exception as e:
            log.error(f"SQLiteUsageTracker get_count 오류: {e}")
            return 0
