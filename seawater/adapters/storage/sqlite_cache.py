"""
SQLite-based regional cache for Seawater.

Key/JSON value rows with an expiry timestamp. Expired rows are invisible
to get() and removed by gc().
"""

import aiosqlite
import json
import time
from typing import Any, Dict, Optional
from seawater.observability.logging_setup import get_logger

log = get_logger("seawater.regional_cache")

# SQLite 스키마
SCHEMA = """
CREATE TABLE IF NOT EXISTS regional_cache (
    k TEXT PRIMARY KEY,
    v TEXT NOT NULL,
    exp INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_regional_cache_exp ON regional_cache(exp);
"""


class SQLiteRegionalCache:
    """SQLite 기반 지역 캐시"""

    def __init__(self, path: str):
        """
        초기화합니다.
        
        Args:
            path: SQLite 데이터베이스 파일 경로
        """
        self.path = path
        log.info(f"SQLiteRegionalCache 초기화: {path}")

    async def init(self) -> None:
        """데이터베이스를 초기화합니다."""
        async with aiosqlite.connect(self.path) as db:
            await db.executescript(SCHEMA)
            await db.commit()
        log.info("SQLiteRegionalCache 스키마 초기화 완료")

    async def get(self, key: str, now: Optional[int] = None) -> Optional[Dict[str, Any]]:
        """
        만료되지 않은 값을 조회합니다.
        
        Returns:
            값 또는 None
        """
        if now is None:
            now = int(time.time())
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                "SELECT v FROM regional_cache WHERE k = ? AND exp > ?",
                (key, now)
            )
            row = await cursor.fetchone()
        return json.loads(row[0]) if row else None

    async def set(self, key: str, value: Dict[str, Any], ttl_sec: int, now: Optional[int] = None) -> None:
        """같은 키는 덮어씁니다 (마지막 쓰기 우선)."""
        if now is None:
            now = int(time.time())
        async with aiosqlite.connect(self.path) as db:
            await db.execute(
                "INSERT INTO regional_cache (k, v, exp) VALUES (?, ?, ?) "
                "ON CONFLICT(k) DO UPDATE SET v = excluded.v, exp = excluded.exp",
                (key, json.dumps(value), now + ttl_sec)
            )
            await db.commit()

    async def gc(self, now: Optional[int] = None) -> int:
        """
        만료된 항목들을 정리합니다.
        
        Returns:
            삭제된 항목 수
        """
        if now is None:
            now = int(time.time())

        try:
            async with aiosqlite.connect(self.path) as db:
                cursor = await db.execute(
                    "DELETE FROM regional_cache WHERE exp <= ?",
                    (now,)
                )
                await db.commit()
                deleted = cursor.rowcount
                if deleted > 0:
                    log.info(f"만료된 지역 캐시 항목 {deleted}개 정리됨")
                return deleted
        except Exception as e:
            log.error(f"SQLiteRegionalCache gc 오류: {e}")
            return 0
