"""
SQLite-based property and risk assessment stores for Seawater.

Both stores share one database file and schema. Properties are unique by
normalized address; assessments keep history, with at most one row per
property flagged as current.
"""

import aiosqlite
import json
from datetime import datetime, timezone
from typing import Any, List, Optional
from seawater.common.geo import bounding_box, haversine_distance_m
from seawater.core.models import Property, RiskAssessment, RiskScores, SpatialMatch
from seawater.observability.logging_setup import get_logger

log = get_logger("seawater.store")

# SQLite 스키마
SCHEMA = """
CREATE TABLE IF NOT EXISTS properties (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    address TEXT NOT NULL,
    normalized_address TEXT NOT NULL UNIQUE,
    latitude REAL NOT NULL,
    longitude REAL NOT NULL,
    city TEXT,
    state TEXT,
    zip_code TEXT,
    county TEXT,
    property_type TEXT,
    geocoding_accuracy TEXT,
    geocoding_source TEXT
);
CREATE INDEX IF NOT EXISTS idx_properties_lat_lon ON properties(latitude, longitude);

CREATE TABLE IF NOT EXISTS risk_assessments (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    property_id INTEGER NOT NULL REFERENCES properties(id),
    overall_risk_score REAL NOT NULL,
    hazard_scores TEXT NOT NULL DEFAULT '{}',
    risk_category TEXT,
    fema_flood_zone TEXT,
    confidence_score REAL,
    assessment_version TEXT NOT NULL,
    created_at TEXT NOT NULL,
    expires_at TEXT NOT NULL,
    is_current INTEGER NOT NULL DEFAULT 1
);
CREATE INDEX IF NOT EXISTS idx_assessments_current ON risk_assessments(property_id, is_current);
"""

PROPERTY_COLUMNS = (
    "address", "normalized_address", "latitude", "longitude", "city", "state",
    "zip_code", "county", "property_type", "geocoding_accuracy", "geocoding_source",
)


def _iso(value: datetime) -> str:
    """UTC ISO 문자열 (문자열 비교가 시간 순서와 일치)"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _row_to_property(row: aiosqlite.Row) -> Property:
    return Property(id=row["id"], **{c: row[c] for c in PROPERTY_COLUMNS})


def _row_to_assessment(row: aiosqlite.Row) -> RiskAssessment:
    return RiskAssessment(
        id=row["id"],
        property_id=row["property_id"],
        overall_risk_score=row["overall_risk_score"],
        hazard_scores=json.loads(row["hazard_scores"] or "{}"),
        risk_category=row["risk_category"],
        fema_flood_zone=row["fema_flood_zone"],
        confidence_score=row["confidence_score"],
        assessment_version=row["assessment_version"],
        created_at=datetime.fromisoformat(row["created_at"]),
        expires_at=datetime.fromisoformat(row["expires_at"]),
    )


async def init_schema(path: str) -> None:
    async with aiosqlite.connect(path) as db:
        await db.executescript(SCHEMA)
        await db.commit()
    log.info(f"스키마 초기화 완료: {path}")


class SQLitePropertyStore:
    """SQLite 기반 부동산 저장소"""

    def __init__(self, path: str):
        """
        초기화합니다.
        
        Args:
            path: SQLite 데이터베이스 파일 경로
        """
        self.path = path
        log.info(f"SQLitePropertyStore 초기화: {path}")

    async def init(self) -> None:
        """데이터베이스를 초기화합니다."""
        await init_schema(self.path)

    async def find_by_normalized_address(self, normalized_address: str) -> Optional[Property]:
        async with aiosqlite.connect(self.path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM properties WHERE normalized_address = ?",
                (normalized_address,)
            )
            row = await cursor.fetchone()
            return _row_to_property(row) if row else None

    async def upsert_property(self, prop: Property) -> Property:
        """
        정규화된 주소 기준으로 삽입하거나 갱신합니다.
        
        Returns:
            식별자가 부여된 Property
        """
        values = [getattr(prop, c) for c in PROPERTY_COLUMNS]
        updates = ", ".join(f"{c} = excluded.{c}" for c in PROPERTY_COLUMNS if c != "normalized_address")
        async with aiosqlite.connect(self.path) as db:
            db.row_factory = aiosqlite.Row
            await db.execute(
                f"INSERT INTO properties ({', '.join(PROPERTY_COLUMNS)}) "
                f"VALUES ({', '.join('?' for _ in PROPERTY_COLUMNS)}) "
                f"ON CONFLICT(normalized_address) DO UPDATE SET {updates}",
                values
            )
            await db.commit()
            cursor = await db.execute(
                "SELECT * FROM properties WHERE normalized_address = ?",
                (prop.normalized_address,)
            )
            row = await cursor.fetchone()
        return _row_to_property(row)

    async def find_within_radius(self,
                                 latitude: float,
                                 longitude: float,
                                 radius_m: float,
                                 *,
                                 risk_threshold: Optional[float] = None,
                                 property_type: Optional[str] = None,
                                 limit: int = 1000,
                                 now: Optional[datetime] = None) -> List[SpatialMatch]:
        """
        반경 내 부동산을 거리순으로 조회합니다.
        
        경계 상자로 SQL에서 1차 필터링한 뒤 Haversine 거리로 정확히 거릅니다.
        현재 평가가 있으면 점수를 함께 담습니다.
        """
        min_lat, min_lon, max_lat, max_lon = bounding_box(latitude, longitude, radius_m)
        now_iso = _iso(now or datetime.now(timezone.utc))

        sql = """
            SELECT p.*, a.overall_risk_score AS overall_risk_score, a.hazard_scores AS hazard_scores,
                   a.expires_at AS expires_at
            FROM properties p
            LEFT JOIN risk_assessments a
              ON a.property_id = p.id AND a.is_current = 1 AND a.expires_at > ?
            WHERE p.latitude BETWEEN ? AND ? AND p.longitude BETWEEN ? AND ?
        """
        params: List[Any] = [now_iso, min_lat, max_lat, min_lon, max_lon]
        if risk_threshold is not None:
            sql += " AND a.overall_risk_score >= ?"
            params.append(risk_threshold)
        if property_type is not None:
            sql += " AND p.property_type = ?"
            params.append(property_type)

        async with aiosqlite.connect(self.path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(sql, params)
            rows = await cursor.fetchall()

        matches: List[SpatialMatch] = []
        for row in rows:
            distance = haversine_distance_m(latitude, longitude, row["latitude"], row["longitude"])
            if distance > radius_m:
                continue
            embedded = None
            if row["overall_risk_score"] is not None:
                embedded = RiskScores(
                    overall_risk_score=row["overall_risk_score"],
                    hazard_scores=json.loads(row["hazard_scores"] or "{}"),
                    expires_at=datetime.fromisoformat(row["expires_at"]),
                )
            matches.append(SpatialMatch(property=_row_to_property(row), distance_meters=round(distance, 2),
                                        embedded_risk=embedded))

        matches.sort(key=lambda m: m.distance_meters)
        return matches[:limit]

    async def get_count(self) -> int:
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute("SELECT COUNT(*) FROM properties")
            result = await cursor.fetchone()
            return result[0] if result else 0


class SQLiteRiskAssessmentStore:
    """SQLite 기반 위험 평가 저장소 (이력 보존)"""

    def __init__(self, path: str):
        self.path = path
        log.info(f"SQLiteRiskAssessmentStore 초기화: {path}")

    async def init(self) -> None:
        await init_schema(self.path)

    async def get_current(self, property_id: int) -> Optional[RiskAssessment]:
        async with aiosqlite.connect(self.path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM risk_assessments WHERE property_id = ? AND is_current = 1 "
                "ORDER BY id DESC LIMIT 1",
                (property_id,)
            )
            row = await cursor.fetchone()
            return _row_to_assessment(row) if row else None

    async def upsert(self, assessment: RiskAssessment) -> RiskAssessment:
        """
        이전 현재 평가를 대체하고 새 평가를 저장합니다.
        
        Returns:
            식별자가 부여된 RiskAssessment
        """
        if assessment.property_id is None:
            raise ValueError("property_id is required to persist a risk assessment")

        async with aiosqlite.connect(self.path) as db:
            await db.execute(
                "UPDATE risk_assessments SET is_current = 0 WHERE property_id = ? AND is_current = 1",
                (assessment.property_id,)
            )
            cursor = await db.execute(
                "INSERT INTO risk_assessments (property_id, overall_risk_score, hazard_scores, risk_category, "
                "fema_flood_zone, confidence_score, assessment_version, created_at, expires_at, is_current) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 1)",
                (
                    assessment.property_id,
                    assessment.overall_risk_score,
                    json.dumps(assessment.hazard_scores),
                    assessment.risk_category,
                    assessment.fema_flood_zone,
                    assessment.confidence_score,
                    assessment.assessment_version,
                    _iso(assessment.created_at),
                    _iso(assessment.expires_at),
                )
            )
            await db.commit()
            assessment_id = cursor.lastrowid

        return assessment.model_copy(update={"id": assessment_id})

    async def get_history_count(self, property_id: int) -> int:
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                "SELECT COUNT(*) FROM risk_assessments WHERE property_id = ?",
                (property_id,)
            )
            result = await cursor.fetchone()
            return result[0] if result else 0
