# seawater/settings.py
from __future__ import annotations
from typing import Dict
from pydantic import BaseModel, Field

class BulkTier(BaseModel):
    max_addresses: int
    batch_size: int
    inter_chunk_delay_ms: int = 1000
    base_cost: float = 0.0
    per_property_cost: float = 0.0

def _default_tiers() -> Dict[str, BulkTier]:
    return {
        "professional": BulkTier(max_addresses=100, batch_size=25, inter_chunk_delay_ms=1000,
                                 base_cost=0.10, per_property_cost=0.005),
        "enterprise": BulkTier(max_addresses=1000, batch_size=50, inter_chunk_delay_ms=1000,
                               base_cost=0.05, per_property_cost=0.002),
    }

class Bulk(BaseModel):
    # 여기에 없는 티어는 대량 분석 불가
    tiers: Dict[str, BulkTier] = Field(default_factory=_default_tiers)

class Cache(BaseModel):
    assessment_ttl_days: int = 30
    regional_cache_ttl_sec: int = 3600
    assessment_version: str = "1.0"
    center_precision: int = 4                 # 캐시 키 좌표 반올림 자릿수

class RadiusSearch(BaseModel):
    max_results: int = 1000
    max_radius_m: float = 50000.0
    default_page_size: int = 100
    max_page_size: int = 100
    inner_radius_ratio: float = 0.5

class Billing(BaseModel):
    property_risk_cost: float = 0.001
    geographic_base_cost: float = 0.005
    geographic_per_property_cost: float = 0.001
    geographic_billable_cap: int = 100
    comparison_per_property_cost: float = 0.002

class Storage(BaseModel):
    db_path: str = "/data/seawater.db"
    cache_path: str = "/data/regional_cache.db"
    usage_path: str = "/data/usage.db"

class Providers(BaseModel):
    geocoder_url: str = "http://localhost:8081"
    aggregator_url: str = "http://localhost:8082"
    boundary_url: str | None = None
    api_key: str = ""
    timeout_sec: int = 30
    max_retries: int = 3

class Observability(BaseModel):
    service_name: str = "seawater-risk-engine"
    build_version: str = "0.1.0"
    log_level: str = "INFO"
    json_logs: bool = False

class Settings(BaseModel):
    bulk: Bulk = Field(default_factory=Bulk)
    cache: Cache = Field(default_factory=Cache)
    radius_search: RadiusSearch = Field(default_factory=RadiusSearch)
    billing: Billing = Field(default_factory=Billing)
    storage: Storage = Field(default_factory=Storage)
    providers: Providers = Field(default_factory=Providers)
    observability: Observability = Field(default_factory=Observability)
