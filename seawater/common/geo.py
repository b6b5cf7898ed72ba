"""
Geographic utilities for the Seawater risk engine.

This module provides great-circle distance, coordinate validation
and the bounding box used to prefilter radius queries.
"""

import math
from typing import Tuple

EARTH_RADIUS_M = 6371000.0

def haversine_distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    두 지점 간의 Haversine 거리를 계산합니다 (미터).
    
    Args:
        lat1: 첫 번째 지점의 위도
        lon1: 첫 번째 지점의 경도
        lat2: 두 번째 지점의 위도
        lon2: 두 번째 지점의 경도
        
    Returns:
        두 지점 간의 거리 (미터)
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = lat2_rad - lat1_rad
    dlon = math.radians(lon2 - lon1)
    
    # Haversine 공식
    a = (math.sin(dlat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2)
    c = 2 * math.asin(min(1.0, math.sqrt(a)))
    
    return c * EARTH_RADIUS_M

def bounding_box(lat: float, lon: float, radius_m: float) -> Tuple[float, float, float, float]:
    """
    반경을 덮는 위경도 경계 상자를 계산합니다.
    
    Returns:
        (min_lat, min_lon, max_lat, max_lon)
    """
    dlat = math.degrees(radius_m / EARTH_RADIUS_M)
    cos_lat = math.cos(math.radians(lat))
    # 극지방에서는 경도 범위 전체
    if cos_lat < 1e-9:
        return (max(-90.0, lat - dlat), -180.0, min(90.0, lat + dlat), 180.0)
    dlon = math.degrees(radius_m / (EARTH_RADIUS_M * cos_lat))
    return (max(-90.0, lat - dlat), max(-180.0, lon - dlon),
            min(90.0, lat + dlat), min(180.0, lon + dlon))

def validate_coordinates(lat: float, lon: float) -> bool:
    return -90 <= lat <= 90 and -180 <= lon <= 180
