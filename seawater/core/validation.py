"""
Input validation helpers for the Seawater risk engine.

Pure functions shared by the request query models and the bulk
orchestrator's per-address checks. They raise ValueError so pydantic
validators can surface them unchanged.
"""

import re
from typing import Iterable, List, Union

HAZARD_TYPES = (
    "flood", "wildfire", "hurricane", "tornado",
    "earthquake", "heat", "drought", "hail",
)

ADDRESS_PATTERN = re.compile(r"^[a-zA-Z0-9\s,.\-#/]+$")
MIN_ADDRESS_LENGTH = 5
MAX_ADDRESS_LENGTH = 500


def validate_address(address: str) -> str:
    """
    주소 문자열을 검증하고 앞뒤 공백을 제거해 반환합니다.

    Raises:
        ValueError: 비어 있거나 길이/문자 규칙을 위반한 경우
    """
    if not isinstance(address, str) or not address.strip():
        raise ValueError("Address must be a non-empty string")

    trimmed = address.strip()
    if len(trimmed) < MIN_ADDRESS_LENGTH:
        raise ValueError(f"Address must be at least {MIN_ADDRESS_LENGTH} characters long")
    if len(trimmed) > MAX_ADDRESS_LENGTH:
        raise ValueError(f"Address must be less than {MAX_ADDRESS_LENGTH} characters")
    if not ADDRESS_PATTERN.match(trimmed):
        raise ValueError("Address contains invalid characters")
    return trimmed


def parse_risk_types(value: Union[str, Iterable[str], None]) -> List[str]:
    """
    위험 유형 필터를 정규화합니다. 쉼표 구분 문자열 또는 목록을 받습니다.

    Raises:
        ValueError: 알 수 없는 위험 유형이 포함된 경우
    """
    if value is None:
        return ["all"]
    if isinstance(value, str):
        types = [t.strip().lower() for t in value.split(",") if t.strip()]
    else:
        types = [str(t).strip().lower() for t in value]

    if not types:
        return ["all"]

    valid = HAZARD_TYPES + ("all",)
    invalid = [t for t in types if t not in valid]
    if invalid:
        raise ValueError(
            f"Invalid risk types: {', '.join(invalid)}. Valid types: {', '.join(valid)}"
        )
    return types
