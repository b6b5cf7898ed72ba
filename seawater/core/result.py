"""
Tagged result types for provider payloads.

Geocoder and aggregator payloads are loosely-typed JSON. They are
converted once, at the edge, into either Ok(data) or Err(kind, ...)
so consumers branch on the tag instead of probing dict keys.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """성공 결과"""
    data: T


@dataclass(frozen=True)
class Err:
    """실패 결과 (재시도 가능 여부는 제공자가 분류)"""
    kind: str
    message: str
    retryable: bool = False
    source: Optional[str] = None


Result = Union[Ok[T], Err]
