"""
Error taxonomy for the Seawater risk engine.

Whole-request failures are raised as exceptions from this module.
Per-address failures inside bulk and comparison results are plain
records (see models.BatchError) and never raised.
"""

from typing import Any, Dict, List, Optional


class SeawaterError(Exception):
    """엔진 공통 기본 예외"""

    status_code = 500
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": type(self).__name__,
            "message": self.message,
            "retryable": self.retryable,
        }


class NotFoundError(SeawaterError):
    """주소를 지오코딩할 수 없거나 좌표를 결정할 수 없음"""

    status_code = 404

    def __init__(self, message: str, resource: Optional[str] = None):
        super().__init__(message)
        self.resource = resource

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["resource"] = self.resource
        return data


class ClimateDataError(SeawaterError):
    """기후 데이터 집계 실패"""

    status_code = 503

    def __init__(self, message: str, source: Optional[str] = None, retryable: bool = True):
        super().__init__(message)
        self.source = source
        self.retryable = retryable

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["source"] = self.source
        return data


class SubscriptionError(SeawaterError):
    """구독 등급이 요청을 허용하지 않음"""

    status_code = 403

    def __init__(self, message: str, tier: Optional[str] = None, feature: Optional[str] = None):
        super().__init__(message)
        self.tier = tier
        self.feature = feature

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"tier": self.tier, "feature": self.feature})
        return data


class ValidationError(SeawaterError):
    """요청 파라미터 검증 실패"""

    status_code = 400

    def __init__(self, message: str, details: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.details = details or []

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["details"] = self.details
        return data
