"""
엔진 에러 정의

복구 가능 여부에 따라 처리 위치가 다르다:
- MissingDataError: 서비스 계층에서 빈 결과로 변환
- DegenerateComparisonError: 비교 규칙(epsilon/sentinel)으로 흡수, 외부로 노출되지 않음
- CollaboratorTimeoutError: 요약 필드만 생략
- DataIntegrityError: 해당 엔티티만 제외하고 로그
"""

from typing import Dict, Any
from datetime import datetime
from enum import Enum


class ErrorType(str, Enum):
    """에러 유형"""
    MISSING_DATA = "missing_data"
    DEGENERATE_COMPARISON = "degenerate_comparison"
    COLLABORATOR_TIMEOUT = "collaborator_timeout"
    DATA_INTEGRITY = "data_integrity"
    INTERNAL = "internal"


class EngineError(Exception):
    """엔진 에러"""

    error_type: ErrorType = ErrorType.INTERNAL

    def __init__(self, message: str, details: Dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.timestamp = datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'message': self.message,
            'type': self.error_type.value,
            'details': self.details,
            'timestamp': self.timestamp.isoformat(),
        }


class MissingDataError(EngineError):
    """필수 협력자가 데이터를 반환하지 않음"""
    error_type = ErrorType.MISSING_DATA


class DegenerateComparisonError(EngineError):
    """기준값 0 등 비교가 성립하지 않는 경우"""
    error_type = ErrorType.DEGENERATE_COMPARISON


class CollaboratorTimeoutError(EngineError):
    """텍스트 생성 협력자 실패/타임아웃"""
    error_type = ErrorType.COLLABORATOR_TIMEOUT


class DataIntegrityError(EngineError):
    """존재하지 않는 클러스터 참조, 잘못된 배지 목표값 등"""
    error_type = ErrorType.DATA_INTEGRITY
