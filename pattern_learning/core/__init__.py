"""
Core 패키지
- 설정, 에러 정의
- 파이프라인 엔진은 pattern_learning.core.engine에서 직접 임포트
"""

from pattern_learning.core.config import Settings, settings
from pattern_learning.core.exceptions import (
    ErrorType,
    EngineError,
    MissingDataError,
    DegenerateComparisonError,
    CollaboratorTimeoutError,
    DataIntegrityError,
)

__all__ = [
    'Settings',
    'settings',
    'ErrorType',
    'EngineError',
    'MissingDataError',
    'DegenerateComparisonError',
    'CollaboratorTimeoutError',
    'DataIntegrityError',
]
