"""
입력 레코드 모델 (pydantic)
"""

from pattern_learning.models.base import BaseModel, RecordModel
from pattern_learning.models.records import (
    PostCategory,
    FeedbackSentiment,
    PostRecord,
    FeedbackEntry,
    ActionLogEntry,
)

__all__ = [
    'BaseModel',
    'RecordModel',
    'PostCategory',
    'FeedbackSentiment',
    'PostRecord',
    'FeedbackEntry',
    'ActionLogEntry',
]
