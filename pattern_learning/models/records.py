"""
입력 레코드 모델
- PostRecord: 게시물 + 원시 참여 지표
- FeedbackEntry: 게시물에 대한 정성 피드백
- ActionLogEntry: AI 제안 실행 기록
"""

from pydantic import Field, field_validator
from typing import List, Optional, Any
from datetime import datetime
import math
from enum import Enum

from pattern_learning.models.base import RecordModel


class PostCategory(str, Enum):
    """게시물 카테고리"""
    FEED = "feed"
    REEL = "reel"
    STORY = "story"


class FeedbackSentiment(str, Enum):
    """피드백 감정"""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


def _to_count(value: Any) -> int:
    """누락/비정상 카운터는 0"""
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if number != number or number < 0:  # NaN
        return 0
    return int(number)


class PostRecord(RecordModel):
    """게시물 레코드"""
    post_id: str = Field(..., alias="postId")
    category: str = "feed"
    title: str = ""
    content: str = ""
    hashtags: List[str] = Field(default_factory=list)
    published_at: Optional[datetime] = Field(None, alias="publishedAt")

    reach: int = 0
    saves: int = 0
    likes: int = 0
    comments: int = 0
    shares: int = 0
    impressions: int = 0

    watch_time_seconds: Optional[float] = Field(None, alias="watchTimeSeconds")
    link_clicks: Optional[int] = Field(None, alias="linkClicks")
    follower_count: Optional[int] = Field(None, alias="followerCount")
    follower_increase: Optional[int] = Field(None, alias="followerIncrease")

    @field_validator("reach", "saves", "likes", "comments", "shares", "impressions", mode="before")
    @classmethod
    def _coerce_counter(cls, value: Any) -> int:
        return _to_count(value)

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            return PostCategory.FEED.value
        return value.strip().lower()

    @field_validator("hashtags", mode="before")
    @classmethod
    def _normalize_hashtags(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.replace(",", " ").split()
        tags = []
        for item in value:
            if not isinstance(item, str):
                continue
            tag = item.strip().lstrip("#").strip()
            if tag:
                tags.append(tag)
        return tags

    @property
    def content_length(self) -> int:
        return len(self.content or self.title or "")


class FeedbackEntry(RecordModel):
    """피드백 엔트리 (append-only)"""
    feedback_id: str = Field("", alias="id")
    post_id: Optional[str] = Field(None, alias="postId")
    sentiment: FeedbackSentiment = FeedbackSentiment.NEUTRAL
    comment: str = ""
    weight: float = 1.0
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    @field_validator("sentiment", mode="before")
    @classmethod
    def _coerce_sentiment(cls, value: Any) -> FeedbackSentiment:
        try:
            return FeedbackSentiment(value)
        except ValueError:
            return FeedbackSentiment.NEUTRAL

    @field_validator("weight", mode="before")
    @classmethod
    def _coerce_weight(cls, value: Any) -> float:
        """비숫자/NaN/inf는 1.0, 음수는 0"""
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return 1.0
        if not math.isfinite(value):
            return 1.0
        return max(0.0, float(value))

    @field_validator("comment", mode="before")
    @classmethod
    def _strip_comment(cls, value: Any) -> str:
        return value.strip() if isinstance(value, str) else ""

    @property
    def has_comment(self) -> bool:
        return bool(self.comment)


class ActionLogEntry(RecordModel):
    """AI 제안 실행 로그"""
    action_id: str = Field("", alias="actionId")
    title: str = ""
    focus_area: str = Field("overall", alias="focusArea")
    applied: bool = False
    result_delta: Optional[float] = Field(None, alias="resultDelta")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")
