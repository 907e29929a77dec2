"""
Metrics Normalizer
게시물 원시 카운터를 비교 가능한 비율 지표로 변환

Features:
- 도달 기준 비율 지표 (저장률, 댓글률, 좋아요율, 참여율)
- 팔로워 대비 도달 비율
- 게시 후 경과 시간 기반 속도 점수
- 분모 0/누락 시 항상 0 (NaN, inf 없음)
- 기간 필터 + postId 중복 제거
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Tuple, Iterable
from datetime import datetime, timezone
import logging

from pattern_learning.models.records import PostRecord

logger = logging.getLogger(__name__)


def safe_rate(numerator: Optional[float], denominator: Optional[float]) -> float:
    """분모가 0이거나 누락되면 0"""
    if not numerator or not denominator or denominator <= 0:
        return 0.0
    return numerator / denominator


@dataclass
class DerivedMetrics:
    """파생 지표 (매 실행마다 재계산, 저장되지 않음)"""
    reach: int = 0
    saves: int = 0
    likes: int = 0
    comments: int = 0
    shares: int = 0
    impressions: int = 0
    saves_rate: float = 0.0
    comments_rate: float = 0.0
    likes_rate: float = 0.0
    engagement_rate: float = 0.0
    reach_to_follower_ratio: float = 0.0
    total_engagement: int = 0
    velocity_score: float = 0.0
    watch_time_seconds: Optional[float] = None
    link_clicks: Optional[int] = None

    def rate_vector(self) -> Tuple[float, float, float, float]:
        """클러스터 중심 계산용 벡터"""
        return (self.engagement_rate, self.saves_rate, self.comments_rate, self.likes_rate)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'reach': self.reach,
            'saves': self.saves,
            'likes': self.likes,
            'comments': self.comments,
            'shares': self.shares,
            'impressions': self.impressions,
            'saves_rate': round(self.saves_rate, 4),
            'comments_rate': round(self.comments_rate, 4),
            'likes_rate': round(self.likes_rate, 4),
            'engagement_rate': round(self.engagement_rate, 4),
            'reach_to_follower_ratio': round(self.reach_to_follower_ratio, 4),
            'total_engagement': self.total_engagement,
            'velocity_score': round(self.velocity_score, 4),
            'watch_time_seconds': self.watch_time_seconds,
            'link_clicks': self.link_clicks,
        }


@dataclass
class NormalizedPost:
    """정규화된 게시물"""
    post: PostRecord
    metrics: DerivedMetrics = field(default_factory=DerivedMetrics)

    @property
    def post_id(self) -> str:
        return self.post.post_id


class MetricsNormalizer:
    """
    지표 정규화기

    순수 함수형: 입력 레코드를 변경하지 않고 새 NormalizedPost 리스트를 반환한다.
    """

    def normalize(
        self,
        posts: Iterable[PostRecord],
        as_of: Optional[datetime] = None,
        window: Optional[Tuple[Optional[datetime], Optional[datetime]]] = None,
    ) -> List[NormalizedPost]:
        """
        게시물 목록 정규화

        Args:
            posts: 게시물 레코드 (비어 있어도 됨)
            as_of: 속도 점수 기준 시각 (기본: 현재 UTC)
            window: (시작, 끝) 게시 시각 필터, 끝은 미포함

        Returns:
            정규화된 게시물 리스트
        """
        as_of = as_of or datetime.now(timezone.utc)
        scoped = [post for post in posts if self._in_window(post, window)]
        unique = self._deduplicate(scoped)

        return [
            NormalizedPost(post=post, metrics=self.derive(post, as_of))
            for post in unique
        ]

    def derive(self, post: PostRecord, as_of: datetime) -> DerivedMetrics:
        """단일 게시물 파생 지표"""
        total_engagement = post.likes + post.comments + post.shares + post.saves

        return DerivedMetrics(
            reach=post.reach,
            saves=post.saves,
            likes=post.likes,
            comments=post.comments,
            shares=post.shares,
            impressions=post.impressions,
            saves_rate=safe_rate(post.saves, post.reach),
            comments_rate=safe_rate(post.comments, post.reach),
            likes_rate=safe_rate(post.likes, post.reach),
            engagement_rate=safe_rate(total_engagement, post.reach),
            reach_to_follower_ratio=safe_rate(post.reach, post.follower_count),
            total_engagement=total_engagement,
            velocity_score=self._velocity(total_engagement, post.published_at, as_of),
            watch_time_seconds=post.watch_time_seconds,
            link_clicks=post.link_clicks,
        )

    # ============================================================
    # Private Methods
    # ============================================================

    @staticmethod
    def _velocity(total_engagement: int, published_at: Optional[datetime], as_of: datetime) -> float:
        """시간당 참여 수 (최소 1시간으로 정규화)"""
        if published_at is None or total_engagement <= 0:
            return 0.0
        hours = (as_utc(as_of) - as_utc(published_at)).total_seconds() / 3600
        return total_engagement / max(1.0, hours)

    @staticmethod
    def _in_window(post: PostRecord, window) -> bool:
        if not window or post.published_at is None:
            return True
        start, end = window
        published = as_utc(post.published_at)
        if start is not None and published < as_utc(start):
            return False
        if end is not None and published >= as_utc(end):
            return False
        return True

    @staticmethod
    def _deduplicate(posts: List[PostRecord]) -> List[PostRecord]:
        """같은 postId는 가장 최근 게시 시각의 레코드만 유지"""
        by_id: Dict[str, PostRecord] = {}
        for post in posts:
            existing = by_id.get(post.post_id)
            if existing is None:
                by_id[post.post_id] = post
                continue
            if post.published_at and (
                existing.published_at is None
                or as_utc(post.published_at) > as_utc(existing.published_at)
            ):
                by_id[post.post_id] = post

        dropped = len(posts) - len(by_id)
        if dropped:
            logger.debug(f"[MetricsNormalizer] Dropped {dropped} duplicate post records")
        return list(by_id.values())


def as_utc(value: datetime) -> datetime:
    """naive datetime은 UTC로 간주"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
