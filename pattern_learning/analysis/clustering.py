"""
Cluster Builder - Production Grade v1.0
게시물 피어 클러스터 구성

Features:
- 카테고리(feed/reel/story) 기반 1차 분할
- 게시 시간대 + 해시태그 유사도 기반 2차 분할 (충분히 큰 그룹만)
- 클러스터 중심(centroid) 및 기준 성과(baseline) 계산

모든 게시물은 정확히 하나의 클러스터에 속한다.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Tuple, Set
from enum import Enum
import math
import logging

from pattern_learning.analysis.metrics import NormalizedPost

logger = logging.getLogger(__name__)


# ============================================================
# Enums and Data Classes
# ============================================================

class TimeBucket(str, Enum):
    """게시 시간대"""
    NIGHT = "night"          # 0-5시
    MORNING = "morning"      # 6-11시
    AFTERNOON = "afternoon"  # 12-17시
    EVENING = "evening"      # 18-23시
    ANYTIME = "anytime"      # 시각 정보 없음

    @classmethod
    def from_hour(cls, hour: Optional[int]) -> "TimeBucket":
        if hour is None:
            return cls.ANYTIME
        if hour < 6:
            return cls.NIGHT
        if hour < 12:
            return cls.MORNING
        if hour < 18:
            return cls.AFTERNOON
        return cls.EVENING


CATEGORY_LABELS = {
    "feed": "Feed",
    "reel": "Reel",
    "story": "Story",
}


@dataclass
class ClusterMember:
    """클러스터 멤버"""
    post: NormalizedPost
    performance_score: float

    @property
    def post_id(self) -> str:
        return self.post.post_id


@dataclass
class ClusterConfig:
    """클러스터 설정"""
    min_refine_size: int = 5
    min_subcluster_size: int = 3


@dataclass
class Cluster:
    """피어 클러스터"""
    cluster_id: str
    label: str
    category: str
    sub_type: Optional[str] = None
    members: List[ClusterMember] = field(default_factory=list)
    centroid: Tuple[float, ...] = (0.0, 0.0, 0.0, 0.0)
    baseline_performance: float = 0.0
    baseline_reach: float = 0.0
    baseline_engagement_rate: float = 0.0
    baseline_saves_rate: float = 0.0
    baseline_comments_rate: float = 0.0

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def member_ids(self) -> List[str]:
        return [member.post_id for member in self.members]

    def contains(self, post_id: str) -> bool:
        return any(member.post_id == post_id for member in self.members)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.cluster_id,
            'label': self.label,
            'category': self.category,
            'sub_type': self.sub_type,
            'size': self.size,
            'centroid': [round(value, 4) for value in self.centroid],
            'baseline_performance': round(self.baseline_performance, 4),
            'member_ids': self.member_ids,
        }


def euclidean_distance(a, b) -> float:
    return math.sqrt(sum((x - y) ** 2 for x, y in zip(a, b)))


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _jaccard(a: Set[str], b: Set[str]) -> float:
    if not a and not b:
        return 0.0
    return len(a & b) / len(a | b)


# ============================================================
# Cluster Builder
# ============================================================

class ClusterBuilder:
    """
    클러스터 빌더

    카테고리 파티션은 항상 적용하고, 멤버가 min_refine_size 이상인
    카테고리만 게시 시간대로 세분화한다. 시간대 버킷이 min_subcluster_size
    미만이면 해시태그가 가장 많이 겹치는 하위 클러스터로 합류시킨다.
    """

    def __init__(self, config: Optional[ClusterConfig] = None):
        self.config = config or ClusterConfig()

    def build(self, posts: List[NormalizedPost]) -> List[Cluster]:
        """
        클러스터 구성

        Args:
            posts: 정규화된 게시물

        Returns:
            모든 게시물을 정확히 한 번씩 포함하는 클러스터 리스트
        """
        by_category: Dict[str, List[NormalizedPost]] = {}
        for post in posts:
            by_category.setdefault(post.post.category, []).append(post)

        clusters: List[Cluster] = []
        for category in sorted(by_category):
            group = by_category[category]
            if len(group) >= self.config.min_refine_size:
                clusters.extend(self._refine(category, group))
            else:
                clusters.append(self._make_cluster(category, None, group))

        logger.debug(
            f"[ClusterBuilder] Built {len(clusters)} clusters from {len(posts)} posts"
        )
        return clusters

    # ============================================================
    # Private Methods
    # ============================================================

    def _refine(self, category: str, group: List[NormalizedPost]) -> List[Cluster]:
        """게시 시간대 기반 2차 분할"""
        buckets: Dict[TimeBucket, List[NormalizedPost]] = {}
        for post in group:
            hour = post.post.published_at.hour if post.post.published_at else None
            buckets.setdefault(TimeBucket.from_hour(hour), []).append(post)

        qualified = {
            bucket: members for bucket, members in buckets.items()
            if len(members) >= self.config.min_subcluster_size
        }

        if len(qualified) < 2:
            return [self._make_cluster(category, None, group)]

        leftovers = [
            post for bucket, members in buckets.items()
            if bucket not in qualified
            for post in members
        ]
        for post in leftovers:
            target = self._closest_bucket(post, qualified)
            qualified[target].append(post)

        return [
            self._make_cluster(category, bucket.value, members)
            for bucket, members in sorted(qualified.items(), key=lambda item: item[0].value)
        ]

    @staticmethod
    def _closest_bucket(
        post: NormalizedPost,
        candidates: Dict[TimeBucket, List[NormalizedPost]],
    ) -> TimeBucket:
        """해시태그 겹침 → 콘텐츠 길이 → 크기 → 이름 순으로 가장 가까운 버킷"""
        tags = set(post.post.hashtags)
        length = post.post.content_length

        def score(item):
            bucket, members = item
            bucket_tags = set(tag for member in members for tag in member.post.hashtags)
            mean_length = _mean([member.post.content_length for member in members])
            return (
                -_jaccard(tags, bucket_tags),
                abs(length - mean_length),
                -len(members),
                bucket.value,
            )

        return min(candidates.items(), key=score)[0]

    @staticmethod
    def _make_cluster(
        category: str,
        sub_type: Optional[str],
        posts: List[NormalizedPost],
    ) -> Cluster:
        """멤버로부터 중심/기준값 계산"""
        members = [
            ClusterMember(post=post, performance_score=float(post.metrics.total_engagement))
            for post in posts
        ]
        vectors = [post.metrics.rate_vector() for post in posts]
        dimensions = len(vectors[0]) if vectors else 4
        centroid = tuple(
            _mean([vector[index] for vector in vectors]) for index in range(dimensions)
        )

        base_label = CATEGORY_LABELS.get(category, category.title())
        cluster_id = category if sub_type is None else f"{category}:{sub_type}"
        label = base_label if sub_type is None else f"{base_label} · {sub_type}"

        return Cluster(
            cluster_id=cluster_id,
            label=label,
            category=category,
            sub_type=sub_type,
            members=members,
            centroid=centroid,
            baseline_performance=_mean([member.performance_score for member in members]),
            baseline_reach=_mean([post.metrics.reach for post in posts]),
            baseline_engagement_rate=_mean([post.metrics.engagement_rate for post in posts]),
            baseline_saves_rate=_mean([post.metrics.saves_rate for post in posts]),
            baseline_comments_rate=_mean([post.metrics.comments_rate for post in posts]),
        )
