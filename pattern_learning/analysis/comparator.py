"""
Signal Comparator
게시물과 소속 클러스터 기준값 비교 및 유의성 분류

diff = (post - baseline) / max(baseline, epsilon)
- baseline == 0, post == 0 → 0
- baseline == 0, post > 0 → sentinel (+1.0)
- diff >= +threshold → higher, diff <= -threshold → lower, 그 외 neutral
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional
from datetime import datetime
from enum import Enum
import logging

from pattern_learning.analysis.clustering import Cluster, euclidean_distance
from pattern_learning.analysis.metrics import NormalizedPost
from pattern_learning.core.exceptions import DegenerateComparisonError, DataIntegrityError

logger = logging.getLogger(__name__)

DIFF_PRECISION = 6


class Significance(str, Enum):
    """유의성"""
    HIGHER = "higher"
    LOWER = "lower"
    NEUTRAL = "neutral"


@dataclass
class ComparatorConfig:
    """비교 설정"""
    threshold: float = 0.10
    epsilon: float = 1e-9
    zero_baseline_sentinel: float = 1.0
    similar_posts_limit: int = 5
    kpi_cap: float = 3.0


@dataclass
class Comparisons:
    """클러스터 기준 대비 비율 차이"""
    reach_diff: float = 0.0
    engagement_rate_diff: float = 0.0
    saves_rate_diff: float = 0.0
    comments_rate_diff: float = 0.0
    cluster_performance_diff: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {
            'reach_diff': self.reach_diff,
            'engagement_rate_diff': self.engagement_rate_diff,
            'saves_rate_diff': self.saves_rate_diff,
            'comments_rate_diff': self.comments_rate_diff,
            'cluster_performance_diff': self.cluster_performance_diff,
        }


@dataclass
class SignificanceMap:
    """지표별 유의성"""
    reach: Significance = Significance.NEUTRAL
    engagement: Significance = Significance.NEUTRAL
    saves_rate: Significance = Significance.NEUTRAL
    comments_rate: Significance = Significance.NEUTRAL
    cluster_performance: Significance = Significance.NEUTRAL

    def to_dict(self) -> Dict[str, str]:
        return {
            'reach': self.reach.value,
            'engagement': self.engagement.value,
            'saves_rate': self.saves_rate.value,
            'comments_rate': self.comments_rate.value,
            'cluster_performance': self.cluster_performance.value,
        }


@dataclass
class SimilarPost:
    """유사 게시물"""
    post_id: str
    title: str
    performance_score: float
    published_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'post_id': self.post_id,
            'title': self.title,
            'performance_score': self.performance_score,
            'published_at': self.published_at.isoformat() if self.published_at else None,
        }


@dataclass
class ComparisonResult:
    """단일 게시물 비교 결과"""
    comparisons: Comparisons
    significance: SignificanceMap
    kpi_score: float
    centroid_distance: float
    similar_posts: List[SimilarPost] = field(default_factory=list)


class SignalComparator:
    """신호 비교기"""

    def __init__(self, config: Optional[ComparatorConfig] = None):
        self.config = config or ComparatorConfig()

    def relative_diff(self, value: float, baseline: float) -> float:
        """기준 대비 비율 차이 (소수 6자리 반올림)"""
        try:
            diff = self._ratio_diff(value, baseline)
        except DegenerateComparisonError:
            diff = 0.0 if value <= 0 else self.config.zero_baseline_sentinel
        return round(diff, DIFF_PRECISION)

    def classify(self, diff: float) -> Significance:
        """고정 임계값 기반 분류"""
        if diff >= self.config.threshold:
            return Significance.HIGHER
        if diff <= -self.config.threshold:
            return Significance.LOWER
        return Significance.NEUTRAL

    def compare(self, post: NormalizedPost, cluster: Optional[Cluster]) -> ComparisonResult:
        """
        게시물 vs 클러스터 비교

        Args:
            post: 정규화된 게시물
            cluster: 게시물이 속한 클러스터

        Raises:
            DataIntegrityError: 클러스터가 없거나 게시물을 포함하지 않을 때
        """
        if cluster is None or not cluster.contains(post.post_id):
            raise DataIntegrityError(
                f"Post {post.post_id} does not belong to a known cluster",
                details={'post_id': post.post_id, 'cluster_id': cluster.cluster_id if cluster else None},
            )

        metrics = post.metrics
        comparisons = Comparisons(
            reach_diff=self.relative_diff(metrics.reach, cluster.baseline_reach),
            engagement_rate_diff=self.relative_diff(metrics.engagement_rate, cluster.baseline_engagement_rate),
            saves_rate_diff=self.relative_diff(metrics.saves_rate, cluster.baseline_saves_rate),
            comments_rate_diff=self.relative_diff(metrics.comments_rate, cluster.baseline_comments_rate),
            cluster_performance_diff=self.relative_diff(metrics.total_engagement, cluster.baseline_performance),
        )

        significance = SignificanceMap(
            reach=self.classify(comparisons.reach_diff),
            engagement=self.classify(comparisons.engagement_rate_diff),
            saves_rate=self.classify(comparisons.saves_rate_diff),
            comments_rate=self.classify(comparisons.comments_rate_diff),
            cluster_performance=self.classify(comparisons.cluster_performance_diff),
        )

        return ComparisonResult(
            comparisons=comparisons,
            significance=significance,
            kpi_score=self.kpi_score(post, cluster),
            centroid_distance=round(euclidean_distance(metrics.rate_vector(), cluster.centroid), 6),
            similar_posts=self._similar_posts(post, cluster),
        )

    def kpi_score(self, post: NormalizedPost, cluster: Cluster) -> float:
        """도달/참여율의 클러스터 평균 대비 배수 평균 (0~3)"""
        components = []
        for value, baseline in (
            (post.metrics.reach, cluster.baseline_reach),
            (post.metrics.engagement_rate, cluster.baseline_engagement_rate),
        ):
            if baseline > 0:
                components.append(value / baseline)
            elif value > 0:
                components.append(1.0)

        if not components:
            return 0.0
        score = sum(components) / len(components)
        return round(max(0.0, min(self.config.kpi_cap, score)), 2)

    # ============================================================
    # Private Methods
    # ============================================================

    def _ratio_diff(self, value: float, baseline: float) -> float:
        if baseline <= 0:
            raise DegenerateComparisonError(
                "Zero baseline", details={'value': value, 'baseline': baseline}
            )
        return (value - baseline) / max(baseline, self.config.epsilon)

    def _similar_posts(self, post: NormalizedPost, cluster: Cluster) -> List[SimilarPost]:
        """같은 클러스터에서 지표 벡터가 가장 가까운 게시물"""
        vector = post.metrics.rate_vector()
        others = [member for member in cluster.members if member.post_id != post.post_id]
        others.sort(key=lambda member: (
            euclidean_distance(vector, member.post.metrics.rate_vector()),
            member.post_id,
        ))

        return [
            SimilarPost(
                post_id=member.post_id,
                title=member.post.post.title,
                performance_score=member.performance_score,
                published_at=member.post.post.published_at,
            )
            for member in others[:self.config.similar_posts_limit]
        ]
