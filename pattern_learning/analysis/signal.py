"""
Pattern Signal
게시물 단위 분석 결과 (실행마다 새로 생성)
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional
from datetime import datetime

from pattern_learning.analysis.comparator import Comparisons, SignificanceMap, SimilarPost
from pattern_learning.analysis.metrics import DerivedMetrics
from pattern_learning.analysis.sentiment import PostSentiment
from pattern_learning.analysis.tagger import PatternTag


@dataclass
class ClusterSummary:
    """신호에 포함되는 클러스터 요약"""
    cluster_id: str
    label: str
    centroid_distance: float
    baseline_performance: float
    similar_posts: List[SimilarPost] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.cluster_id,
            'label': self.label,
            'centroid_distance': self.centroid_distance,
            'baseline_performance': round(self.baseline_performance, 4),
            'similar_posts': [post.to_dict() for post in self.similar_posts],
        }


@dataclass
class PatternSignal:
    """패턴 신호"""
    post_id: str
    title: str
    category: str
    hashtags: List[str]
    published_at: Optional[datetime]
    metrics: DerivedMetrics
    comparisons: Comparisons
    significance: SignificanceMap
    cluster: ClusterSummary
    tag: PatternTag
    kpi_score: float
    sentiment: PostSentiment

    @property
    def engagement_rate(self) -> float:
        return self.metrics.engagement_rate

    @property
    def reach(self) -> int:
        return self.metrics.reach

    def sort_key(self):
        """gold 우선 → KPI → 감정 → 도달 (내림차순)"""
        return (
            0 if self.tag == PatternTag.GOLD else 1,
            -self.kpi_score,
            -self.sentiment.score,
            -self.metrics.reach,
            self.post_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'post_id': self.post_id,
            'title': self.title,
            'category': self.category,
            'hashtags': self.hashtags,
            'published_at': self.published_at.isoformat() if self.published_at else None,
            'metrics': self.metrics.to_dict(),
            'comparisons': self.comparisons.to_dict(),
            'significance': self.significance.to_dict(),
            'cluster': self.cluster.to_dict(),
            'tag': self.tag.value,
            'kpi_score': self.kpi_score,
            'engagement_rate': round(self.engagement_rate, 4),
            'sentiment': self.sentiment.to_dict(),
        }
