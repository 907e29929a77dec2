"""
Analysis 패키지
게시물 단위 분석 컴포넌트

Components:
- MetricsNormalizer: 원시 카운터 → 비율 지표
- ClusterBuilder: 피어 클러스터 + 기준값
- SignalComparator: 클러스터 대비 차이 + 유의성
- FeedbackSentimentAggregator: 피드백 감정 집계
- PatternTagger: gold / gray / red / neutral
"""

from pattern_learning.analysis.metrics import (
    DerivedMetrics,
    NormalizedPost,
    MetricsNormalizer,
    safe_rate,
)
from pattern_learning.analysis.clustering import (
    TimeBucket,
    ClusterMember,
    ClusterConfig,
    Cluster,
    ClusterBuilder,
)
from pattern_learning.analysis.sentiment import (
    SentimentLabel,
    SentimentConfig,
    PostSentiment,
    FeedbackSentimentAggregator,
)
from pattern_learning.analysis.comparator import (
    Significance,
    ComparatorConfig,
    Comparisons,
    SignificanceMap,
    SimilarPost,
    ComparisonResult,
    SignalComparator,
)
from pattern_learning.analysis.tagger import (
    PatternTag,
    TaggerConfig,
    PatternTagger,
    assign_tag,
    percentile,
)
from pattern_learning.analysis.signal import ClusterSummary, PatternSignal

__all__ = [
    # Metrics
    'DerivedMetrics',
    'NormalizedPost',
    'MetricsNormalizer',
    'safe_rate',
    # Clustering
    'TimeBucket',
    'ClusterMember',
    'ClusterConfig',
    'Cluster',
    'ClusterBuilder',
    # Sentiment
    'SentimentLabel',
    'SentimentConfig',
    'PostSentiment',
    'FeedbackSentimentAggregator',
    # Comparator
    'Significance',
    'ComparatorConfig',
    'Comparisons',
    'SignificanceMap',
    'SimilarPost',
    'ComparisonResult',
    'SignalComparator',
    # Tagger
    'PatternTag',
    'TaggerConfig',
    'PatternTagger',
    'assign_tag',
    'percentile',
    # Signal
    'ClusterSummary',
    'PatternSignal',
]
