"""
Pattern Learning Engine
게시물 성과 패턴 학습 파이프라인

Stages:
    1. 지표 정규화 (MetricsNormalizer)
    2. 피어 클러스터 구성 (ClusterBuilder)
    3. 클러스터 대비 비교 (SignalComparator)
    4. 감정 집계 + 태그 분류 (FeedbackSentimentAggregator, PatternTagger)
    5. 통계 집계 (StatisticsAggregator)
    6. 학습 단계 + 배지 평가 (InteractionState, AchievementEvaluator)

하나의 UserSnapshot에 대한 단일 스레드 순수 계산이며,
결과는 LearningDashboard 하나로 반환된다.
"""

from typing import Dict, List, Optional, Any, Sequence, Tuple
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
import time

from pattern_learning.analysis.clustering import ClusterBuilder, ClusterConfig, Cluster
from pattern_learning.analysis.comparator import SignalComparator, ComparatorConfig, ComparisonResult
from pattern_learning.analysis.metrics import MetricsNormalizer, NormalizedPost
from pattern_learning.analysis.sentiment import FeedbackSentimentAggregator
from pattern_learning.analysis.signal import PatternSignal, ClusterSummary
from pattern_learning.analysis.tagger import PatternTagger, TaggerConfig
from pattern_learning.core.config import settings
from pattern_learning.core.exceptions import DataIntegrityError
from pattern_learning.learning.achievements import AchievementEvaluator, Badge, BadgeDefinition
from pattern_learning.learning.phase import InteractionState
from pattern_learning.learning.statistics import (
    StatisticsAggregator,
    StatisticsBundle,
    UserStatistics,
    collect_top_hashtags,
)
from pattern_learning.models.records import PostRecord, FeedbackEntry, ActionLogEntry

logger = logging.getLogger(__name__)


# ============================================================
# Config & Input
# ============================================================

@dataclass
class EngineConfig:
    """엔진 설정"""
    threshold: float = 0.10
    epsilon: float = 1e-9
    zero_baseline_sentinel: float = 1.0
    min_refine_size: int = 5
    min_subcluster_size: int = 3
    similar_posts_limit: int = 5
    bottom_decile: float = 0.10
    signal_limit: int = 40
    top_hashtag_limit: int = 10
    monthly_periods: int = 8
    weekly_periods: int = 12

    @classmethod
    def from_settings(cls) -> 'EngineConfig':
        return cls(
            threshold=settings.SIGNIFICANCE_THRESHOLD,
            epsilon=settings.COMPARISON_EPSILON,
            zero_baseline_sentinel=settings.ZERO_BASELINE_SENTINEL,
            min_refine_size=settings.MIN_REFINE_SIZE,
            min_subcluster_size=settings.MIN_SUBCLUSTER_SIZE,
            similar_posts_limit=settings.SIMILAR_POSTS_LIMIT,
            bottom_decile=settings.BOTTOM_DECILE,
            signal_limit=settings.SIGNAL_LIMIT,
            top_hashtag_limit=settings.TOP_HASHTAG_LIMIT,
        )


@dataclass
class UserSnapshot:
    """한 번의 실행에 필요한 사용자 데이터 (메모리 스냅샷)"""
    user_id: str
    posts: List[PostRecord] = field(default_factory=list)
    feedback: List[FeedbackEntry] = field(default_factory=list)
    action_logs: List[ActionLogEntry] = field(default_factory=list)
    interaction_state: Optional[InteractionState] = None
    completed_ab_tests: int = 0
    persona_segments: int = 0
    window: Optional[Tuple[Optional[datetime], Optional[datetime]]] = None

    def __post_init__(self):
        if self.interaction_state is None:
            self.interaction_state = InteractionState(user_id=self.user_id)


# ============================================================
# Output
# ============================================================

@dataclass
class LearningDashboard:
    """학습 대시보드 페이로드"""
    user_id: str
    signals: List[PatternSignal] = field(default_factory=list)
    summaries_by_tag: Dict[str, Any] = field(default_factory=dict)
    top_hashtags: Dict[str, float] = field(default_factory=dict)
    interaction_state: Optional[InteractionState] = None
    achievements: List[Badge] = field(default_factory=list)
    statistics: UserStatistics = field(default_factory=UserStatistics)
    feedback_stats: Dict[str, Any] = field(default_factory=dict)
    action_stats: Dict[str, Any] = field(default_factory=dict)
    timeline: List[Any] = field(default_factory=list)
    weekly_timeline: List[Any] = field(default_factory=list)
    post_insights: Dict[str, Any] = field(default_factory=dict)
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    message: Optional[str] = None

    def __post_init__(self):
        if self.interaction_state is None:
            self.interaction_state = InteractionState(user_id=self.user_id)

    @classmethod
    def empty(
        cls,
        user_id: str,
        message: str,
        achievements: Optional[List[Badge]] = None,
        interaction_state: Optional[InteractionState] = None,
    ) -> 'LearningDashboard':
        """빈 결과 (형식은 유지)"""
        return cls(
            user_id=user_id,
            achievements=achievements or [],
            interaction_state=interaction_state,
            message=message,
        )

    def to_dict(self) -> Dict[str, Any]:
        state = self.interaction_state
        return {
            'user_id': self.user_id,
            'signals': [signal.to_dict() for signal in self.signals],
            'summaries_by_tag': {
                tag: summary.to_dict() if hasattr(summary, 'to_dict') else summary
                for tag, summary in self.summaries_by_tag.items()
            },
            'top_hashtags': self.top_hashtags,
            'learning_phase': state.phase.value,
            'progress_percent': round(state.progress_percent, 2),
            'rag_hit_rate': round(state.rag_hit_rate, 4),
            'total_interactions': state.total_interactions,
            'achievements': [badge.to_dict() for badge in self.achievements],
            'feedback_stats': self.feedback_stats,
            'action_stats': self.action_stats,
            'timeline': [point.to_dict() for point in self.timeline],
            'weekly_timeline': [point.to_dict() for point in self.weekly_timeline],
            'post_insights': {
                post_id: insight.to_dict() if hasattr(insight, 'to_dict') else insight
                for post_id, insight in self.post_insights.items()
            },
            'generated_at': self.generated_at.isoformat(),
            'message': self.message,
        }


# ============================================================
# Engine
# ============================================================

class PatternLearningEngine:
    """
    패턴 학습 엔진

    Features:
        - 단계별 컴포넌트 조합
        - 잘못된 엔티티는 제외하고 계속 진행 (DataIntegrityError)
        - 실행 시간 로깅
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        catalog: Optional[Sequence[BadgeDefinition]] = None,
    ):
        self.config = config or EngineConfig()

        self.normalizer = MetricsNormalizer()
        self.cluster_builder = ClusterBuilder(ClusterConfig(
            min_refine_size=self.config.min_refine_size,
            min_subcluster_size=self.config.min_subcluster_size,
        ))
        self.comparator = SignalComparator(ComparatorConfig(
            threshold=self.config.threshold,
            epsilon=self.config.epsilon,
            zero_baseline_sentinel=self.config.zero_baseline_sentinel,
            similar_posts_limit=self.config.similar_posts_limit,
        ))
        self.sentiment = FeedbackSentimentAggregator()
        self.tagger = PatternTagger(TaggerConfig(
            threshold=self.config.threshold,
            bottom_decile=self.config.bottom_decile,
        ))
        self.statistics = StatisticsAggregator(
            monthly_periods=self.config.monthly_periods,
            weekly_periods=self.config.weekly_periods,
        )
        self.evaluator = AchievementEvaluator(catalog)

    def run(
        self,
        snapshot: UserSnapshot,
        as_of: Optional[datetime] = None,
        signal_limit: Optional[int] = None,
    ) -> LearningDashboard:
        """
        전체 파이프라인 실행

        Args:
            snapshot: 사용자 데이터 스냅샷
            as_of: 기준 시각 (기본: 현재 UTC)
            signal_limit: 반환할 신호 수 (기본: 설정값)

        Returns:
            LearningDashboard (요약/인사이트는 비어 있음)
        """
        start_time = time.time()
        as_of = as_of or datetime.now(timezone.utc)
        limit = signal_limit if signal_limit is not None else self.config.signal_limit

        signals = self.build_signals(snapshot, as_of)

        bundle: StatisticsBundle = self.statistics.aggregate(
            feedback=snapshot.feedback,
            action_logs=snapshot.action_logs,
            signals=signals,
            interaction_state=snapshot.interaction_state,
            as_of=as_of,
            completed_ab_tests=snapshot.completed_ab_tests,
            persona_resonance_segments=snapshot.persona_segments,
        )
        achievements = self.evaluator.evaluate(bundle.statistics)

        dashboard = LearningDashboard(
            user_id=snapshot.user_id,
            signals=signals[:max(0, limit)],
            top_hashtags=collect_top_hashtags(signals, self.config.top_hashtag_limit),
            interaction_state=snapshot.interaction_state,
            achievements=achievements,
            statistics=bundle.statistics,
            feedback_stats=bundle.feedback_stats,
            action_stats=bundle.action_stats,
            timeline=bundle.timeline,
            weekly_timeline=bundle.weekly_timeline,
            generated_at=as_of,
            message=None if signals else "No posts to analyze yet.",
        )

        logger.info(
            f"[PatternLearningEngine] {snapshot.user_id}: "
            f"{len(signals)} signals, {len(achievements)} badges, "
            f"phase={snapshot.interaction_state.phase.value} "
            f"({(time.time() - start_time) * 1000:.0f}ms)"
        )
        return dashboard

    def build_signals(self, snapshot: UserSnapshot, as_of: datetime) -> List[PatternSignal]:
        """
        게시물별 패턴 신호 생성

        Returns:
            정렬된 PatternSignal 리스트 (gold 우선, KPI 내림차순)
        """
        posts = self.normalizer.normalize(snapshot.posts, as_of=as_of, window=snapshot.window)
        if not posts:
            return []

        clusters = self.cluster_builder.build(posts)
        cluster_by_post = self._index_clusters(clusters)
        sentiments = self.sentiment.aggregate(snapshot.feedback)

        compared: List[Tuple[NormalizedPost, Cluster, ComparisonResult]] = []
        for post in posts:
            cluster = cluster_by_post.get(post.post_id)
            try:
                result = self.comparator.compare(post, cluster)
            except DataIntegrityError as e:
                logger.error(f"[PatternLearningEngine] Excluded post: {e.message} {e.details}")
                continue
            compared.append((post, cluster, result))

        kpis_by_cluster: Dict[str, List[float]] = {}
        for _, cluster, result in compared:
            kpis_by_cluster.setdefault(cluster.cluster_id, []).append(result.kpi_score)

        signals = []
        for post, cluster, result in compared:
            sentiment = self.sentiment.for_post(sentiments, post.post_id)
            tag = self.tagger.tag(
                result.comparisons.cluster_performance_diff,
                sentiment.label,
                result.kpi_score,
                kpis_by_cluster[cluster.cluster_id],
            )
            signals.append(PatternSignal(
                post_id=post.post_id,
                title=post.post.title,
                category=post.post.category,
                hashtags=list(post.post.hashtags),
                published_at=post.post.published_at,
                metrics=post.metrics,
                comparisons=result.comparisons,
                significance=result.significance,
                cluster=ClusterSummary(
                    cluster_id=cluster.cluster_id,
                    label=cluster.label,
                    centroid_distance=result.centroid_distance,
                    baseline_performance=cluster.baseline_performance,
                    similar_posts=result.similar_posts,
                ),
                tag=tag,
                kpi_score=result.kpi_score,
                sentiment=sentiment,
            ))

        signals.sort(key=lambda signal: signal.sort_key())
        return signals

    @staticmethod
    def _index_clusters(clusters: List[Cluster]) -> Dict[str, Cluster]:
        index: Dict[str, Cluster] = {}
        for cluster in clusters:
            for post_id in cluster.member_ids:
                index[post_id] = cluster
        return index
