"""
Statistics Aggregator
배지 평가용 사용자 통계 집계

Features:
- 피드백/액션 로그 집계 (가중 긍정률, 채택률, 평균 효과)
- 월별/주별 학습 타임라인
- 주간 피드백 연속 기록
- 클러스터 브레이크스루 (평균 대비 1.3배 이상 gold 게시물)
- 태그 가중 상위 해시태그
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any, Iterable, Tuple
from datetime import datetime, timedelta
from collections import Counter
import logging

from pattern_learning.analysis.signal import PatternSignal
from pattern_learning.analysis.tagger import PatternTag
from pattern_learning.learning.phase import InteractionState
from pattern_learning.models.records import FeedbackEntry, ActionLogEntry, FeedbackSentiment

logger = logging.getLogger(__name__)

BREAKTHROUGH_LIFT = 1.3

HASHTAG_TAG_WEIGHTS = {
    PatternTag.GOLD: 3.0,
    PatternTag.GRAY: 1.0,
    PatternTag.NEUTRAL: 1.0,
    PatternTag.RED: 0.5,
}


@dataclass
class UserStatistics:
    """배지 평가 입력 (명시적 필드)"""
    gold_count: int = 0
    feedback_count: int = 0
    feedback_with_comment_count: int = 0
    positive_feedback_weight: float = 0.0
    negative_feedback_weight: float = 0.0
    action_count: int = 0
    applied_action_count: int = 0
    action_adoption_percent: float = 0.0
    average_result_delta: float = 0.0
    monthly_timeline_length: int = 0
    weekly_timeline_length: int = 0
    weekly_feedback_streak: int = 0
    cluster_breakthrough_count: int = 0
    completed_ab_tests: int = 0
    persona_resonance_segments: int = 0
    total_interactions: int = 0
    rag_hit_percent: float = 0.0


@dataclass
class TimelinePoint:
    """학습 타임라인 포인트"""
    period: str
    feedback_count: int = 0
    positive_weight: float = 0.0
    total_weight: float = 0.0
    action_count: int = 0
    applied_count: int = 0
    feedback_with_comment_count: int = 0

    @property
    def positive_rate(self) -> float:
        return round(self.positive_weight / self.total_weight, 3) if self.total_weight > 0 else 0.0

    @property
    def adoption_rate(self) -> float:
        return round(self.applied_count / self.action_count, 3) if self.action_count > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'period': self.period,
            'feedback_count': self.feedback_count,
            'positive_rate': self.positive_rate,
            'action_count': self.action_count,
            'applied_count': self.applied_count,
            'adoption_rate': self.adoption_rate,
            'feedback_with_comment_count': self.feedback_with_comment_count,
        }


@dataclass
class StatisticsBundle:
    """집계 결과 묶음"""
    statistics: UserStatistics
    timeline: List[TimelinePoint] = field(default_factory=list)
    weekly_timeline: List[TimelinePoint] = field(default_factory=list)
    feedback_stats: Dict[str, Any] = field(default_factory=dict)
    action_stats: Dict[str, Any] = field(default_factory=dict)


def month_key(value: datetime) -> str:
    return f"{value.year}-{value.month:02d}"


def week_key(value: datetime) -> str:
    iso_year, iso_week, _ = value.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def collect_top_hashtags(signals: Iterable[PatternSignal], limit: int = 10) -> Dict[str, float]:
    """태그 가중 해시태그 빈도 상위 N개"""
    weights: Counter = Counter()
    for signal in signals:
        weight = HASHTAG_TAG_WEIGHTS.get(signal.tag, 1.0)
        for hashtag in dict.fromkeys(signal.hashtags):
            weights[hashtag] += weight

    ranked = sorted(weights.items(), key=lambda item: (-item[1], item[0]))
    return {hashtag: weight for hashtag, weight in ranked[:limit]}


class StatisticsAggregator:
    """
    통계 집계기

    입력은 모두 스냅샷이며 이 클래스는 상태를 가지지 않는다.
    """

    def __init__(self, monthly_periods: int = 8, weekly_periods: int = 12):
        self.monthly_periods = monthly_periods
        self.weekly_periods = weekly_periods

    def aggregate(
        self,
        feedback: List[FeedbackEntry],
        action_logs: List[ActionLogEntry],
        signals: List[PatternSignal],
        interaction_state: InteractionState,
        as_of: datetime,
        completed_ab_tests: int = 0,
        persona_resonance_segments: int = 0,
    ) -> StatisticsBundle:
        """
        사용자 통계 집계

        Returns:
            StatisticsBundle
        """
        positive_weight, negative_weight, total_weight = self._feedback_weights(feedback)
        with_comment = sum(1 for entry in feedback if entry.has_comment)

        action_count = len(action_logs)
        applied_count = sum(1 for log in action_logs if log.applied)
        delta_sum = sum(log.result_delta for log in action_logs if log.result_delta is not None)
        adoption_rate = applied_count / action_count if action_count else 0.0
        average_delta = delta_sum / action_count if action_count else 0.0

        timeline, weekly_timeline = self._build_timelines(feedback, action_logs)

        statistics = UserStatistics(
            gold_count=sum(1 for signal in signals if signal.tag == PatternTag.GOLD),
            feedback_count=len(feedback),
            feedback_with_comment_count=with_comment,
            positive_feedback_weight=positive_weight,
            negative_feedback_weight=negative_weight,
            action_count=action_count,
            applied_action_count=applied_count,
            action_adoption_percent=round(adoption_rate * 100),
            average_result_delta=average_delta,
            monthly_timeline_length=len(timeline),
            weekly_timeline_length=len(weekly_timeline),
            weekly_feedback_streak=self.weekly_streak(feedback, as_of),
            cluster_breakthrough_count=self.cluster_breakthroughs(signals),
            completed_ab_tests=max(0, completed_ab_tests),
            persona_resonance_segments=max(0, persona_resonance_segments),
            total_interactions=interaction_state.total_interactions,
            rag_hit_percent=round(interaction_state.rag_hit_rate * 100),
        )

        return StatisticsBundle(
            statistics=statistics,
            timeline=timeline,
            weekly_timeline=weekly_timeline,
            feedback_stats={
                'total': len(feedback),
                'positive_rate': round(positive_weight / total_weight, 4) if total_weight > 0 else 0.0,
                'average_weight': round(total_weight / len(feedback), 4) if feedback else 0.0,
            },
            action_stats={
                'total': action_count,
                'adoption_rate': round(adoption_rate, 4),
                'average_result_delta': round(average_delta, 4),
            },
        )

    def weekly_streak(self, feedback: List[FeedbackEntry], as_of: datetime) -> int:
        """
        연속 피드백 주 수

        이번 주에 아직 피드백이 없으면 지난주부터 센다.
        """
        weeks = {week_key(entry.created_at) for entry in feedback if entry.created_at}
        if not weeks:
            return 0

        cursor = as_of
        if week_key(cursor) not in weeks:
            cursor = cursor - timedelta(days=7)

        streak = 0
        while week_key(cursor) in weeks:
            streak += 1
            cursor = cursor - timedelta(days=7)
        return streak

    @staticmethod
    def cluster_breakthroughs(signals: List[PatternSignal]) -> int:
        """사용자 평균 대비 도달 또는 참여율 1.3배 이상인 gold 게시물 수"""
        reaches = [signal.reach for signal in signals if signal.reach > 0]
        rates = [signal.engagement_rate for signal in signals if signal.engagement_rate > 0]
        avg_reach = sum(reaches) / len(reaches) if reaches else 0.0
        avg_rate = sum(rates) / len(rates) if rates else 0.0

        count = 0
        for signal in signals:
            if signal.tag != PatternTag.GOLD:
                continue
            reach_lift = signal.reach / avg_reach if avg_reach > 0 else 0.0
            rate_lift = signal.engagement_rate / avg_rate if avg_rate > 0 else 0.0
            if reach_lift >= BREAKTHROUGH_LIFT or rate_lift >= BREAKTHROUGH_LIFT:
                count += 1
        return count

    # ============================================================
    # Private Methods
    # ============================================================

    @staticmethod
    def _feedback_weights(feedback: List[FeedbackEntry]) -> Tuple[float, float, float]:
        positive = negative = total = 0.0
        for entry in feedback:
            if entry.sentiment == FeedbackSentiment.POSITIVE:
                positive += entry.weight
            elif entry.sentiment == FeedbackSentiment.NEGATIVE:
                negative += entry.weight
            total += entry.weight
        return positive, negative, total

    def _build_timelines(
        self,
        feedback: List[FeedbackEntry],
        action_logs: List[ActionLogEntry],
    ) -> Tuple[List[TimelinePoint], List[TimelinePoint]]:
        monthly: Dict[str, TimelinePoint] = {}
        weekly: Dict[str, TimelinePoint] = {}

        for entry in feedback:
            if entry.created_at is None:
                continue
            for key, slots in ((month_key(entry.created_at), monthly), (week_key(entry.created_at), weekly)):
                point = slots.setdefault(key, TimelinePoint(period=key))
                point.feedback_count += 1
                point.total_weight += entry.weight
                if entry.sentiment == FeedbackSentiment.POSITIVE:
                    point.positive_weight += entry.weight
                if entry.has_comment:
                    point.feedback_with_comment_count += 1

        for log in action_logs:
            if log.updated_at is None:
                continue
            for key, slots in ((month_key(log.updated_at), monthly), (week_key(log.updated_at), weekly)):
                point = slots.setdefault(key, TimelinePoint(period=key))
                point.action_count += 1
                if log.applied:
                    point.applied_count += 1

        timeline = [monthly[key] for key in sorted(monthly)][-self.monthly_periods:]
        weekly_timeline = [weekly[key] for key in sorted(weekly)][-self.weekly_periods:]
        return timeline, weekly_timeline

