"""
Achievement Evaluator
배지 카탈로그 평가

카탈로그는 데이터다: (지표 선택자, 목표치, 표시 정보).
- current = 선택자 값
- progress = clamp(current / target, 0, 1)
- earned ⇔ current >= target
"""

from dataclasses import dataclass
from typing import List, Dict, Any, Callable, Optional, Sequence
from enum import Enum
import logging

from pattern_learning.core.exceptions import DataIntegrityError
from pattern_learning.learning.statistics import UserStatistics

logger = logging.getLogger(__name__)


class StatMetric(str, Enum):
    """배지 지표 선택자"""
    GOLD_COUNT = "gold_count"
    FEEDBACK_COUNT = "feedback_count"
    FEEDBACK_WITH_COMMENT = "feedback_with_comment_count"
    ACTION_ADOPTION_PERCENT = "action_adoption_percent"
    MONTHLY_TIMELINE = "monthly_timeline_length"
    WEEKLY_TIMELINE = "weekly_timeline_length"
    APPLIED_ACTIONS = "applied_action_count"
    ACTION_IMPACT = "action_impact"
    FEEDBACK_BALANCE = "feedback_balance"
    CLUSTER_BREAKTHROUGH = "cluster_breakthrough_count"
    WEEKLY_STREAK = "weekly_feedback_streak"
    COMPLETED_AB_TESTS = "completed_ab_tests"
    PERSONA_SEGMENTS = "persona_resonance_segments"
    RAG_HIT_PERCENT = "rag_hit_percent"


class BadgeUnit(str, Enum):
    COUNT = "count"
    PERCENT = "percent"
    MONTHS = "months"
    WEEKS = "weeks"
    POINTS = "points"


class BadgeStatus(str, Enum):
    EARNED = "earned"
    IN_PROGRESS = "in_progress"


UNIT_LABELS = {
    BadgeUnit.COUNT: "",
    BadgeUnit.PERCENT: "%",
    BadgeUnit.MONTHS: " months",
    BadgeUnit.WEEKS: " weeks",
    BadgeUnit.POINTS: "pt",
}


SELECTORS: Dict[StatMetric, Callable[[UserStatistics], float]] = {
    StatMetric.GOLD_COUNT: lambda s: s.gold_count,
    StatMetric.FEEDBACK_COUNT: lambda s: s.feedback_count,
    StatMetric.FEEDBACK_WITH_COMMENT: lambda s: s.feedback_with_comment_count,
    StatMetric.ACTION_ADOPTION_PERCENT: lambda s: s.action_adoption_percent,
    StatMetric.MONTHLY_TIMELINE: lambda s: s.monthly_timeline_length,
    StatMetric.WEEKLY_TIMELINE: lambda s: s.weekly_timeline_length,
    StatMetric.APPLIED_ACTIONS: lambda s: s.applied_action_count,
    StatMetric.ACTION_IMPACT: lambda s: max(0.0, round(s.average_result_delta, 1)),
    StatMetric.FEEDBACK_BALANCE: lambda s: min(s.positive_feedback_weight, s.negative_feedback_weight),
    StatMetric.CLUSTER_BREAKTHROUGH: lambda s: s.cluster_breakthrough_count,
    StatMetric.WEEKLY_STREAK: lambda s: s.weekly_feedback_streak,
    StatMetric.COMPLETED_AB_TESTS: lambda s: s.completed_ab_tests,
    StatMetric.PERSONA_SEGMENTS: lambda s: s.persona_resonance_segments,
    StatMetric.RAG_HIT_PERCENT: lambda s: s.rag_hit_percent,
}


@dataclass(frozen=True)
class BadgeDefinition:
    """배지 정의 (카탈로그 데이터)"""
    badge_id: str
    title: str
    description: str
    icon: str
    metric: StatMetric
    target: float
    unit: BadgeUnit = BadgeUnit.COUNT


BADGE_CATALOG: Sequence[BadgeDefinition] = (
    BadgeDefinition(
        "gold-master", "Gold Pattern Master",
        "Collect 10 gold pattern posts.",
        "trophy", StatMetric.GOLD_COUNT, 10,
    ),
    BadgeDefinition(
        "feedback-champion", "Feedback Champion",
        "Leave 50 pieces of feedback on your posts.",
        "message-circle", StatMetric.FEEDBACK_COUNT, 50,
    ),
    BadgeDefinition(
        "insight-builder", "Insight Builder",
        "Write 10 feedback entries with a comment.",
        "lightbulb", StatMetric.FEEDBACK_WITH_COMMENT, 10,
    ),
    BadgeDefinition(
        "action-driver", "Action Driver",
        "Apply at least half of the suggested actions.",
        "zap", StatMetric.ACTION_ADOPTION_PERCENT, 50, BadgeUnit.PERCENT,
    ),
    BadgeDefinition(
        "consistency-builder", "Consistency Builder",
        "Keep learning for 4 different months.",
        "calendar", StatMetric.MONTHLY_TIMELINE, 4, BadgeUnit.MONTHS,
    ),
    BadgeDefinition(
        "weekly-insight", "Weekly Insight",
        "Stay active for 6 different weeks.",
        "calendar-check", StatMetric.WEEKLY_TIMELINE, 6, BadgeUnit.WEEKS,
    ),
    BadgeDefinition(
        "action-loop", "Action Loop",
        "Apply 10 suggested actions.",
        "repeat", StatMetric.APPLIED_ACTIONS, 10,
    ),
    BadgeDefinition(
        "action-impact", "Action Impact",
        "Reach an average result delta of 5 points.",
        "trending-up", StatMetric.ACTION_IMPACT, 5, BadgeUnit.POINTS,
    ),
    BadgeDefinition(
        "feedback-balance", "Balanced Listener",
        "Collect at least 15 points of both positive and negative feedback.",
        "scale", StatMetric.FEEDBACK_BALANCE, 15, BadgeUnit.POINTS,
    ),
    BadgeDefinition(
        "cluster-breakthrough", "Cluster Breakthrough",
        "Publish 3 gold posts that beat your average by 30%.",
        "rocket", StatMetric.CLUSTER_BREAKTHROUGH, 3,
    ),
    BadgeDefinition(
        "feedback-streak", "Feedback Streak",
        "Leave feedback 4 weeks in a row.",
        "flame", StatMetric.WEEKLY_STREAK, 4, BadgeUnit.WEEKS,
    ),
    BadgeDefinition(
        "abtest-closer", "A/B Test Closer",
        "Complete an A/B test.",
        "split", StatMetric.COMPLETED_AB_TESTS, 1,
    ),
    BadgeDefinition(
        "audience-resonance", "Audience Resonance",
        "Find 2 audience segments that respond to your content.",
        "users", StatMetric.PERSONA_SEGMENTS, 2,
    ),
    BadgeDefinition(
        "rag-pilot", "RAG Pilot",
        "Answer 65% of questions from learned context.",
        "database", StatMetric.RAG_HIT_PERCENT, 65, BadgeUnit.PERCENT,
    ),
)


@dataclass
class Badge:
    """평가된 배지"""
    definition: BadgeDefinition
    current: float
    progress: float

    @property
    def badge_id(self) -> str:
        return self.definition.badge_id

    @property
    def status(self) -> BadgeStatus:
        return BadgeStatus.EARNED if self.progress >= 1.0 else BadgeStatus.IN_PROGRESS

    @property
    def earned(self) -> bool:
        return self.status == BadgeStatus.EARNED

    @property
    def condition(self) -> str:
        if self.earned:
            return "Achieved"
        remaining = self.definition.target - self.current
        remaining = int(remaining) if float(remaining).is_integer() else round(remaining, 1)
        return f"{remaining}{UNIT_LABELS[self.definition.unit]} to go"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.definition.badge_id,
            'title': self.definition.title,
            'description': self.definition.description,
            'icon': self.definition.icon,
            'unit': self.definition.unit.value,
            'target': self.definition.target,
            'current': self.current,
            'progress': round(self.progress, 4),
            'status': self.status.value,
            'condition': self.condition,
        }


class AchievementEvaluator:
    """
    배지 평가기

    통계가 같으면 결과도 같다 (상태 없음, 스냅샷 저장 없음).
    """

    def __init__(
        self,
        catalog: Optional[Sequence[BadgeDefinition]] = None,
        selectors: Optional[Dict[StatMetric, Callable[[UserStatistics], float]]] = None,
    ):
        self.catalog = list(catalog) if catalog is not None else list(BADGE_CATALOG)
        self.selectors = selectors if selectors is not None else SELECTORS

    def evaluate(self, stats: UserStatistics) -> List[Badge]:
        """
        카탈로그 전체 평가

        Args:
            stats: 사용자 통계

        Returns:
            카탈로그 순서의 Badge 리스트 (목표치가 잘못된 배지는 제외)
        """
        badges = []
        for definition in self.catalog:
            try:
                badges.append(self.evaluate_badge(definition, stats))
            except DataIntegrityError as e:
                logger.error(f"[AchievementEvaluator] {e.message} {e.details}")
        return badges

    def evaluate_badge(self, definition: BadgeDefinition, stats: UserStatistics) -> Badge:
        if definition.target <= 0:
            raise DataIntegrityError(
                f"Badge target must be positive: {definition.badge_id}",
                details={'badge_id': definition.badge_id, 'target': definition.target},
            )

        current = self._resolve(definition, stats)
        progress = min(1.0, max(0.0, current / definition.target))
        return Badge(definition=definition, current=current, progress=progress)

    def _resolve(self, definition: BadgeDefinition, stats: UserStatistics) -> float:
        selector = self.selectors.get(definition.metric)
        if selector is None:
            logger.warning(
                f"[AchievementEvaluator] No selector for {definition.metric} "
                f"(badge={definition.badge_id})"
            )
            return 0.0

        try:
            value = selector(stats)
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning(
                f"[AchievementEvaluator] Selector failed for {definition.badge_id}: {e}"
            )
            return 0.0

        if value is None:
            return 0.0
        return float(value)
