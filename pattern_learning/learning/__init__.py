"""
Learning 패키지
- 학습 단계 상태 머신 + 상호작용 카운터
- 사용자 통계 집계
- 배지 평가
"""

from pattern_learning.learning.phase import (
    LearningPhase,
    InteractionState,
    InteractionCounter,
    phase_for,
    progress_percent,
)
from pattern_learning.learning.statistics import (
    UserStatistics,
    TimelinePoint,
    StatisticsBundle,
    StatisticsAggregator,
    collect_top_hashtags,
)
from pattern_learning.learning.achievements import (
    StatMetric,
    BadgeUnit,
    BadgeStatus,
    BadgeDefinition,
    Badge,
    BADGE_CATALOG,
    AchievementEvaluator,
)

__all__ = [
    'LearningPhase',
    'InteractionState',
    'InteractionCounter',
    'phase_for',
    'progress_percent',
    'UserStatistics',
    'TimelinePoint',
    'StatisticsBundle',
    'StatisticsAggregator',
    'collect_top_hashtags',
    'StatMetric',
    'BadgeUnit',
    'BadgeStatus',
    'BadgeDefinition',
    'Badge',
    'BADGE_CATALOG',
    'AchievementEvaluator',
]
