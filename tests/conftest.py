"""
Pytest Configuration and Fixtures
패턴 학습 엔진 테스트 공통 설정

Features:
- 게시물/피드백/액션 로그 팩토리
- 고정 기준 시각
- 저장소, 엔진 fixture
"""

import pytest
from datetime import datetime, timedelta, timezone
from typing import List, Optional


AS_OF = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


# ============================================================
# Record Factories
# ============================================================

@pytest.fixture
def as_of() -> datetime:
    """고정 기준 시각"""
    return AS_OF


@pytest.fixture
def make_post():
    """PostRecord 팩토리 (likes로 총 참여 수 조절)"""
    from pattern_learning.models.records import PostRecord

    def _make(
        post_id: str,
        engagement: int = 10,
        reach: int = 1000,
        category: str = "feed",
        hour: Optional[int] = 10,
        days_ago: int = 3,
        hashtags: Optional[List[str]] = None,
        **extra,
    ) -> PostRecord:
        published_at = None
        if hour is not None:
            published_at = (AS_OF - timedelta(days=days_ago)).replace(hour=hour)
        return PostRecord(
            post_id=post_id,
            title=f"Post {post_id}",
            category=category,
            hashtags=hashtags or [],
            published_at=published_at,
            reach=reach,
            likes=engagement,
            **extra,
        )

    return _make


@pytest.fixture
def make_feedback():
    """FeedbackEntry 팩토리"""
    from pattern_learning.models.records import FeedbackEntry

    def _make(
        post_id: Optional[str] = None,
        sentiment: str = "positive",
        weight: float = 1.0,
        comment: str = "",
        days_ago: int = 0,
        feedback_id: Optional[str] = None,
    ) -> FeedbackEntry:
        return FeedbackEntry(
            feedback_id=feedback_id or f"fb-{post_id}-{sentiment}-{days_ago}",
            post_id=post_id,
            sentiment=sentiment,
            weight=weight,
            comment=comment,
            created_at=AS_OF - timedelta(days=days_ago),
        )

    return _make


@pytest.fixture
def make_action():
    """ActionLogEntry 팩토리"""
    from pattern_learning.models.records import ActionLogEntry

    def _make(
        action_id: str,
        applied: bool = True,
        result_delta: Optional[float] = None,
        days_ago: int = 0,
    ) -> ActionLogEntry:
        return ActionLogEntry(
            action_id=action_id,
            title=f"Action {action_id}",
            applied=applied,
            result_delta=result_delta,
            updated_at=AS_OF - timedelta(days=days_ago),
        )

    return _make


@pytest.fixture
def outlier_cluster_posts(make_post):
    """총 참여 [10, 10, 10, 10, 100]인 같은 시간대 릴 5개"""
    engagements = [10, 10, 10, 10, 100]
    return [
        make_post(f"reel-{index}", engagement=value, category="reel", hour=19, days_ago=index + 1)
        for index, value in enumerate(engagements)
    ]


# ============================================================
# Component Fixtures
# ============================================================

@pytest.fixture
def repository():
    """InMemoryLearningRepository 인스턴스"""
    from pattern_learning.repositories.memory import InMemoryLearningRepository
    return InMemoryLearningRepository()


@pytest.fixture
def engine():
    """PatternLearningEngine 인스턴스 (기본 설정)"""
    from pattern_learning.core.engine import PatternLearningEngine, EngineConfig
    return PatternLearningEngine(EngineConfig())
