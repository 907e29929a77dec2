"""
Learning Dashboard Service
협력자 → 스냅샷 → 엔진 → 요약 → 캐시

Features:
    - 협력자 데이터로 UserSnapshot 구성
    - 엔진 실행 + 패턴 요약 첨부
    - 페이로드 캐시 (TTL, force_refresh)
    - 복구 가능한 에러는 빈 페이로드 + 메시지로 변환
"""

from typing import Dict, Any, Optional
from datetime import datetime, timezone
import logging

from pattern_learning.core.engine import PatternLearningEngine, UserSnapshot, LearningDashboard
from pattern_learning.core.exceptions import MissingDataError
from pattern_learning.interfaces.stores import (
    PostStore,
    FeedbackStore,
    ActionLogStore,
    ExperimentStore,
    InteractionStore,
)
from pattern_learning.learning.phase import InteractionCounter, InteractionState
from pattern_learning.services.shared.cache import CacheClient
from pattern_learning.services.summarizer import PatternSummarizer

logger = logging.getLogger(__name__)

CACHE_PREFIX = "learning_dashboard"


class LearningDashboardService:
    """
    학습 대시보드 서비스

    Args:
        posts: 게시물 저장소 (필수)
        feedback: 피드백 저장소
        action_logs: 액션 로그 저장소
        interactions: 상호작용 카운터 저장소
        experiments: A/B 테스트 등 보조 카운트 저장소 (선택)
        engine: 패턴 학습 엔진
        summarizer: 패턴 요약기 (선택)
        cache: 캐시 클라이언트 (선택)
    """

    def __init__(
        self,
        posts: PostStore,
        feedback: FeedbackStore,
        action_logs: ActionLogStore,
        interactions: InteractionStore,
        experiments: Optional[ExperimentStore] = None,
        engine: Optional[PatternLearningEngine] = None,
        summarizer: Optional[PatternSummarizer] = None,
        cache: Optional[CacheClient] = None,
        cache_ttl: int = 300,
        fetch_limit: int = 100,
    ):
        self.posts = posts
        self.feedback = feedback
        self.action_logs = action_logs
        self.experiments = experiments
        self.engine = engine or PatternLearningEngine()
        self.summarizer = summarizer
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.fetch_limit = fetch_limit
        self.counter = InteractionCounter(interactions)

    # ============================================================
    # Dashboard
    # ============================================================

    def get_dashboard(
        self,
        user_id: str,
        force_refresh: bool = False,
        signal_limit: Optional[int] = None,
        as_of: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        대시보드 페이로드 조회

        Args:
            user_id: 사용자 ID
            force_refresh: 캐시 무시 후 재계산
            signal_limit: 반환할 신호 수
            as_of: 기준 시각

        Returns:
            LearningDashboard.to_dict() 형식의 딕셔너리
        """
        cache_key = f"{user_id}:{signal_limit}"

        if not force_refresh:
            cached = self._cache_get(cache_key)
            if cached is not None:
                logger.debug(f"[LearningDashboardService] cache hit: {user_id}")
                return self._with_current_state(cached, self.counter.get_state(user_id))

        as_of = as_of or datetime.now(timezone.utc)
        dashboard = self.build_dashboard(user_id, signal_limit=signal_limit, as_of=as_of)
        payload = dashboard.to_dict()

        if dashboard.signals:
            self._cache_set(cache_key, payload)
        return payload

    def build_dashboard(
        self,
        user_id: str,
        signal_limit: Optional[int] = None,
        as_of: Optional[datetime] = None,
    ) -> LearningDashboard:
        """스냅샷 로드 → 엔진 → 요약"""
        try:
            snapshot = self.load_snapshot(user_id)
        except MissingDataError as e:
            logger.info(f"[LearningDashboardService] {e.message}")
            empty = UserSnapshot(user_id=user_id, interaction_state=self.counter.get_state(user_id))
            dashboard = self.engine.run(empty, as_of=as_of, signal_limit=signal_limit)
            dashboard.message = "No post data found for this user yet."
            return dashboard

        dashboard = self.engine.run(snapshot, as_of=as_of, signal_limit=signal_limit)

        if self.summarizer is not None and dashboard.signals:
            dashboard.summaries_by_tag = self.summarizer.summarize(dashboard.signals)
            dashboard.post_insights = self.summarizer.post_insights(dashboard.signals)

        return dashboard

    def load_snapshot(self, user_id: str) -> UserSnapshot:
        """
        협력자 데이터로 스냅샷 구성

        Raises:
            MissingDataError: 게시물 저장소가 사용자 데이터를 반환하지 않을 때
        """
        posts = self.posts.get_posts(user_id)
        if posts is None:
            raise MissingDataError(
                f"Post store returned no data for {user_id}",
                details={'user_id': user_id},
            )

        feedback = self.feedback.get_feedback(user_id, limit=self.fetch_limit) or []
        action_logs = self.action_logs.get_action_logs(user_id, limit=self.fetch_limit) or []

        completed_ab_tests = 0
        persona_segments = 0
        if self.experiments is not None:
            completed_ab_tests = self.experiments.count_completed_ab_tests(user_id)
            persona_segments = self.experiments.count_persona_segments(user_id)

        return UserSnapshot(
            user_id=user_id,
            posts=posts,
            feedback=feedback,
            action_logs=action_logs,
            interaction_state=self.counter.get_state(user_id),
            completed_ab_tests=completed_ab_tests,
            persona_segments=persona_segments,
        )

    # ============================================================
    # Interactions
    # ============================================================

    def record_interaction(
        self,
        user_id: str,
        rag_hit: bool = False,
        idempotency_key: Optional[str] = None,
    ) -> InteractionState:
        return self.counter.record(user_id, rag_hit=rag_hit, idempotency_key=idempotency_key)

    def get_learning_phase(self, user_id: str) -> InteractionState:
        return self.counter.get_state(user_id)

    def shutdown(self):
        """요약기 스레드풀 정리"""
        if self.summarizer is not None:
            self.summarizer.shutdown()

    # ============================================================
    # Private Methods
    # ============================================================

    @staticmethod
    def _with_current_state(payload: Dict[str, Any], state: InteractionState) -> Dict[str, Any]:
        """캐시된 페이로드에 최신 학습 단계 반영"""
        refreshed = dict(payload)
        refreshed['learning_phase'] = state.phase.value
        refreshed['progress_percent'] = round(state.progress_percent, 2)
        refreshed['rag_hit_rate'] = round(state.rag_hit_rate, 4)
        refreshed['total_interactions'] = state.total_interactions
        return refreshed

    def _cache_get(self, key: str) -> Optional[Dict[str, Any]]:
        if self.cache is None:
            return None
        return self.cache.get(key, prefix=CACHE_PREFIX)

    def _cache_set(self, key: str, payload: Dict[str, Any]):
        if self.cache is None:
            return
        self.cache.set(key, payload, prefix=CACHE_PREFIX, ttl=self.cache_ttl)
