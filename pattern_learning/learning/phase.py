"""
Learning Phase Tracker
누적 상호작용 수 기반 학습 단계 상태 머신

단계 (단방향, 역행 없음):
- initial:   0-3   → progress = i/4 × 25%
- learning:  4-7   → 25% + (i-4)/4 × 25%
- optimized: 8-11  → 50% + (i-8)/4 × 25%
- master:    12+   → min(100%, 75% + (i-12)/8 × 25%)

RAG 히트율은 보고용 효율 지표이며 단계 전이에 관여하지 않는다.
"""

from dataclasses import dataclass
from typing import Dict, Any, Optional
from enum import Enum
import logging

from pattern_learning.interfaces.stores import InteractionStore

logger = logging.getLogger(__name__)


class LearningPhase(str, Enum):
    """학습 단계"""
    INITIAL = "initial"
    LEARNING = "learning"
    OPTIMIZED = "optimized"
    MASTER = "master"

    @property
    def rank(self) -> int:
        return _PHASE_ORDER.index(self)


_PHASE_ORDER = [
    LearningPhase.INITIAL,
    LearningPhase.LEARNING,
    LearningPhase.OPTIMIZED,
    LearningPhase.MASTER,
]

# (단계, 시작 상호작용 수, 시작 진행률, 단계 폭)
_PHASE_STEPS = (
    (LearningPhase.MASTER, 12, 75.0, 8),
    (LearningPhase.OPTIMIZED, 8, 50.0, 4),
    (LearningPhase.LEARNING, 4, 25.0, 4),
    (LearningPhase.INITIAL, 0, 0.0, 4),
)


def phase_for(total_interactions: int) -> LearningPhase:
    """상호작용 수 → 학습 단계"""
    for phase, start, _, _ in _PHASE_STEPS:
        if total_interactions >= start:
            return phase
    return LearningPhase.INITIAL


def progress_percent(total_interactions: int) -> float:
    """상호작용 수 → 연속 진행률 (0~100)"""
    interactions = max(0, total_interactions)
    for _, start, base, width in _PHASE_STEPS:
        if interactions >= start:
            return min(100.0, base + (interactions - start) / width * 25.0)
    return 0.0


@dataclass
class InteractionState:
    """사용자별 상호작용 상태"""
    user_id: str
    total_interactions: int = 0
    rag_hit_count: int = 0

    @property
    def rag_hit_rate(self) -> float:
        if self.total_interactions <= 0:
            return 0.0
        return self.rag_hit_count / self.total_interactions

    @property
    def phase(self) -> LearningPhase:
        return phase_for(self.total_interactions)

    @property
    def progress_percent(self) -> float:
        return progress_percent(self.total_interactions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'user_id': self.user_id,
            'total_interactions': self.total_interactions,
            'rag_hit_count': self.rag_hit_count,
            'rag_hit_rate': round(self.rag_hit_rate, 4),
            'learning_phase': self.phase.value,
            'progress_percent': round(self.progress_percent, 2),
        }


class InteractionCounter:
    """
    상호작용 카운터

    논리적 상호작용 1회당 정확히 1번 증가한다.
    같은 idempotency key로 재시도된 요청은 무시한다.
    """

    def __init__(self, store: InteractionStore):
        self.store = store

    def record(
        self,
        user_id: str,
        rag_hit: bool = False,
        idempotency_key: Optional[str] = None,
    ) -> InteractionState:
        """
        상호작용 기록

        Args:
            user_id: 사용자 ID
            rag_hit: 기존 컨텍스트에서 응답했는지 여부
            idempotency_key: 클라이언트 재시도 중복 방지 키

        Returns:
            기록 후 상태
        """
        if idempotency_key and not self.store.claim_key(user_id, idempotency_key):
            logger.info(
                f"[InteractionCounter] Duplicate interaction ignored "
                f"(user={user_id}, key={idempotency_key})"
            )
            return self.get_state(user_id)

        total, hits = self.store.increment(user_id, rag_hit)
        before = phase_for(total - 1)
        after = phase_for(total)
        if after != before:
            logger.info(
                f"[InteractionCounter] {user_id} advanced {before.value} → {after.value}"
            )
        return InteractionState(user_id=user_id, total_interactions=total, rag_hit_count=hits)

    def get_state(self, user_id: str) -> InteractionState:
        total, hits = self.store.get_counts(user_id)
        return InteractionState(user_id=user_id, total_interactions=total, rag_hit_count=hits)
