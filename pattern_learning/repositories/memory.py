"""
In-Memory Learning Repository
모든 협력자 프로토콜의 메모리 구현 (개발/테스트용)
"""

from typing import Dict, List, Optional, Set, Tuple, Iterable
from datetime import datetime
import threading

from pattern_learning.analysis.metrics import as_utc
from pattern_learning.models.records import PostRecord, FeedbackEntry, ActionLogEntry


class InMemoryLearningRepository:
    """
    메모리 저장소

    PostStore, FeedbackStore, ActionLogStore, ExperimentStore,
    InteractionStore를 모두 구현한다.
    """

    def __init__(self):
        self._posts: Dict[str, List[PostRecord]] = {}
        self._feedback: Dict[str, List[FeedbackEntry]] = {}
        self._action_logs: Dict[str, List[ActionLogEntry]] = {}
        self._ab_tests: Dict[str, int] = {}
        self._persona_segments: Dict[str, int] = {}
        self._counts: Dict[str, Tuple[int, int]] = {}
        self._claimed: Dict[str, Set[str]] = {}
        self._lock = threading.Lock()

    # ============================================================
    # Seeding
    # ============================================================

    def add_posts(self, user_id: str, posts: Iterable[PostRecord]):
        self._posts.setdefault(user_id, []).extend(posts)

    def add_feedback(self, user_id: str, entries: Iterable[FeedbackEntry]):
        self._feedback.setdefault(user_id, []).extend(entries)

    def add_action_logs(self, user_id: str, logs: Iterable[ActionLogEntry]):
        self._action_logs.setdefault(user_id, []).extend(logs)

    def set_experiment_counts(self, user_id: str, completed_ab_tests: int = 0, persona_segments: int = 0):
        self._ab_tests[user_id] = completed_ab_tests
        self._persona_segments[user_id] = persona_segments

    # ============================================================
    # PostStore / FeedbackStore / ActionLogStore
    # ============================================================

    def get_posts(
        self,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Optional[List[PostRecord]]:
        posts = self._posts.get(user_id)
        if posts is None:
            return None

        def in_range(post: PostRecord) -> bool:
            if post.published_at is None:
                return True
            if start is not None and as_utc(post.published_at) < as_utc(start):
                return False
            if end is not None and as_utc(post.published_at) >= as_utc(end):
                return False
            return True

        return [post for post in posts if in_range(post)]

    def get_feedback(self, user_id: str, limit: int = 100) -> Optional[List[FeedbackEntry]]:
        return self._latest(self._feedback.get(user_id), limit, lambda entry: entry.created_at)

    def get_action_logs(self, user_id: str, limit: int = 100) -> Optional[List[ActionLogEntry]]:
        return self._latest(self._action_logs.get(user_id), limit, lambda log: log.updated_at)

    # ============================================================
    # ExperimentStore
    # ============================================================

    def count_completed_ab_tests(self, user_id: str) -> int:
        return self._ab_tests.get(user_id, 0)

    def count_persona_segments(self, user_id: str) -> int:
        return self._persona_segments.get(user_id, 0)

    # ============================================================
    # InteractionStore
    # ============================================================

    def get_counts(self, user_id: str) -> Tuple[int, int]:
        return self._counts.get(user_id, (0, 0))

    def increment(self, user_id: str, rag_hit: bool) -> Tuple[int, int]:
        with self._lock:
            total, hits = self._counts.get(user_id, (0, 0))
            updated = (total + 1, hits + (1 if rag_hit else 0))
            self._counts[user_id] = updated
            return updated

    def claim_key(self, user_id: str, idempotency_key: str) -> bool:
        with self._lock:
            claimed = self._claimed.setdefault(user_id, set())
            if idempotency_key in claimed:
                return False
            claimed.add(idempotency_key)
            return True

    @staticmethod
    def _latest(items, limit: int, timestamp):
        """최신순 limit개 (타임스탬프 없는 항목은 뒤로)"""
        if items is None:
            return None
        ordered = sorted(
            items,
            key=lambda item: as_utc(timestamp(item)).timestamp() if timestamp(item) else float("-inf"),
            reverse=True,
        )
        return ordered[:limit]
