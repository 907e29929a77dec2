"""
Collaborator Protocol Definitions
외부 협력자 인터페이스 (typing.Protocol)

엔진은 저장소 구현을 알지 못한다. 각 협력자는 사용자 단위로
읽기 전용 데이터를 넘겨주기만 한다.

Protocols:
- PostStore: 게시물 + 원시 지표
- FeedbackStore: 피드백 엔트리
- ActionLogStore: AI 제안 실행 로그
- ExperimentStore: A/B 테스트, 오디언스 세그먼트 등 배지용 보조 카운트
- InteractionStore: 상호작용 카운터 상태
- TextGenerator: 텍스트 생성 (LLM)
"""

from typing import Protocol, Optional, List, Tuple
from datetime import datetime

from pattern_learning.models.records import PostRecord, FeedbackEntry, ActionLogEntry


class PostStore(Protocol):
    """게시물 저장소"""

    def get_posts(
        self,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Optional[List[PostRecord]]:
        """
        기간 내 게시물 조회

        Returns:
            게시물 리스트, 사용자 데이터가 없으면 None
        """
        ...


class FeedbackStore(Protocol):
    """피드백 저장소"""

    def get_feedback(self, user_id: str, limit: int = 100) -> Optional[List[FeedbackEntry]]:
        ...


class ActionLogStore(Protocol):
    """액션 로그 저장소"""

    def get_action_logs(self, user_id: str, limit: int = 100) -> Optional[List[ActionLogEntry]]:
        ...


class ExperimentStore(Protocol):
    """보조 카운트 저장소"""

    def count_completed_ab_tests(self, user_id: str) -> int:
        ...

    def count_persona_segments(self, user_id: str) -> int:
        ...


class InteractionStore(Protocol):
    """상호작용 카운터 저장소"""

    def get_counts(self, user_id: str) -> Tuple[int, int]:
        """(total_interactions, rag_hit_count)"""
        ...

    def increment(self, user_id: str, rag_hit: bool) -> Tuple[int, int]:
        """1 증가 후 (total_interactions, rag_hit_count)"""
        ...

    def claim_key(self, user_id: str, idempotency_key: str) -> bool:
        """처음 보는 키면 True, 이미 처리된 키면 False"""
        ...


class TextGenerator(Protocol):
    """텍스트 생성 협력자"""

    def invoke(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        ...
