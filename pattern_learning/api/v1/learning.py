"""
Learning API
게시물 패턴 학습 대시보드 + 상호작용 기록 엔드포인트
"""

from fastapi import APIRouter, HTTPException, Query, Depends
from pydantic import BaseModel, Field
from functools import lru_cache
from typing import Optional, Dict, Any
import logging

from pattern_learning.core.config import settings
from pattern_learning.core.engine import PatternLearningEngine, EngineConfig
from pattern_learning.core.exceptions import EngineError
from pattern_learning.repositories.memory import InMemoryLearningRepository
from pattern_learning.repositories.redis_store import RedisInteractionStore
from pattern_learning.services.dashboard import LearningDashboardService
from pattern_learning.services.shared.cache import get_cache_client
from pattern_learning.services.shared.llm import get_llm_client
from pattern_learning.services.summarizer import PatternSummarizer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/learning")


# ============================================================
# Request / Response Models
# ============================================================

class InteractionRequest(BaseModel):
    """상호작용 기록 요청"""
    rag_hit: bool = Field(False, description="기존 학습 컨텍스트로 응답했는지 여부")
    idempotency_key: Optional[str] = Field(None, max_length=128, description="재시도 중복 방지 키")


class InteractionStateResponse(BaseModel):
    """학습 단계 응답"""
    user_id: str
    total_interactions: int
    rag_hit_count: int
    rag_hit_rate: float
    learning_phase: str
    progress_percent: float


# ============================================================
# Dependencies
# ============================================================

@lru_cache()
def get_repository() -> InMemoryLearningRepository:
    """기본 저장소 (배포 시 dependency_overrides로 교체)"""
    return InMemoryLearningRepository()


def _build_summarizer() -> PatternSummarizer:
    if not settings.ENABLE_AI_SUMMARY or not settings.OPENAI_API_KEY:
        logger.info("[LearningAPI] AI summary disabled")
        return PatternSummarizer(generator=None)

    try:
        generator = get_llm_client()
    except ValueError as e:
        logger.warning(f"[LearningAPI] LLM unavailable, using fallback summaries: {e}")
        generator = None

    return PatternSummarizer(
        generator=generator,
        timeout_seconds=settings.SUMMARY_TIMEOUT_SECONDS,
        signals_per_tag=settings.SUMMARY_SIGNALS_PER_TAG,
        insight_limit=settings.POST_INSIGHT_LIMIT,
        max_workers=settings.SUMMARY_MAX_WORKERS,
    )


@lru_cache()
def get_dashboard_service() -> LearningDashboardService:
    """싱글톤 대시보드 서비스"""
    repository = get_repository()
    cache = get_cache_client()
    interactions = RedisInteractionStore(cache) if cache.available else repository

    return LearningDashboardService(
        posts=repository,
        feedback=repository,
        action_logs=repository,
        interactions=interactions,
        experiments=repository,
        engine=PatternLearningEngine(EngineConfig.from_settings()),
        summarizer=_build_summarizer(),
        cache=cache if cache.available else None,
        cache_ttl=settings.DASHBOARD_CACHE_TTL,
    )


# ============================================================
# Endpoints
# ============================================================

@router.get("/health")
async def health_check():
    """헬스체크"""
    cache = get_cache_client()
    return {
        'status': 'healthy',
        'service': 'pattern-learning',
        'version': settings.APP_VERSION,
        'cache': cache.health_check()['status'],
    }


@router.get("/{user_id}/dashboard")
def get_dashboard(
    user_id: str,
    force_refresh: bool = Query(False, description="캐시 무시"),
    signal_limit: Optional[int] = Query(None, ge=0, le=200, description="반환할 신호 수"),
    service: LearningDashboardService = Depends(get_dashboard_service),
) -> Dict[str, Any]:
    """
    학습 대시보드

    Args:
        user_id: 사용자 ID
        force_refresh: 캐시 무시 후 재계산
        signal_limit: 반환할 신호 수

    Returns:
        패턴 신호, 태그별 요약, 학습 단계, 배지
    """
    try:
        return service.get_dashboard(user_id, force_refresh=force_refresh, signal_limit=signal_limit)
    except EngineError as e:
        logger.error(f"[LearningAPI] dashboard error: {e.to_dict()}")
        raise HTTPException(status_code=500, detail="Failed to build learning dashboard")
    except Exception as e:
        logger.error(f"[LearningAPI] unexpected dashboard error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to build learning dashboard")


@router.post("/{user_id}/interactions", response_model=InteractionStateResponse)
def record_interaction(
    user_id: str,
    request: InteractionRequest,
    service: LearningDashboardService = Depends(get_dashboard_service),
):
    """상호작용 1회 기록 (같은 idempotency_key는 1회만 반영)"""
    try:
        state = service.record_interaction(
            user_id,
            rag_hit=request.rag_hit,
            idempotency_key=request.idempotency_key,
        )
    except Exception as e:
        logger.error(f"[LearningAPI] interaction error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to record interaction")

    return state.to_dict()


@router.get("/{user_id}/learning-phase", response_model=InteractionStateResponse)
def get_learning_phase(
    user_id: str,
    service: LearningDashboardService = Depends(get_dashboard_service),
):
    """현재 학습 단계"""
    return service.get_learning_phase(user_id).to_dict()


def shutdown_dashboard_service():
    """생성된 대시보드 서비스가 있으면 종료 (앱 lifespan에서 호출)"""
    if get_dashboard_service.cache_info().currsize:
        get_dashboard_service().shutdown()
