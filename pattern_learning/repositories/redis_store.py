"""
Redis Interaction Store
Redis 기반 상호작용 카운터 (InteractionStore 구현)
"""

from typing import Optional, Tuple
import logging

from pattern_learning.services.shared.cache import CacheClient, get_cache_client

logger = logging.getLogger(__name__)

IDEMPOTENCY_TTL_SECONDS = 7 * 24 * 3600


class RedisInteractionStore:
    """
    상호작용 카운터 저장소

    키:
        counter:{user}:total, counter:{user}:rag_hits  (INCRBY)
        once:{user}:{idempotency_key}                  (SET NX, 7일)
    """

    def __init__(self, cache: Optional[CacheClient] = None):
        self.cache = cache or get_cache_client()

    @property
    def available(self) -> bool:
        return self.cache.available

    def get_counts(self, user_id: str) -> Tuple[int, int]:
        total = self.cache.get_counter(f"{user_id}:total")
        hits = self.cache.get_counter(f"{user_id}:rag_hits")
        return total, hits

    def increment(self, user_id: str, rag_hit: bool) -> Tuple[int, int]:
        total = self.cache.incr(f"{user_id}:total")
        if rag_hit:
            hits = self.cache.incr(f"{user_id}:rag_hits")
        else:
            hits = self.cache.get_counter(f"{user_id}:rag_hits")
        return total, hits

    def claim_key(self, user_id: str, idempotency_key: str) -> bool:
        claimed = self.cache.set_if_absent(
            f"{user_id}:{idempotency_key}",
            prefix="once",
            ttl=IDEMPOTENCY_TTL_SECONDS,
        )
        if not claimed:
            logger.debug(f"[RedisInteractionStore] key already claimed: {user_id}/{idempotency_key}")
        return claimed
