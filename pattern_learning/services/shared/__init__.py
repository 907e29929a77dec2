"""
공통 서비스 패키지
- 싱글톤 캐시, LLM 클라이언트
"""

from pattern_learning.services.shared.cache import (
    CacheClient,
    CacheConfig,
    CacheMetrics,
    get_cache_client,
)
from pattern_learning.services.shared.llm import (
    LLMClient,
    LLMConfig,
    UsageStats,
    LLMRateLimiter,
    CostCalculator,
    get_llm_client,
)

__all__ = [
    'CacheClient',
    'CacheConfig',
    'CacheMetrics',
    'get_cache_client',
    'LLMClient',
    'LLMConfig',
    'UsageStats',
    'LLMRateLimiter',
    'CostCalculator',
    'get_llm_client',
]
