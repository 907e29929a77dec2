"""
저장소 구현
"""

from pattern_learning.repositories.memory import InMemoryLearningRepository
from pattern_learning.repositories.redis_store import RedisInteractionStore

__all__ = [
    'InMemoryLearningRepository',
    'RedisInteractionStore',
]
