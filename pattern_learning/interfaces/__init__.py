"""
협력자 인터페이스
"""

from pattern_learning.interfaces.stores import (
    PostStore,
    FeedbackStore,
    ActionLogStore,
    ExperimentStore,
    InteractionStore,
    TextGenerator,
)

__all__ = [
    'PostStore',
    'FeedbackStore',
    'ActionLogStore',
    'ExperimentStore',
    'InteractionStore',
    'TextGenerator',
]
