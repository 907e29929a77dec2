"""
Pattern Learning Engine
게시물 성과 패턴 학습 + 배지 엔진
"""

__version__ = "1.0.0"
