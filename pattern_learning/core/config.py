"""
전역 설정 관리
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """애플리케이션 전역 설정"""

    # ============================================
    # Application Settings
    # ============================================
    APP_NAME: str = "Pattern Learning Engine"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # ============================================
    # Server Settings
    # ============================================
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8000
    APP_RELOAD: bool = True

    # ============================================
    # OpenAI API (텍스트 생성 협력자)
    # ============================================
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_DEFAULT_MODEL: str = "gpt-4o-mini"
    LLM_RATE_LIMIT_RPM: int = 60

    # ============================================
    # Redis Cache (Optional)
    # ============================================
    REDIS_URL: Optional[str] = None
    REDIS_DB: int = 0
    REDIS_PASSWORD: Optional[str] = None
    DASHBOARD_CACHE_TTL: int = 300  # 5분

    # ============================================
    # Engine Thresholds
    # ============================================
    SIGNIFICANCE_THRESHOLD: float = 0.10
    COMPARISON_EPSILON: float = 1e-9
    ZERO_BASELINE_SENTINEL: float = 1.0
    MIN_REFINE_SIZE: int = 5
    MIN_SUBCLUSTER_SIZE: int = 3
    SIMILAR_POSTS_LIMIT: int = 5
    BOTTOM_DECILE: float = 0.10

    # ============================================
    # Output Limits
    # ============================================
    SIGNAL_LIMIT: int = 40
    SUMMARY_SIGNALS_PER_TAG: int = 12
    TOP_HASHTAG_LIMIT: int = 10
    POST_INSIGHT_LIMIT: int = 3

    # ============================================
    # Summarizer
    # ============================================
    ENABLE_AI_SUMMARY: bool = True
    SUMMARY_TIMEOUT_SECONDS: float = 8.0
    SUMMARY_MAX_WORKERS: int = 4

    # ============================================
    # CORS Settings
    # ============================================
    CORS_ORIGINS: str = "*"
    CORS_ALLOW_CREDENTIALS: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"


# 싱글톤 인스턴스
settings = Settings()
