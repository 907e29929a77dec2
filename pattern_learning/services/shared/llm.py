"""
LLM Service
패턴 요약/게시물 인사이트용 텍스트 생성 협력자 (TextGenerator 구현)

- ChatOpenAI 단일 모델
- 분당 요청 수 제한
- 토큰/비용/지연 사용량 집계
"""

from langchain_openai import ChatOpenAI
from langchain_core.messages import HumanMessage, SystemMessage
from collections import deque
from functools import lru_cache
from typing import Optional, Dict, Any, Deque
from dataclasses import dataclass
import threading
import time
import logging

from pattern_learning.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class LLMConfig:
    """텍스트 생성 설정"""
    api_key: str
    model: str = "gpt-4o-mini"
    temperature: float = 0.4
    max_tokens: int = 1000
    request_timeout: int = 30
    max_retries: int = 1
    rate_limit_rpm: int = 60

    @classmethod
    def from_settings(cls) -> 'LLMConfig':
        if not settings.OPENAI_API_KEY:
            raise ValueError("OPENAI_API_KEY not set")

        return cls(
            api_key=settings.OPENAI_API_KEY,
            model=settings.OPENAI_DEFAULT_MODEL,
            rate_limit_rpm=settings.LLM_RATE_LIMIT_RPM,
        )


@dataclass
class UsageStats:
    """누적 사용량"""
    requests: int = 0
    failures: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    cost_usd: float = 0.0
    latency_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        succeeded = self.requests - self.failures
        return {
            'requests': self.requests,
            'failures': self.failures,
            'success_rate': round(succeeded / self.requests, 4) if self.requests else 0.0,
            'tokens': self.input_tokens + self.output_tokens,
            'cost_usd': round(self.cost_usd, 4),
            'avg_latency_ms': round(self.latency_ms / self.requests, 2) if self.requests else 0.0,
        }


class LLMRateLimiter:
    """분당 요청 수 제한 (최근 60초 요청 시각 보관)"""

    def __init__(self, rpm: int = 60):
        self.rpm = rpm
        self._sent: Deque[float] = deque()
        self._lock = threading.Lock()

    def is_allowed(self) -> bool:
        with self._lock:
            now = time.monotonic()
            while self._sent and now - self._sent[0] >= 60:
                self._sent.popleft()
            if len(self._sent) >= self.rpm:
                return False
            self._sent.append(now)
            return True

    def wait_if_needed(self, poll_seconds: float = 0.5):
        while not self.is_allowed():
            time.sleep(poll_seconds)


class CostCalculator:
    """모델별 토큰 비용 (USD / 1M tokens)"""

    PRICING = {
        "gpt-4o": (2.50, 10.00),
        "gpt-4o-mini": (0.150, 0.600),
    }

    @classmethod
    def calculate(cls, model: str, input_tokens: int, output_tokens: int) -> float:
        input_price, output_price = cls.PRICING.get(model, cls.PRICING["gpt-4o-mini"])
        return (input_tokens * input_price + output_tokens * output_price) / 1_000_000


class LLMClient:
    """
    LLM 클라이언트 (싱글톤)

    OPENAI_API_KEY가 없으면 생성 시 ValueError.
    호출 실패는 사용량에 기록한 뒤 그대로 전파한다. 타임아웃/폴백은 PatternSummarizer 담당.
    """

    _instance: Optional['LLMClient'] = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if hasattr(self, 'initialized'):
            return

        self.config = LLMConfig.from_settings()
        self.usage = UsageStats()
        self.rate_limiter = LLMRateLimiter(self.config.rate_limit_rpm)
        self._usage_lock = threading.Lock()
        self.model = ChatOpenAI(
            api_key=self.config.api_key,
            model=self.config.model,
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
            timeout=self.config.request_timeout,
            max_retries=self.config.max_retries,
        )

        self.initialized = True
        logger.info(f"[LLMClient] initialized: {self.config.model}")

    def invoke(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """
        텍스트 생성

        Args:
            prompt: 사용자 프롬프트
            system_prompt: 시스템 프롬프트

        Returns:
            응답 텍스트
        """
        self.rate_limiter.wait_if_needed()

        messages = [HumanMessage(content=prompt)]
        if system_prompt:
            messages.insert(0, SystemMessage(content=system_prompt))

        start_time = time.time()
        try:
            response = self.model.invoke(messages)
        except Exception as e:
            self._record((time.time() - start_time) * 1000, failed=True)
            logger.error(f"[LLMClient] generation failed: {e}")
            raise

        usage = getattr(response, 'usage_metadata', None) or {}
        input_tokens = usage.get('input_tokens', 0)
        output_tokens = usage.get('output_tokens', 0)
        latency_ms = (time.time() - start_time) * 1000
        self._record(latency_ms, input_tokens=input_tokens, output_tokens=output_tokens)

        logger.debug(
            f"[LLMClient] tokens={input_tokens}+{output_tokens} ({latency_ms:.0f}ms)"
        )
        content = response.content
        return content if isinstance(content, str) else str(content)

    def get_stats(self) -> Dict[str, Any]:
        return self.usage.to_dict()

    def _record(self, latency_ms: float, input_tokens: int = 0, output_tokens: int = 0, failed: bool = False):
        with self._usage_lock:
            self.usage.requests += 1
            self.usage.latency_ms += latency_ms
            if failed:
                self.usage.failures += 1
                return
            self.usage.input_tokens += input_tokens
            self.usage.output_tokens += output_tokens
            self.usage.cost_usd += CostCalculator.calculate(self.config.model, input_tokens, output_tokens)


@lru_cache()
def get_llm_client() -> LLMClient:
    """싱글톤 LLM 클라이언트"""
    return LLMClient()
