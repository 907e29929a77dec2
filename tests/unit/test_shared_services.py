"""
Unit Tests for Shared Services
Redis 캐시, LLM 클라이언트, Redis 상호작용 저장소 테스트

Run: pytest tests/unit/test_shared_services.py -v
"""

import json
import pytest
from unittest.mock import MagicMock, patch

import redis

from pattern_learning.core.config import settings
from pattern_learning.repositories.redis_store import RedisInteractionStore
from pattern_learning.services.shared.cache import CacheClient, CacheConfig
from pattern_learning.services.shared.llm import LLMClient, LLMConfig, CostCalculator, LLMRateLimiter


# ============================================================
# Cache
# ============================================================

@pytest.fixture
def reset_cache_singleton():
    CacheClient._instance = None
    yield
    CacheClient._instance = None


@pytest.fixture
def mock_redis(reset_cache_singleton):
    with patch('pattern_learning.services.shared.cache.redis.Redis.from_url') as from_url:
        client = MagicMock()
        from_url.return_value = client
        yield client


class TestCacheClient:
    """CacheClient 단위 테스트"""

    def test_disabled_without_url(self, reset_cache_singleton):
        cache = CacheClient(CacheConfig(url=None))

        assert cache.available is False
        assert cache.get("key") is None
        assert cache.set("key", {"a": 1}) is False
        assert cache.incr("key") == 0

    def test_connection_failure_degrades(self, mock_redis):
        mock_redis.ping.side_effect = redis.ConnectionError("refused")

        cache = CacheClient(CacheConfig(url="redis://localhost:6379"))

        assert cache.available is False
        assert cache.get("key") is None

    def test_get_deserializes(self, mock_redis):
        mock_redis.get.return_value = json.dumps({"user_id": "u1"})
        cache = CacheClient(CacheConfig(url="redis://localhost:6379"))

        assert cache.get("u1", prefix="learning_dashboard") == {"user_id": "u1"}
        assert cache.metrics.hits == 1

    def test_set_uses_ttl(self, mock_redis):
        cache = CacheClient(CacheConfig(url="redis://localhost:6379", default_ttl=300))

        assert cache.set("u1", {"a": 1}) is True
        key, ttl, value = mock_redis.setex.call_args.args
        assert key.startswith("cache:")
        assert ttl == 300
        assert json.loads(value) == {"a": 1}

    def test_set_if_absent(self, mock_redis):
        mock_redis.set.side_effect = [True, None]
        cache = CacheClient(CacheConfig(url="redis://localhost:6379"))

        assert cache.set_if_absent("u1:req-1") is True
        assert cache.set_if_absent("u1:req-1") is False
        assert mock_redis.set.call_args.kwargs['nx'] is True

    def test_redis_error_is_counted(self, mock_redis):
        mock_redis.incrby.side_effect = redis.TimeoutError("slow")
        cache = CacheClient(CacheConfig(url="redis://localhost:6379"))

        assert cache.incr("u1:total") == 0
        assert cache.metrics.errors == 1


# ============================================================
# Redis Interaction Store
# ============================================================

class FakeCounterCache:
    """CacheClient 카운터 API 대역"""

    available = True

    def __init__(self):
        self.counters = {}
        self.claimed = set()

    def incr(self, key, prefix="counter", amount=1):
        self.counters[key] = self.counters.get(key, 0) + amount
        return self.counters[key]

    def get_counter(self, key, prefix="counter"):
        return self.counters.get(key, 0)

    def set_if_absent(self, key, value=1, prefix="once", ttl=None):
        if key in self.claimed:
            return False
        self.claimed.add(key)
        return True


class TestRedisInteractionStore:
    """RedisInteractionStore 단위 테스트"""

    @pytest.fixture
    def store(self):
        return RedisInteractionStore(FakeCounterCache())

    def test_increment(self, store):
        store.increment("u1", rag_hit=True)
        assert store.increment("u1", rag_hit=False) == (2, 1)
        assert store.get_counts("u1") == (2, 1)

    def test_claim_key_once(self, store):
        assert store.claim_key("u1", "req-1") is True
        assert store.claim_key("u1", "req-1") is False
        assert store.claim_key("u2", "req-1") is True


# ============================================================
# LLM
# ============================================================

@pytest.fixture
def reset_llm_singleton():
    LLMClient._instance = None
    yield
    LLMClient._instance = None


class TestLLMClient:
    """LLMClient 단위 테스트"""

    def test_config_requires_api_key(self, monkeypatch):
        monkeypatch.setattr(settings, "OPENAI_API_KEY", None)

        with pytest.raises(ValueError):
            LLMConfig.from_settings()

    def test_invoke_records_usage(self, monkeypatch, reset_llm_singleton):
        monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-test")

        with patch('pattern_learning.services.shared.llm.ChatOpenAI') as chat_cls:
            chat_cls.return_value.invoke.return_value = MagicMock(
                content='{"summary": "ok"}',
                usage_metadata={'input_tokens': 120, 'output_tokens': 30},
            )
            client = LLMClient()

            result = client.invoke("prompt", system_prompt="system")

        assert result == '{"summary": "ok"}'
        assert client.usage.requests == 1
        assert client.usage.input_tokens == 120
        assert client.get_stats()["cost_usd"] >= 0.0
        messages = chat_cls.return_value.invoke.call_args.args[0]
        assert len(messages) == 2

    def test_invoke_error_propagates(self, monkeypatch, reset_llm_singleton):
        monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-test")

        with patch('pattern_learning.services.shared.llm.ChatOpenAI') as chat_cls:
            chat_cls.return_value.invoke.side_effect = RuntimeError("upstream")
            client = LLMClient()

            with pytest.raises(RuntimeError):
                client.invoke("prompt")

        assert client.usage.failures == 1


class TestLLMHelpers:
    """비용 계산 + 레이트 리미터"""

    def test_cost(self):
        assert CostCalculator.calculate("gpt-4o-mini", 1_000_000, 0) == pytest.approx(0.15)

    def test_rate_limiter(self):
        limiter = LLMRateLimiter(rpm=2)

        assert limiter.is_allowed() is True
        assert limiter.is_allowed() is True
        assert limiter.is_allowed() is False
