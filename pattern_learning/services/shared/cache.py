"""
Redis Cache Service
대시보드 페이로드 캐시 + 상호작용 카운터

REDIS_URL이 없거나 연결에 실패하면 캐시 없이 동작한다.
(조회는 miss, 쓰기는 False, 카운터는 0)
"""

import redis
import json
import hashlib
import threading
import time
from typing import Optional, Any, Dict, Callable
from dataclasses import dataclass, asdict
import logging

from pattern_learning.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class CacheConfig:
    """Redis 연결 + TTL 설정"""
    url: Optional[str] = None
    db: int = 0
    password: Optional[str] = None
    default_ttl: int = 300
    timeout_seconds: float = 2.0

    @classmethod
    def from_settings(cls) -> 'CacheConfig':
        return cls(
            url=settings.REDIS_URL,
            db=settings.REDIS_DB,
            password=settings.REDIS_PASSWORD,
            default_ttl=settings.DASHBOARD_CACHE_TTL,
        )


@dataclass
class CacheMetrics:
    """조회/쓰기/오류 카운트"""
    hits: int = 0
    misses: int = 0
    writes: int = 0
    errors: int = 0
    total_latency_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        lookups = self.hits + self.misses
        data = asdict(self)
        data['total_latency_ms'] = round(self.total_latency_ms, 2)
        data['hit_ratio'] = round(self.hits / lookups, 4) if lookups else 0.0
        return data


class CacheClient:
    """Redis 캐시 클라이언트 (싱글톤)"""

    _instance: Optional['CacheClient'] = None
    _lock = threading.Lock()

    def __new__(cls, config: Optional[CacheConfig] = None):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, config: Optional[CacheConfig] = None):
        if hasattr(self, 'initialized'):
            return

        self.config = config or CacheConfig.from_settings()
        self.metrics = CacheMetrics()
        self.client: Optional[redis.Redis] = self._connect(self.config)
        self.available = self.client is not None
        self.initialized = True

    @staticmethod
    def _connect(config: CacheConfig) -> Optional[redis.Redis]:
        """연결 + PING, 실패 시 None"""
        if not config.url:
            logger.info("[CacheClient] REDIS_URL not set, caching disabled")
            return None

        client = redis.Redis.from_url(
            config.url,
            db=config.db,
            password=config.password,
            decode_responses=True,
            socket_timeout=config.timeout_seconds,
            socket_connect_timeout=config.timeout_seconds,
        )
        try:
            client.ping()
        except redis.RedisError as e:
            logger.warning(f"[CacheClient] Redis unavailable, caching disabled: {e}")
            return None

        logger.info(f"[CacheClient] Redis connected (db={config.db})")
        return client

    def _make_key(self, prefix: str, key: str) -> str:
        """prefix:md5(key)[:16]"""
        digest = hashlib.md5(key.encode()).hexdigest()[:16]
        return f"{prefix}:{digest}"

    def _run(self, operation: str, call: Callable[[], Any], default: Any) -> Any:
        """Redis 명령 실행 (미가용/오류 시 default)"""
        if not self.available:
            return default

        start = time.time()
        try:
            result = call()
        except (redis.RedisError, ValueError) as e:
            self.metrics.errors += 1
            logger.warning(f"[CacheClient] {operation} error: {e}")
            return default
        self.metrics.total_latency_ms += (time.time() - start) * 1000
        return result

    # ============================================================
    # Payload Cache
    # ============================================================

    def get(self, key: str, prefix: str = "cache") -> Optional[Any]:
        """
        캐시 조회

        Returns:
            역직렬화된 값 또는 None
        """
        raw = self._run("get", lambda: self.client.get(self._make_key(prefix, key)), None)
        if raw is None:
            self.metrics.misses += 1
            return None

        value = self._run("decode", lambda: json.loads(raw), None)
        if value is not None:
            self.metrics.hits += 1
        return value

    def set(self, key: str, value: Any, prefix: str = "cache", ttl: Optional[int] = None) -> bool:
        """JSON으로 저장 (TTL 기본값: default_ttl)"""
        stored = self._run(
            "set",
            lambda: self.client.setex(
                self._make_key(prefix, key),
                ttl or self.config.default_ttl,
                json.dumps(value, ensure_ascii=False, default=str),
            ),
            False,
        )
        if stored:
            self.metrics.writes += 1
        return bool(stored)

    # ============================================================
    # Counters
    # ============================================================

    def incr(self, key: str, prefix: str = "counter", amount: int = 1) -> int:
        """원자적 증가 후 값"""
        return int(self._run("incr", lambda: self.client.incrby(self._make_key(prefix, key), amount), 0))

    def get_counter(self, key: str, prefix: str = "counter") -> int:
        return self._run("counter", lambda: int(self.client.get(self._make_key(prefix, key)) or 0), 0)

    def set_if_absent(self, key: str, value: Any = 1, prefix: str = "once", ttl: Optional[int] = None) -> bool:
        """
        키가 없을 때만 저장 (SET NX)

        Returns:
            새로 저장했으면 True, 이미 있거나 캐시 미가용이면 False
        """
        return bool(self._run(
            "set_if_absent",
            lambda: self.client.set(self._make_key(prefix, key), json.dumps(value, default=str), nx=True, ex=ttl),
            False,
        ))

    def health_check(self) -> Dict[str, Any]:
        """헬스체크"""
        if not self.available:
            return {'status': 'unavailable', 'metrics': self.metrics.to_dict()}

        try:
            start = time.time()
            self.client.ping()
            return {
                'status': 'healthy',
                'latency_ms': round((time.time() - start) * 1000, 2),
                'metrics': self.metrics.to_dict(),
            }
        except redis.RedisError as e:
            return {'status': 'unhealthy', 'error': str(e), 'metrics': self.metrics.to_dict()}

    def close(self):
        """연결 종료"""
        if self.client:
            self.client.close()
            logger.info("[CacheClient] Redis connection closed")


def get_cache_client() -> CacheClient:
    """싱글톤 캐시 클라이언트"""
    return CacheClient()
