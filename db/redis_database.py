import logging
import socket
import time
from enum import Enum
from typing import Any

import redis
import redis.asyncio

from db.config import Settings

logger = logging.getLogger(__name__)

# Build socket keepalive options safely
socket_keepalive_options = {}
if hasattr(socket, "TCP_KEEPIDLE"):
    socket_keepalive_options[socket.TCP_KEEPIDLE] = 60
if hasattr(socket, "TCP_KEEPINTVL"):
    socket_keepalive_options[socket.TCP_KEEPINTVL] = 30
if hasattr(socket, "TCP_KEEPCNT"):
    socket_keepalive_options[socket.TCP_KEEPCNT] = 3

pool_settings = {
    "socket_timeout": 5.0,
    "socket_connect_timeout": 2.0,
    "socket_keepalive": True,
    "health_check_interval": 30,
    "retry_on_timeout": False,
    "decode_responses": False,
}

# Only add socket_keepalive_options if we have any options available
if socket_keepalive_options:
    pool_settings["socket_keepalive_options"] = socket_keepalive_options


class CacheUnavailableError(Exception):
    """Raised when the cache backend cannot serve a request."""

    pass


class CircuitBreakerState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class RedisCircuitBreaker:
    """
    Circuit breaker for Redis operations.
    While OPEN, operations fail fast with CacheUnavailableError instead of
    waiting on socket timeouts. After the recovery timeout exactly one call is
    let through (HALF_OPEN) while concurrent callers keep failing fast; its
    outcome closes or re-opens the breaker.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: int = 60,
        expected_exception: tuple = (
            redis.exceptions.RedisError,
            OSError,
        ),
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exception = expected_exception
        self.failure_count = 0
        self.last_failure_time = None
        self.state = CircuitBreakerState.CLOSED

    def call(self, func):
        """Decorator to wrap an async Redis operation with circuit breaker logic."""

        async def async_wrapper(*args, **kwargs):
            recovering = False
            if self.state == CircuitBreakerState.OPEN:
                if self._should_attempt_reset():
                    self.state = CircuitBreakerState.HALF_OPEN
                    recovering = True
                else:
                    raise CacheUnavailableError(
                        f"Circuit breaker is OPEN after {self.failure_count} failures"
                    )
            elif self.state == CircuitBreakerState.HALF_OPEN:
                raise CacheUnavailableError(
                    "Circuit breaker is HALF_OPEN, recovery call in flight"
                )

            try:
                result = await func(*args, **kwargs)
                self._on_success()
            except self.expected_exception as e:
                self._on_failure()
                logger.warning(f"Redis operation failed: {e}")
                raise CacheUnavailableError(str(e)) from e
            finally:
                # recovery call cancelled or failed with an unexpected error
                if recovering and self.state == CircuitBreakerState.HALF_OPEN:
                    self.state = CircuitBreakerState.OPEN
            return result

        return async_wrapper

    def _should_attempt_reset(self) -> bool:
        """Check if enough time has passed to attempt reset."""
        return (
            time.time() - self.last_failure_time > self.recovery_timeout
            if self.last_failure_time
            else True
        )

    def _on_success(self):
        """Reset circuit breaker on successful operation."""
        self.failure_count = 0
        self.state = CircuitBreakerState.CLOSED

    def _on_failure(self):
        """Handle failure and potentially open circuit breaker."""
        self.failure_count += 1
        self.last_failure_time = time.time()

        if (
            self.state == CircuitBreakerState.HALF_OPEN
            or self.failure_count >= self.failure_threshold
        ):
            self.state = CircuitBreakerState.OPEN
            logger.warning(
                f"Circuit breaker opened after {self.failure_count} failures"
            )


class RedisWrapper:
    """
    Async Redis client wrapper. Every operation goes through the circuit
    breaker and any backend failure surfaces as CacheUnavailableError, so
    callers only need to handle a single exception type.
    """

    def __init__(
        self,
        client: redis.asyncio.Redis,
        circuit_breaker: RedisCircuitBreaker | None = None,
    ):
        self.client = client
        self.circuit_breaker = circuit_breaker or RedisCircuitBreaker()

    def _create_method(self, method_name: str):
        @self.circuit_breaker.call
        async def async_method(*args, **kwargs):
            operation = getattr(self.client, method_name)
            return await operation(*args, **kwargs)

        return async_method

    async def aclose(self):
        """Async close operation."""
        await self.client.aclose()

    async def get(self, key: str) -> bytes | None:
        """Redis GET operation."""
        return await self._create_method("get")(key)

    async def setex(self, key: str, ex: int, value: Any) -> bool:
        """Redis SETEX operation."""
        return await self._create_method("setex")(key, ex, value)

    async def delete(self, *keys) -> int:
        """Redis DELETE operation."""
        return await self._create_method("delete")(*keys)

    async def ping(self) -> bool:
        """Redis PING operation."""
        return await self._create_method("ping")() is True

    async def health_check(self) -> dict:
        """Health check for the Redis connection."""
        start_time = time.time()

        try:
            ping_result = await self.ping()
            response_time = time.time() - start_time

            return {
                "status": "healthy" if ping_result else "unhealthy",
                "response_time_ms": round(response_time * 1000, 2),
                "circuit_breaker_state": self.circuit_breaker.state.value,
                "failure_count": self.circuit_breaker.failure_count,
            }
        except CacheUnavailableError as e:
            response_time = time.time() - start_time
            return {
                "status": "error",
                "error": str(e),
                "response_time_ms": round(response_time * 1000, 2),
                "circuit_breaker_state": self.circuit_breaker.state.value,
                "failure_count": self.circuit_breaker.failure_count,
            }


def create_redis_client(settings: Settings) -> RedisWrapper | None:
    """Build the async cache client, or None when no Redis URL is configured."""
    if not settings.redis_url:
        logger.warning("Redis URL not provided. Caching not possible.")
        return None

    pool = redis.asyncio.ConnectionPool.from_url(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        **pool_settings,
    )
    return RedisWrapper(
        redis.asyncio.Redis(connection_pool=pool),
        RedisCircuitBreaker(
            failure_threshold=settings.redis_circuit_failure_threshold,
            recovery_timeout=settings.redis_circuit_recovery_timeout,
        ),
    )


# Exceptions a cache caller may see from a wrapped or raw client.
CACHE_ERRORS = (CacheUnavailableError, redis.exceptions.RedisError, OSError)
