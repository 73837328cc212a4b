"""Redis list queue used to hand metadata refresh work to background workers."""

import logging
import time

import redis

from shared.utils import config

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_RETRIES = 3
DEFAULT_RETRY_DELAY_SECONDS = 1.0


class QueueManager:
    """FIFO work queue on Redis lists, with an optional jump-the-line push.

    The connection is verified on the first write, not on construction, so
    services start even while Redis is still coming up.
    """

    def __init__(self, redis_url: str | None = None) -> None:
        self.redis_url = redis_url or config.get("redis_url", "redis://localhost:6379/0")
        self.redis = redis.Redis.from_url(self.redis_url, decode_responses=True)  # type: ignore[misc]
        self.connect_retries = int(config.get_setting("queue.connect_retries", DEFAULT_CONNECT_RETRIES))
        self.retry_delay = float(config.get_setting("queue.retry_delay_seconds", DEFAULT_RETRY_DELAY_SECONDS))
        self._verified = False

    def _verify_connection(self) -> None:
        if self._verified:
            return

        delay = self.retry_delay
        for attempt in range(1, self.connect_retries + 1):
            try:
                self.redis.ping()
            except redis.RedisError as e:
                if attempt == self.connect_retries:
                    logger.error(f"Redis at {self.redis_url} unreachable after {attempt} attempts: {e}")
                    raise ConnectionError(f"Redis connection failed: {e}") from e
                logger.warning(f"Redis ping {attempt} failed, retrying in {delay}s: {e}")
                time.sleep(delay)
                delay *= 2
            else:
                self._verified = True
                return

    def enqueue(self, key: str, value: str, front: bool = False) -> None:
        """Append ``value`` to queue ``key``; ``front`` makes it the next one out."""
        try:
            self._verify_connection()
            push = self.redis.lpush if front else self.redis.rpush
            push(key, value)
        except (ConnectionError, redis.RedisError) as e:
            # force a fresh ping before the next write
            self._verified = False
            logger.error(f"Failed to enqueue onto '{key}': {e}")
            raise ConnectionError(f"Redis enqueue operation failed: {e}") from e
        logger.debug(f"Enqueued message onto '{key}' (front={front})")

    def dequeue(self, key: str) -> str | None:
        """Pop the next message of queue ``key``, ``None`` when empty."""
        return self.redis.lpop(key)  # type: ignore[return-value]

    def get_length(self, key: str) -> int:
        return int(self.redis.llen(key))  # type: ignore[arg-type]
