from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol

import redis
from redis.exceptions import RedisError

from settlement_enricher.errors import EnrichmentSetupError, ErrorKind
from settlement_enricher.models.config_models import StoreConfig

"""Key-value store client (Redis).

The enrichment engine only needs `get(key)`. One client is opened per run by
open_kv_client() and closed when the run ends, whether it succeeded or not.
"""

__all__ = [
    "KeyValueClient",
    "RedisKeyValueClient",
    "open_kv_client",
]

logger = logging.getLogger(__name__)


class KeyValueClient(Protocol):
    def get(self, key: str) -> str | None: ...

    def close(self) -> None: ...


class RedisKeyValueClient:
    """Thin wrapper over redis.Redis with string responses."""

    def __init__(self, config: StoreConfig) -> None:
        self.config = config
        self._redis: redis.Redis | None = None

    def connect(self) -> None:
        """Open the connection and PING it.

        redis-py connects lazily, so the PING is what actually surfaces an
        unreachable server (bounded by connect_timeout).

        Raises:
            EnrichmentSetupError: kind STORE_UNAVAILABLE on any failure.
        """
        client: redis.Redis | None = None
        try:
            client = redis.Redis.from_url(
                self.config.url,
                socket_connect_timeout=self.config.connect_timeout,
                socket_timeout=self.config.socket_timeout,
                decode_responses=True,
            )
            client.ping()
        except (RedisError, ValueError) as e:
            if client is not None:
                client.close()
            raise EnrichmentSetupError(
                ErrorKind.STORE_UNAVAILABLE,
                f"failed to connect to Redis at {self.config.url}: {e}",
            ) from e
        self._redis = client
        logger.debug("connected to Redis at %s", self.config.url)

    def get(self, key: str) -> str | None:
        if self._redis is None:
            raise RuntimeError("Redis client is not connected")
        return self._redis.get(key)

    def close(self) -> None:
        if self._redis is None:
            return
        try:
            self._redis.close()
        except RedisError as e:  # pragma: no cover
            logger.debug("error while closing Redis client: %s", e)
        finally:
            self._redis = None


@contextmanager
def open_kv_client(config: StoreConfig) -> Iterator[KeyValueClient]:
    """Connect a RedisKeyValueClient for the duration of one run."""
    client = RedisKeyValueClient(config)
    client.connect()
    try:
        yield client
    finally:
        client.close()
