# koronet/cache.py
"""Key-value store client holding the Last-Request Marker."""
from typing import Optional

import redis

LAST_REQUEST_KEY = "last_request"
LAST_REQUEST_TTL_SECONDS = 3600


class LastRequestCache:
    """Thin wrapper around a redis client; command errors propagate to the caller."""

    def __init__(self, client: redis.Redis):
        self._client = client

    @classmethod
    def from_settings(cls, settings) -> "LastRequestCache":
        return cls(redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            password=settings.redis_password,
            decode_responses=True,
        ))

    def mark(self, timestamp: str) -> None:
        self._client.set(LAST_REQUEST_KEY, timestamp, ex=LAST_REQUEST_TTL_SECONDS)

    def last(self) -> Optional[str]:
        return self._client.get(LAST_REQUEST_KEY)

    def ping(self) -> None:
        self._client.ping()

    def close(self) -> None:
        self._client.close()
