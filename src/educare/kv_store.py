import json
import logging
from typing import Any, Dict, Iterable, List, Optional

import redis
from redis import Redis

from .config import settings

logger = logging.getLogger(__name__)

redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)


class KeyValueStore:
    """JSON documents over a Redis client.

    Single-key writes are atomic; there are no cross-key transactions.
    """

    def __init__(self, client: Redis):
        self.client = client

    def get(self, key: str) -> Optional[Any]:
        raw = self.client.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        self.client.set(key, json.dumps(value))

    def mset(self, items: Dict[str, Any]) -> None:
        if items:
            self.client.mset({key: json.dumps(value) for key, value in items.items()})

    def delete(self, key: str) -> None:
        self.client.delete(key)

    def mdelete(self, keys: Iterable[str]) -> None:
        keys = list(keys)
        if keys:
            self.client.delete(*keys)

    def keys_by_prefix(self, prefix: str) -> List[str]:
        return sorted(self.client.scan_iter(match=f"{prefix}*"))

    def get_by_prefix(self, prefix: str) -> List[Any]:
        keys = self.keys_by_prefix(prefix)
        if not keys:
            return []
        return [json.loads(raw) for raw in self.client.mget(keys) if raw is not None]


def get_redis() -> Redis:
    return redis_client


def get_store() -> KeyValueStore:
    return KeyValueStore(get_redis())
