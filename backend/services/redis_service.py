import json
import asyncio
from typing import Any, Awaitable, Dict, Optional
import redis.asyncio as aioredis
from redis.asyncio import Redis

from core.config import settings
from core.logging import logger

# Every cache call gives up after this long; callers fall back to the database
OPERATION_TIMEOUT_SECONDS = 2.0

class RedisService:
    """
    Best-effort JSON cache in front of the snapshot loader.

    Nothing here raises: a missing connection, a timeout or a Redis error all
    read as a cache miss (or a skipped write) and are logged.
    """

    def __init__(self, prefix: str = "handoff"):
        self.prefix = prefix
        self.redis_pool: Optional[Redis] = None

    def _url(self) -> str:
        credentials = f":{settings.REDIS_PASSWORD}@" if settings.REDIS_PASSWORD else ""
        return f"redis://{credentials}{settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}"

    async def connect(self) -> None:
        client = aioredis.from_url(
            self._url(),
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
            retry_on_timeout=True,
            decode_responses=True,
        )
        try:
            await client.ping()
        except Exception as e:
            logger.error(f"❌ Redis unavailable at {settings.REDIS_HOST}:{settings.REDIS_PORT}: {e}")
            await client.aclose()
            self.redis_pool = None
            return
        self.redis_pool = client
        logger.info(f"✅ Connected to Redis at {settings.REDIS_HOST}:{settings.REDIS_PORT}")

    async def disconnect(self) -> None:
        if self.redis_pool is None:
            return
        await self.redis_pool.aclose()
        self.redis_pool = None
        logger.info("Redis connection closed")

    @property
    def available(self) -> bool:
        return self.redis_pool is not None

    def key(self, name: str) -> str:
        return f"{self.prefix}:{name}"

    async def _run(self, operation: str, name: str, call: Awaitable) -> Any:
        try:
            return await asyncio.wait_for(call, timeout=OPERATION_TIMEOUT_SECONDS)
        except asyncio.TimeoutError:
            logger.warning(f"⏱️ Redis {operation} timed out for {self.key(name)}")
        except Exception as e:
            logger.error(f"❌ Redis {operation} failed for {self.key(name)}: {e}")
        return None

    async def get(self, name: str) -> Optional[Dict]:
        if not self.available:
            return None
        raw = await self._run("get", name, self.redis_pool.get(self.key(name)))
        if raw is None:
            logger.debug(f"Cache miss for {self.key(name)}")
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"❌ Corrupt cache entry {self.key(name)}: {e}")
            await self.delete(name)
            return None

    async def set(self, name: str, data: Dict, ttl: Optional[int] = None) -> bool:
        if not self.available:
            return False
        payload = json.dumps(data, default=str)
        if ttl:
            call = self.redis_pool.setex(self.key(name), ttl, payload)
        else:
            call = self.redis_pool.set(self.key(name), payload)
        stored = await self._run("set", name, call)
        return bool(stored)

    async def delete(self, name: str) -> bool:
        if not self.available:
            return False
        removed = await self._run("delete", name, self.redis_pool.delete(self.key(name)))
        return bool(removed)

    async def get_cache_stats(self) -> Dict[str, Any]:
        if not self.available:
            return {"status": "disconnected"}
        info = await self._run("info", "*", self.redis_pool.info())
        if info is None:
            return {"status": "error"}
        return {
            "status": "connected",
            "used_memory": info.get("used_memory_human", "unknown"),
            "connected_clients": info.get("connected_clients", 0),
            "keyspace_hits": info.get("keyspace_hits", 0),
            "keyspace_misses": info.get("keyspace_misses", 0),
        }

# Global Redis service instance
redis_service = RedisService()

def family_snapshot_cache_key(family_id: str) -> str:
    return f"family:{family_id}:snapshot"
