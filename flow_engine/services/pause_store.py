"""
Pause-state stores.

A paused run's ContextSnapshot is kept under its run id until it is resumed
or its TTL expires.
"""

import json
import logging
import time
from typing import Dict, Optional, Tuple

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..core.config import Settings, get_settings
from ..core.exceptions import PauseStoreError
from ..models.execution import ContextSnapshot

logger = logging.getLogger(__name__)


class PauseStore:
    async def put(self, run_id: str, snapshot: ContextSnapshot, ttl: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    async def get(self, run_id: str) -> Optional[ContextSnapshot]:  # pragma: no cover - interface
        raise NotImplementedError

    async def delete(self, run_id: str) -> bool:  # pragma: no cover - interface
        raise NotImplementedError


class InMemoryPauseStore(PauseStore):
    """Process-local store. Expired entries are dropped lazily on access."""

    def __init__(self, clock=time.monotonic) -> None:
        self._clock = clock
        self._data: Dict[str, Tuple[float, str]] = {}

    async def put(self, run_id: str, snapshot: ContextSnapshot, ttl: int) -> None:
        self._data[run_id] = (self._clock() + ttl, snapshot.model_dump_json())

    async def get(self, run_id: str) -> Optional[ContextSnapshot]:
        entry = self._data.get(run_id)
        if entry is None:
            return None
        expires_at, raw = entry
        if self._clock() >= expires_at:
            del self._data[run_id]
            return None
        return ContextSnapshot.model_validate_json(raw)

    async def delete(self, run_id: str) -> bool:
        return self._data.pop(run_id, None) is not None

    def __len__(self) -> int:
        return len(self._data)


class RedisPauseStore(PauseStore):
    """Redis-backed store using SETEX so Redis expires abandoned runs."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[redis.Redis] = None):
        self.settings = settings or get_settings()
        self._redis: Optional[redis.Redis] = client
        self._prefix = self.settings.pause_key_prefix

    def key(self, run_id: str) -> str:
        return f"{self._prefix}{run_id}"

    async def _get_redis(self) -> redis.Redis:
        """Get Redis connection with lazy initialization."""
        if self._redis is None:
            try:
                self._redis = redis.from_url(
                    self.settings.redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                    socket_connect_timeout=5,
                    socket_timeout=5,
                )
                await self._redis.ping()
                logger.info(f"Redis connected to {self.settings.redis_url}")
            except RedisError as e:
                self._redis = None
                logger.error(f"Failed to connect to Redis: {e}")
                raise PauseStoreError(f"Redis connection failed: {e}") from e
        return self._redis

    async def put(self, run_id: str, snapshot: ContextSnapshot, ttl: int) -> None:
        try:
            client = await self._get_redis()
            await client.setex(self.key(run_id), ttl, snapshot.model_dump_json())
            logger.info(f"Paused run {run_id} stored (ttl={ttl}s)")
        except RedisError as e:
            logger.error(f"Failed to store paused run {run_id}: {e}")
            raise PauseStoreError(f"Failed to store paused run: {e}") from e

    async def get(self, run_id: str) -> Optional[ContextSnapshot]:
        try:
            client = await self._get_redis()
            raw = await client.get(self.key(run_id))
        except RedisError as e:
            logger.error(f"Failed to load paused run {run_id}: {e}")
            raise PauseStoreError(f"Failed to load paused run: {e}") from e
        if raw is None:
            return None
        try:
            return ContextSnapshot.model_validate_json(raw)
        except ValueError as e:
            raise PauseStoreError(f"Corrupt snapshot for run {run_id}: {e}") from e

    async def delete(self, run_id: str) -> bool:
        try:
            client = await self._get_redis()
            return bool(await client.delete(self.key(run_id)))
        except RedisError as e:
            logger.error(f"Failed to delete paused run {run_id}: {e}")
            raise PauseStoreError(f"Failed to delete paused run: {e}") from e

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


__all__ = ["InMemoryPauseStore", "PauseStore", "RedisPauseStore"]
