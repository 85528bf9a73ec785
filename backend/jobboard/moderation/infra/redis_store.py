"""Redis-backed ledger store shared by every API worker."""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any, AsyncIterator, Mapping

from redis.asyncio import Redis
from redis.exceptions import LockError, RedisError

from jobboard.infra.redis import RedisProxy
from jobboard.moderation.domain.ledger import LedgerStoreError

logger = logging.getLogger(__name__)


class RedisLedgerStore:
    """Stores one JSON document per actor under ``mod:<namespace>:<actor>``.

    Documents expire after ``ttl`` so abandoned ledgers do not accumulate. The
    per-actor lock is a Redis lock, which serializes concurrent requests for the
    same actor across processes.
    """

    name = "redis"

    def __init__(
        self,
        redis: Redis | RedisProxy,
        *,
        namespace: str = "profanity",
        ttl: timedelta | None = None,
        lock_timeout: float = 5.0,
        blocking_timeout: float | None = None,
    ) -> None:
        self._redis = redis
        self._namespace = namespace
        self._ttl_seconds = int(ttl.total_seconds()) if ttl else None
        self._lock_timeout = lock_timeout
        self._blocking_timeout = blocking_timeout if blocking_timeout is not None else lock_timeout

    def key(self, actor_id: str) -> str:
        return f"mod:{self._namespace}:{actor_id}"

    async def get(self, actor_id: str) -> Mapping[str, Any] | None:
        try:
            raw = await self._redis.get(self.key(actor_id))
        except RedisError as exc:
            raise LedgerStoreError(f"redis get failed for {actor_id}") from exc
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise LedgerStoreError(f"corrupt ledger document for {actor_id}") from exc

    async def set(self, actor_id: str, document: Mapping[str, Any]) -> None:
        payload = json.dumps(document, separators=(",", ":"))
        try:
            await self._redis.set(self.key(actor_id), payload, ex=self._ttl_seconds)
        except RedisError as exc:
            raise LedgerStoreError(f"redis set failed for {actor_id}") from exc

    async def delete(self, actor_id: str) -> None:
        try:
            await self._redis.delete(self.key(actor_id))
        except RedisError as exc:
            raise LedgerStoreError(f"redis delete failed for {actor_id}") from exc

    @asynccontextmanager
    async def lock(self, actor_id: str) -> AsyncIterator[None]:
        lock = self._redis.lock(
            f"{self.key(actor_id)}:lock",
            timeout=self._lock_timeout,
            blocking_timeout=self._blocking_timeout,
        )
        try:
            acquired = await lock.acquire()
        except RedisError as exc:
            raise LedgerStoreError(f"redis lock failed for {actor_id}") from exc
        if not acquired:
            raise LedgerStoreError(f"timed out waiting for ledger lock of {actor_id}")
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                # lock expired while held; the write already happened
                logger.warning("ledger lock for %s expired before release", actor_id)
            except RedisError:
                logger.warning("ledger lock release failed for %s", actor_id, exc_info=True)
