"""Redis connection management.

Provides one proxy object shared by the ledger store and the readiness probe.
"""

from __future__ import annotations

import redis.asyncio as redis


class RedisProxy:
	"""Lightweight proxy that forwards attribute access to an underlying Redis client."""

	def __init__(self, client: redis.Redis):
		self._client: redis.Redis = client

	@property
	def client(self) -> redis.Redis:
		return self._client

	def __getattr__(self, item):
		return getattr(self._client, item)


def create_redis_proxy(url: str) -> RedisProxy:
	# from_url does not connect until the first command
	return RedisProxy(redis.from_url(url, decode_responses=True))
