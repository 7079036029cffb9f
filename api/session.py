"""Session storage: signed session ids, snapshot stores and per-session locks."""

import asyncio
import json
import logging
import weakref
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any
from uuid import uuid4

import redis.asyncio as redis
from redis.exceptions import RedisError
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from config import config

logger = logging.getLogger(__name__)


class SessionSigner:
    """Sign and verify session IDs using itsdangerous."""

    def __init__(self, secret_key: str | None = None, salt: str = "blackjack-table") -> None:
        self._serializer = URLSafeTimedSerializer(
            secret_key or config.security.secret_key, salt=salt
        )

    def sign(self, session_id: str) -> str:
        return self._serializer.dumps(session_id)

    def unsign(self, token: str, max_age: int | None = None) -> str | None:
        """
        Verify a signed token.

        Returns:
            The session ID if the token is genuine and not expired, None otherwise
        """
        try:
            return self._serializer.loads(token, max_age=max_age or config.session.ttl)
        except (BadSignature, SignatureExpired):
            return None


class SessionStore(ABC):
    """Stores one JSON-serializable snapshot per session token."""

    @abstractmethod
    async def load(self, token: str) -> dict[str, Any] | None:
        ...

    @abstractmethod
    async def save(self, token: str, data: dict[str, Any], ttl: int | None = None) -> None:
        ...

    @abstractmethod
    async def delete(self, token: str) -> None:
        ...

    def purge_expired(self) -> int:
        """Drop expired entries and return how many were removed."""
        return 0


class InMemorySessionStore(SessionStore):
    """In-process store for local development and tests."""

    def __init__(self) -> None:
        self._entries: dict[str, tuple[dict[str, Any], datetime]] = {}

    async def load(self, token: str) -> dict[str, Any] | None:
        entry = self._entries.get(token)
        if entry is None:
            return None
        data, expires_at = entry
        if expires_at < datetime.now():
            del self._entries[token]
            return None
        return data

    async def save(self, token: str, data: dict[str, Any], ttl: int | None = None) -> None:
        expires_at = datetime.now() + timedelta(seconds=ttl or config.session.ttl)
        self._entries[token] = (data, expires_at)

    async def delete(self, token: str) -> None:
        self._entries.pop(token, None)

    def purge_expired(self) -> int:
        now = datetime.now()
        expired = [token for token, (_, expires_at) in self._entries.items() if expires_at < now]
        for token in expired:
            del self._entries[token]
        return len(expired)


class RedisSessionStore(SessionStore):
    """Redis-backed store; snapshots are JSON strings with a TTL that Redis expires itself."""

    key_prefix = "blackjack:table:"

    def __init__(self, client: redis.Redis) -> None:
        self._redis = client

    async def load(self, token: str) -> dict[str, Any] | None:
        raw = await self._redis.get(self.key_prefix + token)
        return json.loads(raw) if raw is not None else None

    async def save(self, token: str, data: dict[str, Any], ttl: int | None = None) -> None:
        await self._redis.setex(self.key_prefix + token, ttl or config.session.ttl, json.dumps(data))

    async def delete(self, token: str) -> None:
        await self._redis.delete(self.key_prefix + token)


class SessionRegistry:
    """
    Issues session tokens and serializes access to each session.

    The game core assumes exclusive access, so every mutation of a session
    must run while holding that session's lock. Locks are only kept while
    someone holds or waits on them.
    """

    def __init__(self, store: SessionStore, signer: SessionSigner | None = None) -> None:
        self.store = store
        self.signer = signer or SessionSigner()
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def new_token(self) -> str:
        return self.signer.sign(str(uuid4()))

    def is_valid(self, token: str) -> bool:
        return self.signer.unsign(token) is not None

    def lock(self, token: str) -> asyncio.Lock:
        lock = self._locks.get(token)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[token] = lock
        return lock

    @property
    def active_locks(self) -> int:
        return len(self._locks)

    async def discard(self, token: str) -> None:
        """Delete a session's stored snapshot."""
        await self.store.delete(token)


async def _connect_store() -> SessionStore:
    if config.session.backend == "redis":
        client = redis.from_url(config.redis.url)
        try:
            await client.ping()
        except RedisError as exc:
            logger.warning("Redis unavailable at %s (%s), using in-memory sessions", config.redis.url, exc)
        else:
            logger.info("Using Redis session store at %s", config.redis.url)
            return RedisSessionStore(client)
    return InMemorySessionStore()


# Global registry instance
_registry: SessionRegistry | None = None


async def get_registry() -> SessionRegistry:
    """Get or create the session registry."""
    global _registry
    if _registry is None:
        _registry = SessionRegistry(await _connect_store())
    return _registry


def reset_registry(registry: SessionRegistry | None = None) -> None:
    """Replace the global registry (used by tests)."""
    global _registry
    _registry = registry
