# core/session_store.py
"""
Server-side session principal storage

The browser only ever holds an opaque token inside the signed Flask
session cookie. The token maps to a SessionPrincipal kept here, with a
fixed time-to-live counted from login. Reading a principal never extends
its lifetime.

Two backends share one interface:
- MemorySessionStore: process-wide dict, for development and tests
- RedisSessionStore: Redis keys with server-side expiry, for production
"""

import json
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional

import redis

logger = logging.getLogger(__name__)


@dataclass
class SessionPrincipal:
    """Authenticated identity bound to one browser session"""
    token: str
    user_id: str
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.utcnow()) >= self.expires_at

    def to_json(self) -> str:
        return json.dumps({
            'token': self.token,
            'user_id': self.user_id,
            'created_at': self.created_at.isoformat(),
            'expires_at': self.expires_at.isoformat(),
        })

    @classmethod
    def from_json(cls, raw: str) -> 'SessionPrincipal':
        data = json.loads(raw)
        return cls(
            token=data['token'],
            user_id=data['user_id'],
            created_at=datetime.fromisoformat(data['created_at']),
            expires_at=datetime.fromisoformat(data['expires_at']),
        )


class SessionStore(ABC):
    """Interface for session principal backends"""

    def __init__(self, ttl: timedelta = timedelta(hours=24)):
        self.ttl = ttl

    def _new_principal(self, token: str, user_id: str) -> SessionPrincipal:
        now = datetime.utcnow()
        return SessionPrincipal(
            token=token,
            user_id=user_id,
            created_at=now,
            expires_at=now + self.ttl,
        )

    @abstractmethod
    def create(self, token: str, user_id: str) -> SessionPrincipal:
        """Store a new principal for a freshly issued token"""

    @abstractmethod
    def get(self, token: str) -> Optional[SessionPrincipal]:
        """The live principal for a token, or None if unknown or expired"""

    @abstractmethod
    def destroy(self, token: str) -> None:
        """Forget a token; unknown tokens are ignored"""


class MemorySessionStore(SessionStore):
    """Process-wide in-memory principals"""

    def __init__(self, ttl: timedelta = timedelta(hours=24)):
        super().__init__(ttl)
        self._principals: Dict[str, SessionPrincipal] = {}
        self._lock = threading.Lock()

    def create(self, token: str, user_id: str) -> SessionPrincipal:
        principal = self._new_principal(token, user_id)
        with self._lock:
            self._drop_expired(principal.created_at)
            self._principals[token] = principal
        return principal

    def get(self, token: str) -> Optional[SessionPrincipal]:
        with self._lock:
            principal = self._principals.get(token)
            if principal is None:
                return None
            if principal.is_expired():
                del self._principals[token]
                logger.debug("Session expired for user %s", principal.user_id)
                return None
            return principal

    def destroy(self, token: str) -> None:
        with self._lock:
            self._principals.pop(token, None)

    def purge_expired(self) -> int:
        """Drop every expired principal, returning how many were removed"""
        with self._lock:
            return self._drop_expired(datetime.utcnow())

    def _drop_expired(self, now: datetime) -> int:
        # Caller holds the lock
        expired = [t for t, p in self._principals.items() if p.is_expired(now)]
        for token in expired:
            del self._principals[token]
        return len(expired)

    def __len__(self):
        return len(self._principals)


class RedisSessionStore(SessionStore):
    """Principals stored as Redis keys that expire on their own"""

    key_prefix = 'session:'

    def __init__(self, client: redis.Redis, ttl: timedelta = timedelta(hours=24)):
        super().__init__(ttl)
        self.client = client

    def _key(self, token: str) -> str:
        return f"{self.key_prefix}{token}"

    def create(self, token: str, user_id: str) -> SessionPrincipal:
        principal = self._new_principal(token, user_id)
        self.client.setex(self._key(token), self.ttl, principal.to_json())
        return principal

    def get(self, token: str) -> Optional[SessionPrincipal]:
        raw = self.client.get(self._key(token))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode('utf-8')
        principal = SessionPrincipal.from_json(raw)
        # Redis expiry is coarse; enforce the exact deadline as well
        if principal.is_expired():
            self.destroy(token)
            return None
        return principal

    def destroy(self, token: str) -> None:
        self.client.delete(self._key(token))


def create_session_store(app) -> SessionStore:
    """Build the configured backend and attach it to the app"""
    ttl = app.config.get('SESSION_TTL', timedelta(hours=24))
    backend = app.config.get('SESSION_BACKEND', 'memory')

    if backend == 'redis':
        client = redis.Redis.from_url(
            app.config['REDIS_URL'],
            socket_connect_timeout=5,
            socket_timeout=5,
            health_check_interval=30,
        )
        try:
            client.ping()
            app.logger.info("Redis session store connected")
        except redis.ConnectionError as e:
            app.logger.error(f"Redis session store connection failed: {e}")
            raise
        store = RedisSessionStore(client, ttl)
    else:
        store = MemorySessionStore(ttl)
        app.logger.info("Using in-memory session store")

    app.extensions['session_store'] = store
    return store
