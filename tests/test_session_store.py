"""
Tests for server-side session principal storage.
"""

from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from core.session_store import (
    MemorySessionStore,
    RedisSessionStore,
    SessionPrincipal,
    SessionStore,
)


@pytest.mark.sessions
def test_memory_store_lifecycle():
    """Principals can be created, read back and destroyed."""
    store = MemorySessionStore()
    created = store.create("tok", "user-1")

    assert store.get("tok") is created
    assert created.expires_at - created.created_at == timedelta(hours=24)

    store.destroy("tok")
    assert store.get("tok") is None
    store.destroy("tok")


@pytest.mark.sessions
def test_memory_store_expiry_and_purge():
    """Expired principals disappear on read and on purge."""
    store = MemorySessionStore(ttl=timedelta(hours=24))
    old = store.create("old", "user-1")
    stale = store.create("stale", "user-2")
    store.create("fresh", "user-3")
    old.expires_at = datetime.utcnow() - timedelta(seconds=1)
    stale.expires_at = datetime.utcnow() - timedelta(minutes=5)

    assert store.get("old") is None
    assert store.purge_expired() == 1
    assert len(store) == 1
    assert store.get("fresh").user_id == "user-3"


@pytest.mark.sessions
def test_memory_store_create_drops_expired_principals():
    """Principals that are never read again are still cleared by later logins."""
    store = MemorySessionStore()
    abandoned = [store.create(f"tok-{i}", f"user-{i}") for i in range(50)]
    for principal in abandoned:
        principal.expires_at = datetime.utcnow() - timedelta(seconds=1)

    store.create("latest", "user-new")

    assert len(store) == 1
    assert store.get("latest").user_id == "user-new"


@pytest.mark.sessions
def test_incomplete_store_cannot_be_instantiated():
    """A backend missing part of the interface fails at construction."""

    class ReadOnlyStore(SessionStore):
        def get(self, token):
            return None

    with pytest.raises(TypeError):
        ReadOnlyStore()


@pytest.mark.sessions
def test_principal_json_round_trip():
    """Principals serialise for the Redis backend."""
    now = datetime(2024, 1, 2, 3, 4, 5)
    principal = SessionPrincipal("tok", "user-1", now, now + timedelta(hours=24))
    assert SessionPrincipal.from_json(principal.to_json()) == principal


@pytest.mark.sessions
def test_redis_store_sets_key_with_ttl():
    """create() writes one expiring key per token."""
    client = MagicMock()
    store = RedisSessionStore(client, ttl=timedelta(hours=24))

    principal = store.create("tok", "user-1")

    client.setex.assert_called_once_with("session:tok", timedelta(hours=24), principal.to_json())


@pytest.mark.sessions
def test_redis_store_reads_bytes_and_missing_keys():
    """get() decodes stored principals and reports unknown tokens as None."""
    client = MagicMock()
    store = RedisSessionStore(client)
    principal = store._new_principal("tok", "user-1")

    client.get.return_value = principal.to_json().encode("utf-8")
    assert store.get("tok") == principal

    client.get.return_value = None
    assert store.get("other") is None


@pytest.mark.sessions
def test_redis_store_drops_expired_principal():
    """A principal past its deadline is deleted even if Redis still holds it."""
    client = MagicMock()
    store = RedisSessionStore(client)
    principal = store._new_principal("tok", "user-1")
    principal.expires_at = datetime.utcnow() - timedelta(seconds=1)
    client.get.return_value = principal.to_json()

    assert store.get("tok") is None
    client.delete.assert_called_once_with("session:tok")


@pytest.mark.sessions
def test_redis_store_destroy():
    """destroy() deletes the token's key."""
    client = MagicMock()
    RedisSessionStore(client).destroy("tok")
    client.delete.assert_called_once_with("session:tok")
