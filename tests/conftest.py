"""
Shared pytest fixtures for valkey-cache tests.

This module provides:
- ``FakeValkeyClient``: an in-memory stand-in for ``redis.Redis`` that records
  every command it receives
- Connector / raw cache fixtures wired to the fake client
- Environment isolation for ``CacheConfig``

No live Valkey server is needed.
"""

import os
import sys
from pathlib import Path

import pytest

# Ensure valkey_cache package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from valkey_cache.connector import Connector
from valkey_cache.raw import ValkeyRawCache
from valkey_cache.settings import CacheConfig


class FakeValkeyClient:
    """Dict-backed client speaking the subset of commands the accessor uses."""

    def __init__(self):
        self.store: dict[str, bytes] = {}
        self.ttls: dict[str, int] = {}
        self.calls: list[tuple] = []
        self.closed = False

    def ping(self):
        self.calls.append(("ping",))
        return True

    def get(self, key):
        self.calls.append(("get", key))
        return self.store.get(key)

    def set(self, key, value, ex=None):
        self.calls.append(("set", key, value, ex))
        self.store[key] = bytes(value)
        if ex is not None:
            self.ttls[key] = ex
        else:
            self.ttls.pop(key, None)
        return True

    def expire(self, key, seconds):
        self.calls.append(("expire", key, seconds))
        if key not in self.store:
            return False
        if seconds <= 0:
            del self.store[key]
            self.ttls.pop(key, None)
        else:
            self.ttls[key] = seconds
        return True

    def delete(self, *keys):
        self.calls.append(("delete", *keys))
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    def close(self):
        self.closed = True

    def commands(self, name):
        """Return recorded calls for one command name."""
        return [call for call in self.calls if call[0] == name]


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path):
    """Keep VALKEY_CACHE_* variables and stray .env files out of tests."""
    for name in list(os.environ):
        if name.startswith("VALKEY_CACHE_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def fake_client():
    return FakeValkeyClient()


@pytest.fixture
def config():
    return CacheConfig(use_cache=True)


@pytest.fixture
def connector(config, fake_client):
    return Connector(config, client_factory=lambda cfg: fake_client)


@pytest.fixture
def raw_cache(connector):
    return ValkeyRawCache(connector=connector)
