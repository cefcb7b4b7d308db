"""Tests for ``valkey_cache.connector.Connector``: lazy once-only connect."""

import threading
import time
from unittest.mock import MagicMock

import pytest
import redis

from valkey_cache.connector import Connector, default_client_factory
from valkey_cache.errors import CacheConnectionError
from valkey_cache.settings import CacheConfig


class TestDefaultClientFactory:
    def test_builds_client_from_config(self, monkeypatch):
        mock_redis = MagicMock()
        monkeypatch.setattr(redis, "Redis", mock_redis)

        config = CacheConfig(host="cache.internal", port=7000, db=2, socket_timeout=1.5)
        client = default_client_factory(config)

        assert client is mock_redis.return_value
        mock_redis.assert_called_once_with(
            host="cache.internal",
            port=7000,
            db=2,
            username=None,
            password=None,
            socket_timeout=1.5,
            socket_connect_timeout=None,
            decode_responses=False,
        )

    def test_connector_uses_default_factory(self, monkeypatch):
        mock_redis = MagicMock()
        monkeypatch.setattr(redis, "Redis", mock_redis)

        connector = Connector()
        client = connector.get_client()

        assert client is mock_redis.return_value
        client.ping.assert_called_once_with()
        assert mock_redis.call_args.kwargs["host"] == "localhost"
        assert mock_redis.call_args.kwargs["port"] == 6739


class TestConnectorOnce:
    def test_no_connection_until_first_use(self):
        factory = MagicMock()
        connector = Connector(CacheConfig(), client_factory=factory)
        assert connector.connected is False
        assert connector.attempts == 0
        factory.assert_not_called()

    def test_memoizes_client(self, fake_client):
        factory = MagicMock(return_value=fake_client)
        connector = Connector(CacheConfig(), client_factory=factory)

        first = connector.get_client()
        second = connector.get_client()

        assert first is second is fake_client
        assert factory.call_count == 1
        assert connector.attempts == 1
        assert connector.connected is True
        assert fake_client.commands("ping") == [("ping",)]

    def test_separate_connectors_do_not_share_handles(self):
        a = Connector(CacheConfig(), client_factory=lambda cfg: MagicMock())
        b = Connector(CacheConfig(), client_factory=lambda cfg: MagicMock())
        assert a.get_client() is not b.get_client()


class TestConnectorRearm:
    def test_failure_raises_connection_error(self):
        client = MagicMock()
        client.ping.side_effect = redis.ConnectionError("Connection refused")
        connector = Connector(CacheConfig(host="down", port=7000), client_factory=lambda cfg: client)

        with pytest.raises(CacheConnectionError) as exc_info:
            connector.get_client()

        error = exc_info.value
        assert isinstance(error.__cause__, redis.ConnectionError)
        assert error.context.operation == "connect"
        assert error.context.host == "down"
        assert error.context.port == 7000
        assert "down:7000" in error.message

    def test_failure_is_not_memoized(self, fake_client):
        flaky = MagicMock()
        flaky.ping.side_effect = redis.ConnectionError("Connection refused")
        factory = MagicMock(side_effect=[flaky, fake_client])
        connector = Connector(CacheConfig(), client_factory=factory)

        with pytest.raises(CacheConnectionError):
            connector.get_client()
        assert connector.connected is False

        assert connector.get_client() is fake_client
        assert connector.attempts == 2

    def test_factory_redis_error_is_wrapped(self):
        factory = MagicMock(side_effect=redis.AuthenticationError("invalid password"))
        connector = Connector(CacheConfig(), client_factory=factory)
        with pytest.raises(CacheConnectionError):
            connector.get_client()

    def test_reset_forces_reconnect(self):
        factory = MagicMock(side_effect=[MagicMock(), MagicMock()])
        connector = Connector(CacheConfig(), client_factory=factory)

        first = connector.get_client()
        connector.reset()
        second = connector.get_client()

        assert first is not second
        assert connector.attempts == 2

    def test_invalidate_only_drops_current_handle(self):
        factory = MagicMock(side_effect=[MagicMock(), MagicMock()])
        connector = Connector(CacheConfig(), client_factory=factory)

        stale = connector.get_client()
        assert connector.invalidate(stale) is True
        fresh = connector.get_client()

        assert connector.invalidate(stale) is False
        assert connector.get_client() is fresh

    def test_close(self, connector, fake_client):
        connector.get_client()
        connector.close()
        assert fake_client.closed is True
        assert connector.connected is False

    def test_close_without_connection_is_noop(self):
        factory = MagicMock()
        Connector(CacheConfig(), client_factory=factory).close()
        factory.assert_not_called()


@pytest.mark.concurrency
class TestConnectorConcurrency:
    N = 16

    def _run(self, connector, release):
        results = [None] * self.N
        start = threading.Barrier(self.N + 1)

        def worker(i):
            start.wait()
            try:
                results[i] = connector.get_client()
            except CacheConnectionError as exc:
                results[i] = exc

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(self.N)]
        for t in threads:
            t.start()
        start.wait()
        time.sleep(0.2)
        release.set()
        for t in threads:
            t.join(timeout=5)
        return results

    def test_concurrent_first_calls_connect_once(self, fake_client):
        release = threading.Event()
        calls = []

        def factory(cfg):
            calls.append(cfg)
            release.wait(timeout=5)
            return fake_client

        connector = Connector(CacheConfig(), client_factory=factory)
        results = self._run(connector, release)

        assert len(calls) == 1
        assert connector.attempts == 1
        assert all(r is fake_client for r in results)

    def test_concurrent_first_calls_share_failure(self, fake_client):
        release = threading.Event()
        outcomes = iter([redis.ConnectionError("Connection refused")])

        def factory(cfg):
            release.wait(timeout=5)
            error = next(outcomes, None)
            if error is not None:
                raise error
            return fake_client

        connector = Connector(CacheConfig(), client_factory=factory)
        results = self._run(connector, release)

        assert connector.attempts == 1
        assert all(isinstance(r, CacheConnectionError) for r in results)
        assert len({id(r) for r in results}) == 1

        # Re-armed: the next caller makes a fresh attempt.
        assert connector.get_client() is fake_client
        assert connector.attempts == 2
