from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from settlement_enricher.errors import EnrichmentSetupError, ErrorKind
from settlement_enricher.models.config_models import StoreConfig
from settlement_enricher.store.kv_client import RedisKeyValueClient, open_kv_client


def test_connect_builds_client_from_config():
    config = StoreConfig(url="redis://cache:6380/1", connect_timeout=3.0, socket_timeout=1.5)
    mock_redis = MagicMock()

    with patch("settlement_enricher.store.kv_client.redis.Redis.from_url", return_value=mock_redis) as from_url:
        client = RedisKeyValueClient(config)
        client.connect()

    from_url.assert_called_once_with(
        "redis://cache:6380/1",
        socket_connect_timeout=3.0,
        socket_timeout=1.5,
        decode_responses=True,
    )
    mock_redis.ping.assert_called_once()


def test_get_delegates_to_redis():
    mock_redis = MagicMock()
    mock_redis.get.return_value = '{"homeTransactionId": "H1"}'

    with patch("settlement_enricher.store.kv_client.redis.Redis.from_url", return_value=mock_redis):
        client = RedisKeyValueClient(StoreConfig())
        client.connect()
        assert client.get("transferModel_in_T1") == '{"homeTransactionId": "H1"}'

    mock_redis.get.assert_called_once_with("transferModel_in_T1")


def test_get_before_connect_raises():
    with pytest.raises(RuntimeError):
        RedisKeyValueClient(StoreConfig()).get("k")


@pytest.mark.parametrize("exc", [RedisConnectionError("refused"), RedisTimeoutError("timed out")])
def test_connect_failure_is_setup_error(exc):
    mock_redis = MagicMock()
    mock_redis.ping.side_effect = exc

    with patch("settlement_enricher.store.kv_client.redis.Redis.from_url", return_value=mock_redis):
        with pytest.raises(EnrichmentSetupError) as e:
            RedisKeyValueClient(StoreConfig(url="redis://nowhere:6379")).connect()

    assert e.value.kind is ErrorKind.STORE_UNAVAILABLE
    assert "redis://nowhere:6379" in str(e.value)
    mock_redis.close.assert_called_once()


def test_invalid_url_is_setup_error():
    with pytest.raises(EnrichmentSetupError) as e:
        RedisKeyValueClient(StoreConfig(url="http://not-redis")).connect()
    assert e.value.kind is ErrorKind.STORE_UNAVAILABLE


def test_open_kv_client_closes_on_success():
    mock_redis = MagicMock()
    with patch("settlement_enricher.store.kv_client.redis.Redis.from_url", return_value=mock_redis):
        with open_kv_client(StoreConfig()) as client:
            client.get("k")
    mock_redis.close.assert_called_once()


def test_open_kv_client_closes_on_failure():
    mock_redis = MagicMock()
    with patch("settlement_enricher.store.kv_client.redis.Redis.from_url", return_value=mock_redis):
        with pytest.raises(KeyError):
            with open_kv_client(StoreConfig()):
                raise KeyError("boom")
    mock_redis.close.assert_called_once()


def test_close_is_idempotent():
    mock_redis = MagicMock()
    with patch("settlement_enricher.store.kv_client.redis.Redis.from_url", return_value=mock_redis):
        client = RedisKeyValueClient(StoreConfig())
        client.connect()
        client.close()
        client.close()
    mock_redis.close.assert_called_once()
