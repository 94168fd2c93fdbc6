"""Tests for ValkeyClient with redis-py mocked out."""

from unittest.mock import patch

import pytest

from clients.valkey_client import ValkeyClient


@pytest.fixture
def redis_mock():
    with patch("clients.valkey_client.redis.from_url") as from_url:
        yield from_url.return_value


@pytest.fixture
def client(redis_mock):
    return ValkeyClient("redis://localhost:6379/0")


class TestValkeyClient:

    def test_connect_pings(self, redis_mock, client):
        redis_mock.ping.assert_called_once()

    def test_set_json_uses_ttl(self, redis_mock, client):
        client.set_json("k", [{"position": 1}], expire_seconds=5)
        redis_mock.setex.assert_called_once_with("k", 5, '[{"position": 1}]')

    def test_get_json_missing(self, redis_mock, client):
        redis_mock.get.return_value = None
        assert client.get_json("k") is None

    def test_get_json_decodes(self, redis_mock, client):
        redis_mock.get.return_value = '{"a": 1}'
        assert client.get_json("k") == {"a": 1}

    def test_get_json_invalid(self, redis_mock, client):
        redis_mock.get.return_value = "not json"
        with pytest.raises(ValueError, match="Invalid JSON"):
            client.get_json("k")

    def test_delete_reports_existence(self, redis_mock, client):
        redis_mock.delete.return_value = 0
        assert client.delete("k") is False
