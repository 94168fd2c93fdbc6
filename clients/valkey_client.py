"""
Valkey (Redis-compatible) client for short-lived queue snapshots.

Thin wrapper around redis-py holding JSON documents with a TTL. Connection
URL from Vault. Fail-fast: raises on connection failure; a missing key is
the only "not there" answer.
"""

import json
import logging

import redis

logger = logging.getLogger(__name__)


class ValkeyClient:
    """
    JSON key/value access to Valkey.

    Usage:
        client = ValkeyClient("redis://localhost:6379/0")
        client.set_json("queue:active:<shop>", [...], expire_seconds=5)
        snapshot = client.get_json("queue:active:<shop>")  # None if expired
    """

    def __init__(self, url: str):
        """
        Connect and verify the server answers.

        Args:
            url: Redis-compatible connection URL (e.g., redis://localhost:6379/0)

        Raises:
            redis.ConnectionError: If connection fails
        """
        self._client = redis.from_url(url, decode_responses=True)
        self._client.ping()
        logger.info("ValkeyClient connected")

    def ping(self) -> bool:
        """Health check. Raises redis.ConnectionError if unreachable."""
        self._client.ping()
        return True

    def set_json(self, key: str, value: dict | list, expire_seconds: int) -> None:
        """
        Store a JSON document that expires after `expire_seconds`.

        Args:
            key: Key to set
            value: JSON-serialisable dict or list
            expire_seconds: TTL in seconds
        """
        self._client.setex(key, expire_seconds, json.dumps(value))

    def get_json(self, key: str) -> dict | list | None:
        """
        Get and deserialize a JSON document.

        Returns None if the key doesn't exist or has expired.
        Raises ValueError if the stored value is not valid JSON.
        """
        value = self._client.get(key)
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in key '{key}': {e}")

    def delete(self, key: str) -> bool:
        """
        Delete key.

        Returns True if the key existed.
        """
        return self._client.delete(key) > 0

    def close(self) -> None:
        self._client.close()
        logger.info("ValkeyClient closed")
