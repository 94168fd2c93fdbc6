"""
HashiCorp Vault client for queue service secrets.

Uses AppRole authentication. Fails fast on missing configuration.
All paths scoped to the 'winqroo/' prefix; nothing outside it is readable.
"""

import os
import logging
from typing import Dict

import hvac
from hvac.exceptions import InvalidPath, Unauthorized, Forbidden

logger = logging.getLogger(__name__)

# Project scope - all secrets under this path
_SECRET_PREFIX = "winqroo"

# Singleton instance and cache
_vault_client_instance: "VaultClient | None" = None
_secret_cache: Dict[str, str] = {}


def _ensure_vault_client() -> "VaultClient":
    global _vault_client_instance
    if _vault_client_instance is None:
        _vault_client_instance = VaultClient()
    return _vault_client_instance


class VaultClient:
    """Vault client with AppRole auth, env-based config, and fail-fast behavior."""

    def __init__(
        self,
        vault_addr: str | None = None,
        vault_namespace: str | None = None,
    ):
        """Initialize from environment variables. Fails fast on missing config."""
        self.vault_addr = vault_addr or os.getenv("VAULT_ADDR")
        self.vault_namespace = vault_namespace or os.getenv("VAULT_NAMESPACE")
        self.vault_role_id = os.getenv("VAULT_ROLE_ID")
        self.vault_secret_id = os.getenv("VAULT_SECRET_ID")

        if not self.vault_addr:
            raise ValueError("VAULT_ADDR environment variable is required")

        if not self.vault_role_id or not self.vault_secret_id:
            raise ValueError(
                "VAULT_ROLE_ID and VAULT_SECRET_ID environment variables are required"
            )

        client_kwargs = {"url": self.vault_addr}
        if self.vault_namespace:
            client_kwargs["namespace"] = self.vault_namespace

        self.client = hvac.Client(**client_kwargs)
        self._login()

        if not self.client.is_authenticated():
            raise PermissionError("Vault authentication failed")

        logger.info(f"Vault client initialized: {self.vault_addr}")

    def _login(self) -> None:
        try:
            auth_response = self.client.auth.approle.login(
                role_id=self.vault_role_id,
                secret_id=self.vault_secret_id,
            )
        except Exception as e:
            logger.error(f"AppRole authentication failed: {e}")
            raise PermissionError(f"AppRole authentication failed: {e}")

        self.client.token = auth_response["auth"]["client_token"]

    def get_secret(self, path: str, field: str) -> str:
        """
        Retrieve a single field from a KV v2 secret under 'winqroo/'.

        Args:
            path: Secret path relative to the prefix (e.g., 'database')
            field: Field name within the secret (e.g., 'url')

        Returns:
            Field value as string.

        Raises:
            PermissionError: Path not accessible or doesn't exist.
            KeyError: Field not found in secret.
        """
        full_path = f"{_SECRET_PREFIX}/{path}"

        try:
            response = self.client.secrets.kv.v2.read_secret_version(
                path=full_path, raise_on_deleted_version=True
            )
        except InvalidPath:
            logger.error(f"Secret path not found: {full_path}")
            raise PermissionError(f"Secret path '{full_path}' not found in Vault")
        except (Unauthorized, Forbidden) as e:
            logger.error(f"Access denied to secret {full_path}: {e}")
            raise PermissionError(f"Access denied to secret '{full_path}': {e}")

        secret_data = response["data"]["data"]
        if field not in secret_data:
            raise KeyError(
                f"Field '{field}' not found in secret '{full_path}'. "
                f"Available: {', '.join(secret_data)}"
            )
        return secret_data[field]


def _cached_secret(path: str, field: str) -> str:
    cache_key = f"{_SECRET_PREFIX}/{path}/{field}"
    if cache_key not in _secret_cache:
        _secret_cache[cache_key] = _ensure_vault_client().get_secret(path, field)
    return _secret_cache[cache_key]


def get_database_url() -> str:
    """PostgreSQL connection URL holding the queue tables."""
    return _cached_secret("database", "url")


def get_valkey_url() -> str:
    """Valkey connection URL for the queue snapshot cache."""
    return _cached_secret("valkey", "url")
