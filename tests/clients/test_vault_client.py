"""Tests for VaultClient - HashiCorp Vault secrets management."""

from unittest.mock import patch

import pytest
from hvac.exceptions import Forbidden, InvalidPath

import clients.vault_client as vault_module
from clients.vault_client import VaultClient, get_database_url, get_valkey_url


@pytest.fixture
def vault_env(monkeypatch):
    monkeypatch.setenv("VAULT_ADDR", "http://vault.test:8200")
    monkeypatch.setenv("VAULT_ROLE_ID", "role")
    monkeypatch.setenv("VAULT_SECRET_ID", "secret")
    monkeypatch.delenv("VAULT_NAMESPACE", raising=False)


@pytest.fixture
def hvac_client(vault_env):
    with patch("clients.vault_client.hvac.Client") as client_cls:
        instance = client_cls.return_value
        instance.auth.approle.login.return_value = {"auth": {"client_token": "t"}}
        instance.is_authenticated.return_value = True
        yield instance


@pytest.fixture(autouse=True)
def reset_singleton():
    vault_module._vault_client_instance = None
    vault_module._secret_cache.clear()
    yield
    vault_module._vault_client_instance = None
    vault_module._secret_cache.clear()


class TestVaultClientInit:
    """Initialization and authentication."""

    def test_missing_vault_addr_raises(self, monkeypatch):
        monkeypatch.delenv("VAULT_ADDR", raising=False)
        with pytest.raises(ValueError, match="VAULT_ADDR"):
            VaultClient()

    def test_missing_approle_credentials_raises(self, vault_env, monkeypatch):
        monkeypatch.delenv("VAULT_ROLE_ID")
        with pytest.raises(ValueError, match="VAULT_ROLE_ID"):
            VaultClient()

    def test_failed_login_raises_permission_error(self, hvac_client):
        hvac_client.auth.approle.login.side_effect = RuntimeError("denied")
        with pytest.raises(PermissionError, match="authentication"):
            VaultClient()

    def test_valid_approle_sets_token(self, hvac_client):
        client = VaultClient()
        assert client.client.token == "t"


class TestGetSecret:
    """Secret retrieval - paths automatically scoped to winqroo/."""

    def test_reads_under_prefix(self, hvac_client):
        hvac_client.secrets.kv.v2.read_secret_version.return_value = {
            "data": {"data": {"url": "postgresql://q"}}
        }

        assert VaultClient().get_secret("database", "url") == "postgresql://q"
        kwargs = hvac_client.secrets.kv.v2.read_secret_version.call_args.kwargs
        assert kwargs["path"] == "winqroo/database"

    def test_missing_path_raises(self, hvac_client):
        hvac_client.secrets.kv.v2.read_secret_version.side_effect = InvalidPath()
        with pytest.raises(PermissionError, match="not found"):
            VaultClient().get_secret("nonexistent", "field")

    def test_forbidden_raises(self, hvac_client):
        hvac_client.secrets.kv.v2.read_secret_version.side_effect = Forbidden()
        with pytest.raises(PermissionError, match="Access denied"):
            VaultClient().get_secret("database", "url")

    def test_missing_field_raises_keyerror(self, hvac_client):
        hvac_client.secrets.kv.v2.read_secret_version.return_value = {
            "data": {"data": {"url": "x"}}
        }
        with pytest.raises(KeyError, match="not found"):
            VaultClient().get_secret("database", "nonexistent_field")


class TestConvenienceFunctions:
    """Module-level convenience functions."""

    def test_urls_are_cached(self, hvac_client):
        read = hvac_client.secrets.kv.v2.read_secret_version
        read.return_value = {"data": {"data": {"url": "redis://cache"}}}

        assert get_valkey_url() == "redis://cache"
        assert get_valkey_url() == "redis://cache"
        assert read.call_count == 1

    def test_database_url(self, hvac_client):
        hvac_client.secrets.kv.v2.read_secret_version.return_value = {
            "data": {"data": {"url": "postgresql://db"}}
        }
        assert get_database_url() == "postgresql://db"
