"""
Tests for VaultConfig.

Tests cover:
- Defaults
- Environment loading
- Validation
"""
import pytest
from pydantic import ValidationError

from crownix_vault.vault.config import VaultConfig


class TestVaultConfig:
    """Tests for the validated configuration model."""

    def test_defaults(self):
        config = VaultConfig()
        assert config.magic == "CROWNIX_VAULT"
        assert config.kdf_iterations == 200_000
        assert config.auto_lock_enabled is True
        assert config.auto_lock_timeout == 300

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("CROWNIX_VAULT_KDF_ITERATIONS", "300000")
        monkeypatch.setenv("CROWNIX_VAULT_AUTO_LOCK", "off")
        monkeypatch.setenv("CROWNIX_VAULT_AUTO_LOCK_TIMEOUT", "60")
        monkeypatch.setenv("CROWNIX_VAULT_FORMAT_VERSION", "2.0.0")
        config = VaultConfig.from_env()
        assert config.kdf_iterations == 300_000
        assert config.auto_lock_enabled is False
        assert config.auto_lock_timeout == 60.0
        assert config.format_version == "2.0.0"

    def test_from_env_defaults(self, monkeypatch):
        for name in (
            "CROWNIX_VAULT_KDF_ITERATIONS",
            "CROWNIX_VAULT_AUTO_LOCK",
            "CROWNIX_VAULT_AUTO_LOCK_TIMEOUT",
            "CROWNIX_VAULT_FORMAT_VERSION",
        ):
            monkeypatch.delenv(name, raising=False)
        assert VaultConfig.from_env() == VaultConfig()

    def test_invalid_iterations(self):
        with pytest.raises(ValidationError):
            VaultConfig(kdf_iterations=0)

    def test_invalid_timeout(self):
        with pytest.raises(ValidationError):
            VaultConfig(auto_lock_timeout=0)

    def test_frozen(self):
        config = VaultConfig()
        with pytest.raises(ValidationError):
            config.kdf_iterations = 1
