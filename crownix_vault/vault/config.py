"""
Vault Configuration — Validated engine settings.

Defaults come from :mod:`crownix_vault.conf`, which reads the
``CROWNIX_VAULT_*`` environment variables:
    CROWNIX_VAULT_KDF_ITERATIONS = <int, PBKDF2 rounds>
    CROWNIX_VAULT_FORMAT_VERSION = <str, header version for new vaults>
    CROWNIX_VAULT_AUTO_LOCK = <bool>
    CROWNIX_VAULT_AUTO_LOCK_TIMEOUT = <seconds>

Security Note:
    Configuration never carries key material or passwords.
"""
import os
import logging

from pydantic import BaseModel, Field, field_validator

from .. import conf

logger = logging.getLogger("crownix.vault")

_TRUE_VALUES = ("1", "true", "yes", "on")


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    magic: str = Field(default=conf.VAULT_MAGIC, min_length=1)
    format_version: str = Field(default=conf.VAULT_FORMAT_VERSION, min_length=1)
    kdf_iterations: int = Field(default=conf.KDF_ITERATIONS, ge=1)
    auto_lock_enabled: bool = Field(default=conf.AUTO_LOCK_ENABLED)
    auto_lock_timeout: float = Field(default=conf.AUTO_LOCK_TIMEOUT, gt=0)

    model_config = {"frozen": True}

    @field_validator("kdf_iterations")
    @classmethod
    def warn_weak_iterations(cls, v: int) -> int:
        """Warn when the KDF work factor is below the default."""
        if v < conf.KDF_ITERATIONS:
            logger.warning(
                "KDF iterations set to %d (default %d); containers written "
                "with this setting need the same value to open",
                v, conf.KDF_ITERATIONS,
            )
        return v

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Returns:
            Populated VaultConfig instance.
        """
        values: dict = {}
        if "CROWNIX_VAULT_KDF_ITERATIONS" in os.environ:
            values["kdf_iterations"] = int(os.environ["CROWNIX_VAULT_KDF_ITERATIONS"])
        if "CROWNIX_VAULT_FORMAT_VERSION" in os.environ:
            values["format_version"] = os.environ["CROWNIX_VAULT_FORMAT_VERSION"]
        if "CROWNIX_VAULT_AUTO_LOCK" in os.environ:
            values["auto_lock_enabled"] = (
                os.environ["CROWNIX_VAULT_AUTO_LOCK"].lower() in _TRUE_VALUES
            )
        if "CROWNIX_VAULT_AUTO_LOCK_TIMEOUT" in os.environ:
            values["auto_lock_timeout"] = float(
                os.environ["CROWNIX_VAULT_AUTO_LOCK_TIMEOUT"]
            )
        config = cls(**values)
        logger.debug(
            "Vault config loaded: version=%s iterations=%d auto_lock=%s/%ss",
            config.format_version, config.kdf_iterations,
            config.auto_lock_enabled, config.auto_lock_timeout,
        )
        return config
