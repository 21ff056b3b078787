"""Crownix Vault defaults.

Every value can be overridden through a ``CROWNIX_VAULT_*`` environment
variable; ``VaultConfig.from_env()`` reads them through this module.
"""
import os

from .version import __version__

# Container framing
VAULT_MAGIC = "CROWNIX_VAULT"
VAULT_FORMAT_VERSION = os.environ.get("CROWNIX_VAULT_FORMAT_VERSION", __version__)
HEADER_LENGTH_SIZE = 4  # u32 little-endian

# Key derivation / AEAD
KDF_ITERATIONS = int(os.environ.get("CROWNIX_VAULT_KDF_ITERATIONS", 200_000))
SALT_SIZE = 16
NONCE_SIZE = 12  # 96-bit GCM nonce
KEY_LENGTH = 32  # AES-256
TAG_SIZE = 16

# Auto-lock (seconds)
AUTO_LOCK_ENABLED = os.environ.get(
    "CROWNIX_VAULT_AUTO_LOCK", "true"
).lower() in ("1", "true", "yes", "on")
AUTO_LOCK_TIMEOUT = float(os.environ.get("CROWNIX_VAULT_AUTO_LOCK_TIMEOUT", 300))

# Vault files
VAULT_FILE_EXTENSION = ".cxv"
VAULT_FILE_NAME = "CrownixVault" + VAULT_FILE_EXTENSION

# Display labels for category soft references
UNCATEGORIZED_LABEL = "Uncategorized"
DELETED_SUFFIX = " (Deleted)"
