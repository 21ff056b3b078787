"""Crownix Vault.

Local, password protected secrets vault: an encrypted container on disk,
decrypted into memory only while a session is unlocked.
"""
from .version import __version__
from .data import (
    DecryptedVault,
    PasswordCategory,
    PasswordCustomField,
    PasswordItem,
    VaultSettings,
    initial_vault,
)
from .exceptions import (
    AuthenticationError,
    DanglingCategoryReferenceWarning,
    DuplicateIdError,
    InvalidEntityError,
    MalformedContainerError,
    NotFoundError,
    SessionLockedError,
    StaleSessionError,
    VaultError,
    VaultStateError,
    VaultStorageError,
)
from .vault import SessionManager, VaultConfig, VaultLifecycleCoordinator

__all__ = (
    "__version__",
    "DecryptedVault",
    "PasswordCategory",
    "PasswordCustomField",
    "PasswordItem",
    "VaultSettings",
    "initial_vault",
    "AuthenticationError",
    "DanglingCategoryReferenceWarning",
    "DuplicateIdError",
    "InvalidEntityError",
    "MalformedContainerError",
    "NotFoundError",
    "SessionLockedError",
    "StaleSessionError",
    "VaultError",
    "VaultStateError",
    "VaultStorageError",
    "SessionManager",
    "VaultConfig",
    "VaultLifecycleCoordinator",
)
