"""Crownix Vault engine — Container codec, session key lifecycle and entity index.

Security Note (Threat Model):
    While a session is unlocked the derived key and every decrypted entity
    live in process memory. A memory dump of the process exposes them.
    Locking wipes the key in place and drops the index, but copies made by
    the interpreter or by callers cannot be scrubbed. This is an accepted
    limitation.
"""

from .config import VaultConfig
from .crypto import VaultKey, derive_key, encrypt, decrypt, generate_salt
from .container import VaultHeader
from .index import EntityIndex, EntityTable, IndexEvent
from .session import SessionManager, SessionState
from .key_rotation import rotate_master_password
from .lifecycle import VaultLifecycleCoordinator
from .autolock import AutoLockTimer

__all__ = [
    "VaultConfig",
    "VaultKey",
    "derive_key",
    "encrypt",
    "decrypt",
    "generate_salt",
    "VaultHeader",
    "EntityIndex",
    "EntityTable",
    "IndexEvent",
    "SessionManager",
    "SessionState",
    "rotate_master_password",
    "VaultLifecycleCoordinator",
    "AutoLockTimer",
]
