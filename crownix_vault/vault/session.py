"""
Vault Session — Locked/unlocked state machine holding the session key.

    LOCKED --unlock(key, header, vault)--> UNLOCKED
    UNLOCKED --lock()--> LOCKED   (idempotent)

The key and the populated :class:`EntityIndex` exist only while unlocked.
``lock()`` wipes the key in place and clears the index immediately.

Security Note:
    The key never leaves process memory and is never logged.
"""
import enum
import logging
from typing import Optional

from ..data import DecryptedVault
from ..exceptions import SessionLockedError, StaleSessionError, VaultStateError
from .container import VaultHeader
from .crypto import VaultKey
from .index import EntityIndex

logger = logging.getLogger("crownix.vault")


class SessionState(enum.Enum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"


class SessionManager:
    """Single vault session.

    Owned by the lifecycle coordinator and handed explicitly to whatever
    needs it; the key is owned exclusively by the session.
    """

    def __init__(self, index: Optional[EntityIndex] = None):
        self.index = index if index is not None else EntityIndex()
        self._key: Optional[VaultKey] = None
        self._header: Optional[VaultHeader] = None
        self._stale = False

    def __repr__(self) -> str:
        return f"<SessionManager [{self.state.value}{', stale' if self._stale else ''}]>"

    @property
    def state(self) -> SessionState:
        return SessionState.UNLOCKED if self._key is not None else SessionState.LOCKED

    def is_unlocked(self) -> bool:
        return self._key is not None

    @property
    def is_stale(self) -> bool:
        return self._stale

    @property
    def key(self) -> VaultKey:
        """The session key.

        Raises:
            SessionLockedError: If the session is locked.
        """
        if self._key is None:
            raise SessionLockedError("Vault is locked")
        return self._key

    @property
    def header(self) -> VaultHeader:
        """Header of the container the session was opened from."""
        if self._header is None:
            raise SessionLockedError("Vault is locked")
        return self._header

    def save_key(self) -> VaultKey:
        """Key to re-encrypt the session contents with.

        Raises:
            SessionLockedError: If the session is locked.
            StaleSessionError: If a master password change superseded the key.
        """
        key = self.key
        if self._stale:
            raise StaleSessionError(
                "Master password was changed; unlock the vault again before saving"
            )
        return key

    def unlock(self, key: VaultKey, header: VaultHeader, vault: DecryptedVault) -> None:
        """Enter the unlocked state after a successful decryption.

        Raises:
            VaultStateError: If the session is already unlocked.
        """
        if self._key is not None:
            raise VaultStateError("Session is already unlocked")
        self.index.load(vault)
        self._key = key
        self._header = header
        self._stale = False
        logger.info("Vault session unlocked (version=%s)", header.version)

    def update_header(self, header: VaultHeader) -> None:
        """Keep the header of the last container written in this session."""
        if self._key is None:
            raise SessionLockedError("Vault is locked")
        self._header = header

    def mark_stale(self) -> None:
        """Flag the key as superseded by a master password change."""
        if self._key is None:
            raise SessionLockedError("Vault is locked")
        self._stale = True
        logger.info("Vault session key marked stale")

    def lock(self) -> None:
        """Discard the key and tear down the index. No-op when locked."""
        if self._key is None:
            self.index.clear()
            return
        key, self._key = self._key, None
        key.wipe()
        self._header = None
        self._stale = False
        self.index.clear()
        logger.info("Vault session locked")
