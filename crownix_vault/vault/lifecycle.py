"""
Vault Lifecycle — Create, open, save, lock and re-key a vault.

Composes the crypto core, the container codec and the session:

- ``create_new_vault(password, vault)`` — seal a new container (stays locked)
- ``open_vault(password, container)`` — decrypt and unlock the session
- ``save()`` — re-seal the session contents under the session key
- ``lock_and_persist()`` — ``save()`` then ``lock()``
- ``change_master_password(password)`` — re-seal under a new key

Key derivation and AES-GCM run in a worker thread so the event loop keeps
serving other work while the caller awaits.

Security Note:
    Wrong password and corrupted ciphertext both surface as
    ``AuthenticationError`` with the same message. Never log passwords.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..data import DecryptedVault, initial_vault, now_ms
from ..exceptions import AuthenticationError, VaultStateError
from . import container
from .autolock import AutoLockTimer
from .config import VaultConfig
from .crypto import decode_payload, decrypt, derive_key, generate_salt
from .key_rotation import rotate_master_password
from .session import SessionManager

logger = logging.getLogger("crownix.vault")

PersistCallback = Callable[[bytes], Awaitable[None]]


class VaultLifecycleCoordinator:
    """Owns the vault session and drives its transitions.

    Callers serialize mutating calls; the coordinator serves one session.
    """

    def __init__(
        self,
        session: Optional[SessionManager] = None,
        config: Optional[VaultConfig] = None,
    ):
        self.session = session if session is not None else SessionManager()
        self.config = config if config is not None else VaultConfig()

    @property
    def index(self):
        return self.session.index

    def is_unlocked(self) -> bool:
        return self.session.is_unlocked()

    # ------------------------------------------------------------------
    # Create / open
    # ------------------------------------------------------------------

    async def create_new_vault(
        self,
        password: str,
        initial: Optional[DecryptedVault] = None,
    ) -> bytes:
        """Seal a brand new vault under ``password``.

        The session is not touched: a new vault still has to be opened.

        Args:
            password: Master password.
            initial: Vault contents; defaults to the standard initial vault.

        Returns:
            Container bytes ready to persist.

        Raises:
            ValueError: If the password is empty.
        """
        if not password:
            raise ValueError("Master password cannot be empty")
        vault = initial if initial is not None else initial_vault()
        salt = generate_salt()
        key = await asyncio.to_thread(
            derive_key, password, salt, self.config.kdf_iterations,
        )
        try:
            _, data = await asyncio.to_thread(
                container.seal, vault, key, salt,
                self.config.format_version, self.config.magic,
            )
        finally:
            key.wipe()
        logger.info(
            "New vault created: %d item(s), %d category(ies)",
            len(vault.password_items), len(vault.password_categories),
        )
        return data

    async def open_vault(self, password: str, data: bytes) -> DecryptedVault:
        """Decrypt a container and unlock the session with it.

        On any failure the session is left as this call found it.

        Returns:
            The decrypted vault.

        Raises:
            VaultStateError: If a session is already unlocked.
            MalformedContainerError: If ``data`` is not a vault container.
            AuthenticationError: Wrong password or corrupted ciphertext.
        """
        if self.session.is_unlocked():
            raise VaultStateError("A vault session is already unlocked")
        header, ciphertext = container.decode(data, magic=self.config.magic)
        key = await asyncio.to_thread(
            derive_key, password, header.salt_bytes, self.config.kdf_iterations,
        )
        try:
            plaintext = await asyncio.to_thread(
                decrypt, ciphertext, header.iv_bytes, key,
            )
            vault = decode_payload(plaintext)
            self.session.unlock(key, header, vault)
        except AuthenticationError:
            key.wipe()
            logger.warning("Vault unlock failed: authentication error")
            raise
        except Exception:
            # the session was never unlocked by this call
            key.wipe()
            raise
        return vault

    # ------------------------------------------------------------------
    # Save / lock
    # ------------------------------------------------------------------

    async def save(self) -> bytes:
        """Re-seal the session contents under the session key.

        A new IV is used; salt and version are kept and ``updatedAt`` is set.
        The session stays unlocked.

        Raises:
            SessionLockedError: If the session is locked.
            StaleSessionError: If the master password was changed.
        """
        key = self.session.save_key()
        previous = self.session.header
        vault = self.session.index.snapshot()
        header, data = await asyncio.to_thread(
            container.seal, vault, key, previous.salt_bytes,
            previous.version, previous.magic, now_ms(),
        )
        self.session.update_header(header)
        logger.info("Vault saved (%d bytes)", len(data))
        return data

    async def lock_and_persist(self) -> bytes:
        """Save the session contents, then lock.

        The lock happens only once a valid container exists; if sealing
        fails the session is left unlocked.
        """
        data = await self.save()
        self.session.lock()
        return data

    def lock(self) -> None:
        """Lock without persisting. Idempotent."""
        self.session.lock()

    # ------------------------------------------------------------------
    # Master password
    # ------------------------------------------------------------------

    async def change_master_password(self, new_password: str) -> bytes:
        """Re-seal the session contents under a new master password.

        The session key is marked stale afterwards; the caller must lock and
        open the returned container to continue working.

        Raises:
            SessionLockedError: If the session is locked.
            StaleSessionError: If the password was already changed in this
                session.
        """
        self.session.save_key()
        header = self.session.header
        vault = self.session.index.snapshot()
        data = await asyncio.to_thread(
            rotate_master_password, vault, new_password, header.version,
            self.config.kdf_iterations, self.config.magic,
        )
        self.session.mark_stale()
        return data

    # ------------------------------------------------------------------
    # Auto-lock
    # ------------------------------------------------------------------

    def auto_lock(
        self,
        persist: PersistCallback,
        timeout: Optional[float] = None,
    ) -> AutoLockTimer:
        """Build a focus driven timer that locks and persists on expiry.

        Args:
            persist: Coroutine receiving the container bytes to write.
            timeout: Seconds of lost focus before locking; defaults to config.
        """
        async def _expire() -> None:
            if self.session.is_stale:
                # the new container was already handed out
                self.lock()
                return
            data = await self.lock_and_persist()
            await persist(data)

        return AutoLockTimer(
            self.session,
            _expire,
            timeout if timeout is not None else self.config.auto_lock_timeout,
            enabled=self.config.auto_lock_enabled,
        )
