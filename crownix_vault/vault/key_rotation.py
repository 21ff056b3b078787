"""
Vault Key Rotation — Re-encrypt the vault under a new master password.

A new salt and key are derived, the current contents are sealed under them
and the resulting container replaces the old one. The previous session key
becomes stale: it must not be used for any later save.

Security Note:
    Neither password is logged; only version and entity counts are.
"""
import logging
from typing import Optional

from .. import conf
from ..data import DecryptedVault, now_ms
from .container import seal
from .crypto import derive_key, generate_salt

logger = logging.getLogger("crownix.vault")


def rotate_master_password(
    vault: DecryptedVault,
    new_password: str,
    version: Optional[str],
    iterations: int = conf.KDF_ITERATIONS,
    magic: str = conf.VAULT_MAGIC,
) -> bytes:
    """Seal ``vault`` under a key derived from ``new_password``.

    Args:
        vault: Current session contents.
        new_password: New master password.
        version: Header version to carry over.
        iterations: PBKDF2 rounds.
        magic: Container format identifier.

    Returns:
        New container bytes.

    Raises:
        ValueError: If the new password is empty.
    """
    if not new_password:
        raise ValueError("Master password cannot be empty")
    salt = generate_salt()
    key = derive_key(new_password, salt, iterations)
    try:
        _, container = seal(
            vault, key, salt, version, magic=magic, updated_at=now_ms(),
        )
    finally:
        key.wipe()
    logger.info(
        "Master password rotated: %d item(s), %d category(ies) re-encrypted",
        len(vault.password_items), len(vault.password_categories),
    )
    return container
