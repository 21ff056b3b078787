"""
Vault Crypto Core — Key derivation, encryption/decryption, and serialization.

- Key derivation: PBKDF2-HMAC-SHA256(master password, 16 byte salt) → 256-bit key
- Encryption: AES-256-GCM, fresh random 96-bit IV per call, tag appended
- Payload: orjson-encoded ``DecryptedVault``

Security Note:
    Never log plaintext, ciphertext, passwords or key material.
    A failed tag check is the only signal of a wrong master password; no
    partial plaintext is ever returned.
"""
import os
import base64
import binascii
import logging

import orjson
from pydantic import ValidationError
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .. import conf
from ..data import DecryptedVault
from ..exceptions import (
    AuthenticationError,
    MalformedContainerError,
    SessionLockedError,
)

logger = logging.getLogger("crownix.vault")


class VaultKey:
    """Derived AES-GCM key.

    The raw bytes are not exposed, the key cannot be pickled or copied and
    ``wipe()`` zeroes it in place. A wiped key refuses to encrypt or decrypt.
    """

    __slots__ = ("_material", "_wiped")

    def __init__(self, material: bytes):
        if len(material) != conf.KEY_LENGTH:
            raise ValueError(
                f"Vault key must be {conf.KEY_LENGTH} bytes, got {len(material)}"
            )
        self._material = bytearray(material)
        self._wiped = False

    def __repr__(self) -> str:
        state = "wiped" if self.wiped else "redacted"
        return f"<VaultKey [{state}]>"

    def __reduce__(self):
        raise TypeError("VaultKey cannot be serialized")

    def __copy__(self):
        raise TypeError("VaultKey cannot be copied")

    def __deepcopy__(self, memo):
        raise TypeError("VaultKey cannot be copied")

    @property
    def wiped(self) -> bool:
        return self._wiped

    def wipe(self) -> None:
        """Zero the key material in place."""
        for i in range(len(self._material)):
            self._material[i] = 0
        self._wiped = True

    def _cipher(self) -> AESGCM:
        if self.wiped:
            raise SessionLockedError("Vault key has been wiped")
        return AESGCM(bytes(self._material))


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def generate_salt() -> bytes:
    """Generate a cryptographically random 16 byte salt."""
    return os.urandom(conf.SALT_SIZE)


def derive_key(
    password: str,
    salt: bytes,
    iterations: int = conf.KDF_ITERATIONS,
) -> VaultKey:
    """Derive the vault key from a master password using PBKDF2-HMAC-SHA256.

    Args:
        password: User's master password.
        salt: Salt stored in the container header.
        iterations: PBKDF2 rounds.

    Returns:
        A non-exportable 256-bit :class:`VaultKey`.
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=conf.KEY_LENGTH,
        salt=salt,
        iterations=iterations,
    )
    return VaultKey(kdf.derive(password.encode("utf-8")))


# ---------------------------------------------------------------------------
# Authenticated encryption
# ---------------------------------------------------------------------------

def encrypt(plaintext: bytes, key: VaultKey) -> tuple[bytes, bytes]:
    """Encrypt plaintext with AES-256-GCM.

    Args:
        plaintext: Bytes to encrypt.
        key: Session key.

    Returns:
        Tuple of (iv, ciphertext); the ciphertext carries the 16 byte tag.
    """
    iv = os.urandom(conf.NONCE_SIZE)
    ciphertext = key._cipher().encrypt(iv, plaintext, None)
    return iv, ciphertext


def decrypt(ciphertext: bytes, iv: bytes, key: VaultKey) -> bytes:
    """Decrypt AES-256-GCM ciphertext.

    Raises:
        AuthenticationError: If the tag does not verify (wrong password or
            tampered data) or the ciphertext is too short to hold a tag.
    """
    if len(ciphertext) < conf.TAG_SIZE:
        raise AuthenticationError("Unable to decrypt vault")
    try:
        return key._cipher().decrypt(iv, ciphertext, None)
    except InvalidTag as err:
        raise AuthenticationError("Unable to decrypt vault") from err


# ---------------------------------------------------------------------------
# Header field helpers
# ---------------------------------------------------------------------------

def b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def b64decode(value: str) -> bytes:
    """Strict base64 decoding.

    Raises:
        MalformedContainerError: If value is not valid base64.
    """
    try:
        return base64.b64decode(value.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as err:
        raise MalformedContainerError(f"Invalid base64 value: {err}") from err


# ---------------------------------------------------------------------------
# Payload serialization
# ---------------------------------------------------------------------------

def encode_payload(vault: DecryptedVault) -> bytes:
    """Serialize a decrypted vault to JSON bytes for encryption."""
    return orjson.dumps(vault.to_dict())


def decode_payload(data: bytes) -> DecryptedVault:
    """Parse decrypted JSON bytes back into a :class:`DecryptedVault`.

    Raises:
        MalformedContainerError: If the authenticated plaintext is not a
            vault payload (written by an incompatible version).
    """
    try:
        return DecryptedVault.model_validate(orjson.loads(data))
    except orjson.JSONDecodeError as err:
        raise MalformedContainerError("Vault payload is not valid JSON") from err
    except ValidationError as err:
        logger.error(
            "Vault payload failed validation (%d error(s))", err.error_count()
        )
        raise MalformedContainerError("Vault payload has an invalid structure") from err
