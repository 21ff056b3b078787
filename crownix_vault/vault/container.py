"""
Vault Container — Binary framing of {header, ciphertext}.

Format: [header_length 4B uint32 LE][UTF-8 JSON header][ciphertext + GCM tag]

Header JSON: {"magic", "version", "salt" (b64), "iv" (b64), "updatedAt"?}

Every structural problem raises ``MalformedContainerError`` before any
cryptographic work happens, so "not a vault file" is always distinguishable
from "wrong password".
"""
import struct
import logging
from typing import Any, Optional

import orjson
from pydantic import ValidationError, field_validator

from .. import conf
from ..data import DecryptedVault, VaultModel
from ..exceptions import MalformedContainerError
from .crypto import VaultKey, b64decode, b64encode, encode_payload, encrypt

logger = logging.getLogger("crownix.vault")

_LENGTH = struct.Struct("<I")


class VaultHeader(VaultModel):
    """Plaintext header stored in front of the ciphertext."""

    magic: str
    version: Optional[str] = None
    salt: str
    iv: str
    updated_at: Optional[int] = None

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version(cls, v: Any) -> Any:
        """Older containers store the version as a number."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def salt_bytes(self) -> bytes:
        return b64decode(self.salt)

    @property
    def iv_bytes(self) -> bytes:
        return b64decode(self.iv)


def encode(header: VaultHeader, ciphertext: bytes) -> bytes:
    """Frame header and ciphertext into a single container.

    Args:
        header: Container header.
        ciphertext: AES-GCM output (tag included).

    Returns:
        Container bytes ready to persist.
    """
    header_bytes = orjson.dumps(header.to_dict())
    return _LENGTH.pack(len(header_bytes)) + header_bytes + ciphertext


def decode(data: bytes, magic: str = conf.VAULT_MAGIC) -> tuple[VaultHeader, bytes]:
    """Split a container into its header and ciphertext.

    Args:
        data: Container bytes.
        magic: Expected format identifier.

    Returns:
        Tuple of (header, ciphertext).

    Raises:
        MalformedContainerError: If the framing, header JSON, required header
            fields, base64 values or magic are invalid.
    """
    data = bytes(data)
    if len(data) < _LENGTH.size:
        raise MalformedContainerError(
            f"Container too short: {len(data)} bytes (minimum {_LENGTH.size})"
        )
    (header_length,) = _LENGTH.unpack_from(data, 0)
    end = _LENGTH.size + header_length
    if end > len(data):
        raise MalformedContainerError(
            f"Declared header length {header_length} exceeds container "
            f"size {len(data)}"
        )
    try:
        raw = orjson.loads(data[_LENGTH.size:end])
    except orjson.JSONDecodeError as err:
        raise MalformedContainerError("Container header is not valid JSON") from err
    if not isinstance(raw, dict):
        raise MalformedContainerError("Container header is not a JSON object")
    try:
        header = VaultHeader.model_validate(raw)
    except ValidationError as err:
        missing = [
            str(e["loc"][0]) for e in err.errors() if e["type"] == "missing"
        ]
        if missing:
            raise MalformedContainerError(
                f"Container header is missing field(s): {', '.join(missing)}"
            ) from err
        raise MalformedContainerError("Container header is invalid") from err
    if header.magic != magic:
        raise MalformedContainerError("Not a Crownix vault container")
    # Validate binary fields up front so crypto never sees garbage
    if not header.salt_bytes:
        raise MalformedContainerError("Container salt is empty")
    if len(header.iv_bytes) != conf.NONCE_SIZE:
        raise MalformedContainerError(
            f"Container IV must be {conf.NONCE_SIZE} bytes"
        )
    ciphertext = data[end:]
    logger.debug(
        "Decoded container: version=%s header=%dB ciphertext=%dB",
        header.version, header_length, len(ciphertext),
    )
    return header, ciphertext


def seal(
    vault: DecryptedVault,
    key: VaultKey,
    salt: bytes,
    version: Optional[str],
    magic: str = conf.VAULT_MAGIC,
    updated_at: Optional[int] = None,
) -> tuple[VaultHeader, bytes]:
    """Encrypt a vault under ``key`` with a fresh IV and frame it.

    Returns:
        Tuple of (header, container bytes).
    """
    iv, ciphertext = encrypt(encode_payload(vault), key)
    header = VaultHeader(
        magic=magic,
        version=version,
        salt=b64encode(salt),
        iv=b64encode(iv),
        updated_at=updated_at,
    )
    return header, encode(header, ciphertext)
