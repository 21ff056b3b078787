"""
Tests for the vault container codec.

Tests cover:
- Framing layout (u32 LE length, JSON header, ciphertext)
- Header fields and version coercion
- Malformed container detection (length, JSON, fields, magic, base64)
"""
import struct

import orjson
import pytest

from crownix_vault.exceptions import MalformedContainerError
from crownix_vault.vault.container import VaultHeader, decode, encode, seal
from crownix_vault.vault.crypto import b64encode, decode_payload, decrypt


def _header(**overrides):
    values = {
        "magic": "CROWNIX_VAULT",
        "version": "1.0.0",
        "salt": b64encode(b"\x01" * 16),
        "iv": b64encode(b"\x02" * 12),
    }
    values.update(overrides)
    return values


def _frame(header: dict, ciphertext: bytes = b"\x00" * 32) -> bytes:
    raw = orjson.dumps(header)
    return struct.pack("<I", len(raw)) + raw + ciphertext


# --- Test Framing ---

class TestFraming:
    """Tests for encode/decode layout."""

    def test_layout(self):
        """Test the length prefix matches the header byte length exactly."""
        header = VaultHeader.model_validate(_header())
        data = encode(header, b"CIPHERTEXT")
        (length,) = struct.unpack("<I", data[:4])
        assert orjson.loads(data[4:4 + length]) == _header()
        assert data[4 + length:] == b"CIPHERTEXT"

    def test_round_trip(self):
        header = VaultHeader.model_validate(_header(updatedAt=123))
        decoded, ciphertext = decode(encode(header, b"abc"))
        assert decoded == header
        assert decoded.updated_at == 123
        assert ciphertext == b"abc"

    def test_updated_at_omitted_when_unset(self):
        header = VaultHeader.model_validate(_header())
        assert b"updatedAt" not in encode(header, b"")

    def test_numeric_version_is_accepted(self):
        """Test containers that stored the version as a number."""
        header, _ = decode(_frame(_header(version=1)))
        assert header.version == "1"

    def test_seal(self, key, vault):
        """Test sealing produces a decryptable container."""
        header, data = seal(vault, key, b"\x03" * 16, "1.0.0", updated_at=5)
        decoded, ciphertext = decode(data)
        assert decoded == header
        assert decoded.salt_bytes == b"\x03" * 16
        restored = decode_payload(decrypt(ciphertext, decoded.iv_bytes, key))
        assert restored.to_dict() == vault.to_dict()


# --- Test Malformed Containers ---

class TestMalformed:
    """Tests for MalformedContainerError detection."""

    def test_empty(self):
        with pytest.raises(MalformedContainerError):
            decode(b"")

    def test_too_short_for_length(self):
        with pytest.raises(MalformedContainerError):
            decode(b"\x01\x00")

    def test_length_exceeds_buffer(self):
        with pytest.raises(MalformedContainerError):
            decode(struct.pack("<I", 1_000) + b"{}")

    def test_header_not_json(self):
        raw = b"not json at all"
        with pytest.raises(MalformedContainerError):
            decode(struct.pack("<I", len(raw)) + raw)

    def test_header_not_object(self):
        with pytest.raises(MalformedContainerError):
            decode(_frame([1, 2, 3]))

    @pytest.mark.parametrize("field", ["magic", "salt", "iv"])
    def test_missing_required_field(self, field):
        header = _header()
        del header[field]
        with pytest.raises(MalformedContainerError, match=field):
            decode(_frame(header))

    def test_version_is_optional(self):
        header = _header()
        del header["version"]
        decoded, _ = decode(_frame(header))
        assert decoded.version is None

    def test_wrong_magic(self):
        with pytest.raises(MalformedContainerError):
            decode(_frame(_header(magic="SOME_OTHER_FORMAT")))

    def test_invalid_base64(self):
        with pytest.raises(MalformedContainerError):
            decode(_frame(_header(salt="!!not-base64!!")))

    def test_wrong_iv_length(self):
        with pytest.raises(MalformedContainerError):
            decode(_frame(_header(iv=b64encode(b"\x00" * 16))))

    def test_random_bytes(self):
        """Test a foreign file is rejected at the codec boundary."""
        with pytest.raises(MalformedContainerError):
            decode(b"\x89PNG\r\n\x1a\n" + b"\x00" * 64)
