"""
Tests for the vault crypto core.

Tests cover:
- PBKDF2 key derivation (determinism, salt sensitivity)
- VaultKey handling (redaction, no serialization, wipe)
- AES-GCM encryption (fresh IVs, tamper detection, wrong key)
- Payload serialization
"""
import copy
import pickle

import pytest

from crownix_vault.exceptions import (
    AuthenticationError,
    MalformedContainerError,
    SessionLockedError,
)
from crownix_vault.vault.crypto import (
    VaultKey,
    b64decode,
    decode_payload,
    decrypt,
    derive_key,
    encode_payload,
    encrypt,
    generate_salt,
)
from conftest import TEST_ITERATIONS


# --- Test Key Derivation ---

class TestKeyDerivation:
    """Tests for derive_key."""

    def test_deterministic(self):
        """Test the same password and salt give the same key."""
        salt = generate_salt()
        k1 = derive_key("pw", salt, TEST_ITERATIONS)
        k2 = derive_key("pw", salt, TEST_ITERATIONS)
        iv, ct = encrypt(b"data", k1)
        assert decrypt(ct, iv, k2) == b"data"

    def test_different_salt_different_key(self):
        """Test a different salt produces an incompatible key."""
        k1 = derive_key("pw", generate_salt(), TEST_ITERATIONS)
        k2 = derive_key("pw", generate_salt(), TEST_ITERATIONS)
        iv, ct = encrypt(b"data", k1)
        with pytest.raises(AuthenticationError):
            decrypt(ct, iv, k2)

    def test_salt_size(self):
        assert len(generate_salt()) == 16

    def test_default_iterations(self):
        """Test the production KDF work factor."""
        salt = b"\x01" * 16
        k1 = derive_key("pw", salt)
        k2 = derive_key("pw", salt, 200_000)
        iv, ct = encrypt(b"x", k1)
        assert decrypt(ct, iv, k2) == b"x"


# --- Test VaultKey ---

class TestVaultKey:
    """Tests for the non-exportable key wrapper."""

    def test_repr_is_redacted(self, key):
        assert "redacted" in repr(key)

    def test_cannot_pickle(self, key):
        with pytest.raises(TypeError):
            pickle.dumps(key)

    def test_cannot_copy(self, key):
        with pytest.raises(TypeError):
            copy.copy(key)
        with pytest.raises(TypeError):
            copy.deepcopy(key)

    def test_wrong_length(self):
        with pytest.raises(ValueError):
            VaultKey(b"short")

    def test_wipe(self, key):
        """Test a wiped key refuses to encrypt."""
        key.wipe()
        assert key.wiped is True
        assert "wiped" in repr(key)
        with pytest.raises(SessionLockedError):
            encrypt(b"data", key)


# --- Test Encryption ---

class TestEncryption:
    """Tests for AES-GCM encrypt/decrypt."""

    def test_round_trip(self, key):
        iv, ct = encrypt(b"hello vault", key)
        assert len(iv) == 12
        assert len(ct) == len(b"hello vault") + 16
        assert decrypt(ct, iv, key) == b"hello vault"

    def test_iv_uniqueness(self, key):
        """Test no IV repeats over 10,000 encryptions with one key."""
        ivs = set()
        ciphertexts = set()
        for _ in range(10_000):
            iv, ct = encrypt(b"same payload", key)
            ivs.add(iv)
            ciphertexts.add(ct)
        assert len(ivs) == 10_000
        assert len(ciphertexts) == 10_000

    def test_tampered_ciphertext(self, key):
        """Test every flipped byte is detected."""
        iv, ct = encrypt(b"tamper me", key)
        for pos in range(len(ct)):
            tampered = bytearray(ct)
            tampered[pos] ^= 0x01
            with pytest.raises(AuthenticationError):
                decrypt(bytes(tampered), iv, key)

    def test_tampered_iv(self, key):
        iv, ct = encrypt(b"data", key)
        with pytest.raises(AuthenticationError):
            decrypt(ct, bytes([iv[0] ^ 0xFF]) + iv[1:], key)

    def test_truncated_ciphertext(self, key):
        """Test ciphertext shorter than a tag fails authentication."""
        with pytest.raises(AuthenticationError):
            decrypt(b"short", b"\x00" * 12, key)


# --- Test Serialization ---

class TestSerialization:
    """Tests for payload and base64 helpers."""

    def test_payload_round_trip(self, vault):
        restored = decode_payload(encode_payload(vault))
        assert restored.to_dict() == vault.to_dict()

    def test_payload_is_camel_case_json(self, vault):
        data = encode_payload(vault)
        assert b'"passwordItems"' in data
        assert b'"passwordCategories"' in data

    def test_invalid_payload_json(self):
        with pytest.raises(MalformedContainerError):
            decode_payload(b"not json")

    def test_invalid_payload_structure(self):
        with pytest.raises(MalformedContainerError):
            decode_payload(b'{"passwordItems": [{"title": 5}]}')

    def test_b64decode_invalid(self):
        with pytest.raises(MalformedContainerError):
            b64decode("***")
