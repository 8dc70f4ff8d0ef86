"""
Test suite for key derivation and the password buffer.
"""

from unittest import mock

import pytest

from dirseal import key_derivation
from dirseal.errors import KeyDerivationError, RandomSourceError
from dirseal.key_derivation import (
    PasswordBuffer,
    derive_key,
    generate_nonce,
    generate_salt,
    random_bytes,
    wipe_memory,
)


class TestRandomSource:
    """Test salt and nonce generation."""

    def test_generate_salt(self):
        salt1 = generate_salt()
        salt2 = generate_salt()
        assert len(salt1) == 16
        assert len(salt2) == 16
        assert salt1 != salt2

    def test_generate_nonce(self):
        nonce1 = generate_nonce()
        nonce2 = generate_nonce()
        assert len(nonce1) == 12
        assert nonce1 != nonce2

    def test_random_source_failure(self):
        with mock.patch.object(key_derivation, "get_random_bytes", side_effect=OSError("no entropy")):
            with pytest.raises(RandomSourceError):
                random_bytes(16)


class TestDeriveKey:
    """Test Argon2id key derivation."""

    def test_derive_key(self):
        salt = generate_salt()
        key1 = derive_key(b"test_password", salt)
        key2 = derive_key(b"test_password", salt)
        assert len(key1) == 32
        assert key1 == key2

        key3 = derive_key(b"test_password", generate_salt())
        assert key1 != key3

    def test_different_passwords(self):
        salt = generate_salt()
        assert derive_key(b"one", salt) != derive_key(b"two", salt)

    def test_str_bytes_and_buffer_agree(self):
        salt = generate_salt()
        expected = derive_key(b"password", salt)
        assert derive_key("password", salt) == expected
        assert derive_key(PasswordBuffer(b"password"), salt) == expected

    def test_returns_wipeable_buffer(self):
        key = derive_key(b"password", generate_salt())
        assert isinstance(key, bytearray)
        wipe_memory(key)
        assert key == bytearray(32)

    def test_fixed_cost_parameters(self):
        salt = generate_salt()
        with mock.patch.object(key_derivation, "hash_secret_raw", return_value=b"k" * 32) as raw:
            derive_key(b"pw", salt)
        kwargs = raw.call_args.kwargs
        assert kwargs["time_cost"] == 1
        assert kwargs["memory_cost"] == 64 * 1024
        assert kwargs["parallelism"] == 4
        assert kwargs["hash_len"] == 32
        assert kwargs["type"] == key_derivation.Type.ID

    @pytest.mark.parametrize("length", [0, 8, 32])
    def test_wrong_salt_length(self, length):
        with pytest.raises(ValueError):
            derive_key(b"pw", b"\x00" * length)

    def test_memory_error(self):
        with mock.patch.object(key_derivation, "hash_secret_raw", side_effect=MemoryError):
            with pytest.raises(KeyDerivationError):
                derive_key(b"pw", generate_salt())


class TestPasswordBuffer:
    """Test scoped ownership of the password."""

    def test_wiped_on_exit(self):
        with PasswordBuffer(b"secret") as password:
            raw = password.value
            assert raw == bytearray(b"secret")
        assert password.wiped
        assert raw == bytearray(6)

    def test_value_after_wipe(self):
        password = PasswordBuffer("secret")
        password.wipe()
        with pytest.raises(ValueError):
            password.value

    def test_repr_hides_password(self):
        assert "secret" not in repr(PasswordBuffer(b"secret"))
