"""
Key Derivation Module

Turns a password and a per-file salt into a 256-bit key with Argon2id,
draws salts and nonces from the secure random source, and owns the
password buffer for the lifetime of a run.
"""

import logging
from typing import Union

from argon2.low_level import Type, hash_secret_raw
from Crypto.Random import get_random_bytes

from .errors import KeyDerivationError, RandomSourceError

logger = logging.getLogger(__name__)

SALT_LENGTH = 16
NONCE_LENGTH = 12
KEY_LENGTH = 32

# Argon2id cost parameters. They are not stored in the envelope, so the
# encrypt and decrypt paths must always agree on them.
ARGON2_TIME_COST = 1
ARGON2_MEMORY_COST = 64 * 1024  # KiB
ARGON2_PARALLELISM = 4


def random_bytes(length: int) -> bytes:
    """
    Draw ``length`` bytes from the cryptographically secure random source.

    Raises:
        RandomSourceError: If the random source fails
    """
    try:
        return get_random_bytes(length)
    except Exception as e:
        raise RandomSourceError(f"Failed to read {length} random bytes: {e}") from e


def generate_salt() -> bytes:
    """Generate a fresh 16-byte salt."""
    return random_bytes(SALT_LENGTH)


def generate_nonce() -> bytes:
    """Generate a fresh 12-byte nonce, independent of any salt draw."""
    return random_bytes(NONCE_LENGTH)


def derive_key(password: Union[str, bytes, bytearray, "PasswordBuffer"], salt: bytes) -> bytearray:
    """
    Derive a 32-byte key from password and salt using Argon2id.

    The result is a bytearray so callers can wipe it once the file
    has been sealed or opened.

    Args:
        password: Password bytes or a PasswordBuffer
        salt: 16-byte salt

    Returns:
        Derived key

    Raises:
        ValueError: If the salt has the wrong length
        KeyDerivationError: If Argon2 fails to run to completion
    """
    if len(salt) != SALT_LENGTH:
        raise ValueError(f"Salt must be {SALT_LENGTH} bytes, got {len(salt)}")

    if isinstance(password, PasswordBuffer):
        password = password.value
    elif isinstance(password, str):
        password = password.encode('utf-8')

    try:
        key = hash_secret_raw(
            secret=bytes(password),
            salt=bytes(salt),
            time_cost=ARGON2_TIME_COST,
            memory_cost=ARGON2_MEMORY_COST,
            parallelism=ARGON2_PARALLELISM,
            hash_len=KEY_LENGTH,
            type=Type.ID,
        )
    except MemoryError as e:
        raise KeyDerivationError("Insufficient memory for key derivation") from e
    except Exception as e:
        raise KeyDerivationError(f"Key derivation failed: {e}") from e

    logger.debug("Derived key for salt %s", salt.hex())
    return bytearray(key)


def wipe_memory(data: bytearray) -> None:
    """Overwrite a mutable buffer with zeros in place."""
    for i in range(len(data)):
        data[i] = 0


class PasswordBuffer:
    """
    Holds the run's password in a wipeable buffer.

    Use as a context manager; the buffer is zeroed when the block exits.
    """

    def __init__(self, password: Union[str, bytes, bytearray]):
        if isinstance(password, str):
            password = password.encode('utf-8')
        self._buffer = bytearray(password)
        self._wiped = False

    @property
    def value(self) -> bytearray:
        if self._wiped:
            raise ValueError("Password buffer has already been wiped")
        return self._buffer

    @property
    def wiped(self) -> bool:
        return self._wiped

    def wipe(self) -> None:
        """Zero the password and mark the buffer unusable."""
        wipe_memory(self._buffer)
        self._wiped = True

    def __len__(self) -> int:
        return len(self._buffer)

    def __enter__(self) -> "PasswordBuffer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()

    def __repr__(self) -> str:
        return "PasswordBuffer(<redacted>)"
