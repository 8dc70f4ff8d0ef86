"""
Core Encryption Module

ChaCha20-Poly1305 sealing and opening, and the on-disk envelope layout.

Envelope format: [SALT:16][NONCE:12][CIPHERTEXT:N][TAG:16]
There is no magic number, version field or length prefix; the layout is
purely positional.
"""

import os
from typing import Tuple, Union

from Crypto.Cipher import ChaCha20_Poly1305

from .errors import AuthenticationError, FileIOError, MalformedEnvelopeError
from .key_derivation import (
    KEY_LENGTH,
    NONCE_LENGTH,
    SALT_LENGTH,
    PasswordBuffer,
    derive_key,
    generate_nonce,
    generate_salt,
    wipe_memory,
)

TAG_LENGTH = 16
HEADER_LENGTH = SALT_LENGTH + NONCE_LENGTH
ENVELOPE_OVERHEAD = HEADER_LENGTH + TAG_LENGTH

Password = Union[str, bytes, bytearray, PasswordBuffer]


def _check_key_and_nonce(key: bytes, nonce: bytes) -> None:
    if len(key) != KEY_LENGTH:
        raise ValueError(f"Key must be {KEY_LENGTH} bytes, got {len(key)}")
    if len(nonce) != NONCE_LENGTH:
        raise ValueError(f"Nonce must be {NONCE_LENGTH} bytes, got {len(nonce)}")


def seal(key: bytes, nonce: bytes, plaintext: bytes) -> bytes:
    """
    Encrypt and authenticate plaintext with ChaCha20-Poly1305.

    Args:
        key: 32-byte key
        nonce: 12-byte nonce
        plaintext: Data to seal

    Returns:
        Ciphertext followed by the 16-byte tag
    """
    _check_key_and_nonce(key, nonce)
    cipher = ChaCha20_Poly1305.new(key=key, nonce=nonce)
    ciphertext, tag = cipher.encrypt_and_digest(plaintext)
    return ciphertext + tag


def open_sealed(key: bytes, nonce: bytes, ciphertext_with_tag: bytes) -> bytes:
    """
    Verify and decrypt the output of :func:`seal`.

    Args:
        key: 32-byte key
        nonce: 12-byte nonce
        ciphertext_with_tag: Ciphertext followed by the tag

    Returns:
        Plaintext

    Raises:
        AuthenticationError: If the tag does not verify
    """
    _check_key_and_nonce(key, nonce)
    if len(ciphertext_with_tag) < TAG_LENGTH:
        raise AuthenticationError("Authentication failed")

    ciphertext = ciphertext_with_tag[:-TAG_LENGTH]
    tag = ciphertext_with_tag[-TAG_LENGTH:]
    cipher = ChaCha20_Poly1305.new(key=key, nonce=nonce)
    try:
        return cipher.decrypt_and_verify(ciphertext, tag)
    except ValueError:
        # Wrong password, corruption and tampering all look the same here.
        raise AuthenticationError("Authentication failed") from None


def pack_envelope(salt: bytes, nonce: bytes, ciphertext_with_tag: bytes) -> bytes:
    """Lay out salt, nonce and sealed payload in envelope order."""
    if len(salt) != SALT_LENGTH:
        raise ValueError(f"Salt must be {SALT_LENGTH} bytes, got {len(salt)}")
    if len(nonce) != NONCE_LENGTH:
        raise ValueError(f"Nonce must be {NONCE_LENGTH} bytes, got {len(nonce)}")
    return bytes(salt) + bytes(nonce) + bytes(ciphertext_with_tag)


def unpack_envelope(data: bytes) -> Tuple[bytes, bytes, bytes]:
    """
    Split an envelope into salt, nonce and sealed payload.

    Raises:
        MalformedEnvelopeError: If data cannot hold the salt and nonce
    """
    if len(data) < HEADER_LENGTH:
        raise MalformedEnvelopeError(
            f"Envelope is {len(data)} bytes, need at least {HEADER_LENGTH}"
        )
    salt = data[:SALT_LENGTH]
    nonce = data[SALT_LENGTH:HEADER_LENGTH]
    return salt, nonce, data[HEADER_LENGTH:]


def envelope_size(plaintext_length: int) -> int:
    """Size of the envelope produced for a plaintext of the given length."""
    return ENVELOPE_OVERHEAD + plaintext_length


def encrypt_data(data: bytes, password: Password) -> bytes:
    """
    Encrypt data into a self-describing envelope.

    A fresh salt and an independent fresh nonce are drawn on every call.

    Raises:
        RandomSourceError: If the salt or nonce cannot be drawn
        KeyDerivationError: If key derivation fails
    """
    salt = generate_salt()
    key = derive_key(password, salt)
    try:
        nonce = generate_nonce()
        sealed = seal(key, nonce, data)
    finally:
        wipe_memory(key)
    return pack_envelope(salt, nonce, sealed)


def decrypt_data(envelope: bytes, password: Password) -> bytes:
    """
    Decrypt an envelope produced by :func:`encrypt_data`.

    Raises:
        MalformedEnvelopeError: If the envelope is truncated
        KeyDerivationError: If key derivation fails
        AuthenticationError: If the password is wrong or the data was altered
    """
    salt, nonce, sealed = unpack_envelope(envelope)
    key = derive_key(password, salt)
    try:
        return open_sealed(key, nonce, sealed)
    finally:
        wipe_memory(key)


def get_envelope_info(input_path: str) -> dict:
    """
    Describe an envelope file without decrypting it.

    Args:
        input_path: Path to envelope file

    Returns:
        Dictionary with file information

    Raises:
        FileIOError: If the file cannot be read
        MalformedEnvelopeError: If the file is too short
    """
    try:
        file_size = os.path.getsize(input_path)
        with open(input_path, 'rb') as f:
            header = f.read(HEADER_LENGTH)
    except OSError as e:
        raise FileIOError(f"Failed to read {input_path}: {e}") from e

    salt, nonce, _ = unpack_envelope(header)

    return {
        'file_size': file_size,
        'header_size': HEADER_LENGTH,
        'plaintext_size': max(file_size - ENVELOPE_OVERHEAD, 0),
        'salt': salt.hex(),
        'nonce': nonce.hex(),
        'algorithm': 'ChaCha20-Poly1305',
        'kdf': 'Argon2id',
    }
