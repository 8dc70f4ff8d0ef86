"""
dirseal - In-place password-based directory encryption

Encrypts every regular file under a directory tree into a
salt + nonce + ChaCha20-Poly1305 envelope keyed by Argon2id, and
decrypts envelopes carrying the marker extension back in place.
"""

__version__ = "1.0.0"

from .core import (
    decrypt_data, encrypt_data, open_sealed, pack_envelope, seal, unpack_envelope
)
from .errors import (
    AuthenticationError, DirsealError, FileIOError, KeyDerivationError,
    MalformedEnvelopeError, RandomSourceError
)
from .key_derivation import PasswordBuffer, derive_key, generate_nonce, generate_salt
from .pipeline import FileResult, Mode, Pipeline
from .config import Config

__all__ = [
    "seal",
    "open_sealed",
    "pack_envelope",
    "unpack_envelope",
    "encrypt_data",
    "decrypt_data",
    "derive_key",
    "generate_salt",
    "generate_nonce",
    "PasswordBuffer",
    "Mode",
    "Pipeline",
    "FileResult",
    "Config",
    "DirsealError",
    "RandomSourceError",
    "KeyDerivationError",
    "AuthenticationError",
    "MalformedEnvelopeError",
    "FileIOError",
]
