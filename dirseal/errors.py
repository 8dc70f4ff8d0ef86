"""
Error Taxonomy

Every failure dirseal can report. Each exception carries a ``category``
string that names the failure class in per-file diagnostics.
"""


class DirsealError(Exception):
    """Base class for all dirseal errors."""
    category = "Error"


class RandomSourceError(DirsealError):
    """Raised when the secure random source cannot produce bytes."""
    category = "RandomSourceFailure"


class KeyDerivationError(DirsealError):
    """Raised when key derivation fails."""
    category = "KeyDerivationFailure"


class AuthenticationError(DirsealError):
    """Raised when a sealed payload does not verify."""
    category = "AuthenticationFailure"


class MalformedEnvelopeError(DirsealError):
    """Raised when an envelope is too short to hold its fixed fields."""
    category = "MalformedEnvelope"


class FileIOError(DirsealError):
    """Raised when reading, writing or replacing a file fails."""
    category = "IOFailure"


class SecureDeleteError(FileIOError):
    """Raised when removing a consumed file fails."""


class PasswordError(DirsealError):
    """Raised when the password cannot be acquired."""
    category = "PasswordFailure"


class PasswordMismatchError(PasswordError):
    """Raised when the confirmation entry differs from the password."""


class ConfigError(DirsealError):
    """Raised when configuration operations fail."""
    category = "ConfigFailure"
