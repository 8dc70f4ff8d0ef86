"""
Secure Delete Module

Removes the file a transformation has consumed, optionally overwriting
its contents with random data first.
"""

import os
import stat

from .errors import SecureDeleteError
from .key_derivation import random_bytes

CHUNK_SIZE = 64 * 1024


def _overwrite_file(path: str, passes: int) -> None:
    file_size = os.path.getsize(path)
    if file_size == 0:
        return

    with open(path, 'r+b') as f:
        for _ in range(passes):
            f.seek(0)
            remaining = file_size
            while remaining > 0:
                chunk = min(CHUNK_SIZE, remaining)
                f.write(random_bytes(chunk))
                remaining -= chunk
            f.flush()
            os.fsync(f.fileno())


def remove_file(path: str, secure: bool = False, passes: int = 1) -> None:
    """
    Delete a file, overwriting it first when ``secure`` is set.

    Args:
        path: File to delete
        secure: Overwrite contents with random bytes before unlinking
        passes: Number of overwrite passes

    Raises:
        SecureDeleteError: If the file cannot be overwritten or removed
    """
    try:
        if secure:
            if passes < 1:
                raise ValueError(f"passes must be positive, got {passes}")
            try:
                _overwrite_file(path, passes)
            except PermissionError:
                os.chmod(path, stat.S_IWRITE | stat.S_IREAD)
                _overwrite_file(path, passes)
        os.remove(path)
    except (OSError, ValueError) as e:
        raise SecureDeleteError(f"Failed to remove {path}: {e}") from e
