"""
Password Acquisition Module

Obtains the run password once, before any file is touched, either from
an interactive prompt or from a password file.
"""

import getpass
import logging
from typing import Callable, Optional

from .errors import PasswordError, PasswordMismatchError
from .key_derivation import PasswordBuffer, wipe_memory

logger = logging.getLogger(__name__)


def prompt_password(confirm: bool = False, prompt: Optional[Callable[[str], str]] = None) -> PasswordBuffer:
    """
    Read the password from the terminal without echo.

    Args:
        confirm: Ask a second time and require both entries to match
        prompt: Prompt function, ``getpass.getpass`` by default

    Returns:
        Password buffer

    Raises:
        PasswordError: If input is cancelled
        PasswordMismatchError: If the confirmation does not match
    """
    prompt = prompt or getpass.getpass
    try:
        password = PasswordBuffer(prompt("Enter password: "))
        if confirm:
            confirmation = PasswordBuffer(prompt("Confirm password: "))
            matches = password.value == confirmation.value
            confirmation.wipe()
            if not matches:
                password.wipe()
                raise PasswordMismatchError("Passwords do not match")
    except (KeyboardInterrupt, EOFError) as e:
        raise PasswordError("Password input cancelled") from e

    if not len(password):
        logger.warning("Using an empty password")

    return password


def read_password_file(path: str) -> PasswordBuffer:
    """
    Read the password from a file.

    One trailing line ending is removed. A password file counts as
    already confirmed.

    Raises:
        PasswordError: If the file cannot be read
    """
    try:
        with open(path, 'rb') as f:
            raw = bytearray(f.read())
    except OSError as e:
        raise PasswordError(f"Error reading password file {path}: {e}") from e

    data = bytearray(raw)
    for ending in (b"\r\n", b"\n"):
        if data.endswith(ending):
            del data[-len(ending):]
            break
    wipe_memory(raw)

    if not data:
        logger.warning("Password file %s holds an empty password", path)

    password = PasswordBuffer(data)
    wipe_memory(data)
    return password


def get_password(confirm: bool = False, password_file: Optional[str] = None) -> PasswordBuffer:
    """Acquire the password from ``password_file`` if given, else by prompt."""
    if password_file:
        return read_password_file(password_file)
    return prompt_password(confirm=confirm)
