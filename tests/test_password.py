"""
Test suite for password acquisition.
"""

import logging
from unittest import mock

import pytest

from dirseal import password as password_module
from dirseal.core import decrypt_data, encrypt_data
from dirseal.errors import PasswordError, PasswordMismatchError
from dirseal.password import get_password, prompt_password, read_password_file


def prompter(*answers):
    replies = iter(answers)
    return lambda prompt: next(replies)


class TestPrompt:
    """Test interactive entry."""

    def test_single_entry(self):
        password = prompt_password(prompt=prompter("secret"))
        assert password.value == bytearray(b"secret")

    def test_confirmed_entry(self):
        password = prompt_password(confirm=True, prompt=prompter("secret", "secret"))
        assert password.value == bytearray(b"secret")

    def test_mismatch(self):
        with pytest.raises(PasswordMismatchError):
            prompt_password(confirm=True, prompt=prompter("secret", "other"))

    def test_empty_password_is_accepted(self, caplog):
        with caplog.at_level(logging.WARNING, logger="dirseal"):
            password = prompt_password(confirm=True, prompt=prompter("", ""))
        assert password.value == bytearray()
        assert "empty password" in caplog.text

        envelope = encrypt_data(b"payload", password)
        assert decrypt_data(envelope, b"") == b"payload"

    def test_cancelled(self):
        def cancel(prompt):
            raise KeyboardInterrupt

        with pytest.raises(PasswordError):
            prompt_password(prompt=cancel)

    def test_uses_getpass_by_default(self):
        with mock.patch.object(password_module.getpass, "getpass", return_value="typed") as getpass:
            password = get_password(confirm=True)
        assert password.value == bytearray(b"typed")
        assert getpass.call_count == 2


class TestPasswordFile:
    """Test reading the password from a file."""

    def test_strips_one_newline(self, tmp_path):
        path = tmp_path / "pw"
        path.write_bytes(b"secret \n\n")
        assert read_password_file(str(path)).value == bytearray(b"secret \n")

    def test_strips_crlf(self, tmp_path):
        path = tmp_path / "pw"
        path.write_bytes(b"secret\r\n")
        assert read_password_file(str(path)).value == bytearray(b"secret")

    def test_empty_file_opens_empty_password_envelope(self, tmp_path):
        path = tmp_path / "pw"
        path.write_bytes(b"\n")
        envelope = encrypt_data(b"payload", b"")

        with read_password_file(str(path)) as password:
            assert len(password) == 0
            assert decrypt_data(envelope, password) == b"payload"

    def test_missing_file(self, tmp_path):
        with pytest.raises(PasswordError):
            read_password_file(str(tmp_path / "missing"))

    def test_get_password_prefers_file(self, password_file, sample_password):
        with mock.patch.object(password_module.getpass, "getpass") as getpass:
            password = get_password(confirm=True, password_file=str(password_file))
        getpass.assert_not_called()
        assert password.value == bytearray(sample_password)
