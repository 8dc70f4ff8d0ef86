"""
Test configuration and fixtures for pytest.
"""

import logging
import shutil
import tempfile
from pathlib import Path

import pytest


@pytest.fixture
def temp_directory():
    """Create a temporary directory for testing."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def test_file(temp_directory):
    """Create a test file in temporary directory."""
    test_data = b"Hello, World! This is test data."
    file_path = Path(temp_directory) / "test_file.txt"
    file_path.write_bytes(test_data)
    return file_path, test_data


@pytest.fixture
def test_tree(temp_directory):
    """Create a small directory tree with nested files."""
    root = Path(temp_directory)
    (root / "sub" / "deeper").mkdir(parents=True)
    files = {
        root / "a.txt": b"alpha",
        root / "b.bin": bytes(range(256)),
        root / "sub" / "c.txt": b"charlie" * 100,
        root / "sub" / "deeper" / "empty.txt": b"",
    }
    for path, data in files.items():
        path.write_bytes(data)
    return root, files


@pytest.fixture
def sample_password():
    """Sample password for testing."""
    return b"correct-horse"


@pytest.fixture
def password_file(tmp_path, sample_password):
    """Password file kept outside the tree under test."""
    path = tmp_path / "password.txt"
    path.write_bytes(sample_password + b"\n")
    return path


@pytest.fixture(autouse=True)
def reset_dirseal_logger():
    """Undo handlers installed by setup_logging so caplog keeps working."""
    yield
    logger = logging.getLogger("dirseal")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
