"""
Unit tests for utils/checksum.py
"""
import hashlib
import os
import tempfile
from pathlib import Path
import pytest

from drivepush.utils.checksum import calculate_checksum


CONTENT = b"test content for checksum verification"


@pytest.fixture
def test_file():
    """Fixture to create a temporary test file with known content."""
    with tempfile.NamedTemporaryFile(delete=False) as f:
        f.write(CONTENT)
    yield Path(f.name)
    os.unlink(f.name)


def test_calculate_checksum_defaults_to_md5(test_file):
    """Remote services compare md5 digests."""
    assert calculate_checksum(test_file) == hashlib.md5(CONTENT).hexdigest()


def test_calculate_checksum_sha256(test_file):
    """Test SHA-256 checksum calculation."""
    expected_hash = hashlib.sha256(CONTENT).hexdigest()
    calculated_hash = calculate_checksum(test_file, algorithm="sha256")

    assert calculated_hash == expected_hash


def test_calculate_checksum_small_buffer(test_file):
    """Reading in chunks gives the same digest."""
    assert calculate_checksum(test_file, buffer_size=4) == hashlib.md5(CONTENT).hexdigest()


def test_calculate_checksum_empty_file(tmp_path):
    empty = tmp_path / "empty"
    empty.touch()

    assert calculate_checksum(empty) == hashlib.md5(b"").hexdigest()
