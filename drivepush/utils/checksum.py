"""
Utility for calculating content checksums of local files.
"""
import hashlib
from pathlib import Path
from typing import Literal, BinaryIO

from ..config import CHECKSUM_ALGORITHM


def calculate_checksum(
    file_path: Path,
    algorithm: Literal["md5", "sha256"] = CHECKSUM_ALGORITHM,
    buffer_size: int = 65536,
) -> str:
    """
    Calculate checksum for a file.

    Remote services report md5 digests, so local files are hashed with
    md5 unless told otherwise.

    Args:
        file_path: Path to the file
        algorithm: Hash algorithm to use ("md5" or "sha256")
        buffer_size: Size of chunks to read

    Returns:
        Hexadecimal string of the calculated hash
    """
    hash_func = hashlib.md5() if algorithm == "md5" else hashlib.sha256()

    with open(file_path, "rb") as f:
        return _calculate_hash(f, hash_func, buffer_size)


def _calculate_hash(file_obj: BinaryIO, hash_func, buffer_size: int) -> str:
    """
    Helper function to calculate hash from a file object
    """
    while True:
        data = file_obj.read(buffer_size)
        if not data:
            break
        hash_func.update(data)

    return hash_func.hexdigest()
