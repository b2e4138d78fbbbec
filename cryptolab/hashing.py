"""
Hashing helpers for the hashing page of the playground.

Digests are returned as lowercase hex strings.
"""

from pathlib import Path
from typing import Union
from cryptography.hazmat.primitives import hashes


HASH_ALGORITHMS = {
    "sha512": hashes.SHA512,
    "sha384": hashes.SHA384,
    "sha256": hashes.SHA256,
    "sha1": hashes.SHA1,
    "md5": hashes.MD5,
}

# Still offered for comparison, but broken for collision resistance
INSECURE_ALGORITHMS = frozenset({"sha1", "md5"})

DEFAULT_ALGORITHM = "sha512"

_CHUNK_SIZE = 64 * 1024


def to_hex(data: bytes) -> str:
    """Render bytes as lowercase hex"""
    return bytes(data).hex()


def _new_hash(algorithm: str) -> hashes.Hash:
    try:
        algorithm_cls = HASH_ALGORITHMS[algorithm.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown hash algorithm '{algorithm}', expected one of {', '.join(HASH_ALGORITHMS)}"
        )
    return hashes.Hash(algorithm_cls())


def hash_bytes(data: bytes, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """
    Hash raw bytes.

    Args:
        data: Input bytes
        algorithm: One of HASH_ALGORITHMS

    Returns:
        Hex digest
    """
    digest = _new_hash(algorithm)
    digest.update(data)
    return to_hex(digest.finalize())


def hash_text(text: str, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """Hash the UTF-8 encoding of a string"""
    return hash_bytes(text.encode("utf-8"), algorithm)


def hash_file(path: Union[str, Path], algorithm: str = DEFAULT_ALGORITHM) -> str:
    """
    Hash a file's contents, e.g. to compare against a published checksum.

    Args:
        path: File to read
        algorithm: One of HASH_ALGORITHMS

    Returns:
        Hex digest
    """
    digest = _new_hash(algorithm)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return to_hex(digest.finalize())


def is_insecure(algorithm: str) -> bool:
    return algorithm.lower() in INSECURE_ALGORITHMS
