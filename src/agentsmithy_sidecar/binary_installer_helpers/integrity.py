"""Size and content-hash checks for installed binaries."""

from __future__ import annotations

import hashlib
from pathlib import Path

HASH_CHUNK_BYTES = 1024 * 1024


def compute_file_sha256(path: Path) -> str:
    """Hex SHA-256 of ``path``, read in chunks. Raises ``OSError`` if unreadable."""
    digest = hashlib.sha256()
    with open(path, "rb") as handle:
        for chunk in iter(lambda: handle.read(HASH_CHUNK_BYTES), b""):
            digest.update(chunk)
    return digest.hexdigest()


def hashes_match(actual_hex: str, expected_hex: str) -> bool:
    return actual_hex.strip().lower() == expected_hex.strip().lower()


def size_matches(path: Path, expected_size: int) -> bool:
    """True iff ``path`` exists and is exactly ``expected_size`` bytes."""
    try:
        return path.stat().st_size == expected_size
    except OSError:  # policy_guard: allow-silent-handler
        return False
