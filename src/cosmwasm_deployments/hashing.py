"""Artifact fingerprinting for cosmwasm-deployments library."""

import hashlib
from pathlib import Path
from typing import Union

from .exceptions import ArtifactReadError
from .types import Artifact


def hash_artifact(data: bytes) -> str:
    """
    Compute the content fingerprint of an artifact.

    Args:
        data: Raw artifact bytes

    Returns:
        Lowercase hex SHA-256 digest (64 characters)
    """
    return hashlib.sha256(data).hexdigest()


def read_artifact(path: Union[Path, str]) -> bytes:
    """
    Read a compiled artifact.

    Raises:
        ArtifactReadError: If the file is missing or unreadable
    """
    path = Path(path)
    try:
        return path.read_bytes()
    except OSError as e:
        raise ArtifactReadError(f"Cannot read artifact {path}: {e}") from e


def fingerprint_artifact(path: Union[Path, str]) -> Artifact:
    """Read an artifact and compute its fingerprint."""
    data = read_artifact(path)
    return Artifact(path=Path(path), data=data, content_hash=hash_artifact(data))
