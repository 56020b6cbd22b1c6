from __future__ import annotations
import hashlib
from pathlib import Path

_CHUNK = 1024 * 1024


def strong_digest(path: str | Path) -> str:
    """SHA-256 of the file's bytes, streamed in 1 MiB chunks."""
    h = hashlib.sha256()
    with Path(path).open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK), b""):
            h.update(chunk)
    return h.hexdigest()


def legacy_digest(path: str | Path) -> str:
    """MD5 of the file, streamed like strong_digest. Identity tag only (artifact name, copy check)."""
    h = hashlib.md5(usedforsecurity=False)
    with Path(path).open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK), b""):
            h.update(chunk)
    return h.hexdigest()
