from __future__ import annotations
import os, shutil
from pathlib import Path
from typing import Callable

from .errors import ArchiveIOError, CopyVerificationError
from .hashing import legacy_digest
from .logs import get_logger

log = get_logger(__name__)

Copier = Callable[[str, str], object]


def digest_name(digest: str, file_name: str) -> str:
    return f"{digest}_{file_name}"


def rename_by_digest(artifact: str | Path) -> Path:
    """
    Rename artifact to '<md5>_<name>' in the same directory. Returns the new path.
    """
    artifact = Path(artifact)
    try:
        md5 = legacy_digest(artifact)
        target = artifact.with_name(digest_name(md5, artifact.name))
        os.replace(artifact, target)   # atomic on same volume
    except OSError as e:
        raise ArchiveIOError(f"failed to rename {artifact}: {e}", stage="renaming") from e
    log.info("renamed", artifact=target.name)
    return target


def _discard(dst: Path) -> None:
    try:
        dst.unlink(missing_ok=True)
    except OSError as e:
        log.warning("cleanup_failed", path=str(dst), error=str(e))


def copy_to_destination(path: str | Path, dest_dir: str | Path,
                        copier: Copier = shutil.copyfile) -> Path:
    """
    Copy the finalized artifact into dest_dir, then re-hash both ends.

    This checks the copy channel, not the compression (the round trip covers that).
    Raises CopyVerificationError when the two MD5s differ. A copy that failed or
    did not verify is removed from dest_dir.
    """
    src = Path(path)
    dst = Path(dest_dir) / src.name
    if dst.resolve() == src.resolve():
        raise ArchiveIOError(f"archive dir holds the artifact itself: {dst}", stage="copying")
    try:
        Path(dest_dir).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ArchiveIOError(f"cannot create {dest_dir}: {e}", stage="copying") from e
    try:
        copier(str(src), str(dst))
        expected = legacy_digest(src)
        actual = legacy_digest(dst)
    except OSError as e:
        _discard(dst)
        raise ArchiveIOError(f"failed to copy {src} -> {dst}: {e}", stage="copying") from e

    if expected != actual:
        _discard(dst)
        raise CopyVerificationError(
            f"MD5 mismatch between original and copied file: {expected} != {actual} ({dst})",
            stage="copying", expected=expected, actual=actual,
        )
    return dst
