# checksum_archiver/workspace.py
from __future__ import annotations
import shutil
from pathlib import Path

from .errors import ArchiveIOError
from .logs import get_logger
from .paths import decompressed_manifest_path, source_manifest_path, verification_dir

log = get_logger(__name__)


class ScratchWorkspace:
    """
    The run's view of the caller's scratch directory.

    Owns the two manifest files and the verification subdirectory. On exit the
    manifests are removed, and so is an artifact that never got finalized,
    unless keep=True. The verification subdirectory is dropped by
    discard_verification() right after the comparison, and again on exit.
    """

    def __init__(self, root: str | Path, folder_name: str, keep: bool = False):
        self.root = Path(root).resolve()
        self.folder_name = folder_name
        self.keep = keep
        self.source_manifest = source_manifest_path(self.root, folder_name)
        self.decompressed_manifest = decompressed_manifest_path(self.root, folder_name)
        self.verify_dir = verification_dir(self.root)
        self.pending_artifact: Path | None = None

    def __enter__(self) -> "ScratchWorkspace":
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArchiveIOError(f"cannot create scratch dir {self.root}: {e}", stage="preparing") from e
        # leftovers from an earlier run would be hashed as part of this one
        self.discard_verification()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.discard_verification()
        if self.keep:
            log.info("keep_scratch", scratch=str(self.root))
            return
        for p in (self.source_manifest, self.decompressed_manifest, self.pending_artifact):
            if p is None:
                continue
            try:
                p.unlink(missing_ok=True)
            except OSError as e:
                log.warning("cleanup_failed", path=str(p), error=str(e))

    def discard_verification(self) -> None:
        if self.verify_dir.exists():
            shutil.rmtree(self.verify_dir, ignore_errors=True)
            if self.verify_dir.exists():
                log.warning("cleanup_failed", path=str(self.verify_dir))

    def finalized(self) -> None:
        """Artifact has been renamed; it is the product now, never cleaned up."""
        self.pending_artifact = None
