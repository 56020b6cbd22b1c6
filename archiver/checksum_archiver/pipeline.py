"""
Archive pipeline: hash the source tree while packing it, expand the artifact into
scratch, re-hash, compare, then finalize.

- The source manifest is built on a side thread while the main thread runs
  pack -> unpack -> re-hash. Both manifest builds share one hashing pool.
- The artifact is renamed only after the two manifests match, and exactly once.
- Copying to the archive dir happens only with move_to_archive and archive_dir.
- The verification subdirectory is removed after the comparison either way.
"""
from __future__ import annotations
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .errors import ArchiveIOError, ArchiverError, ConfigError, ManifestMismatchError, VerificationError
from .finalize import copy_to_destination, rename_by_digest
from .logs import get_logger, status
from .manifest import build_manifest, diff, equal, read_manifest
from .paths import artifact_name, verification_dir
from .tarball import Archiver, TarArchiver
from .workspace import ScratchWorkspace

log = get_logger(__name__)


class Stage(str, Enum):
    IDLE = "idle"
    PREPARING = "preparing"      # scratch dir setup
    HASHING = "hashing"          # source manifest, runs alongside packing
    PACKING = "packing"
    UNPACKING = "unpacking"
    REHASHING = "rehashing"
    COMPARING = "comparing"
    RENAMING = "renaming"
    COPYING = "copying"
    DONE = "done"


@dataclass
class ArchiveJob:
    source_dir: Path
    scratch_dir: Path
    move_to_archive: bool = False
    cores: int = 4
    archive_dir: Path | None = None
    keep_scratch: bool = False

    def __post_init__(self):
        self.source_dir = Path(self.source_dir)
        self.scratch_dir = Path(self.scratch_dir)
        if self.archive_dir is not None:
            self.archive_dir = Path(self.archive_dir)

    @property
    def folder_name(self) -> str:
        return self.source_dir.resolve().name

    def validate(self) -> None:
        if self.move_to_archive and self.archive_dir is None:
            raise ConfigError("Archive directory not specified.", stage=Stage.IDLE.value)
        if self.cores < 1:
            raise ConfigError(f"cores must be >= 1, got {self.cores}", stage=Stage.IDLE.value)
        if not self.source_dir.is_dir():
            raise ConfigError(f"Folder to archive not found: {self.source_dir}", stage=Stage.IDLE.value)
        if not self.folder_name:
            raise ConfigError(f"The folder to archive has no valid name: {self.source_dir}",
                              stage=Stage.IDLE.value)

        source = self.source_dir.resolve()
        scratch = self.scratch_dir.resolve()
        verify = verification_dir(scratch)
        # the verification dir is wiped before and after each run
        if source == verify or source.is_relative_to(verify):
            raise ConfigError(f"Folder to archive lies in the verification directory {verify}",
                              stage=Stage.IDLE.value)
        # tar and the source hash would pick up the artifact and the decompressed copy
        if scratch.is_relative_to(source):
            raise ConfigError(f"Scratch directory {scratch} must not be inside the folder to archive",
                              stage=Stage.IDLE.value)


@dataclass
class PipelineResult:
    ok: bool
    stage: Stage
    artifact: Path | None = None
    copied_to: Path | None = None
    files: int = 0
    error: ArchiverError | None = None


def _manifest(root: Path, out: Path, pool: Executor, base: Path, stage: Stage, desc: str) -> int:
    try:
        return len(build_manifest(root, out, pool, base=base, desc=desc))
    except OSError as e:
        raise ArchiveIOError(f"failed to write manifest {out}: {e}", stage=stage.value) from e


def verify_round_trip(source_manifest: Path, decompressed_manifest: Path) -> int:
    """Compare two manifest files; returns the number of entries, raises on mismatch."""
    try:
        original = read_manifest(source_manifest)
        decompressed = read_manifest(decompressed_manifest)
    except OSError as e:
        raise ArchiveIOError(f"cannot read manifests: {e}", stage=Stage.COMPARING.value) from e

    if not equal(original, decompressed):
        missing, extra = diff(original, decompressed)
        raise ManifestMismatchError(
            f"Checksum mismatch: {len(missing)} digest(s) missing, {len(extra)} unexpected",
            stage=Stage.COMPARING.value, missing=missing, extra=extra,
        )
    return len(original)


def _report_mismatch(e: ManifestMismatchError) -> None:
    shown = 0
    for label, group in (("missing", e.missing), ("unexpected", e.extra)):
        for digest, paths in group.items():
            if shown >= 10:
                return
            status(f"  - {label}: {digest[:16]}… {', '.join(paths) or '?'}")
            shown += 1


def run_pipeline(job: ArchiveJob, archiver: Archiver | None = None) -> PipelineResult:
    """
    Run one archive job to completion.

    Raises ConfigError for bad inputs before touching anything. Every other
    failure is returned as PipelineResult(ok=False, stage=<where it failed>).
    """
    job.validate()
    archiver = archiver or TarArchiver()
    source = job.source_dir.resolve()
    stage = Stage.PREPARING
    artifact: Path | None = None
    files = 0
    t0 = time.monotonic()

    try:
        with ScratchWorkspace(job.scratch_dir, source.name, keep=job.keep_scratch) as ws, \
                ThreadPoolExecutor(max_workers=job.cores, thread_name_prefix="hash") as pool, \
                ThreadPoolExecutor(max_workers=1, thread_name_prefix="source-manifest") as side:

            status("Hashing source tree and compressing...")
            stage = Stage.HASHING
            src_fut = side.submit(_manifest, source, ws.source_manifest, pool,
                                  source.parent, Stage.HASHING, "Hashing source")

            stage = Stage.PACKING
            ws.pending_artifact = ws.root / artifact_name(source.name)
            t_pack = time.monotonic()
            try:
                artifact = archiver.pack(source, ws.root)
            except ArchiverError as e:
                log.error("compression", status="failed", source=str(source), error=str(e))
                raise
            ws.pending_artifact = artifact
            log.info("compression", status="ok", source=str(source), artifact=str(artifact),
                     elapsed=round(time.monotonic() - t_pack, 3))
            status(f"Compressed folder -> {artifact}")

            try:
                stage = Stage.UNPACKING
                archiver.unpack(artifact, ws.verify_dir)

                stage = Stage.REHASHING
                _manifest(ws.verify_dir, ws.decompressed_manifest, pool,
                          ws.verify_dir, Stage.REHASHING, "Re-hashing")

                stage = Stage.HASHING
                src_fut.result()

                stage = Stage.COMPARING
                files = verify_round_trip(ws.source_manifest, ws.decompressed_manifest)
            except VerificationError as e:
                log.error("verification", status="mismatch", artifact=str(artifact), error=str(e))
                raise
            finally:
                ws.discard_verification()

            log.info("verification", status="match", artifact=str(artifact), files=files)
            status("Verification of compressed folder successful.")

            stage = Stage.RENAMING
            artifact = rename_by_digest(artifact)
            ws.finalized()
            status(f"Finalized artifact -> {artifact}")

            copied_to = None
            if job.move_to_archive:
                stage = Stage.COPYING
                try:
                    copied_to = copy_to_destination(artifact, job.archive_dir)
                except ArchiverError as e:
                    log.error("copy", status="mismatch" if isinstance(e, VerificationError) else "failed",
                              artifact=str(artifact), destination=str(job.archive_dir), error=str(e))
                    raise
                log.info("copy", status="ok", artifact=str(artifact), destination=str(copied_to),
                         digest=artifact.name.split("_", 1)[0])
                status("Verification of copied file successful.")

            stage = Stage.DONE

    except ArchiverError as e:
        if isinstance(e, ManifestMismatchError):
            _report_mismatch(e)
        log.error("pipeline", status="failed", stage=stage.value, source=str(source), error=str(e))
        status(f"Archiving failed at {stage.value}: {e}")
        return PipelineResult(ok=False, stage=stage, artifact=artifact, files=files, error=e)
    except OSError as e:
        err = ArchiveIOError(str(e), stage=stage.value)
        log.error("pipeline", status="failed", stage=stage.value, source=str(source), error=str(e))
        status(f"Archiving failed at {stage.value}: {e}")
        return PipelineResult(ok=False, stage=stage, artifact=artifact, files=files, error=err)

    log.info("pipeline", status="ok", stage=stage.value, artifact=str(artifact), files=files,
             elapsed=round(time.monotonic() - t0, 3))
    status("Archiving completed successfully.")
    return PipelineResult(ok=True, stage=Stage.DONE, artifact=artifact, copied_to=copied_to, files=files)
