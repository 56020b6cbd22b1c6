# checksum_archiver/tarball.py
from __future__ import annotations
import subprocess
from pathlib import Path
from typing import Protocol

from .errors import ArchiveIOError, PackError, UnpackError
from .logs import get_logger
from .paths import TAR_EXE, artifact_name
from .proc import run_tool

log = get_logger(__name__)


class Archiver(Protocol):
    """Pack a folder into one artifact and expand it again, by path only."""

    def pack(self, source_dir: str | Path, scratch_dir: str | Path) -> Path: ...

    def unpack(self, artifact: str | Path, dest_dir: str | Path) -> None: ...


def _tool_message(what: str, e: subprocess.CalledProcessError) -> str:
    err = (e.stderr or "").strip()
    return f"{what} (exit {e.returncode}){': ' + err if err else ''}"


class TarArchiver:
    """gzip'd tarball through an external `tar` binary."""

    def __init__(self, tar_exe: str | None = None):
        self.tar_exe = tar_exe or TAR_EXE

    def pack(self, source_dir: str | Path, scratch_dir: str | Path) -> Path:
        """
        <scratch_dir>/<folder>.tgz containing the folder itself (tar runs from its parent).
        """
        source = Path(source_dir).resolve()
        folder = source.name
        if not folder:
            raise PackError(f"The folder to archive has no valid name: {source_dir}", stage="packing")
        parent = source.parent
        if parent == source:
            raise PackError(f"The folder to archive has no valid parent directory: {source_dir}", stage="packing")

        out = Path(scratch_dir).resolve() / artifact_name(folder)
        try:
            out.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArchiveIOError(f"cannot create scratch dir {out.parent}: {e}", stage="packing") from e

        cmd = [self.tar_exe, "-czf", str(out), "-C", str(parent), folder]
        log.debug("run_tool", cmd=cmd)
        try:
            run_tool(cmd, check=True)
        except FileNotFoundError as e:
            raise PackError(f"archiver not found: {self.tar_exe}", stage="packing") from e
        except subprocess.CalledProcessError as e:
            raise PackError(_tool_message("Failed to compress folder", e), stage="packing",
                            returncode=e.returncode, stderr=e.stderr) from e
        return out

    def unpack(self, artifact: str | Path, dest_dir: str | Path) -> None:
        dest = Path(dest_dir)
        try:
            dest.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArchiveIOError(f"cannot create {dest}: {e}", stage="unpacking") from e

        cmd = [self.tar_exe, "-xzf", str(artifact), "-C", str(dest)]
        log.debug("run_tool", cmd=cmd)
        try:
            run_tool(cmd, check=True)
        except FileNotFoundError as e:
            raise UnpackError(f"archiver not found: {self.tar_exe}", stage="unpacking") from e
        except subprocess.CalledProcessError as e:
            raise UnpackError(_tool_message("Failed to extract compressed folder", e), stage="unpacking",
                              returncode=e.returncode, stderr=e.stderr) from e
