# checksum_archiver/paths.py
from __future__ import annotations
import os, sys
from pathlib import Path

# ---- External tool ----
TAR_EXE: str = os.environ.get("ARCHIVER_TAR") or "tar"
ARTIFACT_SUFFIX: str = ".tgz"

# ---- Scratch layout (fixed names, one run per scratch dir) ----
VERIFY_SUBDIR: str = "temp_verification"

def source_manifest_path(scratch_dir: str | Path, folder_name: str) -> Path:
    return Path(scratch_dir) / f"{folder_name}_checksum.txt"

def decompressed_manifest_path(scratch_dir: str | Path, folder_name: str) -> Path:
    return Path(scratch_dir) / f"{folder_name}_checksum_decompressed.txt"

def verification_dir(scratch_dir: str | Path) -> Path:
    return Path(scratch_dir) / VERIFY_SUBDIR

def artifact_name(folder_name: str) -> str:
    return f"{folder_name}{ARTIFACT_SUFFIX}"

# ---- Outputs (next to where the tool is run) ----
def _working_dir() -> Path:
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path.cwd()

WORKING_DIR: Path = _working_dir()
LOG_FILE: str = os.environ.get("ARCHIVER_LOG_FILE") or str(WORKING_DIR / "checksum_archiver.log")

__all__ = [
    "TAR_EXE", "ARTIFACT_SUFFIX", "VERIFY_SUBDIR",
    "source_manifest_path", "decompressed_manifest_path", "verification_dir", "artifact_name",
    "WORKING_DIR", "LOG_FILE",
]
