from __future__ import annotations
import os, shutil
from pathlib import Path

import psutil

from .logs import get_logger, status

log = get_logger(__name__)


def tree_size(root: str | Path) -> int:
    """Total bytes of the regular files under root (symlinks not followed)."""
    total = 0
    for r, _, fs in os.walk(root):
        for f in fs:
            p = os.path.join(r, f)
            try:
                if not os.path.islink(p):
                    total += os.path.getsize(p)
            except OSError:
                continue
    return total


def check_resources(scratch_dir: str | Path, needed_bytes: int = 0, min_ram_gb: float = 1) -> list[str]:
    """Warn (never fail) when memory or scratch space look too small. Returns the warnings."""
    warnings: list[str] = []
    mem = psutil.virtual_memory().available / (1024**3)
    if mem < min_ram_gb:
        warnings.append(f"WARNING: Low memory ({mem:.1f} GB available)")
    anchor = Path(scratch_dir)
    while not anchor.exists() and anchor != anchor.parent:
        anchor = anchor.parent
    free = shutil.disk_usage(anchor).free
    # artifact plus the decompressed verification copy
    if needed_bytes and free < needed_bytes * 2:
        warnings.append(f"WARNING: Low scratch space ({free / (1024**3):.1f} GB free, "
                        f"~{needed_bytes * 2 / (1024**3):.1f} GB may be needed)")
    for w in warnings:
        status(w)
        log.warning("resources", message=w)
    return warnings


def optimal_threads(cap: int = 8) -> int:
    # hashing is I/O-heavy: leave one core, 512MB per thread
    cores = max(psutil.cpu_count(logical=False) or 1, 1)
    ram_gb = psutil.virtual_memory().total / (1024**3)
    by_ram = max(1, int(ram_gb * 2))
    by_cpu = max(1, cores - 1)
    return max(1, min(by_ram, by_cpu, cap))
