"""Checksum manifests: build one for a directory tree, parse it back, compare two.

On disk a manifest is UTF-8 text with one record per line::

    <sha256-hex> <path>

The digest never contains whitespace, so a record is split at its first
whitespace character and everything after it is the path, spaces included.
Paths holding a backslash, CR or LF are escaped (``\\\\``, ``\\r``, ``\\n``) and
the record is prefixed with a single backslash, the same convention
``sha256sum`` uses.
"""
from __future__ import annotations
import os
from collections import Counter
from concurrent.futures import Executor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, NamedTuple

from tqdm import tqdm

from .hashing import strong_digest
from .logs import get_logger, tqdm_disable, tqdm_file

log = get_logger(__name__)

_ESCAPES = {"\\": "\\\\", "\n": "\\n", "\r": "\\r"}
_UNESCAPES = {"\\": "\\", "n": "\n", "r": "\r"}


class ManifestEntry(NamedTuple):
    digest: str
    path: str


@dataclass
class ManifestIndex:
    """Multiset of digests; digest -> paths is kept for diagnostics only."""
    counts: Counter = field(default_factory=Counter)
    paths: dict[str, list[str]] = field(default_factory=dict)

    def add(self, digest: str, path: str) -> None:
        self.counts[digest] += 1
        self.paths.setdefault(digest, []).append(path)

    def __len__(self) -> int:
        return sum(self.counts.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ManifestIndex):
            return NotImplemented
        return equal(self, other)


# ----- record format -----

def _escape(path: str) -> tuple[bool, str]:
    if not any(c in path for c in _ESCAPES):
        return False, path
    return True, "".join(_ESCAPES.get(c, c) for c in path)


def _unescape(path: str) -> str:
    out = []
    it = iter(path)
    for c in it:
        if c == "\\":
            nxt = next(it, "")
            out.append(_UNESCAPES.get(nxt, "\\" + nxt))
        else:
            out.append(c)
    return "".join(out)


def format_entry(entry: ManifestEntry) -> str:
    escaped, path = _escape(entry.path)
    prefix = "\\" if escaped else ""
    return f"{prefix}{entry.digest} {path}\n"


def parse_line(line: str) -> ManifestEntry | None:
    """Split a record at its first whitespace; None for blank or malformed lines."""
    if line.endswith("\r"):
        line = line[:-1]
    escaped = line.startswith("\\")
    if escaped:
        line = line[1:]
    for i, c in enumerate(line):
        if c.isspace():
            break
    else:
        return None
    digest, path = line[:i], line[i + 1:]
    if not digest:
        return None
    return ManifestEntry(digest, _unescape(path) if escaped else path)


def parse(text: str) -> ManifestIndex:
    idx = ManifestIndex()
    # split on "\n" only: str.splitlines() also breaks on characters legal in paths
    for line in text.split("\n"):
        entry = parse_line(line)
        if entry is not None:
            idx.add(entry.digest, entry.path)
    return idx


def read_manifest(path: str | Path) -> ManifestIndex:
    return parse(Path(path).read_text(encoding="utf-8", errors="surrogateescape"))


def write_manifest(entries: Iterable[ManifestEntry], out_path: str | Path) -> None:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", encoding="utf-8", errors="surrogateescape", newline="\n") as f:
        for e in entries:
            f.write(format_entry(e))


# ----- comparison -----

def equal(a: ManifestIndex, b: ManifestIndex) -> bool:
    """True iff both hold the same digests the same number of times. Paths are ignored."""
    return +a.counts == +b.counts


def diff(a: ManifestIndex, b: ManifestIndex) -> tuple[dict[str, list[str]], dict[str, list[str]]]:
    """(digests short in b, with a's paths), (digests surplus in b, with b's paths)."""
    missing = {d: a.paths.get(d, []) for d in (a.counts - b.counts)}
    extra = {d: b.paths.get(d, []) for d in (b.counts - a.counts)}
    return missing, extra


# ----- tree digest builder -----

def list_files(root: str | Path) -> list[str]:
    """
    Regular files under root in stable (sorted) order, absolute paths.
    Symlinks are not followed and not hashed; unreadable directories are skipped.
    """
    files: list[str] = []
    for r, dirs, fs in os.walk(root, followlinks=False):
        dirs.sort()
        for f in sorted(fs):
            p = os.path.join(r, f)
            if os.path.isfile(p) and not os.path.islink(p):
                files.append(p)
    return files


def _display_path(p: str, base: str) -> str:
    return Path(os.path.relpath(p, base)).as_posix()


def build_manifest(root: str | Path, out_path: str | Path, pool: Executor,
                   base: str | Path | None = None, desc: str = "Hashing") -> list[ManifestEntry]:
    """
    Hash every regular file under root on `pool` and write the manifest to out_path.

    Records are written after all hashes are in, in walk order, with paths relative
    to `base` (root by default). Files that fail to hash are logged and left out.
    """
    root = os.path.abspath(root)
    base = os.path.abspath(base) if base is not None else root
    files = list_files(root)

    with tqdm(total=len(files), desc=desc, unit="file", file=tqdm_file(), disable=tqdm_disable()) as bar:
        futs = [pool.submit(strong_digest, p) for p in files]
        for _ in as_completed(futs):
            bar.update(1)

    entries: list[ManifestEntry] = []
    skipped = 0
    for p, fut in zip(files, futs):
        try:
            entries.append(ManifestEntry(fut.result(), _display_path(p, base)))
        except OSError as e:
            skipped += 1
            log.warning("hash_failed", path=p, error=str(e))

    write_manifest(entries, out_path)
    log.info("manifest_written", manifest=str(out_path), files=len(entries), skipped=skipped)
    return entries
