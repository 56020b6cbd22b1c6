from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

import pytest

from checksum_archiver.logs import LOGGER_NAME


@pytest.fixture(autouse=True)
def _quiet(monkeypatch):
    """No progress bars in test output; package logger reset after each test."""
    monkeypatch.setenv("ARCHIVER_TQDM", "1")
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for h in logger.handlers[:]:
        logger.removeHandler(h)
        h.close()


@pytest.fixture
def pool():
    with ThreadPoolExecutor(max_workers=2) as ex:
        yield ex


@pytest.fixture
def source_tree(tmp_path):
    """A small tree with nesting, an empty file and a duplicated payload."""
    root = tmp_path / "src" / "data"
    (root / "sub" / "deeper").mkdir(parents=True)
    (root / "a.txt").write_text("alpha\n", encoding="utf-8")
    (root / "sub" / "b.bin").write_bytes(bytes(range(256)) * 64)
    (root / "sub" / "deeper" / "empty").write_bytes(b"")
    (root / "copy_of_a.txt").write_text("alpha\n", encoding="utf-8")
    (root / "with space.txt").write_text("spaced\n", encoding="utf-8")
    return root
