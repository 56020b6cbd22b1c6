import hashlib

import pytest

from checksum_archiver.hashing import legacy_digest, strong_digest


def test_strong_digest_known_value(tmp_path):
    f = tmp_path / "abc.txt"
    f.write_bytes(b"abc")
    assert strong_digest(f) == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


def test_strong_digest_is_idempotent(tmp_path):
    f = tmp_path / "big.bin"
    f.write_bytes(b"x" * (3 * 1024 * 1024 + 17))  # crosses chunk boundaries
    first = strong_digest(f)
    assert strong_digest(f) == first
    assert first == hashlib.sha256(f.read_bytes()).hexdigest()


def test_legacy_digest_of_empty_file(tmp_path):
    f = tmp_path / "data.tgz"
    f.write_bytes(b"")
    assert legacy_digest(f) == "d41d8cd98f00b204e9800998ecf8427e"


def test_missing_file_raises_oserror(tmp_path):
    with pytest.raises(OSError):
        strong_digest(tmp_path / "nope")
    with pytest.raises(OSError):
        legacy_digest(tmp_path / "nope")


def test_legacy_digest_streams_large_files(tmp_path):
    f = tmp_path / "big.tgz"
    data = bytes(range(256)) * (9 * 1024)   # a bit over two 1 MiB chunks
    f.write_bytes(data)
    assert legacy_digest(f) == hashlib.md5(data).hexdigest()


def test_legacy_digest_does_not_read_whole_file(tmp_path, monkeypatch):
    f = tmp_path / "data.tgz"
    f.write_bytes(b"abc")

    def no_read_bytes(self):
        raise AssertionError("read_bytes should not be used")

    monkeypatch.setattr(type(f), "read_bytes", no_read_bytes)
    assert legacy_digest(f) == "900150983cd24fb0d6963f7d28e17f72"
