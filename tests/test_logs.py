import json
import logging

from checksum_archiver.logs import LOGGER_NAME, get_logger, setup_logging


def _records(log_file):
    return [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]


def test_events_are_json_lines(tmp_path):
    log_file = tmp_path / "a.log"
    setup_logging(log_file)
    log = get_logger("checksum_archiver.sample")
    log.info("compression", status="ok", artifact="x.tgz")
    log.debug("not_written_at_info")

    records = _records(log_file)
    assert len(records) == 1
    rec = records[0]
    assert rec["event"] == "compression"
    assert rec["status"] == "ok"
    assert rec["artifact"] == "x.tgz"
    assert rec["logger"] == "checksum_archiver.sample"
    assert rec["level"] == "info"
    assert rec["timestamp"].endswith("Z")


def test_exception_is_rendered(tmp_path):
    log_file = tmp_path / "a.log"
    setup_logging(log_file)
    try:
        raise OSError("disk gone")
    except OSError:
        get_logger("sample").exception("copy", status="failed")

    rec = _records(log_file)[0]
    assert rec["level"] == "error"
    assert "disk gone" in rec["exception"]


def test_setup_is_idempotent(tmp_path):
    setup_logging(tmp_path / "a.log")
    setup_logging(tmp_path / "b.log")
    assert len(logging.getLogger(LOGGER_NAME).handlers) == 1


def test_get_logger_nests_under_package(tmp_path):
    log_file = tmp_path / "a.log"
    setup_logging(log_file)
    get_logger("elsewhere").info("one")
    get_logger("checksum_archiver.manifest").info("two")

    assert [r["logger"] for r in _records(log_file)] == [
        f"{LOGGER_NAME}.elsewhere", "checksum_archiver.manifest",
    ]
