import json
import shutil

import pytest

from checksum_archiver.cli import EXIT_CODES, build_parser, job_from_args, run_cli
from checksum_archiver.pipeline import Stage

requires_tar = pytest.mark.skipif(shutil.which("tar") is None, reason="tar not on PATH")


def test_defaults():
    args = build_parser().parse_args(["-f", "src", "-t", "tmp"])
    assert args.cores == 4
    assert args.move_to_archive is False
    assert args.archive_dir is None


def test_zero_cores_means_auto(monkeypatch):
    monkeypatch.setattr("checksum_archiver.cli.optimal_threads", lambda: 3)
    args = build_parser().parse_args(["-f", "src", "-t", "tmp", "-c", "0"])
    assert job_from_args(args).cores == 3


def test_move_without_archive_dir_exits_1(source_tree, tmp_path, capsys):
    scratch = tmp_path / "scratch"
    code = run_cli(["-f", str(source_tree), "-t", str(scratch), "-m",
                    "--log-file", str(tmp_path / "run.log")])
    assert code == 1
    assert "Archive directory not specified." in capsys.readouterr().out
    assert not scratch.exists()


def test_missing_source_exits_1(tmp_path):
    code = run_cli(["-f", str(tmp_path / "nope"), "-t", str(tmp_path / "scratch"),
                    "--log-file", str(tmp_path / "run.log")])
    assert code == 1


@pytest.mark.skipif(shutil.which("false") is None, reason="no `false` binary")
def test_pack_failure_exit_code(source_tree, tmp_path):
    code = run_cli(["-f", str(source_tree), "-t", str(tmp_path / "scratch"),
                    "--tar", shutil.which("false"), "--log-file", str(tmp_path / "run.log")])
    assert code == EXIT_CODES[Stage.PACKING] == 2


@requires_tar
def test_full_run_with_copy(source_tree, tmp_path, capsys):
    archive_dir = tmp_path / "archive"
    log_file = tmp_path / "run.log"
    code = run_cli(["-f", str(source_tree), "-t", str(tmp_path / "scratch"), "-c", "2",
                    "-m", "-a", str(archive_dir), "--log-file", str(log_file)])

    assert code == 0
    out = capsys.readouterr().out
    assert "Verification of compressed folder successful." in out
    assert "Verification of copied file successful." in out
    assert "Archiving completed successfully." in out

    copied = list(archive_dir.iterdir())
    assert len(copied) == 1 and copied[0].name.endswith("_data.tgz")

    events = [json.loads(line).get("event") for line in log_file.read_text(encoding="utf-8").splitlines()]
    assert {"compression", "verification", "copy"} <= set(events)


def test_unusable_scratch_exit_code(source_tree, tmp_path):
    scratch = tmp_path / "scratch"
    scratch.write_text("not a directory", encoding="utf-8")
    code = run_cli(["-f", str(source_tree), "-t", str(scratch),
                    "--log-file", str(tmp_path / "run.log")])
    assert code == EXIT_CODES[Stage.PREPARING] == 8


def test_scratch_inside_source_exits_1(source_tree, tmp_path):
    code = run_cli(["-f", str(source_tree), "-t", str(source_tree / "tmp"),
                    "--log-file", str(tmp_path / "run.log")])
    assert code == 1
    assert not (source_tree / "tmp").exists()
