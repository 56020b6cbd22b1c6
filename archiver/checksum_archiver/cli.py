from __future__ import annotations
import argparse, os
from pathlib import Path

from . import __version__
from .errors import ConfigError
from .logs import setup_logging, status
from .paths import LOG_FILE
from .pipeline import ArchiveJob, Stage, run_pipeline
from .system import check_resources, optimal_threads, tree_size
from .tarball import TarArchiver

EXIT_OK = 0
EXIT_CONFIG = 1

# failing stage -> process exit code
EXIT_CODES: dict[Stage, int] = {
    Stage.IDLE: EXIT_CONFIG,
    Stage.PACKING: 2,
    Stage.UNPACKING: 3,
    Stage.HASHING: 4,
    Stage.REHASHING: 4,
    Stage.COMPARING: 5,
    Stage.RENAMING: 6,
    Stage.COPYING: 7,
    Stage.PREPARING: 8,
}


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="checksum-archiver",
                                description="Archives folders with checksum verification")
    p.add_argument("-f", "--folder-to-archive", type=str, required=True, help="Folder to archive")
    p.add_argument("-t", "--temp-dir", type=str, required=True, help="Scratch directory for the artifact")
    p.add_argument("-m", "--move-to-archive", action="store_true",
                   help="Copy the finalized artifact to --archive-dir and verify the copy")
    p.add_argument("-c", "--cores", type=int, default=4, help="Hashing worker threads (0=auto)")
    p.add_argument("-a", "--archive-dir", type=str, help="Destination directory for --move-to-archive")
    p.add_argument("--keep-scratch", action="store_true", default=_env_flag("ARCHIVER_KEEP_SCRATCH"),
                   help="Leave manifests and failed artifacts in the scratch directory")
    p.add_argument("--log-file", type=str, default=LOG_FILE, help="JSON-lines log file")
    p.add_argument("--tar", type=str, default=None, help="tar executable to use")
    p.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    return p


def job_from_args(args: argparse.Namespace) -> ArchiveJob:
    if args.move_to_archive and not args.archive_dir:
        raise ConfigError("Archive directory not specified.", stage=Stage.IDLE.value)
    cores = args.cores if args.cores and args.cores > 0 else optimal_threads()
    return ArchiveJob(
        source_dir=Path(args.folder_to_archive),
        scratch_dir=Path(args.temp_dir),
        move_to_archive=args.move_to_archive,
        cores=cores,
        archive_dir=Path(args.archive_dir) if args.archive_dir else None,
        keep_scratch=args.keep_scratch,
    )


def run_cli(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_file)

    try:
        job = job_from_args(args)
        job.validate()
    except ConfigError as e:
        status(str(e))
        return EXIT_CONFIG

    check_resources(job.scratch_dir, tree_size(job.source_dir))
    status(f"Archiving {job.source_dir} with {job.cores} worker(s)")

    result = run_pipeline(job, TarArchiver(args.tar))
    if result.ok:
        return EXIT_OK
    return EXIT_CODES.get(result.stage, EXIT_CONFIG)
