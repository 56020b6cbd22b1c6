# checksum_archiver/logs.py
from __future__ import annotations
import io, logging, os, sys

import structlog
from tqdm import tqdm

LOGGER_NAME = "checksum_archiver"

_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.format_exc_info,
    structlog.processors.JSONRenderer(default=str, ensure_ascii=False),
]


def _configure_structlog() -> None:
    structlog.configure(
        processors=_PROCESSORS,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # loggers are created at import time, before setup_logging() runs
        cache_logger_on_first_use=False,
    )


_configure_structlog()


def setup_logging(log_file: str | os.PathLike | None, level: int = logging.INFO) -> logging.Logger:
    """
    Route the package's structlog events, rendered as JSON lines, into log_file.
    Existing handlers are closed and removed first, so calling this twice is harmless.
    """
    _configure_structlog()
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    if log_file:
        parent = os.path.dirname(os.fspath(log_file))
        if parent:
            os.makedirs(parent, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(fh)
    else:
        logger.addHandler(logging.NullHandler())
    return logger


def get_logger(name: str):
    """structlog logger under the package namespace."""
    if not (name == LOGGER_NAME or name.startswith(LOGGER_NAME + ".")):
        name = f"{LOGGER_NAME}.{name}"
    return structlog.get_logger(name)


def status(msg: str) -> None:
    """
    Human-readable status line on stdout.
    Goes through tqdm.write so an active progress bar is not torn.
    """
    out = getattr(sys, "stdout", None)
    if out is None:
        return
    try:
        tqdm.write(msg, file=out)
    except (ValueError, OSError):
        print(msg, file=out)


def tqdm_file():
    """Progress bars go to stderr; fall back to a sink when there is none."""
    f = getattr(sys, "stderr", None)
    return f if (f is not None and hasattr(f, "write")) else io.StringIO()


def tqdm_disable() -> bool:
    """
    Disable tqdm when there is no real stderr or when requested.
    Env override: ARCHIVER_TQDM=0 forces enable, =1 forces disable.
    """
    env = os.environ.get("ARCHIVER_TQDM")
    if env == "0":
        return False
    if env == "1":
        return True
    f = getattr(sys, "stderr", None)
    return not (f is not None and hasattr(f, "write"))
