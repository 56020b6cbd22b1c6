# checksum_archiver/errors.py
from __future__ import annotations


class ArchiverError(Exception):
    """Base class for pipeline failures. ``stage`` names where it happened."""

    def __init__(self, message: str, stage: str | None = None):
        super().__init__(message)
        self.stage = stage


class ConfigError(ArchiverError):
    """Inputs are missing or contradictory; nothing was attempted."""


class ArchiveIOError(ArchiverError):
    """A file or directory operation failed (open, read, rename, copy, mkdir)."""


class ToolError(ArchiverError):
    """The external archiving tool could not run or exited non-zero."""

    def __init__(self, message: str, stage: str | None = None,
                 returncode: int | None = None, stderr: str | None = None):
        super().__init__(message, stage)
        self.returncode = returncode
        self.stderr = stderr


class PackError(ToolError):
    pass


class UnpackError(ToolError):
    pass


class VerificationError(ArchiverError):
    """Content check failed. Never downgrade this to a warning."""


class ManifestMismatchError(VerificationError):
    def __init__(self, message: str, stage: str | None = None,
                 missing: dict[str, list[str]] | None = None,
                 extra: dict[str, list[str]] | None = None):
        super().__init__(message, stage)
        self.missing = missing or {}
        self.extra = extra or {}


class CopyVerificationError(VerificationError):
    def __init__(self, message: str, stage: str | None = None,
                 expected: str | None = None, actual: str | None = None):
        super().__init__(message, stage)
        self.expected = expected
        self.actual = actual
