"""Checksum-verified directory archiving."""

__version__ = "0.1.0"
