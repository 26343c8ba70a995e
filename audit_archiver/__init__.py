"""Incremental archiver for IDCS audit events."""

__version__ = "0.1.0"
