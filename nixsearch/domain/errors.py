"""
Errors raised while importing a channel into the search engine.

Resolution and extraction errors abort the run. Per-document write failures
are never raised; the bulk loader counts them instead.
"""
from __future__ import annotations

from typing import Optional, Sequence


class IndexerError(Exception):
    """Base class for every error that aborts a channel run."""


class InvalidChannelError(IndexerError, ValueError):
    """The channel identifier is not of the form ``<project>-<version>``."""


class ConfigurationError(IndexerError, ValueError):
    """Settings from the environment or command line failed validation."""


class NotFoundError(IndexerError):
    """The object store has no entries under the channel prefix."""

    def __init__(self, prefix: str):
        self.prefix = prefix
        super().__init__(f"No evaluations found under '{prefix}'")


class NoEvaluationsError(IndexerError):
    """Entries exist under the channel prefix, but none parse as an evaluation."""

    def __init__(self, channel: str, entries: int):
        self.channel = channel
        self.entries = entries
        super().__init__(
            f"None of the {entries} entries listed for channel '{channel}' is a valid evaluation"
        )


class ExtractionFailedError(IndexerError):
    """An external tool exited non-zero or produced unusable output."""

    def __init__(
        self,
        message: str,
        command: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        self.command = list(command) if command else []
        self.returncode = returncode
        self.stderr = stderr
        detail = message
        if returncode is not None:
            detail += f" (exit code {returncode})"
        tail = stderr.strip().splitlines()[-5:]
        if tail:
            detail += ": " + " | ".join(tail)
        super().__init__(detail)


class TransportError(IndexerError):
    """The search engine could not be reached or rejected a whole request."""
