"""Error taxonomy for statcat pipelines.

Setup-class errors abort a run before any work begins. Per-channel errors
are carried in results and never stop the rest of a guild.
"""

from __future__ import annotations


class StatcatError(Exception):
    """Base class for all statcat errors."""


class FatalSetupError(StatcatError):
    """Raised when the run cannot start (bad input, credential, settings)."""


class StorageInitError(FatalSetupError):
    """Raised when the backing database cannot be created or opened."""


class DirectoryLookupError(StatcatError):
    """Raised when the channels of a guild cannot be enumerated."""

    def __init__(self, guild_id: int, reason: str) -> None:
        self.guild_id = guild_id
        self.reason = reason
        super().__init__(f"Could not list channels of guild {guild_id}: {reason}")


class TransientFetchError(StatcatError):
    """A page fetch failed mid-pagination.

    Not raised out of the paginator; it is attached to the BackfillResult so
    callers can tell a failed walk apart from an exhausted one.
    """

    def __init__(self, channel_id: int, cause: BaseException) -> None:
        self.channel_id = channel_id
        self.cause = cause
        super().__init__(f"Fetch failed for channel {channel_id}: {cause}")


class StorageWriteError(StatcatError):
    """Raised when a channel batch could not be committed (it was rolled back)."""

    def __init__(self, channel_id: int, reason: str) -> None:
        self.channel_id = channel_id
        self.reason = reason
        super().__init__(f"Could not store messages of channel {channel_id}: {reason}")
