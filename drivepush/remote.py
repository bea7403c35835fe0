"""
Remote service contract consumed by the push engine.

The engine never talks to a concrete API; it drives whatever RemoteClient
it is given. Errors raised by clients and by the engine share one
hierarchy so callers can tell aborts from per-item failures.
"""
from abc import ABC, abstractmethod
from typing import Optional, Tuple

from .models import File


class DriveError(Exception):
    """Base class for drivepush errors."""


class RemoteError(DriveError):
    """A remote call failed."""


class NotFoundError(RemoteError):
    """No remote file exists at the requested path."""


class RateLimitError(RemoteError):
    """The remote service throttled the request; safe to retry."""


class PushAbortedError(DriveError):
    """The push stopped before or during scheduling."""


class DirectoryCreationError(PushAbortedError):
    """A directory required by a batch could not be created."""


class RootModificationError(PushAbortedError):
    """An operation tried to create or replace the remote root."""


class PushCancelled(DriveError):
    """The push was interrupted; mount points have been detached."""


class UpsertOptions:
    """Arguments for a create-or-update call."""

    def __init__(
        self,
        parent_id: str,
        src: File,
        dest: Optional[File] = None,
        fs_abs_path: str = "",
        mask: int = 0,
        ignore_checksum: bool = False,
    ):
        self.parent_id: str = parent_id
        self.src: File = src
        self.dest: Optional[File] = dest
        self.fs_abs_path: str = fs_abs_path
        self.mask: int = mask
        self.ignore_checksum: bool = ignore_checksum


class RemoteClient(ABC):
    """Abstract interface to a remote file-hosting account."""

    @abstractmethod
    def find_by_path(self, path: str) -> File:
        """Look up the file at `path`.

        Raises:
            NotFoundError: If nothing exists at `path`
        """

    @abstractmethod
    def upsert_by_comparison(self, opts: UpsertOptions) -> Optional[File]:
        """Create or update `opts.src` under `opts.parent_id`.

        Returns:
            The resulting remote file, or None when there was nothing to change
        """

    @abstractmethod
    def trash(self, file_id: str) -> None:
        """Move a remote file to the trash."""

    @abstractmethod
    def untrash(self, file_id: str) -> None:
        """Restore a trashed remote file."""

    @abstractmethod
    def quota(self) -> Tuple[int, int]:
        """Return (bytes used, byte limit) for the account."""
