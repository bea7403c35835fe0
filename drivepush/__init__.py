"""Change propagation from a local tree to a remote file-hosting account.

- PushEngine: orchestrates a push and applies its change list
- PathTrie: finds the directories a batch of uploads shares
- IndexStore: local cache of last-synced remote metadata
- RemoteClient: contract for the remote service
"""

from drivepush.conflicts import claim_remote_identity, resolve_conflicts, sift
from drivepush.index import IndexStore
from drivepush.models import Change, File, Index, Mount, MountPoint, Op, QuotaStatus
from drivepush.push import PushEngine, PushOptions, PushResult, directories_to_ensure
from drivepush.quota import classify_quota, reduce_to_size
from drivepush.remote import (
    DirectoryCreationError,
    DriveError,
    NotFoundError,
    PushAbortedError,
    PushCancelled,
    RateLimitError,
    RemoteClient,
    RemoteError,
    RootModificationError,
    UpsertOptions,
)
from drivepush.tasks import CancellationToken, CompletionTracker
from drivepush.trie import PathTrie, common_prefix

__all__ = [
    # Engine
    "PushEngine",
    "PushOptions",
    "PushResult",
    "directories_to_ensure",
    # Models
    "Change",
    "File",
    "Index",
    "Mount",
    "MountPoint",
    "Op",
    "QuotaStatus",
    # Components
    "IndexStore",
    "PathTrie",
    "common_prefix",
    "sift",
    "resolve_conflicts",
    "claim_remote_identity",
    "classify_quota",
    "reduce_to_size",
    "CancellationToken",
    "CompletionTracker",
    # Remote contract
    "RemoteClient",
    "UpsertOptions",
    # Exceptions
    "DriveError",
    "RemoteError",
    "NotFoundError",
    "RateLimitError",
    "PushAbortedError",
    "DirectoryCreationError",
    "RootModificationError",
    "PushCancelled",
]
