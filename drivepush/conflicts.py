"""
Conflict partitioning and resolution for pushes and pulls.

A conflict is auto-resolvable when the remote side still matches the
snapshot cached in the local index: nobody else changed it since the last
sync, so the local edit can safely overwrite it.
"""
import logging
from typing import Callable, List, Optional, Tuple

from .models import Change, File, Index, Op

logger = logging.getLogger(__name__)

IndexLookup = Callable[[str], Optional[Index]]
Confirm = Callable[[str], bool]


def sift(changes: List[Change]) -> Tuple[List[Change], List[Change]]:
    """
    Partition changes into (non_conflicting, conflicting) by operation kind.
    """
    non_conflicting: List[Change] = []
    conflicting: List[Change] = []

    for change in changes:
        if change.op == Op.MOD_CONFLICT:
            conflicting.append(change)
        else:
            non_conflicting.append(change)

    return non_conflicting, conflicting


def _remote_side(change: Change, is_push: bool) -> Tuple[Optional[File], Optional[File]]:
    """Return (local, remote) files of a change for the given direction."""
    if is_push:
        return change.src, change.dest
    return change.dest, change.src


def resolve_conflicts(
    conflicting: List[Change],
    is_push: bool,
    index_lookup: IndexLookup,
) -> Tuple[List[Change], List[Change]]:
    """
    Auto-resolve conflicts whose remote side is unchanged since the last sync.

    Args:
        conflicting: MOD_CONFLICT changes from `sift`
        is_push: True when local content is being sent to the remote
        index_lookup: Returns the cached Index for an identifier, or None

    Returns:
        Tuple of (resolved, unresolved). Resolved changes are relabelled MOD.
    """
    resolved: List[Change] = []
    unresolved: List[Change] = []

    for change in conflicting:
        local, remote = _remote_side(change, is_push)

        file_id = ""
        if remote is not None and remote.id:
            file_id = remote.id
        elif local is not None and local.id:
            file_id = local.id

        index = index_lookup(file_id) if file_id else None
        if index is not None and index.matches(remote):
            logger.debug(f"{change.path}: remote unchanged since last sync, resolving")
            change.op = Op.MOD
            resolved.append(change)
        else:
            unresolved.append(change)

    return resolved, unresolved


def claim_remote_identity(change: Change) -> Change:
    """
    Resolve a change in favour of local content by reusing the remote
    object's identifier, so the remote file is updated in place instead of
    duplicated.
    """
    if change.src is not None and change.dest is not None:
        change.src.id = change.dest.id
    return change


def conflicts_persist(unresolved: List[Change], confirm: Confirm) -> bool:
    """
    Show unresolved conflicts and ask whether to overwrite them.

    Returns:
        True if the user declined and the push must stop
    """
    if not unresolved:
        return False

    print("These files have been modified both locally and remotely:")
    for change in unresolved:
        print(f"  {change.op.symbol} {change.path}")

    if confirm("Overwrite the remote copies with your local changes?"):
        return False

    logger.info(f"Push stopped: {len(unresolved)} unresolved conflict(s)")
    return True
