"""
Push engine: propagates local changes to a remote file-hosting account.

Resolves the change list for each source and mount point, gates on
conflicts and quota, then applies the changes with every directory a batch
needs created before any file beneath it is uploaded.
"""
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from .config import DEFAULT_TYPE_MASK, MAX_THREADS
from .conflicts import Confirm, claim_remote_identity, conflicts_persist, resolve_conflicts, sift
from .index import IndexStore
from .models import Change, File, Mount, MountPoint, Op, QuotaStatus
from .quota import pretty_bytes, quota_status, reduce_to_size
from .remote import (
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
from .tasks import CancellationToken, CompletionTracker
from .trie import PATH_SEP, POTENTIAL_DIR, PathTrie, common_prefix, split_path
from .utils.prompt import prompt_yes_no
from .utils.retries import with_retry

logger = logging.getLogger(__name__)

# differ(source_path, fs_abs_path, is_push) -> changes
Differ = Callable[[str, str, bool], List[Change]]


def normalize_path(path: str) -> str:
    """Absolute remote form of a path: '/a/b'."""
    return PATH_SEP + PATH_SEP.join(split_path(path))


def parent_path(path: str) -> str:
    """Remote parent of a path; the parent of a top-level entry is '/'."""
    return PATH_SEP + PATH_SEP.join(split_path(path)[:-1])


def directories_to_ensure(paths: Iterable[str]) -> List[str]:
    """
    Directories that must exist before `paths` can be uploaded.

    Every trie node with descendants is a potential directory; the common
    prefix of its descendants' parent directories is the directory they
    share. Each directory appears once, shallowest first.
    """
    trie = PathTrie()
    for path in paths:
        trie.set(normalize_path(path))
    trie.tag_potential_dirs(POTENTIAL_DIR)

    seen = set()
    for match in trie.match(POTENTIAL_DIR):
        descendants = [node.data for node in match.match(lambda n: n.is_eos) if node is not match]
        if not descendants:
            continue

        directory = common_prefix(*(parent_path(d) for d in descendants))
        if directory and directory != PATH_SEP:
            seen.add(directory)

    return sorted(seen, key=lambda d: (len(split_path(d)), d))


def resolve_single_change(
    path: str,
    remote: Optional[File],
    local: Optional[File],
    is_push: bool = True,
) -> List[Change]:
    """
    Classify a single, non-recursive entry.

    Returns:
        A one-element change list, or an empty list when both sides agree
    """
    src, dest = (local, remote) if is_push else (remote, local)

    if src is None and dest is None:
        return []
    if dest is None:
        return [Change(path, Op.ADD, src=src)]
    if src is None:
        return [Change(path, Op.DELETE, dest=dest)]

    if src.is_dir and dest.is_dir:
        return []
    if (
        src.is_dir == dest.is_dir
        and src.size == dest.size
        and src.md5_checksum == dest.md5_checksum
    ):
        return []
    return [Change(path, Op.MOD, src=src, dest=dest)]


def attach_mount_points(root: Path, mount: Mount) -> None:
    """Symlink each mount point's external path under `root`."""
    for point in mount.points:
        attached = point.attached_path(root)
        if attached.is_symlink() or attached.exists():
            raise FileExistsError(f"Mount point {point.name} already exists under {root}")
        attached.parent.mkdir(parents=True, exist_ok=True)
        attached.symlink_to(Path(point.mount_path).resolve())
        logger.debug(f"Attached {point.mount_path} at {attached}")


class PushOptions:
    """Runtime options for a push."""

    def __init__(
        self,
        no_prompt: bool = False,
        no_clobber: bool = False,
        ignore_checksum: bool = False,
        type_mask: int = DEFAULT_TYPE_MASK,
        mount: Optional[Mount] = None,
        show_progress: bool = False,
    ):
        self.no_prompt = no_prompt
        self.no_clobber = no_clobber
        self.ignore_checksum = ignore_checksum
        self.type_mask = type_mask
        self.mount = mount
        self.show_progress = show_progress


@dataclass
class PushResult:
    """Outcome of a push."""

    succeeded: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    aborted: bool = False
    reason: str = ""
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @classmethod
    def abort(cls, reason: str) -> "PushResult":
        return cls(aborted=True, reason=reason)

    def record(self, path: str, ok: bool) -> None:
        with self._lock:
            (self.succeeded if ok else self.failed).append(path)

    @property
    def ok(self) -> bool:
        return not self.aborted and not self.failed


class _Batch:
    """Per-call state shared by the operations of one change list."""

    def __init__(self, executor: ThreadPoolExecutor, tracker: CompletionTracker,
                 result: PushResult, cancel_token: CancellationToken):
        self.executor = executor
        self.tracker = tracker
        self.result = result
        self.cancel_token = cancel_token


class PushEngine:
    """Pushes local changes under a sync root to a remote account."""

    def __init__(
        self,
        remote: RemoteClient,
        root: Path,
        differ: Differ,
        index_store: Optional[IndexStore] = None,
        options: Optional[PushOptions] = None,
        confirm: Confirm = prompt_yes_no,
        max_threads: int = MAX_THREADS,
    ):
        """
        Initialize the push engine.

        Args:
            remote: Client for the remote account
            root: Local sync root
            differ: Resolves the change list of a source path
            index_store: Cache of last-synced remote metadata (under root by default)
            options: Push options
            confirm: Yes/no callback for user confirmations
            max_threads: Worker pool size for remote operations
        """
        self.remote = remote
        self.root = Path(root).resolve()
        self.differ = differ
        self.index_store = index_store or IndexStore(self.root)
        self.options = options or PushOptions()
        self.confirm = confirm
        self.max_threads = max_threads

        self._find_by_path = with_retry(exceptions=(RateLimitError,))(remote.find_by_path)
        self._dir_locks: Dict[str, threading.Lock] = {}
        self._dir_locks_guard = threading.Lock()
        # Reentrant: a SIGINT handler may cancel while the main thread is detaching.
        self._mount_lock = threading.RLock()

    def abs_path_of(self, path: str) -> Path:
        return self.root / path.lstrip(PATH_SEP)

    def push(self, sources: List[str], cancel_token: Optional[CancellationToken] = None) -> PushResult:
        """
        Push local changes under each source path, plus attached mount points.

        Args:
            sources: Paths relative to the sync root
            cancel_token: Interrupt signal; cancelling detaches mount points

        Returns:
            PushResult; `aborted` is set when the user declined a gate

        Raises:
            PushCancelled: If the token was cancelled
            DriveError: On diff, quota or directory creation failure
        """
        token = cancel_token or CancellationToken()
        token.add_callback(self.clear_mount_points)

        try:
            print("Resolving...")
            changes: List[Change] = []

            for source in sources:
                self._check_cancelled(token)
                changes.extend(self.differ(source, str(self.abs_path_of(source)), True))

            mount = self.options.mount
            if mount is not None:
                for point in mount.points:
                    self._check_cancelled(token)
                    try:
                        changes.extend(self.lone_push(point))
                    except RemoteError as e:
                        logger.warning(f"Skipping mount point {point.name}: {e}")

            changes = [c for c in changes if c.op != Op.NONE]
            non_conflicts, conflicts = sift(changes)
            resolved, unresolved = resolve_conflicts(conflicts, True, self.index_store.deserialize)
            if unresolved:
                if conflicts_persist(unresolved, self.confirm):
                    return PushResult.abort("unresolved conflicts")
                resolved.extend(claim_remote_identity(c) for c in unresolved)

            merged = non_conflicts + resolved
            if self.options.no_clobber:
                merged = [c for c in merged if c.op not in (Op.MOD, Op.MOD_CONFLICT)]

            if not merged:
                print("Everything is up-to-date.")
                return PushResult()
            if not self.print_change_list(merged):
                return PushResult.abort("change list declined")

            self._check_cancelled(token)
            if not self._quota_gate(merged):
                return PushResult.abort("quota exceeded")

            return self.play_push_change_list(merged, token)
        finally:
            self.clear_mount_points()

    def lone_push(self, point: MountPoint) -> List[Change]:
        """Resolve the single-entry change for a mount point."""
        remote_path = normalize_path(point.name)
        try:
            remote_file = self._find_by_path(remote_path)
        except NotFoundError:
            remote_file = None

        local_file = None
        if os.path.exists(point.mount_path):
            local_file = File.from_local(Path(point.mount_path), name=split_path(remote_path)[-1])

        return resolve_single_change(remote_path, remote_file, local_file, True)

    def clear_mount_points(self) -> None:
        """Detach every mount point from the root; safe to call repeatedly."""
        mount = self.options.mount
        if mount is None:
            return

        with self._mount_lock:
            for point in mount.points:
                attached = point.attached_path(self.root)
                if not attached.is_symlink():
                    continue
                try:
                    attached.unlink()
                    logger.debug(f"Detached mount point {attached}")
                except OSError as e:
                    logger.error(f"Failed to detach mount point {attached}: {e}")

    def print_change_list(self, changes: List[Change]) -> bool:
        """List pending changes and confirm unless prompting is disabled."""
        for change in changes:
            print(f"{change.op.symbol} {change.path}")

        if self.options.no_prompt:
            return True
        return self.confirm(f"Push these {len(changes)} change(s)?")

    def _quota_gate(self, changes: List[Change]) -> bool:
        push_size = reduce_to_size(changes, True)
        status = quota_status(self.remote, push_size)

        if status == QuotaStatus.ALMOST_EXCEEDED:
            print("Almost exceeding your drive quota")
        elif status == QuotaStatus.EXCEEDED:
            print("This change will exceed your drive quota")
            print(f" projected size: {push_size} ({pretty_bytes(push_size)})")
            if not self.confirm("Proceed anyway?"):
                logger.info("Push stopped: quota would be exceeded")
                return False
        return True

    def _check_cancelled(self, token: CancellationToken) -> None:
        if token.cancelled:
            self.clear_mount_points()
            raise PushCancelled("push interrupted")

    def play_push_change_list(
        self,
        changes: List[Change],
        cancel_token: Optional[CancellationToken] = None,
    ) -> PushResult:
        """
        Apply a change list and block until every operation has finished.

        Adds and mods each get their directories ensured before any of their
        files are dispatched; deletes are dispatched directly.

        Raises:
            DirectoryCreationError: After draining, if a group's directories failed
            PushCancelled: If cancelled while waiting
        """
        adds: List[Change] = []
        mods: List[Change] = []
        dels: List[Change] = []

        for change in changes:
            if change.op == Op.ADD:
                adds.append(change)
            elif change.op in (Op.MOD, Op.MOD_CONFLICT):
                mods.append(change)
            elif change.op == Op.DELETE:
                dels.append(change)

        batch = self._start_batch(len(adds) + len(mods) + len(dels), cancel_token)
        errors: List[PushAbortedError] = []
        try:
            for group, upsert in ((adds, self.remote_add), (mods, self.remote_mod)):
                error = self.schedule_upserts(batch, group, upsert)
                if error is not None:
                    errors.append(error)
            self._dispatch(batch, dels, self.remote_delete)
        except BaseException:
            batch.executor.shutdown(wait=False, cancel_futures=True)
            raise

        self._drain(batch)
        if errors:
            raise errors[0]
        return batch.result

    def play_untrash_change_list(
        self,
        changes: List[Change],
        cancel_token: Optional[CancellationToken] = None,
    ) -> PushResult:
        """Restore the trashed remote files of `changes`."""
        batch = self._start_batch(len(changes), cancel_token)
        self._dispatch(batch, changes, self.remote_untrash)
        self._drain(batch)
        return batch.result

    def _start_batch(self, total: int, cancel_token: Optional[CancellationToken]) -> _Batch:
        return _Batch(
            executor=ThreadPoolExecutor(max_workers=self.max_threads),
            tracker=CompletionTracker(total, show_progress=self.options.show_progress),
            result=PushResult(),
            cancel_token=cancel_token or CancellationToken(),
        )

    def _drain(self, batch: _Batch) -> None:
        """Wait for the batch; in-flight calls are abandoned on cancellation."""
        finished = False
        try:
            finished = batch.tracker.wait(batch.cancel_token)
        finally:
            batch.executor.shutdown(wait=finished, cancel_futures=not finished)

        if not finished:
            self.clear_mount_points()
            raise PushCancelled("push interrupted")

    def schedule_upserts(
        self,
        batch: _Batch,
        changes: List[Change],
        upsert: Callable[[Change], bool],
    ) -> Optional[PushAbortedError]:
        """
        Ensure every directory `changes` need, then dispatch their upserts.

        Returns:
            The abort error when a directory could not be created; none of
            the group's upserts are dispatched in that case
        """
        if not changes:
            return None

        try:
            for directory in directories_to_ensure(c.path for c in changes):
                self._check_cancelled(batch.cancel_token)
                try:
                    self.mkdir_all(directory)
                except RootModificationError:
                    raise
                except DriveError as e:
                    raise DirectoryCreationError(f"{directory}: {e}") from e
        except PushAbortedError as e:
            logger.error(f"Skipping {len(changes)} change(s): {e}")
            for change in changes:
                batch.result.record(change.path, False)
            batch.tracker.done(len(changes))
            return e

        self._dispatch(batch, changes, upsert)
        return None

    def _dispatch(self, batch: _Batch, changes: List[Change], operation: Callable[[Change], bool]) -> None:
        for change in changes:
            batch.executor.submit(self._run_one, batch, operation, change)

    def _run_one(self, batch: _Batch, operation: Callable[[Change], bool], change: Change) -> None:
        ok = False
        try:
            ok = operation(change)
        except Exception:
            logger.exception(f"Unexpected failure pushing {change.path}")
        finally:
            batch.result.record(change.path, ok)
            batch.tracker.done()

    def _dir_lock(self, path: str) -> threading.Lock:
        with self._dir_locks_guard:
            return self._dir_locks.setdefault(path, threading.Lock())

    def _drop_dir_lock(self, path: str, lock: threading.Lock) -> None:
        # Only once the directory exists: later callers find it by lookup.
        with self._dir_locks_guard:
            if self._dir_locks.get(path) is lock:
                del self._dir_locks[path]

    def mkdir_all(self, path: str) -> File:
        """
        Ensure the remote directory `path` exists, creating parents first.

        Returns:
            The existing or newly created directory

        Raises:
            RootModificationError: If asked to create the root
            RemoteError: On the first failed lookup or creation
        """
        path = normalize_path(path)

        lock = self._dir_lock(path)
        with lock:
            directory = self._ensure_dir(path)
        self._drop_dir_lock(path, lock)
        return directory

    def _ensure_dir(self, path: str) -> File:
        # Another caller may have created it since the batch was planned.
        try:
            return self._find_by_path(path)
        except NotFoundError:
            pass

        if path == PATH_SEP:
            raise RootModificationError("cannot modify root")

        parent_dir = parent_path(path)
        try:
            parent = self._find_by_path(parent_dir)
        except NotFoundError:
            parent = self.mkdir_all(parent_dir)

        name = split_path(path)[-1]
        directory = File(name=name, path=path, is_dir=True)
        created = self.remote.upsert_by_comparison(UpsertOptions(parent_id=parent.id, src=directory))
        if created is None:
            return self._find_by_path(path)

        logger.info(f"Created remote directory {path}")
        self._write_index(created)
        return created

    def _write_index(self, file: File) -> None:
        try:
            self.index_store.serialize(file)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to write index for {file.name}: {e}")

    def remote_mod(self, change: Change) -> bool:
        """
        Create or update one remote file from its local state.

        Returns:
            True on success or when there was nothing to change
        """
        if change.src.is_dir and change.dest is None:
            try:
                self.mkdir_all(change.path)
                return True
            except DriveError as e:
                logger.error(f"Failed to create directory {change.path}: {e}")
                return False

        if change.dest is not None:
            claim_remote_identity(change)

        try:
            parent = self._find_by_path(parent_path(change.path))
            opts = UpsertOptions(
                parent_id=parent.id,
                src=change.src,
                dest=change.dest,
                fs_abs_path=str(self.abs_path_of(change.path)),
                mask=self.options.type_mask,
                ignore_checksum=self.options.ignore_checksum,
            )
            remote_file = self.remote.upsert_by_comparison(opts)
        except RemoteError as e:
            logger.error(f"Failed to push {change.path}: {e}")
            return False

        if remote_file is not None:
            self._write_index(remote_file)
        return True

    def remote_add(self, change: Change) -> bool:
        return self.remote_mod(change)

    def remote_delete(self, change: Change) -> bool:
        """Trash the remote file and drop its index entry."""
        try:
            self.remote.trash(change.dest.id)
        except RemoteError as e:
            logger.error(f"Failed to trash {change.path}: {e}")
            return False

        try:
            self.index_store.remove(change.dest.id)
        except OSError as e:
            logger.warning(f"{change.path} ({change.dest.id}): failed to remove index: {e}")
        return True

    def remote_untrash(self, change: Change) -> bool:
        try:
            self.remote.untrash(change.src.id)
        except RemoteError as e:
            logger.error(f"Failed to untrash {change.path}: {e}")
            return False
        return True
