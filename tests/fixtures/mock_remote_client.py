"""
Mock remote client for testing.
"""
import os
import signal
import threading
import time
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

from drivepush.index import IndexStore
from drivepush.models import File
from drivepush.push import resolve_single_change
from drivepush.remote import NotFoundError, RemoteClient, RemoteError, UpsertOptions

ROOT_ID = "root"


class MockRemoteClient(RemoteClient):
    """In-memory remote account that records every call in order."""

    def __init__(self, used: int = 0, limit: int = 0):
        """Initialize mock remote client with an empty root."""
        self.lock = threading.Lock()
        self.files: Dict[str, File] = {}  # path -> File
        self.by_id: Dict[str, File] = {}  # id -> File
        self.next_id = 1000
        self.used = used
        self.limit = limit

        self.events: List[Tuple[str, str]] = []  # (kind, path or id), in call order
        self.lookups: List[str] = []
        self.trashed: Set[str] = set()
        self.fail_paths: Set[str] = set()  # upserts to these paths raise
        self.lookup_errors: Dict[str, Exception] = {}  # path -> error to raise once

        self._store(File(name="", path="/", id=ROOT_ID, is_dir=True))

    def _store(self, file: File) -> File:
        self.files[file.path] = file
        self.by_id[file.id] = file
        return file

    def _new_id(self) -> str:
        self.next_id += 1
        return f"id{self.next_id}"

    def add_folder(self, path: str) -> File:
        """Add an existing remote folder."""
        with self.lock:
            return self._store(File(name=os.path.basename(path), path=path, id=self._new_id(), is_dir=True))

    def add_file(self, path: str, size: int = 0, md5_checksum: str = "", mod_time: int = 0) -> File:
        """Add an existing remote file."""
        with self.lock:
            return self._store(File(
                name=os.path.basename(path),
                path=path,
                id=self._new_id(),
                size=size,
                md5_checksum=md5_checksum,
                mod_time=mod_time,
            ))

    @property
    def mutations(self) -> List[Tuple[str, str]]:
        return [e for e in self.events if e[0] in ("mkdir", "upsert", "trash", "untrash")]

    def find_by_path(self, path: str) -> File:
        with self.lock:
            self.lookups.append(path)
            error = self.lookup_errors.pop(path, None)
            if error is not None:
                raise error
            file = self.files.get(path)
        if file is None:
            raise NotFoundError(f"{path} not found")
        return file

    def upsert_by_comparison(self, opts: UpsertOptions) -> Optional[File]:
        with self.lock:
            parent = self.by_id.get(opts.parent_id)
            if parent is None:
                raise RemoteError(f"parent {opts.parent_id} not found")

            path = f"{parent.path.rstrip('/')}/{opts.src.name}"
            kind = "mkdir" if opts.src.is_dir else "upsert"
            if path in self.fail_paths:
                raise RemoteError(f"cannot upload {path}")

            dest = opts.dest
            if dest is not None and not opts.ignore_checksum and dest.md5_checksum == opts.src.md5_checksum \
                    and dest.size == opts.src.size:
                return None

            self.events.append((kind, path))
            file = File(
                name=opts.src.name,
                path=path,
                id=opts.src.id or self._new_id(),
                is_dir=opts.src.is_dir,
                size=opts.src.size,
                mod_time=opts.src.mod_time,
                md5_checksum=opts.src.md5_checksum,
            )
            return self._store(file)

    def trash(self, file_id: str) -> None:
        with self.lock:
            file = self.by_id.get(file_id)
            if file is None:
                raise RemoteError(f"{file_id} not found")
            self.events.append(("trash", file_id))
            self.trashed.add(file_id)
            self.files.pop(file.path, None)

    def untrash(self, file_id: str) -> None:
        with self.lock:
            if file_id not in self.trashed:
                raise RemoteError(f"{file_id} is not trashed")
            self.events.append(("untrash", file_id))
            self.trashed.discard(file_id)
            file = self.by_id[file_id]
            self.files[file.path] = file

    def quota(self) -> Tuple[int, int]:
        with self.lock:
            self.events.append(("quota", ""))
            return self.used, self.limit


class RecordingIndexStore(IndexStore):
    """IndexStore that logs writes into the client's event stream."""

    def __init__(self, root: Path, client: MockRemoteClient):
        super().__init__(root)
        self.client = client

    def serialize(self, file: File) -> Path:
        index_path = super().serialize(file)
        with self.client.lock:
            self.client.events.append(("index", file.path))
        return index_path


def make_differ(client: MockRemoteClient):
    """Differ comparing a local tree with the mock's files (adds and mods only)."""

    def differ(source: str, fs_abs_path: str, is_push: bool):
        base = Path(fs_abs_path)
        base_remote = "/" + source.strip("/") if source.strip("/") else ""
        changes = []

        for dirpath, dirnames, filenames in os.walk(base):
            dirnames[:] = sorted(d for d in dirnames if d != ".gd")
            for name in dirnames + sorted(filenames):
                local_path = Path(dirpath) / name
                remote_path = f"{base_remote}/{local_path.relative_to(base).as_posix()}"
                local = File.from_local(local_path)
                changes.extend(resolve_single_change(remote_path, client.files.get(remote_path), local, is_push))

        return changes

    return differ


LAST_CLIENT: Optional[MockRemoteClient] = None


def cli_factory(root: Path):
    """Client factory for CLI tests; the client is kept in LAST_CLIENT."""
    global LAST_CLIENT
    LAST_CLIENT = MockRemoteClient(used=0, limit=10 ** 9)
    return LAST_CLIENT, make_differ(LAST_CLIENT)


class StallingRemoteClient(MockRemoteClient):
    """Uploads hang; the first one interrupts this process with SIGINT."""

    def __init__(self, stall: float = 30.0, **kwargs):
        super().__init__(**kwargs)
        self.stall = stall
        self.interrupted = False

    def upsert_by_comparison(self, opts: UpsertOptions) -> Optional[File]:
        with self.lock:
            first, self.interrupted = not self.interrupted, True
        if first:
            os.kill(os.getpid(), signal.SIGINT)
        time.sleep(self.stall)
        return super().upsert_by_comparison(opts)


def stalling_cli_factory(root: Path):
    """Client factory whose uploads never finish in time."""
    client = StallingRemoteClient(used=0, limit=10 ** 9)
    return client, make_differ(client)
