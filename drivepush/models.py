"""
Models for the drivepush change-propagation engine.
Contains File, Change, Index and mount point definitions.
"""
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from .utils.checksum import calculate_checksum


class File:
    """Metadata for a local or remote file or directory.

    Remote instances carry the identifier assigned by the service; local
    instances have an empty identifier until their first successful upsert.
    """

    def __init__(
        self,
        name: str,
        path: str = "",
        id: str = "",
        is_dir: bool = False,
        size: int = 0,
        mod_time: int = 0,
        md5_checksum: str = "",
    ):
        self.id: str = id
        self.name: str = name
        self.path: str = path
        self.is_dir: bool = is_dir
        self.size: int = size
        self.mod_time: int = mod_time
        self.md5_checksum: str = md5_checksum

    @classmethod
    def from_local(cls, path: Path, name: Optional[str] = None) -> "File":
        """
        Build a File from a local filesystem entry.

        Args:
            path: Local path to stat
            name: Name to use instead of the path's basename

        Returns:
            File describing the local entry
        """
        path = Path(path)
        info = path.stat()
        is_dir = path.is_dir()

        return cls(
            name=name or path.name,
            path=str(path),
            is_dir=is_dir,
            size=0 if is_dir else info.st_size,
            mod_time=int(info.st_mtime),
            md5_checksum="" if is_dir else calculate_checksum(path),
        )

    def to_index(self) -> "Index":
        return Index(
            file_id=self.id,
            name=self.name,
            md5_checksum=self.md5_checksum,
            size=self.size,
            mod_time=self.mod_time,
            is_dir=self.is_dir,
        )

    def __repr__(self) -> str:
        kind = "dir" if self.is_dir else "file"
        return f"File({kind} {self.name!r}, id={self.id!r})"


class Index:
    """Last-synced snapshot of a remote file's metadata."""

    def __init__(
        self,
        file_id: str,
        name: str = "",
        md5_checksum: str = "",
        size: int = 0,
        mod_time: int = 0,
        is_dir: bool = False,
    ):
        self.file_id: str = file_id
        self.name: str = name
        self.md5_checksum: str = md5_checksum
        self.size: int = size
        self.mod_time: int = mod_time
        self.is_dir: bool = is_dir

    def matches(self, file: Optional[File]) -> bool:
        """True if `file` is still exactly the state captured by this snapshot."""
        if file is None:
            return False
        return (
            self.md5_checksum == file.md5_checksum
            and self.size == file.size
            and self.mod_time == file.mod_time
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_id": self.file_id,
            "name": self.name,
            "md5_checksum": self.md5_checksum,
            "size": self.size,
            "mod_time": self.mod_time,
            "is_dir": self.is_dir,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Index":
        return cls(**data)


class Op(Enum):
    """Kind of divergence a Change represents."""

    NONE = "none"
    ADD = "add"
    MOD = "mod"
    MOD_CONFLICT = "mod_conflict"
    DELETE = "delete"

    @property
    def symbol(self) -> str:
        return _OP_SYMBOLS[self]


_OP_SYMBOLS = {
    Op.NONE: " ",
    Op.ADD: "+",
    Op.MOD: "M",
    Op.MOD_CONFLICT: "X",
    Op.DELETE: "-",
}


class Change:
    """One unit of divergence between local and remote state.

    `src` is the desired state (local when pushing) and `dest` the current
    state it replaces (remote when pushing).
    """

    def __init__(
        self,
        path: str,
        op: Op,
        src: Optional[File] = None,
        dest: Optional[File] = None,
    ):
        if op == Op.DELETE and dest is None:
            raise ValueError(f"{path}: delete requires a destination file")
        if op in (Op.ADD, Op.MOD) and src is None:
            raise ValueError(f"{path}: {op.value} requires a source file")

        self.path: str = path
        self.op: Op = op
        self.src: Optional[File] = src
        self.dest: Optional[File] = dest

    def __repr__(self) -> str:
        return f"Change({self.op.symbol} {self.path})"


class MountPoint:
    """An external filesystem path attached under the sync root."""

    def __init__(self, name: str, mount_path: str):
        self.name: str = name
        self.mount_path: str = mount_path

    def attached_path(self, root: Path) -> Path:
        return Path(root) / self.name.lstrip(os.sep)


class Mount:
    """The set of mount points attached for one push."""

    def __init__(self, points: Optional[List[MountPoint]] = None):
        self.points: List[MountPoint] = points or []


class QuotaStatus(Enum):
    """Remote storage quota classification for a projected push."""

    OK = "ok"
    ALMOST_EXCEEDED = "almost_exceeded"
    EXCEEDED = "exceeded"
