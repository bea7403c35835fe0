"""
Local cache of last-synced remote metadata.

One JSON file per remote identifier, stored as:
<root>/.gd/indices/<identifier>
"""
import json
import logging
from pathlib import Path
from typing import Optional

from .config import GD_DIR_NAME, INDICES_DIR_NAME
from .models import File, Index

logger = logging.getLogger(__name__)


def indices_abs_path(root: Path, file_id: str) -> Path:
    return Path(root) / GD_DIR_NAME / INDICES_DIR_NAME / file_id


class IndexStore:
    """Reads and writes Index snapshots keyed by remote identifier.

    Entries are independent files, so concurrent writes to distinct
    identifiers never touch the same path.
    """

    def __init__(self, root: Path):
        """
        Args:
            root: Absolute path of the local sync root
        """
        self.root = Path(root)

    def path_for(self, file_id: str) -> Path:
        return indices_abs_path(self.root, file_id)

    def serialize(self, file: File) -> Path:
        """
        Write the index snapshot for a remote file.

        Args:
            file: Remote file returned by a successful mutation

        Returns:
            Path of the written index file

        Raises:
            ValueError: If the file has no identifier
            OSError: If the index cannot be written
        """
        if not file.id:
            raise ValueError(f"cannot index {file.name!r} without an identifier")

        index_path = self.path_for(file.id)
        index_path.parent.mkdir(parents=True, exist_ok=True)

        with open(index_path, "w") as f:
            json.dump(file.to_index().to_dict(), f, indent=2)

        logger.debug(f"Wrote index for {file.name} ({file.id})")
        return index_path

    def deserialize(self, file_id: str) -> Optional[Index]:
        """
        Read the index snapshot for an identifier.

        Returns:
            The cached Index, or None when missing or unreadable
        """
        if not file_id:
            return None

        index_path = self.path_for(file_id)
        if not index_path.exists():
            return None

        try:
            with open(index_path, "r") as f:
                return Index.from_dict(json.load(f))
        except (OSError, json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Ignoring unreadable index {index_path}: {e}")
            return None

    def remove(self, file_id: str) -> None:
        """Delete the index entry for an identifier.

        Raises:
            OSError: If the entry exists but cannot be removed
        """
        self.path_for(file_id).unlink(missing_ok=True)
        logger.debug(f"Removed index for {file_id}")
