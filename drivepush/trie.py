"""
Prefix tree over slash-delimited paths.

Used by the push scheduler to find the directories a batch of changes
shares, so each one is created once before any file beneath it.
"""
from typing import Callable, Dict, Iterator, List, Optional, Set

PATH_SEP = "/"
POTENTIAL_DIR = "dir"


def split_path(path: str) -> List[str]:
    """Split a path into its non-empty segments."""
    return [segment for segment in path.split(PATH_SEP) if segment]


def common_prefix(*paths: str) -> str:
    """
    Longest common path prefix of `paths`, compared by whole segments.

    Trailing separators are trimmed. A leading separator is kept when every
    path is absolute.

    Example:
        >>> common_prefix("a/b/c.txt", "a/b/d.txt")
        'a/b'
    """
    if not paths:
        return ""

    split = [split_path(p) for p in paths]
    shared: List[str] = []
    for segments in zip(*split):
        if any(segment != segments[0] for segment in segments):
            break
        shared.append(segments[0])

    prefix = PATH_SEP.join(shared)
    if all(p.startswith(PATH_SEP) for p in paths):
        prefix = PATH_SEP + prefix
    return prefix.rstrip(PATH_SEP) or (PATH_SEP if prefix else "")


class TrieNode:
    """A single path segment in the trie."""

    def __init__(self, segment: str = "", parent: Optional["TrieNode"] = None):
        self.segment: str = segment
        self.parent: Optional["TrieNode"] = parent
        self.children: Dict[str, "TrieNode"] = {}
        self.tags: Set[str] = set()
        self.eos: bool = False
        self.data: str = ""

    @property
    def is_eos(self) -> bool:
        return self.eos

    def match(self, predicate: Callable[["TrieNode"], bool]) -> Iterator["TrieNode"]:
        """Yield this node and its descendants that satisfy `predicate`, parents first."""
        stack = [self]
        while stack:
            node = stack.pop()
            if predicate(node):
                yield node
            stack.extend(node.children[key] for key in sorted(node.children, reverse=True))

    def __repr__(self) -> str:
        return f"TrieNode({self.segment!r}, eos={self.eos})"


class PathTrie:
    """Segment-keyed prefix tree of inserted paths."""

    def __init__(self):
        self.root = TrieNode()

    def set(self, path: str) -> TrieNode:
        """
        Insert `path`, marking its terminal node end-of-string.

        Args:
            path: Slash-delimited path

        Returns:
            The terminal node, which stores `path` as its data
        """
        node = self.root
        for segment in split_path(path):
            child = node.children.get(segment)
            if child is None:
                child = TrieNode(segment, node)
                node.children[segment] = child
            node = child

        node.eos = True
        node.data = path
        return node

    def get(self, path: str) -> Optional[TrieNode]:
        node = self.root
        for segment in split_path(path):
            node = node.children.get(segment)
            if node is None:
                return None
        return node

    def tag(self, predicate: Callable[[TrieNode], bool], tag: str) -> int:
        """Tag every node satisfying `predicate`; returns how many were tagged."""
        count = 0
        for node in self.root.match(predicate):
            node.tags.add(tag)
            count += 1
        return count

    def tag_potential_dirs(self, tag: str = POTENTIAL_DIR) -> int:
        # A node with descendants is a prefix of another inserted path.
        return self.tag(lambda node: bool(node.children), tag)

    def match(self, tag: str) -> Iterator[TrieNode]:
        return self.root.match(lambda node: tag in node.tags)
