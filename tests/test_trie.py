"""
Unit tests for trie.py
"""
from drivepush.trie import POTENTIAL_DIR, PathTrie, common_prefix, split_path


def test_split_path_ignores_empty_segments():
    assert split_path("/a//b/c.txt/") == ["a", "b", "c.txt"]
    assert split_path("/") == []


def test_set_marks_end_of_string():
    """Inserted paths are end-of-string nodes carrying their path."""
    trie = PathTrie()
    node = trie.set("/a/b/c.txt")

    assert node.eos
    assert node.data == "/a/b/c.txt"
    assert trie.get("/a/b/c.txt") is node
    assert not trie.get("/a/b").eos  # prefix only


def test_set_same_path_twice_reuses_node():
    trie = PathTrie()

    assert trie.set("a/b") is trie.set("a/b")
    assert list(trie.root.children) == ["a"]


def test_tag_potential_dirs():
    """Every node with descendants is tagged as a potential directory."""
    trie = PathTrie()
    for path in ("a/b/c.txt", "a/b/d.txt", "a/e.txt"):
        trie.set(path)

    tagged = trie.tag_potential_dirs()

    # root, a, a/b
    assert tagged == 3
    segments = [node.segment for node in trie.match(POTENTIAL_DIR)]
    assert segments == ["", "a", "b"]


def test_match_end_of_string_descendants():
    trie = PathTrie()
    for path in ("a/b/c.txt", "a/b/d.txt", "a/e.txt"):
        trie.set(path)

    node = trie.get("a/b")
    found = sorted(n.data for n in node.match(lambda n: n.is_eos))

    assert found == ["a/b/c.txt", "a/b/d.txt"]


def test_match_yields_parents_before_children():
    trie = PathTrie()
    trie.set("x/y/z")

    segments = [node.segment for node in trie.root.match(lambda n: True)]

    assert segments == ["", "x", "y", "z"]


def test_get_missing_path():
    trie = PathTrie()
    trie.set("a/b")

    assert trie.get("a/c") is None


def test_common_prefix_trims_trailing_separator():
    assert common_prefix("a/b/c.txt", "a/b/d.txt") == "a/b"


def test_common_prefix_compares_whole_segments():
    """'a/bc' and 'a/bd' share 'a', not 'a/b'."""
    assert common_prefix("a/bc.txt", "a/bd.txt") == "a"


def test_common_prefix_absolute_paths():
    assert common_prefix("/a/b/c", "/a/b") == "/a/b"
    assert common_prefix("/a", "/b") == "/"


def test_common_prefix_single_and_empty():
    assert common_prefix("a/b/") == "a/b"
    assert common_prefix() == ""
    assert common_prefix("a", "b") == ""
