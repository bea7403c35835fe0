"""
Unit tests for index.py
"""
import json

import pytest

from drivepush.index import IndexStore, indices_abs_path
from drivepush.models import File


@pytest.fixture
def store(tmp_path):
    return IndexStore(tmp_path)


def test_indices_abs_path(tmp_path):
    assert indices_abs_path(tmp_path, "abc") == tmp_path / ".gd" / "indices" / "abc"


def test_serialize_then_deserialize(store):
    file = File(name="a.txt", path="/a.txt", id="abc", size=12, mod_time=1700000000, md5_checksum="f00")

    index_path = store.serialize(file)
    index = store.deserialize("abc")

    assert index_path.exists()
    assert index.file_id == "abc"
    assert index.name == "a.txt"
    assert index.matches(file)


def test_serialize_overwrites_existing_entry(store):
    store.serialize(File(name="a", id="abc", size=1))
    store.serialize(File(name="a", id="abc", size=2))

    assert store.deserialize("abc").size == 2


def test_serialize_requires_identifier(store):
    with pytest.raises(ValueError):
        store.serialize(File(name="new"))


def test_deserialize_missing_returns_none(store):
    assert store.deserialize("nope") is None
    assert store.deserialize("") is None


def test_deserialize_unreadable_returns_none(store):
    path = store.path_for("bad")
    path.parent.mkdir(parents=True)
    path.write_text("{not json")

    assert store.deserialize("bad") is None


def test_deserialize_unexpected_fields_returns_none(store):
    path = store.path_for("odd")
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps({"file_id": "odd", "colour": "blue"}))

    assert store.deserialize("odd") is None


def test_remove(store):
    store.serialize(File(name="a", id="abc"))

    store.remove("abc")

    assert not store.path_for("abc").exists()
    store.remove("abc")  # already gone
