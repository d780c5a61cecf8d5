import json
import tempfile
from pathlib import Path

import pytest

from chat_relay.domain.exceptions import BusinessError
from chat_relay.infrastructure.storage.json_store import JsonStateStore, MemoryStateStore


def test_json_store_set_get_remove():
    with tempfile.TemporaryDirectory() as d:
        path = Path(d) / ".storage" / "state.json"
        store = JsonStateStore(path)
        assert store.get_item("k") is None

        store.set_item("k", '{"a": 1}')
        store.set_item("other", "x")
        assert store.get_item("k") == '{"a": 1}'
        assert json.loads(path.read_text(encoding="utf-8")) == {"k": '{"a": 1}', "other": "x"}

        store.remove_item("k")
        assert store.get_item("k") is None
        assert store.get_item("other") == "x"
        assert [p.name for p in path.parent.iterdir()] == ["state.json"]


def test_json_store_persists_across_instances():
    with tempfile.TemporaryDirectory() as d:
        path = Path(d) / "state.json"
        JsonStateStore(path).set_item("k", "v")
        assert JsonStateStore(path).get_item("k") == "v"


def test_json_store_corrupt_file_raises_business_error():
    with tempfile.TemporaryDirectory() as d:
        path = Path(d) / "state.json"
        path.write_text("{broken", encoding="utf-8")
        with pytest.raises(BusinessError) as ei:
            JsonStateStore(path).get_item("k")
        assert ei.value.code == "STORE_READ_ERROR"


def test_json_store_non_string_values_are_ignored():
    with tempfile.TemporaryDirectory() as d:
        path = Path(d) / "state.json"
        path.write_text('{"k": 5}', encoding="utf-8")
        assert JsonStateStore(path).get_item("k") is None


def test_memory_store():
    store = MemoryStateStore({"a": "1"})
    assert store.get_item("a") == "1"
    store.set_item("b", "2")
    assert store.get_item("b") == "2"
    assert store.get_item("missing") is None
