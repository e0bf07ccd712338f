import re
import pytest
from core.errors import AppError, ErrorCode
from core.store import ObjectStore, generate_id


def test_generate_id_format():
    ids = {generate_id() for _ in range(50)}
    assert len(ids) == 50
    for i in ids:
        assert re.fullmatch(r"\d{13}-[0-9a-z]{9}", i)


def test_put_get_roundtrip(store):
    store.put("alerts", "a1", {"title": "x", "n": 1})
    assert store.get("alerts", "a1") == {"title": "x", "n": 1}
    assert store.get("alerts", "missing") is None
    assert store.get("rules", "a1") is None


def test_put_replaces_existing(store):
    store.put("alerts", "a1", {"v": 1})
    store.put("alerts", "a1", {"v": 2})
    assert store.get_all("alerts") == [{"v": 2}]


def test_get_all_is_per_store(store):
    store.put("alerts", "b", {"id": "b"})
    store.put("alerts", "a", {"id": "a"})
    store.put("rules", "c", {"id": "c"})
    assert store.get_all("alerts") == [{"id": "a"}, {"id": "b"}]


def test_delete_and_clear(store):
    store.put("alerts", "a", {})
    store.put("alerts", "b", {})
    assert store.delete("alerts", "a") is True
    assert store.delete("alerts", "a") is False
    store.clear("alerts")
    assert store.get_all("alerts") == []


def test_ping(store):
    assert store.ping()


def test_unreachable_database(tmp_path):
    bad = tmp_path / "missing_dir" / "x.db"
    with pytest.raises(AppError) as exc:
        ObjectStore(f"sqlite:///{bad}")
    assert exc.value.code == ErrorCode.STORAGE_UNAVAILABLE
