import pytest

from app.database import ProductStore, StoreError


def record(pid, **overrides):
    p = {
        "id": pid,
        "name": "Desk Lamp",
        "category": "Office",
        "price": 34.5,
        "stock": 25,
        "description": "Adjustable LED desk lamp.",
        "imageUrl": "https://example.com/lamp.jpg",
        "dateAdded": "2024-03-01T09:00:00+00:00",
    }
    p.update(overrides)
    return p


def test_insert_and_find_keep_insertion_order(store):
    store.insert(record("b", name="B"))
    store.insert(record("a", name="A"))
    assert [p["id"] for p in store.find_all()] == ["b", "a"]
    assert store.find_by_id("a")["name"] == "A"
    assert store.find_by_id("missing") is None


def test_update_only_touches_mutable_columns(store):
    store.insert(record("a"))
    updated = store.update("a", {"stock": 3, "dateAdded": "2000-01-01", "id": "z"})
    assert updated["stock"] == 3
    assert updated["id"] == "a"
    assert updated["dateAdded"] == "2024-03-01T09:00:00+00:00"


def test_update_without_changes_returns_current_row(store):
    store.insert(record("a"))
    assert store.update("a", {}) == record("a")
    assert store.update("missing", {}) is None
    assert store.update("missing", {"stock": 1}) is None


def test_delete_reports_whether_a_row_went_away(store):
    store.insert(record("a"))
    assert store.delete("a") is True
    assert store.delete("a") is False


def test_constraint_violation_is_a_store_error(store):
    with pytest.raises(StoreError):
        store.insert(record("a", price=0))
    with pytest.raises(StoreError):
        store.insert(record("a"))
        store.insert(record("a"))


def test_replace_all_is_all_or_nothing(store):
    store.insert(record("keep"))
    with pytest.raises(StoreError):
        store.replace_all([record("x"), record("y", stock=-1)])
    assert [p["id"] for p in store.find_all()] == ["keep"]

    assert store.replace_all([record("x"), record("y")]) == 2
    assert [p["id"] for p in store.find_all()] == ["x", "y"]


def test_data_survives_reopening(tmp_path):
    path = tmp_path / "catalog.db"
    ProductStore(path).insert(record("a"))
    assert ProductStore(path).find_by_id("a") == record("a")


def test_integer_overflow_becomes_store_error(store):
    with pytest.raises(StoreError):
        store.insert(record("a", stock=10**30))
    assert store.find_all() == []
