import asyncio

from fastapi.routing import APIRoute

from app.core import DEFAULT_IMAGE_URL
from app.database import StoreError, get_store
from app.main import app


def create(client, **overrides):
    body = {
        "name": "Coffee Maker",
        "category": "Kitchen",
        "price": 59.99,
        "stock": 12,
        "description": "Programmable coffee maker with 12-cup capacity.",
    }
    body.update(overrides)
    return client.post("/api/products", json=body)


def test_list_starts_empty(client):
    r = client.get("/api/products")
    assert r.status_code == 200
    assert r.json() == []


def test_create_assigns_id_date_and_default_image(client):
    r = create(client)
    assert r.status_code == 201
    body = r.json()
    assert body["id"]
    assert body["dateAdded"]
    assert body["imageUrl"] == DEFAULT_IMAGE_URL
    assert body["name"] == "Coffee Maker"
    assert body["price"] == 59.99
    assert body["stock"] == 12
    # and it is what a fresh list returns
    assert client.get("/api/products").json() == [body]


def test_create_keeps_explicit_image_and_blank_means_default(client):
    assert create(client, imageUrl="https://example.com/a.jpg").json()["imageUrl"] == "https://example.com/a.jpg"
    assert create(client, imageUrl="   ").json()["imageUrl"] == DEFAULT_IMAGE_URL


def test_create_ids_are_unique(client):
    ids = {create(client).json()["id"] for _ in range(5)}
    assert len(ids) == 5


def test_create_rejects_bad_fields_with_400_message(client):
    cases = [
        {"name": ""},
        {"name": "   "},
        {"price": 0},
        {"price": -3},
        {"stock": -1},
        {"stock": 1.5},
        {"description": ""},
    ]
    for override in cases:
        r = create(client, **override)
        assert r.status_code == 400, override
        assert isinstance(r.json()["message"], str) and r.json()["message"]
    assert client.get("/api/products").json() == []


def test_create_missing_field_names_it(client):
    r = client.post("/api/products", json={"name": "x", "category": "y", "price": 1, "stock": 1})
    assert r.status_code == 400
    assert "description" in r.json()["message"]


def test_update_partial_keeps_other_fields_and_date(client):
    created = create(client).json()
    r = client.put(f"/api/products/{created['id']}", json={"price": 49.5})
    assert r.status_code == 200
    updated = r.json()
    assert updated["price"] == 49.5
    assert {k: v for k, v in updated.items() if k != "price"} == {k: v for k, v in created.items() if k != "price"}


def test_update_ignores_id_and_date_in_body(client):
    created = create(client).json()
    r = client.put(f"/api/products/{created['id']}", json={"id": "other", "dateAdded": "1999-01-01", "stock": 2})
    assert r.status_code == 200
    assert r.json()["id"] == created["id"]
    assert r.json()["dateAdded"] == created["dateAdded"]
    assert r.json()["stock"] == 2


def test_update_unknown_id_is_404(client):
    r = client.put("/api/products/nope", json={"stock": 1})
    assert r.status_code == 404
    assert r.json() == {"message": "Product not found"}


def test_update_invalid_values_are_400(client):
    pid = create(client).json()["id"]
    assert client.put(f"/api/products/{pid}", json={"price": 0}).status_code == 400
    assert client.put(f"/api/products/{pid}", json={"stock": -4}).status_code == 400
    r = client.put(f"/api/products/{pid}", json={"name": None})
    assert r.status_code == 400
    assert r.json()["message"] == "name cannot be null"
    # nothing changed
    assert client.get("/api/products").json()[0]["price"] == 59.99


def test_stock_beyond_integer_column_is_400(client):
    r = create(client, stock=10**30)
    assert r.status_code == 400
    assert "stock" in r.json()["message"]

    pid = create(client).json()["id"]
    r = client.put(f"/api/products/{pid}", json={"stock": 10**30})
    assert r.status_code == 400
    assert r.headers["content-type"].startswith("application/json")
    assert client.get("/api/products").json()[0]["stock"] == 12


def test_delete_then_delete_again(client):
    pid = create(client).json()["id"]
    r = client.delete(f"/api/products/{pid}")
    assert r.status_code == 200
    assert r.json() == {"message": "Product deleted successfully"}
    assert client.delete(f"/api/products/{pid}").status_code == 404
    assert client.get("/api/products").json() == []


def test_seed_replaces_collection(client):
    create(client, name="Leftover")
    r = client.get("/api/seed")
    assert r.status_code == 200
    assert r.json() == {"message": "Database seeded successfully", "count": 6}
    products = client.get("/api/products").json()
    assert len(products) == 6
    assert "Leftover" not in {p["name"] for p in products}

    first_ids = {p["id"] for p in products}
    client.get("/api/seed")
    second_ids = {p["id"] for p in client.get("/api/products").json()}
    assert len(second_ids) == 6
    assert first_ids.isdisjoint(second_ids)


class BrokenStore:
    def find_all(self):
        raise StoreError("disk I/O error")

    def replace_all(self, products):
        raise StoreError("database is locked")

    def delete(self, product_id):
        raise StoreError("database is locked")


def test_store_failures_become_500_with_message(client):
    app.dependency_overrides[get_store] = lambda: BrokenStore()
    r = client.get("/api/products")
    assert r.status_code == 500
    assert r.json() == {"message": "disk I/O error"}
    assert client.get("/api/seed").status_code == 500
    assert client.delete("/api/products/abc").json() == {"message": "database is locked"}


def test_product_routes_run_off_the_event_loop():
    routes = [r for r in app.routes if isinstance(r, APIRoute) and r.path.startswith("/api")]
    assert len(routes) == 5
    for route in routes:
        assert not asyncio.iscoroutinefunction(route.endpoint), route.path
