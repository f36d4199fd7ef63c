"""Shared fixtures: a throwaway SQLite store behind the real app, and a scripted fake API client."""

import asyncio
from typing import Any, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from app.database import ProductStore, get_store
from app.main import app
from sdk.catalog_client import AsyncCatalogClient
from sdk.errors import CatalogError, NotFound

DRAFT = {
    "name": "Trail Runner",
    "category": "Sports",
    "price": 74.5,
    "stock": 6,
    "description": "Lightweight trail running shoe with a grippy outsole.",
}


def make_product(pid: str, name: str = "Yoga Mat", price: float = 29.95, stock: int = 20,
                 category: str = "Fitness", description: str = "Non-slip, eco-friendly yoga mat.",
                 date_added: str = "2024-01-01T00:00:00+00:00") -> Dict[str, Any]:
    return {
        "id": pid,
        "name": name,
        "category": category,
        "price": price,
        "stock": stock,
        "description": description,
        "imageUrl": "https://example.com/p.jpg",
        "dateAdded": date_added,
    }


class FakeCatalogClient:
    """Stands in for AsyncCatalogClient.

    ``hold(op)`` parks the next call of ``op`` after the server-side effect has
    been computed, until the returned event is set. ``fail[op]`` makes every
    call of ``op`` raise.
    """

    def __init__(self, products: Optional[List[Dict[str, Any]]] = None):
        self.products = {p["id"]: dict(p) for p in products or []}
        self.calls: List[tuple] = []
        self.fail: Dict[str, CatalogError] = {}
        self.entered: Dict[str, asyncio.Event] = {}
        self._gates: Dict[str, asyncio.Event] = {}
        self._next_id = 1000

    def hold(self, op: str) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates[op] = gate
        self.entered[op] = asyncio.Event()
        return gate

    def ops(self) -> List[str]:
        return [c[0] for c in self.calls]

    async def _respond(self, op: str, value: Any = None) -> Any:
        gate = self._gates.pop(op, None)
        if gate is not None:
            self.entered[op].set()
            await gate.wait()
        if op in self.fail:
            raise self.fail[op]
        return value

    async def list_products(self):
        self.calls.append(("list",))
        return await self._respond("list", [dict(p) for p in self.products.values()])

    async def create_product(self, fields):
        self.calls.append(("create", fields))
        self._next_id += 1
        product = {
            "id": str(self._next_id),
            "imageUrl": "https://example.com/placeholder.jpg",
            **fields,
            "dateAdded": "2024-06-01T12:00:00+00:00",
        }
        if "create" not in self.fail:
            self.products[product["id"]] = product
        return await self._respond("create", dict(product))

    async def update_product(self, product_id, fields):
        self.calls.append(("update", product_id, fields))
        current = self.products.get(product_id)
        if current is None:
            await self._respond("update")
            raise NotFound("Product not found", status_code=404)
        merged = {**current, **fields}
        if "update" not in self.fail:
            self.products[product_id] = merged
        return await self._respond("update", dict(merged))

    async def delete_product(self, product_id):
        self.calls.append(("delete", product_id))
        if product_id not in self.products:
            raise NotFound("Product not found", status_code=404)
        await self._respond("delete")
        del self.products[product_id]
        return {"message": "Product deleted successfully"}

    async def seed(self):
        self.calls.append(("seed",))
        self.products = {str(i): make_product(str(i), name=f"Sample {i}") for i in range(1, 4)}
        return await self._respond("seed", {"message": "Database seeded successfully", "count": 3})

    async def aclose(self):
        pass


@pytest.fixture
def store(tmp_path):
    return ProductStore(tmp_path / "catalog.db")


@pytest.fixture
def api_app(store):
    app.dependency_overrides[get_store] = lambda: store
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(api_app):
    return TestClient(api_app)


@pytest.fixture
def make_api_client(api_app):
    """Build an AsyncCatalogClient wired to the app in-process. Call inside the event loop."""
    def _make() -> AsyncCatalogClient:
        return AsyncCatalogClient(base_url="http://test", transport=httpx.ASGITransport(app=api_app))
    return _make


@pytest.fixture
def fake_client_cls():
    return FakeCatalogClient


@pytest.fixture
def product_factory():
    return make_product


@pytest.fixture
def draft():
    return dict(DRAFT)
