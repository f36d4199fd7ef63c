# sdk/catalog_client.py
import os
import requests
import httpx
from typing import Any, Dict, List, Optional
from rich import print

from .errors import NetworkOrServerFailed, error_from_response

DEFAULT_BASE_URL = os.getenv("CATALOG_API_URL", "http://127.0.0.1:8085")


def _decode(status_code: int, text: str, json_fn) -> Any:
    try:
        return json_fn()
    except ValueError:
        raise NetworkOrServerFailed(f"HTTP {status_code}: invalid JSON body {text[:80]!r}", status_code=status_code)


def _error_body(json_fn) -> Any:
    try:
        return json_fn()
    except ValueError:
        return None


class CatalogClient:
    """Blocking client, for scripts and demos."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: Optional[float] = None):
        self.base_url = base_url.rstrip("/")
        self.session = requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            r = self.session.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise NetworkOrServerFailed(f"{method} {path} failed: {e}")
        if not r.ok:
            body = _error_body(r.json) if r.content else None
            raise error_from_response(r.status_code, body, fallback=r.reason or "")
        return _decode(r.status_code, r.text, r.json)

    def list_products(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/products")

    def create_product(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/products", json=fields)

    def update_product(self, product_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/api/products/{product_id}", json=fields)

    def delete_product(self, product_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/api/products/{product_id}")

    def seed(self) -> Dict[str, Any]:
        return self._request("GET", "/api/seed")


class AsyncCatalogClient:
    """Non-blocking client used by the state manager. No timeout, no retries."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.http = httpx.AsyncClient(base_url=self.base_url, timeout=None, transport=transport)

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            r = await self.http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise NetworkOrServerFailed(f"{method} {path} failed: {e}")
        if r.is_error:
            body = _error_body(r.json) if r.content else None
            raise error_from_response(r.status_code, body, fallback=r.reason_phrase)
        return _decode(r.status_code, r.text, r.json)

    async def list_products(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/products")

    async def create_product(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/api/products", json=fields)

    async def update_product(self, product_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/api/products/{product_id}", json=fields)

    async def delete_product(self, product_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/api/products/{product_id}")

    async def seed(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/seed")

    async def aclose(self):
        await self.http.aclose()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Catalog API client")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL)
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list-products", help="List all products")

    cp = subparsers.add_parser("create-product", help="Create a product")
    cp.add_argument("--name", required=True)
    cp.add_argument("--category", required=True)
    cp.add_argument("--price", type=float, required=True)
    cp.add_argument("--stock", type=int, required=True)
    cp.add_argument("--description", required=True)
    cp.add_argument("--image-url", help="Omit to use the server's placeholder image")

    up = subparsers.add_parser("update-product", help="Update fields of a product")
    up.add_argument("--product-id", required=True)
    up.add_argument("--name")
    up.add_argument("--category")
    up.add_argument("--price", type=float)
    up.add_argument("--stock", type=int)
    up.add_argument("--description")
    up.add_argument("--image-url")

    dp = subparsers.add_parser("delete-product", help="Delete a product")
    dp.add_argument("--product-id", required=True)

    subparsers.add_parser("seed", help="Replace the catalog with sample products")

    args = parser.parse_args()
    c = CatalogClient(base_url=args.base_url)

    def _fields(ns) -> Dict[str, Any]:
        raw = {
            "name": ns.name, "category": ns.category, "price": ns.price,
            "stock": ns.stock, "description": ns.description, "imageUrl": ns.image_url,
        }
        return {k: v for k, v in raw.items() if v is not None}

    if args.command == "list-products":
        print(c.list_products())
    elif args.command == "create-product":
        print(c.create_product(_fields(args)))
    elif args.command == "update-product":
        print(c.update_product(args.product_id, _fields(args)))
    elif args.command == "delete-product":
        print(c.delete_product(args.product_id))
    elif args.command == "seed":
        print(c.seed())
