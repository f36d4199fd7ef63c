import logging
import uuid
from typing import Dict, Any, List
from fastapi import HTTPException

from .core import ProductIn, ProductUpdate, SAMPLE_PRODUCTS, _make_product_dict, _update_fields
from .database import ProductStore

# This file contains the core logic for all API endpoints.
# Everything here blocks on sqlite, so routes call it from sync handlers (FastAPI threadpool).

logger = logging.getLogger(__name__)


def list_products_logic(store: ProductStore) -> List[Dict[str, Any]]:
    return store.find_all()


def create_product_logic(store: ProductStore, payload: ProductIn) -> Dict[str, Any]:
    pid = uuid.uuid4().hex
    product = store.insert(_make_product_dict(pid, payload))
    logger.info("created product %s (%s)", pid, product["name"])
    return product


def update_product_logic(store: ProductStore, product_id: str, payload: ProductUpdate) -> Dict[str, Any]:
    try:
        fields = _update_fields(payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    product = store.update(product_id, fields)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    logger.info("updated product %s fields=%s", product_id, sorted(fields))
    return product


def delete_product_logic(store: ProductStore, product_id: str) -> Dict[str, str]:
    if not store.delete(product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    logger.info("deleted product %s", product_id)
    return {"message": "Product deleted successfully"}


def seed_logic(store: ProductStore) -> Dict[str, Any]:
    products = [_make_product_dict(uuid.uuid4().hex, ProductIn(**p)) for p in SAMPLE_PRODUCTS]
    count = store.replace_all(products)
    logger.info("seeded %d sample products", count)
    return {"message": "Database seeded successfully", "count": count}
