import logging
from typing import Dict, Any, List

import uvicorn
from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import config
from .core import ProductIn, ProductUpdate
from .database import ProductStore, StoreError, get_store
from .services import (
    list_products_logic, create_product_logic, update_product_logic,
    delete_product_logic, seed_logic
)

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="catalog-manager API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------
# Error bodies: always {"message": ...}
# ---------------------------
def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        parts.append(f"{'.'.join(loc)}: {err.get('msg')}" if loc else err.get("msg", "invalid request"))
    return "; ".join(parts) or "Invalid request body"


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"message": _validation_message(exc)})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)})


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.exception("store failure on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": str(exc)})

# ---------------------------
# Product endpoints
# ---------------------------
@app.get("/api/products")
def list_products(store: ProductStore = Depends(get_store)) -> List[Dict[str, Any]]:
    return list_products_logic(store)


@app.post("/api/products", status_code=201)
def create_product(payload: ProductIn, store: ProductStore = Depends(get_store)):
    return create_product_logic(store, payload)


@app.put("/api/products/{product_id}")
def update_product(product_id: str, payload: ProductUpdate, store: ProductStore = Depends(get_store)):
    return update_product_logic(store, product_id, payload)


@app.delete("/api/products/{product_id}")
def delete_product(product_id: str, store: ProductStore = Depends(get_store)):
    return delete_product_logic(store, product_id)

# ---------------------------
# Utility: seed sample data (destructive)
# ---------------------------
@app.get("/api/seed")
def seed(store: ProductStore = Depends(get_store)):
    return seed_logic(store)


def serve():
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())


if __name__ == "__main__":
    serve()
