from datetime import datetime, timezone
from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict, Any, List

DEFAULT_IMAGE_URL = "https://images.unsplash.com/photo-1560472354-b33ff0c44a43?w=300&h=300&fit=crop"

REQUIRED_FIELDS = ("name", "category", "price", "stock", "description")

# largest value an sqlite INTEGER column holds
MAX_STOCK = 2**63 - 1


def _required_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


class ProductIn(BaseModel):
    name: str
    category: str
    price: float = Field(gt=0, allow_inf_nan=False)
    stock: int = Field(ge=0, le=MAX_STOCK)
    description: str
    imageUrl: Optional[str] = None

    @field_validator("name", "category", "description")
    @classmethod
    def not_blank(cls, value):
        return _required_text(value)


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    stock: Optional[int] = Field(default=None, ge=0, le=MAX_STOCK)
    description: Optional[str] = None
    imageUrl: Optional[str] = None

    @field_validator("name", "category", "description")
    @classmethod
    def not_blank(cls, value):
        return _required_text(value)


def _image_url(value: Optional[str]) -> str:
    if value is None or not value.strip():
        return DEFAULT_IMAGE_URL
    return value.strip()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _make_product_dict(product_id: str, p: ProductIn) -> Dict[str, Any]:
    return {
        "id": product_id,
        "name": p.name,
        "category": p.category,
        "price": p.price,
        "stock": p.stock,
        "description": p.description,
        "imageUrl": _image_url(p.imageUrl),
        "dateAdded": _now(),
    }


def _update_fields(p: ProductUpdate) -> Dict[str, Any]:
    """Fields the client actually sent. Explicit nulls on required fields raise ValueError."""
    fields = p.model_dump(exclude_unset=True)
    for key in REQUIRED_FIELDS:
        if key in fields and fields[key] is None:
            raise ValueError(f"{key} cannot be null")
    if "imageUrl" in fields:
        fields["imageUrl"] = _image_url(fields["imageUrl"])
    return fields


SAMPLE_PRODUCTS: List[Dict[str, Any]] = [
    {
        "name": "Wireless Headphones",
        "category": "Electronics",
        "price": 89.99,
        "stock": 15,
        "description": "Premium noise-canceling wireless headphones with 30 hours of battery life and comfortable over-ear design.",
        "imageUrl": "https://images.unsplash.com/photo-1505740420928-5e560c06d30e?w=300&h=300&fit=crop",
    },
    {
        "name": "Smart Watch",
        "category": "Electronics",
        "price": 199.99,
        "stock": 8,
        "description": "Track your fitness goals, receive notifications, and more with this water-resistant smart watch.",
        "imageUrl": "https://images.unsplash.com/photo-1523275335684-37898b6baf30?w=300&h=300&fit=crop",
    },
    {
        "name": "Yoga Mat",
        "category": "Fitness",
        "price": 29.95,
        "stock": 20,
        "description": "Non-slip, eco-friendly yoga mat perfect for all types of yoga and floor exercises.",
        "imageUrl": "https://images.unsplash.com/photo-1518611012118-696072aa579a?w=300&h=300&fit=crop",
    },
    {
        "name": "Coffee Maker",
        "category": "Kitchen",
        "price": 59.99,
        "stock": 12,
        "description": "Programmable coffee maker with 12-cup capacity and auto-shutoff feature.",
        "imageUrl": "https://images.unsplash.com/photo-1495474472287-4d71bcdd2085?w=300&h=300&fit=crop",
    },
    {
        "name": "Desk Lamp",
        "category": "Office",
        "price": 34.50,
        "stock": 25,
        "description": "Adjustable LED desk lamp with multiple brightness levels and color temperatures.",
        "imageUrl": "https://images.unsplash.com/photo-1534282033039-bd5fb7023633?w=300&h=300&fit=crop",
    },
    {
        "name": "Backpack",
        "category": "Sports",
        "price": 49.95,
        "stock": 18,
        "description": "Durable, water-resistant backpack with multiple compartments and laptop sleeve.",
        "imageUrl": "https://images.unsplash.com/photo-1553062407-98eeb64c6a62?w=300&h=300&fit=crop",
    },
]
