"""Client-side checks for product drafts and editable cells.

These mirror the server's rules so the user gets feedback before a request is
sent. The server stays the authority: anything passing here can still come
back as a 400.
"""

import math
from typing import Any, Dict, Mapping

from .errors import ValidationFailed

TEXT_FIELDS = ("name", "category", "description")
EDITABLE_FIELDS = ("name", "category", "price", "stock", "description")
# order in which a draft is checked, so the first bad field is the one reported
DRAFT_ORDER = ("name", "category", "price", "stock", "description")


def parse_price(raw: Any) -> float:
    if isinstance(raw, bool) or raw is None:
        raise ValidationFailed("Please enter a valid price", field="price")
    try:
        value = float(str(raw).strip())
    except ValueError:
        raise ValidationFailed("Please enter a valid price", field="price")
    if not math.isfinite(value) or value <= 0:
        raise ValidationFailed("Please enter a valid price", field="price")
    return value


def parse_stock(raw: Any) -> int:
    if isinstance(raw, bool) or raw is None:
        raise ValidationFailed("Please enter a valid stock quantity", field="stock")
    if isinstance(raw, float):
        if not raw.is_integer():
            raise ValidationFailed("Please enter a valid stock quantity", field="stock")
        value = int(raw)
    else:
        try:
            value = int(str(raw).strip())
        except ValueError:
            raise ValidationFailed("Please enter a valid stock quantity", field="stock")
    if value < 0:
        raise ValidationFailed("Please enter a valid stock quantity", field="stock")
    return value


def parse_text(field: str, raw: Any) -> str:
    text = "" if raw is None else str(raw).strip()
    if not text:
        raise ValidationFailed(f"{field} is required", field=field)
    return text


def parse_field(field: str, raw: Any) -> Any:
    if field == "price":
        return parse_price(raw)
    if field == "stock":
        return parse_stock(raw)
    return parse_text(field, raw)


def validate_draft(draft: Mapping[str, Any], partial: bool = False) -> Dict[str, Any]:
    """Return the cleaned fields of ``draft`` or raise ValidationFailed.

    With ``partial`` only the fields present in the draft are checked. A blank
    ``imageUrl`` is dropped so the server applies its own placeholder.
    """
    cleaned: Dict[str, Any] = {}
    for field in DRAFT_ORDER:
        if partial and field not in draft:
            continue
        cleaned[field] = parse_field(field, draft.get(field))
    image_url = draft.get("imageUrl")
    if image_url is not None and str(image_url).strip():
        cleaned["imageUrl"] = str(image_url).strip()
    return cleaned


def format_cell(product: Mapping[str, Any], field: str) -> str:
    value = product.get(field)
    if value is None:
        return ""
    if field == "price":
        return f"{float(value):.2f}"
    return str(value)
