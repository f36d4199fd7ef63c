"""In-memory catalog snapshot and the operations that keep it in sync.

``CatalogState`` owns the client's copy of the product collection. Every
mutation goes through the API first and the snapshot is then patched with the
record the server returned, never with a locally merged guess. The snapshot
is only touched from the event loop that runs these coroutines, so no locks
are involved; late responses are handled by a per-record version check
instead (see ``_reconcile``).

Operations never raise for expected failures. They return an ``ActionResult``
and emit a ``StateEvent`` that the presentation layer turns into a
notification.
"""

import itertools
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from . import commands
from .errors import (
    CatalogError, FetchFailed, MutationFailed, NotFound, StaleEditIgnored, ValidationFailed,
)
from .validation import EDITABLE_FIELDS, format_cell, parse_field, validate_draft

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("name", "category", "description")
SORT_KEYS = ("name", "price", "dateAdded")


class EventType(str, Enum):
    CHANGED = "changed"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class StateEvent:
    type: EventType
    message: str = ""


@dataclass
class ActionResult:
    ok: bool
    value: Any = None
    error: Optional[CatalogError] = None
    stale: bool = False


class CellState(str, Enum):
    DISPLAY = "display"
    EDITING = "editing"
    SAVING = "saving"


@dataclass
class CellEdit:
    product_id: str
    field: str
    rollback: str
    displayed: str
    state: CellState = CellState.EDITING


def _date_key(product: Dict[str, Any]) -> datetime:
    raw = product.get("dateAdded") or ""
    try:
        parsed = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError:
        return datetime.min.replace(tzinfo=timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def filter_and_sort(products: List[Dict[str, Any]], term: str, key: Optional[str]) -> List[Dict[str, Any]]:
    term = (term or "").lower()
    kept = [
        p for p in products
        if not term or any(term in str(p.get(f, "")).lower() for f in SEARCH_FIELDS)
    ]
    if key == "name":
        kept.sort(key=lambda p: str(p.get("name", "")).casefold())
    elif key == "price":
        kept.sort(key=lambda p: float(p.get("price") or 0))
    elif key == "dateAdded":
        kept.sort(key=_date_key, reverse=True)
    return kept


class CatalogState:
    def __init__(self, client, sort_key: Optional[str] = "name"):
        self.client = client
        self.filter_term = ""
        self.sort_key = sort_key
        self.editing_id: Optional[str] = None
        self.pending_delete_id: Optional[str] = None
        self._products: List[Dict[str, Any]] = []
        self._in_flight = 0
        self._cells: Dict[Tuple[str, str], CellEdit] = {}
        self._tickets = itertools.count(1)
        self._applied: Dict[str, int] = {}
        self._listeners: List[Callable[[StateEvent], None]] = []

    # ---------------------------
    # Subscriptions
    # ---------------------------
    def subscribe(self, listener: Callable[[StateEvent], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _emit(self, type_: EventType, message: str = ""):
        event = StateEvent(type_, message)
        for listener in list(self._listeners):
            listener(event)

    # ---------------------------
    # Snapshot access
    # ---------------------------
    @property
    def products(self) -> List[Dict[str, Any]]:
        return list(self._products)

    @property
    def count(self) -> int:
        return len(self._products)

    @property
    def is_loading(self) -> bool:
        return self._in_flight > 0

    def get(self, product_id: str) -> Optional[Dict[str, Any]]:
        for p in self._products:
            if p.get("id") == product_id:
                return p
        return None

    def _index_of(self, product_id: str) -> Optional[int]:
        for i, p in enumerate(self._products):
            if p.get("id") == product_id:
                return i
        return None

    def view(self) -> List[Dict[str, Any]]:
        return filter_and_sort(self._products, self.filter_term, self.sort_key)

    def set_filter(self, term: str):
        self.filter_term = term or ""
        self._emit(EventType.CHANGED)

    def set_sort(self, key: Optional[str]):
        self.sort_key = key
        self._emit(EventType.CHANGED)

    def cell(self, product_id: str, field: str) -> Optional[CellEdit]:
        return self._cells.get((product_id, field))

    @asynccontextmanager
    async def _busy(self):
        self._in_flight += 1
        self._emit(EventType.CHANGED)
        try:
            yield
        finally:
            self._in_flight -= 1
            self._emit(EventType.CHANGED)

    def _fail(self, error: CatalogError) -> ActionResult:
        self._emit(EventType.ERROR, error.message)
        return ActionResult(False, error=error)

    def _mutation_failed(self, message: str, cause: CatalogError) -> ActionResult:
        logger.warning("%s (%s)", message, cause.message)
        return self._fail(MutationFailed(message, cause=cause))

    def _stale(self, product_id: str, reason: str) -> ActionResult:
        logger.debug("dropping response for %s: %s", product_id, reason)
        return ActionResult(False, error=StaleEditIgnored(reason), stale=True)

    def _reconcile(self, product_id: str, product: Dict[str, Any], ticket: int) -> bool:
        idx = self._index_of(product_id)
        if idx is None:
            return False
        if ticket < self._applied.get(product_id, 0):
            return False
        self._applied[product_id] = ticket
        self._products[idx] = product
        return True

    # ---------------------------
    # Operations
    # ---------------------------
    async def load(self) -> ActionResult:
        """Replace the snapshot with the server's list.

        The list is applied as it arrives, even over a create or update that
        finished while it was in flight (last writer wins). Such a change is
        not lost on the server and shows up again on the next load.
        """
        async with self._busy():
            try:
                products = await self.client.list_products()
            except CatalogError as exc:
                logger.warning("error fetching products: %s", exc.message)
                return self._fail(FetchFailed("Failed to load products. Please try again later.", cause=exc))
        self._products = list(products)
        present = {p.get("id") for p in self._products}
        self._applied = {pid: t for pid, t in self._applied.items() if pid in present}
        self._emit(EventType.CHANGED)
        return ActionResult(True, value=len(self._products))

    async def create(self, draft: Dict[str, Any]) -> ActionResult:
        try:
            fields = validate_draft(draft)
        except ValidationFailed as exc:
            return self._fail(exc)
        async with self._busy():
            try:
                product = await self.client.create_product(fields)
            except CatalogError as exc:
                return self._mutation_failed("Failed to add product. Please try again.", exc)
        self._products.append(product)
        self._emit(EventType.CHANGED)
        self._emit(EventType.SUCCESS, "Product added successfully!")
        return ActionResult(True, value=product)

    async def update(self, product_id: str, fields: Dict[str, Any],
                     success_message: str = "Product updated successfully!") -> ActionResult:
        if self.get(product_id) is None:
            return self._fail(NotFound(f"Product {product_id} not found"))
        try:
            cleaned = validate_draft(fields, partial=True)
        except ValidationFailed as exc:
            return self._fail(exc)
        ticket = next(self._tickets)
        async with self._busy():
            try:
                product = await self.client.update_product(product_id, cleaned)
            except CatalogError as exc:
                if self.get(product_id) is None:
                    return self._stale(product_id, "record removed while update was in flight")
                return self._mutation_failed("Failed to update product. Please try again.", exc)
        if not self._reconcile(product_id, product, ticket):
            reason = "record no longer in snapshot" if self.get(product_id) is None else "newer response already applied"
            return self._stale(product_id, reason)
        self._emit(EventType.CHANGED)
        self._emit(EventType.SUCCESS, success_message)
        return ActionResult(True, value=product)

    def remove(self, product_id: str) -> ActionResult:
        """Mark ``product_id`` for deletion; nothing is sent until confirm_remove()."""
        if self.get(product_id) is None:
            return self._fail(NotFound(f"Product {product_id} not found"))
        self.pending_delete_id = product_id
        self._emit(EventType.CHANGED)
        return ActionResult(True, value=product_id)

    def cancel_remove(self):
        self.pending_delete_id = None
        self._emit(EventType.CHANGED)

    def _clear_pending(self, product_id: str):
        if self.pending_delete_id == product_id:
            self.pending_delete_id = None
            self._emit(EventType.CHANGED)

    async def confirm_remove(self) -> ActionResult:
        pid = self.pending_delete_id
        if pid is None:
            return ActionResult(False)
        try:
            async with self._busy():
                await self.client.delete_product(pid)
        except CatalogError as exc:
            # a failed delete still closes the confirmation prompt
            self._clear_pending(pid)
            return self._mutation_failed("Failed to delete product. Please try again.", exc)
        self._clear_pending(pid)
        self._products = [p for p in self._products if p.get("id") != pid]
        self._applied.pop(pid, None)
        for key in [k for k in self._cells if k[0] == pid]:
            del self._cells[key]
        if self.editing_id == pid:
            self.editing_id = None
        self._emit(EventType.CHANGED)
        self._emit(EventType.SUCCESS, "Product deleted successfully!")
        return ActionResult(True, value=pid)

    async def seed(self) -> ActionResult:
        async with self._busy():
            try:
                result = await self.client.seed()
            except CatalogError as exc:
                return self._mutation_failed("Failed to seed database. Please try again later.", exc)
            # the seed response only carries a count, so always refetch
            loaded = await self.load()
        if not loaded.ok:
            return loaded
        self._emit(EventType.SUCCESS, result.get("message", "Database seeded successfully"))
        return ActionResult(True, value=result.get("count"))

    # ---------------------------
    # Form edit
    # ---------------------------
    def begin_form_edit(self, product_id: str) -> Optional[Dict[str, Any]]:
        product = self.get(product_id)
        if product is None:
            return None
        self.editing_id = product_id
        self._emit(EventType.CHANGED)
        draft = {f: product.get(f) for f in EDITABLE_FIELDS}
        draft["imageUrl"] = product.get("imageUrl") or ""
        return draft

    def cancel_form_edit(self):
        self.editing_id = None
        self._emit(EventType.CHANGED)

    async def submit(self, draft: Dict[str, Any]) -> ActionResult:
        if self.editing_id is None:
            return await self.create(draft)
        editing_id = self.editing_id
        result = await self.update(editing_id, draft)
        if result.ok and self.editing_id == editing_id:
            self.editing_id = None
            self._emit(EventType.CHANGED)
        return result

    # ---------------------------
    # Inline cell edit
    # ---------------------------
    def begin_cell_edit(self, product_id: str, field: str) -> Optional[CellEdit]:
        if field not in EDITABLE_FIELDS:
            self._fail(ValidationFailed(f"{field} cannot be edited inline", field=field))
            return None
        existing = self._cells.get((product_id, field))
        if existing is not None:
            return existing
        product = self.get(product_id)
        if product is None:
            return None
        shown = format_cell(product, field)
        cell = CellEdit(product_id, field, rollback=shown, displayed=shown)
        self._cells[(product_id, field)] = cell
        self._emit(EventType.CHANGED)
        return cell

    def _close_cell(self, cell: CellEdit, displayed: str) -> CellEdit:
        cell.state = CellState.DISPLAY
        cell.displayed = displayed
        self._cells.pop((cell.product_id, cell.field), None)
        self._emit(EventType.CHANGED)
        return cell

    async def commit_cell_edit(self, product_id: str, field: str, value: Any) -> Optional[CellEdit]:
        cell = self._cells.get((product_id, field))
        if cell is None or cell.state is not CellState.EDITING:
            return cell
        new_value = "" if value is None else str(value).strip()
        if not new_value or new_value == cell.rollback:
            return self._close_cell(cell, cell.rollback)
        try:
            parsed = parse_field(field, new_value)
        except ValidationFailed:
            logger.debug("rejected %s=%r for %s", field, new_value, product_id)
            return self._close_cell(cell, cell.rollback)

        cell.state = CellState.SAVING
        cell.displayed = new_value
        self._emit(EventType.CHANGED)
        result = await self.update(
            product_id, {field: parsed},
            success_message=f"{field.capitalize()} updated successfully!",
        )
        if result.ok:
            return self._close_cell(cell, format_cell(result.value, field))
        return self._close_cell(cell, cell.rollback)

    def cancel_cell_edit(self, product_id: str, field: str) -> Optional[CellEdit]:
        cell = self._cells.get((product_id, field))
        if cell is None or cell.state is not CellState.EDITING:
            return cell
        return self._close_cell(cell, cell.rollback)

    # ---------------------------
    # Command dispatch
    # ---------------------------
    async def dispatch(self, request: Any) -> Any:
        if isinstance(request, commands.LoadRequest):
            return await self.load()
        if isinstance(request, commands.CreateRequest):
            return await self.create(request.draft)
        if isinstance(request, commands.SubmitFormRequest):
            return await self.submit(request.draft)
        if isinstance(request, commands.UpdateRequest):
            return await self.update(request.id, request.fields)
        if isinstance(request, commands.DeleteRequest):
            return self.remove(request.id)
        if isinstance(request, commands.ConfirmDeleteRequest):
            return await self.confirm_remove()
        if isinstance(request, commands.CancelDeleteRequest):
            return self.cancel_remove()
        if isinstance(request, commands.SeedRequest):
            return await self.seed()
        if isinstance(request, commands.FilterRequest):
            return self.set_filter(request.term)
        if isinstance(request, commands.SortRequest):
            return self.set_sort(request.key)
        if isinstance(request, commands.BeginCellEditRequest):
            return self.begin_cell_edit(request.id, request.field)
        if isinstance(request, commands.CommitCellEditRequest):
            return await self.commit_cell_edit(request.id, request.field, request.value)
        if isinstance(request, commands.CancelCellEditRequest):
            return self.cancel_cell_edit(request.id, request.field)
        raise TypeError(f"unsupported request: {type(request).__name__}")
