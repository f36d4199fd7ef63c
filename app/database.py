import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Any, List, Optional

from . import config

# This file holds the persistent product store.

logger = logging.getLogger(__name__)

# wire key -> column
COLUMNS = {
    "id": "id",
    "name": "name",
    "category": "category",
    "price": "price",
    "stock": "stock",
    "description": "description",
    "imageUrl": "image_url",
    "dateAdded": "date_added",
}
MUTABLE_KEYS = ("name", "category", "price", "stock", "description", "imageUrl")


class StoreError(Exception):
    pass


def row_to_product(row: sqlite3.Row) -> Dict[str, Any]:
    return {key: row[column] for key, column in COLUMNS.items()}


class ProductStore:
    def __init__(self, db_file: Path):
        self.db_file = Path(db_file)
        self.create_schema()

    @contextmanager
    def _connect(self):
        try:
            conn = sqlite3.connect(self.db_file)
        except sqlite3.Error as e:
            raise StoreError(f"cannot open {self.db_file}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        except (sqlite3.Error, OverflowError) as e:
            raise StoreError(str(e)) from e
        finally:
            conn.close()

    def create_schema(self):
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS products (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    name TEXT NOT NULL,
                    category TEXT NOT NULL,
                    price REAL NOT NULL CHECK (price > 0),
                    stock INTEGER NOT NULL CHECK (stock >= 0),
                    description TEXT NOT NULL,
                    image_url TEXT NOT NULL,
                    date_added TEXT NOT NULL
                )
            """)

    def find_all(self) -> List[Dict[str, Any]]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM products ORDER BY seq").fetchall()
        return [row_to_product(r) for r in rows]

    def find_by_id(self, product_id: str) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM products WHERE id = ?", (product_id,)).fetchone()
        return row_to_product(row) if row else None

    def _insert(self, conn: sqlite3.Connection, product: Dict[str, Any]):
        keys = list(COLUMNS)
        conn.execute(
            f"INSERT INTO products ({', '.join(COLUMNS[k] for k in keys)}) "
            f"VALUES ({', '.join('?' for _ in keys)})",
            [product[k] for k in keys],
        )

    def insert(self, product: Dict[str, Any]) -> Dict[str, Any]:
        with self._connect() as conn:
            self._insert(conn, product)
        return self.find_by_id(product["id"])

    def update(self, product_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        changes = {k: v for k, v in fields.items() if k in MUTABLE_KEYS}
        with self._connect() as conn:
            if changes:
                assignments = ", ".join(f"{COLUMNS[k]} = ?" for k in changes)
                cursor = conn.execute(
                    f"UPDATE products SET {assignments} WHERE id = ?",
                    [*changes.values(), product_id],
                )
                if cursor.rowcount == 0:
                    return None
            row = conn.execute("SELECT * FROM products WHERE id = ?", (product_id,)).fetchone()
        return row_to_product(row) if row else None

    def delete(self, product_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM products WHERE id = ?", (product_id,))
        return cursor.rowcount > 0

    def replace_all(self, products: List[Dict[str, Any]]) -> int:
        # delete-all and insert-all share one transaction
        with self._connect() as conn:
            conn.execute("DELETE FROM products")
            for p in products:
                self._insert(conn, p)
        return len(products)


_store: Optional[ProductStore] = None


def get_store() -> ProductStore:
    global _store
    if _store is None:
        logger.info("opening product store at %s", config.DB_FILE)
        _store = ProductStore(config.DB_FILE)
    return _store
