#!/usr/bin/env python
from dotenv import load_dotenv

load_dotenv()

from sdk.catalog_client import CatalogClient
from sdk.errors import CatalogError


def main():
    c = CatalogClient()

    # -----------------------------
    # Reset everything for demo
    # -----------------------------
    print("Seeding catalog...")
    print(c.seed())

    # -----------------------------
    # Create products
    # -----------------------------
    print("\nCreating a product...")
    lamp = c.create_product({
        "name": "Reading Lamp",
        "category": "Office",
        "price": 24.5,
        "stock": 4,
        "description": "Clip-on reading lamp with a flexible neck.",
    })
    print(lamp)

    print("\nCreating an invalid product (price 0)...")
    try:
        c.create_product({"name": "Broken", "category": "Office", "price": 0, "stock": 1, "description": "x"})
    except CatalogError as e:
        print(f"rejected: {e.message}")

    # -----------------------------
    # Update a single field
    # -----------------------------
    print("\nRestocking the lamp...")
    print(c.update_product(lamp["id"], {"stock": 30}))

    # -----------------------------
    # List products
    # -----------------------------
    print("\nListing products...")
    for p in c.list_products():
        print(f"  {p['name']:<22} {p['category']:<12} ${p['price']:>8.2f}  stock={p['stock']}")

    # -----------------------------
    # Delete
    # -----------------------------
    print("\nDeleting the lamp...")
    print(c.delete_product(lamp["id"]))


if __name__ == "__main__":
    main()
