"""Static sample rows for a fresh storefront database.

Cheap products and products without images are part of the set on purpose:
the catalog image report drops the former and keeps the latter with no URLs.
"""
from decimal import Decimal

SAMPLE_PASSWORD = "SamplePass123"

SAMPLE_USERS = [
    {"username": "john_doe", "email": "john.doe@example.com"},
    {"username": "jane_smith", "email": "jane.smith@example.com"},
]

SAMPLE_CATEGORIES = [
    {"name": "Electronics", "description": "Devices and gadgets"},
    {"name": "Clothing", "description": "Apparel and accessories"},
    {"name": "Books", "description": "Printed and digital books"},
]

SAMPLE_PRODUCTS = [
    {
        "name": "Laptop",
        "description": "14-inch ultrabook",
        "price": Decimal("1200.00"),
        "stock_quantity": 50,
        "category": "Electronics",
        "images": ["laptop_front.jpg", "laptop_side.jpg"],
    },
    {
        "name": "Smartphone",
        "description": "6.1-inch smartphone",
        "price": Decimal("800.00"),
        "stock_quantity": 100,
        "category": "Electronics",
        "images": ["smartphone_front.jpg"],
    },
    {
        "name": "Headphones",
        "description": "Wireless over-ear headphones",
        "price": Decimal("150.00"),
        "stock_quantity": 75,
        "category": "Electronics",
        "images": [],
    },
    {
        "name": "T-Shirt",
        "description": "Cotton crew-neck t-shirt",
        "price": Decimal("20.00"),
        "stock_quantity": 200,
        "category": "Clothing",
        "images": ["tshirt_front.jpg"],
    },
    {
        "name": "Jeans",
        "description": "Slim-fit denim jeans",
        "price": Decimal("50.00"),
        "stock_quantity": 150,
        "category": "Clothing",
        "images": ["jeans_front.jpg"],
    },
    {
        "name": "Novel",
        "description": "Paperback fiction",
        "price": Decimal("15.00"),
        "stock_quantity": 300,
        "category": "Books",
        "images": [],
    },
]

# Orders are matched by (username, status, items); items refer to products by name.
SAMPLE_ORDERS = [
    {
        "username": "john_doe",
        "status": "completed",
        "items": [("Laptop", 1), ("Jeans", 2)],
    },
    {
        "username": "jane_smith",
        "status": "pending",
        "items": [("Smartphone", 1), ("T-Shirt", 3)],
    },
    {
        "username": "john_doe",
        "status": "canceled",
        "items": [("Novel", 2)],
    },
]

# Expected catalog image report for the sample rows at a 30.00 threshold.
EXPECTED_CATALOG_REPORT = [
    ("Clothing", "Jeans", Decimal("50.00"), ["jeans_front.jpg"]),
    ("Electronics", "Headphones", Decimal("150.00"), []),
    ("Electronics", "Laptop", Decimal("1200.00"), ["laptop_front.jpg", "laptop_side.jpg"]),
    ("Electronics", "Smartphone", Decimal("800.00"), ["smartphone_front.jpg"]),
]
